"""
Toolkits

A Toolkit groups related tools. This agent can search the web and do exact
arithmetic, and stops calling tools after tool_call_limit calls.

Run: python cookbook/03_tools/toolkits.py
"""

from dotenv import load_dotenv
from tutor.agent import Agent
from tutor.tools.calculator import CalculatorTools
from tutor.tools.duckduckgo import DuckDuckGoTools

load_dotenv()

agent = Agent(
    model="openai:gpt-4o-mini",
    tools=[DuckDuckGoTools(enable_news=False), CalculatorTools()],
    instructions=[
        "Search the web for facts you are not sure about.",
        "Use the calculator for every computation.",
    ],
    tool_call_limit=5,
    show_tool_calls=True,
    markdown=True,
)

if __name__ == "__main__":
    agent.print_response(
        "How tall is the Eiffel Tower in metres, and how many of them stacked would reach 10 km?",
        stream=True,
    )
