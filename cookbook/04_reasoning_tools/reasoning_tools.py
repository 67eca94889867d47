"""
Reasoning Tools

ReasoningTools give the agent a `think` and an `analyze` tool. The model
writes its plan down step by step before answering, and the steps are shown
in the printed response.

Run: python cookbook/04_reasoning_tools/reasoning_tools.py
"""

from dotenv import load_dotenv
from tutor.agent import Agent
from tutor.tools.calculator import CalculatorTools
from tutor.tools.reasoning import ReasoningTools

load_dotenv()

reasoning_agent = Agent(
    model="openai:gpt-4o",
    tools=[
        ReasoningTools(add_instructions=True, add_few_shot=True),
        CalculatorTools(),
    ],
    instructions="Use tables to show comparisons where possible.",
    markdown=True,
)

# reasoning=True attaches the same toolkit with its instructions
short_agent = Agent(model="openai:gpt-4o-mini", reasoning=True, markdown=True)

if __name__ == "__main__":
    reasoning_agent.print_response(
        "A train leaves at 9:40 and travels 245 km at 70 km/h. A second train leaves at 10:05 "
        "and travels the same route at 95 km/h. Which one arrives first?",
        stream=True,
        show_full_reasoning=True,
    )

    short_agent.print_response("Is 1001 a prime number?")
