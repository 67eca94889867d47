"""
Coordinate Mode

The team leader breaks the task down, hands each part to the member that fits
it best with `transfer_task_to_member` and combines the answers.

Run: python cookbook/07_team/coordinate.py
"""

from dotenv import load_dotenv
from tutor.agent import Agent
from tutor.team import Team
from tutor.tools.calculator import CalculatorTools
from tutor.tools.duckduckgo import DuckDuckGoTools

load_dotenv()

researcher = Agent(
    name="Researcher",
    role="Finds facts on the web",
    model="openai:gpt-4o-mini",
    tools=[DuckDuckGoTools(enable_news=False)],
    instructions="Always include the sources you used.",
)

analyst = Agent(
    name="Analyst",
    role="Does exact calculations",
    model="openai:gpt-4o-mini",
    tools=[CalculatorTools()],
)

team = Team(
    name="Research Team",
    mode="coordinate",
    model="openai:gpt-4o",
    members=[researcher, analyst],
    instructions=[
        "Ask the Researcher for facts and the Analyst for numbers.",
        "Write the final answer as a short report.",
    ],
    success_criteria="The report answers the question with sourced facts and correct numbers.",
    share_member_interactions=True,
    show_members_responses=True,
    markdown=True,
)

if __name__ == "__main__":
    team.print_response(
        "What is the population of Portugal and Spain, and how many times larger is Spain?",
        stream=True,
    )
