"""
Collaborate Mode

Every member gets the same task with `run_member_agents`. The leader compares
the answers and writes one response from them.

Run: python cookbook/07_team/collaborate.py
"""

from dotenv import load_dotenv
from tutor.agent import Agent
from tutor.team import Team

load_dotenv()

optimist = Agent(
    name="Optimist",
    role="Argues for the idea",
    model="openai:gpt-4o-mini",
    instructions="List the strongest arguments in favour. Be brief.",
)

skeptic = Agent(
    name="Skeptic",
    role="Argues against the idea",
    model="openai:gpt-4o-mini",
    instructions="List the strongest arguments against. Be brief.",
)

team = Team(
    name="Debate Team",
    mode="collaborate",
    model="openai:gpt-4o",
    members=[optimist, skeptic],
    instructions="Weigh both sides and give a balanced recommendation.",
    enable_agentic_context=True,
    show_members_responses=True,
    markdown=True,
)

if __name__ == "__main__":
    team.print_response("Should a beginner learn Python before JavaScript?", stream=True)
    print(team.team_context.get_context_str())
