"""
Route Mode

The leader only picks the member that should answer and forwards the message
with `forward_task_to_member`. The member's answer is returned unchanged.

Run: python cookbook/07_team/route.py
"""

from dotenv import load_dotenv
from tutor.agent import Agent
from tutor.team import Team

load_dotenv()

english_agent = Agent(
    name="English Agent",
    role="Answers questions in English",
    model="openai:gpt-4o-mini",
    instructions="Always answer in English.",
)

spanish_agent = Agent(
    name="Spanish Agent",
    role="Answers questions in Spanish",
    model="openai:gpt-4o-mini",
    instructions="Always answer in Spanish.",
)

french_agent = Agent(
    name="French Agent",
    role="Answers questions in French",
    model="openai:gpt-4o-mini",
    instructions="Always answer in French.",
)

team = Team(
    name="Language Router",
    mode="route",
    model="openai:gpt-4o-mini",
    members=[english_agent, spanish_agent, french_agent],
    instructions=[
        "Identify the language of the user's question and forward it to the matching agent.",
        "If no agent speaks the language, answer in English that the language is not supported.",
    ],
    show_members_responses=True,
    markdown=True,
)

if __name__ == "__main__":
    team.print_response("¿Cuál es la capital de Argentina?", stream=True)
    team.print_response("Quelle est la meilleure saison pour visiter Paris ?", stream=True)
    team.print_response("Wie spät ist es in Berlin?", stream=True)
