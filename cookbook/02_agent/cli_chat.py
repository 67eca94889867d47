"""
Chat in the terminal

cli_app() keeps asking for input and prints each response until you type
exit, quit or bye. History is on, so the agent remembers earlier turns.

Run: python cookbook/02_agent/cli_chat.py
"""

from dotenv import load_dotenv
from tutor.agent import Agent

load_dotenv()

agent = Agent(
    model="openai:gpt-4o-mini",
    description="You are a tutor who answers questions about Python.",
    add_history_to_messages=True,
    num_history_runs=5,
    markdown=True,
)

if __name__ == "__main__":
    agent.cli_app(message="Say hello and ask what I want to learn.", stream=True, markdown=True)
