"""
Chat History

Every run is stored in the agent's memory under its session id. With
add_history_to_messages=True the messages of the last num_history_runs runs
are sent to the model again.

Run: python cookbook/06_memory/chat_history.py
"""

from dotenv import load_dotenv
from tutor.agent import Agent

load_dotenv()

agent = Agent(
    model="openai:gpt-4o-mini",
    add_history_to_messages=True,
    num_history_runs=2,
    markdown=True,
)

if __name__ == "__main__":
    agent.print_response("Give me one fun fact about octopuses.")
    agent.print_response("And one more.")
    agent.print_response("What were the two facts you told me?")

    for message in agent.memory.get_messages_for_session(session_id=agent.session_id):
        print(f"{message.role}: {message.content}")
