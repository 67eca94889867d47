"""
Streaming and Chat History

Runs can be streamed as events, and previous runs of the session can be
replayed to the model so the agent remembers the conversation.

Run: python cookbook/02_agent/streaming_and_history.py
"""

from dotenv import load_dotenv
from tutor.agent import Agent, RunEvent

load_dotenv()

agent = Agent(
    model="openai:gpt-4o-mini",
    add_history_to_messages=True,
    num_history_runs=3,
    markdown=True,
)

if __name__ == "__main__":
    for event in agent.run("My favourite language is Python. Suggest a first project.", stream=True):
        if event.event == RunEvent.run_response.value and event.content:
            print(event.content, end="", flush=True)
        elif event.event == RunEvent.run_completed.value:
            print(f"\n\nTokens used: {event.metrics}")

    # The second run sees the first one
    agent.print_response("Which language did I say I like?")
