"""
Hello Agent

The smallest useful program: an agent wrapping a model, asked one question.
Every later chapter adds one building block on top of this one:

  01 model            talk to a model directly
  02 agent            instructions, structured output and streaming
  03 tools            give the agent functions to call
  04 reasoning tools  think and analyze before answering
  05 knowledge        retrieval-augmented generation
  06 memory           remember the user across runs
  07 team             several agents with a leader
  08 streamlit app    a chat UI around an agent

Set OPENAI_API_KEY in your environment or in a `.env` file, then run:
    python cookbook/00_introduction/hello_agent.py
"""

from dotenv import load_dotenv
from tutor.agent import Agent
from tutor.models.openai import OpenAIChat

load_dotenv()

agent = Agent(
    model=OpenAIChat(id="gpt-4o-mini"),
    description="You are a friendly tutor who explains AI agents to newcomers.",
    markdown=True,
)

if __name__ == "__main__":
    agent.print_response("In two sentences, what is an AI agent?")
