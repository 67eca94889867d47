"""
Traditional RAG

With add_references=True the knowledge base is searched with the user message
before the model is called, and the results are added to the user message.
The agent gets no search tool.

Run: python cookbook/05_knowledge/traditional_rag.py
"""

from pathlib import Path

from dotenv import load_dotenv
from rich.pretty import pprint
from tutor.agent import Agent
from tutor.knowledge import Knowledge

load_dotenv()

knowledge = Knowledge(name="Agent Handbook")
knowledge.insert(path=Path(__file__).parent.joinpath("docs"))

# Content from a web page can be added the same way
# knowledge.insert(url="https://docs.python.org/3/tutorial/classes.html")

agent = Agent(
    model="openai:gpt-4o-mini",
    knowledge=knowledge,
    add_references=True,
    search_knowledge=False,
    num_references=2,
    markdown=True,
)

if __name__ == "__main__":
    response = agent.run("How does an agent remember things about a user?")
    print(response.content)
    # The documents that were added to the prompt
    pprint(response.references)
