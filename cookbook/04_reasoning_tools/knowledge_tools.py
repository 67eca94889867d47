"""
Knowledge Tools

KnowledgeTools combine a scratchpad with knowledge search: the agent thinks,
searches, then analyzes whether the results answer the question.

Run: python cookbook/04_reasoning_tools/knowledge_tools.py
"""

from textwrap import dedent

from dotenv import load_dotenv
from tutor.agent import Agent
from tutor.knowledge import Knowledge
from tutor.tools.knowledge import KnowledgeTools

load_dotenv()

knowledge = Knowledge(name="glossary")
knowledge.insert(
    text_content=dedent("""\
        An embedding is a vector of numbers that represents the meaning of a piece of text.
        Texts with similar meaning have embeddings that are close to each other.

        A vector database stores embeddings and finds the ones closest to a query embedding.

        Retrieval-augmented generation (RAG) retrieves relevant text from a knowledge base
        and gives it to the model together with the question.
        """),
    name="glossary",
)

agent = Agent(
    model="openai:gpt-4o-mini",
    tools=[KnowledgeTools(knowledge=knowledge, add_few_shot=True)],
    show_tool_calls=True,
    markdown=True,
)

if __name__ == "__main__":
    agent.print_response("How does RAG use a vector database?", stream=True, show_full_reasoning=True)
