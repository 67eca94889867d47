"""
Agentic RAG

The knowledge base reads documents, splits them into chunks, embeds them and
stores them in a vector db. With search_knowledge=True (the default) the agent
gets a `search_knowledge_base` tool and decides itself when to search.

Run: python cookbook/05_knowledge/agentic_rag.py
"""

from pathlib import Path

from dotenv import load_dotenv
from tutor.agent import Agent
from tutor.knowledge import Knowledge
from tutor.knowledge.chunking.recursive import RecursiveChunking
from tutor.knowledge.embedder.openai import OpenAIEmbedder
from tutor.knowledge.reader import TextReader
from tutor.vectordb import Distance, InMemoryVectorDb

load_dotenv()

docs_dir = Path(__file__).parent.joinpath("docs")

knowledge = Knowledge(
    name="Agent Handbook",
    vector_db=InMemoryVectorDb(
        name="agent_handbook",
        embedder=OpenAIEmbedder(id="text-embedding-3-small"),
        distance=Distance.cosine,
    ),
    reader=TextReader(chunking_strategy=RecursiveChunking(chunk_size=800, overlap=80)),
)

agent = Agent(
    model="openai:gpt-4o-mini",
    knowledge=knowledge,
    search_knowledge=True,
    num_references=3,
    instructions="Answer from the knowledge base and cite the document names you used.",
    show_tool_calls=True,
    markdown=True,
)

if __name__ == "__main__":
    inserted = knowledge.insert(path=docs_dir, metadata={"collection": "handbook"})
    print(f"Loaded {inserted} chunks, {knowledge.get_count()} in total")

    # A second insert skips the chunks that are already stored
    knowledge.insert(path=docs_dir, metadata={"collection": "handbook"})

    agent.print_response("What is the difference between a tool and a toolkit?", stream=True)
