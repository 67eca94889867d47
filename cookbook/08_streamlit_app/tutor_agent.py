"""The tutor agent used by the Streamlit app."""

from pathlib import Path
from textwrap import dedent

from tutor.agent import Agent
from tutor.knowledge import Knowledge
from tutor.memory import Memory
from tutor.memory.db.sqlite import SqliteMemoryDb
from tutor.models.utils import get_model
from tutor.tools.duckduckgo import DuckDuckGoTools
from tutor.tools.reasoning import ReasoningTools

docs_dir = Path(__file__).parent.parent.joinpath("05_knowledge", "docs")
tmp_dir = Path(__file__).parent.joinpath("tmp")


def get_tutor_agent(model_id: str = "openai:gpt-4o-mini", user_id: str = "student", debug_mode: bool = False) -> Agent:
    """Build a tutor agent with a knowledge base, web search and user memories."""
    knowledge = Knowledge(name="Tutor Handbook")
    knowledge.insert(path=docs_dir)

    memory = Memory(db=SqliteMemoryDb(table_name="tutor_memories", db_file=str(tmp_dir.joinpath("tutor.db"))))

    return Agent(
        name="Tutor",
        model=get_model(model_id),
        user_id=user_id,
        knowledge=knowledge,
        search_knowledge=True,
        memory=memory,
        enable_user_memories=True,
        add_history_to_messages=True,
        num_history_runs=3,
        tools=[ReasoningTools(add_instructions=True), DuckDuckGoTools(enable_news=False)],
        description="You are a patient tutor that teaches people how to build AI agents.",
        instructions=dedent("""\
            Search your knowledge base before answering a question about agents.
            If the knowledge base has no answer, search the web and say so.
            Explain one idea at a time and finish with a short exercise for the student.
            Adapt the level of your answer to what you remember about the student.\
            """).split("\n"),
        add_datetime_to_instructions=True,
        markdown=True,
        debug_mode=debug_mode,
    )
