from pathlib import Path

import pytest

from tutor.knowledge.document import Document
from tutor.knowledge.knowledge import Knowledge
from tutor.knowledge.protocol import KnowledgeBase
from tutor.vectordb.in_memory import InMemoryVectorDb


@pytest.fixture
def knowledge(embedder):
    return Knowledge(name="handbook", vector_db=InMemoryVectorDb(name="handbook", embedder=embedder))


def test_knowledge_is_a_knowledge_base(knowledge):
    assert isinstance(knowledge, KnowledgeBase)
    assert knowledge.vector_db.exists()


def test_insert_text_and_search(knowledge):
    knowledge.insert(text_content="A tool is a python function the agent can call.", name="tools")
    knowledge.insert(text_content="Memory stores facts about the user.", name="memory")

    results = knowledge.search("How does an agent call a tool?", max_results=1)

    assert len(results) == 1
    assert results[0].name == "tools"
    assert 0.0 < results[0].reranking_score <= 1.0


def test_insert_directory_skips_existing(knowledge, tmp_path: Path):
    (tmp_path / "tools.md").write_text("Tools let an agent act.", encoding="utf-8")
    (tmp_path / "team.txt").write_text("A team has members.", encoding="utf-8")
    (tmp_path / "image.png").write_bytes(b"\x89PNG")

    assert knowledge.insert(path=tmp_path, metadata={"collection": "docs"}) == 2
    assert knowledge.get_count() == 2
    # Same content again is skipped
    assert knowledge.insert(path=tmp_path) == 0
    assert knowledge.get_count() == 2


def test_insert_requires_exactly_one_source(knowledge):
    with pytest.raises(ValueError):
        knowledge.insert()
    with pytest.raises(ValueError):
        knowledge.insert(text_content="a", documents=[Document(content="b")])


def test_insert_missing_path_returns_zero(knowledge, tmp_path: Path):
    assert knowledge.insert(path=tmp_path / "missing.md") == 0


def test_search_with_metadata_filters(knowledge):
    knowledge.insert(
        documents=[
            Document(name="beginner", content="python agent basics", meta_data={"level": "beginner"}),
            Document(name="advanced", content="python agent team memory", meta_data={"level": "advanced"}),
        ]
    )

    results = knowledge.search("python agent", filters={"level": "advanced"})

    assert [doc.name for doc in results] == ["advanced"]


def test_upsert_replaces_documents(knowledge):
    knowledge.insert(documents=[Document(id="intro", name="intro", content="old agent text")])
    knowledge.insert(documents=[Document(id="intro", name="intro", content="new agent text")], upsert=True)

    results = knowledge.search("agent")

    assert knowledge.get_count() == 1
    assert results[0].content == "new agent text"


def test_clear(knowledge):
    knowledge.insert(text_content="agent", name="a")
    assert knowledge.clear() is True
    assert knowledge.get_count() == 0
