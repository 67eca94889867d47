import math

import pytest

from tutor.knowledge.document import Document
from tutor.vectordb.distance import Distance
from tutor.vectordb.in_memory import InMemoryVectorDb
from tutor.vectordb.score import normalize_cosine, normalize_l2, normalize_max_inner_product, normalize_score


@pytest.fixture
def vector_db(embedder):
    db = InMemoryVectorDb(name="test", embedder=embedder)
    db.create()
    return db


def _docs():
    return [
        Document(name="tools", content="tool tool agent"),
        Document(name="memory", content="memory memory agent"),
        Document(name="cats", content="cat facts"),
    ]


def test_insert_and_count(vector_db):
    vector_db.insert(_docs())
    assert vector_db.get_count() == 3
    assert vector_db.name_exists("tools")
    assert not vector_db.name_exists("dogs")


def test_insert_skips_existing_ids(vector_db):
    vector_db.insert([Document(id="a", content="agent")])
    vector_db.insert([Document(id="a", content="something else")])
    assert vector_db.get_count() == 1
    assert vector_db.id_exists("a")


def test_doc_exists_uses_content(vector_db):
    vector_db.insert([Document(id="a", content="agent tool")])
    assert vector_db.doc_exists(Document(content="agent tool"))
    assert not vector_db.doc_exists(Document(content="agent memory"))


@pytest.mark.parametrize("distance", [Distance.cosine, Distance.l2, Distance.max_inner_product])
def test_search_ranks_closest_first(embedder, distance):
    vector_db = InMemoryVectorDb(embedder=embedder, distance=distance)
    vector_db.insert(_docs())

    results = vector_db.search("which tool should the agent use", limit=2)

    assert len(results) == 2
    assert results[0].name == "tools"
    assert results[0].reranking_score >= results[1].reranking_score
    assert all(0.0 <= doc.reranking_score <= 1.0 for doc in results)


def test_search_returns_copies(vector_db):
    vector_db.insert(_docs())
    result = vector_db.search("tool", limit=1)[0]
    result.meta_data["changed"] = True
    assert "changed" not in vector_db.search("tool", limit=1)[0].meta_data


def test_insert_filters_become_metadata(vector_db):
    vector_db.insert([Document(name="a", content="agent")], filters={"course": "intro"})
    vector_db.insert([Document(name="b", content="agent tool")], filters={"course": "advanced"})

    assert [d.name for d in vector_db.search("agent", filters={"course": "intro"})] == ["a"]
    assert len(vector_db.search("agent", filters={"course": ["intro", "advanced"]})) == 2
    assert vector_db.search("agent", filters={"missing": 1}) == []


def test_delete_by_name_and_delete(vector_db):
    vector_db.insert(_docs())
    assert vector_db.delete_by_name("cats") is True
    assert vector_db.delete_by_name("cats") is False
    assert vector_db.get_count() == 2
    assert vector_db.delete() is True
    assert vector_db.get_count() == 0


def test_drop(vector_db):
    vector_db.insert(_docs())
    vector_db.drop()
    assert not vector_db.exists()
    assert vector_db.get_count() == 0


def test_search_with_failed_query_embedding(vector_db, embedder, monkeypatch):
    vector_db.insert(_docs())
    monkeypatch.setattr(embedder, "get_embedding", lambda text: [])
    assert vector_db.search("tool") == []


def test_normalize_scores():
    assert normalize_cosine(0.0) == 1.0
    assert normalize_cosine(2.0) == 0.0
    assert normalize_cosine(math.nan) == 0.0
    assert normalize_l2(0.0) == 1.0
    assert normalize_l2(1.0) == 0.5
    assert normalize_max_inner_product(1.0) == 1.0
    assert normalize_max_inner_product(-1.0) == 0.0
    assert normalize_max_inner_product(math.inf) == 1.0
    assert normalize_score(0.0, Distance.cosine) == 1.0
