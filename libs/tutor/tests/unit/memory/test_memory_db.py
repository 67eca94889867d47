import pytest

from tutor.memory.db.in_memory import InMemoryMemoryDb
from tutor.memory.db.sqlite import SqliteMemoryDb
from tutor.memory.schema import MemoryRow


@pytest.fixture(params=["in_memory", "sqlite"])
def memory_db(request):
    if request.param == "sqlite":
        db = SqliteMemoryDb(table_name="test_memories", db_url="sqlite://")
        db.create()
        return db
    return InMemoryMemoryDb()


def _row(id: str, user_id: str = "ava", text: str = "Ava likes Python", embedding=None) -> MemoryRow:
    return MemoryRow(id=id, user_id=user_id, memory={"memory": text}, embedding=embedding)


def test_upsert_and_read(memory_db):
    memory_db.upsert_memory(_row("m1"))
    memory_db.upsert_memory(_row("m2", user_id="sam", text="Sam teaches physics"))

    assert memory_db.memory_exists(_row("m1"))
    assert [row.id for row in memory_db.read_memories(user_id="ava")] == ["m1"]
    assert len(memory_db.read_memories()) == 2


def test_upsert_updates_existing_row(memory_db):
    memory_db.upsert_memory(_row("m1"))
    memory_db.upsert_memory(_row("m1", text="Ava likes Rust"))

    rows = memory_db.read_memories(user_id="ava")
    assert len(rows) == 1
    assert rows[0].memory == {"memory": "Ava likes Rust"}


def test_read_with_limit(memory_db):
    for i in range(3):
        memory_db.upsert_memory(_row(f"m{i}"))
    assert len(memory_db.read_memories(user_id="ava", limit=2)) == 2


def test_delete_and_clear(memory_db):
    memory_db.upsert_memory(_row("m1"))
    memory_db.upsert_memory(_row("m2"))

    memory_db.delete_memory("m1")
    assert not memory_db.memory_exists(_row("m1"))

    assert memory_db.clear() is True
    assert memory_db.read_memories() == []


def test_semantic_search(memory_db):
    memory_db.upsert_memory(_row("python", embedding=[1.0, 0.0]))
    memory_db.upsert_memory(_row("cats", text="Ava has two cats", embedding=[0.0, 1.0]))
    memory_db.upsert_memory(_row("plain", text="No embedding"))

    rows = memory_db.search_memories_semantic(query_embedding=[0.9, 0.1], user_id="ava", limit=1)

    assert [row.id for row in rows] == ["python"]
    assert len(memory_db.search_memories_semantic(query_embedding=[0.9, 0.1], user_id="ava")) == 2


def test_sqlite_creates_table_on_first_write(tmp_path):
    db = SqliteMemoryDb(table_name="lazy", db_file=str(tmp_path / "memory.db"))
    assert not db.table_exists()

    db.upsert_memory(_row("m1"))

    assert db.table_exists()
    assert db.read_memories()[0].embedding is None
    db.drop_table()
    assert not db.table_exists()
