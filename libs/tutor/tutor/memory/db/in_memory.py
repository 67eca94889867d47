from datetime import datetime
from typing import Dict, List, Optional

from tutor.memory.db.base import MemoryDb
from tutor.memory.schema import MemoryRow
from tutor.utils.log import log_debug
from tutor.utils.vector import cosine_similarity


class InMemoryMemoryDb(MemoryDb):
    """Keeps memory rows in a dict. Used when no database is configured."""

    def __init__(self):
        self._rows: Dict[str, MemoryRow] = {}

    def create(self) -> None:
        pass

    def memory_exists(self, memory: MemoryRow) -> bool:
        return memory.id in self._rows

    def read_memories(
        self, user_id: Optional[str] = None, limit: Optional[int] = None, sort: Optional[str] = None
    ) -> List[MemoryRow]:
        rows = [row for row in self._rows.values() if user_id is None or row.user_id == user_id]
        rows.sort(key=lambda r: r.last_updated or datetime.min, reverse=sort != "asc")
        if limit is not None:
            rows = rows[:limit]
        return [row.model_copy(deep=True) for row in rows]

    def upsert_memory(self, memory: MemoryRow) -> Optional[MemoryRow]:
        log_debug(f"Upserting memory: {memory.id}")
        stored = memory.model_copy(deep=True)
        stored.last_updated = datetime.now()
        self._rows[memory.id] = stored
        return stored

    def delete_memory(self, memory_id: str) -> None:
        self._rows.pop(memory_id, None)

    def drop_table(self) -> None:
        self._rows.clear()

    def table_exists(self) -> bool:
        return True

    def clear(self) -> bool:
        self._rows.clear()
        return True

    def search_memories_semantic(
        self, query_embedding: List[float], user_id: Optional[str] = None, limit: Optional[int] = None
    ) -> List[MemoryRow]:
        scored = [
            (row, cosine_similarity(query_embedding, row.embedding))
            for row in self.read_memories(user_id=user_id)
            if row.embedding
        ]
        scored.sort(key=lambda item: item[1], reverse=True)
        if limit is not None:
            scored = scored[:limit]
        return [row for row, _ in scored]
