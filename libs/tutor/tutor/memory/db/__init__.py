from tutor.memory.db.base import MemoryDb
from tutor.memory.db.in_memory import InMemoryMemoryDb

__all__ = ["InMemoryMemoryDb", "MemoryDb"]
