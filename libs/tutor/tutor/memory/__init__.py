from tutor.memory.db import InMemoryMemoryDb, MemoryDb
from tutor.memory.manager import MemoryManager
from tutor.memory.memory import Memory
from tutor.memory.schema import MemoryRow, UserMemory

__all__ = ["InMemoryMemoryDb", "Memory", "MemoryDb", "MemoryManager", "MemoryRow", "UserMemory"]
