from tutor.vectordb.base import VectorDb
from tutor.vectordb.distance import Distance
from tutor.vectordb.in_memory import InMemoryVectorDb

__all__ = ["Distance", "InMemoryVectorDb", "VectorDb"]
