from tutor.knowledge.embedder.base import Embedder

__all__ = ["Embedder"]
