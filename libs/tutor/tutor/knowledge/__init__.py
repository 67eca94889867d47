from tutor.knowledge.document import Document
from tutor.knowledge.knowledge import Knowledge
from tutor.knowledge.protocol import KnowledgeBase

__all__ = [
    "Document",
    "Knowledge",
    "KnowledgeBase",
]
