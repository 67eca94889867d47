"""Chunking strategies for splitting documents into smaller pieces for vector storage.

Chunk ids are always set and deterministic, falling back in this order:
    1. document.id   -> "{document.id}_{chunk_number}"
    2. document.name -> "{document.name}_{chunk_number}"
    3. content hash  -> "chunk_{md5_hash[:12]}_{chunk_number}"

Example:
    >>> from tutor.knowledge.chunking.fixed import FixedSizeChunking
    >>> from tutor.knowledge.document import Document
    >>> chunks = FixedSizeChunking(chunk_size=5).chunk(Document(content="Hello world"))
    >>> chunks[0].id.startswith("chunk_")
    True
"""

import hashlib
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional

from tutor.knowledge.document import Document


class ChunkingStrategy(ABC):
    """Base class for all chunking strategies."""

    @abstractmethod
    def chunk(self, document: Document) -> List[Document]:
        raise NotImplementedError

    def _generate_chunk_id(self, document: Document, chunk_number: int, content: Optional[str] = None) -> str:
        if document.id:
            return f"{document.id}_{chunk_number}"
        elif document.name:
            return f"{document.name}_{chunk_number}"
        else:
            hash_source = content if content else document.content
            content_hash = hashlib.md5(hash_source.encode()).hexdigest()[:12]
            return f"chunk_{content_hash}_{chunk_number}"

    def clean_text(self, text: str) -> str:
        """Normalize whitespace while keeping paragraph breaks."""
        cleaned_text = re.sub(r"\r\n?", "\n", text)
        cleaned_text = re.sub(r"\n{3,}", "\n\n", cleaned_text)
        cleaned_text = re.sub(r"[ \t]+", " ", cleaned_text)
        cleaned_text = re.sub(r" *\n *", "\n", cleaned_text)
        return cleaned_text.strip()


class ChunkingStrategyType(str, Enum):
    """Enumeration of available chunking strategies."""

    FIXED_SIZE_CHUNKER = "FixedSizeChunker"
    RECURSIVE_CHUNKER = "RecursiveChunker"

    @classmethod
    def from_string(cls, strategy_name: str) -> "ChunkingStrategyType":
        strategy_name_clean = strategy_name.strip()
        for enum_member in cls:
            if enum_member.value == strategy_name_clean:
                return enum_member
        raise ValueError(f"Unsupported chunking strategy: {strategy_name}. Valid options: {[e.value for e in cls]}")


class ChunkingStrategyFactory:
    """Factory for creating chunking strategy instances."""

    @classmethod
    def create_strategy(cls, strategy_type: ChunkingStrategyType, **kwargs) -> ChunkingStrategy:
        if strategy_type == ChunkingStrategyType.FIXED_SIZE_CHUNKER:
            from tutor.knowledge.chunking.fixed import FixedSizeChunking

            return FixedSizeChunking(**kwargs)
        from tutor.knowledge.chunking.recursive import RecursiveChunking

        return RecursiveChunking(**kwargs)
