from dataclasses import dataclass, field
from typing import Any, List, Optional

from tutor.knowledge.chunking.fixed import FixedSizeChunking
from tutor.knowledge.chunking.strategy import ChunkingStrategy
from tutor.knowledge.document import Document


@dataclass
class Reader:
    """Base class for reading documents"""

    chunk: bool = True
    chunk_size: int = 5000
    separators: List[str] = field(default_factory=lambda: ["\n", "\n\n", "\r", "\r\n", "\n\r", "\t", " ", "  "])
    chunking_strategy: Optional[ChunkingStrategy] = None

    def __post_init__(self):
        if self.chunking_strategy is None:
            self.chunking_strategy = FixedSizeChunking(chunk_size=self.chunk_size)

    def read(self, obj: Any) -> List[Document]:
        raise NotImplementedError

    def chunk_document(self, document: Document) -> List[Document]:
        assert self.chunking_strategy is not None
        return self.chunking_strategy.chunk(document)

    def chunk_documents(self, documents: List[Document]) -> List[Document]:
        if not self.chunk:
            return documents
        chunked: List[Document] = []
        for document in documents:
            chunked.extend(self.chunk_document(document))
        return chunked
