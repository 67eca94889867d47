from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from tutor.knowledge.document import Document
from tutor.knowledge.reader.base import Reader
from tutor.knowledge.reader.text_reader import SUPPORTED_SUFFIXES, TextReader
from tutor.utils.log import log_debug, log_info, log_warning
from tutor.vectordb.base import VectorDb


@dataclass
class Knowledge:
    """Knowledge base for agents: reads content, stores it in a vector db and searches it."""

    name: Optional[str] = None
    description: Optional[str] = None
    vector_db: Optional[VectorDb] = None
    # Reader used for files and raw text, chunks by default
    reader: Reader = field(default_factory=TextReader)
    # Reader used for urls, created on first use
    url_reader: Optional[Reader] = None
    # Number of documents returned by search
    num_documents: int = 5
    formats: List[str] = field(default_factory=lambda: list(SUPPORTED_SUFFIXES))

    def __post_init__(self):
        if self.vector_db is None:
            from tutor.vectordb.in_memory import InMemoryVectorDb

            self.vector_db = InMemoryVectorDb(name=self.name or "knowledge")
        if not self.vector_db.exists():
            self.vector_db.create()

    def _get_url_reader(self) -> Reader:
        if self.url_reader is None:
            from tutor.knowledge.reader.url_reader import UrlReader

            self.url_reader = UrlReader()
        return self.url_reader

    def _read_path(self, path: Union[str, Path]) -> List[Document]:
        _file_path = Path(path) if isinstance(path, str) else path
        if _file_path.is_dir():
            documents: List[Document] = []
            for _file in sorted(_file_path.glob("**/*")):
                if _file.is_file() and _file.suffix.lower() in self.formats:
                    documents.extend(self.reader.read(_file))
            return documents
        if not _file_path.exists():
            log_warning(f"Path does not exist: {_file_path}")
            return []
        return self.reader.read(_file_path)

    def _read_text(self, text_content: str, name: Optional[str]) -> List[Document]:
        if isinstance(self.reader, TextReader):
            return self.reader.read_text(text_content, name=name)
        document = Document(name=name, id=name, content=text_content)
        return self.reader.chunk_documents([document])

    def insert(
        self,
        path: Optional[Union[str, Path]] = None,
        url: Optional[str] = None,
        text_content: Optional[str] = None,
        documents: Optional[List[Document]] = None,
        name: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        upsert: bool = False,
        skip_if_exists: bool = True,
    ) -> int:
        """Read content from one source and store it in the vector db.

        Exactly one of ``path``, ``url``, ``text_content`` or ``documents`` should be given.

        Returns:
            The number of documents written to the vector db.
        """
        if self.vector_db is None:
            log_warning("No vector db provided")
            return 0

        sources = [s for s in (path, url, text_content, documents) if s is not None]
        if len(sources) != 1:
            raise ValueError("Provide exactly one of path, url, text_content or documents")

        if path is not None:
            _documents = self._read_path(path)
            source_info = str(path)
        elif url is not None:
            _documents = self._get_url_reader().read(url, name=name)
            source_info = url
        elif text_content is not None:
            _documents = self._read_text(text_content, name=name)
            source_info = name or "text content"
        else:
            _documents = list(documents or [])
            source_info = name or "documents"

        if not _documents:
            log_warning(f"No documents read from {source_info}")
            return 0

        if metadata:
            for doc in _documents:
                log_debug(f"Adding metadata {metadata} to document: {doc.name}")
                doc.meta_data.update(metadata)

        if upsert and self.vector_db.upsert_available():
            self.vector_db.upsert(documents=_documents, filters=metadata)
            log_info(f"Upserted {len(_documents)} documents from {source_info}")
            return len(_documents)

        documents_to_load = _documents
        if skip_if_exists:
            documents_to_load = [doc for doc in _documents if not self.vector_db.doc_exists(doc)]
            skipped = len(_documents) - len(documents_to_load)
            if skipped:
                log_debug(f"Skipped {skipped} existing documents from {source_info}")

        if documents_to_load:
            self.vector_db.insert(documents=documents_to_load, filters=metadata)
            log_info(f"Added {len(documents_to_load)} documents from {source_info}")
        return len(documents_to_load)

    def search(
        self, query: str, max_results: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[Document]:
        """Returns relevant documents matching a query"""
        if self.vector_db is None:
            log_warning("No vector db provided")
            return []
        _max_results = max_results or self.num_documents
        log_debug(f"Getting {_max_results} relevant documents for query: {query}")
        return self.vector_db.search(query=query, limit=_max_results, filters=filters)

    def get_count(self) -> int:
        if self.vector_db is None:
            return 0
        return self.vector_db.get_count()

    def clear(self) -> bool:
        """Delete every document from the vector db."""
        if self.vector_db is None:
            return False
        return self.vector_db.delete()
