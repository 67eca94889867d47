from hashlib import md5
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from tutor.knowledge.document import Document
from tutor.knowledge.embedder.base import Embedder
from tutor.utils.log import log_debug, log_error, log_info, log_warning
from tutor.vectordb.base import VectorDb
from tutor.vectordb.distance import Distance
from tutor.vectordb.score import normalize_score


class InMemoryVectorDb(VectorDb):
    """A vector store that keeps documents and their embeddings in a python dict.

    Good for tutorials, tests and small corpora. Nothing survives the process.
    """

    def __init__(
        self,
        name: str = "knowledge",
        embedder: Optional[Embedder] = None,
        distance: Distance = Distance.cosine,
    ):
        if embedder is None:
            from tutor.knowledge.embedder.openai import OpenAIEmbedder

            embedder = OpenAIEmbedder()
            log_info("Embedder not provided, using OpenAIEmbedder as default.")
        self.name: str = name
        self.embedder: Embedder = embedder
        self.distance: Distance = distance
        self._documents: Dict[str, Document] = {}
        self._content_hashes: Dict[str, str] = {}
        self._created: bool = False

    def create(self) -> None:
        if not self._created:
            log_debug(f"Creating in-memory collection: {self.name}")
            self._created = True

    @staticmethod
    def _content_hash(document: Document) -> str:
        cleaned_content = document.content.replace("\x00", "\ufffd")
        return md5(cleaned_content.encode()).hexdigest()

    def _document_id(self, document: Document) -> str:
        return document.id or self._content_hash(document)

    def doc_exists(self, document: Document) -> bool:
        return self._content_hash(document) in self._content_hashes.values()

    def name_exists(self, name: str) -> bool:
        return any(doc.name == name for doc in self._documents.values())

    def id_exists(self, id: str) -> bool:
        return id in self._documents

    def _store(self, document: Document, filters: Optional[Dict[str, Any]]) -> None:
        if document.embedding is None:
            document.embed(embedder=self.embedder)
        if not document.embedding:
            log_warning(f"Skipping document without embedding: {document.name or document.id}")
            return
        stored = document.copy()
        if filters:
            stored.meta_data.update(filters)
        doc_id = self._document_id(stored)
        stored.id = doc_id
        self._documents[doc_id] = stored
        self._content_hashes[doc_id] = self._content_hash(stored)

    def insert(self, documents: List[Document], filters: Optional[Dict[str, Any]] = None) -> None:
        self.create()
        inserted = 0
        for document in documents:
            doc_id = self._document_id(document)
            if doc_id in self._documents:
                log_debug(f"Document {doc_id} already exists, skipping insert")
                continue
            self._store(document, filters)
            inserted += 1
        log_debug(f"Inserted {inserted} documents into {self.name}")

    def upsert_available(self) -> bool:
        return True

    def upsert(self, documents: List[Document], filters: Optional[Dict[str, Any]] = None) -> None:
        self.create()
        for document in documents:
            self._store(document, filters)
        log_debug(f"Upserted {len(documents)} documents into {self.name}")

    @staticmethod
    def _matches_filters(document: Document, filters: Optional[Dict[str, Any]]) -> bool:
        if not filters:
            return True
        for key, value in filters.items():
            if key not in document.meta_data:
                return False
            stored = document.meta_data[key]
            if isinstance(value, (list, tuple, set)):
                if stored not in value:
                    return False
            elif stored != value:
                return False
        return True

    def _distance(self, query: np.ndarray, vector: np.ndarray) -> float:
        if self.distance == Distance.cosine:
            denominator = np.linalg.norm(query) * np.linalg.norm(vector)
            if denominator == 0:
                return 1.0
            return float(1.0 - np.dot(query, vector) / denominator)
        elif self.distance == Distance.l2:
            return float(np.linalg.norm(query - vector))
        else:
            return float(np.dot(query, vector))

    def search(self, query: str, limit: int = 5, filters: Optional[Dict[str, Any]] = None) -> List[Document]:
        query_embedding = self.embedder.get_embedding(query)
        if not query_embedding:
            log_error(f"Error getting embedding for Query: {query}")
            return []

        query_vector = np.array(query_embedding, dtype=np.float32)
        scored: List[Tuple[float, Document]] = []
        for document in self._documents.values():
            if not self._matches_filters(document, filters):
                continue
            vector = np.array(document.embedding, dtype=np.float32)
            if vector.shape != query_vector.shape:
                log_warning(f"Embedding dimension mismatch for document {document.id}, skipping")
                continue
            scored.append((self._distance(query_vector, vector), document))

        # Inner product ranks higher values first, the distances rank lower values first
        reverse = self.distance == Distance.max_inner_product
        scored.sort(key=lambda item: item[0], reverse=reverse)

        search_results: List[Document] = []
        for raw_score, document in scored[:limit]:
            result = document.copy()
            result.reranking_score = normalize_score(raw_score, self.distance)
            search_results.append(result)

        log_info(f"Found {len(search_results)} documents")
        return search_results

    def drop(self) -> None:
        log_debug(f"Dropping in-memory collection: {self.name}")
        self._documents.clear()
        self._content_hashes.clear()
        self._created = False

    def exists(self) -> bool:
        return self._created

    def get_count(self) -> int:
        return len(self._documents)

    def delete(self) -> bool:
        self._documents.clear()
        self._content_hashes.clear()
        return True

    def delete_by_name(self, name: str) -> bool:
        ids = [doc_id for doc_id, doc in self._documents.items() if doc.name == name]
        for doc_id in ids:
            del self._documents[doc_id]
            del self._content_hashes[doc_id]
        return len(ids) > 0
