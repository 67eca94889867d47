"""
Knowledge Base Protocol
=======================
Defines the interface that knowledge implementations must implement.

Any object with a ``search(query, **kwargs) -> List[Document]`` method can be
handed to an agent as its knowledge.

Example:
    ```python
    from tutor.knowledge.document import Document

    class MyKnowledge:
        def search(self, query: str, **kwargs) -> List[Document]:
            return [Document(content=r) for r in my_custom_search(query)]

    agent = Agent(knowledge=MyKnowledge())
    ```
"""

from typing import List, Protocol, runtime_checkable

from tutor.knowledge.document import Document


@runtime_checkable
class KnowledgeBase(Protocol):
    """Protocol for knowledge base implementations."""

    def search(self, query: str, **kwargs) -> List[Document]:
        """Search for relevant documents.

        Args:
            query: The search query string.
            **kwargs: Additional search parameters (e.g., max_results, filters).

        Returns:
            List of Document objects matching the query.
        """
        ...
