"""Base ABC for document stores."""

from abc import ABC, abstractmethod
from typing import Any

Document = dict[str, Any]


class DocumentStore(ABC):
    """A collection-oriented document store with atomic single-document operations.

    Queries only support equality filters, combined with AND.
    """

    @abstractmethod
    async def get(self, collection: str, document_id: str) -> Document | None:
        """Return a copy of one document, or None when it does not exist."""
        pass

    @abstractmethod
    async def add(self, collection: str, document: Document) -> str:
        """Insert a document under a generated id and return the id."""
        pass

    @abstractmethod
    async def update(self, collection: str, document_id: str, fields: Document) -> None:
        """Merge fields into an existing document.

        Raises:
            KeyError: If the document does not exist.
        """
        pass

    @abstractmethod
    async def delete(self, collection: str, document_id: str) -> None:
        """Delete a document; deleting a missing document is a no-op."""
        pass

    @abstractmethod
    async def query(self, collection: str, filters: Document, limit: int | None = None) -> list[tuple[str, Document]]:
        """Return ``(id, document)`` pairs whose fields equal every filter value."""
        pass
