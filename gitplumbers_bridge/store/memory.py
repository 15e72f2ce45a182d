"""In-process document store."""

import copy
import uuid

from .abc import Document, DocumentStore


def _matches(document: Document, filters: Document) -> bool:
    return all(document.get(field) == value for field, value in filters.items())


class InMemoryDocumentStore(DocumentStore):
    """Keeps every collection in a dictionary; documents are copied on the way in and out."""

    def __init__(self, collections: dict[str, dict[str, Document]] | None = None) -> None:
        """Initialize the store, optionally seeded with ``{collection: {id: document}}``."""
        self._collections: dict[str, dict[str, Document]] = copy.deepcopy(collections) if collections else {}

    def _collection(self, collection: str) -> dict[str, Document]:
        return self._collections.setdefault(collection, {})

    async def get(self, collection: str, document_id: str) -> Document | None:
        document = self._collection(collection).get(document_id)
        return copy.deepcopy(document) if document is not None else None

    async def add(self, collection: str, document: Document) -> str:
        document_id = uuid.uuid4().hex[:20]
        self._collection(collection)[document_id] = copy.deepcopy(document)
        return document_id

    async def update(self, collection: str, document_id: str, fields: Document) -> None:
        documents = self._collection(collection)
        if document_id not in documents:
            raise KeyError(document_id)
        documents[document_id].update(copy.deepcopy(fields))

    async def delete(self, collection: str, document_id: str) -> None:
        self._collection(collection).pop(document_id, None)

    async def query(self, collection: str, filters: Document, limit: int | None = None) -> list[tuple[str, Document]]:
        results = [
            (document_id, copy.deepcopy(document)) for document_id, document in self._collection(collection).items() if _matches(document, filters)
        ]
        return results[:limit] if limit is not None else results
