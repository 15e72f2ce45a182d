"""Single-file JSON document store for local command line use."""

import asyncio
import json
import uuid
from pathlib import Path

import structlog

from .abc import Document, DocumentStore
from .memory import _matches

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class JsonFileDocumentStore(DocumentStore):
    """Stores ``{collection: {id: document}}`` in one JSON file.

    Every operation reads the file, and every write rewrites it under a lock,
    which is enough for one CLI process at a time.
    """

    def __init__(self, path: Path) -> None:
        """Initialize the store backed by ``path``; the file is created on first write."""
        self.path = path
        self._lock = asyncio.Lock()

    def _load(self) -> dict[str, dict[str, Document]]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Document store file {self.path} does not contain a JSON object")
        return data

    def _save(self, data: dict[str, dict[str, Document]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
        tmp_path.replace(self.path)

    async def get(self, collection: str, document_id: str) -> Document | None:
        return self._load().get(collection, {}).get(document_id)

    async def add(self, collection: str, document: Document) -> str:
        async with self._lock:
            data = self._load()
            document_id = uuid.uuid4().hex[:20]
            data.setdefault(collection, {})[document_id] = document
            self._save(data)
        logger.debug("Added document", collection=collection, document_id=document_id, path=str(self.path))
        return document_id

    async def update(self, collection: str, document_id: str, fields: Document) -> None:
        async with self._lock:
            data = self._load()
            documents = data.setdefault(collection, {})
            if document_id not in documents:
                raise KeyError(document_id)
            documents[document_id].update(fields)
            self._save(data)

    async def delete(self, collection: str, document_id: str) -> None:
        async with self._lock:
            data = self._load()
            if data.get(collection, {}).pop(document_id, None) is not None:
                self._save(data)

    async def query(self, collection: str, filters: Document, limit: int | None = None) -> list[tuple[str, Document]]:
        results = [(document_id, document) for document_id, document in self._load().get(collection, {}).items() if _matches(document, filters)]
        return results[:limit] if limit is not None else results
