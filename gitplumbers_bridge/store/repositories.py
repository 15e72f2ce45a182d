"""Tracked issue and user profile access on top of a document store."""

import asyncio
from collections import defaultdict
from datetime import datetime, timezone

import structlog

from gitplumbers_bridge.exceptions import NotFoundError
from gitplumbers_bridge.schemas.issues import IssueStatus, TrackedIssueRecord, UserProfile
from gitplumbers_bridge.utils.constants import GITHUB_ISSUES_COLLECTION, USERS_COLLECTION

from .abc import DocumentStore

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class TrackedIssueRepository:
    """Reads and writes tracked issue records.

    At most one record may exist per (repository, external issue id). The
    store offers no uniqueness constraint, so :meth:`insert_if_absent` runs the
    equality lookup and the insert under a lock keyed by repository. Sharing one
    repository object across requests serializes imports within this process;
    separate processes writing to the same store are not coordinated.
    """

    def __init__(self, store: DocumentStore, collection: str = GITHUB_ISSUES_COLLECTION) -> None:
        """Initialize the repository over ``store``."""
        self.store = store
        self.collection = collection
        self._repository_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def get(self, record_id: str) -> TrackedIssueRecord:
        """Load one record.

        Raises:
            NotFoundError: If the record does not exist.
        """
        document = await self.store.get(self.collection, record_id)
        if document is None:
            raise NotFoundError(f"Tracked issue {record_id} not found", record_id=record_id)
        return TrackedIssueRecord.from_document(record_id, document)

    async def find_by_external_id(self, repository: str, external_issue_id: int) -> TrackedIssueRecord | None:
        """Return the record mirroring ``external_issue_id`` in ``repository``, if any."""
        matches = await self.store.query(
            self.collection,
            {"githubIssueId": external_issue_id, "repository": repository},
            limit=1,
        )
        if not matches:
            return None
        record_id, document = matches[0]
        return TrackedIssueRecord.from_document(record_id, document)

    async def external_ids_for_repository(self, repository: str) -> set[int]:
        """Return the external issue ids already tracked for ``repository``."""
        matches = await self.store.query(self.collection, {"repository": repository})
        return {document["githubIssueId"] for _, document in matches if "githubIssueId" in document}

    async def add(self, record: TrackedIssueRecord) -> str:
        """Insert a record unconditionally and return its new id."""
        record_id = await self.store.add(self.collection, record.to_document())
        logger.info(
            "Stored tracked issue",
            record_id=record_id,
            repository=record.repository,
            external_issue_id=record.external_issue_id,
        )
        return record_id

    async def insert(self, record: TrackedIssueRecord) -> TrackedIssueRecord:
        """Insert a record unconditionally and return it with its new id."""
        return record.model_copy(update={"id": await self.add(record)})

    async def insert_if_absent(self, record: TrackedIssueRecord) -> TrackedIssueRecord | None:
        """Insert ``record`` unless its external issue is already tracked.

        Returns the stored record, or None when an existing record was found.
        """
        async with self._repository_locks[record.repository]:
            existing = await self.find_by_external_id(record.repository, record.external_issue_id)
            if existing is not None:
                logger.info(
                    "Issue already tracked",
                    repository=record.repository,
                    external_issue_id=record.external_issue_id,
                    record_id=existing.id,
                )
                return None
            return await self.insert(record)

    async def delete(self, record_id: str) -> None:
        """Delete a record."""
        await self.store.delete(self.collection, record_id)
        logger.info("Deleted tracked issue", record_id=record_id)

    async def mark_closed(self, record_id: str) -> None:
        """Keep a record but flag it as closed.

        Raises:
            NotFoundError: If the record does not exist.
        """
        try:
            await self.store.update(
                self.collection,
                record_id,
                {"status": IssueStatus.CLOSED.value, "updatedAt": datetime.now(timezone.utc).isoformat()},
            )
        except KeyError as exc:
            raise NotFoundError(f"Tracked issue {record_id} not found", record_id=record_id) from exc
        logger.info("Marked tracked issue closed", record_id=record_id)


class UserProfileRepository:
    """Reads dashboard user profiles."""

    def __init__(self, store: DocumentStore, collection: str = USERS_COLLECTION) -> None:
        """Initialize the repository over ``store``."""
        self.store = store
        self.collection = collection

    async def get_profile(self, user_id: str) -> UserProfile | None:
        """Return the profile of ``user_id``, or None when no profile document exists."""
        document = await self.store.get(self.collection, user_id)
        if document is None:
            return None
        return UserProfile(
            user_id=user_id,
            email=document.get("email") or "",
            display_name=document.get("displayName") or "",
        )
