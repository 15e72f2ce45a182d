"""Pydantic schemas for external GitHub issues and tracked issue records."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class IssueStatus(str, Enum):
    """Status of a tracked issue record."""

    OPEN = "open"
    CLOSED = "closed"


class ExternalIssue(BaseModel):
    """Read-only view of an issue owned by the GitHub issue tracker."""

    number: int
    title: str
    body: str | None = None
    state: str = "open"
    created_at: datetime | None = None
    updated_at: datetime | None = None
    labels: list[str] = Field(default_factory=list)
    assignees: list[str] = Field(default_factory=list)
    html_url: str = ""
    author: str = "Unknown"
    is_pull_request: bool = False

    @property
    def is_open(self) -> bool:
        """Whether the issue is open on GitHub."""
        return self.state == IssueStatus.OPEN.value


class UserProfile(BaseModel):
    """Internal profile of a dashboard user."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    email: str = ""
    display_name: str = ""


class TrackedIssueRecord(BaseModel):
    """Internal mirror of a GitHub issue, stored in the ``githubIssues`` collection.

    Field aliases reproduce the document layout consumed by the dashboard, so
    documents are always written with ``by_alias=True``. The ``id`` is the
    document id and never part of the stored document.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str | None = Field(default=None, exclude=True)
    external_issue_id: int = Field(alias="githubIssueId")
    external_issue_url: str = Field(alias="githubIssueUrl")
    title: str
    body: str | None = None
    status: IssueStatus = IssueStatus.OPEN
    repository: str
    repository_url: str
    user_id: str
    user_email: str = ""
    user_name: str | None = ""
    installation_id: str
    created_at: datetime
    updated_at: datetime
    external_created_at: datetime | None = Field(default=None, alias="githubCreatedAt")
    external_updated_at: datetime | None = Field(default=None, alias="githubUpdatedAt")
    labels: list[str] = Field(default_factory=list)
    assignees: list[str] = Field(default_factory=list)
    comments: list[dict[str, Any]] = Field(default_factory=list)
    notes: list[dict[str, Any]] = Field(default_factory=list)

    def to_document(self) -> dict[str, Any]:
        """Serialize the record into its stored document form."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, record_id: str, document: dict[str, Any]) -> "TrackedIssueRecord":
        """Build a record from a stored document and its id."""
        record = cls.model_validate(document)
        record.id = record_id
        return record
