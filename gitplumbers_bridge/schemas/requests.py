"""Pydantic schemas for the RPC-style entry points.

Request and response bodies use camelCase on the wire, matching the dashboard
client. Request fields default to empty values so that missing fields are
reported by the entry points as validation failures rather than rejected by
the transport.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from gitplumbers_bridge.schemas.issues import ExternalIssue, TrackedIssueRecord


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CallerIdentity(_WireModel):
    """The authenticated user on whose behalf an entry point runs."""

    user_id: str


class FetchAvailableIssuesRequest(_WireModel):
    """Request to list open GitHub issues that are not yet tracked."""

    installation_id: str = ""
    repository: str = ""


class FetchAvailableIssuesResponse(_WireModel):
    """Open GitHub issues available for import."""

    success: bool = True
    issues: list[ExternalIssue] = Field(default_factory=list)


class SyncSelectedIssuesRequest(_WireModel):
    """Request to import a selection of open GitHub issues."""

    installation_id: str = ""
    repository: str = ""
    selected_issue_ids: list[int] = Field(default_factory=list)


class SyncAllIssuesRequest(_WireModel):
    """Request to import every open GitHub issue of a repository."""

    installation_id: str = ""
    repository: str = ""


class SyncIssuesResponse(_WireModel):
    """Number of tracked issue records actually inserted."""

    success: bool = True
    count: int = 0


class CreateIssueRequest(_WireModel):
    """Request to open a support issue on GitHub and track it."""

    title: str = ""
    body: str = ""
    repository: str = ""
    installation_id: str = ""
    user_email: str = ""
    user_name: str | None = None
    user_id: str = ""


class CreateIssueResponse(_WireModel):
    """The tracked record created for a new GitHub issue."""

    success: bool = True
    record_id: str
    issue: TrackedIssueRecord
    github_issue_url: str


class CloseIssueRequest(_WireModel):
    """Request to close a GitHub issue and retire its tracked record."""

    issue_id: str = ""
    installation_id: str = ""
    repository: str = ""
    github_issue_id: int | None = None


class CloseIssueResponse(_WireModel):
    """Outcome of a close request with partial-failure semantics."""

    success: bool
    error: str | None = None


class RepositoryPermissions(_WireModel):
    """The installation's access to a repository. Read access is assumed when GitHub omits it."""

    admin: bool = False
    push: bool = False
    pull: bool = True


class RepositorySummary(_WireModel):
    """A repository visible to a GitHub App installation."""

    id: int
    name: str
    full_name: str
    owner: str
    html_url: str
    is_private: bool = False
    permissions: RepositoryPermissions = Field(default_factory=RepositoryPermissions)


class InstallationRepositoriesResponse(_WireModel):
    """Repositories visible to a GitHub App installation."""

    installation_id: str
    repositories: list[RepositorySummary] = Field(default_factory=list)
    count: int = 0
