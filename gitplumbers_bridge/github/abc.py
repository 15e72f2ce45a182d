"""Base ABC for token-bound issue tracker clients."""

from abc import ABC, abstractmethod
from typing import Any

from gitplumbers_bridge.schemas.issues import ExternalIssue


class IssueTrackerBase(ABC):
    """Base ABC for issue tracker clients bound to one installation token."""

    # Issue CRUD
    @abstractmethod
    async def list_open_issues(self) -> list[ExternalIssue]:
        """List every open issue of the repository."""
        pass

    @abstractmethod
    async def create_issue(self, title: str, body: str | None = None, labels: list[str] | None = None) -> ExternalIssue:
        """Create an issue for the repository."""
        pass

    @abstractmethod
    async def close_issue(self, issue_number: int) -> ExternalIssue:
        """Close an issue of the repository."""
        pass

    # Comments
    @abstractmethod
    async def create_comment(self, issue_number: int, body: str) -> Any:
        """Post a comment on an issue."""
        pass

    # Automation triggers
    @abstractmethod
    async def create_dispatch_event(self, event_type: str, client_payload: dict[str, Any]) -> None:
        """Trigger a repository_dispatch workflow event."""
        pass

    # Installation
    @abstractmethod
    async def list_installation_repositories(self) -> list[Any]:
        """List repositories visible to the installation."""
        pass
