"""Creates and closes GitHub issues and mirrors the change into the tracked issue store."""

from dataclasses import dataclass
from datetime import datetime, timezone

import structlog

from gitplumbers_bridge.configuration.models import CloseRetentionPolicy
from gitplumbers_bridge.exceptions import ValidationError
from gitplumbers_bridge.github.session import InstallationSessionFactory
from gitplumbers_bridge.schemas.issues import ExternalIssue, IssueStatus, TrackedIssueRecord, UserProfile
from gitplumbers_bridge.store.repositories import TrackedIssueRepository
from gitplumbers_bridge.utils.constants import ISSUE_BODY_ORIGIN_SUFFIX, SUPPORT_REQUEST_LABELS
from gitplumbers_bridge.utils.github import repository_url

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CreatedIssue:
    """A newly created GitHub issue and the record that tracks it."""

    record_id: str
    record: TrackedIssueRecord
    html_url: str


def build_created_record(
    issue: ExternalIssue,
    repository: str,
    installation_id: str,
    requester: UserProfile,
    now: datetime | None = None,
) -> TrackedIssueRecord:
    """Track an issue this system just opened on GitHub."""
    timestamp = now or datetime.now(timezone.utc)
    return TrackedIssueRecord(
        external_issue_id=issue.number,
        external_issue_url=issue.html_url,
        title=issue.title,
        body=issue.body,
        status=IssueStatus.OPEN,
        repository=repository,
        repository_url=repository_url(repository),
        user_id=requester.user_id,
        user_email=requester.email,
        user_name=requester.display_name,
        installation_id=installation_id,
        created_at=timestamp,
        updated_at=timestamp,
        external_created_at=issue.created_at,
        external_updated_at=issue.updated_at,
        labels=list(issue.labels),
        assignees=list(issue.assignees),
    )


class IssueLifecycleService:
    """Opens support issues on GitHub and retires them again."""

    def __init__(
        self,
        sessions: InstallationSessionFactory,
        tracked_issues: TrackedIssueRepository,
        close_policy: CloseRetentionPolicy = CloseRetentionPolicy.DELETE,
    ) -> None:
        """Initialize the service with its GitHub session factory, repository and close policy."""
        self.sessions = sessions
        self.tracked_issues = tracked_issues
        self.close_policy = close_policy

    async def create_issue(
        self,
        installation_id: str,
        repository: str,
        title: str,
        body: str,
        requester: UserProfile,
    ) -> CreatedIssue:
        """Open a labelled support issue on GitHub and track it with full requester attribution.

        Raises:
            ValidationError: If the requester is not fully identified.
        """
        if not (requester.user_id and requester.email and requester.display_name):
            raise ValidationError("Issue creation requires the requester's user id, email and display name")

        tracker = await self.sessions.open(installation_id, repository)
        logger.info("Creating GitHub issue", repository=repository, title=title, user_id=requester.user_id)
        issue = await tracker.create_issue(
            title=title,
            body=f"{body}{ISSUE_BODY_ORIGIN_SUFFIX}",
            labels=list(SUPPORT_REQUEST_LABELS),
        )
        record = build_created_record(issue, repository, installation_id, requester)
        record_id = await self.tracked_issues.add(record)
        return CreatedIssue(record_id=record_id, record=record.model_copy(update={"id": record_id}), html_url=issue.html_url)

    async def close_issue(
        self,
        installation_id: str,
        repository: str,
        tracked_record_id: str,
        external_issue_number: int,
    ) -> None:
        """Close the GitHub issue, then retire its tracked record according to the close policy.

        If closing on GitHub fails the record is left untouched. If GitHub
        succeeds but the store update fails, the GitHub issue stays closed and
        the error propagates; nothing reconciles the two afterwards.

        Raises:
            NotFoundError: If the tracked record does not exist.
            ValidationError: If the record belongs to a different repository or
                mirrors a different GitHub issue.
        """
        record = await self.tracked_issues.get(tracked_record_id)
        if record.repository != repository:
            raise ValidationError(f"Tracked issue {tracked_record_id} belongs to {record.repository}, not {repository}")
        if record.external_issue_id != external_issue_number:
            raise ValidationError(
                f"Tracked issue {tracked_record_id} mirrors GitHub issue #{record.external_issue_id}, not #{external_issue_number}"
            )

        tracker = await self.sessions.open(installation_id, repository)
        await tracker.close_issue(external_issue_number)

        if self.close_policy == CloseRetentionPolicy.MARK_CLOSED:
            await self.tracked_issues.mark_closed(tracked_record_id)
        else:
            await self.tracked_issues.delete(tracked_record_id)
        logger.info(
            "Closed tracked issue",
            repository=repository,
            record_id=tracked_record_id,
            issue_number=external_issue_number,
            close_policy=self.close_policy.value,
        )
