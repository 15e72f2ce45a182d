"""Contains synchronization logic between GitHub issues and tracked issue records."""

import time
from datetime import datetime, timezone
from typing import Iterable

import structlog

from gitplumbers_bridge.github.session import InstallationSessionFactory
from gitplumbers_bridge.schemas.issues import ExternalIssue, IssueStatus, TrackedIssueRecord, UserProfile
from gitplumbers_bridge.store.repositories import TrackedIssueRepository, UserProfileRepository
from gitplumbers_bridge.synchronize.results import ImportResult
from gitplumbers_bridge.utils.github import repository_url

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def build_imported_record(
    issue: ExternalIssue,
    repository: str,
    installation_id: str,
    requester: UserProfile,
    now: datetime | None = None,
) -> TrackedIssueRecord:
    """Mirror an external issue into a new tracked issue record.

    Comments and notes always start empty; GitHub comment history is not imported.
    """
    timestamp = now or datetime.now(timezone.utc)
    return TrackedIssueRecord(
        external_issue_id=issue.number,
        external_issue_url=issue.html_url,
        title=issue.title,
        body=issue.body,
        status=IssueStatus.OPEN if issue.is_open else IssueStatus.CLOSED,
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
        comments=[],
        notes=[],
    )


class IssueSynchronizationEngine:
    """Imports open GitHub issues that are not yet tracked."""

    def __init__(
        self,
        sessions: InstallationSessionFactory,
        tracked_issues: TrackedIssueRepository,
        user_profiles: UserProfileRepository,
    ) -> None:
        """Initialize the engine with its GitHub session factory and repositories."""
        self.sessions = sessions
        self.tracked_issues = tracked_issues
        self.user_profiles = user_profiles

    async def _fetch_open_issues(self, installation_id: str, repository: str) -> list[ExternalIssue]:
        start_time = time.time()
        logger.info("Fetching open issues from GitHub", repository=repository, installation_id=installation_id)
        tracker = await self.sessions.open(installation_id, repository)
        issues = [issue for issue in await tracker.list_open_issues() if issue.is_open]
        logger.info(
            "Fetched open issues from GitHub",
            repository=repository,
            duration=round(time.time() - start_time, 2),
            issue_count=len(issues),
        )
        return issues

    async def list_available_external_issues(self, installation_id: str, repository: str) -> list[ExternalIssue]:
        """Return open GitHub issues of ``repository`` that have no tracked record yet."""
        github_issues = await self._fetch_open_issues(installation_id, repository)
        tracked_ids = await self.tracked_issues.external_ids_for_repository(repository)
        available = [issue for issue in github_issues if issue.number not in tracked_ids]
        logger.info(
            "Computed available external issues",
            repository=repository,
            available_count=len(available),
            open_count=len(github_issues),
            tracked_count=len(tracked_ids),
        )
        return available

    async def import_selected_issues(
        self,
        installation_id: str,
        repository: str,
        selected_ids: Iterable[int],
        requesting_user_id: str,
    ) -> ImportResult:
        """Import the selected open GitHub issues that are not yet tracked."""
        selection = {int(issue_id) for issue_id in selected_ids}
        github_issues = await self._fetch_open_issues(installation_id, repository)
        selected_issues = [issue for issue in github_issues if issue.number in selection]
        return await self._import_issues(installation_id, repository, sorted(selection), selected_issues, requesting_user_id)

    async def import_all_open_issues(self, installation_id: str, repository: str, requesting_user_id: str) -> ImportResult:
        """Import every open GitHub issue that is not yet tracked."""
        github_issues = await self._fetch_open_issues(installation_id, repository)
        requested = [issue.number for issue in github_issues]
        return await self._import_issues(installation_id, repository, requested, github_issues, requesting_user_id)

    async def _requester_profile(self, user_id: str) -> UserProfile:
        """Look up the requesting user, degrading to empty identity fields on any failure."""
        try:
            profile = await self.user_profiles.get_profile(user_id)
        except Exception as exc:
            logger.warning("Failed to fetch user profile, continuing with empty identity", user_id=user_id, error=str(exc))
            return UserProfile(user_id=user_id)
        if profile is None:
            logger.warning("User profile not found, continuing with empty identity", user_id=user_id)
            return UserProfile(user_id=user_id)
        return profile

    async def _import_issues(
        self,
        installation_id: str,
        repository: str,
        requested_ids: list[int],
        issues: list[ExternalIssue],
        requesting_user_id: str,
    ) -> ImportResult:
        inserted_ids: list[int] = []
        skipped_ids: list[int] = []
        requester: UserProfile | None = None
        for issue in issues:
            # The selection may be stale; check again before touching the profile store.
            if await self.tracked_issues.find_by_external_id(repository, issue.number) is not None:
                skipped_ids.append(issue.number)
                continue
            if requester is None:
                requester = await self._requester_profile(requesting_user_id)
            record = build_imported_record(issue, repository, installation_id, requester)
            if await self.tracked_issues.insert_if_absent(record) is None:
                skipped_ids.append(issue.number)
            else:
                inserted_ids.append(issue.number)

        result = ImportResult(
            repository=repository,
            requested_ids=requested_ids,
            matched_ids=[issue.number for issue in issues],
            inserted_ids=inserted_ids,
            skipped_ids=skipped_ids,
        )
        logger.info(
            "Import completed",
            repository=repository,
            requested_count=len(requested_ids),
            matched_count=len(result.matched_ids),
            inserted_count=result.inserted_count,
            skipped_count=len(skipped_ids),
        )
        return result
