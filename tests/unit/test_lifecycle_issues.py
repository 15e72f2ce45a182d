"""Unit tests for the issue lifecycle service."""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from gitplumbers_bridge.configuration.models import CloseRetentionPolicy
from gitplumbers_bridge.exceptions import ExternalApiError, NotFoundError, ValidationError
from gitplumbers_bridge.lifecycle.issues import IssueLifecycleService
from gitplumbers_bridge.schemas.issues import ExternalIssue, IssueStatus, UserProfile
from gitplumbers_bridge.store import InMemoryDocumentStore, TrackedIssueRepository

REPO = "acme/widgets"
INSTALLATION = "12345"
REQUESTER = UserProfile(user_id="user-1", email="ada@example.com", display_name="Ada")


def created_issue(number: int = 42) -> ExternalIssue:
    """The issue GitHub returns after creation."""
    return ExternalIssue(
        number=number,
        title="Checkout is broken",
        body="It fails\n\n---\n*Created via gitPlumbers dashboard*",
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        updated_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        labels=["gitplumbers", "support-request"],
        html_url=f"https://github.com/{REPO}/issues/{number}",
    )


def make_service(
    policy: CloseRetentionPolicy = CloseRetentionPolicy.DELETE,
) -> tuple[IssueLifecycleService, TrackedIssueRepository, MagicMock]:
    """Create a service over an in-memory store and a mock tracker session."""
    tracker = MagicMock()
    tracker.create_issue = AsyncMock(return_value=created_issue())
    tracker.close_issue = AsyncMock()
    sessions = SimpleNamespace(open=AsyncMock(return_value=tracker))
    tracked_issues = TrackedIssueRepository(InMemoryDocumentStore())
    return IssueLifecycleService(sessions, tracked_issues, policy), tracked_issues, tracker


@pytest.mark.asyncio
async def test_create_issue_labels_and_suffix() -> None:
    """Test that created issues carry the support labels and the origin suffix."""
    service, _, tracker = make_service()
    await service.create_issue(INSTALLATION, REPO, "Checkout is broken", "It fails", REQUESTER)
    tracker.create_issue.assert_awaited_once_with(
        title="Checkout is broken",
        body="It fails\n\n---\n*Created via gitPlumbers dashboard*",
        labels=["gitplumbers", "support-request"],
    )


@pytest.mark.asyncio
async def test_create_issue_tracks_open_record() -> None:
    """Test that the created issue is tracked as open with full attribution."""
    service, tracked_issues, _ = make_service()
    created = await service.create_issue(INSTALLATION, REPO, "Checkout is broken", "It fails", REQUESTER)
    assert created.html_url == "https://github.com/acme/widgets/issues/42"
    assert created.record.id is not None

    record = await tracked_issues.get(created.record.id)
    assert record.status == IssueStatus.OPEN
    assert record.external_issue_id == 42
    assert (record.user_id, record.user_email, record.user_name) == ("user-1", "ada@example.com", "Ada")
    assert record.labels == ["gitplumbers", "support-request"]


@pytest.mark.asyncio
async def test_create_issue_requires_identified_requester() -> None:
    """Test that anonymous creation is refused before contacting GitHub."""
    service, _, tracker = make_service()
    with pytest.raises(ValidationError):
        await service.create_issue(INSTALLATION, REPO, "Title", "Body", UserProfile(user_id="user-1"))
    tracker.create_issue.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_issue_failure_writes_nothing() -> None:
    """Test that a GitHub failure leaves the store untouched."""
    service, tracked_issues, tracker = make_service()
    tracker.create_issue.side_effect = ExternalApiError("boom", status_code=500, operation="create_issue")
    with pytest.raises(ExternalApiError):
        await service.create_issue(INSTALLATION, REPO, "Title", "Body", REQUESTER)
    assert await tracked_issues.external_ids_for_repository(REPO) == set()


@pytest.mark.asyncio
async def test_close_issue_deletes_record() -> None:
    """Test that closing removes the tracked record under the default policy."""
    service, tracked_issues, tracker = make_service()
    created = await service.create_issue(INSTALLATION, REPO, "Title", "Body", REQUESTER)
    assert created.record.id is not None

    await service.close_issue(INSTALLATION, REPO, created.record.id, 42)

    tracker.close_issue.assert_awaited_once_with(42)
    with pytest.raises(NotFoundError):
        await tracked_issues.get(created.record.id)


@pytest.mark.asyncio
async def test_close_issue_mark_closed_policy_keeps_record() -> None:
    """Test that the mark_closed policy keeps the record with a closed status."""
    service, tracked_issues, _ = make_service(CloseRetentionPolicy.MARK_CLOSED)
    created = await service.create_issue(INSTALLATION, REPO, "Title", "Body", REQUESTER)
    assert created.record.id is not None

    await service.close_issue(INSTALLATION, REPO, created.record.id, 42)

    assert (await tracked_issues.get(created.record.id)).status == IssueStatus.CLOSED


@pytest.mark.asyncio
async def test_close_issue_failure_keeps_record() -> None:
    """Test that a failed GitHub close leaves the record as it was."""
    service, tracked_issues, tracker = make_service()
    created = await service.create_issue(INSTALLATION, REPO, "Title", "Body", REQUESTER)
    assert created.record.id is not None
    tracker.close_issue.side_effect = ExternalApiError("boom", status_code=403, operation="close_issue")

    with pytest.raises(ExternalApiError):
        await service.close_issue(INSTALLATION, REPO, created.record.id, 42)

    assert (await tracked_issues.get(created.record.id)).status == IssueStatus.OPEN


@pytest.mark.asyncio
async def test_close_unknown_record_raises_not_found() -> None:
    """Test that closing an untracked record fails before contacting GitHub."""
    service, _, tracker = make_service()
    with pytest.raises(NotFoundError):
        await service.close_issue(INSTALLATION, REPO, "missing", 42)
    tracker.close_issue.assert_not_awaited()


@pytest.mark.asyncio
async def test_close_record_from_other_repository_is_refused() -> None:
    """Test that a record cannot be closed through another repository."""
    service, _, tracker = make_service()
    created = await service.create_issue(INSTALLATION, REPO, "Title", "Body", REQUESTER)
    assert created.record.id is not None
    with pytest.raises(ValidationError):
        await service.close_issue(INSTALLATION, "acme/gadgets", created.record.id, 42)
    tracker.close_issue.assert_not_awaited()


@pytest.mark.asyncio
async def test_close_with_other_issue_number_is_refused() -> None:
    """Test that a record is not retired when the GitHub issue number does not match it."""
    service, tracked_issues, tracker = make_service()
    created = await service.create_issue(INSTALLATION, REPO, "Title", "Body", REQUESTER)
    assert created.record.id is not None

    with pytest.raises(ValidationError):
        await service.close_issue(INSTALLATION, REPO, created.record.id, 7)

    tracker.close_issue.assert_not_awaited()
    assert service.sessions.open.await_count == 1
    assert (await tracked_issues.get(created.record.id)).external_issue_id == 42
