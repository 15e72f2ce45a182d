"""Unit tests for the issue synchronization engine."""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from gitplumbers_bridge.exceptions import AuthError
from gitplumbers_bridge.schemas.issues import ExternalIssue, IssueStatus
from gitplumbers_bridge.store import InMemoryDocumentStore, TrackedIssueRepository, UserProfileRepository
from gitplumbers_bridge.synchronize.issues import IssueSynchronizationEngine, build_imported_record

REPO = "acme/widgets"
INSTALLATION = "12345"


def external_issue(number: int, state: str = "open") -> ExternalIssue:
    """An external issue numbered ``number``."""
    return ExternalIssue(
        number=number,
        title=f"Issue {number}",
        body=f"Body {number}",
        state=state,
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        updated_at=datetime(2025, 1, 2, tzinfo=timezone.utc),
        labels=["bug"],
        assignees=["octocat"],
        html_url=f"https://github.com/{REPO}/issues/{number}",
    )


def make_engine(
    github_issues: list[ExternalIssue], users: dict | None = None
) -> tuple[IssueSynchronizationEngine, InMemoryDocumentStore, MagicMock]:
    """Create an engine over an in-memory store and a mock tracker session."""
    default_users = {"user-1": {"email": "ada@example.com", "displayName": "Ada"}}
    store = InMemoryDocumentStore({"users": users if users is not None else default_users})
    tracker = MagicMock()
    tracker.list_open_issues = AsyncMock(return_value=github_issues)
    sessions = SimpleNamespace(open=AsyncMock(return_value=tracker))
    engine = IssueSynchronizationEngine(sessions, TrackedIssueRepository(store), UserProfileRepository(store))
    return engine, store, sessions


async def tracked_numbers(store: InMemoryDocumentStore) -> list[int]:
    """Sorted external ids of every tracked record."""
    return sorted(document["githubIssueId"] for _, document in await store.query("githubIssues", {}))


@pytest.mark.asyncio
async def test_available_excludes_tracked_issues() -> None:
    """Test that tracked issues are not offered again."""
    engine, _, _ = make_engine([external_issue(10), external_issue(11)])
    await engine.import_selected_issues(INSTALLATION, REPO, [10], "user-1")
    available = await engine.list_available_external_issues(INSTALLATION, REPO)
    assert [issue.number for issue in available] == [11]


@pytest.mark.asyncio
async def test_available_is_read_only() -> None:
    """Test that listing available issues writes nothing."""
    engine, store, _ = make_engine([external_issue(10)])
    await engine.list_available_external_issues(INSTALLATION, REPO)
    assert await store.query("githubIssues", {}) == []


@pytest.mark.asyncio
async def test_available_ignores_closed_issues() -> None:
    """Test that only open issues are offered."""
    engine, _, _ = make_engine([external_issue(10), external_issue(11, state="closed")])
    available = await engine.list_available_external_issues(INSTALLATION, REPO)
    assert [issue.number for issue in available] == [10]


@pytest.mark.asyncio
async def test_import_selected_skips_already_tracked() -> None:
    """Test that with #10 tracked and #11 available, importing [10, 11] inserts one record."""
    engine, store, _ = make_engine([external_issue(10), external_issue(11)])
    await engine.import_selected_issues(INSTALLATION, REPO, [10], "user-1")

    result = await engine.import_selected_issues(INSTALLATION, REPO, [10, 11], "user-1")

    assert result.inserted_count == 1
    assert result.inserted_ids == [11]
    assert result.skipped_ids == [10]
    assert await tracked_numbers(store) == [10, 11]


@pytest.mark.asyncio
async def test_import_selected_is_idempotent() -> None:
    """Test that repeating an import inserts nothing the second time."""
    engine, store, _ = make_engine([external_issue(10), external_issue(11)])
    first = await engine.import_selected_issues(INSTALLATION, REPO, [10, 11], "user-1")
    second = await engine.import_selected_issues(INSTALLATION, REPO, [10, 11], "user-1")
    assert first.inserted_count == 2
    assert second.inserted_count == 0
    assert await tracked_numbers(store) == [10, 11]


@pytest.mark.asyncio
async def test_import_selected_only_touches_selection() -> None:
    """Test that inserted issues are a subset of the selected ones."""
    engine, store, _ = make_engine([external_issue(n) for n in (10, 11, 12, 13)])
    result = await engine.import_selected_issues(INSTALLATION, REPO, [11, 13, 99], "user-1")
    assert set(result.inserted_ids) <= {11, 13, 99}
    assert result.matched_ids == [11, 13]
    assert result.requested_ids == [11, 13, 99]
    assert await tracked_numbers(store) == [11, 13]


@pytest.mark.asyncio
async def test_import_all_open_issues() -> None:
    """Test that every untracked open issue is imported."""
    engine, store, _ = make_engine([external_issue(10), external_issue(11), external_issue(12, state="closed")])
    await engine.import_selected_issues(INSTALLATION, REPO, [10], "user-1")
    result = await engine.import_all_open_issues(INSTALLATION, REPO, "user-1")
    assert result.inserted_ids == [11]
    assert await tracked_numbers(store) == [10, 11]


@pytest.mark.asyncio
async def test_imported_record_attribution() -> None:
    """Test that imported records carry the requester profile and empty comment history."""
    engine, store, _ = make_engine([external_issue(10)])
    await engine.import_selected_issues(INSTALLATION, REPO, [10], "user-1")
    [(_, document)] = await store.query("githubIssues", {})
    assert document["userId"] == "user-1"
    assert document["userEmail"] == "ada@example.com"
    assert document["userName"] == "Ada"
    assert document["installationId"] == INSTALLATION
    assert document["status"] == "open"
    assert document["comments"] == []
    assert document["notes"] == []
    assert document["labels"] == ["bug"]


@pytest.mark.asyncio
async def test_import_with_unknown_user_degrades_to_empty_identity() -> None:
    """Test that a missing profile does not fail the import."""
    engine, store, _ = make_engine([external_issue(10)], users={})
    result = await engine.import_selected_issues(INSTALLATION, REPO, [10], "user-9")
    assert result.inserted_count == 1
    [(_, document)] = await store.query("githubIssues", {})
    assert document["userId"] == "user-9"
    assert document["userEmail"] == ""
    assert document["userName"] == ""


@pytest.mark.asyncio
async def test_import_with_failing_profile_lookup_continues() -> None:
    """Test that a profile store failure is logged and the import continues."""
    engine, _, _ = make_engine([external_issue(10)])
    engine.user_profiles = SimpleNamespace(get_profile=AsyncMock(side_effect=RuntimeError("profile store down")))
    result = await engine.import_selected_issues(INSTALLATION, REPO, [10], "user-1")
    assert result.inserted_count == 1


@pytest.mark.asyncio
async def test_import_propagates_token_failure() -> None:
    """Test that an installation token failure surfaces and nothing is written."""
    engine, store, sessions = make_engine([external_issue(10)])
    sessions.open.side_effect = AuthError("Installation not found", status_code=404)
    with pytest.raises(AuthError):
        await engine.import_all_open_issues(INSTALLATION, REPO, "user-1")
    assert await store.query("githubIssues", {}) == []


@pytest.mark.asyncio
async def test_each_operation_opens_its_own_session() -> None:
    """Test that tokens are not shared across operations."""
    engine, _, sessions = make_engine([external_issue(10)])
    await engine.list_available_external_issues(INSTALLATION, REPO)
    await engine.import_all_open_issues(INSTALLATION, REPO, "user-1")
    assert sessions.open.await_count == 2
    sessions.open.assert_awaited_with(INSTALLATION, REPO)


def test_build_imported_record_mirrors_issue() -> None:
    """Test that the record mirrors the external issue fields."""
    now = datetime(2025, 2, 1, tzinfo=timezone.utc)
    requester = SimpleNamespace(user_id="user-1", email="ada@example.com", display_name="Ada")
    record = build_imported_record(external_issue(10), REPO, INSTALLATION, requester, now=now)
    assert record.external_issue_id == 10
    assert record.status == IssueStatus.OPEN
    assert record.repository_url == "https://github.com/acme/widgets"
    assert record.created_at == now
    assert record.external_updated_at == datetime(2025, 1, 2, tzinfo=timezone.utc)
