"""Orchestrates the caller-facing issue operations.

Each coroutine here backs one RPC: it validates the request and the caller,
runs the matching service with a fresh installation session, and translates
every failure into a :class:`HandlerFailure` carrying an HTTP status and a
stable code. Close is the exception: failures after validation come back as a
``success=False`` response instead.
"""

import time
from typing import Any

import structlog

from gitplumbers_bridge.commands.dispatcher import CommandDispatcher
from gitplumbers_bridge.configuration.env import Settings
from gitplumbers_bridge.configuration.models import GitHubAppCredentials
from gitplumbers_bridge.configuration.reconcile import api_config_from_settings, reconcile_settings_credentials
from gitplumbers_bridge.exceptions import (
    AuthError,
    BridgeError,
    ConfigurationError,
    ExternalApiError,
    HandlerFailure,
    IdentityMismatchError,
    NotFoundError,
    SigningError,
    UnauthenticatedError,
    ValidationError,
)
from gitplumbers_bridge.github.session import InstallationSessionFactory
from gitplumbers_bridge.github.tokens import InstallationTokenBroker
from gitplumbers_bridge.lifecycle.issues import IssueLifecycleService
from gitplumbers_bridge.schemas.issues import UserProfile
from gitplumbers_bridge.schemas.requests import (
    CallerIdentity,
    CloseIssueRequest,
    CloseIssueResponse,
    CreateIssueRequest,
    CreateIssueResponse,
    FetchAvailableIssuesRequest,
    FetchAvailableIssuesResponse,
    InstallationRepositoriesResponse,
    RepositoryPermissions,
    RepositorySummary,
    SyncAllIssuesRequest,
    SyncIssuesResponse,
    SyncSelectedIssuesRequest,
)
from gitplumbers_bridge.store.abc import DocumentStore
from gitplumbers_bridge.store.repositories import TrackedIssueRepository, UserProfileRepository
from gitplumbers_bridge.synchronize.issues import IssueSynchronizationEngine

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class BridgeContext:
    """Everything an entry point needs to serve one request."""

    def __init__(
        self,
        settings: Settings,
        credentials: GitHubAppCredentials,
        store: DocumentStore,
        sessions: InstallationSessionFactory | None = None,
    ) -> None:
        """Wire the services on top of ``store`` and a session factory.

        The session factory defaults to one backed by a token broker for
        ``credentials``.
        """
        self.settings = settings
        self.credentials = credentials
        self.store = store
        self.sessions = sessions or InstallationSessionFactory(
            InstallationTokenBroker(credentials, api_config_from_settings(settings)),
        )
        self.tracked_issues = TrackedIssueRepository(store)
        self.user_profiles = UserProfileRepository(store)
        self.sync_engine = IssueSynchronizationEngine(self.sessions, self.tracked_issues, self.user_profiles)
        self.lifecycle = IssueLifecycleService(self.sessions, self.tracked_issues, settings.CLOSE_RETENTION_POLICY)
        self.dispatcher = CommandDispatcher(self.sessions, settings.COMMAND_PREFIX)

    @classmethod
    async def from_settings(cls, settings: Settings, store: DocumentStore) -> "BridgeContext":
        """Build a context from loaded settings.

        Raises:
            ConfigurationError: If the GitHub App credentials are incomplete.
        """
        credentials = await reconcile_settings_credentials(settings)
        return cls(settings, credentials, store)


def classify_error(exc: Exception, action: str) -> HandlerFailure:
    """Translate an exception raised while trying to ``action`` into a HandlerFailure."""
    if isinstance(exc, HandlerFailure):
        return exc
    if isinstance(exc, UnauthenticatedError):
        return HandlerFailure(401, "unauthenticated", str(exc))
    if isinstance(exc, IdentityMismatchError):
        return HandlerFailure(403, "permission-denied", str(exc))
    if isinstance(exc, ValidationError):
        return HandlerFailure(400, "invalid-argument", str(exc))
    if isinstance(exc, NotFoundError):
        return HandlerFailure(404, "not-found", str(exc))
    if isinstance(exc, (ConfigurationError, SigningError)):
        return HandlerFailure(412, "failed-precondition", f"Failed to {action}: {exc}")
    if isinstance(exc, AuthError) and exc.reason == "installation_not_found":
        return HandlerFailure(404, "not-found", f"Failed to {action}: installation not found")
    if isinstance(exc, (AuthError, ExternalApiError)):
        return HandlerFailure(502, "bad-gateway", f"Failed to {action}: {exc}")
    return HandlerFailure(500, "internal", f"Failed to {action}: {exc}")


def _require_fields(**fields: Any) -> None:
    missing = [name for name, value in fields.items() if value is None or value == "" or value == []]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def _require_issue_number(value: int | None) -> int:
    if value is None:
        raise ValidationError("Missing required fields: github_issue_id")
    return value


def _require_caller(caller: CallerIdentity | None) -> CallerIdentity:
    if caller is None or not caller.user_id:
        raise UnauthenticatedError("User must be authenticated")
    return caller


def _failure(exc: Exception, action: str, **log_context: Any) -> HandlerFailure:
    failure = classify_error(exc, action)
    if failure.status_code >= 500:
        logger.exception("Entry point failed", action=action, status_code=failure.status_code, code=failure.code, **log_context)
    else:
        logger.warning("Entry point rejected request", action=action, status_code=failure.status_code, code=failure.code, error=str(exc), **log_context)
    return failure


async def fetch_available_external_issues(
    context: BridgeContext,
    caller: CallerIdentity | None,
    request: FetchAvailableIssuesRequest,
) -> FetchAvailableIssuesResponse:
    """List open GitHub issues that are not yet tracked."""
    try:
        _require_fields(installation_id=request.installation_id, repository=request.repository)
        _require_caller(caller)
        issues = await context.sync_engine.list_available_external_issues(request.installation_id, request.repository)
    except Exception as exc:
        raise _failure(exc, "fetch available external GitHub issues", repository=request.repository) from exc
    return FetchAvailableIssuesResponse(issues=issues)


async def sync_selected_external_issues(
    context: BridgeContext,
    caller: CallerIdentity | None,
    request: SyncSelectedIssuesRequest,
) -> SyncIssuesResponse:
    """Import the selected open GitHub issues and report how many were inserted."""
    try:
        _require_fields(
            installation_id=request.installation_id,
            repository=request.repository,
            selected_issue_ids=request.selected_issue_ids,
        )
        identity = _require_caller(caller)
        result = await context.sync_engine.import_selected_issues(
            request.installation_id,
            request.repository,
            request.selected_issue_ids,
            identity.user_id,
        )
    except Exception as exc:
        raise _failure(exc, "sync selected external GitHub issues", repository=request.repository) from exc
    return SyncIssuesResponse(count=result.inserted_count)


async def sync_all_external_issues(
    context: BridgeContext,
    caller: CallerIdentity | None,
    request: SyncAllIssuesRequest,
) -> SyncIssuesResponse:
    """Import every open GitHub issue that is not yet tracked."""
    try:
        _require_fields(installation_id=request.installation_id, repository=request.repository)
        identity = _require_caller(caller)
        result = await context.sync_engine.import_all_open_issues(request.installation_id, request.repository, identity.user_id)
    except Exception as exc:
        raise _failure(exc, "sync external GitHub issues", repository=request.repository) from exc
    return SyncIssuesResponse(count=result.inserted_count)


async def create_github_issue(
    context: BridgeContext,
    caller: CallerIdentity | None,
    request: CreateIssueRequest,
) -> CreateIssueResponse:
    """Open a support issue on GitHub on behalf of the caller and track it.

    The caller must be the user named in the request. When the request carries
    no display name, the user's email stands in for it.
    """
    start_time = time.time()
    try:
        _require_fields(
            title=request.title,
            body=request.body,
            repository=request.repository,
            installation_id=request.installation_id,
            user_email=request.user_email,
            user_id=request.user_id,
        )
        identity = _require_caller(caller)
        if identity.user_id != request.user_id:
            raise IdentityMismatchError("User ID mismatch")
        requester = UserProfile(
            user_id=request.user_id,
            email=request.user_email,
            display_name=request.user_name or request.user_email,
        )
        created = await context.lifecycle.create_issue(
            request.installation_id,
            request.repository,
            request.title,
            request.body,
            requester,
        )
    except Exception as exc:
        raise _failure(exc, "create GitHub issue", repository=request.repository) from exc

    logger.info(
        "Created tracked GitHub issue",
        repository=request.repository,
        record_id=created.record_id,
        html_url=created.html_url,
        duration=round(time.time() - start_time, 2),
    )
    return CreateIssueResponse(record_id=created.record_id, issue=created.record, github_issue_url=created.html_url)


async def close_github_issue(
    context: BridgeContext,
    caller: CallerIdentity | None,
    request: CloseIssueRequest,
) -> CloseIssueResponse:
    """Close a GitHub issue and retire its tracked record.

    Missing fields and a missing caller raise HandlerFailure. Every later
    failure is reported in the response with ``success=False``.
    """
    try:
        _require_fields(
            issue_id=request.issue_id,
            installation_id=request.installation_id,
            repository=request.repository,
        )
        issue_number = _require_issue_number(request.github_issue_id)
        _require_caller(caller)
    except ValidationError as exc:
        raise _failure(exc, "close GitHub issue", repository=request.repository) from exc

    try:
        await context.lifecycle.close_issue(
            request.installation_id,
            request.repository,
            request.issue_id,
            issue_number,
        )
    except BridgeError as exc:
        logger.error(
            "Failed to close GitHub issue",
            repository=request.repository,
            record_id=request.issue_id,
            issue_number=issue_number,
            error=str(exc),
        )
        return CloseIssueResponse(success=False, error=f"Failed to close GitHub issue: {exc}")
    return CloseIssueResponse(success=True)


def _repository_permissions(repository: Any) -> RepositoryPermissions:
    permissions = getattr(repository, "permissions", None)
    if not hasattr(permissions, "admin"):
        return RepositoryPermissions()
    return RepositoryPermissions(
        admin=bool(permissions.admin),
        push=bool(getattr(permissions, "push", False)),
        pull=bool(getattr(permissions, "pull", False)),
    )


async def list_installation_repositories(
    context: BridgeContext,
    installation_id: str,
) -> InstallationRepositoriesResponse:
    """List the repositories visible to a GitHub App installation."""
    try:
        _require_fields(installation_id=installation_id)
        tracker = await context.sessions.open_installation(installation_id)
        repositories = await tracker.list_installation_repositories()
    except Exception as exc:
        raise _failure(exc, "list installation repositories", installation_id=installation_id) from exc

    summaries = [
        RepositorySummary(
            id=repository.id,
            name=repository.name,
            full_name=repository.full_name,
            owner=getattr(repository.owner, "login", "") or "",
            html_url=repository.html_url,
            is_private=bool(getattr(repository, "private", False)),
            permissions=_repository_permissions(repository),
        )
        for repository in repositories
    ]
    return InstallationRepositoriesResponse(installation_id=installation_id, repositories=summaries, count=len(summaries))
