"""Issue tracker adapter for the githubkit library."""

from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar

import structlog
from githubkit import Response
from githubkit.exception import RequestError, RequestFailed, RequestTimeout
from githubkit.versions.latest.models import Issue

from gitplumbers_bridge.configuration.models import GitHubApiConfig
from gitplumbers_bridge.exceptions import ExternalApiError, TokenExpiredError
from gitplumbers_bridge.schemas.issues import ExternalIssue
from gitplumbers_bridge.utils.constants import ISSUES_PER_PAGE

from .abc import IssueTrackerBase
from .client import InstallationClient, get_github_installation_client
from .tokens import DelegatedToken

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def handle_github_errors(func: F) -> F:
    """Decorator that checks token freshness and turns githubkit failures into ExternalApiError."""

    @wraps(func)
    async def wrapper(self: "GitHubKitAdapter", *args: Any, **kwargs: Any) -> Any:
        if self.token.is_expired():
            logger.error("Delegated token expired before GitHub call", function=func.__name__, installation_id=self.token.installation_id)
            raise TokenExpiredError()
        try:
            return await func(self, *args, **kwargs)
        except RequestFailed as exc:
            status_code = exc.response.status_code
            body = exc.response.text
            logger.error(
                "GitHub API request failed",
                function=func.__name__,
                owner=self.owner,
                repo_name=self.repo_name,
                status_code=status_code,
                url=str(getattr(exc.response, "url", "")),
            )
            raise ExternalApiError(
                f"GitHub API error in {func.__name__}: {status_code} {body}",
                status_code=status_code,
                body=body,
                operation=func.__name__,
            ) from exc
        except (RequestError, RequestTimeout) as exc:
            logger.error("GitHub API request did not complete", function=func.__name__, error=str(exc))
            raise ExternalApiError(f"GitHub API request in {func.__name__} did not complete: {exc}", operation=func.__name__) from exc

    return wrapper  # type: ignore


def _label_name(label: Any) -> str:
    if isinstance(label, str):
        return label
    if isinstance(label, dict):
        return str(label.get("name") or "")
    return str(getattr(label, "name", "") or "")


def external_issue_from_github(issue: Issue | Any) -> ExternalIssue:
    """Convert a githubkit issue into an ExternalIssue."""
    labels = [name for name in (_label_name(label) for label in (issue.labels or [])) if name]
    assignees = [assignee.login for assignee in (getattr(issue, "assignees", None) or []) if getattr(assignee, "login", None)]
    user = getattr(issue, "user", None)
    return ExternalIssue(
        number=issue.number,
        title=issue.title,
        body=issue.body,
        state=str(issue.state),
        created_at=issue.created_at,
        updated_at=issue.updated_at,
        labels=labels,
        assignees=assignees,
        html_url=issue.html_url,
        author=getattr(user, "login", None) or "Unknown",
        is_pull_request=bool(getattr(issue, "pull_request", None)),
    )


class GitHubKitAdapter(IssueTrackerBase):
    """Issue tracker adapter bound to one delegated token and, optionally, one repository."""

    def __init__(self, client: InstallationClient, token: DelegatedToken, owner: str = "", repo_name: str = "") -> None:
        """Initialize the adapter with an already-authorized client."""
        self.client = client
        self.token = token
        self.owner = owner
        self.repo_name = repo_name

    @classmethod
    def create(cls, token: DelegatedToken, api_config: GitHubApiConfig, owner: str = "", repo_name: str = "") -> "GitHubKitAdapter":
        """Create an adapter whose requests are authorized by ``token``."""
        logger.info(
            "Creating client for GitHub installation and repository",
            github_api_url=api_config.api_url,
            installation_id=token.installation_id,
            owner=owner,
            repo_name=repo_name,
        )
        return cls(get_github_installation_client(token.token, api_config), token, owner, repo_name)

    # Issue CRUD
    @handle_github_errors
    async def list_open_issues(self) -> list[ExternalIssue]:
        """List all open issues for the repository, handling pagination.

        Pull requests, which GitHub also returns from this endpoint, are skipped.
        """
        all_issues: list[ExternalIssue] = []
        page: int = 1
        while True:
            response: Response[list[Issue]] = await self.client.rest.issues.async_list_for_repo(
                owner=self.owner,
                repo=self.repo_name,
                state="open",
                per_page=ISSUES_PER_PAGE,
                page=page,
            )
            issues: list[Issue] = response.parsed_data
            if not issues:
                break
            all_issues.extend(external_issue_from_github(issue) for issue in issues)
            if len(issues) < ISSUES_PER_PAGE:
                break
            page += 1
        open_issues = [issue for issue in all_issues if not issue.is_pull_request]
        logger.info(
            "Fetched open GitHub issues",
            owner=self.owner,
            repo_name=self.repo_name,
            issue_count=len(open_issues),
            pull_request_count=len(all_issues) - len(open_issues),
            pages=page,
        )
        return open_issues

    @handle_github_errors
    async def create_issue(self, title: str, body: str | None = None, labels: list[str] | None = None) -> ExternalIssue:
        """Create an issue for the repository."""
        params: dict[str, Any] = {"title": title}
        if body is not None:
            params["body"] = body
        if labels is not None:
            params["labels"] = labels
        response: Response[Issue] = await self.client.rest.issues.async_create(
            owner=self.owner,
            repo=self.repo_name,
            **params,
        )
        issue = external_issue_from_github(response.parsed_data)
        logger.info("Created GitHub issue", owner=self.owner, repo_name=self.repo_name, issue_number=issue.number, html_url=issue.html_url)
        return issue

    @handle_github_errors
    async def close_issue(self, issue_number: int) -> ExternalIssue:
        """Close an issue for the repository."""
        response: Response[Issue] = await self.client.rest.issues.async_update(
            owner=self.owner,
            repo=self.repo_name,
            issue_number=issue_number,
            state="closed",
        )
        logger.info("Closed GitHub issue", owner=self.owner, repo_name=self.repo_name, issue_number=issue_number)
        return external_issue_from_github(response.parsed_data)

    # Comments
    @handle_github_errors
    async def create_comment(self, issue_number: int, body: str) -> Any:
        """Post a comment on an issue."""
        response = await self.client.rest.issues.async_create_comment(
            owner=self.owner,
            repo=self.repo_name,
            issue_number=issue_number,
            body=body,
        )
        logger.info("Posted comment", owner=self.owner, repo_name=self.repo_name, issue_number=issue_number)
        return response.parsed_data

    # Automation triggers
    @handle_github_errors
    async def create_dispatch_event(self, event_type: str, client_payload: dict[str, Any]) -> None:
        """Trigger a repository_dispatch event."""
        await self.client.rest.repos.async_create_dispatch_event(
            owner=self.owner,
            repo=self.repo_name,
            event_type=event_type,
            client_payload=client_payload,
        )
        logger.info("Sent repository_dispatch event", owner=self.owner, repo_name=self.repo_name, event_type=event_type)

    # Installation
    @handle_github_errors
    async def list_installation_repositories(self) -> list[Any]:
        """List all repositories visible to the installation, handling pagination."""
        repositories: list[Any] = []
        page: int = 1
        while True:
            response = await self.client.rest.apps.async_list_repos_accessible_to_installation(per_page=ISSUES_PER_PAGE, page=page)
            batch = list(response.parsed_data.repositories)
            repositories.extend(batch)
            if len(batch) < ISSUES_PER_PAGE:
                break
            page += 1
        logger.info("Fetched installation repositories", installation_id=self.token.installation_id, repository_count=len(repositories))
        return repositories
