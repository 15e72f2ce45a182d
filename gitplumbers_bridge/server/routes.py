"""RPC-style issue endpoints for the dashboard."""

from fastapi import APIRouter

from gitplumbers_bridge.schemas.requests import (
    CloseIssueRequest,
    CloseIssueResponse,
    CreateIssueRequest,
    CreateIssueResponse,
    FetchAvailableIssuesRequest,
    FetchAvailableIssuesResponse,
    InstallationRepositoriesResponse,
    SyncAllIssuesRequest,
    SyncIssuesResponse,
    SyncSelectedIssuesRequest,
)
from gitplumbers_bridge.workflows import driver

from .dependencies import CallerDep, ContextDep

router = APIRouter(prefix="/api", tags=["issues"])


@router.post("/issues/available", response_model=FetchAvailableIssuesResponse)
async def fetch_available_issues(
    request: FetchAvailableIssuesRequest, context: ContextDep, caller: CallerDep
) -> FetchAvailableIssuesResponse:
    """List open GitHub issues that are not yet tracked."""
    return await driver.fetch_available_external_issues(context, caller, request)


@router.post("/issues/sync", response_model=SyncIssuesResponse)
async def sync_selected_issues(request: SyncSelectedIssuesRequest, context: ContextDep, caller: CallerDep) -> SyncIssuesResponse:
    """Import the selected open GitHub issues."""
    return await driver.sync_selected_external_issues(context, caller, request)


@router.post("/issues/sync-all", response_model=SyncIssuesResponse)
async def sync_all_issues(request: SyncAllIssuesRequest, context: ContextDep, caller: CallerDep) -> SyncIssuesResponse:
    """Import every open GitHub issue that is not yet tracked."""
    return await driver.sync_all_external_issues(context, caller, request)


@router.post("/issues", response_model=CreateIssueResponse)
async def create_issue(request: CreateIssueRequest, context: ContextDep, caller: CallerDep) -> CreateIssueResponse:
    """Open a support issue on GitHub and track it."""
    return await driver.create_github_issue(context, caller, request)


@router.post("/issues/close", response_model=CloseIssueResponse)
async def close_issue(request: CloseIssueRequest, context: ContextDep, caller: CallerDep) -> CloseIssueResponse:
    """Close a GitHub issue and retire its tracked record."""
    return await driver.close_github_issue(context, caller, request)


@router.get("/installations/{installation_id}/repositories", response_model=InstallationRepositoriesResponse)
async def list_installation_repositories(installation_id: str, context: ContextDep) -> InstallationRepositoriesResponse:
    """List the repositories visible to a GitHub App installation."""
    return await driver.list_installation_repositories(context, installation_id)
