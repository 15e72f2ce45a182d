"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
from pathlib import Path

import typer
import uvicorn
from dotenv import load_dotenv
from typer import Argument, Option
from typing_extensions import Annotated

from gitplumbers_bridge.commands.parser import build_acknowledgement, command_area, command_summary, parse_command
from gitplumbers_bridge.configuration.env import get_settings
from gitplumbers_bridge.configuration.models import CloseRetentionPolicy
from gitplumbers_bridge.configuration.reconcile import reconcile_github_app_credentials
from gitplumbers_bridge.exceptions import BridgeError
from gitplumbers_bridge.schemas.issues import UserProfile
from gitplumbers_bridge.server.app import create_app
from gitplumbers_bridge.store.json_file import JsonFileDocumentStore
from gitplumbers_bridge.utils.constants import COMMAND_PREFIX, DEFAULT_GITHUB_API_URL
from gitplumbers_bridge.utils.logging import configure_logging
from gitplumbers_bridge.workflows.driver import BridgeContext

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False, help="gitPlumbers GitHub App bridge")


# --- Typer group for tracked issue commands ---
issues_app = typer.Typer(help="Tracked issue commands")


def issues_callback(
    ctx: typer.Context,
    github_api_url: Annotated[str, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")] = DEFAULT_GITHUB_API_URL,
    github_app_id: Annotated[str | None, Option(envvar="GITHUB_APP_ID", help="GitHub App ID.")] = None,
    github_app_private_key: Annotated[
        str | None, Option(envvar="GITHUB_APP_PRIVATE_KEY", help="GitHub App private key (PEM, escaped newlines allowed).", show_default=False)
    ] = None,
    github_app_private_key_path: Annotated[Path | None, Option(envvar="GITHUB_APP_PRIVATE_KEY_PATH", help="Path to GitHub App private key.")] = None,
    store_path: Annotated[Path | None, Option(envvar="STORE_PATH", help="Path to the JSON document store.")] = None,
    close_policy: Annotated[
        CloseRetentionPolicy | None, Option(envvar="CLOSE_RETENTION_POLICY", help="What happens to a tracked record once its issue is closed.")
    ] = None,
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug mode.")] = False,
) -> None:
    """Resolve GitHub App credentials and the document store for the current context."""
    configure_logging(debug)
    overrides: dict[str, object] = {"GITHUB_API_URL": github_api_url, "DEBUG": debug}
    if store_path is not None:
        overrides["STORE_PATH"] = store_path
    if close_policy is not None:
        overrides["CLOSE_RETENTION_POLICY"] = close_policy
    settings = get_settings().model_copy(update=overrides)

    try:
        credentials = asyncio.run(
            reconcile_github_app_credentials(
                github_app_id=github_app_id,
                github_app_private_key=github_app_private_key,
                github_app_private_key_path=github_app_private_key_path,
            )
        )
    except BridgeError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc

    ctx.ensure_object(dict)
    ctx.obj["context"] = BridgeContext(settings, credentials, JsonFileDocumentStore(settings.STORE_PATH))


issues_app.callback()(issues_callback)

RepoArgument = Annotated[str, Argument(help="Repository name (owner/repo).")]
InstallationIdOption = Annotated[str, Option("--installation-id", envvar="GITHUB_APP_INSTALLATION_ID", help="GitHub App Installation ID.")]
UserIdOption = Annotated[str, Option("--user-id", envvar="GITPLUMBERS_USER_ID", help="Dashboard user the import is attributed to.")]


@issues_app.command(name="available")
def available_issues_cli(ctx: typer.Context, repo: RepoArgument, installation_id: InstallationIdOption) -> None:
    """List open GitHub issues that are not yet tracked."""
    context: BridgeContext = ctx.obj["context"]
    try:
        issues = asyncio.run(context.sync_engine.list_available_external_issues(installation_id, repo))
    except BridgeError as exc:
        typer.echo(f"Failed to fetch available issues: {exc}", err=True)
        raise typer.Exit(1) from exc

    for issue in issues:
        typer.echo(f"#{issue.number}\t{issue.title}\t{issue.html_url}")
    typer.echo(f"{len(issues)} open issue(s) available for import from {repo}")


@issues_app.command(name="sync")
def sync_selected_issues_cli(
    ctx: typer.Context,
    repo: RepoArgument,
    installation_id: InstallationIdOption,
    user_id: UserIdOption,
    issue: Annotated[list[int], Option("--issue", help="Number of an issue to import. Repeat for several.")],
) -> None:
    """Import the selected open GitHub issues."""
    context: BridgeContext = ctx.obj["context"]
    try:
        result = asyncio.run(context.sync_engine.import_selected_issues(installation_id, repo, issue, user_id))
    except BridgeError as exc:
        typer.echo(f"Failed to sync selected issues: {exc}", err=True)
        raise typer.Exit(1) from exc

    typer.echo(f"Imported {result.inserted_count} issue(s) from {repo}: {result.inserted_ids}")
    if result.skipped_ids:
        typer.echo(f"Already tracked: {result.skipped_ids}")
    unmatched = sorted(set(result.requested_ids) - set(result.matched_ids))
    if unmatched:
        typer.echo(f"Not open on GitHub: {unmatched}")


@issues_app.command(name="sync-all")
def sync_all_issues_cli(ctx: typer.Context, repo: RepoArgument, installation_id: InstallationIdOption, user_id: UserIdOption) -> None:
    """Import every open GitHub issue that is not yet tracked."""
    context: BridgeContext = ctx.obj["context"]
    try:
        result = asyncio.run(context.sync_engine.import_all_open_issues(installation_id, repo, user_id))
    except BridgeError as exc:
        typer.echo(f"Failed to sync issues: {exc}", err=True)
        raise typer.Exit(1) from exc

    typer.echo(f"Imported {result.inserted_count} of {len(result.matched_ids)} open issue(s) from {repo}")


@issues_app.command(name="create")
def create_issue_cli(
    ctx: typer.Context,
    repo: RepoArgument,
    installation_id: InstallationIdOption,
    title: Annotated[str, Option(help="Issue title.")],
    body: Annotated[str, Option(help="Issue body.")],
    user_id: UserIdOption,
    user_email: Annotated[str, Option(envvar="GITPLUMBERS_USER_EMAIL", help="Email of the requesting user.")],
    user_name: Annotated[str | None, Option(envvar="GITPLUMBERS_USER_NAME", help="Display name of the requesting user.")] = None,
) -> None:
    """Open a support issue on GitHub and track it."""
    context: BridgeContext = ctx.obj["context"]
    requester = UserProfile(user_id=user_id, email=user_email, display_name=user_name or user_email)
    try:
        created = asyncio.run(context.lifecycle.create_issue(installation_id, repo, title, body, requester))
    except BridgeError as exc:
        typer.echo(f"Failed to create issue: {exc}", err=True)
        raise typer.Exit(1) from exc

    typer.echo(f"Created issue #{created.record.external_issue_id}: {created.html_url}")
    typer.echo(f"Tracked record id: {created.record_id}")


@issues_app.command(name="close")
def close_issue_cli(
    ctx: typer.Context,
    repo: RepoArgument,
    installation_id: InstallationIdOption,
    record_id: Annotated[str, Option("--record-id", help="Tracked issue record id.")],
    issue_number: Annotated[int, Option("--issue-number", help="GitHub issue number.")],
) -> None:
    """Close a GitHub issue and retire its tracked record."""
    context: BridgeContext = ctx.obj["context"]
    try:
        asyncio.run(context.lifecycle.close_issue(installation_id, repo, record_id, issue_number))
    except BridgeError as exc:
        typer.echo(f"Failed to close issue: {exc}", err=True)
        raise typer.Exit(1) from exc

    typer.echo(f"Closed issue #{issue_number} in {repo} ({context.lifecycle.close_policy.value} tracked record {record_id})")


typer_app.add_typer(issues_app, name="issues")


# --- Typer group for slash command helpers ---
commands_app = typer.Typer(help="Slash command helpers")


@commands_app.command(name="parse")
def parse_command_cli(
    text: Annotated[str, Argument(help="Comment body to parse.")],
    prefix: Annotated[str, Option(envvar="COMMAND_PREFIX", help="Slash command prefix.")] = COMMAND_PREFIX,
) -> None:
    """Show how a comment body would be interpreted."""
    command = parse_command(text, prefix)
    if command is None:
        typer.echo("Not a command")
        return
    typer.echo(f"Command: {command.type}")
    area = command_area(command)
    if area is not None:
        typer.echo(f"Area: {area}")
    typer.echo("")
    typer.echo(build_acknowledgement(command_summary(command)))


typer_app.add_typer(commands_app, name="commands")


@typer_app.command(name="serve")
def serve_cli(
    host: Annotated[str, Option(envvar="HOST", help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, Option(envvar="PORT", help="Port to listen on.")] = 8000,
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug mode.")] = False,
) -> None:
    """Run the webhook and RPC server."""
    configure_logging(debug)
    settings = get_settings().model_copy(update={"DEBUG": debug})
    app = create_app(settings=settings, store=JsonFileDocumentStore(settings.STORE_PATH))
    uvicorn.run(app, host=host, port=port, log_level="debug" if debug else "info")


def main() -> None:
    """Entry point for the ``gitplumbers-bridge`` script."""
    typer_app()


if __name__ == "__main__":
    main()
