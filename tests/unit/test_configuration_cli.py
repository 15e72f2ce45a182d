"""Unit tests for the Typer command line interface."""

from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest
from typer.testing import CliRunner

from gitplumbers_bridge.configuration import cli
from gitplumbers_bridge.exceptions import AuthError
from gitplumbers_bridge.synchronize.results import ImportResult

runner = CliRunner()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove GitHub App settings from the environment."""
    for name in ("GITHUB_APP_ID", "GITHUB_APP_PRIVATE_KEY", "GITHUB_APP_PRIVATE_KEY_PATH", "STORE_PATH", "CLOSE_RETENTION_POLICY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_context(monkeypatch: pytest.MonkeyPatch) -> SimpleNamespace:
    """Replace the bridge context built by the CLI with mocks."""
    context = SimpleNamespace(
        sync_engine=SimpleNamespace(
            list_available_external_issues=AsyncMock(return_value=[]),
            import_selected_issues=AsyncMock(),
            import_all_open_issues=AsyncMock(),
        ),
        lifecycle=SimpleNamespace(create_issue=AsyncMock(), close_issue=AsyncMock(), close_policy=SimpleNamespace(value="delete")),
    )

    def build_context(*args: Any, **kwargs: Any) -> SimpleNamespace:
        return context

    monkeypatch.setattr(cli, "BridgeContext", build_context)
    return context


def app_options(tmp_path: Path) -> list[str]:
    """Credential and store options shared by the issues commands."""
    return ["--github-app-id", "1", "--github-app-private-key", "key", "--store-path", str(tmp_path / "store.json")]


def test_parse_command() -> None:
    """Test that a command comment is described with its acknowledgement."""
    result = runner.invoke(cli.typer_app, ["commands", "parse", "/gp fix   billing service"])
    assert result.exit_code == 0
    assert "Command: fix" in result.output
    assert "Area: billing service" in result.output
    assert "Preparing repair scaffolding for billing service." in result.output


def test_parse_non_command() -> None:
    """Test that an ordinary comment is reported as such."""
    result = runner.invoke(cli.typer_app, ["commands", "parse", "hello world"])
    assert result.exit_code == 0
    assert "Not a command" in result.output


def test_issues_without_credentials_fails(clean_env: None) -> None:
    """Test that the issues commands refuse to run without GitHub App credentials."""
    result = runner.invoke(cli.typer_app, ["issues", "available", "acme/widgets", "--installation-id", "12345"])
    assert result.exit_code == 1
    assert "GITHUB_APP_ID" in result.output


def test_sync_selected(clean_env: None, fake_context: SimpleNamespace, tmp_path: Path) -> None:
    """Test that selected issues are imported and reported."""
    fake_context.sync_engine.import_selected_issues.return_value = ImportResult("acme/widgets", [10, 11], [10, 11], [11], [10])
    result = runner.invoke(
        cli.typer_app,
        ["issues", *app_options(tmp_path), "sync", "acme/widgets", "--installation-id", "12345", "--user-id", "user-1", "--issue", "10", "--issue", "11"],
    )
    assert result.exit_code == 0, result.output
    assert "Imported 1 issue(s) from acme/widgets: [11]" in result.output
    fake_context.sync_engine.import_selected_issues.assert_awaited_once_with("12345", "acme/widgets", [10, 11], "user-1")


def test_sync_all_failure_exits(clean_env: None, fake_context: SimpleNamespace, tmp_path: Path) -> None:
    """Test that a token failure is reported and exits non-zero."""
    fake_context.sync_engine.import_all_open_issues.side_effect = AuthError("Installation not found", status_code=404)
    result = runner.invoke(
        cli.typer_app,
        ["issues", *app_options(tmp_path), "sync-all", "acme/widgets", "--installation-id", "12345", "--user-id", "user-1"],
    )
    assert result.exit_code == 1
    assert "Installation not found" in result.output


def test_close(clean_env: None, fake_context: SimpleNamespace, tmp_path: Path) -> None:
    """Test closing a tracked issue from the command line."""
    result = runner.invoke(
        cli.typer_app,
        ["issues", *app_options(tmp_path), "close", "acme/widgets", "--installation-id", "12345", "--record-id", "abc", "--issue-number", "42"],
    )
    assert result.exit_code == 0, result.output
    fake_context.lifecycle.close_issue.assert_awaited_once_with("12345", "acme/widgets", "abc", 42)
