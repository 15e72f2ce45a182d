"""Reconciles GitHub App credentials between CLI arguments, environment variables and key files."""

from pathlib import Path

import structlog

from gitplumbers_bridge.configuration.env import Settings
from gitplumbers_bridge.configuration.models import GitHubApiConfig, GitHubAppCredentials
from gitplumbers_bridge.exceptions import ConfigurationError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


async def reconcile_github_app_credentials(
    github_app_id: str | int | None,
    github_app_private_key: str | None,
    github_app_private_key_path: Path | None,
) -> GitHubAppCredentials:
    """Build GitHub App credentials from whichever sources were provided.

    An inline private key takes precedence over a key file.

    Raises:
        ConfigurationError: If the app id or the private key cannot be resolved.
    """
    app_id = _clean(str(github_app_id)) if github_app_id is not None else None
    private_key = _clean(github_app_private_key)

    if private_key is None and github_app_private_key_path is not None:
        if not github_app_private_key_path.exists():
            raise ConfigurationError(f"GitHub App private key file not found: {github_app_private_key_path}")
        private_key = _clean(github_app_private_key_path.read_text(encoding="utf-8"))
        logger.debug("Loaded GitHub App private key from file", path=str(github_app_private_key_path))

    if app_id and private_key:
        return GitHubAppCredentials(app_id=app_id, private_key=private_key)

    missing_settings: list[dict[str, str]] = []
    if not app_id:
        missing_settings.append(
            {
                "name": "GitHub App ID",
                "cli_name": "github_app_id",
                "env_name": "GITHUB_APP_ID",
            }
        )
    if not private_key:
        missing_settings.append(
            {
                "name": "GitHub App private key",
                "cli_name": "github_app_private_key or github_app_private_key_path",
                "env_name": "GITHUB_APP_PRIVATE_KEY or GITHUB_APP_PRIVATE_KEY_PATH",
            }
        )
    msg = "Incomplete GitHub App configuration - missing settings include " + ", ".join(
        f"{setting['name']} (command line option {setting['cli_name']}, environment variable {setting['env_name']})"
        for setting in missing_settings
    )
    raise ConfigurationError(msg, missing=[setting["env_name"] for setting in missing_settings])


async def reconcile_settings_credentials(settings: Settings) -> GitHubAppCredentials:
    """Build GitHub App credentials from loaded settings."""
    return await reconcile_github_app_credentials(
        github_app_id=settings.GITHUB_APP_ID,
        github_app_private_key=settings.GITHUB_APP_PRIVATE_KEY,
        github_app_private_key_path=settings.GITHUB_APP_PRIVATE_KEY_PATH,
    )


def api_config_from_settings(settings: Settings) -> GitHubApiConfig:
    """Extract the GitHub API endpoint configuration from settings."""
    return GitHubApiConfig(api_url=settings.GITHUB_API_URL.rstrip("/"), user_agent=settings.USER_AGENT)
