"""Sets up the githubkit clients used for app-level and installation-level requests."""

from typing import TypeAlias

from githubkit import GitHub
from githubkit.auth import TokenAuthStrategy, UnauthAuthStrategy

from gitplumbers_bridge.configuration.models import GitHubApiConfig

AppClient: TypeAlias = GitHub[UnauthAuthStrategy]
InstallationClient: TypeAlias = GitHub[TokenAuthStrategy]


def get_github_app_client(api_config: GitHubApiConfig) -> AppClient:
    """Returns a client for app-level endpoints.

    No auth strategy is attached; the app assertion is passed per request as a
    bearer credential. Automatic retries are disabled.
    """
    # Disable HTTP caching to always get fresh data
    return GitHub(
        UnauthAuthStrategy(),
        base_url=api_config.api_url,
        user_agent=api_config.user_agent,
        http_cache=False,
        auto_retry=False,
    )


def get_github_installation_client(token: str, api_config: GitHubApiConfig) -> InstallationClient:
    """Returns a client authorized by a delegated installation token."""
    if not token:
        raise RuntimeError("An installation client requires a delegated installation token.")
    # Disable HTTP caching to always get fresh data
    return GitHub(
        TokenAuthStrategy(token),
        base_url=api_config.api_url,
        user_agent=api_config.user_agent,
        http_cache=False,
        auto_retry=False,
    )
