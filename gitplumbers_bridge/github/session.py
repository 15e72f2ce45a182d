"""Opens a token-bound issue tracker session for one logical operation."""

from typing import Callable

import structlog

from gitplumbers_bridge.configuration.models import GitHubApiConfig
from gitplumbers_bridge.utils.github import split_repository

from .abc import IssueTrackerBase
from .adapter import GitHubKitAdapter
from .tokens import DelegatedToken, InstallationTokenBroker

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

AdapterFactory = Callable[[DelegatedToken, GitHubApiConfig, str, str], IssueTrackerBase]


class InstallationSessionFactory:
    """Mints a fresh delegated token for every session it opens.

    A session is one logical operation (a sync run, an issue creation, the
    handling of one comment event). Nothing is shared between sessions.
    """

    def __init__(
        self,
        broker: InstallationTokenBroker,
        adapter_factory: AdapterFactory = GitHubKitAdapter.create,
    ) -> None:
        """Initialize the factory with a token broker."""
        self.broker = broker
        self._adapter_factory = adapter_factory

    @property
    def api_config(self) -> GitHubApiConfig:
        """The GitHub API endpoint used by every session."""
        return self.broker.api_config

    async def open(self, installation_id: str, repository: str) -> IssueTrackerBase:
        """Open a session scoped to one installation and one ``owner/repo`` repository."""
        owner, repo_name = await split_repository(repository)
        token = await self.broker.exchange(installation_id)
        return self._adapter_factory(token, self.api_config, owner, repo_name)

    async def open_installation(self, installation_id: str) -> IssueTrackerBase:
        """Open a session scoped to one installation, not bound to a repository."""
        token = await self.broker.exchange(installation_id)
        return self._adapter_factory(token, self.api_config, "", "")
