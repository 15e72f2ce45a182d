"""Models for configuration between CLI arguments and environment variables."""

from dataclasses import dataclass, field
from enum import Enum


class CloseRetentionPolicy(str, Enum):
    """What happens to a tracked issue record once its GitHub issue is closed."""

    DELETE = "delete"
    MARK_CLOSED = "mark_closed"


@dataclass(frozen=True)
class GitHubAppCredentials:
    """Identity of the GitHub App used to mint app assertions.

    The private key is kept exactly as supplied; normalization happens when an
    assertion is minted.
    """

    app_id: str
    private_key: str = field(repr=False)


@dataclass(frozen=True)
class GitHubApiConfig:
    """Where and as whom GitHub API requests are made."""

    api_url: str
    user_agent: str
