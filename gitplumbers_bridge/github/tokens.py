"""Exchanges app assertions for delegated installation access tokens."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import structlog
from githubkit.exception import RequestError, RequestFailed, RequestTimeout

from gitplumbers_bridge.configuration.models import GitHubApiConfig, GitHubAppCredentials
from gitplumbers_bridge.exceptions import AuthError, ValidationError
from gitplumbers_bridge.github.auth import mint_app_assertion
from gitplumbers_bridge.github.client import AppClient, get_github_app_client
from gitplumbers_bridge.utils.constants import INSTALLATION_TOKEN_FALLBACK_LIFETIME_SECONDS

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DelegatedToken:
    """An installation access token owned by a single logical operation."""

    token: str = field(repr=False)
    expires_at: datetime
    installation_id: str = ""

    def is_expired(self, now: datetime | None = None) -> bool:
        """Whether the token can no longer authorize requests."""
        return (now or datetime.now(timezone.utc)) >= self.expires_at


def _parse_expiry(value: Any) -> datetime:
    if isinstance(value, datetime):
        expires_at = value
    elif isinstance(value, str) and value:
        # GitHub uses ISO format: 2025-01-01T10:00:00Z
        expires_at = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        return datetime.now(timezone.utc) + timedelta(seconds=INSTALLATION_TOKEN_FALLBACK_LIFETIME_SECONDS)
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at


class InstallationTokenBroker:
    """Mints an app assertion and exchanges it for one installation token.

    Tokens are never cached: every call to :meth:`exchange` performs exactly
    one token issuance request.
    """

    def __init__(
        self,
        credentials: GitHubAppCredentials,
        api_config: GitHubApiConfig,
        client_factory: Callable[[GitHubApiConfig], AppClient] = get_github_app_client,
    ) -> None:
        """Initialize the broker with app credentials and the API endpoint."""
        self.credentials = credentials
        self.api_config = api_config
        self._client_factory = client_factory

    async def exchange(self, installation_id: str) -> DelegatedToken:
        """Request a delegated token scoped to ``installation_id``.

        Raises:
            ValidationError: If the installation id is not numeric.
            ConfigurationError: If the app credentials are incomplete.
            SigningError: If the private key cannot sign the assertion.
            AuthError: If GitHub refuses to issue the token.
        """
        installation_id = str(installation_id).strip()
        if not installation_id.isdigit():
            raise ValidationError(f"Invalid installation id: {installation_id!r}")

        assertion = mint_app_assertion(self.credentials)
        client = self._client_factory(self.api_config)
        logger.info("Requesting installation access token", installation_id=installation_id, app_id=self.credentials.app_id)
        try:
            response = await client.rest.apps.async_create_installation_access_token(
                installation_id=int(installation_id),
                headers={
                    "Authorization": f"Bearer {assertion}",
                    "Accept": "application/vnd.github+json",
                },
            )
        except RequestFailed as exc:
            status_code = exc.response.status_code
            body = exc.response.text
            error = AuthError(f"Failed to get installation token: {status_code} {body}", status_code=status_code, body=body)
            logger.error(
                "GitHub refused to issue an installation token",
                installation_id=installation_id,
                status_code=status_code,
                reason=error.reason,
            )
            raise error from exc
        except (RequestError, RequestTimeout) as exc:
            logger.error("Installation token request failed", installation_id=installation_id, error=str(exc))
            raise AuthError(f"Failed to get installation token: {exc}") from exc

        data = response.json()
        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise AuthError("Installation token response did not contain a token", status_code=response.status_code, body=response.text)

        delegated = DelegatedToken(token=token, expires_at=_parse_expiry(data.get("expires_at")), installation_id=installation_id)
        logger.info("Obtained installation access token", installation_id=installation_id, expires_at=delegated.expires_at.isoformat())
        return delegated
