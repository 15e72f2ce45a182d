"""Mints the signed app assertion (JWT) that identifies the GitHub App.

The assertion is only ever exchanged for an installation token; it never
authorizes issue tracker calls directly.
"""

from datetime import datetime, timedelta, timezone

import jwt
import structlog

from gitplumbers_bridge.configuration.models import GitHubAppCredentials
from gitplumbers_bridge.exceptions import ConfigurationError, SigningError
from gitplumbers_bridge.utils.constants import (
    APP_ASSERTION_BACKDATE_SECONDS,
    APP_ASSERTION_LIFETIME_SECONDS,
    RSA_PRIVATE_KEY_FOOTER,
    RSA_PRIVATE_KEY_HEADER,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_WRAPPING_QUOTES = ('"', "'")


def normalize_private_key(raw_key: str | None) -> str:
    """Turn private key material from a secret store into a PEM document.

    Secret stores and environment variables tend to mangle PEM keys: newlines
    arrive as literal ``\\n`` sequences, the value is wrapped in quotes, or the
    header and footer were dropped entirely. Returns an empty string when
    nothing is left after cleanup.
    """
    if raw_key is None:
        return ""
    key = raw_key.replace("\\n", "\n").strip()
    while len(key) >= 2 and key[0] == key[-1] and key[0] in _WRAPPING_QUOTES:
        key = key[1:-1].strip()
    if not key:
        return ""
    if "-----BEGIN" not in key:
        key = f"{RSA_PRIVATE_KEY_HEADER}\n{key}\n{RSA_PRIVATE_KEY_FOOTER}"
    return key


def mint_app_assertion(credentials: GitHubAppCredentials, now: datetime | None = None) -> str:
    """Sign a short-lived RS256 assertion asserting the app's identity.

    The assertion is issued 60 seconds in the past to tolerate clock skew
    between this host and GitHub, and expires 10 minutes after ``now``.

    Raises:
        ConfigurationError: If the app id or private key is empty after normalization.
        SigningError: If the private key cannot sign.
    """
    app_id = (credentials.app_id or "").strip()
    private_key = normalize_private_key(credentials.private_key)
    missing = [name for name, value in (("GITHUB_APP_ID", app_id), ("GITHUB_APP_PRIVATE_KEY", private_key)) if not value]
    if missing:
        raise ConfigurationError("GitHub App ID and private key must be configured", missing=missing)

    issued = now or datetime.now(timezone.utc)
    payload = {
        "iat": int((issued - timedelta(seconds=APP_ASSERTION_BACKDATE_SECONDS)).timestamp()),
        "exp": int((issued + timedelta(seconds=APP_ASSERTION_LIFETIME_SECONDS)).timestamp()),
        "iss": app_id,
    }

    try:
        assertion = jwt.encode(payload, private_key, algorithm="RS256", headers={"typ": "JWT"})
    except (jwt.exceptions.PyJWTError, ValueError, TypeError) as exc:
        logger.error("Failed to sign GitHub App assertion", app_id=app_id, error_type=type(exc).__name__)
        raise SigningError(f"GitHub App private key cannot sign an assertion: {exc}") from exc

    logger.debug("Minted GitHub App assertion", app_id=app_id, expires_at=payload["exp"])
    return assertion
