"""Contains the exceptions raised across the bridge.

Library-level components (credential minting, token exchange, the issue
tracker adapter, synchronization and lifecycle services) raise these directly.
Only the orchestration layer in ``gitplumbers_bridge.workflows`` translates
them into caller-facing results.
"""


class BridgeError(Exception):
    """Base class for every error raised by the bridge."""

    pass


class ConfigurationError(BridgeError):
    """Raised when GitHub App credentials or settings are missing or invalid."""

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        """Initializes the exception with an optional list of missing settings."""
        super().__init__(message)
        self.missing = missing or []


class SigningError(BridgeError):
    """Raised when the private key cannot be used to sign an app assertion."""

    pass


class AuthError(BridgeError):
    """Raised when GitHub refuses to issue an installation access token."""

    REASON_BY_STATUS = {
        401: "authentication_failed",
        403: "forbidden",
        404: "installation_not_found",
    }

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        """Initializes the exception with the upstream status code and body."""
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def reason(self) -> str:
        """Classify the upstream rejection."""
        if self.status_code is None:
            return "token_issuance_failed"
        return self.REASON_BY_STATUS.get(self.status_code, "token_issuance_failed")


class TokenExpiredError(AuthError):
    """Raised when a delegated token is used after its expiry."""

    def __init__(self, message: str = "Delegated installation token has expired") -> None:
        """Initializes the exception as an authentication failure."""
        super().__init__(message, status_code=401, body="")

    @property
    def reason(self) -> str:
        """Classify the failure."""
        return "token_expired"


class ExternalApiError(BridgeError):
    """Raised when the GitHub issue tracker API answers with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None, body: str = "", operation: str = "") -> None:
        """Initializes the exception with the upstream status code, body and failing operation."""
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.operation = operation


class ValidationError(BridgeError):
    """Raised when a request is missing required fields or is otherwise malformed."""

    pass


class IdentityMismatchError(ValidationError):
    """Raised when the authenticated caller does not match the user named in a request."""

    pass


class UnauthenticatedError(ValidationError):
    """Raised when an entry point that requires a caller identity receives none."""

    pass


class NotFoundError(BridgeError):
    """Raised when a tracked issue record does not exist."""

    def __init__(self, message: str, record_id: str | None = None) -> None:
        """Initializes the exception with the missing record id."""
        super().__init__(message)
        self.record_id = record_id


class HandlerFailure(BridgeError):
    """Structured failure returned by an RPC-style entry point."""

    def __init__(self, status_code: int, code: str, message: str) -> None:
        """Initializes the failure with an HTTP status, a stable code and a description."""
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
