"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends, Header, Request

from gitplumbers_bridge.configuration.env import Settings
from gitplumbers_bridge.schemas.requests import CallerIdentity
from gitplumbers_bridge.workflows.driver import BridgeContext, classify_error


def get_settings(request: Request) -> Settings:
    """Dependency that provides the application settings."""
    return request.app.state.settings


async def get_context(request: Request) -> BridgeContext:
    """Dependency that provides the bridge context, building it on first use.

    Credentials are resolved lazily so that a misconfigured server still starts
    and answers every request with a failed-precondition error.
    """
    state = request.app.state
    if state.context is None:
        try:
            state.context = await BridgeContext.from_settings(state.settings, state.store)
        except Exception as exc:
            raise classify_error(exc, "load GitHub App configuration") from exc
    return state.context


def get_caller(x_user_id: Annotated[str | None, Header()] = None) -> CallerIdentity | None:
    """Dependency that provides the caller identity forwarded by the authenticating gateway."""
    if x_user_id is None or not x_user_id.strip():
        return None
    return CallerIdentity(user_id=x_user_id.strip())


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
ContextDep = Annotated[BridgeContext, Depends(get_context)]
CallerDep = Annotated[CallerIdentity | None, Depends(get_caller)]
