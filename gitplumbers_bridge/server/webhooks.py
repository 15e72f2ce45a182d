"""GitHub App webhook receiver."""

import hashlib
import hmac
import json
from typing import Annotated, Any

import pydantic
import structlog
from fastapi import APIRouter, Header, Request

from gitplumbers_bridge.commands.dispatcher import INTAKE_ACTIONS
from gitplumbers_bridge.commands.parser import parse_command
from gitplumbers_bridge.exceptions import HandlerFailure
from gitplumbers_bridge.schemas.events import CommentCreatedEvent, IssueEvent, WebhookAcknowledgement
from gitplumbers_bridge.workflows.driver import classify_error

from .dependencies import SettingsDep, get_context

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/github", tags=["webhooks"])


def verify_signature(secret: str, body: bytes, signature_header: str | None) -> bool:
    """Check an ``X-Hub-Signature-256`` header against the raw request body."""
    if not signature_header or not signature_header.startswith("sha256="):
        return False
    expected = "sha256=" + hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature_header)


def _parse_payload(body: bytes) -> dict[str, Any]:
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise HandlerFailure(400, "invalid-argument", "Webhook body is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise HandlerFailure(400, "invalid-argument", "Webhook body must be a JSON object")
    return payload


@router.post("/webhooks", response_model=WebhookAcknowledgement)
async def receive_webhook(
    request: Request,
    settings: SettingsDep,
    x_github_event: Annotated[str, Header()] = "",
    x_hub_signature_256: Annotated[str | None, Header()] = None,
) -> WebhookAcknowledgement:
    """Route ``issue_comment`` and ``issues`` deliveries to the command dispatcher.

    The signature is checked first. The bridge context is loaded only when a
    delivery needs GitHub.
    """
    body = await request.body()
    if settings.GITHUB_WEBHOOK_SECRET and not verify_signature(settings.GITHUB_WEBHOOK_SECRET, body, x_hub_signature_256):
        logger.warning("Rejected webhook with invalid signature", github_event=x_github_event)
        raise HandlerFailure(401, "unauthenticated", "Invalid webhook signature")

    payload = _parse_payload(body)
    action = payload.get("action")
    ignored = WebhookAcknowledgement(handled=False, event=x_github_event, action=action)
    try:
        if x_github_event == "issue_comment" and action == "created":
            comment_event = CommentCreatedEvent.from_webhook(payload)
            if parse_command(comment_event.comment_body, settings.COMMAND_PREFIX) is None:
                return ignored
            context = await get_context(request)
            outcome = await context.dispatcher.handle_comment_event(comment_event)
        elif x_github_event == "issues" and action in INTAKE_ACTIONS:
            issue_event = IssueEvent.from_webhook(payload)
            context = await get_context(request)
            outcome = await context.dispatcher.handle_issue_event(issue_event)
        else:
            logger.debug("Ignoring webhook event", github_event=x_github_event, action=action)
            return ignored
    except (KeyError, TypeError, pydantic.ValidationError) as exc:
        logger.warning("Malformed webhook payload", github_event=x_github_event, action=action, error=str(exc))
        raise HandlerFailure(400, "invalid-argument", f"Malformed {x_github_event} payload") from exc
    except Exception as exc:
        failure = classify_error(exc, f"handle {x_github_event} webhook")
        logger.error("Webhook handling failed", github_event=x_github_event, action=action, status_code=failure.status_code, error=str(exc))
        raise failure from exc

    if outcome is None:
        return ignored
    return WebhookAcknowledgement(
        handled=True,
        event=x_github_event,
        action=action,
        command=outcome.command.type if outcome.command is not None else None,
        dispatched_event_types=outcome.dispatched_event_types,
    )
