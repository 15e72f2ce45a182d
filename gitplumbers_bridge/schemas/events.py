"""Pydantic schemas for inbound webhook events and outbound repository_dispatch payloads."""

from typing import Annotated, Any, ClassVar, Literal

from pydantic import BaseModel, Field

from gitplumbers_bridge.utils.constants import INTAKE_EVENT_TYPE, REPAIR_SCAFFOLD_EVENT_TYPE


class IssueReference(BaseModel):
    """The subset of a webhook issue that automation workflows need."""

    number: int
    title: str = ""
    html_url: str = ""
    author: str = ""

    @classmethod
    def from_webhook(cls, issue: dict[str, Any]) -> "IssueReference":
        """Build a reference from the ``issue`` object of a webhook payload."""
        return cls(
            number=issue["number"],
            title=issue.get("title") or "",
            html_url=issue.get("html_url") or "",
            author=(issue.get("user") or {}).get("login", ""),
        )


def _installation_id(payload: dict[str, Any]) -> str:
    installation = payload.get("installation") or {}
    installation_id = installation.get("id")
    return "" if installation_id is None else str(installation_id)


class CommentCreatedEvent(BaseModel):
    """An ``issue_comment.created`` delivery."""

    installation_id: str
    repository: str
    issue: IssueReference
    comment_body: str = ""
    comment_author: str = ""

    @classmethod
    def from_webhook(cls, payload: dict[str, Any]) -> "CommentCreatedEvent":
        """Build the event from a raw webhook payload."""
        comment = payload.get("comment") or {}
        return cls(
            installation_id=_installation_id(payload),
            repository=payload["repository"]["full_name"],
            issue=IssueReference.from_webhook(payload["issue"]),
            comment_body=comment.get("body") or "",
            comment_author=(comment.get("user") or {}).get("login", ""),
        )


class IssueEvent(BaseModel):
    """An ``issues.opened`` or ``issues.edited`` delivery."""

    action: str
    installation_id: str
    repository: str
    issue: IssueReference

    @classmethod
    def from_webhook(cls, payload: dict[str, Any]) -> "IssueEvent":
        """Build the event from a raw webhook payload."""
        return cls(
            action=payload.get("action") or "",
            installation_id=_installation_id(payload),
            repository=payload["repository"]["full_name"],
            issue=IssueReference.from_webhook(payload["issue"]),
        )


class IntakeDispatchPayload(BaseModel):
    """client_payload of the generic intake workflow trigger."""

    event_type: ClassVar[str] = INTAKE_EVENT_TYPE

    kind: Literal["intake"] = "intake"
    issue: IssueReference
    command: str | None = None
    command_args: str | None = None


class RepairScaffoldDispatchPayload(BaseModel):
    """client_payload of the repair scaffold workflow trigger."""

    event_type: ClassVar[str] = REPAIR_SCAFFOLD_EVENT_TYPE

    kind: Literal["repair_scaffold"] = "repair_scaffold"
    issue: IssueReference
    command: str | None = None
    command_args: str | None = None


DispatchPayload = Annotated[IntakeDispatchPayload | RepairScaffoldDispatchPayload, Field(discriminator="kind")]
"""Closed set of outbound automation trigger payloads."""


class WebhookAcknowledgement(BaseModel):
    """Response to a webhook delivery."""

    handled: bool
    event: str
    action: str | None = None
    command: str | None = None
    dispatched_event_types: list[str] = Field(default_factory=list)
