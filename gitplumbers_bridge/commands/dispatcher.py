"""Turns slash commands and issue events into acknowledgements and workflow triggers."""

import structlog

from gitplumbers_bridge.github.abc import IssueTrackerBase
from gitplumbers_bridge.github.session import InstallationSessionFactory
from gitplumbers_bridge.schemas.events import (
    CommentCreatedEvent,
    IntakeDispatchPayload,
    IssueEvent,
    RepairScaffoldDispatchPayload,
)
from gitplumbers_bridge.utils.constants import COMMAND_PREFIX

from .parser import Command, FixCommand, build_acknowledgement, command_area, command_summary, parse_command

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

INTAKE_ACTIONS = frozenset({"opened", "edited"})


class DispatchOutcome:
    """Side effects emitted for one webhook delivery."""

    def __init__(
        self,
        repository: str,
        issue_number: int,
        command: Command | None = None,
        acknowledgement: str | None = None,
        dispatched_event_types: list[str] | None = None,
    ) -> None:
        """Initialize the outcome."""
        self.repository = repository
        self.issue_number = issue_number
        self.command = command
        self.acknowledgement = acknowledgement
        self.dispatched_event_types = dispatched_event_types or []

    def __repr__(self) -> str:
        """Return a string representation of the outcome."""
        command_type = self.command.type if self.command is not None else None
        return (
            f"DispatchOutcome(repository={self.repository!r}, issue_number={self.issue_number}, "
            f"command={command_type!r}, dispatched_event_types={self.dispatched_event_types!r})"
        )


async def _dispatch(
    tracker: IssueTrackerBase,
    payload: IntakeDispatchPayload | RepairScaffoldDispatchPayload,
    repository: str,
) -> str:
    logger.info(
        "Triggering repository dispatch",
        repository=repository,
        event_type=payload.event_type,
        issue_number=payload.issue.number,
        command=payload.command,
    )
    await tracker.create_dispatch_event(payload.event_type, payload.model_dump(mode="json"))
    return payload.event_type


class CommandDispatcher:
    """Handles ``/gp`` commands posted on issues and intake-relevant issue events.

    Each handled delivery opens its own installation session; nothing is
    retried and the first failing call aborts the remaining side effects.
    """

    def __init__(self, sessions: InstallationSessionFactory, prefix: str = COMMAND_PREFIX) -> None:
        """Initialize the dispatcher with a session factory and command prefix."""
        self.sessions = sessions
        self.prefix = prefix

    async def handle_comment_event(self, event: CommentCreatedEvent) -> DispatchOutcome | None:
        """React to a new issue comment.

        Returns None without touching GitHub when the comment is not a command.
        Otherwise posts one acknowledgement, triggers the intake workflow and,
        for ``fix``, the repair scaffold workflow as well.
        """
        command = parse_command(event.comment_body, self.prefix)
        if command is None:
            return None

        logger.info(
            "Slash command received",
            repository=event.repository,
            issue_number=event.issue.number,
            command=command.type,
            author=event.comment_author,
        )
        tracker = await self.sessions.open(event.installation_id, event.repository)

        acknowledgement = build_acknowledgement(command_summary(command))
        await tracker.create_comment(event.issue.number, acknowledgement)

        area = command_area(command)
        dispatched = [
            await _dispatch(
                tracker,
                IntakeDispatchPayload(issue=event.issue, command=command.type, command_args=area),
                event.repository,
            )
        ]
        if isinstance(command, FixCommand):
            dispatched.append(
                await _dispatch(
                    tracker,
                    RepairScaffoldDispatchPayload(issue=event.issue, command=command.type, command_args=area),
                    event.repository,
                )
            )

        return DispatchOutcome(
            repository=event.repository,
            issue_number=event.issue.number,
            command=command,
            acknowledgement=acknowledgement,
            dispatched_event_types=dispatched,
        )

    async def handle_issue_event(self, event: IssueEvent) -> DispatchOutcome | None:
        """Trigger the intake workflow when an issue is opened or edited."""
        if event.action not in INTAKE_ACTIONS:
            logger.debug("Ignoring issue event", repository=event.repository, action=event.action)
            return None

        logger.info("Issue event received", repository=event.repository, issue_number=event.issue.number, action=event.action)
        tracker = await self.sessions.open(event.installation_id, event.repository)
        event_type = await _dispatch(tracker, IntakeDispatchPayload(issue=event.issue), event.repository)
        return DispatchOutcome(
            repository=event.repository,
            issue_number=event.issue.number,
            dispatched_event_types=[event_type],
        )
