"""Parses slash commands out of issue comment bodies.

A command is a comment whose first whitespace-delimited token is exactly the
command prefix (``/gp`` by default). The next token, lower-cased, selects the
command::

    /gp triage
    /gp fix billing service
    /gp logs

Anything after the prefix that is not a known keyword yields an
:class:`UnknownCommand` that echoes the whole trimmed comment back.
"""

from dataclasses import dataclass
from typing import ClassVar

from gitplumbers_bridge.utils.constants import ASSISTANT_SIGNATURE, COMMAND_PREFIX, INTAKE_EVENT_TYPE


@dataclass(frozen=True)
class TriageCommand:
    """Re-run intake and diagnostics."""

    type: ClassVar[str] = "triage"


@dataclass(frozen=True)
class FixCommand:
    """Prepare repair scaffolding, optionally for a named area."""

    type: ClassVar[str] = "fix"

    area: str | None = None


@dataclass(frozen=True)
class LogsCommand:
    """Collect the latest workflow logs."""

    type: ClassVar[str] = "logs"


@dataclass(frozen=True)
class StatusCommand:
    """Post the current stabilization status."""

    type: ClassVar[str] = "status"


@dataclass(frozen=True)
class RerunCommand:
    """Re-run the most recent failed workflow."""

    type: ClassVar[str] = "rerun"


@dataclass(frozen=True)
class UnknownCommand:
    """A prefixed comment whose keyword is not recognized."""

    type: ClassVar[str] = "unknown"

    raw: str


Command = TriageCommand | FixCommand | LogsCommand | StatusCommand | RerunCommand | UnknownCommand

_SIMPLE_COMMANDS: dict[str, Command] = {
    "triage": TriageCommand(),
    "logs": LogsCommand(),
    "status": StatusCommand(),
    "rerun": RerunCommand(),
}


def parse_command(body: str | None, prefix: str = COMMAND_PREFIX) -> Command | None:
    """Parse a comment body into a command.

    Returns None when the comment does not start with ``prefix`` as a token of
    its own, so ``/gpfix`` or ``/gp-triage`` are ordinary comments.
    """
    trimmed = (body or "").strip()
    tokens = trimmed.split()
    if not tokens or tokens[0] != prefix:
        return None

    keyword = tokens[1].lower() if len(tokens) > 1 else ""
    if keyword == "fix":
        return FixCommand(area=" ".join(tokens[2:]) or None)
    simple = _SIMPLE_COMMANDS.get(keyword)
    if simple is not None:
        return simple
    return UnknownCommand(raw=trimmed)


def command_area(command: Command) -> str | None:
    """Return the free-text area carried by a command, if any."""
    if isinstance(command, FixCommand):
        return command.area
    return None


def command_summary(command: Command) -> str:
    """Describe the action a command triggers, for the acknowledgement comment."""
    if isinstance(command, TriageCommand):
        return "Re-running intake workflow and diagnostics."
    if isinstance(command, FixCommand):
        return f"Preparing repair scaffolding for {command.area}." if command.area else "Preparing repair scaffolding."
    if isinstance(command, LogsCommand):
        return "Collecting the latest workflow logs."
    if isinstance(command, StatusCommand):
        return "Posting the current stabilization status."
    if isinstance(command, RerunCommand):
        return "Re-running the most recent failed workflow."
    return f"Command not recognized: {command.raw}"


def build_acknowledgement(summary: str) -> str:
    """Render the comment the assistant posts in reply to a command."""
    return "\n".join(
        [
            ASSISTANT_SIGNATURE,
            "",
            summary,
            "",
            f"_Tracking via repository_dispatch: {INTAKE_EVENT_TYPE}._",
        ]
    )
