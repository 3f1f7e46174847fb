"""Chat command definitions."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ChatCommand:
    """Declarative chat command definition."""

    command: str
    description: str
    usage: str = ""

    @property
    def lookup_key(self) -> str:
        return command_key(self.command)


class BotCommand(Enum):
    """Enum of chat commands (single source of truth)."""

    HELP = ChatCommand("help", "Display this help message")
    START_SESSION = ChatCommand("start-session", "Start a new karaoke session")
    JOIN = ChatCommand("join", "Join an existing session with code", "<code>")
    ADD = ChatCommand("add", "Add a YouTube link to the queue (with optional note)", "<url> [note]")
    QUEUE = ChatCommand("queue", "View current queue")
    REMOVE = ChatCommand("remove", "Remove one of your videos from the queue", "<video id>")
    LEAVE = ChatCommand("leave", "Leave current session")
    NEXT = ChatCommand("next", "Play the next video (owner only)")
    CURRENT = ChatCommand("current", "Show what is playing")
    HISTORY = ChatCommand("history", "Show what has been played")
    DEVICES = ChatCommand("devices", "List cast devices")
    SET_DEVICE = ChatCommand("set-device", "Choose the cast device (owner only)", "<name>")
    INFO = ChatCommand("info", "Show session details")
    END_SESSION = ChatCommand("end-session", "End the session for everyone (owner only)")

    @classmethod
    def lookup(cls, verb: str) -> "BotCommand | None":
        key = command_key(verb)
        for entry in cls:
            if entry.value.lookup_key == key:
                return entry
        return None


def command_key(verb: str) -> str:
    """Match ``start-session``, ``start_session`` and ``startsession`` alike."""
    return verb.lower().replace("-", "").replace("_", "")


def help_text() -> str:
    lines = ["Available commands:"]
    for entry in BotCommand:
        usage = f" {entry.value.usage}" if entry.value.usage else ""
        lines.append(f"/{entry.value.command}{usage} - {entry.value.description}")
    return "\n".join(lines)
