"""
Application Commands

Chat command definitions and the dispatcher that maps them onto services.
"""

from karaoke_queue.application.commands.definitions import BotCommand, ChatCommand
from karaoke_queue.application.commands.dispatcher import CommandDispatcher

__all__ = [
    "BotCommand",
    "ChatCommand",
    "CommandDispatcher",
]
