"""Turns chat messages into service calls and service results into replies."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ...domain.shared.datetime_utils import format_elapsed
from ...domain.shared.exceptions import (
    CapacityExceededError,
    CastTransportError,
    DomainError,
    DuplicateItemError,
    InvalidLinkError,
    LinkResolutionError,
    NoCastDeviceError,
    NotMemberError,
    NotOwnerError,
    PersistenceError,
    SessionNotFoundError,
    UnknownDeviceError,
)
from ...domain.shared.messages import ChatMessages, LogTemplates
from .definitions import BotCommand, help_text

if TYPE_CHECKING:
    from ...domain.session.entities import QueueItem
    from ..interfaces.link_resolver import LinkResolver
    from ..services.cast_service import CastOrchestrator
    from ..services.queue_service import QueueEngine
    from ..services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)

COMMAND_PREFIX = "/"

# Commands that only make sense for a user who is in a session.
SESSION_COMMANDS: frozenset[BotCommand] = frozenset(
    {
        BotCommand.ADD,
        BotCommand.QUEUE,
        BotCommand.REMOVE,
        BotCommand.LEAVE,
        BotCommand.NEXT,
        BotCommand.CURRENT,
        BotCommand.HISTORY,
        BotCommand.SET_DEVICE,
        BotCommand.INFO,
        BotCommand.END_SESSION,
    }
)


@dataclass(frozen=True)
class CommandContext:
    user_id: str
    display_name: str | None
    args: str
    code: str | None = None

    @property
    def session_code(self) -> str:
        assert self.code is not None
        return self.code


Handler = Callable[[CommandContext], Awaitable[str]]


def with_save_warning(reply: str, persisted: bool) -> str:
    if persisted:
        return reply
    return f"{reply}\n{ChatMessages.NOT_SAVED_WARNING}"


def format_item(item: QueueItem, position: int | None = None) -> str:
    note = ChatMessages.QUEUE_NOTE.format(note=item.note) if item.note else ""
    line = f"{item.display_title} (added by {item.display_submitter}){note}"
    return line if position is None else f"{position}. {line}"


class CommandDispatcher:
    """Routes one chat message from one user to the session services.

    Messages starting with ``/`` are commands; any other message containing
    a YouTube link is treated as ``/add`` with the surrounding words as the
    note. Everything else is ignored.
    """

    def __init__(
        self,
        *,
        session_registry: SessionRegistry,
        queue_engine: QueueEngine,
        cast_orchestrator: CastOrchestrator,
        link_resolver: LinkResolver,
    ) -> None:
        self._registry = session_registry
        self._queue = queue_engine
        self._cast = cast_orchestrator
        self._resolver = link_resolver
        self._handlers: dict[BotCommand, Handler] = {
            BotCommand.HELP: self._help,
            BotCommand.START_SESSION: self._start_session,
            BotCommand.JOIN: self._join,
            BotCommand.ADD: self._add,
            BotCommand.QUEUE: self._show_queue,
            BotCommand.REMOVE: self._remove,
            BotCommand.LEAVE: self._leave,
            BotCommand.NEXT: self._next,
            BotCommand.CURRENT: self._current,
            BotCommand.HISTORY: self._history,
            BotCommand.DEVICES: self._devices,
            BotCommand.SET_DEVICE: self._set_device,
            BotCommand.INFO: self._info,
            BotCommand.END_SESSION: self._end_session,
        }

    async def dispatch(
        self, user_id: str, text: str, display_name: str | None = None
    ) -> str | None:
        """Handle one message and return the reply, or None if there is nothing to say."""
        text = text.strip()
        display_name = (display_name or "").strip() or None
        if text.startswith(COMMAND_PREFIX):
            verb, _, args = text[len(COMMAND_PREFIX):].partition(" ")
            # Telegram style "/queue@karaoke_bot"
            verb = verb.split("@", 1)[0]
            command = BotCommand.lookup(verb)
            if command is None:
                return ChatMessages.UNKNOWN_COMMAND
            ctx = CommandContext(user_id=user_id, display_name=display_name, args=args.strip())
        else:
            link_args = self._link_message_args(text)
            if link_args is None:
                return None
            command = BotCommand.ADD
            ctx = CommandContext(user_id=user_id, display_name=display_name, args=link_args)

        logger.debug(LogTemplates.COMMAND_RECEIVED, command.value.command, user_id)

        if command in SESSION_COMMANDS:
            code = self._registry.session_for_user(user_id)
            if code is None:
                return ChatMessages.NOT_IN_SESSION
            ctx = CommandContext(
                user_id=ctx.user_id, display_name=ctx.display_name, args=ctx.args, code=code
            )

        try:
            return await self._handlers[command](ctx)
        except DomainError as exc:
            return self._error_reply(exc)
        except Exception:
            logger.exception(LogTemplates.COMMAND_UNEXPECTED_ERROR, command.value.command, user_id)
            return ChatMessages.UNEXPECTED_ERROR

    def _link_message_args(self, text: str) -> str | None:
        """Rearrange ``"<words> <link> <words>"`` into ``"<link> <words> <words>"``."""
        words = text.split()
        for index, word in enumerate(words):
            if self._resolver.is_link(word):
                note_words = words[:index] + words[index + 1:]
                return " ".join([word, *note_words])
        return None

    # === Handlers ===

    async def _help(self, ctx: CommandContext) -> str:
        return help_text()

    async def _start_session(self, ctx: CommandContext) -> str:
        ref = await self._registry.create_session(ctx.user_id, ctx.display_name)
        return with_save_warning(ChatMessages.SESSION_CREATED.format(code=ref.code), ref.persisted)

    async def _join(self, ctx: CommandContext) -> str:
        if not ctx.args:
            return ChatMessages.MISSING_CODE
        ref = await self._registry.join_session(ctx.args.split()[0], ctx.user_id, ctx.display_name)
        template = ChatMessages.SESSION_JOINED if ref.joined else ChatMessages.SESSION_ALREADY_JOINED
        return with_save_warning(template.format(code=ref.code), ref.persisted)

    async def _add(self, ctx: CommandContext) -> str:
        if not ctx.args:
            return ChatMessages.MISSING_URL
        url, _, note = ctx.args.partition(" ")
        result = await self._queue.submit_link(
            ctx.session_code,
            ctx.user_id,
            url,
            note=note.strip() or None,
            submitter_name=ctx.display_name,
        )
        reply = ChatMessages.ADDED_TO_QUEUE.format(position=result.position + 1)
        return with_save_warning(reply, result.persisted)

    async def _show_queue(self, ctx: CommandContext) -> str:
        items = self._queue.queue(ctx.session_code)
        if not items:
            return ChatMessages.QUEUE_EMPTY
        lines = [ChatMessages.QUEUE_HEADER]
        lines.extend(format_item(item, position) for position, item in enumerate(items, start=1))
        return "\n".join(lines)

    async def _remove(self, ctx: CommandContext) -> str:
        if not ctx.args:
            return ChatMessages.MISSING_VIDEO_ID
        result = await self._queue.remove(ctx.session_code, ctx.args.split()[0], ctx.user_id)
        if result is None:
            return ChatMessages.ITEM_NOT_QUEUED
        reply = ChatMessages.ITEM_REMOVED.format(title=result.item.display_title)
        return with_save_warning(reply, result.persisted)

    async def _leave(self, ctx: CommandContext) -> str:
        persisted = await self._registry.leave_session(ctx.session_code, ctx.user_id)
        return with_save_warning(ChatMessages.SESSION_LEFT, persisted)

    async def _next(self, ctx: CommandContext) -> str:
        result = await self._cast.next(ctx.session_code, ctx.user_id)
        if result.superseded:
            reply = ChatMessages.NEXT_SUPERSEDED
        elif result.current is None:
            reply = ChatMessages.QUEUE_FINISHED
        else:
            reply = ChatMessages.NOW_PLAYING.format(
                device=result.device_id,
                title=result.current.display_title,
                submitter=result.current.display_submitter,
            )
        return with_save_warning(reply, result.persisted)

    async def _current(self, ctx: CommandContext) -> str:
        item = self._cast.current(ctx.session_code)
        if item is None:
            return ChatMessages.NOTHING_PLAYING
        return format_item(item)

    async def _history(self, ctx: CommandContext) -> str:
        items = self._cast.history(ctx.session_code)
        if not items:
            return ChatMessages.HISTORY_EMPTY
        lines = [ChatMessages.HISTORY_HEADER]
        lines.extend(format_item(item, position) for position, item in enumerate(items, start=1))
        return "\n".join(lines)

    async def _devices(self, ctx: CommandContext) -> str:
        devices = await self._cast.list_devices()
        if not devices:
            return ChatMessages.DEVICES_NONE
        return "\n".join([ChatMessages.DEVICES_HEADER, *(f"- {d.name}" for d in devices)])

    async def _set_device(self, ctx: CommandContext) -> str:
        if not ctx.args:
            return ChatMessages.MISSING_DEVICE
        result = await self._cast.set_device(ctx.session_code, ctx.user_id, ctx.args)
        reply = ChatMessages.DEVICE_SET.format(device=result.device.name)
        return with_save_warning(reply, result.persisted)

    async def _info(self, ctx: CommandContext) -> str:
        info = self._registry.session_info(ctx.session_code)
        return ChatMessages.SESSION_INFO.format(
            code=info.code,
            owner=next(
                (m.label for m in info.members if m.user_id == info.owner_id), info.owner_id
            ),
            members=", ".join(member.label for member in info.members) or "-",
            state=info.state.value,
            device=info.cast_target or "auto",
            queued=info.queue_length,
            played=info.history_length,
            uptime=format_elapsed(self._registry.uptime_seconds(info.code)),
        )

    async def _end_session(self, ctx: CommandContext) -> str:
        persisted = await self._registry.end_session(ctx.session_code, ctx.user_id)
        return with_save_warning(
            ChatMessages.SESSION_ENDED.format(code=ctx.session_code), persisted
        )

    # === Errors ===

    @staticmethod
    def _error_reply(exc: DomainError) -> str:
        if isinstance(exc, SessionNotFoundError):
            return ChatMessages.INVALID_SESSION_CODE
        if isinstance(exc, NotMemberError):
            return ChatMessages.NOT_IN_SESSION
        if isinstance(exc, NotOwnerError):
            return ChatMessages.OWNER_ONLY.format(operation=exc.operation)
        if isinstance(exc, DuplicateItemError):
            return ChatMessages.DUPLICATE_ITEM
        if isinstance(exc, InvalidLinkError):
            return ChatMessages.INVALID_LINK
        if isinstance(exc, LinkResolutionError):
            return ChatMessages.LINK_TIMEOUT
        if isinstance(exc, UnknownDeviceError):
            return ChatMessages.UNKNOWN_DEVICE.format(device=exc.device_name)
        if isinstance(exc, NoCastDeviceError):
            return ChatMessages.NO_CAST_DEVICE
        if isinstance(exc, CastTransportError):
            if exc.item is not None:
                return ChatMessages.CAST_FAILED.format(
                    title=exc.item.display_title, error=exc.message
                )
            return ChatMessages.CAST_FAILED_NO_ITEM.format(error=exc.message)
        if isinstance(exc, CapacityExceededError):
            return ChatMessages.CAPACITY_EXCEEDED.format(error=exc.message)
        if isinstance(exc, PersistenceError):
            return ChatMessages.STORAGE_ERROR
        return exc.message
