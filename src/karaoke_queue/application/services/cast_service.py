"""Cast Orchestrator - drives the play/advance state machine of a session."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ...domain.shared.exceptions import (
    CastTransportError,
    NoCastDeviceError,
    NotOwnerError,
    SessionNotFoundError,
    UnknownDeviceError,
)
from ...domain.shared.messages import LogTemplates
from .session_models import DeviceResult, NextResult
from .session_store import normalize_code

if TYPE_CHECKING:
    from ...domain.session.entities import QueueItem
    from ..interfaces.cast_transport import CastDevice, CastTransport
    from .session_store import SessionStore

logger = logging.getLogger(__name__)


def match_device(device_name: str, devices: list[CastDevice]) -> CastDevice | None:
    wanted = device_name.strip()
    for device in devices:
        if device.device_id == wanted:
            return device
    folded = wanted.casefold()
    for device in devices:
        if folded in (device.name.casefold(), device.device_id.casefold()):
            return device
    return None


class CastOrchestrator:
    """Moves items from the queue to the cast device and into history.

    Transport calls never run while the session lock is held. ``next`` is
    split into commits around the ``play`` call and the final commit checks
    ``playback_epoch`` to detect a newer transition made in the meantime.
    """

    def __init__(
        self,
        *,
        session_store: SessionStore,
        cast_transport: CastTransport,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._store = session_store
        self._transport = cast_transport
        self._timeout = timeout_seconds

    async def list_devices(self) -> list[CastDevice]:
        try:
            async with asyncio.timeout(self._timeout):
                return await self._transport.list_devices()
        except TimeoutError:
            logger.warning(LogTemplates.CAST_DISCOVERY_TIMEOUT, self._timeout)
            raise CastTransportError(None, "Timed out looking for cast devices") from None

    async def set_device(self, code: str, user_id: str, device_name: str) -> DeviceResult:
        """Choose the playback device; owner only. Playback state is unchanged.

        ``device_name`` is matched against the discovered devices by id, then
        by name ignoring case.

        Raises:
            NotOwnerError: If ``user_id`` does not own the session.
            UnknownDeviceError: If no discovered device matches.
        """
        code = normalize_code(code)
        if not self._store.snapshot(code).is_owner(user_id):
            raise NotOwnerError(code, user_id, "choose the cast device")

        devices = await self.list_devices()
        device = match_device(device_name, devices)
        if device is None:
            logger.warning(LogTemplates.CAST_DEVICE_UNKNOWN, device_name, code)
            raise UnknownDeviceError(device_name, [d.name for d in devices])

        async with self._store.transaction(code) as tx:
            if not tx.session.is_owner(user_id):
                raise NotOwnerError(code, user_id, "choose the cast device")
            tx.session.set_cast_target(device.device_id)

        logger.info(LogTemplates.CAST_DEVICE_SET, device.device_id, code)
        return DeviceResult(device=device, persisted=tx.persisted)

    async def next(self, code: str, user_id: str) -> NextResult:
        """Retire the current item and start the next one; owner only.

        Raises:
            NotOwnerError: If ``user_id`` does not own the session.
            NoCastDeviceError: If there is something to play but no device.
                The previous item has already moved to history.
            CastTransportError: If the device failed; the popped item is
                attached to the error and is not re-queued.
        """
        code = normalize_code(code)

        async with self._store.transaction(code) as tx:
            session = tx.session
            if not session.is_owner(user_id):
                raise NotOwnerError(code, user_id, "advance the queue")
            previous = session.retire_current()
            device_id = session.cast_target
            item = session.advance() if device_id is not None else None
            needs_device = device_id is None and bool(session.queue)
            epoch = session.playback_epoch
        persisted = tx.persisted

        if previous is not None:
            logger.info(LogTemplates.CAST_RETIRED, previous.video_id, code)

        if needs_device:
            device_id = await self._discover_device(code)
            async with self._store.transaction(code) as tx:
                session = tx.session
                if session.cast_target is None:
                    session.set_cast_target(device_id)
                device_id = session.cast_target
                item = session.advance()
                epoch = session.playback_epoch
            persisted = persisted and tx.persisted

        if item is None:
            logger.info(LogTemplates.QUEUE_EXHAUSTED, code)
            return NextResult(previous=previous, device_id=device_id, persisted=persisted)

        assert device_id is not None
        await self._play(code, device_id, item)

        try:
            async with self._store.transaction(code) as tx:
                session = tx.session
                superseded = session.playback_epoch != epoch or session.current is not None
                if superseded:
                    session.record_superseded(item)
                else:
                    session.start_playing(item)
        except SessionNotFoundError:
            logger.warning(LogTemplates.CAST_SESSION_GONE, item.video_id, code)
            raise

        if superseded:
            logger.warning(LogTemplates.CAST_SUPERSEDED, item.video_id, code)
        else:
            logger.info(LogTemplates.CAST_STARTED, item.video_id, device_id, code)

        return NextResult(
            previous=previous,
            current=None if superseded else item,
            device_id=device_id,
            superseded=superseded,
            persisted=persisted and tx.persisted,
        )

    def current(self, code: str) -> QueueItem | None:
        return self._store.snapshot(normalize_code(code)).current

    def history(self, code: str) -> list[QueueItem]:
        """Everything that left ``current``, oldest first."""
        return list(self._store.snapshot(normalize_code(code)).history)

    async def _discover_device(self, code: str) -> str:
        devices = await self.list_devices()
        if not devices:
            logger.warning(LogTemplates.CAST_NO_DEVICE, code)
            raise NoCastDeviceError()
        return devices[0].device_id

    async def _play(self, code: str, device_id: str, item: QueueItem) -> None:
        try:
            async with asyncio.timeout(self._timeout):
                await self._transport.play(device_id, item.video_id)
        except TimeoutError:
            logger.error(LogTemplates.CAST_PLAY_TIMEOUT, item.video_id, device_id, code)
            raise CastTransportError(
                device_id, f"Timed out casting to '{device_id}'", item=item
            ) from None
        except CastTransportError as exc:
            logger.error(LogTemplates.CAST_PLAY_FAILED, item.video_id, device_id, code, exc.message)
            exc.item = item
            raise
