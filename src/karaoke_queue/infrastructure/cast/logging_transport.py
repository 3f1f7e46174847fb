"""CastTransport that drives a fixed set of configured devices by logging play commands.

Useful for running the queue without cast hardware: every play command is
logged and remembered per device.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from karaoke_queue.application.interfaces.cast_transport import CastDevice, CastTransport
from karaoke_queue.domain.shared.exceptions import CastTransportError
from karaoke_queue.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from karaoke_queue.config.settings import CastSettings

logger = logging.getLogger(__name__)


class LoggingCastTransport(CastTransport):
    def __init__(self, device_names: tuple[str, ...] | list[str] = ()) -> None:
        self._devices = [CastDevice.named(name) for name in device_names]
        self._now_playing: dict[str, str] = {}
        logger.info(LogTemplates.CAST_DEVICES_CONFIGURED, len(self._devices))

    @classmethod
    def from_settings(cls, settings: CastSettings) -> LoggingCastTransport:
        return cls(settings.device_names)

    async def list_devices(self) -> list[CastDevice]:
        return list(self._devices)

    async def play(self, device_id: str, video_id: str) -> None:
        if not any(device.device_id == device_id for device in self._devices):
            raise CastTransportError(device_id, f"Unknown cast device '{device_id}'")
        self._now_playing[device_id] = video_id
        logger.info(LogTemplates.CAST_PLAY_SENT, video_id, device_id)

    def now_playing(self, device_id: str) -> str | None:
        """Last video sent to ``device_id``."""
        return self._now_playing.get(device_id)
