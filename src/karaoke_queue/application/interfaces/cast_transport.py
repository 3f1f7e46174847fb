"""Port interface for display devices that can play a video."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict

from karaoke_queue.domain.shared.types import DeviceIdStr, NonEmptyStr, VideoIdStr


class CastDevice(BaseModel):
    """Descriptor of a discoverable playback device."""

    model_config = ConfigDict(frozen=True)

    device_id: DeviceIdStr
    name: NonEmptyStr

    @classmethod
    def named(cls, name: str) -> CastDevice:
        return cls(device_id=name, name=name)


class CastTransport(ABC):
    """Interface for discovering devices and sending play commands.

    Connection lifecycle is the implementation's concern; callers only
    list devices and ask one of them to play a video.
    """

    @abstractmethod
    async def list_devices(self) -> list[CastDevice]:
        """Discover the devices currently reachable."""
        ...

    @abstractmethod
    async def play(self, device_id: DeviceIdStr, video_id: VideoIdStr) -> None:
        """Ask a device to play a video.

        Raises:
            CastTransportError: If the device rejects the command or is unreachable.
        """
        ...
