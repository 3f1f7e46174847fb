"""Port interface for turning submitted links into video identifiers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict

from karaoke_queue.domain.shared.types import NonEmptyStr, TitleStr, VideoIdStr


class ResolvedLink(BaseModel):
    """Confirmed video identifier plus whatever metadata could be fetched."""

    model_config = ConfigDict(frozen=True)

    video_id: VideoIdStr
    url: NonEmptyStr
    title: TitleStr | None = None


class LinkResolver(ABC):
    """Interface for validating a URL and looking up its metadata."""

    @abstractmethod
    async def resolve(self, raw_url: NonEmptyStr) -> ResolvedLink:
        """Resolve a raw URL.

        Raises:
            InvalidLinkError: If the URL does not identify a video.
        """
        ...

    @abstractmethod
    def is_link(self, text: str) -> bool:
        """Cheap syntactic check used to spot links inside chat messages."""
        ...
