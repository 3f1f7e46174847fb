"""LinkResolver implementation: local link parsing plus yt-dlp title lookup."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any, Final, cast
from urllib.parse import parse_qs, urlsplit

from pydantic import BaseModel, ConfigDict, field_validator
from yt_dlp import YoutubeDL

from karaoke_queue.application.interfaces.link_resolver import LinkResolver, ResolvedLink
from karaoke_queue.config.settings import ResolverSettings
from karaoke_queue.domain.shared.exceptions import InvalidLinkError
from karaoke_queue.domain.shared.messages import ErrorMessages, LogTemplates
from karaoke_queue.domain.shared.types import NonEmptyStr, NonNegativeFloat, PositiveInt

logger = logging.getLogger(__name__)

CACHE_TTL: Final[int] = 3600
CACHE_MAX_SIZE: Final[int] = 500
TITLE_MAX_LENGTH: Final[int] = 500

YOUTUBE_HOSTS: Final[frozenset[str]] = frozenset(
    {
        "youtube.com",
        "www.youtube.com",
        "m.youtube.com",
        "music.youtube.com",
        "youtube-nocookie.com",
        "www.youtube-nocookie.com",
    }
)
SHORT_LINK_HOSTS: Final[frozenset[str]] = frozenset({"youtu.be", "www.youtu.be"})
# Path prefixes whose next segment is the video id.
ID_PATH_PREFIXES: Final[frozenset[str]] = frozenset({"embed", "v", "shorts", "live"})
VIDEO_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"[A-Za-z0-9_-]{11}")


def extract_video_id(url: str) -> str | None:
    """Pull the video id out of a YouTube watch, short, embed or youtu.be link.

    Playlist, channel and other non-video pages give ``None``.
    """
    text = url.strip()
    if not text or any(ch.isspace() for ch in text):
        return None
    if "://" not in text and not text.startswith("//"):
        text = f"//{text}"

    try:
        parts = urlsplit(text)
        host = (parts.hostname or "").lower()
    except ValueError:
        return None
    if parts.scheme not in ("", "http", "https"):
        return None

    segments = [segment for segment in parts.path.split("/") if segment]
    candidate: str | None = None
    if host in SHORT_LINK_HOSTS:
        candidate = segments[0] if len(segments) == 1 else None
    elif host in YOUTUBE_HOSTS:
        if segments == ["watch"]:
            values = parse_qs(parts.query).get("v")
            candidate = values[0] if values else None
        elif len(segments) == 2 and segments[0] in ID_PATH_PREFIXES:
            candidate = segments[1]

    if candidate is None or VIDEO_ID_PATTERN.fullmatch(candidate) is None:
        return None
    return candidate


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


# ── Pydantic models for yt-dlp data ────────────────────────────────────


class YtDlpVideoInfo(BaseModel):
    """The part of a yt-dlp extraction result we keep."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    title: NonEmptyStr | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, v: Any) -> str | None:
        """Drop empty or non-string titles and clip very long ones."""
        if not isinstance(v, str) or not v.strip():
            return None
        return v.strip()[:TITLE_MAX_LENGTH]


class CacheEntry(BaseModel):
    """Cached title lookup with its timestamp."""

    model_config = ConfigDict(frozen=True)

    info: YtDlpVideoInfo | None = None
    cached_at: NonNegativeFloat


class YtDlpOpts(BaseModel):
    """Typed yt-dlp configuration options passed to YoutubeDL."""

    model_config = ConfigDict(frozen=True)

    quiet: bool = True
    no_warnings: bool = True
    noprogress: bool = True
    noplaylist: bool = True
    skip_download: bool = True
    socket_timeout: PositiveInt = 10


class YtDlpLinkResolver(LinkResolver):
    """Validates YouTube links locally and asks yt-dlp for the title.

    Title lookup is best effort: any yt-dlp failure leaves the title empty
    and the link is still accepted.
    """

    def __init__(self, settings: ResolverSettings | None = None) -> None:
        self._settings = settings or ResolverSettings()
        self._opts = YtDlpOpts(socket_timeout=self._settings.socket_timeout)
        self._cache: dict[str, CacheEntry] = {}

    def is_link(self, text: str) -> bool:
        return extract_video_id(text) is not None

    async def resolve(self, raw_url: str) -> ResolvedLink:
        url = raw_url.strip()
        video_id = extract_video_id(url)
        if video_id is None:
            raise InvalidLinkError(url, ErrorMessages.NOT_A_VIDEO_LINK.format(url=url))

        title: str | None = None
        if self._settings.fetch_titles:
            info = await asyncio.to_thread(self._extract_info_sync, video_id)
            title = info.title if info is not None else None

        return ResolvedLink(video_id=video_id, url=url, title=title)

    def _extract_info_sync(self, video_id: str) -> YtDlpVideoInfo | None:
        now = time.time()
        cached = self._cache.get(video_id)
        if cached is not None:
            if now - cached.cached_at < CACHE_TTL:
                return cached.info
            self._cache.pop(video_id, None)

        try:
            with YoutubeDL(params=cast(Any, self._opts.model_dump())) as ydl:
                data = ydl.extract_info(watch_url(video_id), download=False, process=False)
        except Exception as exc:
            logger.warning(LogTemplates.YTDLP_TITLE_LOOKUP_FAILED, video_id, exc)
            return None

        result = YtDlpVideoInfo.model_validate(dict(data)) if isinstance(data, dict) else None
        self._cache[video_id] = CacheEntry(info=result, cached_at=now)

        if len(self._cache) > CACHE_MAX_SIZE:
            expired = [k for k, entry in self._cache.items() if now - entry.cached_at >= CACHE_TTL]
            for k in expired:
                self._cache.pop(k, None)

        return result
