"""Link resolution - YouTube link parsing and yt-dlp title lookup."""

from karaoke_queue.infrastructure.links.ytdlp_resolver import YtDlpLinkResolver

__all__ = ["YtDlpLinkResolver"]
