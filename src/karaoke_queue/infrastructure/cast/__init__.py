"""Cast transports."""

from karaoke_queue.infrastructure.cast.logging_transport import LoggingCastTransport

__all__ = ["LoggingCastTransport"]
