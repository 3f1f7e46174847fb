"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from karaoke_queue.application.interfaces.cast_transport import CastDevice, CastTransport
from karaoke_queue.application.interfaces.link_resolver import LinkResolver, ResolvedLink

__all__ = [
    "CastDevice",
    "CastTransport",
    "LinkResolver",
    "ResolvedLink",
]
