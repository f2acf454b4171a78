"""Transport layer for the remote engine.

This package contains all network IO. It knows nothing about commands.

Components:
- ws: WebSocket connection and error mapping
- ws_client: WebSocket message iteration and sending
- session: One logical connection with ordered sends and closure reporting
"""

from .session import TransportClosed, TransportSession
from .ws import build_url, connect_websocket
from .ws_client import ReceiverWsClient, ReceiverWsMessage, ReceiverWsMessageType

__all__ = [
    "ReceiverWsClient",
    "ReceiverWsMessage",
    "ReceiverWsMessageType",
    "TransportClosed",
    "TransportSession",
    "build_url",
    "connect_websocket",
]
