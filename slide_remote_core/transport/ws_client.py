"""WebSocket client wrapper for a presentation receiver."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from websockets.asyncio.client import ClientConnection
from websockets.exceptions import ConnectionClosed

from ..errors import (
    LinkLostError,
    NotConnectedError,
    SendFailedError,
)
from .ws import connect_websocket

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class ReceiverWsMessageType(Enum):
    """Normalized WebSocket message types."""

    TEXT = "text"
    CLOSED = "closed"
    ERROR = "error"


@dataclass(frozen=True)
class ReceiverWsMessage:
    """Normalized WebSocket message payload."""

    type: ReceiverWsMessageType
    data: str | None = None


class ReceiverWsClient:
    """Wrapper around the websockets library for one receiver connection."""

    def __init__(self) -> None:
        self._ws: ClientConnection | None = None

    async def connect(
        self,
        host: str,
        port: int,
        *,
        path: str = "/",
        ping_interval: int | None = 20,
        timeout: float = 10.0,
    ) -> None:
        """Connect to the receiver websocket."""
        self._ws = await connect_websocket(
            host,
            port,
            path=path,
            ping_interval=ping_interval,
            timeout=timeout,
        )

    async def close(self) -> None:
        """Close the websocket connection."""
        if self._ws is not None:
            await self._ws.close()

    async def send_json(self, payload: dict[str, Any]) -> None:
        """Send a JSON payload as one text message.

        Raises:
            NotConnectedError: If connect() has not succeeded.
            LinkLostError: If the connection closed underneath the send.
            SendFailedError: On any other I/O error.
        """
        if self._ws is None:
            raise NotConnectedError("WebSocket is not connected")
        try:
            await self._ws.send(json.dumps(payload))
        except ConnectionClosed as err:
            raise LinkLostError("Connection closed while sending") from err
        except OSError as err:
            raise SendFailedError(f"Send failed: {err}") from err

    def __aiter__(self) -> AsyncIterator[ReceiverWsMessage]:
        if self._ws is None:
            raise NotConnectedError("WebSocket is not connected")
        return self._iter_messages()

    async def _iter_messages(self) -> AsyncIterator[ReceiverWsMessage]:
        if self._ws is None:
            raise NotConnectedError("WebSocket is not connected")

        try:
            async for msg in self._ws:
                normalized = self._normalize_message(msg)
                if normalized is None:
                    continue
                yield normalized
        except ConnectionClosed:
            yield ReceiverWsMessage(type=ReceiverWsMessageType.CLOSED)
        except Exception:
            yield ReceiverWsMessage(type=ReceiverWsMessageType.ERROR)
        else:
            # Iteration ends normally when the receiver closes gracefully.
            yield ReceiverWsMessage(type=ReceiverWsMessageType.CLOSED)

    @staticmethod
    def _normalize_message(msg: Any) -> ReceiverWsMessage | None:
        """Normalize raw frames; binary frames are skipped."""
        if isinstance(msg, (bytes, bytearray, memoryview)):
            return None
        return ReceiverWsMessage(ReceiverWsMessageType.TEXT, str(msg))
