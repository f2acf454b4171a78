"""WebSocket helpers for connecting to a presentation receiver."""

from __future__ import annotations

import asyncio

import websockets
from websockets.asyncio.client import ClientConnection
from websockets.exceptions import (
    InvalidHandshake,
    InvalidURI,
    WebSocketException,
)

from ..errors import (
    AddressInvalidError,
    ConnectRefusedError,
    ConnectTimeoutError,
)


def build_url(host: str, port: int, path: str = "/") -> str:
    """Build the receiver WebSocket URL, bracketing IPv6 hosts."""
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    if not path.startswith("/"):
        path = f"/{path}"
    return f"ws://{host}:{port}{path}"


async def connect_websocket(
    host: str,
    port: int,
    *,
    path: str = "/",
    ping_interval: int | None = 20,
    timeout: float = 10.0,
) -> ClientConnection:
    """Connect to a receiver WebSocket endpoint.

    Args:
        host: Receiver host or IP
        port: Receiver port
        path: WebSocket path (default: /)
        ping_interval: Interval for ping frames, None disables keepalive
        timeout: Connection timeout in seconds

    Raises:
        ConnectTimeoutError: The receiver did not answer within ``timeout``.
        AddressInvalidError: The URL built from host/port is not valid.
        ConnectRefusedError: The connection or handshake failed.
    """
    ws_url = build_url(host, port, path)
    try:
        return await asyncio.wait_for(
            websockets.connect(
                ws_url,
                ping_interval=ping_interval,
                close_timeout=5,
                open_timeout=None,
            ),
            timeout=timeout,
        )
    except TimeoutError as err:
        raise ConnectTimeoutError(f"Connection to {ws_url} timed out") from err
    except InvalidURI as err:
        raise AddressInvalidError(f"Invalid receiver URL: {ws_url}") from err
    except InvalidHandshake as err:
        raise ConnectRefusedError(f"Handshake with {ws_url} failed") from err
    except (OSError, WebSocketException) as err:
        raise ConnectRefusedError(f"Connection to {ws_url} failed: {err}") from err
