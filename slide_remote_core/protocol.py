"""Wire codec for remote control frames.

Each command travels as one JSON text message::

    {"command": "<tag>", "params": {...}, "timestamp": <epoch ms>}

Only ``laser_pointer_move`` carries params (``x_percent``, ``y_percent``).
The codec is symmetric so the receiving side can share this schema.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

from .commands import Command, CommandKind, PointerMove, SimpleCommand
from .errors import AddressInvalidError, DecodeError, EncodeError

DEFAULT_PORT = 8080

_SCHEMES = ("ws://", "wss://")


@dataclass(frozen=True)
class Frame:
    """Wire form of a single command."""

    command: str
    params: dict[str, Any] = field(default_factory=dict, hash=False)
    timestamp: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-serializable mapping sent on the wire."""
        return {
            "command": self.command,
            "params": dict(self.params),
            "timestamp": self.timestamp,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Frame:
        """Build a frame from a decoded JSON mapping.

        Raises:
            DecodeError: If the mapping lacks a command tag or has bad fields.
        """
        if not isinstance(data, dict):
            raise DecodeError("Frame must be a JSON object")
        command = data.get("command")
        if not isinstance(command, str):
            raise DecodeError("Frame is missing a command tag")
        params = data.get("params", {})
        if not isinstance(params, dict):
            raise DecodeError("Frame params must be an object")
        timestamp = data.get("timestamp", 0)
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise DecodeError("Frame timestamp must be an integer")
        return cls(command=command, params=params, timestamp=timestamp)

    @classmethod
    def from_json(cls, text: str) -> Frame:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as err:
            raise DecodeError(f"Frame is not valid JSON: {err}") from err
        return cls.from_dict(data)


def encode(command: Command, *, timestamp_ms: int | None = None) -> Frame:
    """Encode a command into its wire frame.

    Args:
        command: Command value to encode.
        timestamp_ms: Optional epoch milliseconds override.

    Raises:
        EncodeError: If ``command`` is not a command value.
    """
    timestamp = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)

    if isinstance(command, PointerMove):
        return Frame(
            command=CommandKind.POINTER_MOVE.value,
            params={"x_percent": command.x_percent, "y_percent": command.y_percent},
            timestamp=timestamp,
        )
    if isinstance(command, SimpleCommand):
        return Frame(command=command.kind.value, params={}, timestamp=timestamp)

    raise EncodeError(f"Cannot encode {type(command).__name__} as a command")


def _coordinate(params: dict[str, Any], key: str) -> float:
    value = params.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"laser_pointer_move requires numeric {key}")
    return float(value)


def decode(frame: Frame) -> Command:
    """Decode a wire frame back into a command.

    Raises:
        DecodeError: If the tag is unknown or pointer params are malformed.
    """
    try:
        kind = CommandKind.from_tag(frame.command)
    except ValueError as err:
        raise DecodeError(f"Unknown command tag: {frame.command!r}") from err

    if kind is CommandKind.POINTER_MOVE:
        return PointerMove(
            _coordinate(frame.params, "x_percent"),
            _coordinate(frame.params, "y_percent"),
        )
    return SimpleCommand(kind)


@dataclass(frozen=True)
class TargetAddress:
    """Host and port of a presentation receiver."""

    host: str
    port: int

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


def parse_address(text: str, *, default_port: int = DEFAULT_PORT) -> TargetAddress:
    """Parse ``host:port`` (optionally ``ws://host:port``) into an address.

    Raises:
        AddressInvalidError: If the text is not a usable host and port.
    """
    if not isinstance(text, str):
        raise AddressInvalidError("Address must be a string")
    raw = text.strip()
    if not raw or any(ch.isspace() for ch in raw):
        raise AddressInvalidError(f"Invalid address: {text!r}")

    for scheme in _SCHEMES:
        if raw.lower().startswith(scheme):
            raw = raw[len(scheme) :]
            break
    raw = raw.rstrip("/")

    try:
        parts = urlsplit(f"//{raw}")
        port = parts.port
    except ValueError as err:
        raise AddressInvalidError(f"Invalid address: {text!r}") from err
    if parts.path or parts.query or parts.fragment or parts.username:
        raise AddressInvalidError(f"Invalid address: {text!r}")

    host = parts.hostname
    if not host:
        raise AddressInvalidError(f"Missing host in address: {text!r}")
    if port == 0:
        raise AddressInvalidError(f"Invalid port in address: {text!r}")

    return TargetAddress(host=host, port=port if port is not None else default_port)
