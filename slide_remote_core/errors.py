"""Error types for presentation remote connections and commands."""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    """Categories of failure recorded in the session state."""

    ADDRESS_INVALID = "address_invalid"
    NOT_CONNECTED = "not_connected"
    CONNECT_TIMEOUT = "connect_timeout"
    CONNECT_REFUSED = "connect_refused"
    LINK_LOST = "link_lost"
    SEND_FAILED = "send_failed"
    ENCODE_ERROR = "encode_error"
    DECODE_ERROR = "decode_error"
    SUPERSEDED = "superseded"
    CONFIG_INVALID = "config_invalid"


RETRYABLE_KINDS: frozenset[ErrorKind] = frozenset(
    {
        ErrorKind.LINK_LOST,
        ErrorKind.CONNECT_TIMEOUT,
        ErrorKind.CONNECT_REFUSED,
    }
)


class SlideRemoteError(Exception):
    """Base error for slide remote failures."""

    kind: ErrorKind = ErrorKind.SEND_FAILED

    @property
    def retryable(self) -> bool:
        """Whether the reconnection supervisor may retry after this error."""
        return self.kind in RETRYABLE_KINDS


class AddressInvalidError(SlideRemoteError):
    """Target address is malformed."""

    kind = ErrorKind.ADDRESS_INVALID


class NotConnectedError(SlideRemoteError):
    """Command attempted while no connection is established."""

    kind = ErrorKind.NOT_CONNECTED


class ConnectTimeoutError(SlideRemoteError):
    """Connecting to the receiver timed out."""

    kind = ErrorKind.CONNECT_TIMEOUT


class ConnectRefusedError(SlideRemoteError):
    """Receiver refused or failed the connection."""

    kind = ErrorKind.CONNECT_REFUSED


class LinkLostError(SlideRemoteError):
    """Connection closed after it had been established."""

    kind = ErrorKind.LINK_LOST


class SendFailedError(SlideRemoteError):
    """I/O error while sending a frame mid-session."""

    kind = ErrorKind.SEND_FAILED


class EncodeError(SlideRemoteError):
    """A value that is not a command was handed to the codec."""

    kind = ErrorKind.ENCODE_ERROR


class DecodeError(SlideRemoteError):
    """A wire frame does not describe a recognized command."""

    kind = ErrorKind.DECODE_ERROR


class ConnectSupersededError(SlideRemoteError):
    """A newer open() or close() replaced this connection attempt."""

    kind = ErrorKind.SUPERSEDED


class ConfigError(SlideRemoteError):
    """Engine configuration could not be loaded."""

    kind = ErrorKind.CONFIG_INVALID
