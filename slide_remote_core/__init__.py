"""Connection and command engine for a presentation remote."""

__version__ = "0.1.0"

from .commands import (
    BLACK_SCREEN,
    END_PRESENTATION,
    FIRST_SLIDE,
    LAST_SLIDE,
    MUTE,
    NEXT,
    PRESENTATION_VIEW,
    PREVIOUS,
    START_PRESENTATION,
    TOGGLE_POINTER,
    VOLUME_DOWN,
    VOLUME_UP,
    WHITE_SCREEN,
    Command,
    CommandKind,
    PointerMove,
    SimpleCommand,
)
from .config import EngineConfig, load_config
from .engine import SlideRemoteEngine
from .errors import (
    AddressInvalidError,
    ConfigError,
    ConnectRefusedError,
    ConnectTimeoutError,
    DecodeError,
    EncodeError,
    ErrorKind,
    LinkLostError,
    NotConnectedError,
    SendFailedError,
    SlideRemoteError,
)
from .protocol import Frame, TargetAddress, decode, encode, parse_address
from .settings import (
    ConnectionHistoryEntry,
    InMemorySettingsProvider,
    SettingsProvider,
    YamlSettingsProvider,
)
from .state import ConnectionStatus, SessionState, SessionStateStore

__all__ = [
    "BLACK_SCREEN",
    "END_PRESENTATION",
    "FIRST_SLIDE",
    "LAST_SLIDE",
    "MUTE",
    "NEXT",
    "PRESENTATION_VIEW",
    "PREVIOUS",
    "START_PRESENTATION",
    "TOGGLE_POINTER",
    "VOLUME_DOWN",
    "VOLUME_UP",
    "WHITE_SCREEN",
    "AddressInvalidError",
    "Command",
    "CommandKind",
    "ConfigError",
    "ConnectRefusedError",
    "ConnectTimeoutError",
    "ConnectionHistoryEntry",
    "ConnectionStatus",
    "DecodeError",
    "EncodeError",
    "EngineConfig",
    "ErrorKind",
    "Frame",
    "InMemorySettingsProvider",
    "LinkLostError",
    "NotConnectedError",
    "PointerMove",
    "SendFailedError",
    "SessionState",
    "SessionStateStore",
    "SettingsProvider",
    "SimpleCommand",
    "SlideRemoteEngine",
    "SlideRemoteError",
    "TargetAddress",
    "YamlSettingsProvider",
    "__version__",
    "decode",
    "encode",
    "load_config",
    "parse_address",
]
