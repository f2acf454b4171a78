"""Engine configuration.

Defaults suit a phone on a home or conference Wi-Fi. A YAML file may override
any field::

    connect_timeout: 5
    retry_max_delay: 20
    pointer_interval: 0.05
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .sequencer import DEFAULT_POINTER_INTERVAL
from .supervisor import BackoffPolicy


@dataclass(frozen=True)
class EngineConfig:
    """Tunables for the remote engine.

    Attributes:
        path: WebSocket path on the receiver.
        connect_timeout: Seconds before an open attempt fails.
        ping_interval: Keepalive ping interval in seconds, None disables.
        retry_base_delay: Delay before the first automatic retry.
        retry_max_delay: Cap for retry delays.
        retry_factor: Multiplier applied to the delay after each attempt.
        retry_max_attempts: Stop retrying after this many attempts.
        pointer_interval: Minimum seconds between pointer frames.
    """

    path: str = "/"
    connect_timeout: float = 10.0
    ping_interval: int | None = 20
    retry_base_delay: float = 1.0
    retry_max_delay: float = 30.0
    retry_factor: float = 2.0
    retry_max_attempts: int | None = None
    pointer_interval: float = DEFAULT_POINTER_INTERVAL

    def __post_init__(self) -> None:
        if self.connect_timeout <= 0:
            raise ConfigError("connect_timeout must be positive")
        if self.retry_base_delay < 0 or self.retry_max_delay < self.retry_base_delay:
            raise ConfigError("retry delays must satisfy 0 <= base <= max")
        if self.retry_factor < 1:
            raise ConfigError("retry_factor must be at least 1")
        if self.retry_max_attempts is not None and self.retry_max_attempts < 0:
            raise ConfigError("retry_max_attempts must not be negative")
        if self.pointer_interval < 0:
            raise ConfigError("pointer_interval must not be negative")

    def backoff_policy(self) -> BackoffPolicy:
        return BackoffPolicy(
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
            factor=self.retry_factor,
            max_attempts=self.retry_max_attempts,
        )


def load_config(path: Path) -> EngineConfig:
    """Load engine configuration from a YAML file.

    Raises:
        ConfigError: If the file is missing, malformed or has unknown keys.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"File not found: {path}")
    try:
        with path.open() as f:
            data: Any = yaml.safe_load(f) or {}
    except yaml.YAMLError as err:
        raise ConfigError(f"Invalid YAML in {path}: {err}") from err

    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping: {path}")

    known = {f.name for f in fields(EngineConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    try:
        return EngineConfig(**data)
    except TypeError as err:
        raise ConfigError(f"Invalid config value: {err}") from err
