"""Settings providers and connection history.

The engine only depends on the ``SettingsProvider`` protocol. Two providers
ship with the package: an in-memory one and one persisting to a YAML file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

import yaml

_LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 10


@dataclass(frozen=True)
class ConnectionHistoryEntry:
    """A receiver the remote has connected to.

    Attributes:
        address: Receiver address as ``host:port``.
        last_connected_at: Time of the most recent successful connection.
    """

    address: str
    last_connected_at: datetime


class SettingsProvider(Protocol):
    """Settings collaborator used by the engine."""

    auto_reconnect: bool

    def load(self) -> list[ConnectionHistoryEntry]: ...

    def save(self, entry: ConnectionHistoryEntry) -> None: ...


def merge_history(
    history: list[ConnectionHistoryEntry],
    entry: ConnectionHistoryEntry,
    *,
    max_entries: int = DEFAULT_MAX_ENTRIES,
) -> list[ConnectionHistoryEntry]:
    """Insert or refresh ``entry``, most recent first, unique by address."""
    merged = [entry] + [item for item in history if item.address != entry.address]
    merged.sort(key=lambda item: item.last_connected_at, reverse=True)
    return merged[:max_entries]


class InMemorySettingsProvider:
    """Settings kept in memory only."""

    def __init__(
        self,
        *,
        auto_reconnect: bool = True,
        history: list[ConnectionHistoryEntry] | None = None,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        self.auto_reconnect = auto_reconnect
        self._history = list(history or [])
        self._max_entries = max_entries

    def load(self) -> list[ConnectionHistoryEntry]:
        return list(self._history)

    def save(self, entry: ConnectionHistoryEntry) -> None:
        self._history = merge_history(
            self._history, entry, max_entries=self._max_entries
        )


class YamlSettingsProvider:
    """Settings persisted to a YAML file.

    File layout::

        auto_reconnect: true
        history:
          - address: 192.168.1.5:8080
            last_connected_at: '2026-10-17T09:30:00+00:00'
    """

    def __init__(self, path: Path, *, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self._path = Path(path)
        self._max_entries = max_entries
        data = self._read()
        self._auto_reconnect = bool(data.get("auto_reconnect", True))
        self._history = self._parse_history(data.get("history") or [])

    @property
    def auto_reconnect(self) -> bool:
        return self._auto_reconnect

    @auto_reconnect.setter
    def auto_reconnect(self, value: bool) -> None:
        self._auto_reconnect = bool(value)
        self._write()

    def load(self) -> list[ConnectionHistoryEntry]:
        return list(self._history)

    def save(self, entry: ConnectionHistoryEntry) -> None:
        self._history = merge_history(
            self._history, entry, max_entries=self._max_entries
        )
        self._write()

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open() as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as err:
            _LOGGER.warning("Ignoring unreadable settings %s: %s", self._path, err)
            return {}
        if not isinstance(data, dict):
            _LOGGER.warning("Ignoring malformed settings %s", self._path)
            return {}
        return data

    def _parse_history(self, items: Any) -> list[ConnectionHistoryEntry]:
        history: list[ConnectionHistoryEntry] = []
        if not isinstance(items, list):
            return history
        for item in items:
            try:
                stamp = item["last_connected_at"]
                if not isinstance(stamp, datetime):
                    stamp = datetime.fromisoformat(str(stamp))
                entry = ConnectionHistoryEntry(
                    address=str(item["address"]), last_connected_at=stamp
                )
            except (KeyError, TypeError, ValueError) as err:
                _LOGGER.debug("Skipping history entry %r: %s", item, err)
                continue
            history = merge_history(history, entry, max_entries=self._max_entries)
        return history

    def _write(self) -> None:
        data = {
            "auto_reconnect": self._auto_reconnect,
            "history": [
                {
                    "address": item.address,
                    "last_connected_at": item.last_connected_at.isoformat(),
                }
                for item in self._history
            ],
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("w") as f:
            yaml.safe_dump(data, f, sort_keys=False)
