"""Command values a remote can send to a presentation receiver.

Commands are immutable. Thirteen of them carry no data and are exposed as
module constants (``NEXT``, ``PREVIOUS``, ...); pointer movement carries a
position in percent of the receiver's screen.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar


class CommandKind(Enum):
    """Recognized commands, valued by their wire tag."""

    NEXT = "next"
    PREVIOUS = "previous"
    FIRST_SLIDE = "first_slide"
    LAST_SLIDE = "last_slide"
    START_PRESENTATION = "start_presentation"
    END_PRESENTATION = "end_presentation"
    TOGGLE_POINTER = "laser_pointer"
    POINTER_MOVE = "laser_pointer_move"
    BLACK_SCREEN = "black_screen"
    WHITE_SCREEN = "white_screen"
    PRESENTATION_VIEW = "presentation_view"
    VOLUME_UP = "volume_up"
    VOLUME_DOWN = "volume_down"
    MUTE = "mute"

    @classmethod
    def from_tag(cls, tag: str) -> CommandKind:
        """Look up a kind by wire tag, raising ValueError if unknown."""
        return cls(tag)


def clamp_percent(value: float) -> float:
    """Clamp a coordinate into [0, 100]; NaN becomes 0."""
    value = float(value)
    if math.isnan(value):
        return 0.0
    return min(100.0, max(0.0, value))


@dataclass(frozen=True)
class SimpleCommand:
    """A command without parameters."""

    kind: CommandKind

    def __post_init__(self) -> None:
        if self.kind is CommandKind.POINTER_MOVE:
            raise ValueError("Pointer movement requires coordinates, use PointerMove")


@dataclass(frozen=True)
class PointerMove:
    """Move the laser pointer to a position given in screen percent.

    Out-of-range values are clamped, never rejected.
    """

    x_percent: float = field(default=50.0)
    y_percent: float = field(default=50.0)

    kind: ClassVar[CommandKind] = CommandKind.POINTER_MOVE

    def __post_init__(self) -> None:
        object.__setattr__(self, "x_percent", clamp_percent(self.x_percent))
        object.__setattr__(self, "y_percent", clamp_percent(self.y_percent))


Command = SimpleCommand | PointerMove

NEXT = SimpleCommand(CommandKind.NEXT)
PREVIOUS = SimpleCommand(CommandKind.PREVIOUS)
FIRST_SLIDE = SimpleCommand(CommandKind.FIRST_SLIDE)
LAST_SLIDE = SimpleCommand(CommandKind.LAST_SLIDE)
START_PRESENTATION = SimpleCommand(CommandKind.START_PRESENTATION)
END_PRESENTATION = SimpleCommand(CommandKind.END_PRESENTATION)
TOGGLE_POINTER = SimpleCommand(CommandKind.TOGGLE_POINTER)
BLACK_SCREEN = SimpleCommand(CommandKind.BLACK_SCREEN)
WHITE_SCREEN = SimpleCommand(CommandKind.WHITE_SCREEN)
PRESENTATION_VIEW = SimpleCommand(CommandKind.PRESENTATION_VIEW)
VOLUME_UP = SimpleCommand(CommandKind.VOLUME_UP)
VOLUME_DOWN = SimpleCommand(CommandKind.VOLUME_DOWN)
MUTE = SimpleCommand(CommandKind.MUTE)

SIMPLE_COMMANDS: tuple[SimpleCommand, ...] = (
    NEXT,
    PREVIOUS,
    FIRST_SLIDE,
    LAST_SLIDE,
    START_PRESENTATION,
    END_PRESENTATION,
    TOGGLE_POINTER,
    BLACK_SCREEN,
    WHITE_SCREEN,
    PRESENTATION_VIEW,
    VOLUME_UP,
    VOLUME_DOWN,
    MUTE,
)
