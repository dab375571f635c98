"""
Action decoding for the executor.

Maps a received gesture payload 1:1 onto a host pointer command.
"""

import math
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class MoveTo:
    """Move the pointer to integer screen coordinates."""
    x: int
    y: int


@dataclass(frozen=True)
class Click:
    pass


@dataclass(frozen=True)
class DoubleClick:
    pass


ActionCommand = Union[MoveTo, Click, DoubleClick]


class UnknownAction(ValueError):
    """The payload names an action the executor does not map."""


class MalformedAction(ValueError):
    """The payload is not a usable gesture message."""


def _coordinate(payload: dict, key: str) -> int:
    try:
        value = float(payload[key])
    except KeyError:
        raise MalformedAction(f"cursor action is missing '{key}'")
    except (TypeError, ValueError, OverflowError):
        raise MalformedAction(f"cursor '{key}' is not a number: {payload[key]!r}")
    if not math.isfinite(value):
        raise MalformedAction(f"cursor '{key}' is not finite: {value}")
    # Half-up rounding, round() would send 0.5 to 0
    return math.floor(value + 0.5)


def decode_action(payload: Any) -> ActionCommand:
    """
    Decode a gesture payload into a pointer command.

    Raises:
        MalformedAction: payload is not an object or cursor coordinates are bad
        UnknownAction: action is not cursor/pinch/double-tap
    """
    if not isinstance(payload, dict):
        raise MalformedAction("gesture message must be a JSON object")

    action = payload.get("action")
    if action == "cursor":
        return MoveTo(_coordinate(payload, "x"), _coordinate(payload, "y"))
    if action == "pinch":
        return Click()
    if action == "double-tap":
        return DoubleClick()
    raise UnknownAction(f"unknown action: {action!r}")
