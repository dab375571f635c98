"""
Gesture Event Schema and Validation.

Defines the JSON message format sent from the tracking client to the
executor and validates outgoing events before transmission.
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Tuple, Union

logger = logging.getLogger(__name__)

ACTION_CURSOR = "cursor"
ACTION_PINCH = "pinch"
ACTION_DOUBLE_TAP = "double-tap"

ACTIONS = (ACTION_CURSOR, ACTION_PINCH, ACTION_DOUBLE_TAP)


@dataclass(frozen=True)
class CursorEvent:
    """
    Move the pointer.

    Attributes:
        x: Absolute screen x in pixels (rounded by the executor)
        y: Absolute screen y in pixels (rounded by the executor)
    """
    x: float
    y: float

    action = ACTION_CURSOR

    def to_payload(self) -> Dict[str, Any]:
        return {"action": self.action, "x": self.x, "y": self.y}

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_payload())


@dataclass(frozen=True)
class PinchEvent:
    """Single tap (pinch activation)."""

    action = ACTION_PINCH

    def to_payload(self) -> Dict[str, Any]:
        return {"action": self.action}

    def to_json(self) -> str:
        return json.dumps(self.to_payload())


@dataclass(frozen=True)
class DoubleTapEvent:
    """Second pinch activation inside the double-tap window."""

    action = ACTION_DOUBLE_TAP

    def to_payload(self) -> Dict[str, Any]:
        return {"action": self.action}

    def to_json(self) -> str:
        return json.dumps(self.to_payload())


GestureEvent = Union[CursorEvent, PinchEvent, DoubleTapEvent]


def event_from_payload(payload: Dict[str, Any]) -> GestureEvent:
    """
    Decode a gesture event from its JSON payload.

    Raises:
        ValueError: If the action is unknown or cursor coordinates are invalid
    """
    action = payload.get("action")
    if action == ACTION_CURSOR:
        try:
            return CursorEvent(x=float(payload["x"]), y=float(payload["y"]))
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid cursor payload: {payload}") from e
    if action == ACTION_PINCH:
        return PinchEvent()
    if action == ACTION_DOUBLE_TAP:
        return DoubleTapEvent()
    raise ValueError(f"Unknown action: {action!r}")


def event_from_json(data: str) -> GestureEvent:
    """Deserialize from JSON string."""
    payload = json.loads(data)
    if not isinstance(payload, dict):
        raise ValueError("Gesture message must be a JSON object")
    return event_from_payload(payload)


class EventValidator:
    """
    Validates outgoing gesture events before transmission.

    Ensures:
    - the action is one of the known actions
    - cursor coordinates are finite (not NaN/Inf)
    """

    def __init__(self):
        self._dropped_count: int = 0
        self._validated_count: int = 0

    def validate(self, event: GestureEvent) -> Tuple[bool, str]:
        """
        Validate a gesture event.

        Returns:
            Tuple of (is_valid, reason_string)
        """
        if event.action not in ACTIONS:
            self._dropped_count += 1
            logger.warning(f"Invalid event: unknown action {event.action!r}")
            return False, "unknown_action"

        if isinstance(event, CursorEvent):
            if not (math.isfinite(event.x) and math.isfinite(event.y)):
                self._dropped_count += 1
                logger.warning(
                    f"Invalid event: cursor ({event.x}, {event.y}) is not finite"
                )
                return False, "cursor_not_finite"

        self._validated_count += 1
        return True, "ok"

    def get_stats(self) -> dict:
        """Get validation statistics."""
        total = self._validated_count + self._dropped_count
        return {
            "total_events": total,
            "validated": self._validated_count,
            "dropped": self._dropped_count,
            "drop_rate": self._dropped_count / total if total > 0 else 0.0,
        }

    def reset_stats(self) -> None:
        """Reset statistics counters."""
        self._dropped_count = 0
        self._validated_count = 0
