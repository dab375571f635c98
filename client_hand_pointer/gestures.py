"""
Pinch Gestures - Hysteresis state machine and tap classification.

A pinch is the thumb tip touching the middle fingertip. Two thresholds
(enter < exit) leave a dead zone so landmark noise around a single boundary
cannot toggle the state every frame. Each activation is classified as a
single tap or a double tap from the time since the previous activation.
"""

import enum
import logging
from typing import Optional

from .message import DoubleTapEvent, GestureEvent, PinchEvent

logger = logging.getLogger(__name__)


class PinchState(enum.Enum):
    IDLE = "idle"
    ACTIVE = "active"


class PinchTransition(enum.Enum):
    """Per-frame classification of the pinch state machine."""
    START = "start"  # IDLE -> ACTIVE
    END = "end"      # ACTIVE -> IDLE
    HOLD = "hold"    # still ACTIVE
    NONE = "none"    # still IDLE


class PinchStateMachine:
    """
    Hysteresis state machine for the pinch gesture.

    IDLE -> ACTIVE when distance < enter_threshold.
    ACTIVE -> IDLE when distance > exit_threshold.
    Anything in between keeps the current state.
    """

    def __init__(self, enter_threshold: float = 0.035, exit_threshold: float = 0.05):
        """
        Initialize the state machine.

        Args:
            enter_threshold: Distance below which an idle hand starts pinching
            exit_threshold: Distance above which an active pinch is released.
                Must be strictly greater than enter_threshold.
        """
        if exit_threshold <= enter_threshold:
            raise ValueError(
                f"exit_threshold ({exit_threshold}) must be greater than "
                f"enter_threshold ({enter_threshold})"
            )
        self.enter_threshold = enter_threshold
        self.exit_threshold = exit_threshold
        self.state = PinchState.IDLE

    @property
    def active(self) -> bool:
        return self.state is PinchState.ACTIVE

    def update(self, distance: float) -> PinchTransition:
        """Feed one frame's thumb-middle distance, return the classification."""
        if self.state is PinchState.IDLE:
            if distance < self.enter_threshold:
                self.state = PinchState.ACTIVE
                return PinchTransition.START
            return PinchTransition.NONE

        if distance > self.exit_threshold:
            self.state = PinchState.IDLE
            return PinchTransition.END
        return PinchTransition.HOLD

    def reset(self) -> None:
        self.state = PinchState.IDLE


class TapClassifier:
    """
    Single vs. double tap classification.

    Sliding two-event window: every activation is compared with the one
    before it and then becomes the reference for the next one, whether it
    was judged single or double. Three quick activations therefore give
    (pinch, double-tap, double-tap).
    """

    def __init__(self, double_tap_window_ms: float = 400.0):
        self.double_tap_window_ms = double_tap_window_ms
        self.last_activation_ms: Optional[float] = None

    def classify(self, now_ms: float) -> GestureEvent:
        """Classify an activation at now_ms and record it."""
        last = self.last_activation_ms
        self.last_activation_ms = now_ms

        if last is not None and now_ms - last < self.double_tap_window_ms:
            logger.debug(f"Double tap ({now_ms - last:.0f}ms since last activation)")
            return DoubleTapEvent()
        return PinchEvent()

    def reset(self) -> None:
        self.last_activation_ms = None
