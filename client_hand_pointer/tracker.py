"""
Hand Tracker - Landmark frames to debounced pointer gestures.

HandTracker is the per-session pipeline. Each processed frame goes through:
- hand selection (one controlling hand by handedness label)
- cursor mapping and smoothing, rate limited for dispatch
- pinch hysteresis
- single/double tap classification on pinch activation

tick() returns the gesture events to dispatch for that frame. It never
performs I/O, so the pipeline runs without a camera or a network.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .cursor_filter import CursorFilter
from .frame_gate import DispatchLimiter, FrameGate
from .gestures import PinchStateMachine, PinchTransition, TapClassifier
from .landmarks import HANDEDNESS_LABELS, LandmarkFrame, is_finite_point, select_hand
from .message import CursorEvent, GestureEvent

logger = logging.getLogger(__name__)


@dataclass
class TrackerConfig:
    """
    Tuning for one tracking session.

    Attributes:
        screen_width: Target screen width in pixels
        screen_height: Target screen height in pixels
        smoothing: Exponential smoothing coefficient in (0, 1)
        pinch_enter: Thumb-middle distance that starts a pinch
        pinch_exit: Thumb-middle distance that releases a pinch
        double_tap_ms: Max gap between activations for a double tap
        cursor_interval_ms: Min time between cursor dispatches
        frame_interval_ms: Min time between processed frames
        hand: Handedness label of the controlling hand
    """
    screen_width: int = 1920
    screen_height: int = 1080
    smoothing: float = 0.75
    pinch_enter: float = 0.035
    pinch_exit: float = 0.05
    double_tap_ms: float = 400.0
    cursor_interval_ms: float = 60.0
    frame_interval_ms: float = 30.0
    hand: str = "Left"

    def __post_init__(self):
        if not 0.0 < self.smoothing < 1.0:
            raise ValueError(f"smoothing must be in (0, 1), got {self.smoothing}")
        if self.pinch_exit <= self.pinch_enter:
            raise ValueError(
                f"pinch_exit ({self.pinch_exit}) must be greater than "
                f"pinch_enter ({self.pinch_enter})"
            )
        if self.screen_width <= 0 or self.screen_height <= 0:
            raise ValueError(
                f"Screen size must be positive, got {self.screen_width}x{self.screen_height}"
            )
        for name in ("double_tap_ms", "cursor_interval_ms", "frame_interval_ms"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.hand not in HANDEDNESS_LABELS:
            raise ValueError(f"hand must be one of {HANDEDNESS_LABELS}, got {self.hand!r}")


@dataclass
class TrackerState:
    """Session state carried across frames."""
    x: float = 0.0
    y: float = 0.0
    last_dispatch_ms: Optional[float] = None
    last_frame_ms: Optional[float] = None
    pinching: bool = False
    last_pinch_ms: Optional[float] = None
    smoothing: float = 0.75
    hand_present: bool = False


class HandTracker:
    """
    Per-session landmark-to-gesture pipeline.

    One instance per tracked hand / client session. Nothing is shared
    between instances.
    """

    def __init__(self, config: Optional[TrackerConfig] = None):
        self.config = config or TrackerConfig()

        self.frame_gate = FrameGate(self.config.frame_interval_ms)
        self.limiter = DispatchLimiter(self.config.cursor_interval_ms)
        self.cursor = CursorFilter(
            self.config.screen_width,
            self.config.screen_height,
            alpha=self.config.smoothing,
        )
        self.pinch = PinchStateMachine(self.config.pinch_enter, self.config.pinch_exit)
        self.taps = TapClassifier(self.config.double_tap_ms)

        self._position: Tuple[float, float] = (0.0, 0.0)
        self._hand_present = False
        self.last_transition = PinchTransition.NONE

    @property
    def state(self) -> TrackerState:
        """Current session state."""
        return TrackerState(
            x=self._position[0],
            y=self._position[1],
            last_dispatch_ms=self.limiter.last_ms,
            last_frame_ms=self.frame_gate.last_ms,
            pinching=self.pinch.active,
            last_pinch_ms=self.taps.last_activation_ms,
            smoothing=self.cursor.alpha,
            hand_present=self._hand_present,
        )

    @property
    def position(self) -> Tuple[float, float]:
        return self._position

    def should_process(self, now_ms: float) -> bool:
        """Frame gate check, run before polling the landmark source."""
        return self.frame_gate.should_process(now_ms)

    def tick(
        self,
        hands: Sequence[LandmarkFrame],
        now_ms: Optional[float] = None,
    ) -> List[GestureEvent]:
        """
        Run the pipeline on one processed frame.

        Args:
            hands: All hands detected in the frame
            now_ms: Processing time; defaults to the controlling hand's
                capture timestamp

        Returns:
            Events to dispatch, cursor update first
        """
        hand = select_hand(hands, self.config.hand)
        if hand is None:
            if self._hand_present:
                logger.info(f"{self.config.hand} hand lost")
            self._hand_present = False
            return []

        if not self._hand_present:
            logger.info(f"{self.config.hand} hand found")
        self._hand_present = True

        now = hand.timestamp_ms if now_ms is None else now_ms
        events: List[GestureEvent] = []

        cursor_event = self._update_cursor(hand, now)
        if cursor_event is not None:
            events.append(cursor_event)

        tap_event = self._update_pinch(hand, now)
        if tap_event is not None:
            events.append(tap_event)

        return events

    def _update_cursor(self, hand: LandmarkFrame, now: float) -> Optional[CursorEvent]:
        tip = hand.cursor_point
        if not is_finite_point(tip):
            logger.debug("Skipping non-finite cursor landmark")
            return None

        self._position = self.cursor.update(self._position, tip.x, tip.y)

        if not self.limiter.try_acquire(now):
            return None
        return CursorEvent(x=self._position[0], y=self._position[1])

    def _update_pinch(self, hand: LandmarkFrame, now: float) -> Optional[GestureEvent]:
        transition = self.pinch.update(hand.pinch_distance())
        self.last_transition = transition

        if transition is PinchTransition.START:
            event = self.taps.classify(now)
            logger.info(f"Pinch started -> {event.action}")
            return event
        if transition is PinchTransition.END:
            logger.debug("Pinch released")
        return None

    def reset(self) -> None:
        """Restore the initial state (session restart)."""
        self.frame_gate.reset()
        self.limiter.reset()
        self.pinch.reset()
        self.taps.reset()
        self._position = (0.0, 0.0)
        self._hand_present = False
        self.last_transition = PinchTransition.NONE
