"""
Frame and Dispatch Gates - Timing policies for the tracking loop.

FrameGate throttles how often the detection-to-event pipeline runs relative
to the loop's wake-up frequency. DispatchLimiter caps the outbound cursor
update rate independently of the detection rate. DetectionGate wraps the
landmark source so a failing pose model never takes down the loop.
"""

import logging
from typing import Callable, List, Optional, Tuple

from .landmarks import LandmarkFrame

logger = logging.getLogger(__name__)


class _IntervalThrottle:
    """Lets an action through at most once per interval_ms."""

    def __init__(self, interval_ms: float):
        if interval_ms < 0:
            raise ValueError(f"interval_ms must be >= 0, got {interval_ms}")
        self.interval_ms = interval_ms
        self._last_ms: Optional[float] = None
        self._passed = 0
        self._suppressed = 0

    def _try(self, now_ms: float) -> bool:
        if self._last_ms is not None and now_ms - self._last_ms < self.interval_ms:
            self._suppressed += 1
            return False
        self._last_ms = now_ms
        self._passed += 1
        return True

    @property
    def last_ms(self) -> Optional[float]:
        return self._last_ms

    def reset(self) -> None:
        """Forget the last pass time (next call always proceeds)."""
        self._last_ms = None


class FrameGate(_IntervalThrottle):
    """
    Throttle for the detection pipeline.

    The tracking loop may wake far more often than detection should run.
    should_process() answers whether this wake-up runs the full pipeline;
    a skip is not a stop, the caller simply waits for the next wake-up.
    The "last processed" timestamp only moves when the gate proceeds.
    """

    def __init__(self, interval_ms: float = 30.0):
        """
        Initialize FrameGate.

        Args:
            interval_ms: Minimum time between processed frames
        """
        super().__init__(interval_ms)

    def should_process(self, now_ms: float) -> bool:
        """Return True if the pipeline should run at now_ms."""
        return self._try(now_ms)

    def get_stats(self) -> dict:
        """Get gate statistics."""
        total = self._passed + self._suppressed
        return {
            "total_ticks": total,
            "processed": self._passed,
            "skipped": self._suppressed,
            "last_processed_ms": self._last_ms,
        }


class DispatchLimiter(_IntervalThrottle):
    """
    Rate limiter for outbound cursor events.

    Only cursor updates go through the limiter; pinch and double-tap
    events are always sent immediately. The first request after an idle
    period always passes.
    """

    def __init__(self, interval_ms: float = 60.0):
        super().__init__(interval_ms)

    def try_acquire(self, now_ms: float) -> bool:
        """Return True and record now_ms if a cursor event may be sent."""
        return self._try(now_ms)

    def get_stats(self) -> dict:
        total = self._passed + self._suppressed
        return {
            "requested": total,
            "sent": self._passed,
            "suppressed": self._suppressed,
            "last_sent_ms": self._last_ms,
        }


class DetectionGate:
    """
    Gate for landmark source errors.

    Wraps each poll of the landmark source to catch exceptions and track
    detection failures that indicate a broken camera or model.
    """

    def __init__(self, max_consecutive_failures: int = 5):
        """
        Initialize DetectionGate.

        Args:
            max_consecutive_failures: Number of consecutive detection failures
                before marking the stream as problematic.
        """
        self.max_consecutive_failures = max_consecutive_failures
        self._consecutive_failures = 0
        self._total_failures = 0
        self._total_successes = 0

    def poll(self, read: Callable[[], List[LandmarkFrame]]) -> Tuple[bool, List[LandmarkFrame]]:
        """
        Poll the landmark source, catching exceptions.

        Args:
            read: Callable returning the hands detected in the current frame

        Returns:
            Tuple of (success, hands). hands is empty on failure.
        """
        try:
            hands = read()
        except Exception as e:
            self._consecutive_failures += 1
            self._total_failures += 1
            logger.warning(f"Landmark detection error: {e}")
            return False, []

        self._consecutive_failures = 0
        self._total_successes += 1
        return True, hands

    def is_stream_problematic(self) -> bool:
        """Check if the stream has too many consecutive failures."""
        return self._consecutive_failures >= self.max_consecutive_failures

    def reset(self) -> None:
        """Reset failure tracking."""
        self._consecutive_failures = 0

    def get_stats(self) -> dict:
        """Get detection statistics."""
        total = self._total_successes + self._total_failures
        return {
            "total_polls": total,
            "successes": self._total_successes,
            "failures": self._total_failures,
            "success_rate": self._total_successes / total if total > 0 else 0.0,
            "consecutive_failures": self._consecutive_failures,
        }
