"""
Cursor Filter - Screen mapping and exponential smoothing.

The index fingertip's normalized coordinates are mapped to screen pixels
(mirrored horizontally, since the camera view faces the user) and blended
with the previous output to suppress per-frame landmark jitter.
"""

from typing import Tuple


def map_to_screen(x: float, y: float, width: float, height: float) -> Tuple[float, float]:
    """Map normalized landmark coordinates to screen space with horizontal flip."""
    return (1.0 - x) * width, y * height


def smooth(prior: float, target: float, alpha: float) -> float:
    """Exponential smoothing. Higher alpha = heavier smoothing, more latency."""
    return prior * alpha + target * (1.0 - alpha)


class CursorFilter:
    """
    Smoothed cursor position for one session.

    The prior position starts at (0, 0), so the first update jumps a long
    way toward the hand. That startup artifact is accepted.
    """

    def __init__(
        self,
        screen_width: float,
        screen_height: float,
        alpha: float = 0.75,
    ):
        if not 0.0 < alpha < 1.0:
            raise ValueError(f"alpha must be in (0, 1), got {alpha}")
        if screen_width <= 0 or screen_height <= 0:
            raise ValueError(
                f"Screen size must be positive, got {screen_width}x{screen_height}"
            )
        self.screen_width = screen_width
        self.screen_height = screen_height
        self.alpha = alpha

    def target(self, x: float, y: float) -> Tuple[float, float]:
        return map_to_screen(x, y, self.screen_width, self.screen_height)

    def update(self, prior: Tuple[float, float], x: float, y: float) -> Tuple[float, float]:
        """
        Compute the next smoothed position.

        Args:
            prior: Previous smoothed position in pixels
            x: Normalized landmark x
            y: Normalized landmark y

        Returns:
            New smoothed position in pixels
        """
        tx, ty = self.target(x, y)
        return smooth(prior[0], tx, self.alpha), smooth(prior[1], ty, self.alpha)
