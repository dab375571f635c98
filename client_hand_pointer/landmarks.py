"""
Hand landmark model - 21-point hand frames and landmark geometry.

This module defines the immutable LandmarkFrame produced by the landmark
source for each detected hand, the MediaPipe landmark indices the pipeline
reads, and helpers to convert MediaPipe hand results into frames.
"""

import math
from dataclasses import dataclass
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

# ============================================================================
# MediaPipe Landmark Indices
# ============================================================================

NUM_LANDMARKS = 21

WRIST = 0
THUMB_CMC, THUMB_MCP, THUMB_IP, THUMB_TIP = 1, 2, 3, 4
INDEX_MCP, INDEX_PIP, INDEX_DIP, INDEX_TIP = 5, 6, 7, 8
MIDDLE_MCP, MIDDLE_PIP, MIDDLE_DIP, MIDDLE_TIP = 9, 10, 11, 12
RING_MCP, RING_PIP, RING_DIP, RING_TIP = 13, 14, 15, 16
PINKY_MCP, PINKY_PIP, PINKY_DIP, PINKY_TIP = 17, 18, 19, 20

# Landmarks driving the pointer
CURSOR_LANDMARK = INDEX_TIP
PINCH_LANDMARKS = (THUMB_TIP, MIDDLE_TIP)

HANDEDNESS_LABELS = ("Left", "Right")


class Point3D(NamedTuple):
    """Normalized landmark coordinates (x, y in [0, 1], z relative depth)."""
    x: float
    y: float
    z: float = 0.0


@dataclass(frozen=True)
class LandmarkFrame:
    """
    One detected hand for one video frame.

    Attributes:
        landmarks: The 21 hand keypoints in MediaPipe order
        handedness: "Left" or "Right" as classified by the pose model
        timestamp_ms: Capture time in milliseconds (monotonic)
    """
    landmarks: Tuple[Point3D, ...]
    handedness: str
    timestamp_ms: float

    def __post_init__(self):
        if len(self.landmarks) != NUM_LANDMARKS:
            raise ValueError(
                f"Expected {NUM_LANDMARKS} landmarks, got {len(self.landmarks)}"
            )
        # Freeze whatever sequence we were given
        object.__setattr__(
            self, "landmarks", tuple(Point3D(*p) for p in self.landmarks)
        )

    def __getitem__(self, index: int) -> Point3D:
        return self.landmarks[index]

    @property
    def cursor_point(self) -> Point3D:
        """Index fingertip, used for cursor positioning."""
        return self.landmarks[CURSOR_LANDMARK]

    def pinch_distance(self) -> float:
        """3-D distance between thumb tip and middle fingertip."""
        a, b = PINCH_LANDMARKS
        return landmark_distance(self.landmarks[a], self.landmarks[b])


# ============================================================================
# Geometry Helpers
# ============================================================================

def _v(p: Point3D) -> np.ndarray:
    """Get 3D vector from landmark."""
    return np.array([p.x, p.y, p.z], dtype=np.float64)


def landmark_distance(a: Point3D, b: Point3D) -> float:
    """Euclidean distance between two landmarks over (x, y, z)."""
    return float(np.linalg.norm(_v(a) - _v(b)))


def is_finite_point(p: Point3D) -> bool:
    return all(math.isfinite(c) for c in p)


# ============================================================================
# Hand Selection
# ============================================================================

def select_hand(hands: Sequence[LandmarkFrame], label: str) -> Optional[LandmarkFrame]:
    """
    Pick the controlling hand.

    Returns the first frame whose handedness matches label, or None.
    Other hands are ignored for control purposes.
    """
    for hand in hands:
        if hand.handedness == label:
            return hand
    return None


def frames_from_results(results: Any, timestamp_ms: float) -> List[LandmarkFrame]:
    """
    Convert MediaPipe hands processing results into LandmarkFrames.

    Args:
        results: MediaPipe hands results (multi_hand_landmarks/multi_handedness)
        timestamp_ms: Capture timestamp for all returned frames

    Returns:
        One LandmarkFrame per detected hand, in detection order
    """
    frames: List[LandmarkFrame] = []

    if not (results.multi_hand_landmarks and results.multi_handedness):
        return frames

    for lm, hd in zip(results.multi_hand_landmarks, results.multi_handedness):
        label = hd.classification[0].label
        points = tuple(Point3D(p.x, p.y, p.z) for p in lm.landmark)
        if len(points) != NUM_LANDMARKS:
            continue
        frames.append(LandmarkFrame(points, label, timestamp_ms))

    return frames
