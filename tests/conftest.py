"""Shared test helpers."""

from client_hand_pointer.landmarks import (
    INDEX_TIP,
    MIDDLE_TIP,
    NUM_LANDMARKS,
    THUMB_TIP,
    LandmarkFrame,
    Point3D,
)


def make_frame(
    pinch_distance: float = 0.1,
    tip=(0.5, 0.5),
    handedness: str = "Left",
    timestamp_ms: float = 0.0,
) -> LandmarkFrame:
    """Hand with the index tip at tip and thumb/middle tips pinch_distance apart."""
    points = [Point3D(0.5, 0.6, 0.0)] * NUM_LANDMARKS
    points[INDEX_TIP] = Point3D(tip[0], tip[1], 0.0)
    points[THUMB_TIP] = Point3D(0.3, 0.7, 0.0)
    points[MIDDLE_TIP] = Point3D(0.3 + pinch_distance, 0.7, 0.0)
    return LandmarkFrame(tuple(points), handedness, timestamp_ms)
