from types import SimpleNamespace

import pytest

from client_hand_pointer.landmarks import (
    NUM_LANDMARKS,
    LandmarkFrame,
    Point3D,
    frames_from_results,
    landmark_distance,
    select_hand,
)

from conftest import make_frame


def _mp_hand(label, x=0.5):
    landmarks = SimpleNamespace(
        landmark=[SimpleNamespace(x=x, y=0.5, z=0.0) for _ in range(NUM_LANDMARKS)]
    )
    handedness = SimpleNamespace(classification=[SimpleNamespace(label=label)])
    return landmarks, handedness


def test_distance_is_3d():
    assert landmark_distance(Point3D(0, 0, 0), Point3D(3, 4, 12)) == pytest.approx(13.0)


def test_pinch_distance_uses_thumb_and_middle_tips():
    frame = make_frame(pinch_distance=0.04)
    assert frame.pinch_distance() == pytest.approx(0.04)


def test_cursor_point_is_index_tip():
    frame = make_frame(tip=(0.1, 0.9))
    assert frame.cursor_point[:2] == pytest.approx((0.1, 0.9))


def test_frame_requires_21_landmarks():
    with pytest.raises(ValueError):
        LandmarkFrame(tuple(Point3D(0, 0, 0) for _ in range(20)), "Left", 0.0)


def test_frame_is_immutable():
    frame = make_frame()
    with pytest.raises(AttributeError):
        frame.handedness = "Right"


def test_frame_accepts_plain_tuples():
    frame = LandmarkFrame([(0.1, 0.2, 0.3)] * NUM_LANDMARKS, "Right", 1.0)
    assert isinstance(frame.landmarks, tuple)
    assert frame[0] == Point3D(0.1, 0.2, 0.3)


def test_select_hand_by_label():
    left = make_frame(handedness="Left")
    right = make_frame(handedness="Right")
    assert select_hand([right, left], "Left") is left
    assert select_hand([right], "Left") is None
    assert select_hand([], "Right") is None


def test_frames_from_results():
    lm_a, hd_a = _mp_hand("Right", x=0.2)
    lm_b, hd_b = _mp_hand("Left", x=0.7)
    results = SimpleNamespace(
        multi_hand_landmarks=[lm_a, lm_b],
        multi_handedness=[hd_a, hd_b],
    )
    frames = frames_from_results(results, 123.0)
    assert [f.handedness for f in frames] == ["Right", "Left"]
    assert frames[1].cursor_point.x == pytest.approx(0.7)
    assert all(f.timestamp_ms == 123.0 for f in frames)


def test_frames_from_empty_results():
    results = SimpleNamespace(multi_hand_landmarks=None, multi_handedness=None)
    assert frames_from_results(results, 0.0) == []
