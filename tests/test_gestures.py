import pytest

from client_hand_pointer.gestures import (
    PinchState,
    PinchStateMachine,
    PinchTransition,
    TapClassifier,
)
from client_hand_pointer.message import DoubleTapEvent, PinchEvent


def test_starts_idle():
    machine = PinchStateMachine()
    assert machine.state is PinchState.IDLE
    assert not machine.active


def test_enter_below_enter_threshold():
    machine = PinchStateMachine(0.035, 0.05)
    assert machine.update(0.03) is PinchTransition.START
    assert machine.active


def test_no_enter_at_exact_threshold():
    machine = PinchStateMachine(0.035, 0.05)
    assert machine.update(0.035) is PinchTransition.NONE


def test_dead_zone_keeps_idle():
    machine = PinchStateMachine(0.035, 0.05)
    assert machine.update(0.04) is PinchTransition.NONE
    assert machine.state is PinchState.IDLE


def test_dead_zone_never_retriggers_once_active():
    machine = PinchStateMachine(0.035, 0.05)
    assert machine.update(0.02) is PinchTransition.START
    for d in [0.036, 0.04, 0.045, 0.05, 0.03, 0.049]:
        assert machine.update(d) is PinchTransition.HOLD
    assert machine.active


def test_exit_above_exit_threshold():
    machine = PinchStateMachine(0.035, 0.05)
    machine.update(0.02)
    assert machine.update(0.051) is PinchTransition.END
    assert machine.state is PinchState.IDLE


def test_cycles():
    machine = PinchStateMachine(0.035, 0.05)
    seq = [0.1, 0.02, 0.04, 0.06, 0.04, 0.01]
    result = [machine.update(d) for d in seq]
    assert result == [
        PinchTransition.NONE,
        PinchTransition.START,
        PinchTransition.HOLD,
        PinchTransition.END,
        PinchTransition.NONE,
        PinchTransition.START,
    ]


@pytest.mark.parametrize("enter,exit_", [(0.05, 0.05), (0.06, 0.05)])
def test_exit_must_exceed_enter(enter, exit_):
    with pytest.raises(ValueError):
        PinchStateMachine(enter, exit_)


def test_reset_returns_to_idle():
    machine = PinchStateMachine()
    machine.update(0.0)
    machine.reset()
    assert machine.state is PinchState.IDLE


def test_first_activation_is_single_pinch():
    taps = TapClassifier(300)
    assert taps.classify(0.0) == PinchEvent()


def test_quick_second_activation_is_double_tap():
    taps = TapClassifier(300)
    taps.classify(0.0)
    assert taps.classify(250.0) == DoubleTapEvent()


def test_slow_second_activation_is_single_pinch():
    taps = TapClassifier(300)
    taps.classify(0.0)
    assert taps.classify(500.0) == PinchEvent()


def test_gap_equal_to_window_is_single():
    taps = TapClassifier(300)
    taps.classify(0.0)
    assert taps.classify(300.0) == PinchEvent()


def test_window_slides_on_every_activation():
    taps = TapClassifier(300)
    events = [taps.classify(t) for t in (0.0, 200.0, 400.0)]
    assert events == [PinchEvent(), DoubleTapEvent(), DoubleTapEvent()]
    assert taps.last_activation_ms == 400.0


def test_reset_forgets_last_activation():
    taps = TapClassifier(300)
    taps.classify(0.0)
    taps.reset()
    assert taps.classify(100.0) == PinchEvent()
