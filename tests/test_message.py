import json

import pytest

from client_hand_pointer.message import (
    CursorEvent,
    DoubleTapEvent,
    EventValidator,
    PinchEvent,
    event_from_json,
    event_from_payload,
)


def test_wire_payloads():
    assert json.loads(CursorEvent(10.5, 20.25).to_json()) == {
        "action": "cursor",
        "x": 10.5,
        "y": 20.25,
    }
    assert PinchEvent().to_payload() == {"action": "pinch"}
    assert DoubleTapEvent().to_payload() == {"action": "double-tap"}


def test_decode_events():
    assert event_from_json('{"action": "double-tap"}') == DoubleTapEvent()
    assert event_from_payload({"action": "cursor", "x": "3", "y": 4}) == CursorEvent(3.0, 4.0)


@pytest.mark.parametrize(
    "payload",
    [
        {"action": "scroll"},
        {},
        {"action": "cursor", "x": 1},
        {"action": "cursor", "x": None, "y": 1},
    ],
)
def test_decode_rejects_bad_payloads(payload):
    with pytest.raises(ValueError):
        event_from_payload(payload)


def test_decode_rejects_non_object_json():
    with pytest.raises(ValueError):
        event_from_json("[1, 2]")


def test_validator_accepts_known_events():
    validator = EventValidator()
    for event in (CursorEvent(1.0, 2.0), PinchEvent(), DoubleTapEvent()):
        assert validator.validate(event) == (True, "ok")
    assert validator.get_stats()["validated"] == 3


@pytest.mark.parametrize("x,y", [(float("nan"), 1.0), (1.0, float("inf"))])
def test_validator_drops_non_finite_cursor(x, y):
    validator = EventValidator()
    assert validator.validate(CursorEvent(x, y)) == (False, "cursor_not_finite")
    stats = validator.get_stats()
    assert stats["dropped"] == 1
    assert stats["drop_rate"] == 1.0
