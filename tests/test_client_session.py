import asyncio
import math
import threading

import pytest

from client_hand_pointer.main import HandPointerClient, parse_args
from client_hand_pointer.message import CursorEvent, PinchEvent
from client_hand_pointer.tracker import TrackerConfig

from conftest import make_frame


class ScriptedSource:
    """Landmark source replaying a script of hand lists and exceptions."""

    def __init__(self, script, on_empty=None):
        self.script = list(script)
        self.on_empty = on_empty
        self.reads = 0
        self.threads = set()
        self.opened = False
        self.closed = False

    def open(self):
        self.opened = True
        return True

    def read(self):
        self.reads += 1
        self.threads.add(threading.get_ident())
        if not self.script:
            if self.on_empty:
                self.on_empty()
            raise RuntimeError("camera frame lost")
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True


class RecordingDispatcher:
    def __init__(self):
        self.events = []

    def send(self, event):
        self.events.append(event)

    async def stop(self):
        pass

    def get_stats(self):
        return {"messages_sent": len(self.events)}


def _client(source, **overrides):
    config = TrackerConfig(**overrides)
    return HandPointerClient("http://executor:4000", config, source=source)


def test_frames_flow_to_dispatcher():
    source = ScriptedSource([
        [make_frame(pinch_distance=0.1, timestamp_ms=0.0)],
        RuntimeError("model crashed"),
        [make_frame(pinch_distance=0.02, timestamp_ms=30.0)],
    ])
    client = _client(source)
    client.dispatcher = RecordingDispatcher()

    async def scenario():
        for _ in range(3):
            await client._process_frame()
        return threading.get_ident()

    loop_thread = asyncio.run(scenario())

    events = client.dispatcher.events
    assert [type(event) for event in events] == [CursorEvent, PinchEvent]
    assert events[0] == CursorEvent(240.0, 135.0)
    # Detection runs on a worker thread, not the event loop
    assert loop_thread not in source.threads

    stats = client.get_stats()
    assert stats["detection"]["failures"] == 1
    assert stats["detection"]["successes"] == 2
    assert stats["validator"]["validated"] == 2


def test_invalid_cursor_is_not_dispatched():
    client = _client(ScriptedSource([]))
    client.dispatcher = RecordingDispatcher()

    client._dispatch(CursorEvent(math.nan, 10.0))
    client._dispatch(CursorEvent(10.0, math.inf))
    client._dispatch(PinchEvent())

    assert client.dispatcher.events == [PinchEvent()]
    assert client.get_stats()["validator"]["dropped"] == 2


def test_loop_keeps_running_through_detection_failures():
    client = None

    def stop_after_failures():
        if source.reads >= 8:
            client.request_stop()

    source = ScriptedSource(
        [RuntimeError("camera frame lost")] * 3
        + [[make_frame(timestamp_ms=0.0)]],
        on_empty=stop_after_failures,
    )
    client = _client(source, frame_interval_ms=0)
    client.dispatcher = RecordingDispatcher()
    client._running = True

    asyncio.run(client.run())

    assert source.reads >= 8
    assert [type(event) for event in client.dispatcher.events] == [CursorEvent]
    detection = client.get_stats()["detection"]
    assert detection["successes"] == 1
    assert detection["failures"] >= 7


def test_start_and_stop_manage_the_source():
    source = ScriptedSource([])

    async def scenario():
        client = _client(source)
        await client.start()
        assert client.dispatcher is not None
        await client.stop()
        return client

    client = asyncio.run(scenario())
    assert source.opened and source.closed
    assert client.dispatcher is None


def test_screen_size_override_needs_both_dimensions():
    args = parse_args(["--screen-width", "800", "--screen-height", "600"])
    assert (args.screen_width, args.screen_height) == (800, 600)

    args = parse_args([])
    assert args.screen_width is None and args.screen_height is None

    with pytest.raises(SystemExit):
        parse_args(["--screen-width", "800"])
    with pytest.raises(SystemExit):
        parse_args(["--screen-height", "600"])
