import asyncio
import json

import httpx

from client_hand_pointer.dispatch import (
    DEFAULT_SCREEN_SIZE,
    HttpDispatcher,
    fetch_screen_size,
)
from client_hand_pointer.message import CursorEvent, DoubleTapEvent, PinchEvent
from client_hand_pointer.ws_client import websocket_url


def _recording_transport(received, status=200):
    def handler(request: httpx.Request) -> httpx.Response:
        received.append((request.url.path, json.loads(request.content)))
        return httpx.Response(status, json={"ok": status == 200})

    return httpx.MockTransport(handler)


def test_send_posts_each_event():
    received = []

    async def scenario():
        dispatcher = HttpDispatcher(
            "http://executor:4000/", transport=_recording_transport(received)
        )
        await dispatcher.start()
        dispatcher.send(CursorEvent(100.0, 200.0))
        dispatcher.send(PinchEvent())
        dispatcher.send(DoubleTapEvent())
        await dispatcher.stop()
        return dispatcher.get_stats()

    stats = asyncio.run(scenario())
    assert received == [
        ("/gesture", {"action": "cursor", "x": 100.0, "y": 200.0}),
        ("/gesture", {"action": "pinch"}),
        ("/gesture", {"action": "double-tap"}),
    ]
    assert stats["messages_sent"] == 3
    assert stats["messages_failed"] == 0


def test_send_returns_before_delivery():
    received = []

    async def scenario():
        dispatcher = HttpDispatcher(
            "http://executor:4000", transport=_recording_transport(received)
        )
        await dispatcher.start()
        result = dispatcher.send(PinchEvent())
        delivered_at_return = len(received)
        await dispatcher.stop()
        return result, delivered_at_return

    result, delivered_at_return = asyncio.run(scenario())
    assert result is None
    assert delivered_at_return == 0
    assert len(received) == 1


def test_failures_are_counted_not_raised():
    def handler(request):
        raise httpx.ConnectError("executor down", request=request)

    async def scenario():
        dispatcher = HttpDispatcher(
            "http://executor:4000", transport=httpx.MockTransport(handler)
        )
        await dispatcher.start()
        dispatcher.send(CursorEvent(1.0, 1.0))
        dispatcher.send(PinchEvent())
        await dispatcher.stop()
        return dispatcher.get_stats()

    stats = asyncio.run(scenario())
    assert stats["messages_failed"] == 2
    assert stats["messages_sent"] == 0


def test_error_status_counts_as_failure():
    received = []

    async def scenario():
        dispatcher = HttpDispatcher(
            "http://executor:4000", transport=_recording_transport(received, status=500)
        )
        await dispatcher.start()
        dispatcher.send(PinchEvent())
        await dispatcher.stop()
        return dispatcher.get_stats()

    stats = asyncio.run(scenario())
    assert stats["messages_failed"] == 1


def test_send_before_start_is_dropped():
    dispatcher = HttpDispatcher("http://executor:4000")
    dispatcher.send(PinchEvent())
    assert dispatcher.get_stats()["messages_failed"] == 1


def test_fetch_screen_size_from_health():
    def handler(request):
        assert request.url.path == "/health"
        return httpx.Response(200, json={"status": "ok", "screen": {"width": 2560, "height": 1440}})

    size = asyncio.run(
        fetch_screen_size("http://executor:4000", transport=httpx.MockTransport(handler))
    )
    assert size == (2560, 1440)


def test_fetch_screen_size_falls_back():
    def unknown(request):
        return httpx.Response(200, json={"status": "ok", "screen": None})

    def down(request):
        raise httpx.ConnectError("refused", request=request)

    for handler in (unknown, down):
        size = asyncio.run(
            fetch_screen_size("http://executor:4000", transport=httpx.MockTransport(handler))
        )
        assert size == DEFAULT_SCREEN_SIZE


def test_websocket_url():
    assert websocket_url("http://127.0.0.1:4000") == "ws://127.0.0.1:4000/control"
    assert websocket_url("https://host/") == "wss://host/control"
