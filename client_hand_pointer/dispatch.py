"""
HTTP Dispatcher for gesture events.

Handles:
- Fire-and-forget POST /gesture per event
- Never blocking the tracking loop on a request
- Logging and counting failures without retrying

Delivery is best-effort by policy: the cursor is a continuous stream, so
the next successful update carries the latest position and a lost event
needs no replay.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional, Set, Tuple

import httpx

from .message import GestureEvent

logger = logging.getLogger(__name__)

DEFAULT_SCREEN_SIZE = (1920, 1080)


@dataclass
class DispatchStats:
    """Statistics about event dispatch."""
    messages_sent: int = 0
    messages_failed: int = 0
    last_send_time: Optional[float] = None


class HttpDispatcher:
    """
    Async HTTP dispatcher.

    send() schedules the request as a task and returns immediately.
    Callers never see the outcome.
    """

    def __init__(
        self,
        server_url: str,
        path: str = "/gesture",
        timeout_seconds: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize dispatcher.

        Args:
            server_url: Executor base URL (e.g., http://127.0.0.1:4000)
            path: Gesture endpoint path
            timeout_seconds: Per-request timeout bounding resource use
            transport: Optional httpx transport (used for testing)
        """
        self.server_url = server_url.rstrip("/")
        self.path = path
        self.timeout = timeout_seconds
        self._transport = transport

        self._client: Optional[httpx.AsyncClient] = None
        self._pending: Set[asyncio.Task] = set()

        self.stats = DispatchStats()

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def start(self) -> None:
        """Open the HTTP connection pool."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self.server_url,
            timeout=self.timeout,
            transport=self._transport,
        )
        logger.info(f"HTTP dispatcher started, posting to {self.server_url}{self.path}")

    async def stop(self) -> None:
        """Let in-flight requests finish, then close the pool."""
        if self._client is None:
            return
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        await self._client.aclose()
        self._client = None
        logger.info("HTTP dispatcher stopped")

    def send(self, event: GestureEvent) -> None:
        """
        Dispatch an event without waiting for the response.

        The result is intentionally not returned.
        """
        if self._client is None:
            self.stats.messages_failed += 1
            logger.warning(f"Dispatcher not started, dropping {event.action}")
            return

        task = asyncio.create_task(self._post(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _post(self, event: GestureEvent) -> None:
        try:
            response = await self._client.post(self.path, json=event.to_payload())
            response.raise_for_status()
        except httpx.HTTPError as e:
            self.stats.messages_failed += 1
            logger.warning(f"Dispatch of {event.action} failed: {e}")
            return

        self.stats.messages_sent += 1
        self.stats.last_send_time = time.time()
        logger.debug(f"Dispatched {event.to_json()}")

    def get_stats(self) -> dict:
        """Get dispatch statistics."""
        return {
            "connected": self.connected,
            "messages_sent": self.stats.messages_sent,
            "messages_failed": self.stats.messages_failed,
            "last_send_time": self.stats.last_send_time,
            "in_flight": len(self._pending),
        }


async def fetch_screen_size(
    server_url: str,
    timeout_seconds: float = 2.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[int, int]:
    """
    Ask the executor for the host screen size.

    Falls back to DEFAULT_SCREEN_SIZE when the executor is unreachable or
    does not report a usable size.
    """
    url = server_url.rstrip("/")
    try:
        async with httpx.AsyncClient(
            base_url=url, timeout=timeout_seconds, transport=transport
        ) as client:
            response = await client.get("/health")
            response.raise_for_status()
            screen = response.json().get("screen") or {}
            width, height = int(screen["width"]), int(screen["height"])
    except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
        logger.warning(
            f"Could not read screen size from {url}/health ({e}), "
            f"using {DEFAULT_SCREEN_SIZE[0]}x{DEFAULT_SCREEN_SIZE[1]}"
        )
        return DEFAULT_SCREEN_SIZE

    if width <= 0 or height <= 0:
        logger.warning(f"Executor reported invalid screen size {width}x{height}")
        return DEFAULT_SCREEN_SIZE

    logger.info(f"Executor screen size: {width}x{height}")
    return width, height
