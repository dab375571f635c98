"""
WebSocket Dispatcher for gesture events.

Alternative to the HTTP dispatcher for high cursor rates: one long-lived
connection to the executor's /control endpoint instead of a request per
event.

Handles:
- Async WebSocket connection
- Exponential backoff reconnection
- Message queue for decoupled sending
- Dropping (never replaying) events while disconnected
"""

import asyncio
import logging
import time
from typing import Optional, Callable, Awaitable
from dataclasses import dataclass

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import (
    ConnectionClosed,
    InvalidStatus,
    WebSocketException,
)

from .message import GestureEvent

logger = logging.getLogger(__name__)


def websocket_url(server_url: str) -> str:
    """Derive the executor's /control WebSocket URL from its HTTP base URL."""
    url = server_url.rstrip("/")
    if url.startswith("https://"):
        url = "wss://" + url[len("https://"):]
    elif url.startswith("http://"):
        url = "ws://" + url[len("http://"):]
    return url + "/control"


@dataclass
class ConnectionStats:
    """Statistics about WebSocket connection."""
    connected: bool = False
    connect_time: Optional[float] = None
    disconnect_time: Optional[float] = None
    reconnect_attempts: int = 0
    messages_sent: int = 0
    messages_failed: int = 0
    last_send_time: Optional[float] = None


class WebSocketDispatcher:
    """
    Async WebSocket dispatcher with automatic reconnection.

    Features:
    - Exponential backoff on connection failure (1s -> 30s max)
    - Non-blocking event sending via queue
    - Events produced while disconnected are dropped
    """

    def __init__(
        self,
        server_url: str,
        max_backoff_seconds: float = 30.0,
        initial_backoff_seconds: float = 1.0,
        queue_size: int = 100,
        on_connected: Optional[Callable[[], Awaitable[None]]] = None,
        on_disconnected: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        """
        Initialize WebSocket dispatcher.

        Args:
            server_url: WebSocket URL (e.g., ws://127.0.0.1:4000/control)
            max_backoff_seconds: Maximum backoff time between reconnect attempts
            initial_backoff_seconds: Initial backoff time
            queue_size: Maximum number of queued, unsent events
            on_connected: Callback when connection is established
            on_disconnected: Callback when connection is lost
        """
        self.server_url = server_url
        self.max_backoff = max_backoff_seconds
        self.initial_backoff = initial_backoff_seconds
        self.on_connected = on_connected
        self.on_disconnected = on_disconnected

        # Connection state
        self._ws: Optional[ClientConnection] = None
        self._connected = False
        self._running = False

        # Message queue
        self._send_queue: asyncio.Queue[Optional[str]] = asyncio.Queue(maxsize=queue_size)

        # Statistics
        self.stats = ConnectionStats()

        # Backoff state
        self._current_backoff = initial_backoff_seconds

        # Tasks
        self._connect_task: Optional[asyncio.Task] = None
        self._send_task: Optional[asyncio.Task] = None

    @property
    def connected(self) -> bool:
        """Check if currently connected."""
        return self._connected and self._ws is not None

    async def start(self) -> None:
        """Start the connection and sender tasks."""
        if self._running:
            return

        self._running = True
        self._connect_task = asyncio.create_task(self._connection_loop())
        self._send_task = asyncio.create_task(self._send_loop())

        logger.info(f"WebSocket dispatcher started, connecting to {self.server_url}")

    async def stop(self) -> None:
        """Stop the dispatcher and close the connection."""
        if not self._running:
            return

        logger.info("WebSocket dispatcher stopping...")
        self._running = False

        # Signal send loop to exit; drop queued events if it is full
        try:
            self._send_queue.put_nowait(None)
        except asyncio.QueueFull:
            pass

        for task in (self._connect_task, self._send_task):
            if task:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        if self._ws:
            await self._ws.close()
            self._ws = None

        self._connected = False
        logger.info("WebSocket dispatcher stopped")

    def send(self, event: GestureEvent) -> None:
        """
        Queue an event for sending.

        Non-blocking. The event is dropped if the queue is full.
        """
        try:
            self._send_queue.put_nowait(event.to_json())
        except asyncio.QueueFull:
            self.stats.messages_failed += 1
            logger.warning(f"Send queue full, dropping {event.action}")

    async def _connection_loop(self) -> None:
        """Main connection loop with automatic reconnection."""
        while self._running:
            try:
                await self._connect()

                # Reset backoff on successful connection
                self._current_backoff = self.initial_backoff

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Connection error: {e}")

            if not self._running:
                break

            # Exponential backoff before reconnect
            logger.info(f"Reconnecting in {self._current_backoff:.1f}s...")
            await asyncio.sleep(self._current_backoff)

            self._current_backoff = min(
                self._current_backoff * 2,
                self.max_backoff
            )
            self.stats.reconnect_attempts += 1

    async def _connect(self) -> None:
        """Establish the WebSocket connection and hold it until closed."""
        try:
            logger.info(f"Connecting to {self.server_url}...")

            self._ws = await connect(
                self.server_url,
                ping_interval=20,
                ping_timeout=10,
                close_timeout=5,
            )

            self._connected = True
            self.stats.connected = True
            self.stats.connect_time = time.time()

            logger.info("WebSocket connected successfully")

            if self.on_connected:
                await self.on_connected()

            # Keep connection alive by listening for messages
            try:
                async for message in self._ws:
                    logger.debug(f"Received from executor: {message}")
            except ConnectionClosed:
                pass

        except InvalidStatus as e:
            logger.error(f"Executor rejected connection: {e.response.status_code}")
            raise
        except ConnectionRefusedError:
            logger.error("Connection refused - is the executor running?")
            raise
        finally:
            self._connected = False
            self.stats.connected = False
            self.stats.disconnect_time = time.time()

            if self.on_disconnected:
                await self.on_disconnected()

    async def _send_loop(self) -> None:
        """Process outgoing message queue."""
        while self._running:
            try:
                message = await self._send_queue.get()

                # None is shutdown signal
                if message is None:
                    break

                if self.connected:
                    try:
                        await self._ws.send(message)
                        self.stats.messages_sent += 1
                        self.stats.last_send_time = time.time()
                    except (ConnectionClosed, WebSocketException) as e:
                        self.stats.messages_failed += 1
                        logger.warning(f"Send failed: {e}")
                else:
                    # Not connected, drop message
                    self.stats.messages_failed += 1

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Send loop error: {e}")

    def get_stats(self) -> dict:
        """Get connection statistics."""
        return {
            "connected": self.connected,
            "connect_time": self.stats.connect_time,
            "disconnect_time": self.stats.disconnect_time,
            "reconnect_attempts": self.stats.reconnect_attempts,
            "messages_sent": self.stats.messages_sent,
            "messages_failed": self.stats.messages_failed,
            "last_send_time": self.stats.last_send_time,
            "queue_size": self._send_queue.qsize(),
        }
