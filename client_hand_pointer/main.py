#!/usr/bin/env python3
"""
Hand Pointer Client - Main Entry Point

This client runs next to the camera, tracks one hand with MediaPipe, and
turns it into pointer gestures (cursor, pinch, double tap) sent to a
remote executor.

Usage:
    python -m client_hand_pointer.main --server http://127.0.0.1:4000 --camera 0
    python -m client_hand_pointer.main --server http://10.0.0.5:4000 --transport ws --hand Right
"""

import argparse
import asyncio
import logging
import signal
import sys
import time
from typing import List, Optional, Union

from .camera_source import CameraLandmarkSource
from .dispatch import HttpDispatcher, fetch_screen_size
from .frame_gate import DetectionGate
from .message import EventValidator, GestureEvent
from .tracker import HandTracker, TrackerConfig
from .ws_client import WebSocketDispatcher, websocket_url

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# How often the loop wakes to ask the frame gate
LOOP_SLEEP_SECONDS = 0.005

Dispatcher = Union[HttpDispatcher, WebSocketDispatcher]


class HandPointerClient:
    """
    Main client that integrates all components:
    - Camera capture and MediaPipe hand detection
    - Frame gate and detection gate
    - Hand tracker (cursor, pinch, taps)
    - Event validation
    - Fire-and-forget dispatch
    """

    def __init__(
        self,
        server_url: str,
        config: TrackerConfig,
        transport: str = "http",
        camera_index: int = 0,
        source=None,
    ):
        """
        Initialize the hand pointer client.

        Args:
            server_url: Executor base URL
            config: Tracker configuration
            transport: "http" or "ws"
            camera_index: Camera device index
            source: Landmark source with open/read/close (default: the camera)
        """
        self.server_url = server_url
        self.config = config
        self.transport = transport
        self.camera_index = camera_index

        # Components
        self.tracker = HandTracker(config)
        self.detection_gate = DetectionGate()
        self.validator = EventValidator()
        if source is None:
            source = CameraLandmarkSource(camera_index=camera_index)
        self.source = source
        self.dispatcher: Optional[Dispatcher] = None

        # State
        self._running = False
        self._problem_reported = False

    async def start(self) -> None:
        """Start the client."""
        logger.info("Starting Hand Pointer Client...")

        if not self.source.open():
            raise RuntimeError("Failed to initialize camera")

        if self.transport == "ws":
            self.dispatcher = WebSocketDispatcher(
                websocket_url(self.server_url),
                on_connected=self._on_connected,
                on_disconnected=self._on_disconnected,
            )
        else:
            self.dispatcher = HttpDispatcher(self.server_url)
        await self.dispatcher.start()

        self.tracker.reset()
        self._running = True
        logger.info(
            f"Hand Pointer Client started ({self.config.hand} hand, "
            f"{self.config.screen_width}x{self.config.screen_height})"
        )

    async def stop(self) -> None:
        """Stop the client and clean up resources."""
        logger.info("Stopping Hand Pointer Client...")
        self._running = False

        if self.dispatcher:
            await self.dispatcher.stop()
            self.dispatcher = None

        self.source.close()
        logger.info("Hand Pointer Client stopped")

    async def run(self) -> None:
        """Main tracking loop."""
        while self._running:
            now_ms = time.monotonic() * 1000.0

            if self.tracker.should_process(now_ms):
                try:
                    await self._process_frame()
                except Exception as e:
                    logger.error(f"Error in tracking loop: {e}")

            await asyncio.sleep(LOOP_SLEEP_SECONDS)

    def request_stop(self) -> None:
        """Stop scheduling ticks; run() returns after the current one."""
        self._running = False

    async def _process_frame(self) -> None:
        """Process a single frame through the pipeline."""
        loop = asyncio.get_running_loop()

        # Detection blocks, keep it off the event loop
        ok, hands = await loop.run_in_executor(
            None, self.detection_gate.poll, self.source.read
        )

        if not ok:
            if self.detection_gate.is_stream_problematic() and not self._problem_reported:
                logger.warning("Landmark stream appears problematic")
                self._problem_reported = True
            return
        self._problem_reported = False

        for event in self.tracker.tick(hands):
            self._dispatch(event)

    def _dispatch(self, event: GestureEvent) -> None:
        """Validate and hand off an event without waiting for delivery."""
        valid, reason = self.validator.validate(event)
        if not valid:
            logger.warning(f"Event validation failed: {reason}")
            return

        if self.dispatcher:
            self.dispatcher.send(event)

    async def _on_connected(self) -> None:
        """Callback when WebSocket connects."""
        logger.info("Connected to executor")

    async def _on_disconnected(self) -> None:
        """Callback when WebSocket disconnects."""
        logger.warning("Disconnected from executor")

    def get_stats(self) -> dict:
        """Get client statistics."""
        return {
            "frame_gate": self.tracker.frame_gate.get_stats(),
            "limiter": self.tracker.limiter.get_stats(),
            "detection": self.detection_gate.get_stats(),
            "validator": self.validator.get_stats(),
            "dispatcher": self.dispatcher.get_stats() if self.dispatcher else {},
        }


async def main_async(args: argparse.Namespace) -> int:
    """Async main entry point."""
    width, height = args.screen_width, args.screen_height
    if width is None or height is None:
        width, height = await fetch_screen_size(args.server)

    config = TrackerConfig(
        screen_width=width,
        screen_height=height,
        smoothing=args.smoothing,
        pinch_enter=args.pinch_enter,
        pinch_exit=args.pinch_exit,
        double_tap_ms=args.double_tap_ms,
        cursor_interval_ms=args.cursor_interval_ms,
        frame_interval_ms=args.frame_interval_ms,
        hand=args.hand,
    )

    client = HandPointerClient(
        server_url=args.server,
        config=config,
        transport=args.transport,
        camera_index=args.camera,
    )

    # Handle shutdown signals
    loop = asyncio.get_running_loop()

    def signal_handler():
        logger.info("Shutdown signal received")
        client.request_stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await client.start()
        await client.run()
    except RuntimeError as e:
        logger.error(f"Client not ready: {e}")
        return 1
    finally:
        await client.stop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Hand Pointer Client",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--server",
        type=str,
        default="http://127.0.0.1:4000",
        help="Executor base URL",
    )
    parser.add_argument(
        "--transport",
        choices=("http", "ws"),
        default="http",
        help="Dispatch transport",
    )
    parser.add_argument(
        "--camera",
        type=int,
        default=0,
        help="Camera device index",
    )
    parser.add_argument(
        "--hand",
        choices=("Left", "Right"),
        default="Left",
        help="Handedness label of the controlling hand",
    )
    parser.add_argument(
        "--screen-width",
        type=int,
        default=None,
        help="Host screen width (default: ask the executor)",
    )
    parser.add_argument(
        "--screen-height",
        type=int,
        default=None,
        help="Host screen height (default: ask the executor)",
    )
    parser.add_argument(
        "--smoothing",
        type=float,
        default=0.75,
        help="Cursor smoothing coefficient in (0, 1)",
    )
    parser.add_argument(
        "--pinch-enter",
        type=float,
        default=0.035,
        help="Thumb-middle distance that starts a pinch",
    )
    parser.add_argument(
        "--pinch-exit",
        type=float,
        default=0.05,
        help="Thumb-middle distance that releases a pinch",
    )
    parser.add_argument(
        "--double-tap-ms",
        type=float,
        default=400.0,
        help="Double tap window (ms)",
    )
    parser.add_argument(
        "--cursor-interval-ms",
        type=float,
        default=60.0,
        help="Minimum time between cursor updates (ms)",
    )
    parser.add_argument(
        "--frame-interval-ms",
        type=float,
        default=30.0,
        help="Minimum time between processed frames (ms)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse the command line; the screen size is given in full or not at all."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if (args.screen_width is None) != (args.screen_height is None):
        parser.error("--screen-width and --screen-height must be given together")
    return args


def main() -> None:
    """Main entry point."""
    args = parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        code = asyncio.run(main_async(args))
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(2)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)
    sys.exit(code)


if __name__ == "__main__":
    main()
