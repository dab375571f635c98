#!/usr/bin/env python3
"""
Pointer Executor - Main Entry Point

This server runs on the machine whose pointer is driven. It receives
gesture actions from hand pointer clients and injects them as pointer
moves, clicks and double clicks.

Environment Variables:
    EXECUTOR_HOST: Bind address (default: 0.0.0.0)
    EXECUTOR_PORT: Port (default: 4000)
    POINTER_BACKEND: pyautogui or cliclick (default: pyautogui)
    EXECUTOR_STRICT: 1 to reject unknown actions with 400 (default: 0)
    CORS_ORIGINS: Comma-separated browser origins (default: http://localhost:3000)
    SCREEN_SIZE: WIDTHxHEIGHT reported when the backend cannot tell (optional)
    LOG_LEVEL: Logging level (default: INFO)

Usage:
    POINTER_BACKEND=cliclick python -m server_executor.main
"""

import asyncio
import logging
import os
import signal
import sys
from typing import List, Optional, Tuple

import uvicorn

from .http_server import GestureServer
from .pointer import PointerExecutor, create_backend

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_screen_size(value: Optional[str]) -> Optional[Tuple[int, int]]:
    """Parse WIDTHxHEIGHT."""
    if not value:
        return None
    try:
        width, height = (int(part) for part in value.lower().split("x"))
    except ValueError:
        raise ValueError(f"SCREEN_SIZE must look like 1920x1080, got {value!r}")
    if width <= 0 or height <= 0:
        raise ValueError(f"SCREEN_SIZE must be positive, got {value!r}")
    return width, height


def _parse_origins(value: str) -> List[str]:
    return [origin.strip() for origin in value.split(",") if origin.strip()]


class ExecutorServer:
    """
    Main executor integrating the gesture server and the pointer backend.

    Architecture:
        Client -> HTTP/WebSocket -> GestureServer -> PointerExecutor -> host pointer
    """

    def __init__(
        self,
        host: str = "0.0.0.0",
        port: int = 4000,
        backend: str = "pyautogui",
        strict: bool = False,
        cors_origins: Optional[List[str]] = None,
        screen: Optional[Tuple[int, int]] = None,
    ):
        """
        Initialize executor server.

        Args:
            host: Server bind address
            port: Server port
            backend: Pointer backend name
            strict: Reject unknown actions instead of ignoring them
            cors_origins: Browser origins allowed to post gestures
            screen: Screen size to report if the backend cannot query it
        """
        self.host = host
        self.port = port
        self.backend_name = backend
        self.strict = strict
        self.cors_origins = cors_origins or ["http://localhost:3000"]
        self.screen = screen

        # Components
        self.executor: Optional[PointerExecutor] = None
        self.gesture_server: Optional[GestureServer] = None

    def start(self) -> None:
        """Create the pointer backend and the web app."""
        logger.info("Starting Pointer Executor...")

        backend = create_backend(self.backend_name, screen=self.screen)
        self.executor = PointerExecutor(backend)
        self.gesture_server = GestureServer(
            self.executor,
            strict=self.strict,
            cors_origins=self.cors_origins,
        )

        size = backend.screen_size()
        logger.info(
            f"Pointer Executor ready on {self.host}:{self.port} "
            f"(backend={backend.name}, screen={size}, strict={self.strict})"
        )

    def stop(self) -> None:
        """Finish queued pointer commands and stop the worker."""
        logger.info("Stopping Pointer Executor...")
        if self.executor:
            self.executor.shutdown()
        logger.info("Pointer Executor stopped")

    def get_app(self):
        """Get the FastAPI application for uvicorn."""
        return self.gesture_server.app

    def get_stats(self) -> dict:
        """Get server statistics."""
        return self.gesture_server.get_stats() if self.gesture_server else {}


async def run_server(executor_server: ExecutorServer) -> None:
    """Run the server with uvicorn."""
    config = uvicorn.Config(
        executor_server.get_app(),
        host=executor_server.host,
        port=executor_server.port,
        log_level="info",
        access_log=False,
    )
    server = uvicorn.Server(config)
    await server.serve()


def load_config() -> dict:
    """Read executor settings from the environment."""
    return {
        "host": os.environ.get("EXECUTOR_HOST", "0.0.0.0"),
        "port": int(os.environ.get("EXECUTOR_PORT", "4000")),
        "backend": os.environ.get("POINTER_BACKEND", "pyautogui"),
        "strict": _env_flag("EXECUTOR_STRICT"),
        "cors_origins": _parse_origins(
            os.environ.get("CORS_ORIGINS", "http://localhost:3000")
        ),
        "screen": _parse_screen_size(os.environ.get("SCREEN_SIZE")),
    }


async def main_async() -> int:
    """Async main entry point. Returns the process exit code."""
    try:
        config = load_config()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    executor_server = ExecutorServer(**config)

    # Setup signal handlers
    loop = asyncio.get_running_loop()

    shutdown_event = asyncio.Event()

    def signal_handler():
        logger.info("Shutdown signal received")
        shutdown_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        executor_server.start()

        # Run server until shutdown
        server_task = asyncio.create_task(run_server(executor_server))
        shutdown_task = asyncio.create_task(shutdown_event.wait())

        done, pending = await asyncio.wait(
            [server_task, shutdown_task],
            return_when=asyncio.FIRST_COMPLETED,
        )

        # Cancel pending tasks
        for task in pending:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        # Surface a server that stopped on its own error
        for task in done:
            task.result()

    except Exception as e:
        logger.error(f"Server error: {e}")
        return 1
    finally:
        executor_server.stop()
    return 0


def main() -> None:
    """Main entry point."""
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.getLogger().setLevel(getattr(logging, level, logging.INFO))

    try:
        code = asyncio.run(main_async())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)
    sys.exit(code)


if __name__ == "__main__":
    main()
