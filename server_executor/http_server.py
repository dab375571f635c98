"""
Gesture Server for action reception.

Handles:
- POST /gesture (and /api/gesture) with one gesture JSON object
- WebSocket /control carrying the same messages as text frames
- GET /health with host screen size and counters
- Decoding actions and handing them to the pointer executor
"""

import json
import logging
from typing import Any, Optional, Sequence, Tuple

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .actions import MalformedAction, UnknownAction, decode_action
from .pointer import PointerExecutor

logger = logging.getLogger(__name__)


class GestureServer:
    """
    HTTP/WebSocket front end of the executor.

    Features:
    - Always acknowledges before the host command runs
    - Permissive (ignore) or strict (400) handling of unknown actions
    - Message statistics
    """

    def __init__(
        self,
        executor: PointerExecutor,
        strict: bool = False,
        cors_origins: Sequence[str] = ("http://localhost:3000",),
    ):
        """
        Initialize gesture server.

        Args:
            executor: Pointer executor receiving decoded commands
            strict: Reject unknown/malformed actions with 400 instead of
                acknowledging and ignoring them
            cors_origins: Origins allowed to post gestures from a browser
        """
        self.executor = executor
        self.strict = strict

        # Statistics
        self._total_messages = 0
        self._ignored_messages = 0
        self._rejected_messages = 0
        self._ws_clients = 0

        # FastAPI app
        self.app = FastAPI(title="Hand Pointer Executor")

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=list(cors_origins),
            allow_methods=["*"],
            allow_headers=["Content-Type", "Authorization"],
        )

        self._setup_routes()

    def _setup_routes(self):
        """Set up FastAPI routes."""

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            size = self.executor.backend.screen_size()
            return {
                "status": "ok",
                "backend": self.executor.backend.name,
                "screen": {"width": size[0], "height": size[1]} if size else None,
                "strict": self.strict,
                **self.get_stats(),
            }

        @self.app.post("/gesture")
        @self.app.post("/api/gesture")
        async def gesture(request: Request):
            """Gesture endpoint, one action per request."""
            try:
                payload = await request.json()
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                return self._bad_message(MalformedAction(f"invalid JSON: {e}"), "http")

            ok, error = self.handle(payload, source="http")
            if not ok and self.strict:
                return JSONResponse(status_code=400, content={"ok": False, "error": error})
            return {"ok": True}

        @self.app.websocket("/control")
        async def websocket_control(websocket: WebSocket):
            """WebSocket endpoint for gesture streams."""
            await self._handle_websocket(websocket)

    def handle(self, payload: Any, source: str = "http") -> Tuple[bool, Optional[str]]:
        """
        Decode one payload and queue its pointer command.

        Returns:
            Tuple of (handled, error). error is None when handled.
        """
        self._total_messages += 1
        try:
            command = decode_action(payload)
        except (UnknownAction, MalformedAction) as e:
            self._count_bad()
            logger.warning(f"{self._verdict} {source} message {payload!r}: {e}")
            return False, str(e)

        logger.debug(f"{source}: {command}")
        self.executor.execute(command)
        return True, None

    @property
    def _verdict(self) -> str:
        return "Rejecting" if self.strict else "Ignoring"

    def _count_bad(self) -> None:
        if self.strict:
            self._rejected_messages += 1
        else:
            self._ignored_messages += 1

    def _bad_message(self, error: Exception, source: str):
        self._total_messages += 1
        self._count_bad()
        logger.warning(f"{self._verdict} {source} message: {error}")
        if self.strict:
            return JSONResponse(status_code=400, content={"ok": False, "error": str(error)})
        return {"ok": True}

    async def _handle_websocket(self, websocket: WebSocket) -> None:
        """Handle incoming WebSocket connection."""
        await websocket.accept()
        self._ws_clients += 1
        logger.info(f"Gesture stream connected from {websocket.client}")

        try:
            while True:
                data = await websocket.receive_text()
                try:
                    payload = json.loads(data)
                except json.JSONDecodeError as e:
                    self._bad_message(MalformedAction(f"invalid JSON: {e}"), "ws")
                    continue
                try:
                    self.handle(payload, source="ws")
                except Exception as e:
                    # One bad frame must not end the stream
                    logger.error(f"Error handling ws message: {e}")
        except WebSocketDisconnect:
            logger.info(f"Gesture stream disconnected from {websocket.client}")
        finally:
            self._ws_clients -= 1

    def get_stats(self) -> dict:
        """Get server statistics."""
        return {
            "total_messages": self._total_messages,
            "ignored_messages": self._ignored_messages,
            "rejected_messages": self._rejected_messages,
            "stream_clients": self._ws_clients,
            "executor": self.executor.get_stats(),
        }


def create_app(
    executor: PointerExecutor,
    strict: bool = False,
    cors_origins: Sequence[str] = ("http://localhost:3000",),
) -> Tuple[FastAPI, GestureServer]:
    """
    Create FastAPI application with the gesture server.

    Returns:
        Configured FastAPI application and its GestureServer
    """
    server = GestureServer(executor, strict=strict, cors_origins=cors_origins)
    return server.app, server
