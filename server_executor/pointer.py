"""
Pointer backends and fire-and-forget command execution.

Handles:
- Host pointer backends (pyautogui, cliclick)
- Running host commands off the request path, in order
- Logging host failures without reporting them to the caller
"""

import logging
import subprocess
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, Tuple

from .actions import ActionCommand, Click, DoubleClick, MoveTo

logger = logging.getLogger(__name__)


class PointerBackend(ABC):
    """Host pointer-control capability."""

    name = "abstract"

    @abstractmethod
    def move_to(self, x: int, y: int) -> None:
        ...

    @abstractmethod
    def click(self) -> None:
        ...

    @abstractmethod
    def double_click(self) -> None:
        ...

    def screen_size(self) -> Optional[Tuple[int, int]]:
        """Host screen size in pixels, None if unknown."""
        return None


class PyAutoGUIPointer(PointerBackend):
    """Pointer control through pyautogui."""

    name = "pyautogui"

    def __init__(self):
        # Needs a display; imported here so the app can be built without one
        import pyautogui

        self._gui = pyautogui
        # Corner fail-safe would abort gestures that legitimately reach (0, 0)
        self._gui.FAILSAFE = False
        self._gui.PAUSE = 0

    def move_to(self, x: int, y: int) -> None:
        self._gui.moveTo(x, y)

    def click(self) -> None:
        self._gui.click()

    def double_click(self) -> None:
        self._gui.doubleClick()

    def screen_size(self) -> Optional[Tuple[int, int]]:
        width, height = self._gui.size()
        return int(width), int(height)


class CliclickPointer(PointerBackend):
    """Pointer control through the macOS cliclick tool."""

    name = "cliclick"

    def __init__(
        self,
        binary: str = "cliclick",
        screen: Optional[Tuple[int, int]] = None,
        timeout_seconds: float = 2.0,
    ):
        self.binary = binary
        self._screen = screen
        self.timeout = timeout_seconds

    def _run(self, command: str) -> None:
        subprocess.run(
            [self.binary, command],
            check=True,
            capture_output=True,
            timeout=self.timeout,
        )

    def move_to(self, x: int, y: int) -> None:
        self._run(f"m:{x},{y}")

    def click(self) -> None:
        self._run("c:.")

    def double_click(self) -> None:
        self._run("dc:.")

    def screen_size(self) -> Optional[Tuple[int, int]]:
        return self._screen


def create_backend(name: str, screen: Optional[Tuple[int, int]] = None) -> PointerBackend:
    """Build a pointer backend by name."""
    if name == "pyautogui":
        return PyAutoGUIPointer()
    if name == "cliclick":
        return CliclickPointer(screen=screen)
    raise ValueError(f"Unknown pointer backend: {name!r}")


class PointerExecutor:
    """
    Runs pointer commands on a single worker thread.

    execute() returns as soon as the command is queued. Commands run in
    arrival order so a move always lands before the click that follows it.
    """

    def __init__(self, backend: PointerBackend):
        self.backend = backend
        self._pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pointer")
        self._lock = threading.Lock()

        # Statistics
        self._executed = 0
        self._failed = 0
        self._last_command_time: Optional[float] = None

    def execute(self, command: ActionCommand) -> None:
        """Queue a command for the host. The outcome is not reported back."""
        future = self._pool.submit(self._run, command)
        future.add_done_callback(self._on_done)

    def _run(self, command: ActionCommand) -> ActionCommand:
        if isinstance(command, MoveTo):
            self.backend.move_to(command.x, command.y)
        elif isinstance(command, Click):
            self.backend.click()
        elif isinstance(command, DoubleClick):
            self.backend.double_click()
        return command

    def _on_done(self, future: Future) -> None:
        error = future.exception()
        with self._lock:
            if error is not None:
                self._failed += 1
            else:
                self._executed += 1
                self._last_command_time = time.time()
        if error is not None:
            logger.warning(f"Host pointer command failed: {error!r}")
        else:
            logger.debug(f"Executed {future.result()}")

    def drain(self, timeout: Optional[float] = None) -> None:
        """Block until every command queued so far has run."""
        self._pool.submit(lambda: None).result(timeout=timeout)

    def shutdown(self) -> None:
        """Finish queued commands and stop the worker."""
        self._pool.shutdown(wait=True)

    def get_stats(self) -> dict:
        """Get execution statistics."""
        with self._lock:
            return {
                "backend": self.backend.name,
                "executed": self._executed,
                "failed": self._failed,
                "last_command_time": self._last_command_time,
            }
