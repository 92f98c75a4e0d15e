"""Run one unit of work in the background behind a spinner."""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, TypeVar

from rich.console import Console

from .logger import get_logger
from .theme import ERROR, SUCCESS

_log = get_logger(__name__)

T = TypeVar("T")

FRAMES = ("⣾", "⣷", "⣯", "⣟", "⡿", "⢿", "⣻", "⣽")
FRAME_INTERVAL = 0.1
CLEAR_LINE = "\r\x1b[2K"


class ProgressIndicator:
    """Animate a spinner until the background unit completes, then report it.

    Only one unit runs at a time and a started unit cannot be abandoned;
    the caller gets the unit's value, or its exception after the failure
    message has been shown.
    """

    def __init__(self, console: Console, interval: float = FRAME_INTERVAL,
                 frames=FRAMES):
        self.console = console
        self.interval = interval
        self.frames = tuple(frames)
        self._running = False

    def _write(self, text: str) -> None:
        stream = self.console.file
        stream.write(text)
        stream.flush()

    def run(
        self,
        work: Callable[[], T],
        loading_message: str,
        complete_message: str,
        error_message: str,
    ) -> T:
        if self._running:
            raise RuntimeError("progress indicator is already supervising a task")
        self._running = True
        try:
            with ThreadPoolExecutor(max_workers=1, thread_name_prefix="progress") as pool:
                future = pool.submit(work)
                frame = 0
                while not future.done():
                    self._write(f"{self.frames[frame % len(self.frames)]} {loading_message}\r")
                    frame += 1
                    time.sleep(self.interval)
                self._write(CLEAR_LINE)

                error: Optional[BaseException] = future.exception()
                if error is not None:
                    _log.info("%s: %s", error_message, error)
                    self.console.print(error_message, style=f"bold {ERROR}",
                                       markup=False, highlight=False)
                    raise error
                self.console.print(complete_message, style=SUCCESS,
                                   markup=False, highlight=False)
                return future.result()
        finally:
            self._running = False
