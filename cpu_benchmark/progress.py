"""Console spinner shown while a benchmark phase is running."""

from __future__ import annotations

import sys
import threading
from typing import Optional, TextIO

FRAMES = ("|", "/", "-", "\\")


class Spinner:
    """Redraw ``label`` followed by a rotating glyph on a background thread.

    Use as a context manager or call :meth:`start` and :meth:`stop`
    explicitly.  The spinner never blocks the caller.
    """

    def __init__(self, label: str, *, interval: float = 0.1, stream: Optional[TextIO] = None) -> None:
        self.label = label
        self.interval = interval
        self.stream = stream if stream is not None else sys.stdout
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def _run(self) -> None:
        frame = 0
        while not self._stop_event.wait(self.interval):
            self.stream.write(f"\r{self.label} {FRAMES[frame]}")
            self.stream.flush()
            frame = (frame + 1) % len(FRAMES)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "Spinner":
        if self._thread is not None:
            raise RuntimeError("spinner already started")
        self._thread = threading.Thread(target=self._run, name="spinner", daemon=True)
        self._thread.start()
        return self

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()

    def __enter__(self) -> "Spinner":
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


__all__ = ["FRAMES", "Spinner"]
