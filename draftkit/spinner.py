"""A terminal spinner shown while long operations run."""

from __future__ import annotations

import sys
import threading
from typing import TextIO

from termcolor import colored

BRAILLE_FRAMES = ("⣾", "⣽", "⣻", "⢿", "⡿", "⣟", "⣯", "⣷")
DEFAULT_DELAY = 0.1


class Spinner:
    """Redraws a prefix, a rotating frame and a suffix on one line until stopped."""

    def __init__(
        self,
        prefix: str = "",
        suffix: str = "",
        frames: tuple[str, ...] = BRAILLE_FRAMES,
        delay: float = DEFAULT_DELAY,
        stream: TextIO | None = None,
    ) -> None:
        self.prefix = prefix
        self.suffix = suffix
        self.frames = frames
        self.delay = delay
        self.stream = stream
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        """Whether the spinner is currently drawing."""
        return self._thread is not None

    def _out(self) -> TextIO:
        return self.stream if self.stream is not None else sys.stderr

    def _spin(self) -> None:
        index = 0
        out = self._out()
        while not self._stop.is_set():
            frame = self.frames[index % len(self.frames)]
            out.write(f"\r{self.prefix}{frame}{self.suffix}")
            out.flush()
            index += 1
            self._stop.wait(self.delay)

    def start(self) -> None:
        """Start drawing; does nothing if already running."""
        with self._lock:
            if self._thread is not None:
                return
            self._stop.clear()
            self._thread = threading.Thread(target=self._spin, daemon=True)
            self._thread.start()

    def stop(self) -> None:
        """Stop drawing and clear the line; does nothing if not running."""
        with self._lock:
            if self._thread is None:
                return
            self._stop.set()
            self._thread.join()
            self._thread = None
            out = self._out()
            out.write("\r\033[K")
            out.flush()

    def __enter__(self) -> Spinner:
        self.start()
        return self

    def __exit__(self, *exc: object) -> None:
        self.stop()


def create_spinner(msg: str, stream: TextIO | None = None) -> Spinner:
    """Return a spinner prefixed with a cyan ``[Draft]`` tag and ``msg``."""
    tag = colored("[Draft]", "cyan", attrs=["bold"])
    return Spinner(prefix=f"{tag} {msg} ", suffix=" ", stream=stream)