"""
autosave.py — periodic save of a dirty brief.

Every ``interval_sec`` the timer checks the target's ``is_dirty`` flag and, if
set, calls ``save()``.  The timer can run on a daemon thread (start/stop) or be
ticked by the host's own loop; ``tick()`` is the whole behaviour either way.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SEC = 30.0


class Saveable(Protocol):
    @property
    def is_dirty(self) -> bool: ...

    def save(self) -> None: ...


class AutoSaveTimer:

    def __init__(self, target: Saveable, interval_sec: float = DEFAULT_INTERVAL_SEC):
        if interval_sec <= 0:
            raise ValueError(f"interval_sec must be > 0, got {interval_sec}")
        self.target = target
        self.interval_sec = interval_sec
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self) -> bool:
        """Save the target if it is dirty.  Returns True when a save happened.

        A failed write is logged and left dirty so the next tick retries.
        """
        if not self.target.is_dirty:
            return False
        try:
            self.target.save()
        except OSError as exc:
            logger.warning("Auto-save failed, will retry: %s", exc)
            return False
        return True

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="brief-autosave", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval_sec):
            try:
                self.tick()
            except Exception:
                logger.exception("Auto-save tick failed; timer keeps running")
