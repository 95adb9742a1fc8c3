# Copyright (c) Syntropy Systems
"""Cancellable waits and a shared call-rate limiter."""
from __future__ import annotations

import threading
import time


class Pacer:
    """Sleeps that wake early when the run is cancelled.

    One pacer is shared by every component of a run so a single
    ``cancel()`` (e.g. from a signal handler) interrupts all waits.
    """

    def __init__(self) -> None:
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Stop issuing new work and wake any sleeper."""
        self._cancelled.set()

    def wait(self, seconds: float) -> bool:
        """Sleep for ``seconds``; return True if cancelled before or during."""
        if seconds <= 0:
            return self.cancelled
        return self._cancelled.wait(timeout=seconds)


class RateLimiter:
    """Space call starts at least ``interval`` seconds apart across threads."""

    def __init__(self, interval: float, pacer: Pacer) -> None:
        self.interval = interval
        self._pacer = pacer
        self._lock = threading.Lock()
        self._next_slot: float | None = None

    def acquire(self) -> bool:
        """Block until the next call slot; return False if cancelled."""
        with self._lock:
            now = time.monotonic()
            if self._next_slot is None or self._next_slot <= now:
                slot = now
            else:
                slot = self._next_slot
            self._next_slot = slot + self.interval

        if self._pacer.wait(slot - now):
            return False
        return not self._pacer.cancelled
