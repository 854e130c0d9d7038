"""Cancellable delayed-call schedulers used by debounced search."""

from __future__ import annotations

import asyncio
import threading
from abc import ABC, abstractmethod
from typing import Callable, Protocol


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(ABC):
    """Runs a callback once after a delay; the returned handle cancels it."""

    @abstractmethod
    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> Cancellable:
        raise NotImplementedError


class ThreadingScheduler(Scheduler):
    """Scheduler backed by daemon ``threading.Timer`` threads."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> Cancellable:
        timer = threading.Timer(max(0.0, delay_seconds), callback)
        timer.daemon = True
        timer.start()
        return timer


class AsyncioScheduler(Scheduler):
    """Scheduler backed by ``loop.call_later`` for callers living on an event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> Cancellable:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(0.0, delay_seconds), callback)
