"""Cancellable scheduling for the coalescers.

All timers run on the single asyncio event loop. A ``Debouncer`` tracks a
generation token: every restart or cancel bumps it, so a callback scheduled
under an older generation does nothing when it fires.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Clock(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task: ...


class LoopClock:
    """Clock backed by the running event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        return asyncio.get_running_loop().create_task(coro)


class Debouncer:
    """Runs ``callback`` once, ``delay`` seconds after the last ``trigger()``."""

    def __init__(self, delay: float, callback: Callable[[], None], clock: Clock) -> None:
        self.delay = delay
        self._callback = callback
        self._clock = clock
        self._generation = 0
        self._handle: TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        self._cancel_handle()
        self._generation += 1
        generation = self._generation
        self._handle = self._clock.call_later(self.delay, lambda: self._fire(generation))

    def cancel(self) -> None:
        self._cancel_handle()
        self._generation += 1

    def _fire(self, generation: int) -> None:
        if generation != self._generation:
            logger.debug("Dropping stale timer (generation %d != %d)", generation, self._generation)
            return
        self._handle = None
        self._callback()

    def _cancel_handle(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
