"""Autosave coalescer — debounced, deduplicated, retried persistence.

State machine per open document::

    Clean -> PendingSave -> Saving -> Clean
                              |  ^
                              v  |
                           Retrying -> Failed

At most one persistence call is in flight. Content that arrives while saving
is parked as ``pending_content`` and saved immediately once the call returns.
Failed calls are retried by tenacity on the coalescer's clock.
A document without an id is created on its first divergence from the
baseline; ``update`` is never attempted before that.
"""

from __future__ import annotations

import asyncio
import enum
import functools
import logging
from dataclasses import dataclass
from typing import Callable

from tenacity import AsyncRetrying, RetryCallState

from app.editor.config import EditorConfig
from app.editor.timers import Clock, Debouncer, LoopClock
from app.errors import SaveFailed
from app.persistence.store import DocumentStore

logger = logging.getLogger(__name__)


class SaveStatus(str, enum.Enum):
    CLEAN = "clean"
    PENDING_SAVE = "pending_save"
    SAVING = "saving"
    RETRYING = "retrying"
    FAILED = "failed"


@dataclass
class SaveState:
    current_content: str = ""
    last_persisted_content: str = ""
    status: SaveStatus = SaveStatus.CLEAN
    pending_content: str | None = None
    document_id: str | None = None
    # Consecutive failures of the content currently being saved
    failures: int = 0
    error: str | None = None


StatusListener = Callable[[SaveState], None]


class AutosaveCoalescer:
    def __init__(
        self,
        store: DocumentStore,
        document_id: str | None = None,
        baseline: str = "",
        config: EditorConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config or EditorConfig()
        self.store = store
        self.state = SaveState(
            current_content=baseline, last_persisted_content=baseline, document_id=document_id
        )
        self._clock = clock or LoopClock()
        self._debouncer = Debouncer(self.config.autosave_debounce, self._on_debounce, self._clock)
        self._generation = 0
        self._task: asyncio.Task | None = None
        # Backoff between retry attempts, woken early by flush() and cancel()
        self._waiter: asyncio.Future | None = None
        self._hurry = False
        self._listeners: list[StatusListener] = []

    # -- observation ----------------------------------------------------------

    def add_listener(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def _set_status(self, status: SaveStatus) -> None:
        if status == self.state.status:
            return
        logger.info(
            "Save status %s -> %s (document %s)", self.state.status.value, status.value, self.state.document_id
        )
        self.state.status = status
        for listener in self._listeners:
            listener(self.state)

    # -- input ----------------------------------------------------------------

    def notify_change(self, content: str) -> None:
        """Record new source text; schedules a save as needed."""
        state = self.state
        state.current_content = content
        if state.status in (SaveStatus.SAVING, SaveStatus.RETRYING):
            state.pending_content = content
            return
        if state.document_id is None:
            if content != state.last_persisted_content:
                self._start_save(content)
            return
        self._set_status(SaveStatus.PENDING_SAVE)
        self._debouncer.trigger()

    async def flush(self) -> None:
        """Save outstanding content now and wait for in-flight calls to settle.

        A retry waiting out its backoff is started at once.
        """
        if self._debouncer.pending:
            self._debouncer.cancel()
            self._on_debounce()
        elif self.state.status == SaveStatus.FAILED and self._dirty:
            self._start_save(self.state.current_content)
        self._hurry = True
        try:
            while self.in_flight:
                self._wake()
                await self._task
        finally:
            self._hurry = False

    def cancel(self) -> None:
        """Stop all scheduled work; a save already in flight finishes unobserved."""
        self._generation += 1
        self._debouncer.cancel()
        self._wake()
        self._task = None
        self.state.pending_content = None
        self._set_status(SaveStatus.PENDING_SAVE if self._dirty else SaveStatus.CLEAN)
        logger.debug("Autosave cancelled (document %s)", self.state.document_id)

    @property
    def _dirty(self) -> bool:
        return self.state.current_content != self.state.last_persisted_content

    # -- saving ---------------------------------------------------------------

    def _on_debounce(self) -> None:
        if not self._dirty:
            logger.debug("Content unchanged since last save, skipping")
            self._set_status(SaveStatus.CLEAN)
            return
        self._start_save(self.state.current_content)

    def _start_save(self, content: str) -> None:
        self.state.failures = 0
        self._set_status(SaveStatus.SAVING)
        self._task = self._clock.spawn(self._save(content, self._generation))

    async def _save(self, content: str, generation: int) -> None:
        policy = self.config.retry
        retrying = AsyncRetrying(
            stop=policy.stop(),
            wait=policy.wait(),
            sleep=functools.partial(self._backoff, generation=generation),
            before_sleep=lambda retry_state: self._on_retry(retry_state, generation),
            reraise=True,
        )
        attempts = 0
        document_id = self.state.document_id
        try:
            async for attempt in retrying:
                if generation != self._generation:
                    logger.debug("Dropping retry for a replaced document")
                    return
                attempts += 1
                with attempt:
                    self._set_status(SaveStatus.SAVING)
                    document_id = await self._persist(content, document_id)
        except Exception as e:
            if generation != self._generation:
                logger.debug("Ignoring failed save for a replaced document")
                return
            self._on_failure(e, attempts)
            return

        if generation != self._generation:
            logger.debug("Ignoring completed save for a replaced document")
            return
        self.state.document_id = document_id
        self._on_success(content)

    async def _persist(self, content: str, document_id: str | None) -> str:
        if document_id is None:
            return await self.store.create(content)
        await self.store.update(document_id, {self.config.content_field: content})
        return document_id

    async def _backoff(self, seconds: float, generation: int) -> None:
        """Sleep between attempts on the coalescer's clock; ``flush`` cuts it short."""
        if self._hurry or generation != self._generation:
            return
        waiter = asyncio.get_running_loop().create_future()
        handle = self._clock.call_later(seconds, lambda: waiter.done() or waiter.set_result(None))
        self._waiter = waiter
        try:
            await waiter
        finally:
            handle.cancel()
            self._waiter = None

    def _wake(self) -> None:
        if self._waiter is not None and not self._waiter.done():
            self._waiter.set_result(None)

    def _on_retry(self, retry_state: RetryCallState, generation: int) -> None:
        if generation != self._generation:
            return
        self.state.failures = retry_state.attempt_number
        logger.warning(
            "Save of document %s failed (%s), retrying in %.1fs",
            self.state.document_id,
            retry_state.outcome.exception(),
            retry_state.next_action.sleep,
        )
        self._set_status(SaveStatus.RETRYING)

    def _on_success(self, content: str) -> None:
        state = self.state
        state.last_persisted_content = content
        state.failures = 0
        state.error = None
        logger.info("Saved document %s (%d chars)", state.document_id, len(content))

        pending, state.pending_content = state.pending_content, None
        if pending is not None and pending != content:
            self._start_save(pending)
        else:
            self._set_status(SaveStatus.CLEAN)

    def _on_failure(self, exc: Exception, attempts: int) -> None:
        state = self.state
        state.failures = attempts
        error = SaveFailed(f"Could not save document: {exc}", {"attempts": attempts})
        logger.error("Save of document %s failed after %d attempts: %s", state.document_id, attempts, exc)
        state.error = error.message
        state.pending_content = None
        self._set_status(SaveStatus.FAILED)
