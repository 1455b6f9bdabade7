"""Update coalescer — batches property edits into source mutations.

Each validated edit is applied to the live rendered node straight away, then
queued under ``(address, property)``; a later edit of the same property on the
same element replaces the queued one. Once the debounce window closes the
whole queue is applied, in order, to the current source text.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from pydantic import ValidationError

from app.editor.config import EditorConfig
from app.editor.timers import Clock, Debouncer, LoopClock
from app.editor.validators import normalize_property, validate_property_update
from app.errors import EditorError, ElementDisconnected, ElementNotFound
from app.jsx.addressor import resolve
from app.jsx.mutation_applier import modify_source
from app.jsx.parser import parse
from app.models.mutations import (
    AppliedChange,
    ElementAddress,
    MutationError,
    MutationRequest,
    PropertyUpdateResult,
    QueueStatus,
)
from app.models.selection import ElementSelection
from app.preview.dom import RenderedNode

logger = logging.getLogger(__name__)


class UpdateCoalescer:
    def __init__(
        self,
        source: Callable[[], str],
        on_change: Callable[[str], None],
        config: EditorConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config or EditorConfig()
        self._source = source
        self._on_change = on_change
        self._queue: dict[tuple[ElementAddress, str], MutationRequest] = {}
        self._debouncer = Debouncer(self.config.update_debounce, self.flush, clock or LoopClock())
        # Changes applied by the most recent drain
        self.last_changes: list[AppliedChange] = []
        self.last_errors: list[MutationError] = []

    def submit(
        self,
        address: ElementAddress | str | None,
        prop: str,
        value: str,
        node: RenderedNode | None = None,
    ) -> PropertyUpdateResult:
        prop = normalize_property(prop)
        if isinstance(address, str):
            try:
                address = ElementAddress.parse(address)
            except ValidationError:
                return _rejected(
                    None,
                    prop,
                    MutationError(
                        code="ELEMENT_NOT_FOUND",
                        message=f"Invalid element address {address!r}, expected tag[index]",
                        details={"elementPath": address},
                    ),
                )
        if address is None:
            return _rejected(
                None, prop, MutationError(code="ELEMENT_NOT_FOUND", message="Selected element has no address")
            )

        validation = validate_property_update(address, prop, value)
        if not validation.valid:
            issue = validation.errors[0]
            return _rejected(
                address,
                prop,
                MutationError(code=issue.code, message=issue.message, details={"field": issue.field}),
            )
        sanitized = validation.sanitized_value

        try:
            if resolve(parse(self._source()), address) is None:
                raise ElementNotFound(f'Element at path "{address}" not found', {"elementPath": str(address)})
        except EditorError as e:
            logger.warning("Rejected %s.%s: %s", address, prop, e.message)
            return _rejected(address, prop, MutationError.from_exception(e))

        dom_updated = False
        if node is not None:
            try:
                node.apply_property(prop, sanitized)
                dom_updated = True
            except ElementDisconnected as e:
                logger.warning("Skipping preview update for %s: %s", address, e.message)

        request = MutationRequest.for_property(address, prop, sanitized)
        self._queue[request.queue_key()] = request
        self._debouncer.trigger()
        logger.debug("Queued %s.%s (%d pending)", address, prop, len(self._queue))
        return PropertyUpdateResult(
            success=True,
            address=address,
            property=prop,
            sanitized_value=sanitized,
            dom_updated=dom_updated,
            queued=True,
        )

    def submit_selection(self, selection: ElementSelection, prop: str, value: str) -> PropertyUpdateResult:
        return self.submit(selection.address, prop, value, node=selection.node)

    def flush(self) -> str | None:
        """Drain the queue now. Returns the new source, or None if nothing changed.

        Requests that no longer apply (the source was replaced while they were
        queued) end up in ``last_errors``.
        """
        self._debouncer.cancel()
        if not self._queue:
            return None
        start = time.perf_counter()
        requests = list(self._queue.values())
        self._queue.clear()

        source = self._source()
        changes: list[AppliedChange] = []
        errors: list[MutationError] = []
        for request in requests:
            result = modify_source(source, request, slow_after=self.config.slow_operation)
            if not result.success:
                errors.append(result.error)
                continue
            source = result.modified_source
            changes.extend(result.modifications)
        self.last_changes = changes
        self.last_errors = errors

        elapsed = (time.perf_counter() - start) * 1000
        logger.info("Drained %d queued updates, %d applied in %.1fms", len(requests), len(changes), elapsed)
        if elapsed > self.config.slow_operation * 1000:
            logger.warning("Slow drain of %d updates: %.1fms", len(requests), elapsed)
        if not changes:
            return None
        self._on_change(source)
        return source

    def clear(self) -> None:
        """Drop queued requests without applying them."""
        self._debouncer.cancel()
        if self._queue:
            logger.info("Discarding %d queued updates", len(self._queue))
        self._queue.clear()

    def status(self) -> QueueStatus:
        return QueueStatus(
            size=len(self._queue),
            pending=self._debouncer.pending,
            keys=[f"{address}_{prop}" for address, prop in self._queue],
            errors=self.last_errors,
        )


def _rejected(address: ElementAddress | None, prop: str, error: MutationError) -> PropertyUpdateResult:
    return PropertyUpdateResult(success=False, address=address, property=prop, error=error)
