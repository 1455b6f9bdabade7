"""Editor sessions — one open document with its own queue, autosave and history.

Each session owns its state outright, so several documents can be edited at
once without sharing queues or timers.
"""

from __future__ import annotations

import logging
import uuid
from collections import deque

from pydantic import ValidationError

from app.editor.autosave import AutosaveCoalescer
from app.editor.config import EditorConfig
from app.editor.timers import Clock, LoopClock
from app.editor.update_coalescer import UpdateCoalescer
from app.errors import ParseError
from app.models.mutations import ElementAddress, MutationError, PropertyUpdateResult
from app.models.selection import ElementSelection
from app.persistence.store import DocumentStore
from app.preview.instrumentor import PreviewSurface
from app.preview.renderer import Renderer

logger = logging.getLogger(__name__)


class EditorSession:
    def __init__(
        self,
        session_id: str,
        store: DocumentStore,
        source: str | None = None,
        document_id: str | None = None,
        config: EditorConfig | None = None,
        clock: Clock | None = None,
        renderer: Renderer | None = None,
    ) -> None:
        self.id = session_id
        self.store = store
        self.config = config or EditorConfig()
        self._clock = clock or LoopClock()
        self.source = source if source is not None else self.config.default_source
        self.parse_error: str | None = None
        self._history: deque[str] = deque(maxlen=self.config.max_undo_steps)
        self.preview = PreviewSurface(renderer)
        self.updates = UpdateCoalescer(lambda: self.source, self.set_source, self.config, self._clock)
        self.autosave = self._autosave_for(document_id, self.source)
        self._render()

    @property
    def document_id(self) -> str | None:
        return self.autosave.state.document_id

    @property
    def can_undo(self) -> bool:
        return bool(self._history)

    def _autosave_for(self, document_id: str | None, baseline: str) -> AutosaveCoalescer:
        return AutosaveCoalescer(
            self.store, document_id=document_id, baseline=baseline, config=self.config, clock=self._clock
        )

    def _render(self) -> None:
        try:
            self.preview.render(self.source)
        except ParseError as e:
            # Keep showing the last good render until the source parses again
            logger.warning("Preview not refreshed for session %s: %s", self.id, e.message)
            self.parse_error = e.message
        else:
            self.parse_error = None

    # -- source ---------------------------------------------------------------

    def set_source(self, source: str) -> None:
        """Replace the source text wholesale (code editor input or a drained edit batch)."""
        if source == self.source:
            return
        self._history.append(self.source)
        self._replace(source)

    def _replace(self, source: str) -> None:
        self.source = source
        self._render()
        self.autosave.notify_change(source)

    def undo(self) -> bool:
        if not self._history:
            return False
        self.updates.clear()
        self._replace(self._history.pop())
        logger.info("Session %s undo (%d steps left)", self.id, len(self._history))
        return True

    # -- editing --------------------------------------------------------------

    def select(self, editor_id: int) -> ElementSelection | None:
        return self.preview.select(editor_id)

    def edit(self, prop: str, value: str, address: ElementAddress | str | None = None) -> PropertyUpdateResult:
        """Edit the given element, or the current selection when no address is given."""
        if address is None:
            selection = self.preview.selection
            if selection is None or not selection.is_valid:
                return PropertyUpdateResult(
                    success=False,
                    property=prop,
                    error=MutationError(code="ELEMENT_NOT_FOUND", message="No element selected"),
                )
            return self.updates.submit_selection(selection, prop, value)

        if isinstance(address, str):
            try:
                address = ElementAddress.parse(address)
            except ValidationError:
                # submit() turns the malformed address into a structured error
                return self.updates.submit(address, prop, value)
        node = None
        for editor_id, candidate in self.preview.addresses.items():
            if candidate == address:
                node = self.preview.find(editor_id)
                break
        return self.updates.submit(address, prop, value, node=node)

    async def flush(self) -> None:
        self.updates.flush()
        await self.autosave.flush()

    # -- lifecycle ------------------------------------------------------------

    async def switch_document(self, document_id: str | None, source: str | None = None) -> None:
        """Open another document; queued work for the current one is discarded."""
        self.updates.clear()
        self.autosave.cancel()
        if source is None:
            source = await self.store.get_by_id(document_id) if document_id else self.config.default_source
        self._history.clear()
        self.preview.selection = None
        self.source = source
        self.autosave = self._autosave_for(document_id, source)
        self._render()
        logger.info("Session %s switched to document %s", self.id, document_id)

    async def close(self, flush: bool = True) -> None:
        if flush:
            await self.flush()
        self.updates.clear()
        self.autosave.cancel()


class SessionRegistry:
    def __init__(
        self,
        store: DocumentStore,
        config: EditorConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.store = store
        self.config = config or EditorConfig()
        self.clock = clock
        self._sessions: dict[str, EditorSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def open(self, document_id: str | None = None, source: str | None = None) -> EditorSession:
        if document_id is not None and source is None:
            source = await self.store.get_by_id(document_id)
        session = EditorSession(
            uuid.uuid4().hex,
            self.store,
            source=source,
            document_id=document_id,
            config=self.config,
            clock=self.clock,
        )
        self._sessions[session.id] = session
        logger.info("Opened session %s (document %s)", session.id, document_id)
        return session

    def get(self, session_id: str) -> EditorSession | None:
        return self._sessions.get(session_id)

    async def close(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.close()
        logger.info("Closed session %s", session_id)
        return True

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.close(session_id)
