"""Tests for the update coalescer."""

from __future__ import annotations

import asyncio
import logging

from app.editor.config import EditorConfig
from app.editor.update_coalescer import UpdateCoalescer
from app.preview.instrumentor import PreviewSurface
from tests.conftest import CARD_JSX, SAMPLE_P, FakeClock


class SourceHolder:
    """Owns the current source and records every change handed back."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.changes: list[str] = []

    def get(self) -> str:
        return self.source

    def set(self, source: str) -> None:
        self.source = source
        self.changes.append(source)


def _coalescer(clock: FakeClock, source: str = SAMPLE_P) -> tuple[UpdateCoalescer, SourceHolder]:
    holder = SourceHolder(source)
    return UpdateCoalescer(holder.get, holder.set, EditorConfig(), clock), holder


def _advance(clock: FakeClock, seconds: float) -> None:
    asyncio.run(clock.advance(seconds))


# ---------------------------------------------------------------------------
# Debouncing
# ---------------------------------------------------------------------------

class TestDebounce:
    def test_nothing_applied_before_window_closes(self, clock):
        updates, holder = _coalescer(clock)
        updates.submit("p[0]", "color", "#ff0000")
        _advance(clock, 0.29)
        assert holder.changes == []
        assert holder.source == SAMPLE_P
        _advance(clock, 0.02)
        assert holder.changes == ["<p style={{color: '#ff0000'}}>Sample text</p>"]

    def test_later_edit_restarts_window(self, clock):
        updates, holder = _coalescer(clock)
        updates.submit("p[0]", "color", "#ff0000")
        _advance(clock, 0.2)
        updates.submit("p[0]", "fontSize", "20")
        _advance(clock, 0.2)
        assert holder.changes == []
        _advance(clock, 0.11)
        assert len(holder.changes) == 1

    def test_same_key_is_overwritten(self, clock):
        updates, holder = _coalescer(clock)
        for value in ("#111111", "#222222", "#333333"):
            updates.submit("p[0]", "color", value)
        assert updates.status().size == 1
        _advance(clock, 0.3)
        assert holder.changes == ["<p style={{color: '#333333'}}>Sample text</p>"]

    def test_several_keys_drain_into_one_change(self, clock):
        updates, holder = _coalescer(clock, CARD_JSX)
        updates.submit("p[1]", "color", "#ff0000")
        updates.submit("h1[0]", "textContent", "Hello")
        updates.submit("p[1]", "fontSize", "20")
        _advance(clock, 0.3)
        assert len(holder.changes) == 1
        source = holder.source
        assert "style={{color: '#ff0000', fontSize: '20px'}}" in source
        assert "<h1>Hello</h1>" in source
        assert [c.property for c in updates.last_changes] == ["color", "textContent", "fontSize"]

    def test_drain_applies_to_current_source(self, clock):
        updates, holder = _coalescer(clock)
        updates.submit("p[0]", "color", "#ff0000")
        # typed in the code editor while the edit was queued
        holder.source = "// note\n" + SAMPLE_P
        _advance(clock, 0.3)
        assert holder.source == "// note\n<p style={{color: '#ff0000'}}>Sample text</p>"


# ---------------------------------------------------------------------------
# Validation and failures
# ---------------------------------------------------------------------------

class TestSubmit:
    def test_sanitized_value_is_queued(self, clock):
        updates, holder = _coalescer(clock)
        result = updates.submit("p[0]", "font-size", "18")
        assert result.success and result.queued
        assert result.property == "fontSize"
        assert result.sanitized_value == "18px"
        assert updates.status().keys == ["p[0]_fontSize"]

    def test_invalid_value_changes_nothing(self, clock):
        updates, holder = _coalescer(clock)
        result = updates.submit("p[0]", "color", "not a color")
        assert not result.success
        assert result.error.code == "INVALID_COLOR_VALUE"
        assert updates.status().size == 0
        assert not updates.status().pending
        _advance(clock, 1.0)
        assert holder.changes == []

    def test_missing_address(self, clock):
        updates, _ = _coalescer(clock)
        result = updates.submit(None, "color", "#fff")
        assert result.error.code == "ELEMENT_NOT_FOUND"

    def test_unknown_address_is_rejected(self, clock):
        updates, holder = _coalescer(clock, "<div><h1>Hi</h1></div>")
        result = updates.submit("h1[5]", "color", "#ff0000")
        assert not result.success
        assert not result.queued
        assert result.error.code == "ELEMENT_NOT_FOUND"
        assert result.error.details == {"elementPath": "h1[5]"}
        assert updates.status().size == 0
        assert updates.flush() is None

    def test_malformed_address_is_rejected(self, clock):
        updates, _ = _coalescer(clock)
        result = updates.submit("paragraph", "color", "#fff")
        assert not result.success
        assert result.address is None
        assert result.error.code == "ELEMENT_NOT_FOUND"
        assert "paragraph" in result.error.message

    def test_unparseable_source_is_rejected(self, clock):
        updates, _ = _coalescer(clock, "<p>")
        result = updates.submit("p[0]", "color", "#fff")
        assert result.error.code == "PARSE_ERROR"
        assert result.error.line == 1

    def test_address_lost_before_drain_is_reported(self, clock):
        updates, holder = _coalescer(clock)
        assert updates.submit("p[0]", "color", "#fff").success
        # the paragraph was deleted in the code editor while the edit was queued
        holder.source = "<h1>Hello</h1>"
        assert updates.flush() is None
        assert holder.changes == []
        assert updates.last_changes == []
        errors = updates.status().errors
        assert [e.code for e in errors] == ["ELEMENT_NOT_FOUND"]
        assert errors[0].details["elementPath"] == "p[0]"

    def test_successful_drain_clears_errors(self, clock):
        updates, holder = _coalescer(clock)
        updates.submit("p[0]", "color", "#fff")
        holder.source = "<h1>Hello</h1>"
        updates.flush()
        updates.submit("h1[0]", "color", "#fff")
        updates.flush()
        assert updates.status().errors == []


# ---------------------------------------------------------------------------
# Optimistic preview updates
# ---------------------------------------------------------------------------

class TestOptimistic:
    def test_rendered_node_updates_immediately(self, clock):
        updates, holder = _coalescer(clock, CARD_JSX)
        surface = PreviewSurface()
        surface.render(CARD_JSX)
        selection = surface.select(5)
        assert str(selection.address) == "p[1]"

        result = updates.submit_selection(selection, "color", "#FF0000")
        assert result.dom_updated
        assert selection.node.style["color"] == "#ff0000"
        assert holder.changes == []

    def test_text_updates_immediately(self, clock):
        updates, _ = _coalescer(clock, CARD_JSX)
        surface = PreviewSurface()
        surface.render(CARD_JSX)
        selection = surface.select(2)
        updates.submit_selection(selection, "textContent", "Hi there")
        assert selection.node.text_content == "Hi there"

    def test_detached_node_still_queues(self, clock):
        updates, holder = _coalescer(clock, CARD_JSX)
        surface = PreviewSurface()
        surface.render(CARD_JSX)
        stale = surface.select(2)
        surface.render(CARD_JSX)
        assert not stale.is_valid

        result = updates.submit_selection(stale, "color", "#00ff00")
        assert result.success
        assert not result.dom_updated
        assert result.queued
        updates.flush()
        assert "<h1 style={{color: '#00ff00'}}>Welcome</h1>" in holder.source


# ---------------------------------------------------------------------------
# Flush / clear / status
# ---------------------------------------------------------------------------

class TestControl:
    def test_flush_bypasses_timer(self, clock):
        updates, holder = _coalescer(clock)
        updates.submit("p[0]", "color", "#ff0000")
        new_source = updates.flush()
        assert new_source == holder.source
        assert "color: '#ff0000'" in new_source
        assert clock.pending == 0
        _advance(clock, 1.0)
        assert len(holder.changes) == 1

    def test_flush_with_empty_queue(self, clock):
        updates, holder = _coalescer(clock)
        assert updates.flush() is None
        assert holder.changes == []

    def test_clear_discards_queue(self, clock):
        updates, holder = _coalescer(clock)
        updates.submit("p[0]", "color", "#ff0000")
        updates.clear()
        _advance(clock, 1.0)
        assert holder.changes == []
        assert updates.status().size == 0

    def test_status(self, clock):
        updates, _ = _coalescer(clock)
        updates.submit("p[0]", "color", "#ff0000")
        updates.submit("p[0]", "textContent", "x")
        status = updates.status()
        assert status.size == 2
        assert status.pending
        assert status.keys == ["p[0]_color", "p[0]_textContent"]

    def test_slow_drain_is_logged(self, clock, caplog):
        holder = SourceHolder(SAMPLE_P)
        updates = UpdateCoalescer(holder.get, holder.set, EditorConfig(slow_operation=0.0), clock)
        updates.submit("p[0]", "color", "#ff0000")
        with caplog.at_level(logging.WARNING, logger="app.editor.update_coalescer"):
            updates.flush()
        assert any("Slow drain" in r.message for r in caplog.records)
