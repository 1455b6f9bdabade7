"""Editor configuration — debounce windows, retry policy and history depth."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tenacity import stop_after_attempt, wait_exponential, wait_fixed

if TYPE_CHECKING:
    from app.config import Settings


@dataclass
class RetryPolicy:
    """How failed saves are retried.

    ``max_attempts`` counts retries after the first failure. Only a single
    fixed-delay retry is established behaviour; longer schedules are opt-in.
    """

    max_attempts: int = 1
    base_delay: float = 1.0  # seconds
    mode: str = "fixed"  # fixed | exponential

    def stop(self) -> stop_after_attempt:
        return stop_after_attempt(self.max_attempts + 1)

    def wait(self) -> wait_fixed | wait_exponential:
        if self.mode == "exponential":
            return wait_exponential(multiplier=self.base_delay)
        return wait_fixed(self.base_delay)


@dataclass
class EditorConfig:
    # Update coalescer debounce (seconds)
    update_debounce: float = 0.3
    # Autosave debounce (seconds)
    autosave_debounce: float = 1.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    # In-memory undo depth per session
    max_undo_steps: int = 50
    # Field name the persistence collaborator stores the source under
    content_field: str = "jsxCode"
    # Blank/default document; the first divergence from it triggers create()
    default_source: str = ""
    # Mutations and drains slower than this are logged as warnings (seconds)
    slow_operation: float = 0.1

    @classmethod
    def from_settings(cls, settings: Settings) -> EditorConfig:
        return cls(
            update_debounce=settings.update_debounce_ms / 1000,
            autosave_debounce=settings.autosave_debounce_ms / 1000,
            retry=RetryPolicy(
                max_attempts=settings.retry_max_attempts,
                base_delay=settings.retry_backoff_ms / 1000,
                mode=settings.retry_backoff,
            ),
            max_undo_steps=settings.max_undo_steps,
            content_field=settings.persistence_content_field,
            slow_operation=settings.slow_operation_ms / 1000,
        )
