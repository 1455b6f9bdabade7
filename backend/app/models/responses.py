"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.editor.autosave import SaveStatus
from app.models.mutations import ElementAddress, MutationError, QueueStatus
from app.models.selection import ElementInfo, ElementSelection


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    validators_registered: int = 0


class AnalyzeResponse(BaseModel):
    success: bool
    elements: list[ElementInfo] = Field(default_factory=list)
    error: MutationError | None = None


class InstrumentResponse(BaseModel):
    success: bool
    source: str | None = None
    addresses: dict[int, ElementAddress | None] = Field(default_factory=dict)
    error: MutationError | None = None


class SelectResponse(BaseModel):
    success: bool
    selection: ElementSelection | None = None
    error: MutationError | None = None


class SaveStateResponse(BaseModel):
    status: SaveStatus
    document_id: str | None = None
    dirty: bool = False
    error: str | None = None


class SessionResponse(BaseModel):
    session_id: str
    document_id: str | None = None
    source: str
    parse_error: str | None = None
    can_undo: bool = False
    selection: ElementSelection | None = None
    queue: QueueStatus
    save: SaveStateResponse
