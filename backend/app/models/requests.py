"""API request models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.models.mutations import ElementAddress


class ValidateRequest(BaseModel):
    property: str = Field(..., description="Style property (camelCase or kebab-case) or textContent")
    value: str
    element_path: ElementAddress | None = Field(default=None, description="Optional target, e.g. h1[0]")


class ValidateBatchRequest(BaseModel):
    updates: dict[str, str] = Field(..., description="property -> value")


class ContrastRequest(BaseModel):
    foreground: str
    background: str


class MutateRequest(BaseModel):
    source: str = Field(..., description="JSX source text")
    element_path: ElementAddress = Field(..., description="Target element, e.g. p[0]")
    property: str
    value: str


class SourceRequest(BaseModel):
    source: str = Field(..., description="JSX source text")


class SelectRequest(BaseModel):
    source: str = Field(..., description="JSX source text")
    editor_id: int = Field(..., ge=1, description="Instrumentation id of the clicked element")


class OpenSessionRequest(BaseModel):
    document_id: str | None = Field(default=None, description="Existing document; omit for a new one")
    source: str | None = Field(default=None, description="Initial source; fetched when omitted")


class EditRequest(BaseModel):
    property: str
    value: str
    element_path: ElementAddress | None = Field(
        default=None, description="Target element; the current selection when omitted"
    )
    editor_id: int | None = Field(default=None, description="Select this element before editing")


class SwitchDocumentRequest(BaseModel):
    document_id: str | None = None
    source: str | None = None
