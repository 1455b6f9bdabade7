"""Mutation models — addressing, edit requests and their results."""

from __future__ import annotations

import enum
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_serializer, model_validator

from app.errors import EditorError, ParseError

_ADDRESS_RE = re.compile(r"^\s*([A-Za-z_$][\w$-]*)\[(\d+)\]\s*$")


class ElementAddress(BaseModel):
    """``tagName[occurrenceIndex]`` — the n-th ``tagName`` element in pre-order.

    Serialises to (and accepts) its textual form, e.g. ``"div[3]"``.
    """

    model_config = ConfigDict(frozen=True)

    tag_name: str
    occurrence_index: int = Field(ge=0)

    @model_validator(mode="before")
    @classmethod
    def _from_text(cls, data: Any) -> Any:
        if isinstance(data, str):
            m = _ADDRESS_RE.match(data)
            if not m:
                raise ValueError(f"Invalid element address {data!r}, expected tag[index]")
            return {"tag_name": m.group(1), "occurrence_index": int(m.group(2))}
        return data

    @model_serializer
    def _to_text(self) -> str:
        return str(self)

    @classmethod
    def parse(cls, text: str) -> ElementAddress:
        return cls.model_validate(text)

    def __str__(self) -> str:
        return f"{self.tag_name}[{self.occurrence_index}]"


class UpdateType(str, enum.Enum):
    TEXT = "text"
    STYLE = "style"


class ChangeKind(str, enum.Enum):
    TEXT_UPDATED = "text_updated"
    STYLE_ADDED = "style_added"
    STYLE_UPDATED = "style_updated"


TEXT_PROPERTY = "textContent"


class MutationRequest(BaseModel):
    """One semantic edit of one addressed element."""

    address: ElementAddress
    property: str
    value: str
    update_type: UpdateType = UpdateType.STYLE

    @classmethod
    def for_property(cls, address: ElementAddress | str, prop: str, value: str) -> MutationRequest:
        """Build a request, inferring the update type from the property name."""
        update_type = UpdateType.TEXT if prop == TEXT_PROPERTY else UpdateType.STYLE
        return cls(address=address, property=prop, value=value, update_type=update_type)

    def queue_key(self) -> tuple[ElementAddress, str]:
        return (self.address, self.property)


class AppliedChange(BaseModel):
    """Audit record of one applied edit (not used for replay)."""

    kind: ChangeKind
    address: ElementAddress
    property: str
    old_value: str | None = None
    new_value: str


class MutationError(BaseModel):
    code: str
    message: str
    line: int | None = None
    column: int | None = None
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: EditorError) -> MutationError:
        if isinstance(exc, ParseError):
            return cls(code=exc.code, message=exc.reason, line=exc.line, column=exc.column)
        return cls(code=exc.code, message=exc.message, details=exc.details)


class MutationResult(BaseModel):
    success: bool
    modified_source: str | None = None
    applied_change: AppliedChange | None = None
    modifications: list[AppliedChange] = Field(default_factory=list)
    error: MutationError | None = None
    processing_time_ms: float | None = None


class PropertyUpdateResult(BaseModel):
    """Outcome of one property edit submitted to the update coalescer."""

    success: bool
    address: ElementAddress | None = None
    property: str
    sanitized_value: str | None = None
    # False when there was no live node or it had been detached
    dom_updated: bool = False
    queued: bool = False
    error: MutationError | None = None


class QueueStatus(BaseModel):
    size: int
    pending: bool
    keys: list[str] = Field(default_factory=list)
    # Requests the most recent drain could not apply
    errors: list[MutationError] = Field(default_factory=list)
