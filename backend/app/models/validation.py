"""Validation result models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    code: str
    message: str
    field: str


class ValidationResult(BaseModel):
    valid: bool
    sanitized_value: str | None = None
    errors: list[ValidationIssue] = Field(default_factory=list)


class BatchSummary(BaseModel):
    total: int = 0
    valid: int = 0
    invalid: int = 0


class BatchValidationResult(BaseModel):
    valid: bool
    results: dict[str, ValidationResult] = Field(default_factory=dict)
    summary: BatchSummary = Field(default_factory=BatchSummary)


class ContrastReport(BaseModel):
    contrast_ratio: float
    meets_wcag_aa: bool
    meets_wcag_aaa: bool
    recommendation: str
