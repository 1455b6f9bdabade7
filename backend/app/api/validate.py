"""POST /api/validate — property value validation."""

from __future__ import annotations

from fastapi import APIRouter

from app.editor.validators import contrast_ratio, validate_many, validate_property_update
from app.models.requests import ContrastRequest, ValidateBatchRequest, ValidateRequest
from app.models.validation import BatchValidationResult, ContrastReport, ValidationResult

router = APIRouter(prefix="/validate")


@router.post("", response_model=ValidationResult)
async def validate(req: ValidateRequest) -> ValidationResult:
    return validate_property_update(req.element_path, req.property, req.value)


@router.post("/batch", response_model=BatchValidationResult)
async def validate_batch(req: ValidateBatchRequest) -> BatchValidationResult:
    return validate_many(req.updates.items())


@router.post("/contrast", response_model=ContrastReport)
async def contrast(req: ContrastRequest) -> ContrastReport:
    return contrast_ratio(req.foreground, req.background)
