"""POST /api/mutate — one-shot validate, mutate and regenerate."""

from __future__ import annotations

import time

from fastapi import APIRouter

from app.config import settings
from app.editor.validators import normalize_property, validate_property_update
from app.jsx.mutation_applier import modify_source
from app.jsx.parser import check_syntax
from app.models.mutations import MutationError, MutationRequest, MutationResult
from app.models.requests import MutateRequest, SourceRequest

router = APIRouter()


@router.post("/mutate", response_model=MutationResult)
async def mutate(req: MutateRequest) -> MutationResult:
    start = time.perf_counter()
    prop = normalize_property(req.property)
    validation = validate_property_update(req.element_path, prop, req.value)
    if not validation.valid:
        issue = validation.errors[0]
        result = MutationResult(
            success=False,
            error=MutationError(code=issue.code, message=issue.message, details={"field": issue.field}),
        )
    else:
        request = MutationRequest.for_property(req.element_path, prop, validation.sanitized_value)
        result = modify_source(req.source, request, slow_after=settings.slow_operation_ms / 1000)
    result.processing_time_ms = round((time.perf_counter() - start) * 1000, 1)
    return result


@router.post("/syntax")
async def syntax(req: SourceRequest) -> dict[str, bool | str | None]:
    ok, error = check_syntax(req.source)
    return {"valid": ok, "error": error}
