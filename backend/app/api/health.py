"""Health check + meta endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from app.editor.validators import Category, get_registry
from app.models.responses import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version="0.1.0",
        validators_registered=get_registry().count,
    )


@router.get("/properties")
async def properties() -> dict[str, list[str]]:
    """Editable properties grouped by validator category."""
    registry = get_registry()
    return {
        category.value: [r.property for r in registry.by_category(category)]
        for category in Category
    }
