"""Master API router — mounts all endpoint routers."""

from __future__ import annotations

from fastapi import APIRouter

from app.api import analyze, health, mutate, preview, sessions, validate

api_router = APIRouter(prefix="/api")

api_router.include_router(health.router)
api_router.include_router(validate.router)
api_router.include_router(mutate.router)
api_router.include_router(analyze.router)
api_router.include_router(preview.router)
api_router.include_router(sessions.router)
