"""FastAPI dependency injection."""

from __future__ import annotations

from fastapi import Request

from app.editor.session import SessionRegistry


def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions
