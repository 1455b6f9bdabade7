"""/api/sessions — editing sessions with coalesced edits and autosave."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_sessions
from app.editor.session import EditorSession, SessionRegistry
from app.errors import DocumentNotFound
from app.models.mutations import PropertyUpdateResult
from app.models.requests import EditRequest, OpenSessionRequest, SourceRequest, SwitchDocumentRequest
from app.models.responses import SaveStateResponse, SessionResponse

router = APIRouter(prefix="/sessions")
logger = logging.getLogger(__name__)


def _session_or_404(session_id: str, sessions: SessionRegistry) -> EditorSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return session


def _describe(session: EditorSession) -> SessionResponse:
    state = session.autosave.state
    return SessionResponse(
        session_id=session.id,
        document_id=session.document_id,
        source=session.source,
        parse_error=session.parse_error,
        can_undo=session.can_undo,
        selection=session.preview.selection,
        queue=session.updates.status(),
        save=SaveStateResponse(
            status=state.status,
            document_id=state.document_id,
            dirty=state.current_content != state.last_persisted_content,
            error=state.error,
        ),
    )


@router.post("", response_model=SessionResponse)
async def open_session(
    req: OpenSessionRequest, sessions: SessionRegistry = Depends(get_sessions)
) -> SessionResponse:
    try:
        session = await sessions.open(document_id=req.document_id, source=req.source)
    except DocumentNotFound as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    return _describe(session)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, sessions: SessionRegistry = Depends(get_sessions)) -> SessionResponse:
    return _describe(_session_or_404(session_id, sessions))


@router.put("/{session_id}/source", response_model=SessionResponse)
async def replace_source(
    session_id: str, req: SourceRequest, sessions: SessionRegistry = Depends(get_sessions)
) -> SessionResponse:
    session = _session_or_404(session_id, sessions)
    session.set_source(req.source)
    return _describe(session)


@router.post("/{session_id}/edits", response_model=PropertyUpdateResult)
async def edit(
    session_id: str, req: EditRequest, sessions: SessionRegistry = Depends(get_sessions)
) -> PropertyUpdateResult:
    session = _session_or_404(session_id, sessions)
    if req.editor_id is not None:
        session.select(req.editor_id)
    return session.edit(req.property, req.value, address=req.element_path)


@router.post("/{session_id}/flush", response_model=SessionResponse)
async def flush(session_id: str, sessions: SessionRegistry = Depends(get_sessions)) -> SessionResponse:
    session = _session_or_404(session_id, sessions)
    await session.flush()
    return _describe(session)


@router.post("/{session_id}/undo", response_model=SessionResponse)
async def undo(session_id: str, sessions: SessionRegistry = Depends(get_sessions)) -> SessionResponse:
    session = _session_or_404(session_id, sessions)
    if not session.undo():
        raise HTTPException(status_code=409, detail="Nothing to undo")
    return _describe(session)


@router.post("/{session_id}/document", response_model=SessionResponse)
async def switch_document(
    session_id: str, req: SwitchDocumentRequest, sessions: SessionRegistry = Depends(get_sessions)
) -> SessionResponse:
    session = _session_or_404(session_id, sessions)
    try:
        await session.switch_document(req.document_id, source=req.source)
    except DocumentNotFound as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    return _describe(session)


@router.delete("/{session_id}")
async def close_session(session_id: str, sessions: SessionRegistry = Depends(get_sessions)) -> dict[str, bool]:
    if not await sessions.close(session_id):
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return {"closed": True}
