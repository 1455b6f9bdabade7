"""POST /api/analyze — list the editable elements of a source document."""

from __future__ import annotations

from fastapi import APIRouter

from app.errors import ParseError
from app.models.mutations import MutationError
from app.models.requests import SourceRequest
from app.models.responses import AnalyzeResponse
from app.preview.instrumentor import analyze as analyze_source

router = APIRouter()


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(req: SourceRequest) -> AnalyzeResponse:
    try:
        elements = analyze_source(req.source)
    except ParseError as e:
        return AnalyzeResponse(success=False, error=MutationError.from_exception(e))
    return AnalyzeResponse(success=True, elements=elements)
