"""POST /api/preview/* — instrumentation and click resolution."""

from __future__ import annotations

from fastapi import APIRouter

from app.errors import ParseError
from app.models.mutations import MutationError
from app.models.requests import SelectRequest, SourceRequest
from app.models.responses import InstrumentResponse, SelectResponse
from app.preview.instrumentor import PreviewSurface, instrument

router = APIRouter(prefix="/preview")


@router.post("/instrument", response_model=InstrumentResponse)
async def instrument_source(req: SourceRequest) -> InstrumentResponse:
    try:
        instrumented = instrument(req.source)
    except ParseError as e:
        return InstrumentResponse(success=False, error=MutationError.from_exception(e))
    return InstrumentResponse(success=True, source=instrumented.source, addresses=instrumented.addresses)


@router.post("/select", response_model=SelectResponse)
async def select(req: SelectRequest) -> SelectResponse:
    surface = PreviewSurface()
    try:
        surface.render(req.source)
    except ParseError as e:
        return SelectResponse(success=False, error=MutationError.from_exception(e))
    selection = surface.select(req.editor_id)
    if selection is None:
        return SelectResponse(
            success=False,
            error=MutationError(code="ELEMENT_NOT_FOUND", message=f"No element with id {req.editor_id}"),
        )
    return SelectResponse(success=True, selection=selection)
