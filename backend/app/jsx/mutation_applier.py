"""Mutation applier — rewrites the text or inline style of one addressed element."""

from __future__ import annotations

import logging
import time

from app.errors import EditorError, ElementNotFound, StyleObjectInvalid
from app.jsx.addressor import resolve
from app.jsx.generator import generate
from app.jsx.parser import parse, parse_style_object
from app.jsx.tree import AttributeNode, Document, ElementNode, StyleObject, TextNode, escape_text
from app.models.mutations import (
    AppliedChange,
    ChangeKind,
    MutationError,
    MutationRequest,
    MutationResult,
    UpdateType,
)

logger = logging.getLogger(__name__)


def apply(document: Document, request: MutationRequest) -> list[AppliedChange]:
    """Apply ``request`` to ``document`` in place.

    Returns one AppliedChange per edit, or an empty list when the address does
    not resolve. Raises StyleObjectInvalid when an existing style attribute is
    not a plain object literal.
    """
    element = resolve(document, request.address)
    if element is None:
        logger.debug("No element at %s", request.address)
        return []
    if request.update_type == UpdateType.TEXT:
        return [_replace_text(element, request)]
    return [_upsert_style(element, request)]


def modify_source(source: str, request: MutationRequest, slow_after: float = 0.1) -> MutationResult:
    """Parse, apply and regenerate. Failures come back as structured results.

    Runs taking longer than ``slow_after`` seconds are logged as warnings.
    """
    start = time.perf_counter()
    try:
        document = parse(source)
        changes = apply(document, request)
        if not changes:
            raise ElementNotFound(
                f'Element at path "{request.address}" not found',
                {"elementPath": str(request.address)},
            )
        modified = generate(document)
    except EditorError as e:
        logger.warning("Mutation %s.%s failed: %s", request.address, request.property, e.message)
        return MutationResult(
            success=False, error=_error_for(e, request), processing_time_ms=_elapsed_ms(start, slow_after)
        )

    elapsed = _elapsed_ms(start, slow_after)
    logger.info(
        "Applied %s to %s (%s) in %.1fms", request.property, request.address, changes[0].kind.value, elapsed
    )
    return MutationResult(
        success=True,
        modified_source=modified,
        applied_change=changes[0],
        modifications=changes,
        processing_time_ms=elapsed,
    )


def _elapsed_ms(start: float, slow_after: float) -> float:
    elapsed = (time.perf_counter() - start) * 1000
    if elapsed > slow_after * 1000:
        logger.warning("Slow mutation: %.1fms (threshold %.0fms)", elapsed, slow_after * 1000)
    return round(elapsed, 1)


def _replace_text(element: ElementNode, request: MutationRequest) -> AppliedChange:
    old_text = element.text_content()
    element.children = [TextNode(raw=escape_text(request.value))]
    element.replaced_children = True
    return AppliedChange(
        kind=ChangeKind.TEXT_UPDATED,
        address=request.address,
        property=request.property,
        old_value=old_text,
        new_value=request.value,
    )


def _upsert_style(element: ElementNode, request: MutationRequest) -> AppliedChange:
    attr = element.find_attribute("style")
    if attr is None:
        style = StyleObject()
        style.upsert(request.property, request.value)
        element.attributes.append(AttributeNode(name="style", style=style))
        return AppliedChange(
            kind=ChangeKind.STYLE_ADDED,
            address=request.address,
            property=request.property,
            new_value=request.value,
        )

    style = attr.style
    if style is None and attr.expression is not None:
        style = parse_style_object(attr.expression.code)
    if style is None:
        raise StyleObjectInvalid(
            "Style attribute must be an object expression",
            {"elementPath": str(request.address)},
        )

    existed, old_value = style.upsert(request.property, request.value)
    attr.style = style
    return AppliedChange(
        kind=ChangeKind.STYLE_UPDATED if existed else ChangeKind.STYLE_ADDED,
        address=request.address,
        property=request.property,
        old_value=old_value,
        new_value=request.value,
    )


def _error_for(exc: EditorError, request: MutationRequest) -> MutationError:
    details = {
        "elementPath": str(request.address),
        "property": request.property,
        "value": request.value,
        **exc.details,
    }
    return MutationError.from_exception(exc).model_copy(update={"details": details})
