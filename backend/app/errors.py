"""Editor error taxonomy.

Every error carries a stable ``code`` so request boundaries can turn it into
a structured result instead of letting it escape.
"""

from __future__ import annotations

from typing import Any


class EditorError(Exception):
    code = "EDITOR_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ParseError(EditorError):
    """Malformed source. ``line`` is 1-based, ``column`` 0-based."""

    code = "PARSE_ERROR"

    def __init__(self, reason: str, line: int, column: int) -> None:
        super().__init__(f"{reason} ({line}:{column})", {"line": line, "column": column})
        self.reason = reason
        self.line = line
        self.column = column


class ElementNotFound(EditorError):
    code = "ELEMENT_NOT_FOUND"


class StyleObjectInvalid(EditorError):
    code = "STYLE_OBJECT_INVALID"


class PropertyNotSupported(EditorError):
    code = "PROPERTY_NOT_SUPPORTED"


class InvalidColorValue(EditorError):
    code = "INVALID_COLOR_VALUE"


class InvalidSizeValue(EditorError):
    code = "INVALID_SIZE_VALUE"


class InvalidEnumValue(EditorError):
    code = "INVALID_ENUM_VALUE"


class ElementDisconnected(EditorError):
    code = "ELEMENT_DISCONNECTED"


class SaveFailed(EditorError):
    code = "SAVE_FAILED"


class DocumentNotFound(EditorError):
    code = "DOCUMENT_NOT_FOUND"
