"""Property value validators — every rule is a function registered via decorator.

Usage:
    @rule(properties=["color", "backgroundColor"], category=Category.COLOR)
    def color_value(value: str, field: str) -> str:
        ...  # return the sanitised value or raise an EditorError subclass

Supporting a new property = adding it to a rule's ``properties`` list.
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Callable

from app.errors import (
    EditorError,
    InvalidColorValue,
    InvalidEnumValue,
    InvalidSizeValue,
    PropertyNotSupported,
)
from app.models.mutations import TEXT_PROPERTY, ElementAddress
from app.models.validation import (
    BatchSummary,
    BatchValidationResult,
    ContrastReport,
    ValidationIssue,
    ValidationResult,
)

logger = logging.getLogger(__name__)


class Category(enum.Enum):
    COLOR = "color"
    SIZE = "size"
    ENUM = "enum"


@dataclass
class PropertyRule:
    property: str
    category: Category
    fn: Callable[[str, str], str]
    description: str = ""


class ValidatorRegistry:
    """Registry of property rules, keyed by camelCase property name."""

    def __init__(self) -> None:
        self._rules: dict[str, PropertyRule] = {}

    def register(self, entry: PropertyRule) -> None:
        if entry.property in self._rules:
            raise ValueError(f"Duplicate rule for property: {entry.property}")
        self._rules[entry.property] = entry
        logger.debug("Registered rule %s (%s)", entry.property, entry.category.name)

    def get(self, prop: str) -> PropertyRule | None:
        return self._rules.get(prop)

    def by_category(self, category: Category) -> list[PropertyRule]:
        return sorted(
            (r for r in self._rules.values() if r.category == category), key=lambda r: r.property
        )

    @property
    def properties(self) -> list[str]:
        return sorted(self._rules)

    @property
    def count(self) -> int:
        return len(self._rules)


_registry = ValidatorRegistry()


def get_registry() -> ValidatorRegistry:
    return _registry


def rule(*, properties: list[str], category: Category, description: str = ""):
    """Decorator to register a rule function for one or more properties."""

    def decorator(fn: Callable[[str, str], str]):
        for prop in properties:
            _registry.register(
                PropertyRule(property=prop, category=category, fn=fn, description=description)
            )
        return fn

    return decorator


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

_HEX_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_RGB_RE = re.compile(r"^rgb\(\s*\d+\s*,\s*\d+\s*,\s*\d+\s*\)$")
_RGBA_RE = re.compile(r"^rgba\(\s*\d+\s*,\s*\d+\s*,\s*\d+\s*,\s*(?:[01]?\.?\d*)\s*\)$")
_COLOR_NAME_RE = re.compile(r"^[a-zA-Z]+$")
_SIZE_RE = re.compile(r"^\d+(?:\.\d+)?(?:px|em|rem|%|vh|vw)$")
_BARE_INT_RE = re.compile(r"^\d+$")
_NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?$")
_FONT_WEIGHT_RE = re.compile(r"^[1-9]00$")

_CSS_KEYWORDS = ("inherit", "initial", "unset")
_SIZE_KEYWORDS = frozenset(("auto",) + _CSS_KEYWORDS)

_ENUMS: dict[str, tuple[str, ...]] = {
    "fontWeight": ("normal", "bold", "bolder", "lighter"),
    "textAlign": ("left", "center", "right", "justify"),
    "display": ("block", "inline", "inline-block", "flex", "grid", "none"),
    "position": ("static", "relative", "absolute", "fixed", "sticky"),
}
_FONT_WEIGHT_ALIASES = {"normal": "400", "bold": "700"}

EDITABLE_TAGS = frozenset({
    "div", "span", "p", "h1", "h2", "h3", "h4", "h5", "h6",
    "button", "a", "section", "article", "header", "footer",
    "main", "aside", "nav", "ul", "ol", "li",
})


@rule(properties=["color", "backgroundColor"], category=Category.COLOR)
def color_value(value: str, field: str) -> str:
    if _HEX_RE.match(value):
        return value.lower()
    if (
        _RGB_RE.match(value)
        or _RGBA_RE.match(value)
        or value == "transparent"
        or value in _CSS_KEYWORDS
        or _COLOR_NAME_RE.match(value)
    ):
        return value
    raise InvalidColorValue(f"Invalid color for {field}: {value!r}", {"field": field})


@rule(
    properties=["fontSize", "padding", "margin", "borderRadius", "width", "height"],
    category=Category.SIZE,
)
def size_value(value: str, field: str) -> str:
    if _BARE_INT_RE.match(value):
        return f"{value}px"
    if _SIZE_RE.match(value) or value in _SIZE_KEYWORDS:
        return value
    raise InvalidSizeValue(f"Invalid size for {field}: {value!r}", {"field": field})


@rule(properties=["lineHeight"], category=Category.SIZE, description="size or unitless number")
def line_height_value(value: str, field: str) -> str:
    if _SIZE_RE.match(value) or value in _SIZE_KEYWORDS or _NUMBER_RE.match(value):
        return value
    raise InvalidSizeValue(f"Invalid line height for {field}: {value!r}", {"field": field})


@rule(properties=["fontWeight"], category=Category.ENUM)
def font_weight_value(value: str, field: str) -> str:
    if _FONT_WEIGHT_RE.match(value):
        return value
    if value in _ENUMS[field]:
        return _FONT_WEIGHT_ALIASES.get(value, value)
    raise InvalidEnumValue(
        f"Font weight must be 100-900 or one of {', '.join(_ENUMS[field])}", {"field": field}
    )


@rule(properties=["textAlign", "display", "position"], category=Category.ENUM)
def enum_value(value: str, field: str) -> str:
    allowed = _ENUMS[field]
    if value in allowed:
        return value
    raise InvalidEnumValue(
        f"Invalid value for {field}: {value!r}, expected one of {', '.join(allowed)}",
        {"field": field},
    )


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def normalize_property(name: str) -> str:
    """``background-color`` → ``backgroundColor``; camelCase passes through."""
    return re.sub(r"-([a-z])", lambda m: m.group(1).upper(), name.strip())


def validate_value(prop: str, value: str) -> ValidationResult:
    prop = normalize_property(prop)
    if prop == TEXT_PROPERTY:
        return ValidationResult(valid=True, sanitized_value=value)

    entry = _registry.get(prop)
    if entry is None:
        return _failure(PropertyNotSupported(f"Property '{prop}' is not supported"), prop)
    try:
        sanitized = entry.fn(value.strip(), prop)
    except EditorError as e:
        return _failure(e, prop)
    return ValidationResult(valid=True, sanitized_value=sanitized)


def check_editable(tag_name: str) -> ValidationResult:
    tag = tag_name.lower()
    if tag not in EDITABLE_TAGS:
        return _failure(PropertyNotSupported(f"Element '{tag}' is not editable"), "elementPath")
    return ValidationResult(valid=True)


def validate_property_update(
    address: ElementAddress | None, prop: str, value: str
) -> ValidationResult:
    """Validate the value, then (when an address is given) the target's editability."""
    result = validate_value(prop, value)
    if not result.valid or address is None:
        return result
    editable = check_editable(address.tag_name)
    if not editable.valid:
        return editable
    return result


def validate_many(pairs: Iterable[tuple[str, str]]) -> BatchValidationResult:
    results = {normalize_property(prop): validate_value(prop, value) for prop, value in pairs}
    valid = sum(1 for r in results.values() if r.valid)
    return BatchValidationResult(
        valid=valid == len(results),
        results=results,
        summary=BatchSummary(total=len(results), valid=valid, invalid=len(results) - valid),
    )


def _failure(exc: EditorError, field: str) -> ValidationResult:
    issue = ValidationIssue(code=exc.code, message=exc.message, field=exc.details.get("field", field))
    logger.debug("Validation failed: %s %s", issue.code, issue.message)
    return ValidationResult(valid=False, errors=[issue])


# ---------------------------------------------------------------------------
# Contrast
# ---------------------------------------------------------------------------

_RGB_PARTS_RE = re.compile(r"^rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)")


def contrast_ratio(foreground: str, background: str) -> ContrastReport:
    """WCAG contrast ratio for hex or rgb() colours."""
    fg, bg = _luminance(foreground), _luminance(background)
    if fg is None or bg is None:
        return ContrastReport(
            contrast_ratio=0.0,
            meets_wcag_aa=False,
            meets_wcag_aaa=False,
            recommendation="Unable to calculate contrast ratio",
        )
    ratio = (max(fg, bg) + 0.05) / (min(fg, bg) + 0.05)
    return ContrastReport(
        contrast_ratio=round(ratio, 2),
        meets_wcag_aa=ratio >= 4.5,
        meets_wcag_aaa=ratio >= 7,
        recommendation=_recommendation(ratio),
    )


def _luminance(color: str) -> float | None:
    rgb = _parse_rgb(color.strip())
    if rgb is None:
        return None

    def channel(c: int) -> float:
        s = c / 255
        return s / 12.92 if s <= 0.03928 else ((s + 0.055) / 1.055) ** 2.4

    r, g, b = (channel(c) for c in rgb)
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def _parse_rgb(color: str) -> tuple[int, int, int] | None:
    if _HEX_RE.match(color):
        digits = color[1:]
        if len(digits) == 3:
            digits = "".join(d * 2 for d in digits)
        return tuple(int(digits[i:i + 2], 16) for i in (0, 2, 4))  # type: ignore[return-value]
    m = _RGB_PARTS_RE.match(color)
    if m:
        return tuple(min(int(v), 255) for v in m.groups())  # type: ignore[return-value]
    return None


def _recommendation(ratio: float) -> str:
    if ratio >= 7:
        return "Excellent contrast (WCAG AAA)"
    if ratio >= 4.5:
        return "Good contrast (WCAG AA)"
    if ratio >= 3:
        return "Poor contrast - consider darker/lighter colors"
    return "Very poor contrast - colors are too similar"
