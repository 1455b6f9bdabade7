"""JSX source-to-source mutation engine."""

from app.jsx.addressor import address_of, resolve
from app.jsx.generator import generate
from app.jsx.mutation_applier import apply, modify_source
from app.jsx.parser import check_syntax, parse
from app.jsx.tree import Document, ElementNode

__all__ = [
    "address_of",
    "resolve",
    "generate",
    "apply",
    "modify_source",
    "check_syntax",
    "parse",
    "Document",
    "ElementNode",
]
