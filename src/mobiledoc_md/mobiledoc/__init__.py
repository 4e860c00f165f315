"""Mobiledoc document model and Markdown renderer."""

from __future__ import annotations

from .model import (
    SUPPORTED_VERSIONS,
    Atom,
    Card,
    CardSection,
    ImageSection,
    ListSection,
    Marker,
    MarkerKind,
    Markup,
    MarkupSection,
    Mobiledoc,
    MobiledocError,
    MobiledocFormatError,
    Section,
    UnsupportedVersionError,
    parse_mobiledoc,
)
from .renderer import (
    AtomRenderer,
    CardRenderer,
    MarkdownRenderer,
    UnknownCardError,
)

__all__ = [
    "SUPPORTED_VERSIONS",
    "Atom",
    "AtomRenderer",
    "Card",
    "CardRenderer",
    "CardSection",
    "ImageSection",
    "ListSection",
    "MarkdownRenderer",
    "Marker",
    "MarkerKind",
    "Markup",
    "MarkupSection",
    "Mobiledoc",
    "MobiledocError",
    "MobiledocFormatError",
    "Section",
    "UnknownCardError",
    "UnsupportedVersionError",
    "parse_mobiledoc",
]
