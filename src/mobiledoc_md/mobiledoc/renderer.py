"""Markdown renderer for parsed Mobiledoc documents."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from .model import (
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
)

__all__ = [
    "AtomRenderer",
    "CardRenderer",
    "MarkdownRenderer",
    "UnknownCardError",
]

CardRenderer = Callable[[Any], str]
AtomRenderer = Callable[[str, Any], str]

_HEADINGS = {f"h{level}": "#" * level for level in range(1, 7)}
_QUOTES = frozenset({"blockquote", "aside"})

# Symmetric Markdown delimiters; ``a`` is handled separately.
_DELIMITERS = {
    "b": "**",
    "strong": "**",
    "i": "*",
    "em": "*",
    "code": "`",
    "s": "~~",
}
_HTML_MARKUPS = frozenset({"u", "sub", "sup"})


class UnknownCardError(MobiledocError):
    """Raised when a card section names a card with no registered renderer."""


class MarkdownRenderer:
    """Render :class:`Mobiledoc` documents to Markdown text.

    Card sections are dispatched by name to ``cards``; whatever string a card
    renderer returns is inserted verbatim. Atoms without a registered
    renderer fall back to their text value.
    """

    def __init__(
        self,
        cards: Mapping[str, CardRenderer],
        *,
        atoms: Optional[Mapping[str, AtomRenderer]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._cards = dict(cards)
        self._atoms = dict(atoms or {})
        self._logger = logger or logging.getLogger(__name__)

    def render(self, doc: Mobiledoc) -> str:
        parts: list[str] = []
        ends_with_card = False
        for section in doc.sections:
            block = self._render_section(doc, section)
            if not block:
                continue
            if parts:
                parts.append(_separator(parts[-1]))
            parts.append(block)
            ends_with_card = isinstance(section, CardSection)
        if not parts:
            return ""
        body = "".join(parts)
        if ends_with_card:
            # Trailing card output is never trimmed, only newline-terminated.
            return body if body.endswith("\n") else body + "\n"
        return body.rstrip("\n") + "\n"

    def _render_section(self, doc: Mobiledoc, section: Section) -> str:
        if isinstance(section, MarkupSection):
            return self._render_markup_section(doc, section)
        if isinstance(section, ListSection):
            return self._render_list_section(doc, section)
        if isinstance(section, ImageSection):
            return f"![]({section.src})"
        if isinstance(section, CardSection):
            return self._render_card(doc, section)
        raise MobiledocFormatError(  # pragma: no cover - model is closed
            f"Unsupported section {section!r}."
        )

    def _render_markup_section(
        self, doc: Mobiledoc, section: MarkupSection
    ) -> str:
        text = self._render_markers(doc, section.markers)
        if section.tag in _HEADINGS:
            return f"{_HEADINGS[section.tag]} {text}"
        if section.tag in _QUOTES:
            return "\n".join(f"> {line}" for line in text.split("\n"))
        if section.tag == "p":
            return text
        raise MobiledocFormatError(
            f"Unsupported markup section tag '{section.tag}'."
        )

    def _render_list_section(self, doc: Mobiledoc, section: ListSection) -> str:
        if section.tag not in ("ul", "ol"):
            raise MobiledocFormatError(
                f"Unsupported list section tag '{section.tag}'."
            )
        lines = []
        for number, item in enumerate(section.items, start=1):
            bullet = f"{number}." if section.tag == "ol" else "*"
            lines.append(f"{bullet} {self._render_markers(doc, item)}")
        return "\n".join(lines)

    def _render_card(self, doc: Mobiledoc, section: CardSection) -> str:
        card = doc.cards[section.card_index]
        renderer = self._cards.get(card.name)
        if renderer is None:
            raise UnknownCardError(f"No renderer registered for card '{card.name}'.")
        self._logger.debug("Rendering card", extra={"card": card.name})
        return renderer(card.payload)

    def _render_markers(
        self, doc: Mobiledoc, markers: tuple[Marker, ...]
    ) -> str:
        out: list[str] = []
        stack: list[Markup] = []
        for marker in markers:
            for index in marker.opens:
                markup = doc.markups[index]
                out.append(_open(markup))
                stack.append(markup)

            if marker.kind is MarkerKind.ATOM:
                atom = doc.atoms[marker.value]  # type: ignore[index]
                renderer = self._atoms.get(atom.name)
                out.append(
                    renderer(atom.text, atom.payload) if renderer else atom.text
                )
            else:
                out.append(str(marker.value))

            if marker.closes > len(stack):
                raise MobiledocFormatError(
                    "Marker closes more markups than are open."
                )
            for _ in range(marker.closes):
                out.append(_close(stack.pop()))

        # Markups still open at the end of a section are closed implicitly.
        while stack:
            out.append(_close(stack.pop()))
        return "".join(out)


def _open(markup: Markup) -> str:
    if markup.tag == "a":
        return "["
    if markup.tag in _DELIMITERS:
        return _DELIMITERS[markup.tag]
    if markup.tag in _HTML_MARKUPS:
        return f"<{markup.tag}>"
    raise MobiledocFormatError(f"Unsupported markup tag '{markup.tag}'.")


def _close(markup: Markup) -> str:
    if markup.tag == "a":
        return f"]({markup.attributes.get('href', '')})"
    if markup.tag in _DELIMITERS:
        return _DELIMITERS[markup.tag]
    return f"</{markup.tag}>"


def _separator(block: str) -> str:
    if block.endswith("\n\n"):
        return ""
    if block.endswith("\n"):
        return "\n"
    return "\n\n"
