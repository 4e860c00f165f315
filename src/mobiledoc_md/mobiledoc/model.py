"""Parse Mobiledoc documents into an immutable section/marker model.

Two serialization families are understood:

* ``0.2.0``: ``sections`` is a ``[markerTypes, sections]`` pair and cards are
  inlined in their sections as ``[10, name, payload]``.
* ``0.3.x``: top-level ``markups``, ``atoms`` and ``cards`` tables referenced
  by index from the sections.

Both are normalized into :class:`Mobiledoc`, where cards always live in a
table and sections refer to them by index.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Sequence, Union

from ..errors import ConversionError

__all__ = [
    "SUPPORTED_VERSIONS",
    "Atom",
    "Card",
    "CardSection",
    "ImageSection",
    "ListSection",
    "Marker",
    "MarkerKind",
    "Markup",
    "MarkupSection",
    "Mobiledoc",
    "MobiledocError",
    "MobiledocFormatError",
    "Section",
    "UnsupportedVersionError",
    "parse_mobiledoc",
]

SUPPORTED_VERSIONS: frozenset[str] = frozenset(
    {"0.2.0", "0.3.0", "0.3.1", "0.3.2"}
)

_MARKUP_SECTION = 1
_IMAGE_SECTION = 2
_LIST_SECTION = 3
_CARD_SECTION = 10


class MobiledocError(ConversionError):
    """Base class for errors raised while reading or rendering Mobiledoc."""


class MobiledocFormatError(MobiledocError):
    """Raised when the Mobiledoc structure is malformed."""


class UnsupportedVersionError(MobiledocError):
    """Raised when the document declares an unknown Mobiledoc version."""


class MarkerKind(Enum):
    """Marker payload type."""

    TEXT = 0
    ATOM = 1


@dataclass(frozen=True)
class Markup:
    """Inline formatting tag, e.g. ``b`` or ``a`` with an ``href``."""

    tag: str
    attributes: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Atom:
    name: str
    text: str
    payload: Any


@dataclass(frozen=True)
class Card:
    name: str
    payload: Any


@dataclass(frozen=True)
class Marker:
    """A run of text (or an atom) that opens and closes markups.

    ``opens`` are indexes into :attr:`Mobiledoc.markups` opened before the
    value; ``closes`` is the number of markups closed after it.
    """

    kind: MarkerKind
    opens: tuple[int, ...]
    closes: int
    value: Union[str, int]


@dataclass(frozen=True)
class MarkupSection:
    tag: str
    markers: tuple[Marker, ...]


@dataclass(frozen=True)
class ImageSection:
    src: str


@dataclass(frozen=True)
class ListSection:
    tag: str
    items: tuple[tuple[Marker, ...], ...]


@dataclass(frozen=True)
class CardSection:
    card_index: int


Section = Union[MarkupSection, ImageSection, ListSection, CardSection]


@dataclass(frozen=True)
class Mobiledoc:
    """Fully parsed Mobiledoc document."""

    version: str
    markups: tuple[Markup, ...]
    atoms: tuple[Atom, ...]
    cards: tuple[Card, ...]
    sections: tuple[Section, ...]


def parse_mobiledoc(source: str | Mapping[str, Any]) -> Mobiledoc:
    """Parse ``source`` (serialized JSON or an already decoded mapping)."""

    if isinstance(source, (str, bytes, bytearray)):
        try:
            data = json.loads(source)
        except json.JSONDecodeError as exc:
            raise MobiledocFormatError(
                f"Mobiledoc is not valid JSON: {exc}"
            ) from exc
    else:
        data = source

    if not isinstance(data, Mapping):
        raise MobiledocFormatError(
            f"Mobiledoc must be a JSON object, found {_type_name(data)}."
        )

    version = data.get("version")
    if not isinstance(version, str):
        raise MobiledocFormatError("Mobiledoc is missing a 'version' string.")
    if version not in SUPPORTED_VERSIONS:
        expected = ", ".join(sorted(SUPPORTED_VERSIONS))
        raise UnsupportedVersionError(
            f"Unsupported Mobiledoc version '{version}'. "
            f"Expected one of: {expected}."
        )

    if version.startswith("0.2."):
        return _parse_v02(version, data)
    return _parse_v03(version, data)


def _parse_v03(version: str, data: Mapping[str, Any]) -> Mobiledoc:
    markups = tuple(
        _parse_markup(entry, f"markups[{index}]")
        for index, entry in enumerate(_list_field(data, "markups"))
    )
    atoms = tuple(
        _parse_atom(entry, f"atoms[{index}]")
        for index, entry in enumerate(_list_field(data, "atoms"))
    )
    cards = tuple(
        _parse_card(entry, f"cards[{index}]")
        for index, entry in enumerate(_list_field(data, "cards"))
    )

    sections: list[Section] = []
    for index, raw in enumerate(_list_field(data, "sections")):
        where = f"sections[{index}]"
        kind = _section_kind(raw, where)
        if kind == _MARKUP_SECTION:
            tag = _tag(raw, where)
            markers = _parse_v03_markers(_item(raw, 2, where), where)
            sections.append(MarkupSection(tag=tag, markers=markers))
        elif kind == _IMAGE_SECTION:
            sections.append(ImageSection(src=_image_src(raw, where)))
        elif kind == _LIST_SECTION:
            tag = _tag(raw, where)
            items = _sequence(_item(raw, 2, where), f"{where} items")
            sections.append(
                ListSection(
                    tag=tag,
                    items=tuple(
                        _parse_v03_markers(item, f"{where} item {position}")
                        for position, item in enumerate(items)
                    ),
                )
            )
        elif kind == _CARD_SECTION:
            card_index = _item(raw, 1, where)
            if not _is_index(card_index, len(cards)):
                raise MobiledocFormatError(
                    f"{where}: card index {card_index!r} is out of range."
                )
            sections.append(CardSection(card_index=card_index))
        else:
            raise MobiledocFormatError(
                f"{where}: unknown section type {kind!r}."
            )

    doc = Mobiledoc(
        version=version,
        markups=markups,
        atoms=atoms,
        cards=cards,
        sections=tuple(sections),
    )
    _check_references(doc)
    return doc


def _parse_v02(version: str, data: Mapping[str, Any]) -> Mobiledoc:
    body = data.get("sections")
    if not isinstance(body, Sequence) or isinstance(body, str) or len(body) != 2:
        raise MobiledocFormatError(
            "Mobiledoc 0.2 'sections' must be a [markerTypes, sections] pair."
        )
    raw_markups, raw_sections = body
    markups = tuple(
        _parse_markup(entry, f"markerTypes[{index}]")
        for index, entry in enumerate(_sequence(raw_markups, "markerTypes"))
    )

    cards: list[Card] = []
    sections: list[Section] = []
    for index, raw in enumerate(_sequence(raw_sections, "sections")):
        where = f"sections[{index}]"
        kind = _section_kind(raw, where)
        if kind == _MARKUP_SECTION:
            tag = _tag(raw, where)
            markers = _parse_v02_markers(_item(raw, 2, where), where)
            sections.append(MarkupSection(tag=tag, markers=markers))
        elif kind == _IMAGE_SECTION:
            sections.append(ImageSection(src=_image_src(raw, where)))
        elif kind == _LIST_SECTION:
            tag = _tag(raw, where)
            items = _sequence(_item(raw, 2, where), f"{where} items")
            sections.append(
                ListSection(
                    tag=tag,
                    items=tuple(
                        _parse_v02_markers(item, f"{where} item {position}")
                        for position, item in enumerate(items)
                    ),
                )
            )
        elif kind == _CARD_SECTION:
            name = _item(raw, 1, where)
            if not isinstance(name, str):
                raise MobiledocFormatError(f"{where}: card name must be a string.")
            payload = raw[2] if len(raw) > 2 else {}
            cards.append(Card(name=name, payload=payload))
            sections.append(CardSection(card_index=len(cards) - 1))
        else:
            raise MobiledocFormatError(
                f"{where}: unknown section type {kind!r}."
            )

    doc = Mobiledoc(
        version=version,
        markups=markups,
        atoms=(),
        cards=tuple(cards),
        sections=tuple(sections),
    )
    _check_references(doc)
    return doc


def _parse_v03_markers(raw: Any, where: str) -> tuple[Marker, ...]:
    markers: list[Marker] = []
    for position, entry in enumerate(_sequence(raw, f"{where} markers")):
        label = f"{where} marker {position}"
        entry = _sequence(entry, label)
        if len(entry) != 4:
            raise MobiledocFormatError(
                f"{label}: expected [type, opens, closes, value]."
            )
        type_id, opens, closes, value = entry
        try:
            kind = MarkerKind(type_id)
        except ValueError as exc:
            raise MobiledocFormatError(
                f"{label}: unknown marker type {type_id!r}."
            ) from exc
        if kind is MarkerKind.TEXT and not isinstance(value, str):
            raise MobiledocFormatError(f"{label}: text value must be a string.")
        if kind is MarkerKind.ATOM and not _is_int(value):
            raise MobiledocFormatError(f"{label}: atom value must be an index.")
        markers.append(
            Marker(
                kind=kind,
                opens=_indexes(opens, label),
                closes=_count(closes, label),
                value=value,
            )
        )
    return tuple(markers)


def _parse_v02_markers(raw: Any, where: str) -> tuple[Marker, ...]:
    markers: list[Marker] = []
    for position, entry in enumerate(_sequence(raw, f"{where} markers")):
        label = f"{where} marker {position}"
        entry = _sequence(entry, label)
        if len(entry) != 3:
            raise MobiledocFormatError(
                f"{label}: expected [opens, closes, text]."
            )
        opens, closes, value = entry
        if not isinstance(value, str):
            raise MobiledocFormatError(f"{label}: text value must be a string.")
        markers.append(
            Marker(
                kind=MarkerKind.TEXT,
                opens=_indexes(opens, label),
                closes=_count(closes, label),
                value=value,
            )
        )
    return tuple(markers)


def _parse_markup(raw: Any, where: str) -> Markup:
    entry = _sequence(raw, where)
    if not entry or not isinstance(entry[0], str):
        raise MobiledocFormatError(f"{where}: markup must start with a tag name.")
    attributes: dict[str, str] = {}
    if len(entry) > 1 and entry[1] is not None:
        flat = _sequence(entry[1], f"{where} attributes")
        if len(flat) % 2:
            raise MobiledocFormatError(
                f"{where}: attributes must be key/value pairs."
            )
        for key, value in zip(flat[::2], flat[1::2]):
            attributes[str(key)] = str(value)
    return Markup(tag=entry[0].lower(), attributes=attributes)


def _parse_atom(raw: Any, where: str) -> Atom:
    entry = _sequence(raw, where)
    if len(entry) != 3 or not isinstance(entry[0], str):
        raise MobiledocFormatError(f"{where}: expected [name, text, payload].")
    if not isinstance(entry[1], str):
        raise MobiledocFormatError(f"{where}: atom text must be a string.")
    return Atom(name=entry[0], text=entry[1], payload=entry[2])


def _parse_card(raw: Any, where: str) -> Card:
    entry = _sequence(raw, where)
    if not entry or not isinstance(entry[0], str):
        raise MobiledocFormatError(f"{where}: card must start with a name.")
    payload = entry[1] if len(entry) > 1 else {}
    return Card(name=entry[0], payload=payload)


def _check_references(doc: Mobiledoc) -> None:
    for index, section in enumerate(doc.sections):
        if isinstance(section, MarkupSection):
            runs: tuple[tuple[Marker, ...], ...] = (section.markers,)
        elif isinstance(section, ListSection):
            runs = section.items
        else:
            continue
        for markers in runs:
            for marker in markers:
                for markup_index in marker.opens:
                    if not _is_index(markup_index, len(doc.markups)):
                        raise MobiledocFormatError(
                            f"sections[{index}]: markup index "
                            f"{markup_index} is out of range."
                        )
                if marker.kind is MarkerKind.ATOM and not _is_index(
                    marker.value, len(doc.atoms)
                ):
                    raise MobiledocFormatError(
                        f"sections[{index}]: atom index {marker.value} "
                        "is out of range."
                    )


def _list_field(data: Mapping[str, Any], key: str) -> Sequence[Any]:
    value = data.get(key, [])
    if value is None:
        return []
    return _sequence(value, key)


def _sequence(value: Any, where: str) -> Sequence[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise MobiledocFormatError(
            f"{where}: expected an array, found {_type_name(value)}."
        )
    return value


def _item(raw: Sequence[Any], position: int, where: str) -> Any:
    if len(raw) <= position:
        raise MobiledocFormatError(f"{where}: section is truncated.")
    return raw[position]


def _section_kind(raw: Any, where: str) -> Any:
    entry = _sequence(raw, where)
    if not entry:
        raise MobiledocFormatError(f"{where}: section is empty.")
    return entry[0]


def _tag(raw: Sequence[Any], where: str) -> str:
    tag = _item(raw, 1, where)
    if not isinstance(tag, str):
        raise MobiledocFormatError(f"{where}: tag name must be a string.")
    return tag.lower()


def _image_src(raw: Sequence[Any], where: str) -> str:
    src = _item(raw, 1, where)
    if not isinstance(src, str):
        raise MobiledocFormatError(f"{where}: image src must be a string.")
    return src


def _indexes(value: Any, where: str) -> tuple[int, ...]:
    entries = _sequence(value, f"{where} opens")
    if not all(_is_int(entry) for entry in entries):
        raise MobiledocFormatError(f"{where}: markup indexes must be integers.")
    return tuple(entries)


def _count(value: Any, where: str) -> int:
    if not _is_int(value) or value < 0:
        raise MobiledocFormatError(
            f"{where}: closed markup count must be a non-negative integer."
        )
    return value


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_index(value: Any, size: int) -> bool:
    return _is_int(value) and 0 <= value < size


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    return type(value).__name__
