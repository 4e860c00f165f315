"""Conversion pipeline from a Mobiledoc JSON envelope to Markdown."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, TextIO, Union

from .cards import RenderOptions, build_atom_renderers, build_card_renderers
from .errors import DocumentDecodeError, InputReadError, OutputWriteError
from .mobiledoc import MarkdownRenderer, parse_mobiledoc

__all__ = [
    "Envelope",
    "convert",
    "convert_text",
    "decode_envelope",
]

_LOGGER = logging.getLogger("mobiledoc_md")


@dataclass(frozen=True)
class Envelope:
    """Outer document: an optional title and the Mobiledoc payload."""

    mobiledoc: Union[str, Mapping[str, Any]]
    title: str = ""


def decode_envelope(text: str) -> Envelope:
    """Decode the first JSON value in ``text`` into an :class:`Envelope`.

    Anything after that value is ignored.
    """

    try:
        data, _ = json.JSONDecoder().raw_decode(text.lstrip())
    except json.JSONDecodeError as exc:
        raise DocumentDecodeError(f"error decoding input JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise DocumentDecodeError(
            "error decoding input JSON: expected an object with "
            "'title' and 'mobiledoc' fields."
        )

    title = data.get("title")
    if title is None:
        title = ""
    elif not isinstance(title, str):
        raise DocumentDecodeError(
            "error decoding input JSON: 'title' must be a string."
        )

    mobiledoc = data.get("mobiledoc")
    if not isinstance(mobiledoc, (str, dict)):
        raise DocumentDecodeError(
            "error decoding input JSON: 'mobiledoc' must be a string "
            "or an object."
        )
    return Envelope(mobiledoc=mobiledoc, title=title)


def convert_text(
    text: str,
    options: RenderOptions,
    *,
    logger: Optional[logging.Logger] = None,
) -> str:
    """Render the envelope in ``text`` and return the Markdown document."""

    log = logger or _LOGGER
    envelope = decode_envelope(text)
    doc = parse_mobiledoc(envelope.mobiledoc)
    log.debug(
        "Decoded Mobiledoc document",
        extra={
            "version": doc.version,
            "section_count": len(doc.sections),
            "card_count": len(doc.cards),
        },
    )

    renderer = MarkdownRenderer(
        build_card_renderers(options),
        atoms=build_atom_renderers(),
        logger=log,
    )
    body = renderer.render(doc)

    if envelope.title:
        return f"# {envelope.title}\n\n{body}"
    return body


def convert(
    source: TextIO,
    sink: TextIO,
    options: RenderOptions,
    *,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Read an envelope from ``source`` and write Markdown to ``sink``.

    The document is rendered completely before anything is written, so a
    failure leaves ``sink`` untouched.
    """

    try:
        text = source.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise InputReadError(f"cannot read input: {exc}") from exc

    document = convert_text(text, options, logger=logger)
    try:
        sink.write(document)
        sink.flush()
    except (OSError, ValueError) as exc:
        raise OutputWriteError(f"cannot write to output: {exc}") from exc
