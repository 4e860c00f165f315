"""Card renderers for the Mobiledoc cards found in Ghost exports.

Each card payload is validated into a typed structure before rendering, so a
payload with missing or mistyped fields raises :class:`CardPayloadError`
instead of failing halfway through a document.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from markdown_it.common.normalize_url import normalizeLink
from markdown_it.common.utils import escapeHtml

from .figure import render_image
from .mobiledoc import AtomRenderer, CardRenderer, MobiledocError

__all__ = [
    "ATOM_NAMES",
    "CARD_NAMES",
    "CardPayloadError",
    "GalleryImage",
    "GalleryPayload",
    "HtmlPayload",
    "ImagePayload",
    "MarkdownPayload",
    "RenderOptions",
    "build_atom_renderers",
    "build_card_renderers",
    "escape_link_text",
    "escape_link_url",
    "image_markdown",
]

CARD_NAMES: tuple[str, ...] = ("image", "gallery", "markdown", "html")
ATOM_NAMES: tuple[str, ...] = ("soft-return",)

# CommonMark hard line break.
_HARD_BREAK = "\\\n"

_LINK_TEXT_SPECIALS = ("\\", "[", "]")


class CardPayloadError(MobiledocError):
    """Raised when a card payload does not have the expected shape."""


@dataclass(frozen=True)
class RenderOptions:
    """Rendering switches passed explicitly through the pipeline."""

    use_figure: bool = False
    escape_markdown: bool = False


@dataclass(frozen=True)
class ImagePayload:
    src: str
    caption: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> "ImagePayload":
        data = _mapping("image card", payload)
        return cls(
            src=_string("image card", data, "src"),
            caption=_optional_string("image card", data, "caption"),
        )


@dataclass(frozen=True)
class GalleryImage:
    src: str


@dataclass(frozen=True)
class GalleryPayload:
    images: tuple[GalleryImage, ...]

    @classmethod
    def from_payload(cls, payload: Any) -> "GalleryPayload":
        data = _mapping("gallery card", payload)
        raw_images = data.get("images")
        if not isinstance(raw_images, list):
            raise CardPayloadError(
                "gallery card: 'images' must be a list, found "
                f"{_type_name(raw_images)}."
            )
        images = []
        for index, entry in enumerate(raw_images):
            # fileName, row, width and height are layout hints; only src is used.
            label = f"gallery card image {index}"
            image = _mapping(label, entry)
            images.append(GalleryImage(src=_string(label, image, "src")))
        return cls(images=tuple(images))


@dataclass(frozen=True)
class MarkdownPayload:
    markdown: str

    @classmethod
    def from_payload(cls, payload: Any) -> "MarkdownPayload":
        data = _mapping("markdown card", payload)
        return cls(markdown=_string("markdown card", data, "markdown"))


@dataclass(frozen=True)
class HtmlPayload:
    html: str

    @classmethod
    def from_payload(cls, payload: Any) -> "HtmlPayload":
        data = _mapping("html card", payload)
        return cls(html=_string("html card", data, "html"))


def build_card_renderers(options: RenderOptions) -> dict[str, CardRenderer]:
    """Return the card dispatch table for ``options``."""

    def image_card(payload: Any) -> str:
        image = ImagePayload.from_payload(payload)
        return _render_image(image.src, image.caption, options)

    def gallery_card(payload: Any) -> str:
        gallery = GalleryPayload.from_payload(payload)
        return "".join(
            _render_image(image.src, "", options) for image in gallery.images
        )

    def markdown_card(payload: Any) -> str:
        return MarkdownPayload.from_payload(payload).markdown

    def html_card(payload: Any) -> str:
        return HtmlPayload.from_payload(payload).html

    table: dict[str, CardRenderer] = {
        "image": image_card,
        "gallery": gallery_card,
        "markdown": markdown_card,
        "html": html_card,
    }
    return table


def build_atom_renderers() -> dict[str, AtomRenderer]:
    """Return the atom dispatch table.

    Ghost writes a line break inside a paragraph as a ``soft-return`` atom
    with empty text.
    """

    def soft_return(_text: str, _payload: Any) -> str:
        return _HARD_BREAK

    return {"soft-return": soft_return}


def image_markdown(src: str, caption: str = "", *, escape: bool = False) -> str:
    """Return Markdown image syntax for ``src``.

    Without ``escape`` the values are interpolated as-is, so a caption
    containing ``]`` or a URL containing ``)`` produces broken Markdown.
    """

    if escape:
        caption = escape_link_text(caption)
        src = escape_link_url(src)
    return f"![{caption}]({src})\n"


def escape_link_text(text: str) -> str:
    """Backslash-escape bracket characters and HTML-escape ``text``."""

    for char in _LINK_TEXT_SPECIALS:
        text = text.replace(char, "\\" + char)
    return escapeHtml(text)


def escape_link_url(url: str) -> str:
    """Percent-encode ``url`` so it is safe inside ``(...)`` link syntax."""

    return normalizeLink(url).replace("(", "%28").replace(")", "%29")


def _render_image(src: str, caption: str, options: RenderOptions) -> str:
    if options.use_figure:
        return render_image(src, caption)
    return image_markdown(src, caption, escape=options.escape_markdown)


def _mapping(label: str, payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise CardPayloadError(
            f"{label}: payload must be an object, found {_type_name(payload)}."
        )
    return payload


def _string(label: str, data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise CardPayloadError(
            f"{label}: '{key}' must be a string, found {_type_name(value)}."
        )
    return value


def _optional_string(label: str, data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise CardPayloadError(
            f"{label}: '{key}' must be a string, found {_type_name(value)}."
        )
    return value


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    return type(value).__name__
