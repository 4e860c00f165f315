"""Convert Mobiledoc articles into Markdown."""

from __future__ import annotations

from .cards import (
    CardPayloadError,
    RenderOptions,
    build_atom_renderers,
    build_card_renderers,
)
from .config import (
    ConfigError,
    ConfigOverrides,
    ConverterConfig,
    LoadResult,
    load_config,
)
from .converter import Envelope, convert, convert_text, decode_envelope
from .errors import (
    ConversionError,
    DocumentDecodeError,
    FigureRenderError,
    InputReadError,
    OutputWriteError,
)
from .figure import render_image
from .mobiledoc import (
    MobiledocError,
    MobiledocFormatError,
    UnknownCardError,
    UnsupportedVersionError,
)

__all__ = [
    "CardPayloadError",
    "ConfigError",
    "ConfigOverrides",
    "ConversionError",
    "ConverterConfig",
    "DocumentDecodeError",
    "Envelope",
    "FigureRenderError",
    "InputReadError",
    "LoadResult",
    "MobiledocError",
    "MobiledocFormatError",
    "OutputWriteError",
    "RenderOptions",
    "UnknownCardError",
    "UnsupportedVersionError",
    "build_atom_renderers",
    "build_card_renderers",
    "convert",
    "convert_text",
    "decode_envelope",
    "load_config",
    "render_image",
]
