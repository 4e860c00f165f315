"""Exception hierarchy shared by the conversion pipeline."""

from __future__ import annotations

__all__ = [
    "ConversionError",
    "DocumentDecodeError",
    "FigureRenderError",
    "InputReadError",
    "OutputWriteError",
]


class ConversionError(RuntimeError):
    """Raised when a document fails to convert."""


class DocumentDecodeError(ConversionError):
    """Raised when the input envelope is not valid JSON or has the wrong shape."""


class InputReadError(ConversionError):
    """Raised when the input file cannot be opened or read."""


class OutputWriteError(ConversionError):
    """Raised when the rendered document cannot be written."""


class FigureRenderError(ConversionError):
    """Raised when the HTML figure template fails to render."""
