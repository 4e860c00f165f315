from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any, Callable, Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent

# Ensure src/ is importable when the package is not installed.
SRC = str(ROOT / "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)


def build_mobiledoc(
    sections: list[Any],
    *,
    markups: list[Any] | None = None,
    atoms: list[Any] | None = None,
    cards: list[Any] | None = None,
    version: str = "0.3.1",
) -> dict[str, Any]:
    return {
        "version": version,
        "markups": markups or [],
        "atoms": atoms or [],
        "cards": cards or [],
        "sections": sections,
    }


def paragraph(text: str) -> list[Any]:
    return [1, "p", [[0, [], 0, text]]]


@pytest.fixture
def mobiledoc_factory() -> Callable[..., dict[str, Any]]:
    """Build 0.3 Mobiledoc dictionaries with sensible empty tables."""

    return build_mobiledoc


@pytest.fixture
def envelope_factory() -> Callable[..., str]:
    """Serialize ``{title, mobiledoc}`` envelopes the way exporters do."""

    def _build(doc: dict[str, Any], title: str | None = "") -> str:
        payload: dict[str, Any] = {"mobiledoc": json.dumps(doc)}
        if title is not None:
            payload["title"] = title
        return json.dumps(payload)

    return _build


@pytest.fixture
def article() -> dict[str, Any]:
    """A small article exercising every card handled by the converter."""

    return build_mobiledoc(
        [
            paragraph("Intro"),
            [10, 0],
            [10, 1],
            [10, 2],
            [10, 3],
        ],
        cards=[
            ["image", {"src": "https://cdn.example.com/a.jpg", "caption": "A"}],
            [
                "gallery",
                {
                    "images": [
                        {
                            "fileName": "b.jpg",
                            "row": 0,
                            "width": 800,
                            "height": 600,
                            "src": "https://cdn.example.com/b.jpg",
                        },
                        {
                            "fileName": "c.jpg",
                            "row": 0,
                            "width": 800,
                            "height": 600,
                            "src": "https://cdn.example.com/c.jpg",
                        },
                    ]
                },
            ],
            ["markdown", {"markdown": "**x**"}],
            ["html", {"html": "<div class=\"note\">hi</div>"}],
        ],
    )


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch) -> Iterator[None]:
    for key in list(os.environ):
        if key.startswith("MOBILEDOC_MD_"):
            monkeypatch.delenv(key)
    yield
