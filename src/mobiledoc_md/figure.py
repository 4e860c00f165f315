"""HTML ``<figure>`` rendering for image cards."""

from __future__ import annotations

from functools import lru_cache

from jinja2 import Environment, Template, TemplateError

from .errors import FigureRenderError

__all__ = ["render_image"]

_FIGURE_TEMPLATE = """
<figure>
  <img src="{{ src }}">
  {% if caption %}<figcaption>{{ caption }}</figcaption>{% endif %}
</figure>
"""


@lru_cache(maxsize=1)
def figure_template() -> Template:
    env = Environment(autoescape=True, keep_trailing_newline=True)
    return env.from_string(_FIGURE_TEMPLATE)


def render_image(src: str, caption: str = "") -> str:
    """Render ``src`` and ``caption`` as an HTML figure fragment.

    Values are HTML-escaped by the template. The ``<figcaption>`` element is
    omitted when ``caption`` is empty.
    """

    try:
        return figure_template().render(src=src, caption=caption)
    except TemplateError as exc:
        raise FigureRenderError(f"Failed to render figure: {exc}") from exc
