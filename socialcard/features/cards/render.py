"""
Social cards - Rendering pipeline

view model -> markup (Jinja2) -> SVG document (fixed canvas, embedded font,
palette) -> PNG (CairoSVG, fixed background tint).
"""

import asyncio
import base64
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined
from markupsafe import Markup

from socialcard.core.errors import RenderError
from socialcard.features.cards.models import CardBuffers

TEMPLATE_DIR = Path(__file__).resolve().parents[2] / "templates"

CARD_WIDTH = 1200
CARD_HEIGHT = 627
BACKGROUND_TINT = "rgba(238, 235, 230, 0.9)"
FONT_FAMILY = "Inter"

DEFAULT_STYLE = {
    "background": "#f4f4f5",
    "text": "#18181b",
    "muted": "#52525b",
    "accent": "#f97316",
}

_FONT_FORMATS = {
    ".woff": ("woff", "font/woff"),
    ".woff2": ("woff2", "font/woff2"),
    ".ttf": ("truetype", "font/ttf"),
    ".otf": ("opentype", "font/otf"),
}


@lru_cache(maxsize=8)
def load_font(path: str, weight: int = 400) -> Dict[str, Any]:
    """Read a font file once and return its @font-face fields."""
    font_path = Path(path)
    font_format, mime = _FONT_FORMATS.get(font_path.suffix.lower(), ("truetype", "font/ttf"))
    return {
        "family": FONT_FAMILY,
        "data": base64.b64encode(font_path.read_bytes()).decode("ascii"),
        "format": font_format,
        "mime": mime,
        "weight": weight,
    }


def build_environment(template_dir: Path = TEMPLATE_DIR) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=True,
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )


class CardRenderer:
    """Renders one card view model into SVG and PNG."""

    def __init__(
        self,
        *,
        font_path: Optional[str] = None,
        style: Optional[Dict[str, str]] = None,
        env: Optional[Environment] = None,
        width: int = CARD_WIDTH,
        height: int = CARD_HEIGHT,
        background: str = BACKGROUND_TINT,
    ):
        self.font_path = font_path
        self.style = {**DEFAULT_STYLE, **(style or {})}
        self.env = env or build_environment()
        self.width = width
        self.height = height
        self.background = background

    def render_markup(self, template_name: str, view: Dict[str, Any]) -> str:
        return self.env.get_template(template_name).render(**view)

    def render_svg(self, markup: str) -> str:
        font = load_font(self.font_path) if self.font_path else None
        return self.env.get_template("card.svg.j2").render(
            markup=Markup(markup),
            width=self.width,
            height=self.height,
            font=font,
            font_family=FONT_FAMILY,
            style=self.style,
        )

    def rasterize(self, svg: str) -> bytes:
        # libcairo is only needed once a PNG is actually produced
        import cairosvg

        return cairosvg.svg2png(
            bytestring=svg.encode("utf-8"),
            output_width=self.width,
            output_height=self.height,
            background_color=self.background,
        )

    async def render(self, template_name: str, view: Dict[str, Any]) -> CardBuffers:
        try:
            svg = self.render_svg(self.render_markup(template_name, view))
        except Exception as exc:
            raise RenderError(f"Could not build {template_name}: {exc}") from exc

        try:
            png = await asyncio.to_thread(self.rasterize, svg)
        except Exception as exc:
            raise RenderError(f"Could not rasterize {template_name}: {exc}") from exc

        return CardBuffers(png=png, svg=svg)
