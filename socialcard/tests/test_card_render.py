"""Tests for the Jinja2 -> SVG -> PNG rendering pipeline."""

import base64
import sys
from types import SimpleNamespace

import pytest

from socialcard.core.errors import RenderError
from socialcard.features.cards.render import BACKGROUND_TINT, CardRenderer, load_font

INSIGHT_VIEW = {
    "page_name": "Friends & Family",
    "repos": [{"name": "app", "avatar_url": "https://github.com/open-sauced.png?size=50"}],
    "repos_overflow": "+2",
    "contributors": [{"login": "bdougie", "avatar_url": "https://github.com/bdougie.png?size=60"}],
    "contributors_overflow": None,
}


@pytest.fixture
def fake_cairosvg(monkeypatch):
    calls = []

    def svg2png(**kwargs):
        calls.append(kwargs)
        return b"\x89PNG-from-cairo"

    monkeypatch.setitem(sys.modules, "cairosvg", SimpleNamespace(svg2png=svg2png))
    return calls


def test_svg_document_has_fixed_canvas():
    renderer = CardRenderer()
    svg = renderer.render_svg(renderer.render_markup("insight_card.svg.j2", INSIGHT_VIEW))

    assert svg.startswith("<svg")
    assert 'width="1200"' in svg
    assert 'height="627"' in svg
    assert 'viewBox="0 0 1200 627"' in svg
    assert svg.rstrip().endswith("</svg>")


def test_markup_is_escaped_and_not_double_escaped():
    renderer = CardRenderer()
    svg = renderer.render_svg(renderer.render_markup("insight_card.svg.j2", INSIGHT_VIEW))

    assert "Friends &amp; Family" in svg
    assert "&amp;amp;" not in svg
    assert "<text" in svg
    assert ">+2</text>" in svg


def test_style_overrides_palette():
    renderer = CardRenderer(style={"accent": "#123456"})
    svg = renderer.render_svg("")

    assert "#123456" in svg
    assert "#f4f4f5" in svg


def test_font_is_embedded(tmp_path):
    font = tmp_path / "inter-400.woff"
    font.write_bytes(b"wOFFfake")
    load_font.cache_clear()

    svg = CardRenderer(font_path=str(font)).render_svg("")

    assert "@font-face" in svg
    assert base64.b64encode(b"wOFFfake").decode() in svg
    assert 'format("woff")' in svg


def test_no_font_face_without_font():
    svg = CardRenderer().render_svg("")
    assert "@font-face" not in svg
    assert '"Inter", sans-serif' in svg


def test_rasterize_uses_background_tint(fake_cairosvg):
    png = CardRenderer().rasterize("<svg/>")

    assert png == b"\x89PNG-from-cairo"
    assert fake_cairosvg[0]["background_color"] == BACKGROUND_TINT == "rgba(238, 235, 230, 0.9)"
    assert fake_cairosvg[0]["bytestring"] == b"<svg/>"
    assert fake_cairosvg[0]["output_width"] == 1200


@pytest.mark.asyncio
async def test_render_returns_both_formats(fake_cairosvg):
    buffers = await CardRenderer().render("insight_card.svg.j2", INSIGHT_VIEW)

    assert buffers.png == b"\x89PNG-from-cairo"
    assert buffers.svg.startswith("<svg")
    assert fake_cairosvg[0]["bytestring"] == buffers.svg.encode("utf-8")


@pytest.mark.asyncio
async def test_missing_template_is_render_error():
    with pytest.raises(RenderError):
        await CardRenderer().render("nope.svg.j2", {})


@pytest.mark.asyncio
async def test_incomplete_view_is_render_error():
    with pytest.raises(RenderError):
        await CardRenderer().render("insight_card.svg.j2", {"page_name": "x"})


@pytest.mark.asyncio
async def test_missing_font_file_is_render_error(tmp_path):
    load_font.cache_clear()
    with pytest.raises(RenderError):
        await CardRenderer(font_path=str(tmp_path / "missing.woff")).render("insight_card.svg.j2", INSIGHT_VIEW)


@pytest.mark.asyncio
async def test_rasterizer_failure_is_render_error(monkeypatch):
    def boom(**kwargs):
        raise ValueError("bad svg")

    monkeypatch.setitem(sys.modules, "cairosvg", SimpleNamespace(svg2png=boom))

    with pytest.raises(RenderError):
        await CardRenderer().render("insight_card.svg.j2", INSIGHT_VIEW)
