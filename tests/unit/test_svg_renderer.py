"""Unit tests for the SVG renderer."""

import pytest
from lxml import etree

from pagestamp.core.exceptions import DocumentProcessingFailure, InvalidTemplateStructure
from pagestamp.core.models import Orientation
from pagestamp.rendering.svg_renderer import LAYER_ID, XLINK_NS, SVGRenderer, parse_length

SVG_NS = "http://www.w3.org/2000/svg"
NS = {"svg": SVG_NS}


def parse(svg_text):
    return etree.fromstring(svg_text.encode("utf-8"))


def layer_of(root):
    return root.find(f"svg:g[@id='{LAYER_ID}']", NS)


def test_layer_appended_last(context, generator, page_template):
    renderer = SVGRenderer(context)
    root = parse(renderer.apply_template(generator.svg_text(), page_template))
    children = list(root)
    assert children[-1].get("id") == LAYER_ID
    assert children[-1].tag == f"{{{SVG_NS}}}g"
    assert children[-1].get("opacity") is None


def test_layer_behind_content(context, generator, page_template):
    template = dict(page_template, globalSettings={"layerBehindContent": True})
    root = parse(SVGRenderer(context).apply_template(generator.svg_text(), template))
    first = list(root)[0]
    assert first.get("id") == LAYER_ID
    assert first.get("opacity") == "0.6"


def test_original_nodes_untouched(context, generator, full_template):
    source = generator.svg_text()
    before = parse(source)
    after = parse(SVGRenderer(context).apply_template(source, full_template))
    originals = [child for child in after if child.get("id") != LAYER_ID]
    assert [etree.tostring(n) for n in originals] == [etree.tostring(n) for n in before]


def test_text_node(context, generator, page_template):
    root = parse(SVGRenderer(context).apply_template(generator.svg_text(), page_template, {"page": "4"}))
    text = layer_of(root).find("svg:text", NS)
    assert text.get("text-anchor") == "middle"
    assert text.get("x") == "400"
    tspans = text.findall("svg:tspan", NS)
    assert [t.text for t in tspans] == ["Page 4"]
    assert tspans[0].get("y") == "300"


def test_page_defaults_to_one(context, generator, page_template):
    root = parse(SVGRenderer(context).apply_template(generator.svg_text(), page_template))
    assert layer_of(root).find("svg:text/svg:tspan", NS).text == "Page 1"


def test_view_box_units(context, generator, page_template):
    """Positions are computed in viewBox units."""
    svg = generator.svg_text(width="400", height="300", view_box="0 0 800 600")
    root = parse(SVGRenderer(context).apply_template(svg, page_template))
    tspan = layer_of(root).find("svg:text/svg:tspan", NS)
    assert (tspan.get("x"), tspan.get("y")) == ("400", "300")


def test_canvas_falls_back_to_view_box_then_default(context, generator):
    renderer = SVGRenderer(context)
    from_view_box = renderer.canvas_for(parse(generator.svg_text(width=None, height=None, view_box="0 0 300 200")))
    assert (from_view_box.width, from_view_box.height) == (300, 200)
    assert from_view_box.orientation is Orientation.SVG
    fallback = renderer.canvas_for(parse(generator.svg_text(width="50%", height=None)))
    assert (fallback.width, fallback.height) == (800, 600)


def test_every_kind_builds(context, generator, full_template):
    svg, summary = SVGRenderer(context).render(generator.svg_text(), full_template, {"filename": "lesson.pdf"})
    assert summary.drawn == 7
    assert summary.failed == 0
    layer = layer_of(parse(svg))
    assert layer.find("svg:rect", NS).get("stroke") == "#ff0000"
    assert layer.find("svg:circle", NS).get("r") == "20"
    lines = layer.findall("svg:line", NS)
    assert len(lines) == 2
    assert lines[0].get("stroke-dasharray") is None
    assert lines[1].get("stroke-dasharray") == "3,3"
    link = layer.find("svg:a", NS)
    assert link.get(f"{{{XLINK_NS}}}href") == "https://example.com/item"
    assert link.find("svg:text/svg:tspan", NS).text == "https://example.com/item"


def test_logo_fallback_text(context, generator):
    template = {"elements": {"logo": [{"style": {"size": 80}}]}}
    layer = layer_of(parse(SVGRenderer(context).apply_template(generator.svg_text(), template)))
    node = layer.find("svg:text", NS)
    assert node.text == "LOGO"
    assert node.get("fill") == "#3366cc"
    assert node.get("font-size") == "20"


def test_logo_image(logo_context, generator):
    template = {"elements": {"logo": [{"style": {"size": 80}, "rotation": 15}]}}
    layer = layer_of(parse(SVGRenderer(logo_context).apply_template(generator.svg_text(), template)))
    image = layer.find("svg:image", NS)
    assert image.get(f"{{{XLINK_NS}}}href").startswith("data:image/png;base64,")
    # 40x20 logo scaled to width 80
    assert (image.get("width"), image.get("height")) == ("80", "40")
    assert image.get("transform") == "rotate(15 400 300)"


def test_hebrew_text_keeps_script(context, generator):
    """SVG names a font family, so Hebrew is kept and marked right-to-left."""
    template = {"elements": {"text": [{"content": "שלום"}]}}
    layer = layer_of(parse(SVGRenderer(context).apply_template(generator.svg_text(), template)))
    text = layer.find("svg:text", NS)
    assert text.get("direction") == "rtl"
    assert "Noto Sans Hebrew" in text.get("font-family")
    assert text.find("svg:tspan", NS).text == "שלום"


def test_shadow_blur_filter(context, generator):
    template = {"elements": {"text": [{"id": "t", "content": "hi", "style": {
        "shadow": {"enabled": True, "offsetX": 2, "offsetY": 2, "blur": 4}
    }}]}}
    layer = layer_of(parse(SVGRenderer(context).apply_template(generator.svg_text(), template)))
    assert layer.find("svg:filter/svg:feGaussianBlur", NS) is not None
    texts = layer.findall("svg:text", NS)
    assert len(texts) == 2
    assert texts[0].get("filter") == "url(#shadow-blur-t)"


def test_grid_pattern_count(context, generator):
    template = {"elements": {"box": [{"pattern": "grid"}]}}
    svg, summary = SVGRenderer(context).render(generator.svg_text(), template)
    assert summary.drawn == 16
    assert len(layer_of(parse(svg)).findall("svg:rect", NS)) == 16


def test_xml_declaration_preserved(context, generator, page_template):
    output = SVGRenderer(context).apply_template(generator.svg_text(declaration=True), page_template)
    assert output.startswith("<?xml")


def test_bytes_input(context, generator, page_template):
    output = SVGRenderer(context).apply_template(generator.svg_text().encode("utf-8"), page_template)
    assert LAYER_ID in output


@pytest.mark.parametrize("svg", ["", "<svg><unclosed></svg>", "<html></html>"])
def test_invalid_svg(context, svg, page_template):
    with pytest.raises(DocumentProcessingFailure):
        SVGRenderer(context).apply_template(svg, page_template)


def test_invalid_template(context, generator):
    with pytest.raises(InvalidTemplateStructure):
        SVGRenderer(context).apply_template(generator.svg_text(), {"elements": {}})


@pytest.mark.parametrize("value,expected", [
    ("800", 800), ("800px", 800), ("12.5pt", 12.5), ("100%", None), ("", None), ("abc", None), ("-4", None),
])
def test_parse_length(value, expected):
    assert parse_length(value) == expected
