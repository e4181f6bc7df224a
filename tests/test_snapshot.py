"""Tests for snapshot building, style records and the wire form."""

import json

import pytest

from html2design.color import RGBA
from html2design.css import Length
from html2design.snapshot import (
    DEFAULT_SKIP_TAGS,
    ISOLATED_SKIP_TAGS,
    BoundingBox,
    ElementNode,
    StyleRecord,
    TextNode,
    build_snapshot,
    dump_snapshot,
    filter_style,
    load_snapshot,
    snapshot_from_dict,
)


# ---------------------------------------------------------------------------
# Style filtering and typed records
# ---------------------------------------------------------------------------


class TestFilterStyle:

    def test_display_and_position_always_kept(self):
        style = filter_style({"display": "", "position": "static"})
        assert style["display"] == ""
        assert style["position"] == "static"

    def test_noop_values_dropped(self):
        style = filter_style({"display": "block", "box-shadow": "none", "letter-spacing": "normal", "width": "auto"})
        assert "box-shadow" not in style
        assert "letter-spacing" not in style
        assert "width" not in style

    def test_untracked_dropped(self):
        style = filter_style({"display": "block", "cursor": "pointer", "color": "rgb(0, 0, 0)"})
        assert "cursor" not in style
        assert style["color"] == "rgb(0, 0, 0)"


class TestStyleRecord:

    def test_typed_values(self):
        style = StyleRecord.from_css({
            "display": "Flex",
            "gap": "8px 16px",
            "font-weight": "700",
            "font-style": "italic",
            "color": "rgb(255, 0, 0)",
            "opacity": "0.5",
            "z-index": "3",
            "font-family": "Georgia, serif",
            "box-shadow": "rgba(0, 0, 0, 0.5) 2px 4px 8px 0px",
            "background-image": "linear-gradient(red, blue)",
        })
        assert style.display == "flex"
        assert style.gap == Length(8, "px")
        assert style.font_weight == 700
        assert style.is_italic
        assert style.color == RGBA(1.0, 0.0, 0.0, 1.0)
        assert style.opacity == 0.5
        assert style.z_index == 3
        assert style.font_family == "Georgia, serif"
        assert len(style.box_shadow) == 1
        assert style.background_image.angle == 180

    def test_unparsable_values_become_none(self):
        style = StyleRecord.from_css({"color": "bogus", "background-image": "url(a.png)", "opacity": "x"})
        assert style.color is None
        assert style.background_image is None
        assert style.opacity is None

    def test_untracked_properties_ignored(self):
        assert "cursor" not in StyleRecord.from_css({"cursor": "pointer"}).to_css()

    def test_px_and_first_present(self):
        style = StyleRecord.from_css({"padding-left": "12px", "border-right-color": "red"})
        assert style.px("padding_left") == 12
        assert style.px("padding_top") == 0
        assert style.first_present("border-top-color", "border-right-color") == "border_right_color"
        assert style.first_present("border-top-color") is None


# ---------------------------------------------------------------------------
# Raw serializer output → snapshot
# ---------------------------------------------------------------------------


class TestBuildSnapshot:

    def test_display_none_prunes_subtree(self, raw_element, raw_text):
        raw = raw_element("body", children=[
            raw_element("div", style={"display": "none"}, children=[
                raw_element("span", style={"display": "inline"}, children=[raw_text("hidden")]),
            ]),
            raw_element("p", children=[raw_text("shown")]),
        ])
        snapshot = build_snapshot(raw)
        assert [c.tag for c in snapshot.children] == ["p"]
        assert all(getattr(n, "content", "") != "hidden" for n in snapshot.iter_descendants())

    def test_visibility_hidden_pruned(self, raw_element):
        raw = raw_element("body", children=[raw_element("div", style={"visibility": "hidden"})])
        assert build_snapshot(raw).children == ()

    def test_zero_size_pruned_despite_attributes(self, raw_element):
        raw = raw_element("body", children=[
            raw_element("div", rect=(10, 10, 0, 0), style={"width": "0px", "height": "0px"}, attributes={"id": "x", "class": "y"}),
        ])
        assert build_snapshot(raw).children == ()

    def test_one_dimensional_box_kept(self, raw_element):
        raw = raw_element("body", children=[raw_element("hr", rect=(0, 0, 100, 0))])
        assert len(build_snapshot(raw).children) == 1

    def test_skip_tags(self, raw_element):
        raw = raw_element("body", children=[
            raw_element("script"),
            raw_element("style"),
            raw_element("noscript"),
            raw_element("iframe"),
        ])
        assert [c.tag for c in build_snapshot(raw, DEFAULT_SKIP_TAGS).children] == ["iframe"]
        assert build_snapshot(raw, ISOLATED_SKIP_TAGS).children == ()

    def test_text_trimmed_and_inherits_style(self, raw_element, raw_text):
        raw = raw_element("body", children=[
            raw_element("p", style={"color": "rgb(0, 0, 255)", "cursor": "pointer"}, children=[
                raw_text("  Hello  "),
                raw_text("   "),
                raw_text("ghost", rect=(0, 0, 0, 0)),
            ]),
        ])
        paragraph = build_snapshot(raw).children[0]
        assert len(paragraph.children) == 1
        text = paragraph.children[0]
        assert isinstance(text, TextNode)
        assert text.content == "Hello"
        assert text.style.color == RGBA(0.0, 0.0, 1.0, 1.0)
        assert "cursor" not in text.style.to_css()

    def test_root_always_kept(self, raw_element):
        raw = raw_element("body", rect=(0, 0, 0, 0), style={"display": "none"})
        snapshot = build_snapshot(raw)
        assert snapshot.tag == "body"
        assert snapshot.bounding_box.is_empty

    def test_styles_filtered(self, raw_element):
        raw = raw_element("body", style={"box-shadow": "none", "background-color": "rgb(255, 255, 255)"})
        css = build_snapshot(raw).style.to_css()
        assert "box-shadow" not in css
        assert css["background-color"] == "rgb(255, 255, 255)"
        assert "visibility" in css


# ---------------------------------------------------------------------------
# Wire form
# ---------------------------------------------------------------------------


class TestWireForm:

    def test_round_trip(self, element, text):
        data = element("body", (0, 0, 1440, 900), {"background-color": "rgb(255, 255, 255)"}, [
            element("div", (10, 20, 100, 50), {"box-shadow": "rgba(0, 0, 0, 0.5) 2px 4px 8px 0px"}, [
                text("Hi", (12, 22, 20, 16), {"color": "rgb(0, 0, 0)"}),
            ], {"id": "card"}),
        ])
        snapshot = snapshot_from_dict(data)
        restored = load_snapshot(dump_snapshot(snapshot))
        assert restored == snapshot
        assert json.loads(dump_snapshot(restored)) == data

    def test_root_forced_to_element(self):
        snapshot = snapshot_from_dict({"type": "text", "tag": "BODY"})
        assert isinstance(snapshot, ElementNode)
        assert snapshot.tag == "body"
        assert snapshot.bounding_box == BoundingBox()

    def test_negative_sizes_clamped(self):
        assert BoundingBox.from_dict({"x": -5, "width": -1, "height": 3}) == BoundingBox(-5, 0, 0, 3)
