"""Document snapshot: the portable, style-resolved tree produced by capture.

The wire form is a plain JSON-compatible dict tree::

    Element: {type: "element", tag, attributes, computedStyle, boundingBox, children}
    Text:    {type: "text", content, computedStyle, boundingBox}

In memory every computed style map is loaded once into a ``StyleRecord``
whose attributes hold parsed values (lengths, colors, shadows, gradients)
instead of raw strings.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .color import RGBA, parse_css_color
from .css import Length, LinearGradient, Shadow, parse_box_shadow, parse_font_weight, parse_linear_gradient

LAYOUT_PROPS = [
    "display",
    "position",
    "flex-direction",
    "justify-content",
    "align-items",
    "flex-wrap",
    "gap",
    "row-gap",
    "column-gap",
]

BOX_PROPS = [
    "width",
    "height",
    "min-width",
    "min-height",
    "max-width",
    "max-height",
    "padding-top",
    "padding-right",
    "padding-bottom",
    "padding-left",
    "margin-top",
    "margin-right",
    "margin-bottom",
    "margin-left",
    "top",
    "right",
    "bottom",
    "left",
    "z-index",
]

TYPOGRAPHY_PROPS = [
    "font-family",
    "font-size",
    "font-weight",
    "font-style",
    "line-height",
    "letter-spacing",
    "text-align",
    "text-decoration",
    "text-transform",
    "color",
]

BACKGROUND_PROPS = [
    "background-color",
    "background-image",
    "background-size",
    "background-position",
]

SIDES = ["top", "right", "bottom", "left"]
CORNERS = ["top-left", "top-right", "bottom-right", "bottom-left"]

BORDER_PROPS = (
    [f"border-{s}-width" for s in SIDES]
    + [f"border-{s}-color" for s in SIDES]
    + [f"border-{s}-style" for s in SIDES]
    + [f"border-{c}-radius" for c in CORNERS]
)

EFFECT_PROPS = [
    "opacity",
    "box-shadow",
    "overflow",
    "visibility",
    "object-fit",
]

TRACKED_PROPERTIES = LAYOUT_PROPS + BOX_PROPS + TYPOGRAPHY_PROPS + BACKGROUND_PROPS + BORDER_PROPS + EFFECT_PROPS

ALWAYS_INCLUDED = {"display", "position"}
NOOP_VALUES = {"none", "normal", "auto"}

LENGTH_PROPS = set(
    ["gap", "row-gap", "column-gap", "font-size", "line-height", "letter-spacing"]
    + [p for p in BOX_PROPS if p != "z-index"]
    + [f"border-{s}-width" for s in SIDES]
    + [f"border-{c}-radius" for c in CORNERS]
)
COLOR_PROPS = {"color", "background-color"} | {f"border-{s}-color" for s in SIDES}
# Compared case-insensitively; font-family and background-* keep their case
VERBATIM_PROPS = {"font-family", "background-size", "background-position"}


def attr_name(prop: str) -> str:
    return prop.replace("-", "_")


def filter_style(computed: Dict[str, Any]) -> Dict[str, str]:
    """Keep tracked, non-trivial computed values; display/position always."""
    result: Dict[str, str] = {}
    for prop in TRACKED_PROPERTIES:
        value = computed.get(prop)
        value = "" if value is None else str(value).strip()
        if prop in ALWAYS_INCLUDED:
            result[prop] = value
        elif value and value not in NOOP_VALUES:
            result[prop] = value
    return result


def _first_token(value: str) -> str:
    parts = value.split()
    return parts[0] if parts else value


@dataclass
class StyleRecord:
    """Typed view of one element's computed style map."""

    display: str = ""
    position: str = ""
    flex_direction: Optional[str] = None
    justify_content: Optional[str] = None
    align_items: Optional[str] = None
    flex_wrap: Optional[str] = None
    gap: Optional[Length] = None
    row_gap: Optional[Length] = None
    column_gap: Optional[Length] = None

    width: Optional[Length] = None
    height: Optional[Length] = None
    min_width: Optional[Length] = None
    min_height: Optional[Length] = None
    max_width: Optional[Length] = None
    max_height: Optional[Length] = None
    padding_top: Optional[Length] = None
    padding_right: Optional[Length] = None
    padding_bottom: Optional[Length] = None
    padding_left: Optional[Length] = None
    margin_top: Optional[Length] = None
    margin_right: Optional[Length] = None
    margin_bottom: Optional[Length] = None
    margin_left: Optional[Length] = None
    top: Optional[Length] = None
    right: Optional[Length] = None
    bottom: Optional[Length] = None
    left: Optional[Length] = None
    z_index: Optional[int] = None

    font_family: Optional[str] = None
    font_size: Optional[Length] = None
    font_weight: int = 400
    font_style: Optional[str] = None
    line_height: Optional[Length] = None
    letter_spacing: Optional[Length] = None
    text_align: Optional[str] = None
    text_decoration: Optional[str] = None
    text_transform: Optional[str] = None
    color: Optional[RGBA] = None

    background_color: Optional[RGBA] = None
    background_image: Optional[LinearGradient] = None
    background_size: Optional[str] = None
    background_position: Optional[str] = None

    border_top_width: Optional[Length] = None
    border_right_width: Optional[Length] = None
    border_bottom_width: Optional[Length] = None
    border_left_width: Optional[Length] = None
    border_top_color: Optional[RGBA] = None
    border_right_color: Optional[RGBA] = None
    border_bottom_color: Optional[RGBA] = None
    border_left_color: Optional[RGBA] = None
    border_top_style: Optional[str] = None
    border_right_style: Optional[str] = None
    border_bottom_style: Optional[str] = None
    border_left_style: Optional[str] = None
    border_top_left_radius: Optional[Length] = None
    border_top_right_radius: Optional[Length] = None
    border_bottom_right_radius: Optional[Length] = None
    border_bottom_left_radius: Optional[Length] = None

    opacity: Optional[float] = None
    box_shadow: List[Shadow] = field(default_factory=list)
    overflow: Optional[str] = None
    visibility: Optional[str] = None
    object_fit: Optional[str] = None

    raw: Dict[str, str] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_css(cls, computed: Optional[Dict[str, str]]) -> "StyleRecord":
        raw = {k: str(v) for k, v in (computed or {}).items() if k in TRACKED_PROPERTIES}
        values: Dict[str, Any] = {"raw": raw}
        for prop, value in raw.items():
            name = attr_name(prop)
            value = value.strip()
            if prop in ALWAYS_INCLUDED:
                values[name] = value.lower()
            elif prop in LENGTH_PROPS:
                values[name] = Length.parse(_first_token(value))
            elif prop in COLOR_PROPS:
                values[name] = parse_css_color(value)
            elif prop == "box-shadow":
                values[name] = parse_box_shadow(value)
            elif prop == "background-image":
                values[name] = parse_linear_gradient(value)
            elif prop == "font-weight":
                values[name] = parse_font_weight(value)
            elif prop == "opacity":
                values[name] = _to_float(value)
            elif prop == "z-index":
                number = _to_float(value)
                values[name] = int(number) if number is not None else None
            elif prop in VERBATIM_PROPS:
                values[name] = value
            else:
                values[name] = value.lower()
        return cls(**values)

    def to_css(self) -> Dict[str, str]:
        return dict(self.raw)

    def px(self, name: str, reference: Optional[float] = None) -> float:
        """Resolve a length attribute to pixels, 0 when absent."""
        length = getattr(self, name)
        return length.px(reference) if length is not None else 0.0

    def first_present(self, *props: str) -> Optional[str]:
        """Attribute name of the first property present in the raw map."""
        for prop in props:
            if self.raw.get(prop):
                return attr_name(prop)
        return None

    @property
    def is_italic(self) -> bool:
        return self.font_style in {"italic", "oblique"}


def _to_float(value: str) -> Optional[float]:
    try:
        return float(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class BoundingBox:
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "BoundingBox":
        data = data or {}
        return cls(
            x=float(data.get("x") or 0.0),
            y=float(data.get("y") or 0.0),
            width=max(float(data.get("width") or 0.0), 0.0),
            height=max(float(data.get("height") or 0.0), 0.0),
        )

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @property
    def is_empty(self) -> bool:
        return self.width == 0 and self.height == 0


@dataclass(frozen=True)
class TextNode:
    content: str
    style: StyleRecord
    bounding_box: BoundingBox

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "text",
            "content": self.content,
            "computedStyle": self.style.to_css(),
            "boundingBox": self.bounding_box.to_dict(),
        }


@dataclass(frozen=True)
class ElementNode:
    tag: str
    attributes: Dict[str, str]
    style: StyleRecord
    bounding_box: BoundingBox
    children: Tuple["SnapshotNode", ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "element",
            "tag": self.tag,
            "attributes": dict(self.attributes),
            "computedStyle": self.style.to_css(),
            "boundingBox": self.bounding_box.to_dict(),
            "children": [child.to_dict() for child in self.children],
        }

    def iter_descendants(self) -> Iterable["SnapshotNode"]:
        for child in self.children:
            yield child
            if isinstance(child, ElementNode):
                yield from child.iter_descendants()


SnapshotNode = Union[ElementNode, TextNode]


def node_from_dict(data: Dict[str, Any]) -> SnapshotNode:
    style = StyleRecord.from_css(data.get("computedStyle"))
    box = BoundingBox.from_dict(data.get("boundingBox"))
    if data.get("type") == "text":
        return TextNode(content=str(data.get("content", "")), style=style, bounding_box=box)
    return ElementNode(
        tag=str(data.get("tag", "div")).lower(),
        attributes={str(k): str(v) for k, v in (data.get("attributes") or {}).items()},
        style=style,
        bounding_box=box,
        children=tuple(node_from_dict(c) for c in data.get("children") or []),
    )


def snapshot_from_dict(data: Dict[str, Any]) -> ElementNode:
    return node_from_dict({**data, "type": "element"})


def snapshot_to_dict(root: ElementNode) -> Dict[str, Any]:
    return root.to_dict()


def load_snapshot(text: str) -> ElementNode:
    return snapshot_from_dict(json.loads(text))


def dump_snapshot(root: ElementNode, indent: Optional[int] = 2) -> str:
    return json.dumps(snapshot_to_dict(root), ensure_ascii=False, indent=indent)


# =====================================================================
# Raw serializer output → snapshot
# =====================================================================

DEFAULT_SKIP_TAGS = frozenset({"script", "style", "link", "meta", "noscript"})
ISOLATED_SKIP_TAGS = DEFAULT_SKIP_TAGS | {"iframe"}


def _is_hidden(computed: Dict[str, Any]) -> bool:
    return (computed.get("display") or "").strip() == "none" or (computed.get("visibility") or "").strip() == "hidden"


def _build_children(raw_children: List[Dict[str, Any]], parent_style: Dict[str, str], skip_tags: frozenset) -> List[Dict[str, Any]]:
    nodes: List[Dict[str, Any]] = []
    for raw in raw_children or []:
        if raw.get("type") == "text":
            content = (raw.get("content") or "").strip()
            if not content:
                continue
            box = BoundingBox.from_dict(raw.get("rect"))
            if box.is_empty:
                continue
            nodes.append({
                "type": "text",
                "content": content,
                "computedStyle": dict(parent_style),
                "boundingBox": box.to_dict(),
            })
            continue

        tag = (raw.get("tag") or "").lower()
        computed = raw.get("style") or {}
        if _is_hidden(computed) or tag in skip_tags:
            continue
        box = BoundingBox.from_dict(raw.get("rect"))
        if box.is_empty:
            continue
        style = filter_style(computed)
        nodes.append({
            "type": "element",
            "tag": tag,
            "attributes": dict(raw.get("attributes") or {}),
            "computedStyle": style,
            "boundingBox": box.to_dict(),
            "children": _build_children(raw.get("children") or [], style, skip_tags),
        })
    return nodes


def build_snapshot_dict(raw: Dict[str, Any], skip_tags: Iterable[str] = DEFAULT_SKIP_TAGS) -> Dict[str, Any]:
    """Prune and filter the in-page serializer's raw tree into wire form.

    The root element is always kept; pruning applies to its descendants.
    """
    skip = frozenset(t.lower() for t in skip_tags)
    style = filter_style(raw.get("style") or {})
    return {
        "type": "element",
        "tag": (raw.get("tag") or "body").lower(),
        "attributes": dict(raw.get("attributes") or {}),
        "computedStyle": style,
        "boundingBox": BoundingBox.from_dict(raw.get("rect")).to_dict(),
        "children": _build_children(raw.get("children") or [], style, skip),
    }


def build_snapshot(raw: Dict[str, Any], skip_tags: Iterable[str] = DEFAULT_SKIP_TAGS) -> ElementNode:
    return snapshot_from_dict(build_snapshot_dict(raw, skip_tags))
