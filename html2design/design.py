"""Design tree nodes.

Mutable node objects shaped after a design tool's scene API: create a node,
set its paints/effects/layout attributes, ``resize`` it and append children.
Positions are always relative to the parent node's origin.
"""

import itertools
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .color import RGBA

_ids = itertools.count(1)


def _next_id() -> str:
    return f"node-{next(_ids)}"


@dataclass
class SolidPaint:
    color: RGBA
    opacity: float = 1.0
    type: str = "SOLID"

    @classmethod
    def from_rgba(cls, color: RGBA) -> "SolidPaint":
        return cls(color=RGBA(color.r, color.g, color.b), opacity=color.a)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "color": self.color.rgb(), "opacity": self.opacity}


@dataclass
class GradientPaint:
    gradient_transform: List[List[float]]
    gradient_stops: List[Dict[str, Any]]
    type: str = "GRADIENT_LINEAR"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "gradientTransform": self.gradient_transform,
            "gradientStops": self.gradient_stops,
        }


@dataclass
class ImagePaint:
    image_hash: str
    scale_mode: str = "FILL"
    type: str = "IMAGE"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "imageHash": self.image_hash, "scaleMode": self.scale_mode}


Paint = Union[SolidPaint, GradientPaint, ImagePaint]


@dataclass
class ShadowEffect:
    type: str
    color: RGBA
    offset_x: float
    offset_y: float
    radius: float
    spread: float = 0.0
    visible: bool = True
    blend_mode: str = "NORMAL"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "color": self.color.to_dict(),
            "offset": {"x": self.offset_x, "y": self.offset_y},
            "radius": self.radius,
            "spread": self.spread,
            "visible": self.visible,
            "blendMode": self.blend_mode,
        }


@dataclass(frozen=True)
class FontName:
    family: str
    style: str = "Regular"

    @property
    def key(self) -> str:
        return f"{self.family}::{self.style}"

    def to_dict(self) -> Dict[str, str]:
        return {"family": self.family, "style": self.style}


@dataclass
class SceneNode:
    name: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float = 100.0
    height: float = 100.0
    opacity: float = 1.0
    layout_sizing_horizontal: Optional[str] = None
    layout_sizing_vertical: Optional[str] = None
    plugin_data: Dict[str, str] = field(default_factory=dict)
    id: str = field(default_factory=_next_id)
    parent: Optional["FrameNode"] = field(default=None, repr=False, compare=False)

    type = "NODE"

    def resize(self, width: float, height: float) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Node size must be positive, got {width}x{height}")
        self.width = width
        self.height = height

    def set_plugin_data(self, key: str, value: str) -> None:
        self.plugin_data[key] = value

    def get_plugin_data(self, key: str) -> str:
        return self.plugin_data.get(key, "")

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.children = [c for c in self.parent.children if c is not self]
            self.parent = None

    def _base_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type,
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }
        if self.opacity != 1.0:
            data["opacity"] = self.opacity
        if self.layout_sizing_horizontal:
            data["layoutSizingHorizontal"] = self.layout_sizing_horizontal
        if self.layout_sizing_vertical:
            data["layoutSizingVertical"] = self.layout_sizing_vertical
        if self.plugin_data:
            data["pluginData"] = dict(self.plugin_data)
        return data

    def to_dict(self) -> Dict[str, Any]:
        return self._base_dict()


@dataclass
class GeometryMixin:
    fills: List[Paint] = field(default_factory=list)
    strokes: List[Paint] = field(default_factory=list)
    stroke_weight: float = 0.0
    stroke_align: str = "CENTER"
    stroke_top_weight: Optional[float] = None
    stroke_right_weight: Optional[float] = None
    stroke_bottom_weight: Optional[float] = None
    stroke_left_weight: Optional[float] = None
    effects: List[ShadowEffect] = field(default_factory=list)
    corner_radius: float = 0.0
    top_left_radius: Optional[float] = None
    top_right_radius: Optional[float] = None
    bottom_right_radius: Optional[float] = None
    bottom_left_radius: Optional[float] = None

    def _geometry_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"fills": [p.to_dict() for p in self.fills]}
        if self.strokes:
            data["strokes"] = [p.to_dict() for p in self.strokes]
            data["strokeWeight"] = self.stroke_weight
            data["strokeAlign"] = self.stroke_align
            if self.stroke_top_weight is not None:
                data["strokeTopWeight"] = self.stroke_top_weight
                data["strokeRightWeight"] = self.stroke_right_weight
                data["strokeBottomWeight"] = self.stroke_bottom_weight
                data["strokeLeftWeight"] = self.stroke_left_weight
        if self.effects:
            data["effects"] = [e.to_dict() for e in self.effects]
        if self.top_left_radius is not None:
            data["topLeftRadius"] = self.top_left_radius
            data["topRightRadius"] = self.top_right_radius
            data["bottomRightRadius"] = self.bottom_right_radius
            data["bottomLeftRadius"] = self.bottom_left_radius
        elif self.corner_radius:
            data["cornerRadius"] = self.corner_radius
        return data


@dataclass
class RectangleNode(GeometryMixin, SceneNode):
    type = "RECTANGLE"

    def to_dict(self) -> Dict[str, Any]:
        return {**self._base_dict(), **self._geometry_dict()}


@dataclass
class FrameNode(GeometryMixin, SceneNode):
    children: List[SceneNode] = field(default_factory=list)
    clips_content: bool = False
    layout_mode: str = "NONE"
    primary_axis_align_items: str = "MIN"
    counter_axis_align_items: str = "MIN"
    layout_wrap: str = "NO_WRAP"
    item_spacing: float = 0.0
    counter_axis_spacing: float = 0.0
    padding_top: float = 0.0
    padding_right: float = 0.0
    padding_bottom: float = 0.0
    padding_left: float = 0.0

    type = "FRAME"

    def append_child(self, node: SceneNode) -> None:
        if node.parent is not None:
            node.remove()
        node.parent = self
        self.children.append(node)

    def to_dict(self) -> Dict[str, Any]:
        data = {**self._base_dict(), **self._geometry_dict()}
        data["clipsContent"] = self.clips_content
        if self.layout_mode != "NONE":
            data.update({
                "layoutMode": self.layout_mode,
                "primaryAxisAlignItems": self.primary_axis_align_items,
                "counterAxisAlignItems": self.counter_axis_align_items,
                "layoutWrap": self.layout_wrap,
                "itemSpacing": self.item_spacing,
                "counterAxisSpacing": self.counter_axis_spacing,
                "paddingTop": self.padding_top,
                "paddingRight": self.padding_right,
                "paddingBottom": self.padding_bottom,
                "paddingLeft": self.padding_left,
            })
        data["children"] = [child.to_dict() for child in self.children]
        return data


@dataclass
class TextNode(SceneNode):
    characters: str = ""
    font_name: FontName = field(default_factory=lambda: FontName("Inter", "Regular"))
    font_size: float = 12.0
    line_height: Optional[Dict[str, Any]] = None
    letter_spacing: Optional[Dict[str, Any]] = None
    fills: List[Paint] = field(default_factory=list)
    text_align_horizontal: str = "LEFT"
    text_decoration: str = "NONE"
    text_case: str = "ORIGINAL"
    text_auto_resize: str = "WIDTH_AND_HEIGHT"

    type = "TEXT"

    def to_dict(self) -> Dict[str, Any]:
        data = self._base_dict()
        data.update({
            "characters": self.characters,
            "fontName": self.font_name.to_dict(),
            "fontSize": self.font_size,
            "fills": [p.to_dict() for p in self.fills],
            "textAlignHorizontal": self.text_align_horizontal,
            "textDecoration": self.text_decoration,
            "textCase": self.text_case,
            "textAutoResize": self.text_auto_resize,
        })
        if self.line_height is not None:
            data["lineHeight"] = self.line_height
        if self.letter_spacing is not None:
            data["letterSpacing"] = self.letter_spacing
        return data


@dataclass
class VectorNode(SceneNode):
    svg: str = ""

    type = "VECTOR"

    def to_dict(self) -> Dict[str, Any]:
        return {**self._base_dict(), "svg": self.svg}


DesignNode = Union[FrameNode, TextNode, RectangleNode, VectorNode]
