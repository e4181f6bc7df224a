"""CSS value translators.

Pure functions that turn single computed CSS value strings into design
primitives. None of them raise on bad input: every unparsable value maps to
a documented default.
"""

import math
import re
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional

from . import settings
from .color import NAMED_COLORS, RGBA, parse_css_color

_LENGTH_RE = re.compile(r"^(-?(?:\d+\.?\d*|\.\d+)(?:e[-+]?\d+)?)([a-z%]*)$")

FONT_WEIGHTS = {
    "thin": 100,
    "hairline": 100,
    "extralight": 200,
    "ultralight": 200,
    "light": 300,
    "normal": 400,
    "regular": 400,
    "medium": 500,
    "semibold": 600,
    "demibold": 600,
    "bold": 700,
    "extrabold": 800,
    "ultrabold": 800,
    "black": 900,
    "heavy": 900,
}

WEIGHT_STYLE_NAMES = {
    100: "Thin",
    200: "ExtraLight",
    300: "Light",
    400: "Regular",
    500: "Medium",
    600: "SemiBold",
    700: "Bold",
    800: "ExtraBold",
    900: "Black",
}

DEFAULT_SHADOW_COLOR = "rgba(0,0,0,0.25)"

GRADIENT_DIRECTIONS = {
    "to top": 0.0,
    "to right": 90.0,
    "to bottom": 180.0,
    "to left": 270.0,
}


class Length(NamedTuple):
    value: float
    unit: str = "px"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Length"]:
        if not value:
            return None
        value = value.strip().lower()
        if value in {"auto", "none", "normal"}:
            return None
        match = _LENGTH_RE.match(value)
        if not match:
            return None
        return cls(float(match.group(1)), match.group(2))

    def px(self, reference: Optional[float] = None) -> float:
        num, unit = self.value, self.unit
        if unit == "px":
            return num
        if unit in {"rem", "em"}:
            return num * settings.ROOT_FONT_SIZE
        if unit == "%":
            return num / 100.0 * reference if reference else 0.0
        if unit == "vw":
            return num / 100.0 * settings.REFERENCE_VIEWPORT_WIDTH
        if unit == "vh":
            return num / 100.0 * settings.REFERENCE_VIEWPORT_HEIGHT
        if unit == "pt":
            return num * 4.0 / 3.0
        if unit == "":
            return num
        return 0.0


def parse_css_length(value: Optional[str], reference: Optional[float] = None) -> float:
    """Resolve a CSS length to pixels; 0 for auto/none/unparsable input.

    Unitless numbers pass through unchanged (line-height multipliers).
    Percentages need ``reference`` and resolve to 0 without it.
    """
    length = Length.parse(value)
    if length is None:
        return 0.0
    return length.px(reference)


def parse_font_weight(value: Optional[str]) -> int:
    if not value:
        return 400
    key = re.sub(r"[-\s]", "", value.lower())
    if key in FONT_WEIGHTS:
        return FONT_WEIGHTS[key]
    match = re.match(r"^\s*(\d+)", value)
    return int(match.group(1)) if match else 400


def font_style_name(weight: int, italic: bool = False) -> str:
    # min() keeps the first (lighter) bucket on ties
    closest = min(WEIGHT_STYLE_NAMES, key=lambda w: abs(w - weight))
    name = WEIGHT_STYLE_NAMES[closest]
    return f"{name} Italic" if italic else name


def map_text_align(value: Optional[str]) -> str:
    return {
        "center": "CENTER",
        "right": "RIGHT",
        "end": "RIGHT",
        "justify": "JUSTIFIED",
    }.get((value or "").strip().lower(), "LEFT")


def map_text_decoration(value: Optional[str]) -> str:
    value = (value or "").lower()
    if "underline" in value:
        return "UNDERLINE"
    if "line-through" in value:
        return "STRIKETHROUGH"
    return "NONE"


def map_text_case(value: Optional[str]) -> str:
    return {
        "uppercase": "UPPER",
        "lowercase": "LOWER",
        "capitalize": "TITLE",
    }.get((value or "").strip().lower(), "ORIGINAL")


def split_top_level(value: str, sep: str = ",") -> List[str]:
    """Split on ``sep`` outside of parentheses."""
    parts = []
    depth = 0
    current = ""
    for char in value:
        if char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        if char == sep and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += char
    if current.strip():
        parts.append(current.strip())
    return parts


@dataclass
class Shadow:
    offset_x: float
    offset_y: float
    blur: float = 0.0
    spread: float = 0.0
    color: str = DEFAULT_SHADOW_COLOR
    inset: bool = False

    def rgba(self) -> RGBA:
        return parse_css_color(self.color) or parse_css_color(DEFAULT_SHADOW_COLOR)


def _parse_single_shadow(entry: str) -> Optional[Shadow]:
    tokens = entry.split()
    inset = "inset" in tokens
    remaining = " ".join(t for t in tokens if t != "inset")

    color = DEFAULT_SHADOW_COLOR
    func = re.search(r"(rgba?\([^)]*\)|hsla?\([^)]*\))", remaining)
    hex_match = re.search(r"(#[0-9a-fA-F]{3,8})\b", remaining)
    if func:
        color = func.group(1)
        remaining = remaining.replace(color, " ")
    elif hex_match:
        color = hex_match.group(1)
        remaining = remaining.replace(color, " ")
    else:
        for token in remaining.split():
            if token.lower() in NAMED_COLORS:
                color = token
                remaining = remaining.replace(token, " ", 1)
                break

    lengths = []
    for token in remaining.split():
        length = Length.parse(token)
        if length is not None:
            lengths.append(length.px())
    if len(lengths) < 2:
        return None

    return Shadow(
        offset_x=lengths[0],
        offset_y=lengths[1],
        blur=lengths[2] if len(lengths) > 2 else 0.0,
        spread=lengths[3] if len(lengths) > 3 else 0.0,
        color=color,
        inset=inset,
    )


def parse_box_shadow(value: Optional[str]) -> List[Shadow]:
    if not value or value.strip() == "none":
        return []
    shadows = []
    for entry in split_top_level(value):
        shadow = _parse_single_shadow(entry)
        if shadow:
            shadows.append(shadow)
    return shadows


class GradientStop(NamedTuple):
    position: float
    color: RGBA


@dataclass
class LinearGradient:
    angle: float
    stops: List[GradientStop] = field(default_factory=list)

    def transform(self) -> List[List[float]]:
        rad = math.radians(self.angle)
        cos = math.cos(rad)
        sin = math.sin(rad)
        return [
            [cos, sin, 0.5 - cos * 0.5 - sin * 0.5],
            [-sin, cos, 0.5 + sin * 0.5 - cos * 0.5],
        ]


def _extract_call(value: str, name: str) -> Optional[str]:
    start = value.find(name + "(")
    if start < 0:
        return None
    depth = 0
    body_start = start + len(name) + 1
    for idx in range(body_start - 1, len(value)):
        if value[idx] == "(":
            depth += 1
        elif value[idx] == ")":
            depth -= 1
            if depth == 0:
                return value[body_start:idx]
    return None


def _stop_color(part: str) -> Optional[RGBA]:
    color = parse_css_color(part)
    if color is not None:
        return color
    # "red 10%" / "rgb(0, 0, 0) 0%": drop the trailing stop position
    head, _, tail = part.rpartition(" ")
    if head and Length.parse(tail) is not None:
        return parse_css_color(head)
    return None


def parse_linear_gradient(value: Optional[str]) -> Optional[LinearGradient]:
    """Parse ``linear-gradient(...)``; ``None`` when it is not one."""
    if not value:
        return None
    body = _extract_call(value.strip().lower(), "linear-gradient")
    if body is None:
        return None
    parts = split_top_level(body)
    if len(parts) < 2:
        return None

    angle = 180.0
    head = " ".join(parts[0].split())
    angle_match = re.match(r"^(-?\d+\.?\d*)deg$", head)
    if angle_match:
        angle = float(angle_match.group(1))
        parts = parts[1:]
    elif head in GRADIENT_DIRECTIONS:
        angle = GRADIENT_DIRECTIONS[head]
        parts = parts[1:]

    colors = [c for c in (_stop_color(p) for p in parts) if c is not None]
    if len(colors) < 2:
        return None
    last = len(colors) - 1
    stops = [GradientStop(position=i / last, color=c) for i, c in enumerate(colors)]
    return LinearGradient(angle=angle, stops=stops)


class CornerRadii(NamedTuple):
    top_left: float
    top_right: float
    bottom_right: float
    bottom_left: float

    @property
    def uniform(self) -> bool:
        return self.top_left == self.top_right == self.bottom_right == self.bottom_left


def parse_border_radius(
    top_left: Optional[str] = None,
    top_right: Optional[str] = None,
    bottom_right: Optional[str] = None,
    bottom_left: Optional[str] = None,
) -> CornerRadii:
    # elliptical radii ("10px 20px") keep the horizontal radius
    return CornerRadii(*(
        parse_css_length(v.split()[0] if v and v.strip() else v)
        for v in (top_left, top_right, bottom_right, bottom_left)
    ))
