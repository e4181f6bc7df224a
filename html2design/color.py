"""CSS color parsing into normalized (0-1) RGBA values."""

import colorsys
import re
from typing import NamedTuple, Optional


class RGBA(NamedTuple):
    r: float
    g: float
    b: float
    a: float = 1.0

    def rgb(self) -> dict:
        return {"r": self.r, "g": self.g, "b": self.b}

    def to_dict(self) -> dict:
        return {"r": self.r, "g": self.g, "b": self.b, "a": self.a}


NAMED_COLORS = {
    "black": "#000000",
    "white": "#ffffff",
    "red": "#ff0000",
    "green": "#008000",
    "blue": "#0000ff",
    "yellow": "#ffff00",
    "cyan": "#00ffff",
    "magenta": "#ff00ff",
    "gray": "#808080",
    "grey": "#808080",
    "silver": "#c0c0c0",
    "maroon": "#800000",
    "olive": "#808000",
    "lime": "#00ff00",
    "aqua": "#00ffff",
    "teal": "#008080",
    "navy": "#000080",
    "fuchsia": "#ff00ff",
    "purple": "#800080",
    "orange": "#ffa500",
    "pink": "#ffc0cb",
    "brown": "#a52a2a",
    "coral": "#ff7f50",
    "crimson": "#dc143c",
    "darkblue": "#00008b",
    "darkgray": "#a9a9a9",
    "darkgreen": "#006400",
    "darkred": "#8b0000",
    "gold": "#ffd700",
    "indigo": "#4b0082",
    "ivory": "#fffff0",
    "khaki": "#f0e68c",
    "lavender": "#e6e6fa",
    "lightblue": "#add8e6",
    "lightgray": "#d3d3d3",
    "lightgreen": "#90ee90",
    "lightyellow": "#ffffe0",
    "linen": "#faf0e6",
    "mintcream": "#f5fffa",
    "mistyrose": "#ffe4e1",
    "moccasin": "#ffe4b5",
    "oldlace": "#fdf5e6",
    "orangered": "#ff4500",
    "orchid": "#da70d6",
    "peachpuff": "#ffdab9",
    "peru": "#cd853f",
    "plum": "#dda0dd",
    "powderblue": "#b0e0e6",
    "rosybrown": "#bc8f8f",
    "royalblue": "#4169e1",
    "salmon": "#fa8072",
    "sandybrown": "#f4a460",
    "seagreen": "#2e8b57",
    "sienna": "#a0522d",
    "skyblue": "#87ceeb",
    "slateblue": "#6a5acd",
    "slategray": "#708090",
    "snow": "#fffafa",
    "steelblue": "#4682b4",
    "tan": "#d2b48c",
    "thistle": "#d8bfd8",
    "tomato": "#ff6347",
    "turquoise": "#40e0d0",
    "violet": "#ee82ee",
    "wheat": "#f5deb3",
    "whitesmoke": "#f5f5f5",
    "yellowgreen": "#9acd32",
}

_HEX_RE = re.compile(r"^#([0-9a-f]{3,8})$")
_FUNC_RE = re.compile(r"^(rgba?|hsla?)\((.*)\)$")
_NUMBER_RE = re.compile(r"^-?(\d+\.?\d*|\.\d+)(%|deg)?$")


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _split_args(body: str) -> list:
    # rgb(1, 2, 3 / .5), rgb(1 2 3 / 50%) and rgba(1,2,3,.5) all end up as 4 tokens
    body = body.replace("/", " ").replace(",", " ")
    return [p for p in body.split() if p]


def _number(token: str) -> Optional[float]:
    match = _NUMBER_RE.match(token)
    if not match:
        return None
    return float(token.rstrip("%").replace("deg", ""))


def _alpha(token: Optional[str]) -> Optional[float]:
    if token is None:
        return 1.0
    value = _number(token)
    if value is None:
        return None
    if token.endswith("%"):
        value /= 100.0
    return _clamp(value)


def parse_hex(value: str) -> Optional[RGBA]:
    match = _HEX_RE.match(value)
    if not match:
        return None
    h = match.group(1)
    if len(h) in {3, 4}:
        h = "".join(c * 2 for c in h)
    if len(h) not in {6, 8}:
        return None
    r = int(h[0:2], 16) / 255.0
    g = int(h[2:4], 16) / 255.0
    b = int(h[4:6], 16) / 255.0
    a = int(h[6:8], 16) / 255.0 if len(h) == 8 else 1.0
    return RGBA(r, g, b, a)


def _parse_rgb(args: list) -> Optional[RGBA]:
    if len(args) not in {3, 4}:
        return None
    channels = []
    for token in args[:3]:
        value = _number(token)
        if value is None:
            return None
        channels.append(value / 100.0 if token.endswith("%") else value / 255.0)
    alpha = _alpha(args[3] if len(args) == 4 else None)
    if alpha is None:
        return None
    return RGBA(_clamp(channels[0]), _clamp(channels[1]), _clamp(channels[2]), alpha)


def _parse_hsl(args: list) -> Optional[RGBA]:
    if len(args) not in {3, 4}:
        return None
    h, s, l = (_number(t) for t in args[:3])
    if h is None or s is None or l is None:
        return None
    alpha = _alpha(args[3] if len(args) == 4 else None)
    if alpha is None:
        return None
    r, g, b = colorsys.hls_to_rgb((h % 360.0) / 360.0, _clamp(l / 100.0), _clamp(s / 100.0))
    return RGBA(_clamp(r), _clamp(g), _clamp(b), alpha)


def parse_css_color(value: Optional[str]) -> Optional[RGBA]:
    """Parse a CSS color string.

    Returns ``None`` for ``transparent``, ``none``, empty or unrecognized
    input. Channels are normalized to the 0-1 range.
    """
    if not value:
        return None
    value = value.strip().lower()
    if value in {"transparent", "none"}:
        return None
    value = NAMED_COLORS.get(value, value)
    if value.startswith("#"):
        return parse_hex(value)
    match = _FUNC_RE.match(value)
    if not match:
        return None
    args = _split_args(match.group(2))
    if match.group(1).startswith("rgb"):
        return _parse_rgb(args)
    return _parse_hsl(args)


def is_transparent(color: Optional[RGBA]) -> bool:
    if color is None:
        return True
    return color.a < 0.01
