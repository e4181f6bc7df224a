"""Convert rendered web pages into editable design trees."""

from .capture import SnapshotCapturer, Viewport, resolve_viewport
from .design import FrameNode, RectangleNode, TextNode, VectorNode
from .errors import CaptureError, Html2DesignError, MappingError
from .host import DesignHost, InMemoryHost
from .mapper import DesignMapper, ImportMetadata, MappingContext
from .pipeline import convert_html, convert_url, map_to_design
from .snapshot import ElementNode, StyleRecord, build_snapshot, dump_snapshot, load_snapshot

__version__ = "0.1.0"

__all__ = [
    "CaptureError",
    "DesignHost",
    "DesignMapper",
    "ElementNode",
    "FrameNode",
    "Html2DesignError",
    "ImportMetadata",
    "InMemoryHost",
    "MappingContext",
    "MappingError",
    "RectangleNode",
    "SnapshotCapturer",
    "StyleRecord",
    "TextNode",
    "VectorNode",
    "Viewport",
    "build_snapshot",
    "convert_html",
    "convert_url",
    "dump_snapshot",
    "load_snapshot",
    "map_to_design",
    "resolve_viewport",
]
