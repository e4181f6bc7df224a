"""Host primitives consumed by the mapper.

``DesignHost`` is the seam to a design tool: node creation, font loading,
image registration and vector import. ``InMemoryHost`` implements it with
plain design-tree objects so a whole pipeline can run, and be tested,
without a design tool attached.
"""

import hashlib
import io
import logging
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Set, Tuple

from PIL import Image, UnidentifiedImageError

from .css import WEIGHT_STYLE_NAMES
from .design import FontName, FrameNode, RectangleNode, SceneNode, TextNode, VectorNode
from .errors import FontLoadError, ImageDecodeError, VectorImportError

logger = logging.getLogger(__name__)

DEFAULT_FAMILIES = ["Inter", "Roboto Serif", "Roboto Mono"]


def standard_styles() -> List[str]:
    names = list(WEIGHT_STYLE_NAMES.values())
    return names + [f"{n} Italic" for n in names]


class DesignHost(ABC):
    @abstractmethod
    def create_frame(self) -> FrameNode:
        ...

    @abstractmethod
    def create_text(self) -> TextNode:
        ...

    @abstractmethod
    def create_rectangle(self) -> RectangleNode:
        ...

    @abstractmethod
    def create_node_from_svg(self, markup: str) -> SceneNode:
        """Import vector markup; raises VectorImportError when it cannot."""

    @abstractmethod
    async def load_font(self, font: FontName) -> None:
        """Make ``font`` usable for text content; raises FontLoadError."""

    @abstractmethod
    def create_image(self, data: bytes) -> str:
        """Register raster bytes and return an opaque image handle."""

    @abstractmethod
    def remove(self, node: SceneNode) -> None:
        ...


class InMemoryHost(DesignHost):
    """Design host backed by in-process node objects.

    Args:
        fonts: Available (family, style) pairs. Defaults to Inter, Roboto Serif
            and Roboto Mono in every standard weight, upright and italic.
    """

    def __init__(self, fonts: Optional[Iterable[Tuple[str, str]]] = None):
        if fonts is None:
            fonts = [(f, s) for f in DEFAULT_FAMILIES for s in standard_styles()]
        self.available_fonts: Set[Tuple[str, str]] = set(fonts)
        self.loaded_fonts: Set[FontName] = set()
        self.font_load_attempts: List[FontName] = []
        self.images: Dict[str, Dict[str, int]] = {}
        self.nodes: List[SceneNode] = []

    def _track(self, node):
        self.nodes.append(node)
        return node

    def create_frame(self) -> FrameNode:
        return self._track(FrameNode(name="Frame"))

    def create_text(self) -> TextNode:
        return self._track(TextNode(name="Text"))

    def create_rectangle(self) -> RectangleNode:
        return self._track(RectangleNode(name="Rectangle"))

    def create_node_from_svg(self, markup: str) -> SceneNode:
        try:
            root = ET.fromstring(markup)
        except ET.ParseError as exc:
            raise VectorImportError(f"Invalid SVG markup: {exc}") from exc
        if root.tag.split("}")[-1] != "svg":
            raise VectorImportError(f"Expected <svg> root, got <{root.tag}>")
        return self._track(VectorNode(name="Vector", svg=markup))

    async def load_font(self, font: FontName) -> None:
        self.font_load_attempts.append(font)
        if (font.family, font.style) not in self.available_fonts:
            raise FontLoadError(f"Font unavailable: {font.family} {font.style}")
        self.loaded_fonts.add(font)

    def create_image(self, data: bytes) -> str:
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.verify()
                size = img.size
        except (UnidentifiedImageError, OSError, SyntaxError) as exc:
            raise ImageDecodeError(f"Could not decode image ({len(data)} bytes): {exc}") from exc
        image_hash = hashlib.sha1(data).hexdigest()
        self.images[image_hash] = {"width": size[0], "height": size[1]}
        logger.debug("Registered %dx%d image %s", size[0], size[1], image_hash[:12])
        return image_hash

    def remove(self, node: SceneNode) -> None:
        node.remove()
        removed = set()
        stack = [node]
        while stack:
            current = stack.pop()
            removed.add(current.id)
            stack.extend(getattr(current, "children", []))
        self.nodes = [n for n in self.nodes if n.id not in removed]
