"""Snapshot → design tree mapping.

``DesignMapper.map_snapshot`` walks a captured snapshot depth-first and
builds design nodes through a ``DesignHost``. Element nodes go through an
ordered chain of classifiers (image, vector, form control, divider, leaf
text container, general container); the first one that returns a node wins.
"""

import base64
import html
import json
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Optional, Set
from urllib.parse import unquote_to_bytes, urljoin, urlparse

import httpx

from . import settings
from .color import RGBA, is_transparent
from .css import font_style_name, map_text_align, map_text_case, map_text_decoration, parse_border_radius
from .design import (
    FontName,
    FrameNode,
    GradientPaint,
    ImagePaint,
    RectangleNode,
    SceneNode,
    ShadowEffect,
    SolidPaint,
)
from .design import TextNode as DesignText
from .errors import FontLoadError, ImageDecodeError, MappingError, VectorImportError
from .host import DesignHost
from .layout import try_apply_auto_layout
from .snapshot import SIDES, BoundingBox, ElementNode, SnapshotNode, StyleRecord, TextNode

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int], None]

PLACEHOLDER_GRAY = RGBA(0.85, 0.85, 0.85)
IMAGE_PLACEHOLDER_GRAY = RGBA(0.9, 0.9, 0.9)
DIVIDER_GRAY = RGBA(0.8, 0.8, 0.8)

FORM_TAGS = {"input", "textarea", "select"}
CLIP_OVERFLOW = {"hidden", "scroll", "auto"}

FONT_FAMILY_MAP = {
    "arial": "Inter",
    "helvetica": "Inter",
    "helvetica neue": "Inter",
    "-apple-system": "Inter",
    "blinkmacsystemfont": "Inter",
    "segoe ui": "Inter",
    "system-ui": "Inter",
    "ui-sans-serif": "Inter",
    "sans-serif": "Inter",
    "serif": "Roboto Serif",
    "ui-serif": "Roboto Serif",
    "times new roman": "Roboto Serif",
    "times": "Roboto Serif",
    "georgia": "Roboto Serif",
    "monospace": "Roboto Mono",
    "ui-monospace": "Roboto Mono",
    "courier new": "Roboto Mono",
    "courier": "Roboto Mono",
}

SEMANTIC_NAMES = {
    "nav": "Navigation",
    "header": "Header",
    "footer": "Footer",
    "main": "Main",
    "aside": "Sidebar",
    "section": "Section",
    "article": "Article",
    "ul": "List",
    "ol": "List",
    "li": "ListItem",
    "button": "Button",
    "a": "Link",
    "form": "Form",
    "table": "Table",
    "thead": "TableHead",
    "tbody": "TableBody",
    "tr": "TableRow",
    "td": "TableCell",
    "th": "TableHeader",
}

OBJECT_FIT_SCALE = {
    "contain": "FIT",
    "cover": "FILL",
    "fill": "FILL",
    "scale-down": "FIT",
}


@dataclass
class ImportMetadata:
    source_url: Optional[str] = None
    viewport: Optional[str] = None
    imported_at: str = field(default_factory=lambda: datetime.now().isoformat())
    source_html: Optional[str] = None
    source_css: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        data = {
            "sourceUrl": self.source_url,
            "viewport": self.viewport,
            "importedAt": self.imported_at,
            "sourceHtml": self.source_html,
            "sourceCss": self.source_css,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class MappingContext:
    """State owned by a single mapping run."""

    http: httpx.AsyncClient
    base_url: Optional[str] = None
    image_cache: Dict[str, str] = field(default_factory=dict)
    failed_fonts: Set[str] = field(default_factory=set)
    total: int = 1
    processed: int = 0


def js_round(value: float) -> int:
    return int(math.floor(value + 0.5))


def clean_font_family(font_family: Optional[str]) -> str:
    if not font_family:
        return settings.DEFAULT_FONT_FAMILY
    first = font_family.split(",")[0].strip().strip("\"'").strip()
    if not first:
        return settings.DEFAULT_FONT_FAMILY
    key = first.lower()
    if key.startswith("helvetica"):
        return "Inter"
    return FONT_FAMILY_MAP.get(key, first)


def resolve_font(style: StyleRecord) -> FontName:
    return FontName(
        family=clean_font_family(style.font_family),
        style=font_style_name(style.font_weight, style.is_italic),
    )


def node_name(element: ElementNode) -> str:
    tag = element.tag
    element_id = element.attributes.get("id")
    if element_id:
        return f"{tag}#{element_id}"
    classes = [c for c in element.attributes.get("class", "").split() if c][:2]
    if classes:
        return f"{tag}." + ".".join(classes)
    return SEMANTIC_NAMES.get(tag, tag)


def reconstruct_svg(element: ElementNode, root: bool = True) -> str:
    attributes = dict(element.attributes)
    if root:
        attributes.setdefault("xmlns", "http://www.w3.org/2000/svg")
        if any(k.startswith("xlink:") for k in attributes):
            attributes.setdefault("xmlns:xlink", "http://www.w3.org/1999/xlink")
    attrs = "".join(f' {k}="{html.escape(v, quote=True)}"' for k, v in attributes.items())
    inner = []
    for child in element.children:
        if isinstance(child, ElementNode):
            inner.append(reconstruct_svg(child, root=False))
        else:
            inner.append(html.escape(child.content, quote=False))
    return f"<{element.tag}{attrs}>{''.join(inner)}</{element.tag}>"


def count_nodes(nodes) -> int:
    count = 0
    for node in nodes:
        count += 1
        if isinstance(node, ElementNode):
            count += count_nodes(node.children)
    return max(count, 1)


def _solid(color: RGBA) -> SolidPaint:
    return SolidPaint.from_rgba(color)


def place(node: SceneNode, box: BoundingBox, parent_box: BoundingBox) -> None:
    """Size a node to its box and position it relative to the parent origin."""
    node.resize(max(js_round(box.width), 1), max(js_round(box.height), 1))
    node.x = js_round(box.x - parent_box.x)
    node.y = js_round(box.y - parent_box.y)


def apply_corner_radii(node, style: StyleRecord) -> None:
    radii = parse_border_radius(
        style.raw.get("border-top-left-radius"),
        style.raw.get("border-top-right-radius"),
        style.raw.get("border-bottom-right-radius"),
        style.raw.get("border-bottom-left-radius"),
    )
    if radii.uniform:
        node.corner_radius = radii.top_left
        return
    node.top_left_radius = radii.top_left
    node.top_right_radius = radii.top_right
    node.bottom_right_radius = radii.bottom_right
    node.bottom_left_radius = radii.bottom_left


def apply_borders(node, style: StyleRecord) -> None:
    widths = [style.px(f"border_{side}_width") for side in SIDES]
    if all(w == 0 for w in widths):
        return

    # one stroke color per shape: the first side that declares one
    attr = style.first_present(*(f"border-{side}-color" for side in SIDES))
    color = getattr(style, attr) if attr else None
    if is_transparent(color):
        return

    node.strokes = [_solid(color)]
    node.stroke_weight = max(widths)
    node.stroke_align = "INSIDE"
    if len(set(widths)) > 1:
        node.stroke_top_weight, node.stroke_right_weight, node.stroke_bottom_weight, node.stroke_left_weight = widths


def apply_box_shadow(node, style: StyleRecord) -> None:
    if not style.box_shadow:
        return
    node.effects = [
        ShadowEffect(
            type="INNER_SHADOW" if shadow.inset else "DROP_SHADOW",
            color=shadow.rgba(),
            offset_x=shadow.offset_x,
            offset_y=shadow.offset_y,
            radius=shadow.blur,
            spread=shadow.spread,
        )
        for shadow in style.box_shadow
    ]


def apply_frame_styles(frame: FrameNode, style: StyleRecord) -> None:
    if not is_transparent(style.background_color):
        frame.fills = [_solid(style.background_color)]
    else:
        frame.fills = []

    gradient = style.background_image
    if gradient is not None:
        frame.fills = [GradientPaint(
            gradient_transform=gradient.transform(),
            gradient_stops=[{"position": s.position, "color": s.color.to_dict()} for s in gradient.stops],
        )]

    if style.opacity is not None:
        frame.opacity = style.opacity

    apply_corner_radii(frame, style)
    apply_borders(frame, style)
    apply_box_shadow(frame, style)

    overflow = (style.overflow or "").split()
    frame.clips_content = bool(overflow) and overflow[0] in CLIP_OVERFLOW


def apply_text_styles(text: DesignText, style: StyleRecord) -> None:
    font_size = style.px("font_size")
    if font_size > 0:
        text.font_size = font_size

    if style.line_height is not None:
        if style.line_height.unit == "":
            line_height = style.line_height.value * text.font_size
        else:
            line_height = style.line_height.px(text.font_size)
        if line_height > 0:
            text.line_height = {"value": line_height, "unit": "PIXELS"}

    if style.letter_spacing is not None:
        text.letter_spacing = {"value": style.letter_spacing.px(), "unit": "PIXELS"}

    if style.color is not None:
        text.fills = [_solid(style.color)]

    text.text_align_horizontal = map_text_align(style.text_align)
    text.text_decoration = map_text_decoration(style.text_decoration)
    text.text_case = map_text_case(style.text_transform)


class DesignMapper:
    """Maps a document snapshot onto design nodes created through ``host``.

    Args:
        host: Node-creation, font, image and vector primitives.
        progress: Optional ``callback(message, percent)``.
        http_client: Optional shared httpx client for image fetches. When
            omitted, each run opens and closes its own client.
    """

    def __init__(
        self,
        host: DesignHost,
        progress: Optional[ProgressCallback] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        image_timeout: float = settings.IMAGE_FETCH_TIMEOUT,
    ):
        self.host = host
        self.progress = progress
        self.http_client = http_client
        self.image_timeout = image_timeout
        self.classifiers = [
            self.map_image,
            self.map_vector,
            self.map_form_control,
            self.map_divider,
            self.map_text_container,
            self.map_container,
        ]

    def report(self, message: str, percent: int) -> None:
        if self.progress:
            self.progress(message, percent)

    async def map_snapshot(self, snapshot: ElementNode, metadata: Optional[ImportMetadata] = None) -> FrameNode:
        """Build the root frame for ``snapshot``.

        Raises:
            MappingError: when the host rejects a node operation. Nothing
                partially built stays attached to the host.
        """
        if metadata is None:
            metadata = self._metadata_from_attributes(snapshot)

        if self.http_client is not None:
            return await self._run(snapshot, metadata, self.http_client)
        async with httpx.AsyncClient(timeout=self.image_timeout, follow_redirects=True) as client:
            return await self._run(snapshot, metadata, client)

    async def _run(self, snapshot: ElementNode, metadata: ImportMetadata, client: httpx.AsyncClient) -> FrameNode:
        ctx = MappingContext(
            http=client,
            base_url=metadata.source_url,
            total=count_nodes(snapshot.children),
        )
        root: Optional[FrameNode] = None
        try:
            root = self._create_root(snapshot, metadata)
            self.report("Mapping elements...", 20)
            for child in snapshot.children:
                node = await self.map_node(child, snapshot.bounding_box, ctx)
                if node is not None:
                    root.append_child(node)
            try_apply_auto_layout(root, snapshot.style)
        except MappingError:
            self._discard(root)
            raise
        except Exception as exc:
            self._discard(root)
            raise MappingError(f"Failed to map snapshot <{snapshot.tag}>: {exc}") from exc

        logger.info("Mapped %d snapshot nodes into '%s'", ctx.total, root.name)
        self.report("Import complete!", 100)
        return root

    def _discard(self, root: Optional[FrameNode]) -> None:
        if root is None:
            return
        try:
            self.host.remove(root)
        except Exception as exc:
            logger.warning("Could not remove partial root frame: %s", exc)

    def _metadata_from_attributes(self, snapshot: ElementNode) -> ImportMetadata:
        return ImportMetadata(
            source_url=snapshot.attributes.get("data-source-url") or None,
            viewport=snapshot.attributes.get("data-viewport") or None,
        )

    def _create_root(self, snapshot: ElementNode, metadata: ImportMetadata) -> FrameNode:
        self.report("Creating frame...", 10)
        root = self.host.create_frame()
        hostname = urlparse(metadata.source_url).hostname if metadata.source_url else None
        root.name = f"Import: {hostname}" if hostname else "HTML Import"
        viewport = snapshot.attributes.get("data-viewport") or metadata.viewport
        if viewport:
            width = snapshot.attributes.get("data-viewport-width") or js_round(snapshot.bounding_box.width)
            root.name = f"{root.name} - {viewport} ({width}px)"
        root.resize(max(snapshot.bounding_box.width, 1), max(snapshot.bounding_box.height, 1))

        apply_frame_styles(root, snapshot.style)
        root.clips_content = True
        root.set_plugin_data("importMetadata", json.dumps(metadata.to_dict()))
        return root

    def _advance(self, ctx: MappingContext, count: int = 1) -> None:
        ctx.processed += count
        percent = 20 + int(min(ctx.processed / ctx.total, 1.0) * 60)
        self.report(f"Mapping elements ({ctx.processed}/{ctx.total})...", percent)

    async def map_node(self, node: SnapshotNode, parent_box: BoundingBox, ctx: MappingContext) -> Optional[SceneNode]:
        if isinstance(node, TextNode):
            self._advance(ctx)
            return await self.map_text(node, parent_box, ctx)
        for classify in self.classifiers:
            result = await classify(node, parent_box, ctx)
            if result is not None:
                return result
        return None

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    async def load_font(self, style: StyleRecord, ctx: MappingContext) -> Optional[FontName]:
        """Load the font for ``style``, falling back to Regular, then the default family."""
        font = resolve_font(style)
        candidates = [font, FontName(font.family, "Regular"), FontName(settings.DEFAULT_FONT_FAMILY, "Regular")]
        tried = set()
        for candidate in candidates:
            if candidate.key in tried or candidate.key in ctx.failed_fonts:
                continue
            tried.add(candidate.key)
            try:
                await self.host.load_font(candidate)
                return candidate
            except FontLoadError as exc:
                ctx.failed_fonts.add(candidate.key)
                logger.debug("Font load failed for %s: %s", candidate.key, exc)
        logger.warning("No loadable font for %s, keeping host default", font.key)
        return None

    async def _build_text(self, content: str, style: StyleRecord, ctx: MappingContext) -> DesignText:
        text = self.host.create_text()
        text.name = content[:40]
        font = await self.load_font(style, ctx)
        if font is not None:
            text.font_name = font
        text.characters = content
        apply_text_styles(text, style)
        return text

    async def map_text(self, node: TextNode, parent_box: BoundingBox, ctx: MappingContext) -> Optional[DesignText]:
        if not node.content.strip():
            return None
        text = await self._build_text(node.content, node.style, ctx)
        place(text, node.bounding_box, parent_box)
        text.text_auto_resize = "HEIGHT"
        return text

    async def map_text_container(self, element: ElementNode, parent_box: BoundingBox, ctx: MappingContext) -> Optional[FrameNode]:
        children = element.children
        if not children or not all(isinstance(c, TextNode) for c in children):
            return None
        if not any(c.content.strip() for c in children):
            return None

        self._advance(ctx)
        style = element.style
        frame = self.host.create_frame()
        frame.name = node_name(element)
        place(frame, element.bounding_box, parent_box)
        apply_frame_styles(frame, style)

        content = " ".join(c.content for c in children)
        text = await self._build_text(content, style, ctx)

        frame.layout_mode = "VERTICAL"
        frame.primary_axis_align_items = "MIN"
        frame.counter_axis_align_items = "MIN"
        frame.layout_sizing_horizontal = "FIXED"
        frame.layout_sizing_vertical = "HUG"
        frame.padding_top = style.px("padding_top")
        frame.padding_right = style.px("padding_right")
        frame.padding_bottom = style.px("padding_bottom")
        frame.padding_left = style.px("padding_left")

        text.resize(
            max(js_round(frame.width - frame.padding_left - frame.padding_right), 1),
            max(js_round(frame.height - frame.padding_top - frame.padding_bottom), 1),
        )
        text.x = js_round(frame.padding_left)
        text.y = js_round(frame.padding_top)
        text.layout_sizing_horizontal = "FILL"
        text.text_auto_resize = "HEIGHT"
        frame.append_child(text)
        return frame

    # ------------------------------------------------------------------
    # Special elements
    # ------------------------------------------------------------------

    async def map_image(self, element: ElementNode, parent_box: BoundingBox, ctx: MappingContext) -> Optional[RectangleNode]:
        if element.tag != "img":
            return None
        self._advance(ctx)
        rect = self.host.create_rectangle()
        rect.name = element.attributes.get("alt") or "Image"
        place(rect, element.bounding_box, parent_box)

        src = element.attributes.get("src", "")
        image_hash = await self.fetch_image(src, ctx) if src else None
        if image_hash:
            scale_mode = OBJECT_FIT_SCALE.get(element.style.object_fit or "", "FILL")
            rect.fills = [ImagePaint(image_hash=image_hash, scale_mode=scale_mode)]
        else:
            rect.fills = [_solid(IMAGE_PLACEHOLDER_GRAY)]

        apply_corner_radii(rect, element.style)
        if element.style.opacity is not None:
            rect.opacity = element.style.opacity
        return rect

    async def fetch_image(self, url: str, ctx: MappingContext) -> Optional[str]:
        """Image handle for ``url``; ``None`` when it cannot be fetched or decoded."""
        if url in ctx.image_cache:
            return ctx.image_cache[url]
        try:
            data = await self._read_image(url, ctx)
            image_hash = self.host.create_image(data)
        except (httpx.HTTPError, ImageDecodeError, ValueError) as exc:
            logger.warning("Image unavailable, using placeholder: %s (%s)", url[:120], exc)
            return None
        ctx.image_cache[url] = image_hash
        return image_hash

    async def _read_image(self, url: str, ctx: MappingContext) -> bytes:
        if url.startswith("data:"):
            header, _, payload = url.partition(",")
            if header.endswith(";base64"):
                return base64.b64decode(payload)
            return unquote_to_bytes(payload)

        absolute = urljoin(ctx.base_url, url) if ctx.base_url else url
        if urlparse(absolute).scheme not in {"http", "https"}:
            raise ValueError(f"Unsupported image URL: {url[:120]}")
        response = await ctx.http.get(absolute)
        response.raise_for_status()
        return response.content

    async def map_vector(self, element: ElementNode, parent_box: BoundingBox, ctx: MappingContext) -> Optional[SceneNode]:
        if element.tag != "svg":
            return None
        self._advance(ctx)
        markup = reconstruct_svg(element)
        try:
            node = self.host.create_node_from_svg(markup)
            node.name = element.attributes.get("aria-label") or "SVG"
        except VectorImportError as exc:
            logger.debug("SVG import failed, using placeholder: %s", exc)
            node = self.host.create_rectangle()
            node.name = "SVG (unsupported)"
            node.fills = [_solid(PLACEHOLDER_GRAY)]
        place(node, element.bounding_box, parent_box)
        return node

    async def map_form_control(self, element: ElementNode, parent_box: BoundingBox, ctx: MappingContext) -> Optional[FrameNode]:
        if element.tag not in FORM_TAGS:
            return None
        self._advance(ctx)
        style = element.style
        input_type = element.attributes.get("type")
        frame = self.host.create_frame()
        frame.name = f"{element.tag}[{input_type}]" if input_type else element.tag
        place(frame, element.bounding_box, parent_box)
        apply_frame_styles(frame, style)

        value = element.attributes.get("placeholder") or element.attributes.get("value") or ""
        if value:
            text = await self._build_text(value, style, ctx)
            frame.layout_mode = "HORIZONTAL"
            frame.counter_axis_align_items = "CENTER"
            frame.padding_left = style.px("padding_left") or 8
            frame.padding_right = style.px("padding_right") or 8
            frame.padding_top = style.px("padding_top")
            frame.padding_bottom = style.px("padding_bottom")
            text.layout_sizing_horizontal = "FILL"
            text.text_auto_resize = "HEIGHT"
            text.resize(
                max(js_round(frame.width - frame.padding_left - frame.padding_right), 1),
                max(js_round(frame.height - frame.padding_top - frame.padding_bottom), 1),
            )
            text.x = js_round(frame.padding_left)
            text.y = js_round(frame.padding_top)
            frame.append_child(text)
        return frame

    async def map_divider(self, element: ElementNode, parent_box: BoundingBox, ctx: MappingContext) -> Optional[RectangleNode]:
        if element.tag != "hr":
            return None
        self._advance(ctx)
        style = element.style
        rect = self.host.create_rectangle()
        rect.name = "Divider"
        place(rect, element.bounding_box, parent_box)
        candidates = [style.border_top_color, style.background_color]
        color = next((c for c in candidates if not is_transparent(c)), DIVIDER_GRAY)
        rect.fills = [_solid(color)]
        return rect

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    async def map_container(self, element: ElementNode, parent_box: BoundingBox, ctx: MappingContext) -> FrameNode:
        frame = self.host.create_frame()
        frame.name = node_name(element)
        place(frame, element.bounding_box, parent_box)
        apply_frame_styles(frame, element.style)

        for child in element.children:
            node = await self.map_node(child, element.bounding_box, ctx)
            if node is not None:
                frame.append_child(node)

        try_apply_auto_layout(frame, element.style)
        self._advance(ctx)
        return frame
