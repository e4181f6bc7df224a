"""One-call conversions: capture a document, then map it onto a host."""

import logging
from typing import Optional, Union

from .capture import SnapshotCapturer, Viewport, resolve_viewport
from .design import FrameNode
from .host import DesignHost, InMemoryHost
from .mapper import DesignMapper, ImportMetadata, ProgressCallback
from .snapshot import ElementNode

logger = logging.getLogger(__name__)


async def map_to_design(
    snapshot: ElementNode,
    host: Optional[DesignHost] = None,
    progress: Optional[ProgressCallback] = None,
    metadata: Optional[ImportMetadata] = None,
) -> FrameNode:
    mapper = DesignMapper(host or InMemoryHost(), progress=progress)
    logger.debug("Mapping <%s> snapshot with %s", snapshot.tag, type(mapper.host).__name__)
    return await mapper.map_snapshot(snapshot, metadata)


async def convert_html(
    html: str,
    css: str = "",
    viewport: Union[str, Viewport, None] = "desktop",
    host: Optional[DesignHost] = None,
    progress: Optional[ProgressCallback] = None,
    base_url: Optional[str] = None,
    capturer: Optional[SnapshotCapturer] = None,
) -> FrameNode:
    """Render ``html`` (with optional ``css``) and map it into a root frame."""
    vp = resolve_viewport(viewport)
    if progress:
        progress("Parsing HTML...", 5)
    if capturer is not None:
        snapshot = await capturer.capture_html(html, css, vp, base_url)
    else:
        async with SnapshotCapturer() as owned:
            snapshot = await owned.capture_html(html, css, vp, base_url)

    metadata = ImportMetadata(source_url=base_url, viewport=vp.name, source_html=html, source_css=css or None)
    return await map_to_design(snapshot, host, progress, metadata)


async def convert_url(
    url: str,
    viewport: Union[str, Viewport, None] = "desktop",
    host: Optional[DesignHost] = None,
    progress: Optional[ProgressCallback] = None,
    selector: Optional[str] = None,
    capturer: Optional[SnapshotCapturer] = None,
) -> FrameNode:
    """Load ``url`` in the browser and map the rendered page into a root frame."""
    vp = resolve_viewport(viewport)
    if progress:
        progress(f"Loading {url}...", 5)
    if capturer is not None:
        snapshot = await capturer.capture_url(url, vp, selector)
    else:
        async with SnapshotCapturer() as owned:
            snapshot = await owned.capture_url(url, vp, selector)

    metadata = ImportMetadata(
        source_url=snapshot.attributes.get("data-source-url") or url,
        viewport=vp.name,
    )
    return await map_to_design(snapshot, host, progress, metadata)
