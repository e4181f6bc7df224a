"""Capture rendered documents into snapshots with headless Chromium.

Three entry points share one in-page serializer:

- ``capture_html``: render an HTML string (plus optional CSS) in a fresh,
  isolated browser context sized to a viewport.
- ``capture_page``: serialize an already-rendered Playwright page.
- ``capture_url``: navigate a fresh context to a URL, then serialize it.

The serializer returns a raw tree with every tracked computed property;
pruning and style filtering happen in ``snapshot.build_snapshot``.
"""

import html as html_lib
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from . import settings
from .errors import CaptureError
from .snapshot import DEFAULT_SKIP_TAGS, ISOLATED_SKIP_TAGS, TRACKED_PROPERTIES, ElementNode, build_snapshot

logger = logging.getLogger(__name__)

_VIEWPORT_RE = re.compile(r"^\s*(\d+)\s*[xX×]\s*(\d+)\s*$")

SERIALIZER_JS = """
({ selector, props }) => {
  const root = selector ? document.querySelector(selector) : document.body;
  if (!root) return null;

  const rectOf = (r) => ({ x: r.x, y: r.y, width: r.width, height: r.height });

  const serialize = (el) => {
    const computed = window.getComputedStyle(el);
    const style = {};
    for (const prop of props) {
      style[prop] = computed.getPropertyValue(prop);
    }

    const attributes = {};
    for (const attr of Array.from(el.attributes)) {
      attributes[attr.name] = attr.value;
    }
    const tag = el.tagName.toLowerCase();
    if ((tag === 'input' || tag === 'textarea') && el.value && !attributes.value) {
      attributes.value = el.value;
    }

    const children = [];
    for (const child of Array.from(el.childNodes)) {
      if (child.nodeType === Node.TEXT_NODE) {
        const range = document.createRange();
        range.selectNodeContents(child);
        children.push({
          type: 'text',
          content: child.textContent || '',
          rect: rectOf(range.getBoundingClientRect()),
        });
      } else if (child.nodeType === Node.ELEMENT_NODE) {
        children.push(serialize(child));
      }
    }

    return {
      type: 'element',
      tag,
      attributes,
      style,
      rect: rectOf(el.getBoundingClientRect()),
      children,
    };
  };

  return serialize(root);
}
"""

IMAGE_WAIT_JS = """
async (timeout) => {
  const pending = Array.from(document.images).filter((img) => !img.complete);
  await Promise.all(pending.map((img) => new Promise((resolve) => {
    const timer = setTimeout(resolve, timeout);
    const done = () => { clearTimeout(timer); resolve(); };
    img.addEventListener('load', done, { once: true });
    img.addEventListener('error', done, { once: true });
  })));
  return pending.length;
}
"""


@dataclass(frozen=True)
class Viewport:
    width: int
    height: int
    name: str = "custom"

    def to_dict(self) -> Dict[str, int]:
        return {"width": self.width, "height": self.height}


def resolve_viewport(value: Union[str, Viewport, None]) -> Viewport:
    """Resolve a preset name (desktop/tablet/mobile) or ``WIDTHxHEIGHT``."""
    if isinstance(value, Viewport):
        return value
    name = (value or settings.DEFAULT_VIEWPORT).strip().lower()
    if name in settings.VIEWPORT_PRESETS:
        preset = settings.VIEWPORT_PRESETS[name]
        return Viewport(width=preset["width"], height=preset["height"], name=name)
    match = _VIEWPORT_RE.match(name)
    if match:
        width, height = int(match.group(1)), int(match.group(2))
        if width > 0 and height > 0:
            return Viewport(width=width, height=height, name=f"{width}x{height}")
    raise ValueError(f"Unknown viewport: {value!r} (use desktop, tablet, mobile or WIDTHxHEIGHT)")


def build_full_document(html: str, css: str = "", base_url: Optional[str] = None) -> str:
    """Wrap a fragment in a minimal document, or inject CSS into a full one."""
    base_tag = f'<base href="{html_lib.escape(base_url, quote=True)}">' if base_url else ""
    lowered = html.lower()

    if "<html" in lowered or "<!doctype" in lowered:
        extra = base_tag + (f"<style>{css}</style>" if css else "")
        if not extra:
            return html
        head_end = lowered.find("</head>")
        if head_end >= 0:
            return html[:head_end] + extra + html[head_end:]
        head_start = re.search(r"<head(\s[^>]*)?>", html, re.IGNORECASE)
        if head_start:
            return html[:head_start.end()] + extra + html[head_start.end():]
        html_start = re.search(r"<html(\s[^>]*)?>", html, re.IGNORECASE)
        if html_start:
            return html[:html_start.end()] + f"<head>{extra}</head>" + html[html_start.end():]
        return extra + html

    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
{base_tag}
<style>
* {{ box-sizing: border-box; }}
body {{ margin: 0; padding: 0; }}
{css}
</style>
</head>
<body>{html}</body>
</html>"""


def _annotate(raw: Dict[str, Any], source_url: Optional[str], viewport: Optional[Viewport]) -> None:
    attributes = raw.setdefault("attributes", {})
    if source_url:
        attributes["data-source-url"] = source_url
    if viewport is not None:
        attributes["data-viewport"] = viewport.name
        attributes["data-viewport-width"] = str(viewport.width)


class SnapshotCapturer:
    """Renders documents in headless Chromium and serializes them.

    Use as an async context manager, or call ``start``/``close`` directly.
    An existing ``browser`` can be passed in; it is then left open on close.
    """

    def __init__(
        self,
        headless: bool = settings.HEADLESS,
        image_timeout_ms: int = settings.IMAGE_LOAD_TIMEOUT_MS,
        settle_ms: int = settings.SETTLE_DELAY_MS,
        navigation_timeout_ms: int = settings.NAVIGATION_TIMEOUT_MS,
        browser: Optional[Browser] = None,
    ):
        self.headless = headless
        self.image_timeout_ms = image_timeout_ms
        self.settle_ms = settle_ms
        self.navigation_timeout_ms = navigation_timeout_ms
        self._browser = browser
        self._owns_browser = browser is None
        self._playwright: Optional[Playwright] = None

    async def __aenter__(self) -> "SnapshotCapturer":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> Browser:
        if self._browser is not None:
            return self._browser
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=self.headless)
        except PlaywrightError as exc:
            await self.close()
            raise CaptureError(f"Failed to launch Chromium: {exc}") from exc
        logger.debug("Chromium launched (headless=%s)", self.headless)
        return self._browser

    async def close(self) -> None:
        try:
            if self._owns_browser and self._browser is not None:
                browser, self._browser = self._browser, None
                await browser.close()
        finally:
            if self._playwright is not None:
                playwright, self._playwright = self._playwright, None
                await playwright.stop()

    async def _new_context(self, viewport: Viewport):
        browser = await self.start()
        try:
            return await browser.new_context(
                viewport=viewport.to_dict(),
                device_scale_factor=1,
                user_agent=settings.USER_AGENT,
            )
        except PlaywrightError as exc:
            raise CaptureError(f"Failed to open browser context: {exc}") from exc

    async def capture_html(
        self,
        html: str,
        css: str = "",
        viewport: Union[str, Viewport, None] = None,
        base_url: Optional[str] = None,
    ) -> ElementNode:
        """Render ``html`` in isolation and return its snapshot."""
        vp = resolve_viewport(viewport)
        document = build_full_document(html, css, base_url)
        context = await self._new_context(vp)
        try:
            page = await context.new_page()
            # images are bounded by IMAGE_WAIT_JS, not by the load event
            await page.set_content(document, wait_until="domcontentloaded", timeout=self.navigation_timeout_ms)
            pending = await page.evaluate(IMAGE_WAIT_JS, self.image_timeout_ms)
            if pending:
                logger.debug("Waited on %s pending images", pending)
            await page.wait_for_timeout(self.settle_ms)
            raw = await page.evaluate(SERIALIZER_JS, {"selector": None, "props": TRACKED_PROPERTIES})
        except PlaywrightError as exc:
            raise CaptureError(f"Failed to render HTML: {exc}") from exc
        finally:
            await context.close()

        if not raw:
            raise CaptureError("Rendered document has no body")
        _annotate(raw, base_url, vp)
        snapshot = build_snapshot(raw, ISOLATED_SKIP_TAGS)
        logger.info("Captured HTML at %s: %d nodes", vp.name, sum(1 for _ in snapshot.iter_descendants()))
        return snapshot

    async def capture_page(
        self,
        page: Page,
        selector: Optional[str] = None,
        viewport_name: Optional[str] = None,
    ) -> ElementNode:
        """Serialize a live page, or the first element matching ``selector``."""
        try:
            raw = await page.evaluate(SERIALIZER_JS, {"selector": selector, "props": TRACKED_PROPERTIES})
        except PlaywrightError as exc:
            raise CaptureError(f"Failed to serialize page: {exc}") from exc
        if not raw:
            raise CaptureError(f"No element matches selector {selector!r}" if selector else "Page has no body")

        url = page.url if page.url and not page.url.startswith("about:") else None
        size = page.viewport_size
        vp = None
        if size:
            vp = Viewport(width=size["width"], height=size["height"], name=viewport_name or f"{size['width']}x{size['height']}")
        _annotate(raw, url, vp)
        return build_snapshot(raw, DEFAULT_SKIP_TAGS)

    async def capture_url(
        self,
        url: str,
        viewport: Union[str, Viewport, None] = None,
        selector: Optional[str] = None,
    ) -> ElementNode:
        """Navigate a fresh context to ``url`` and serialize the result."""
        if not re.match(r"^[a-z][a-z0-9+.-]*://", url, re.IGNORECASE):
            url = f"https://{url}"
        vp = resolve_viewport(viewport)
        context = await self._new_context(vp)
        try:
            page = await context.new_page()
            stage = "goto"
            try:
                await page.goto(url, wait_until="domcontentloaded", timeout=self.navigation_timeout_ms)
                stage = "wait_networkidle"
                try:
                    await page.wait_for_load_state("networkidle", timeout=15000)
                except PlaywrightError:
                    logger.debug("networkidle not reached for %s, continuing", url)
                stage = "post_wait"
                await page.wait_for_timeout(self.settle_ms)
            except PlaywrightError as exc:
                raise CaptureError(f"Failed to load {url} at {stage}: {exc}") from exc
            snapshot = await self.capture_page(page, selector=selector, viewport_name=vp.name)
        finally:
            await context.close()

        logger.info("Captured %s at %s", url, vp.name)
        return snapshot
