"""Shared fixtures: snapshot builders, an in-memory host, Playwright fakes."""

import copy
import io
from typing import Any, Dict, List, Optional

import pytest
from PIL import Image
from playwright.async_api import Error as PlaywrightError

from html2design.capture import IMAGE_WAIT_JS, SERIALIZER_JS
from html2design.host import InMemoryHost


# ---------------------------------------------------------------------------
# Snapshot wire-form builders
# ---------------------------------------------------------------------------


def _box(box) -> Dict[str, float]:
    x, y, w, h = box
    return {"x": x, "y": y, "width": w, "height": h}


def make_element(
    tag: str = "div",
    box=(0, 0, 100, 100),
    style: Optional[Dict[str, str]] = None,
    children: Optional[List[Dict[str, Any]]] = None,
    attributes: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    computed = {"display": "block", "position": "static"}
    computed.update(style or {})
    return {
        "type": "element",
        "tag": tag,
        "attributes": attributes or {},
        "computedStyle": computed,
        "boundingBox": _box(box),
        "children": children or [],
    }


def make_text(content: str, box=(0, 0, 50, 20), style: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    return {
        "type": "text",
        "content": content,
        "computedStyle": dict(style or {}),
        "boundingBox": _box(box),
    }


def make_raw(
    tag: str = "div",
    rect=(0, 0, 100, 100),
    style: Optional[Dict[str, str]] = None,
    children: Optional[List[Dict[str, Any]]] = None,
    attributes: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Element in the in-page serializer's raw form."""
    computed = {"display": "block", "position": "static", "visibility": "visible"}
    computed.update(style or {})
    return {
        "type": "element",
        "tag": tag,
        "attributes": attributes or {},
        "style": computed,
        "rect": _box(rect),
        "children": children or [],
    }


def make_raw_text(content: str, rect=(0, 0, 50, 20)) -> Dict[str, Any]:
    return {"type": "text", "content": content, "rect": _box(rect)}


@pytest.fixture
def element():
    return make_element


@pytest.fixture
def text():
    return make_text


@pytest.fixture
def raw_element():
    return make_raw


@pytest.fixture
def raw_text():
    return make_raw_text


@pytest.fixture
def host() -> InMemoryHost:
    return InMemoryHost()


@pytest.fixture
def png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 3), (255, 0, 0)).save(buf, format="PNG")
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Playwright fakes
# ---------------------------------------------------------------------------


class FakePage:
    def __init__(self, raw: Optional[Dict[str, Any]], viewport: Dict[str, int], fail_on: Optional[str] = None):
        self.raw = raw
        self.viewport_size = viewport
        self.fail_on = fail_on
        self.url = "about:blank"
        self.content: Optional[str] = None
        self.evaluations: List[Any] = []
        self.waits: List[int] = []
        self.content_options: Dict[str, Any] = {}
        self.pending_images = 0

    def _maybe_fail(self, stage: str) -> None:
        if self.fail_on == stage:
            raise PlaywrightError(f"{stage} failed")

    async def set_content(self, html: str, **kwargs) -> None:
        self._maybe_fail("set_content")
        self.content = html
        self.content_options = kwargs

    async def goto(self, url: str, **kwargs) -> None:
        self._maybe_fail("goto")
        self.url = url.rstrip("/") + "/"

    async def wait_for_load_state(self, state: str, **kwargs) -> None:
        self._maybe_fail("wait_for_load_state")

    async def wait_for_timeout(self, timeout: int) -> None:
        self.waits.append(timeout)

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        self.evaluations.append((expression, arg))
        if expression == IMAGE_WAIT_JS:
            return self.pending_images
        if expression == SERIALIZER_JS:
            self._maybe_fail("evaluate")
            return copy.deepcopy(self.raw)
        raise AssertionError("unexpected script")


class FakeContext:
    def __init__(self, page: FakePage):
        self.page = page
        self.closed = False

    async def new_page(self) -> FakePage:
        return self.page

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self, raw: Optional[Dict[str, Any]], fail_on: Optional[str] = None, pending_images: int = 0):
        self.raw = raw
        self.fail_on = fail_on
        self.pending_images = pending_images
        self.contexts: List[FakeContext] = []
        self.context_kwargs: List[Dict[str, Any]] = []
        self.closed = False

    async def new_context(self, **kwargs) -> FakeContext:
        self.context_kwargs.append(kwargs)
        page = FakePage(self.raw, kwargs["viewport"], self.fail_on)
        page.pending_images = self.pending_images
        context = FakeContext(page)
        self.contexts.append(context)
        return context

    async def close(self) -> None:
        self.closed = True
        if self.fail_on == "browser_close":
            raise PlaywrightError("browser close failed")


@pytest.fixture
def fake_browser():
    return FakeBrowser
