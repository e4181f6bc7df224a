"""Tests for the Playwright-backed capturer, driven through fakes."""

import pytest
from playwright.async_api import Error as PlaywrightError

from html2design import capture
from html2design.capture import (
    IMAGE_WAIT_JS,
    SERIALIZER_JS,
    SnapshotCapturer,
    Viewport,
    build_full_document,
    resolve_viewport,
)
from html2design.errors import CaptureError
from html2design.snapshot import TRACKED_PROPERTIES


@pytest.fixture
def raw_page(raw_element, raw_text):
    return raw_element("body", rect=(0, 0, 1440, 900), children=[
        raw_element("div", rect=(0, 0, 100, 50), style={"background-color": "rgb(255, 0, 0)"}, children=[raw_text(" Hi ")]),
        raw_element("iframe", rect=(0, 60, 300, 150)),
        raw_element("script"),
    ])


class TestViewports:

    @pytest.mark.parametrize("name,size", [
        ("desktop", (1440, 900)),
        ("tablet", (768, 1024)),
        ("mobile", (375, 812)),
        ("Mobile", (375, 812)),
        ("1280x720", (1280, 720)),
    ])
    def test_resolve(self, name, size):
        viewport = resolve_viewport(name)
        assert (viewport.width, viewport.height) == size

    def test_passthrough(self):
        viewport = Viewport(800, 600, "small")
        assert resolve_viewport(viewport) is viewport

    @pytest.mark.parametrize("value", ["huge", "0x100", "100x"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            resolve_viewport(value)


class TestFullDocument:

    def test_fragment_wrapped(self):
        document = build_full_document("<div>x</div>", "div { color: red; }", "https://example.com/")
        assert document.startswith("<!DOCTYPE html>")
        assert "* { box-sizing: border-box; }" in document
        assert "body { margin: 0; padding: 0; }" in document
        assert "div { color: red; }" in document
        assert '<base href="https://example.com/">' in document
        assert "<body><div>x</div></body>" in document

    def test_css_injected_before_head_end(self):
        html = "<!doctype html><html><head><title>t</title></head><body></body></html>"
        document = build_full_document(html, "p{}")
        assert document == "<!doctype html><html><head><title>t</title><style>p{}</style></head><body></body></html>"

    def test_full_document_without_head(self):
        document = build_full_document("<html><body>x</body></html>", "p{}")
        assert document == "<html><head><style>p{}</style></head><body>x</body></html>"

    def test_full_document_untouched_without_extras(self):
        html = "<html><head></head><body>x</body></html>"
        assert build_full_document(html) == html


class TestCaptureHtml:

    @pytest.mark.asyncio
    async def test_isolated_capture(self, fake_browser, raw_page):
        browser = fake_browser(raw_page)
        capturer = SnapshotCapturer(browser=browser, settle_ms=5, image_timeout_ms=100)
        snapshot = await capturer.capture_html("<div>Hi</div>", viewport="mobile", base_url="https://example.com/")

        context = browser.contexts[0]
        page = context.page
        assert context.closed
        assert browser.context_kwargs[0]["viewport"] == {"width": 375, "height": 812}
        assert "<div>Hi</div>" in page.content
        assert page.evaluations[0] == (IMAGE_WAIT_JS, 100)
        assert page.evaluations[1] == (SERIALIZER_JS, {"selector": None, "props": TRACKED_PROPERTIES})
        assert page.waits == [5]

        assert [c.tag for c in snapshot.children] == ["div"]
        assert snapshot.children[0].children[0].content == "Hi"
        assert snapshot.attributes["data-viewport"] == "mobile"
        assert snapshot.attributes["data-viewport-width"] == "375"
        assert snapshot.attributes["data-source-url"] == "https://example.com/"

    @pytest.mark.asyncio
    async def test_document_not_held_by_image_loads(self, fake_browser, raw_page):
        browser = fake_browser(raw_page, pending_images=2)
        capturer = SnapshotCapturer(browser=browser, image_timeout_ms=3000)
        snapshot = await capturer.capture_html("<img src=\"http://slow.example/a.png\">")

        page = browser.contexts[0].page
        assert page.content_options["wait_until"] == "domcontentloaded"
        assert page.evaluations[0] == (IMAGE_WAIT_JS, 3000)
        assert snapshot.tag == "body"

    @pytest.mark.asyncio
    async def test_render_failure(self, fake_browser, raw_page):
        browser = fake_browser(raw_page, fail_on="set_content")
        capturer = SnapshotCapturer(browser=browser)
        with pytest.raises(CaptureError):
            await capturer.capture_html("<p>x</p>")
        assert browser.contexts[0].closed

    @pytest.mark.asyncio
    async def test_serializer_failure(self, fake_browser, raw_page):
        browser = fake_browser(raw_page, fail_on="evaluate")
        with pytest.raises(CaptureError):
            await SnapshotCapturer(browser=browser).capture_html("<p>x</p>")
        assert browser.contexts[0].closed

    @pytest.mark.asyncio
    async def test_borrowed_browser_left_open(self, fake_browser, raw_page):
        browser = fake_browser(raw_page)
        async with SnapshotCapturer(browser=browser) as capturer:
            await capturer.capture_html("<p>x</p>")
        assert not browser.closed


class TestCaptureUrl:

    @pytest.mark.asyncio
    async def test_scheme_defaulted_and_annotated(self, fake_browser, raw_page):
        browser = fake_browser(raw_page)
        snapshot = await SnapshotCapturer(browser=browser, settle_ms=0).capture_url("example.com", viewport="tablet")

        assert browser.contexts[0].page.url == "https://example.com/"
        assert browser.contexts[0].closed
        assert snapshot.attributes["data-source-url"] == "https://example.com/"
        assert snapshot.attributes["data-viewport"] == "tablet"
        # live pages keep iframes
        assert [c.tag for c in snapshot.children] == ["div", "iframe"]

    @pytest.mark.asyncio
    async def test_networkidle_timeout_tolerated(self, fake_browser, raw_page):
        browser = fake_browser(raw_page, fail_on="wait_for_load_state")
        snapshot = await SnapshotCapturer(browser=browser).capture_url("https://example.com")
        assert snapshot.tag == "body"

    @pytest.mark.asyncio
    async def test_navigation_failure(self, fake_browser, raw_page):
        browser = fake_browser(raw_page, fail_on="goto")
        with pytest.raises(CaptureError, match="goto"):
            await SnapshotCapturer(browser=browser).capture_url("https://example.com")
        assert browser.contexts[0].closed

    @pytest.mark.asyncio
    async def test_missing_selector(self, fake_browser):
        browser = fake_browser(None)
        with pytest.raises(CaptureError, match="#app"):
            await SnapshotCapturer(browser=browser).capture_url("https://example.com", selector="#app")


class FakePlaywright:
    def __init__(self, browser):
        self.browser = browser
        self.stopped = False
        self.chromium = self

    async def launch(self, headless: bool = True):
        return self.browser

    async def stop(self) -> None:
        self.stopped = True


class FakePlaywrightManager:
    def __init__(self, playwright: FakePlaywright):
        self.playwright = playwright

    async def start(self) -> FakePlaywright:
        return self.playwright


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_launch_and_close(self, monkeypatch, fake_browser, raw_page):
        playwright = FakePlaywright(fake_browser(raw_page))
        monkeypatch.setattr(capture, "async_playwright", lambda: FakePlaywrightManager(playwright))

        async with SnapshotCapturer() as capturer:
            await capturer.capture_html("<p>x</p>")

        assert playwright.browser.closed
        assert playwright.stopped

    @pytest.mark.asyncio
    async def test_playwright_stopped_when_browser_close_fails(self, monkeypatch, fake_browser, raw_page):
        playwright = FakePlaywright(fake_browser(raw_page, fail_on="browser_close"))
        monkeypatch.setattr(capture, "async_playwright", lambda: FakePlaywrightManager(playwright))

        capturer = SnapshotCapturer()
        await capturer.start()
        with pytest.raises(PlaywrightError):
            await capturer.close()

        assert playwright.stopped
