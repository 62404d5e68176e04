"""
Capture the contract preview as a bitmap with headless Chromium.

The sync Playwright API is used and run in a worker thread so that the
event loop keeps serving requests while the browser works.
"""

import asyncio
import io
import logging
from contextlib import contextmanager

from PIL import Image
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from ...config import PDF_RENDER_TIMEOUT_SECONDS
from .errors import PdfRenderError, PreviewNotFoundError
from .images import flatten_to_white, open_image

logger = logging.getLogger(__name__)

CAPTURE_WIDTH = 800  # px
DEFAULT_SCALE = 2.0
CONSTRAINED_SCALE = 1.5

# Nested container first: the outer one may carry page chrome around the document
PREVIEW_SELECTORS = (
    ".contract-preview-container .contract-preview-container",
    ".contract-preview-container",
)

_OVERRIDE_STYLES_JS = """
(el, width) => {
    const previous = el.getAttribute('style');
    el.style.width = width + 'px';
    el.style.maxWidth = 'none';
    el.style.height = 'auto';
    el.style.maxHeight = 'none';
    el.style.overflow = 'visible';
    el.style.backgroundColor = '#ffffff';
    el.style.color = '#000000';
    if (el.scrollWidth > width) {
        el.style.width = el.scrollWidth + 'px';
    }
    return previous;
}
"""

_RESTORE_STYLES_JS = """
(el, previous) => {
    if (previous === null) {
        el.removeAttribute('style');
    } else {
        el.setAttribute('style', previous);
    }
}
"""

_MEASURE_JS = "el => ({width: el.scrollWidth, height: el.scrollHeight})"


def locate_preview(page):
    for selector in PREVIEW_SELECTORS:
        element = page.query_selector(selector)
        if element is not None:
            return element
    raise PreviewNotFoundError("No .contract-preview-container element on the page")


@contextmanager
def overridden_styles(element, width: int):
    """Force a print-friendly box on the element; its inline style is always put back"""
    previous = element.evaluate(_OVERRIDE_STYLES_JS, width)
    try:
        yield
    finally:
        element.evaluate(_RESTORE_STYLES_JS, previous)


def capture_element(page, scale: float, width: int = CAPTURE_WIDTH) -> Image.Image:
    """
    Screenshot the preview subtree at its full scroll extent.

    `scale` must match the page's device scale factor; it is only used here
    for validation and logging since the browser applies it.
    """
    if scale < 1:
        raise ValueError(f"Capture scale must be >= 1, got {scale}")

    element = locate_preview(page)
    with overridden_styles(element, width):
        natural = element.evaluate(_MEASURE_JS)
        png = element.screenshot(type="png", omit_background=False)

    image = flatten_to_white(open_image(png))
    logger.info(
        f"📸 Captured preview {natural['width']}x{natural['height']}css px "
        f"at {scale}x -> {image.width}x{image.height}px"
    )
    return image


def rasterize_preview_html(
    html: str,
    scale: float = DEFAULT_SCALE,
    width: int = CAPTURE_WIDTH,
    timeout: float = PDF_RENDER_TIMEOUT_SECONDS,
) -> Image.Image:
    """
    Load preview HTML into a fresh headless browser and capture it.

    Every browser operation is bounded by `timeout` seconds, so a stuck page
    raises a Playwright TimeoutError here and the browser is closed.
    """
    if scale < 1:
        raise ValueError(f"Capture scale must be >= 1, got {scale}")
    timeout_ms = timeout * 1000

    with sync_playwright() as p:
        browser = p.chromium.launch(timeout=timeout_ms)
        try:
            page = browser.new_page(
                viewport={"width": width + 80, "height": 1200},
                device_scale_factor=scale,
            )
            page.set_default_timeout(timeout_ms)
            page.set_content(html, wait_until="networkidle", timeout=timeout_ms)
            return capture_element(page, scale, width)
        finally:
            browser.close()


async def rasterize_preview(
    html: str,
    scale: float = DEFAULT_SCALE,
    timeout: float = PDF_RENDER_TIMEOUT_SECONDS,
) -> Image.Image:
    """
    Async entry point: runs the browser in a worker thread.

    The deadline is enforced inside the thread by Playwright, so when this
    returns or raises the browser has already been shut down.
    """
    try:
        return await asyncio.to_thread(rasterize_preview_html, html, scale, CAPTURE_WIDTH, timeout)
    except PlaywrightTimeoutError as e:
        raise PdfRenderError(f"Preview capture timed out after {timeout} seconds") from e
    except PlaywrightError as e:
        raise PdfRenderError(f"Browser failed to capture preview: {e}") from e
