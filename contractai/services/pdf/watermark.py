"""Agency logo watermark stamped, faintly, under the content of every page"""

import logging
from typing import Optional

from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen.canvas import Canvas

from .images import image_reader
from .layout import PageLayout

logger = logging.getLogger(__name__)


class Watermark:
    """
    Centered logo drawn at low opacity before a page's content.

    Without a logo every method is a no-op: nothing, not even a graphics
    state push, reaches the canvas. Drawing errors are logged and swallowed so
    a broken logo never costs the user their document.
    """

    def __init__(self, logo: Optional[ImageReader], box: float, opacity: float):
        self._logo = logo
        self.box = box
        self.opacity = opacity

    @classmethod
    def load(cls, logo_bytes: Optional[bytes], layout: PageLayout) -> "Watermark":
        logo = None
        if logo_bytes:
            try:
                logo = image_reader(logo_bytes)
            except Exception as e:
                logger.warning(f"⚠️ Failed to load logo watermark, continuing without it: {e}")
        return cls(logo, box=layout.watermark_box, opacity=layout.watermark_opacity)

    @property
    def enabled(self) -> bool:
        return self._logo is not None

    def size(self) -> tuple[float, float]:
        """Logo size in mm, fitted into a box x box square with aspect ratio kept"""
        width_px, height_px = self._logo.getSize()
        aspect = width_px / height_px
        width, height = self.box, self.box / aspect
        if height > self.box:
            height = self.box
            width = self.box * aspect
        return width, height

    def draw(self, canvas: Canvas, layout: PageLayout, page_number: int) -> None:
        if not self.enabled:
            return
        try:
            width, height = self.size()
            x = (layout.page_width - width) / 2
            y = (layout.page_height - height) / 2
            canvas.saveState()
            try:
                canvas.setFillAlpha(self.opacity)
                canvas.setStrokeAlpha(self.opacity)
                canvas.drawImage(
                    self._logo, x * mm, y * mm, width=width * mm, height=height * mm, mask="auto"
                )
            finally:
                canvas.restoreState()
        except Exception as e:
            logger.warning(f"⚠️ Failed to add logo watermark to page {page_number}: {e}")
