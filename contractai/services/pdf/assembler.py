"""
Multi-page PDF assembly on a reportlab canvas.

`PdfDocument` owns everything a page has regardless of how its content was
produced: page breaks, the watermark underneath, and the footer (separator
rule, generator name, generation date, page number). Content comes from a
producer: `RasterSegmentProducer` here for captured previews, or
`TextSegmentProducer` in text_renderer.py.
"""

import io
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Protocol, Union

from PIL import Image
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen.canvas import Canvas

from .errors import EmptyPreviewError
from .images import EncodedImage, encode_segment
from .layout import PageLayout
from .paginator import Placement, crop_slices, plan_slices
from .watermark import Watermark

logger = logging.getLogger(__name__)

FOOTER_TEXT_GRAY = (128 / 255, 128 / 255, 128 / 255)
FOOTER_RULE_GRAY = (200 / 255, 200 / 255, 200 / 255)


@dataclass(frozen=True)
class Footer:
    left: str
    center: str
    right: str


@dataclass
class PageRecord:
    """What was put on a page; kept for logging and layout checks"""

    number: int
    elements: list[Placement] = field(default_factory=list)
    footer: Optional[Footer] = None


class PageContentProducer(Protocol):
    def produce(self, document: "PdfDocument") -> None: ...


class PdfDocument:
    def __init__(
        self,
        layout: PageLayout,
        generator_name: str,
        generated_on: date,
        watermark: Optional[Watermark] = None,
        title: Optional[str] = None,
        invariant: bool = False,
    ):
        self.layout = layout
        self.generator_name = generator_name
        self.generated_on = generated_on
        self.watermark = watermark
        self.pages: list[PageRecord] = []

        self._buffer = io.BytesIO()
        self.canvas = Canvas(
            self._buffer,
            pagesize=(layout.page_width * mm, layout.page_height * mm),
            invariant=1 if invariant else 0,
        )
        if title:
            self.canvas.setTitle(title)
        self.canvas.setAuthor(generator_name)
        self.canvas.setCreator(generator_name)
        self._page_open = False

    @property
    def page_number(self) -> int:
        return len(self.pages)

    @property
    def current_page(self) -> PageRecord:
        return self.pages[-1]

    def start_page(self) -> None:
        """Close the current page (if any) and open the next one with its watermark"""
        if self._page_open:
            self._finish_page()
        self.pages.append(PageRecord(number=len(self.pages) + 1))
        self._page_open = True
        if self.watermark is not None:
            self.watermark.draw(self.canvas, self.layout, self.page_number)

    def draw_image(self, image: Union[EncodedImage, ImageReader], placement: Placement) -> None:
        reader = image.reader() if isinstance(image, EncodedImage) else image
        self.canvas.drawImage(
            reader,
            placement.x * mm,
            self._pdf_y(placement.bottom),
            width=placement.width * mm,
            height=placement.height * mm,
            mask="auto",
        )
        self.current_page.elements.append(placement)

    def draw_text(
        self,
        text: str,
        x: float,
        baseline: float,
        font: str = "Helvetica",
        size: float = 12,
        align: str = "left",
    ) -> None:
        """Draw one line; `baseline` is measured from the top edge"""
        self.canvas.setFont(font, size)
        y = self._pdf_y(baseline)
        if align == "center":
            self.canvas.drawCentredString(self.layout.page_width / 2 * mm, y, text)
        elif align == "right":
            self.canvas.drawRightString(x * mm, y, text)
        else:
            self.canvas.drawString(x * mm, y, text)

    def draw_rule(self, y: float, width: float = 0.2) -> None:
        self.canvas.setLineWidth(width)
        self.canvas.line(
            self.layout.left_margin * mm,
            self._pdf_y(y),
            (self.layout.page_width - self.layout.right_margin) * mm,
            self._pdf_y(y),
        )

    def record(self, placement: Placement) -> None:
        self.current_page.elements.append(placement)

    def finish(self) -> bytes:
        """Close the last page and serialize the document"""
        if self._page_open:
            self._finish_page()
            self._page_open = False
        self.canvas.save()
        return self._buffer.getvalue()

    def _finish_page(self) -> None:
        self._draw_footer()
        self.canvas.showPage()

    def _draw_footer(self) -> None:
        layout = self.layout
        footer = Footer(
            left=self.generator_name,
            center=f"Generated on {self.generated_on.month}/{self.generated_on.day}/"
            f"{self.generated_on.year}",
            right=f"Page {self.page_number}",
        )
        c = self.canvas
        c.saveState()
        c.setStrokeColorRGB(*FOOTER_RULE_GRAY)
        c.setLineWidth(0.1 * mm)
        rule_y = self._pdf_y(layout.footer_rule_y)
        c.line(layout.left_margin * mm, rule_y, (layout.page_width - layout.right_margin) * mm, rule_y)

        c.setFont("Helvetica", layout.footer_font_size)
        c.setFillColorRGB(*FOOTER_TEXT_GRAY)
        baseline = self._pdf_y(layout.footer_baseline)
        c.drawString(layout.left_margin * mm, baseline, footer.left)
        c.drawCentredString(layout.page_width / 2 * mm, baseline, footer.center)
        c.drawRightString((layout.page_width - layout.right_margin) * mm, baseline, footer.right)
        c.restoreState()
        self.current_page.footer = footer

    def _pdf_y(self, y_from_top: float) -> float:
        return (self.layout.page_height - y_from_top) * mm


class RasterSegmentProducer:
    """Lays a captured preview bitmap out as one image segment per page"""

    def __init__(self, image: Image.Image):
        self.image = image

    def produce(self, document: PdfDocument) -> None:
        layout = document.layout
        slices = plan_slices(self.image.width, self.image.height, layout)
        if not slices:
            raise EmptyPreviewError(
                f"Capture of {self.image.width}x{self.image.height}px has no content"
            )

        for page_slice, bitmap in crop_slices(self.image, slices):
            document.start_page()
            encoded = encode_segment(bitmap, layout)
            placement = page_slice.placement
            document.draw_image(encoded, placement)
            logger.info(
                f"📄 Page {document.page_number}: {page_slice.segment.start:.1f}-"
                f"{page_slice.segment.end:.1f}mm as {encoded.format} "
                f"({len(encoded.data) // 1024}KB), placed {placement.y:.1f}-{placement.bottom:.1f}mm"
            )
