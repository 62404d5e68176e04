"""
Contract PDF export: picks a render path, runs it, and reports the outcome.

`export_contract_pdf` is the only entry point routers use. It never raises;
every failure comes back as a `PdfExportResult` with one user-facing message.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from PIL import Image

from .assembler import PageContentProducer, PageRecord, PdfDocument, RasterSegmentProducer
from .document import (
    DEFAULT_GENERATOR_NAME,
    AgencyProfile,
    ContractDocument,
    generator_name_for,
    heading_for,
)
from .errors import MissingContractDataError, PdfGenerationError, PdfPreconditionError
from .layout import DEFAULT_LAYOUT, TEXT_LAYOUT, PageLayout
from .preview import render_preview_html
from .rasterizer import CONSTRAINED_SCALE, DEFAULT_SCALE, rasterize_preview
from .text_renderer import TextSegmentProducer
from .watermark import Watermark

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"

# WebKit on these devices runs out of memory capturing long previews
CONSTRAINED_AGENTS = ("iphone", "ipad", "ipod")


class RenderMode(str, Enum):
    AUTO = "auto"
    RASTER = "raster"
    TEXT = "text"


def is_constrained_client(user_agent: Optional[str]) -> bool:
    ua = (user_agent or "").lower()
    return any(agent in ua for agent in CONSTRAINED_AGENTS)


def select_render_mode(requested: RenderMode, user_agent: Optional[str] = None) -> RenderMode:
    if requested != RenderMode.AUTO:
        return requested
    return RenderMode.TEXT if is_constrained_client(user_agent) else RenderMode.RASTER


def capture_scale(user_agent: Optional[str] = None) -> float:
    return CONSTRAINED_SCALE if is_constrained_client(user_agent) else DEFAULT_SCALE


def contract_pdf_filename(title: Optional[str], contract_id: Optional[str], short_id: bool = False) -> str:
    """contract-<title with non-alphanumerics as "_">.pdf, falling back to the id"""
    slug = re.sub(r"[^A-Za-z0-9]", "_", title or "")
    if not slug:
        if contract_id:
            slug = contract_id[-8:] if short_id else contract_id
        else:
            slug = "draft"
    return f"contract-{slug}.pdf"


@dataclass(frozen=True)
class RenderedPdf:
    filename: str
    content: bytes
    page_count: int
    mode: RenderMode
    media_type: str = PDF_MEDIA_TYPE


@dataclass(frozen=True)
class PdfExportResult:
    ok: bool
    pdf: Optional[RenderedPdf] = None
    error: Optional[str] = None
    # "precondition" or "render"
    error_kind: Optional[str] = None

    @classmethod
    def success(cls, pdf: RenderedPdf) -> "PdfExportResult":
        return cls(ok=True, pdf=pdf)

    @classmethod
    def failure(cls, message: str, kind: str) -> "PdfExportResult":
        return cls(ok=False, error=message, error_kind=kind)


def build_pdf(
    producer: PageContentProducer,
    layout: PageLayout,
    generator_name: str,
    generated_on: date,
    logo_bytes: Optional[bytes] = None,
    title: Optional[str] = None,
    invariant: bool = False,
) -> tuple[bytes, list[PageRecord]]:
    """Drive one producer through a fresh document and serialize it"""
    watermark = Watermark.load(logo_bytes, layout) if logo_bytes else None
    document = PdfDocument(
        layout,
        generator_name=generator_name,
        generated_on=generated_on,
        watermark=watermark,
        title=title,
        invariant=invariant,
    )
    producer.produce(document)
    return document.finish(), document.pages


def render_raster(
    image: Image.Image,
    contract: ContractDocument,
    agency: Optional[AgencyProfile] = None,
    logo_bytes: Optional[bytes] = None,
    default_generator: str = DEFAULT_GENERATOR_NAME,
    generated_on: Optional[date] = None,
    layout: PageLayout = DEFAULT_LAYOUT,
    invariant: bool = False,
) -> RenderedPdf:
    content, pages = build_pdf(
        RasterSegmentProducer(image),
        layout,
        generator_name=generator_name_for(contract, agency, default_generator),
        generated_on=generated_on or date.today(),
        logo_bytes=logo_bytes,
        title=heading_for(contract),
        invariant=invariant,
    )
    return RenderedPdf(
        filename=contract_pdf_filename(contract.title, contract.id),
        content=content,
        page_count=len(pages),
        mode=RenderMode.RASTER,
    )


def render_text(
    contract: ContractDocument,
    agency: Optional[AgencyProfile] = None,
    logo_bytes: Optional[bytes] = None,
    default_generator: str = DEFAULT_GENERATOR_NAME,
    generated_on: Optional[date] = None,
    layout: PageLayout = TEXT_LAYOUT,
    invariant: bool = False,
) -> RenderedPdf:
    content, pages = build_pdf(
        TextSegmentProducer(contract, agency, default_generator),
        layout,
        generator_name=generator_name_for(contract, agency, default_generator),
        generated_on=generated_on or date.today(),
        logo_bytes=logo_bytes,
        title=heading_for(contract),
        invariant=invariant,
    )
    return RenderedPdf(
        filename=contract_pdf_filename(contract.title, contract.id),
        content=content,
        page_count=len(pages),
        mode=RenderMode.TEXT,
    )


async def export_contract_pdf(
    contract: Optional[ContractDocument],
    agency: Optional[AgencyProfile] = None,
    mode: RenderMode = RenderMode.AUTO,
    user_agent: Optional[str] = None,
    logo_bytes: Optional[bytes] = None,
    default_generator: str = DEFAULT_GENERATOR_NAME,
    generated_on: Optional[date] = None,
    rasterize=rasterize_preview,
) -> PdfExportResult:
    """
    Render a contract to PDF bytes.

    `rasterize` is the async capture step of the raster path
    (html, scale) -> PIL image; the default drives headless Chromium.
    """
    try:
        if contract is None:
            raise MissingContractDataError("No contract supplied for export")

        generated_on = generated_on or date.today()
        selected = select_render_mode(mode, user_agent)
        logger.info(f"📄 Exporting contract {contract.id or 'draft'} as PDF ({selected.value})")

        if selected == RenderMode.TEXT:
            # Page assembly is CPU bound, keep it off the event loop
            pdf = await asyncio.to_thread(
                render_text, contract, agency, logo_bytes, default_generator, generated_on=generated_on
            )
        else:
            html = render_preview_html(
                contract,
                agency,
                generated_on=generated_on,
                default_generator=default_generator,
                for_capture=True,
            )
            image = await rasterize(html, capture_scale(user_agent))
            pdf = await asyncio.to_thread(
                render_raster,
                image,
                contract,
                agency,
                logo_bytes,
                default_generator,
                generated_on=generated_on,
            )

        logger.info(
            f"✅ Generated {pdf.filename}: {pdf.page_count} page(s), {len(pdf.content) // 1024}KB"
        )
        return PdfExportResult.success(pdf)
    except PdfPreconditionError as e:
        logger.warning(f"⚠️ PDF export precondition failed: {e}")
        return PdfExportResult.failure(e.user_message, "precondition")
    except PdfGenerationError as e:
        logger.error(f"❌ PDF generation failed: {e}", exc_info=True)
        return PdfExportResult.failure(e.user_message, "render")
    except Exception as e:
        logger.error(f"❌ Unexpected error generating PDF: {e}", exc_info=True)
        return PdfExportResult.failure(PdfGenerationError.user_message, "render")
