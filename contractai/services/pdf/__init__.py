"""Contract PDF pipeline: preview capture, pagination, watermark, assembly, text fallback"""

from .document import AgencyProfile, ContractDocument
from .errors import (
    EmptyPreviewError,
    MissingContractDataError,
    PdfGenerationError,
    PdfPreconditionError,
    PdfRenderError,
    PreviewNotFoundError,
)
from .layout import DEFAULT_LAYOUT, TEXT_LAYOUT, PageLayout
from .pipeline import (
    PdfExportResult,
    RenderedPdf,
    RenderMode,
    contract_pdf_filename,
    export_contract_pdf,
    render_raster,
    render_text,
    select_render_mode,
)
from .preview import render_preview_html

__all__ = [
    "AgencyProfile",
    "ContractDocument",
    "DEFAULT_LAYOUT",
    "EmptyPreviewError",
    "MissingContractDataError",
    "PageLayout",
    "PdfExportResult",
    "PdfGenerationError",
    "PdfPreconditionError",
    "PdfRenderError",
    "PreviewNotFoundError",
    "RenderMode",
    "RenderedPdf",
    "TEXT_LAYOUT",
    "contract_pdf_filename",
    "export_contract_pdf",
    "render_preview_html",
    "render_raster",
    "render_text",
    "select_render_mode",
]
