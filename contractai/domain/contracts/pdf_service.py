"""Contract PDF generation service"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException, Response

from ...config import PDF_GENERATOR_NAME
from ...models import Agency, Contract
from ...rate_limiter import GenerationGuard, generation_guard
from ...services.pdf import (
    AgencyProfile,
    ContractDocument,
    PdfExportResult,
    RenderMode,
    export_contract_pdf,
    render_preview_html,
)
from ...utils.storage import fetch_logo_bytes, logo_display_url

logger = logging.getLogger(__name__)


class ContractPDFService:
    """Service for contract preview and PDF export"""

    def __init__(self, guard: GenerationGuard = generation_guard, rasterize=None):
        self.guard = guard
        # None keeps the pipeline's headless browser capture
        self.rasterize = rasterize

    @staticmethod
    def preview_html(contract: Contract, agency: Optional[Agency]) -> str:
        profile = AgencyProfile.from_model(agency)
        return render_preview_html(
            ContractDocument.from_model(contract),
            profile,
            logo_src=logo_display_url(agency.logo_url) if agency else None,
            default_generator=PDF_GENERATOR_NAME,
        )

    async def export(
        self,
        contract: Contract,
        agency: Optional[Agency],
        mode: RenderMode = RenderMode.AUTO,
        user_agent: Optional[str] = None,
    ) -> PdfExportResult:
        """Render one contract; a second export of the same contract while this one runs gets 409"""
        with self.guard.hold(contract.id):
            logo_bytes = await fetch_logo_bytes(agency.logo_url) if agency else None
            kwargs = {}
            if self.rasterize is not None:
                kwargs["rasterize"] = self.rasterize
            return await export_contract_pdf(
                ContractDocument.from_model(contract),
                AgencyProfile.from_model(agency),
                mode=mode,
                user_agent=user_agent,
                logo_bytes=logo_bytes,
                default_generator=PDF_GENERATOR_NAME,
                generated_on=date.today(),
                **kwargs,
            )

    @staticmethod
    def to_http_response(result: PdfExportResult, disposition: str = "attachment") -> Response:
        """Turn an export result into the PDF download, or one HTTPException"""
        if not result.ok:
            status_code = 400 if result.error_kind == "precondition" else 500
            raise HTTPException(status_code=status_code, detail=result.error)

        pdf = result.pdf
        return Response(
            content=pdf.content,
            media_type=pdf.media_type,
            headers={
                "Content-Disposition": f'{disposition}; filename="{pdf.filename}"',
                "X-PDF-Pages": str(pdf.page_count),
                "X-PDF-Render-Mode": pdf.mode.value,
            },
        )
