"""Contract router - FastAPI endpoints for contract operations"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from ...auth import get_current_agency
from ...database import get_db
from ...models import Agency
from ...rate_limiter import create_rate_limiter
from ...services.pdf import RenderMode
from .pdf_service import ContractPDFService
from .schemas import (
    ContractData,
    ContractResponse,
    ContractSummary,
    PublicContractResponse,
    ShareLinkResponse,
    SignatureRequest,
)
from .service import (
    ContractService,
    PublicContractService,
    to_public_response,
    to_response,
    to_summary,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contracts", tags=["Contracts"])
public_router = APIRouter(prefix="/public/contracts", tags=["Public Contracts"])

rate_limit_pdf = create_rate_limiter(limit=20, window_seconds=300, key_prefix="pdf_download")

Disposition = Literal["attachment", "inline"]


def get_contract_service(
    db: Session = Depends(get_db),
    current_agency: Agency = Depends(get_current_agency),
) -> ContractService:
    """Dependency injection for ContractService"""
    return ContractService(db, current_agency)


def get_public_contract_service(db: Session = Depends(get_db)) -> PublicContractService:
    return PublicContractService(db)


def get_pdf_service() -> ContractPDFService:
    return ContractPDFService()


async def _download(
    pdf_service: ContractPDFService,
    contract,
    agency,
    mode: RenderMode,
    disposition: str,
    request: Request,
) -> Response:
    try:
        result = await pdf_service.export(
            contract, agency, mode=mode, user_agent=request.headers.get("user-agent")
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ PDF export failed for contract {contract.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to generate PDF. Please try again.") from e
    return pdf_service.to_http_response(result, disposition)


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=list[ContractSummary])
async def get_contracts(
    kind: Optional[Literal["client", "hiring"]] = Query(None, alias="type"),
    service: ContractService = Depends(get_contract_service),
):
    """Get all contracts for the current agency, newest first (?type=client|hiring to filter)"""
    return [to_summary(contract) for contract in service.get_contracts(kind)]


@router.post("", response_model=ContractResponse)
async def save_contract(
    data: ContractData,
    service: ContractService = Depends(get_contract_service),
):
    """Create or update a contract together with its scope and clauses"""
    try:
        contract = service.save_contract(data)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Failed to save contract: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save contract. Please try again.") from e
    return to_response(contract)


@router.get("/{contract_id}", response_model=ContractResponse)
async def get_contract(
    contract_id: str,
    service: ContractService = Depends(get_contract_service),
):
    """Get a specific contract"""
    return to_response(service.get_contract(contract_id))


@router.delete("/{contract_id}")
async def delete_contract(
    contract_id: str,
    service: ContractService = Depends(get_contract_service),
):
    """Delete a contract"""
    return service.delete_contract(contract_id)


@router.post("/{contract_id}/duplicate", response_model=ContractResponse)
async def duplicate_contract(
    contract_id: str,
    service: ContractService = Depends(get_contract_service),
):
    """Copy a contract into a new unsigned draft"""
    return to_response(service.duplicate_contract(contract_id))


# ============================================================================
# SIGNING & SHARING
# ============================================================================


@router.post("/{contract_id}/sign", response_model=ContractResponse)
async def sign_contract_as_agency(
    contract_id: str,
    signature_request: SignatureRequest,
    service: ContractService = Depends(get_contract_service),
):
    """Sign contract as the agency"""
    return to_response(service.sign_as_agency(contract_id, signature_request.signature))


@router.post("/{contract_id}/complete", response_model=ContractResponse)
async def complete_contract(
    contract_id: str,
    service: ContractService = Depends(get_contract_service),
):
    """Mark a signed contract as completed"""
    return to_response(service.complete_contract(contract_id))


@router.post("/{contract_id}/share", response_model=ShareLinkResponse)
async def share_contract(
    contract_id: str,
    service: ContractService = Depends(get_contract_service),
):
    """Get (and store) the link the counterparty opens to review and sign"""
    return service.share_contract(contract_id)


# ============================================================================
# PREVIEW & PDF
# ============================================================================


@router.get("/{contract_id}/preview", response_class=HTMLResponse)
async def preview_contract(
    contract_id: str,
    service: ContractService = Depends(get_contract_service),
    pdf_service: ContractPDFService = Depends(get_pdf_service),
):
    """HTML preview; the same markup is captured for the PDF"""
    contract = service.get_contract(contract_id)
    return HTMLResponse(pdf_service.preview_html(contract, service.agency))


@router.get("/{contract_id}/pdf")
async def download_contract_pdf(
    contract_id: str,
    request: Request,
    mode: RenderMode = Query(RenderMode.AUTO, description="auto, raster or text"),
    disposition: Disposition = Query("attachment"),
    service: ContractService = Depends(get_contract_service),
    pdf_service: ContractPDFService = Depends(get_pdf_service),
    _: None = Depends(rate_limit_pdf),
):
    """Download the contract as PDF (inline opens it in the browser viewer instead)"""
    contract = service.get_contract(contract_id)
    return await _download(pdf_service, contract, service.agency, mode, disposition, request)


# ============================================================================
# PUBLIC (COUNTERPARTY) ACCESS
# ============================================================================


@public_router.get("/{contract_id}", response_model=PublicContractResponse)
async def get_public_contract(
    contract_id: str,
    service: PublicContractService = Depends(get_public_contract_service),
):
    """Read-only contract view for the counterparty"""
    return to_public_response(service.get_contract(contract_id))


@public_router.post("/{contract_id}/sign", response_model=PublicContractResponse)
async def sign_contract_as_client(
    contract_id: str,
    signature_request: SignatureRequest,
    service: PublicContractService = Depends(get_public_contract_service),
):
    """Counterparty signature; marks the contract signed"""
    return to_public_response(service.sign_as_client(contract_id, signature_request.signature))


@public_router.get("/{contract_id}/pdf")
async def download_public_contract_pdf(
    contract_id: str,
    request: Request,
    mode: RenderMode = Query(RenderMode.AUTO),
    disposition: Disposition = Query("attachment"),
    service: PublicContractService = Depends(get_public_contract_service),
    pdf_service: ContractPDFService = Depends(get_pdf_service),
    _: None = Depends(rate_limit_pdf),
):
    """Counterparty PDF download"""
    contract = service.get_contract(contract_id)
    return await _download(pdf_service, contract, contract.agency, mode, disposition, request)
