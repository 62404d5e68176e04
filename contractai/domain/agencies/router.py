"""Agency router - profile and branding endpoints for the signed-in agency"""

import logging

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_agency
from ...database import get_db
from ...models import Agency
from ...utils.storage import logo_display_url, r2_configured, upload_logo, validate_logo
from .repository import AgencyRepository
from .schemas import AgencyResponse, AgencyUpdate, LogoUploadResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agency", tags=["Agency"])


def to_agency_response(agency: Agency) -> AgencyResponse:
    return AgencyResponse(
        id=agency.id,
        name=agency.name,
        email=agency.email,
        logo=logo_display_url(agency.logo_url),
        phone=agency.phone,
        address=agency.address,
        website=agency.website,
        description=agency.description,
        createdAt=agency.created_at,
    )


@router.get("/profile", response_model=AgencyResponse)
async def get_profile(current_agency: Agency = Depends(get_current_agency)):
    """Get the signed-in agency's profile"""
    return to_agency_response(current_agency)


@router.put("/profile", response_model=AgencyResponse)
async def update_profile(
    data: AgencyUpdate,
    current_agency: Agency = Depends(get_current_agency),
    db: Session = Depends(get_db),
):
    """Update the signed-in agency's profile"""
    updates = {
        "name": data.name,
        "email": data.email,
        "phone": data.phone,
        "address": data.address,
        "website": data.website,
        "description": data.description,
        "logo_url": data.logo or None,
    }
    # An explicit null or "" logo removes it
    clear = ("logo_url",) if "logo" in data.model_fields_set and not data.logo else ()
    agency = AgencyRepository.update_agency(db, current_agency, clear=clear, **updates)
    logger.info(f"✅ Updated profile for agency {agency.id}")
    return to_agency_response(agency)


@router.post("/logo", response_model=LogoUploadResponse)
async def upload_agency_logo(
    file: UploadFile = File(...),
    current_agency: Agency = Depends(get_current_agency),
    db: Session = Depends(get_db),
):
    """Upload the agency logo to R2 (private); used for the PDF watermark"""
    logger.info(f"📤 Uploading logo for agency: {current_agency.id}")
    contents = await file.read()
    validate_logo(file.filename, file.content_type, len(contents))

    if not r2_configured():
        raise HTTPException(status_code=503, detail="File storage is not configured")

    try:
        key = upload_logo(current_agency.auth_uid, file.filename, file.content_type, contents)
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Upload failed: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Upload failed. Please try again.") from e

    AgencyRepository.set_logo(db, current_agency, key)
    return LogoUploadResponse(url=logo_display_url(key), key=key)
