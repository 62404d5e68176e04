"""Clause router - AI assisted clause descriptions for the contract wizard"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ...auth import get_current_agency
from ...models import Agency
from ...services.clause_generator import ClauseGenerator, clause_generator
from .schemas import ClauseGenerateRequest, ClauseGenerateResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clauses", tags=["Clauses"])


def get_clause_generator() -> ClauseGenerator:
    return clause_generator


@router.post("/generate", response_model=ClauseGenerateResponse)
async def generate_clause(
    data: ClauseGenerateRequest,
    current_agency: Agency = Depends(get_current_agency),
    generator: ClauseGenerator = Depends(get_clause_generator),
):
    """Draft a description for a clause title"""
    if not data.title or not data.contractType:
        raise HTTPException(status_code=400, detail="Title and contract type are required")

    logger.info(f"🤖 Drafting clause '{data.title}' for agency {current_agency.id}")
    try:
        description = await generator.generate(data.title, data.contractType, data.projectTitle)
    except Exception as e:
        logger.error(f"❌ Error in clause generation: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to generate clause description")

    return ClauseGenerateResponse(description=description)
