from typing import Optional

from pydantic import BaseModel, Field


class ClauseGenerateRequest(BaseModel):
    """Schema for drafting a clause description"""

    title: Optional[str] = Field(None, max_length=255)
    contractType: Optional[str] = Field(None, max_length=20)
    projectTitle: Optional[str] = Field(None, max_length=255)


class ClauseGenerateResponse(BaseModel):
    description: str
