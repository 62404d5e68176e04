"""Agency domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class AgencyUpdate(BaseModel):
    """Schema for updating the signed-in agency's profile"""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=500)
    website: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    # http(s) URL or data:image URL; uploads go through POST /agency/logo instead
    logo: Optional[str] = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Agency name cannot be blank")
        return v.strip() if v else v

    @field_validator("logo")
    @classmethod
    def validate_logo(cls, v):
        if v and not v.startswith(("https://", "http://", "data:image/")):
            raise ValueError("Logo must be an http(s) or data:image URL")
        return v


class AgencyResponse(BaseModel):
    """Schema for agency profile response"""

    id: str
    name: str
    email: str
    logo: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    createdAt: Optional[datetime] = None


class LogoUploadResponse(BaseModel):
    url: Optional[str] = None
    key: str
