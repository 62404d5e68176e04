"""Contract domain schemas - Pydantic models for validation

Stored rows and client payloads do not always agree on the shape of scope and
clauses (null, a bare string, a list of strings, a list of objects). Everything
is normalized here, once, so nothing downstream has to coerce again.
"""

from datetime import date, datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

ContractKind = Literal["client", "hiring", ""]
ContractStatus = Literal["draft", "review", "signed", "completed"]
# Statuses an agency may save; "signed" is set by the counterparty signature only
EditableStatus = Literal["draft", "review"]


def normalize_scope(value: Any) -> list[str]:
    """Coerce any stored/posted scope shape into an ordered list of strings"""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return [str(value)]

    items = []
    for item in value:
        if item is None:
            continue
        if isinstance(item, dict):
            item = item.get("item") or item.get("scope_item") or item.get("text") or ""
        elif hasattr(item, "item"):
            # ContractScopeItem row
            item = item.item
        text = str(item)
        if text.strip():
            items.append(text)
    return items


def normalize_clause(clause: Any) -> dict[str, str]:
    if isinstance(clause, str):
        return {"title": clause, "description": clause}
    if isinstance(clause, dict):
        title = clause.get("title") or "Untitled Clause"
        description = (
            clause.get("description") or clause.get("body") or clause.get("title")
            or "No description provided"
        )
        return {"title": str(title), "description": str(description)}
    if hasattr(clause, "title"):
        # ClauseSchema or ContractClause row
        return normalize_clause(
            {"title": clause.title, "description": getattr(clause, "description", None)}
        )
    return {"title": "Invalid Clause", "description": "Invalid clause data"}


def normalize_clauses(value: Any) -> list[dict[str, str]]:
    """Coerce any stored/posted clause shape into a list of {title, description}"""
    if value is None:
        return []
    if isinstance(value, (str, dict)):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [normalize_clause(clause) for clause in value if clause is not None]


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ClauseSchema(BaseModel):
    """A titled block of contract terms"""

    title: str
    description: str


class ContractData(BaseModel):
    """Schema for saving (upserting) a contract from the wizard"""

    id: Optional[str] = Field(None, max_length=64)
    type: ContractKind = ""
    clientName: str = ""
    clientEmail: str = ""
    agencyName: str = ""
    agencyEmail: str = ""
    projectTitle: str = Field("", max_length=255)
    projectDescription: str = ""
    scope: list[str] = Field(default_factory=list)
    paymentAmount: float = Field(0.0, ge=0)
    paymentTerms: str = Field("", max_length=255)
    startDate: Optional[date] = None
    endDate: Optional[date] = None
    clauses: list[ClauseSchema] = Field(default_factory=list)
    status: EditableStatus = "draft"

    @field_validator("scope", mode="before")
    @classmethod
    def _normalize_scope(cls, value: Any) -> list[str]:
        return normalize_scope(value)

    @field_validator("clauses", mode="before")
    @classmethod
    def _normalize_clauses(cls, value: Any) -> list[dict[str, str]]:
        return normalize_clauses(value)

    @field_validator("startDate", "endDate", "id", mode="before")
    @classmethod
    def _blank_dates(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("paymentAmount", mode="before")
    @classmethod
    def _blank_amount(cls, value: Any) -> Any:
        return 0.0 if _blank_to_none(value) is None else value

    @field_validator(
        "clientName", "clientEmail", "agencyName", "agencyEmail", "projectTitle",
        "projectDescription", "paymentTerms", mode="before",
    )
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class ContractSummary(BaseModel):
    """Schema for contract list entries (children are not loaded)"""

    id: str
    type: str
    clientName: str
    clientEmail: str
    projectTitle: str
    paymentAmount: float
    status: ContractStatus
    shareableLink: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class ContractResponse(ContractSummary):
    """Schema for a fully loaded contract"""

    agencyName: str
    agencyEmail: str
    projectDescription: str
    scope: list[str]
    paymentTerms: str
    startDate: Optional[date] = None
    endDate: Optional[date] = None
    clauses: list[ClauseSchema]
    agencySignature: Optional[str] = None
    agencySignedAt: Optional[datetime] = None
    clientSignature: Optional[str] = None
    clientSignedAt: Optional[datetime] = None

    @field_validator("scope", mode="before")
    @classmethod
    def _normalize_scope(cls, value: Any) -> list[str]:
        return normalize_scope(value)

    @field_validator("clauses", mode="before")
    @classmethod
    def _normalize_clauses(cls, value: Any) -> list[dict[str, str]]:
        return normalize_clauses(value)


class PublicAgency(BaseModel):
    """Agency branding shown to the counterparty"""

    name: str
    email: str
    logoUrl: Optional[str] = None


class PublicContractResponse(ContractResponse):
    """Schema for the counterparty's read-only contract view"""

    agency: Optional[PublicAgency] = None


class SignatureRequest(BaseModel):
    """Schema for a signature submission (either party)"""

    signature: str = Field(..., max_length=500_000)

    @field_validator("signature")
    @classmethod
    def _must_be_image_data_url(cls, value: str) -> str:
        if not value.startswith("data:image/"):
            raise ValueError("Signature must be a data:image/... URL")
        return value


class ShareLinkResponse(BaseModel):
    """Schema for the shareable link response"""

    contractId: str
    shareableLink: str
