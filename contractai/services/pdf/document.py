"""
Read-only contract and agency snapshots consumed by the PDF pipeline,
plus the labels and formatting shared by the HTML preview and the text renderer.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from ...domain.contracts.schemas import normalize_clauses, normalize_scope

DEFAULT_GENERATOR_NAME = "ContractAI"

PAYMENT_SCHEDULES = {
    "client": {
        "upfront": "100% Upfront",
        "50-50": "50% Upfront, 50% on Completion",
        "milestone": "Milestone-based",
        "monthly": "Monthly Payments",
        "net-30": "Net 30 Days",
    },
    "hiring": {
        "monthly": "Monthly Salary",
        "bi-weekly": "Bi-weekly",
        "weekly": "Weekly",
        "hourly": "Hourly Rate",
    },
}


@dataclass(frozen=True)
class Clause:
    title: str
    description: str


@dataclass(frozen=True)
class ContractDocument:
    id: Optional[str] = None
    kind: str = ""
    client_name: str = ""
    client_email: str = ""
    agency_name: str = ""
    agency_email: str = ""
    title: str = ""
    description: str = ""
    scope: tuple[str, ...] = ()
    payment_amount: float = 0.0
    payment_terms: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    clauses: tuple[Clause, ...] = ()
    status: str = "draft"
    agency_signature: Optional[str] = None
    agency_signed_at: Optional[datetime] = None
    client_signature: Optional[str] = None
    client_signed_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, contract) -> "ContractDocument":
        """Snapshot a Contract row (or any object exposing the same attributes)"""
        return cls(
            id=contract.id,
            kind=contract.kind or "",
            client_name=contract.client_name or "",
            client_email=contract.client_email or "",
            agency_name=contract.agency_name or "",
            agency_email=contract.agency_email or "",
            title=contract.title or "",
            description=contract.description or "",
            scope=tuple(normalize_scope(contract.scope_items)),
            payment_amount=float(contract.payment_amount or 0),
            payment_terms=contract.payment_terms or "",
            start_date=contract.start_date,
            end_date=contract.end_date,
            clauses=tuple(Clause(**c) for c in normalize_clauses(contract.clauses)),
            status=contract.status or "draft",
            agency_signature=contract.agency_signature,
            agency_signed_at=contract.agency_signed_at,
            client_signature=contract.client_signature,
            client_signed_at=contract.client_signed_at,
        )

    @property
    def is_client(self) -> bool:
        return self.kind == "client"


@dataclass(frozen=True)
class AgencyProfile:
    name: str = ""
    email: str = ""
    logo_url: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None

    @classmethod
    def from_model(cls, agency) -> Optional["AgencyProfile"]:
        if agency is None:
            return None
        return cls(
            name=agency.name or "",
            email=agency.email or "",
            logo_url=agency.logo_url,
            phone=agency.phone,
            address=agency.address,
            website=agency.website,
        )


@dataclass(frozen=True)
class ContractLabels:
    heading_fallback: str
    provider: str
    counterparty: str
    details: str
    title: str
    end_date: str
    scope: str
    payment: str
    amount: str
    provider_role: str = "Service Provider / Employer"
    counterparty_role: str = "Client / Employee"


CLIENT_LABELS = ContractLabels(
    heading_fallback="CONTRACT",
    provider="SERVICE PROVIDER",
    counterparty="CLIENT",
    details="Project Details",
    title="Project Title",
    end_date="Completion Date",
    scope="Scope of Work",
    payment="Payment Terms",
    amount="Total Project Value",
)

HIRING_LABELS = ContractLabels(
    heading_fallback="EMPLOYMENT CONTRACT",
    provider="EMPLOYER",
    counterparty="EMPLOYEE",
    details="Position Details",
    title="Position Title",
    end_date="End Date",
    scope="Responsibilities",
    payment="Compensation",
    amount="Compensation",
)


def labels_for(kind: str) -> ContractLabels:
    return CLIENT_LABELS if kind == "client" else HIRING_LABELS


def heading_for(contract: ContractDocument) -> str:
    if contract.is_client:
        return contract.title.upper() if contract.title else CLIENT_LABELS.heading_fallback
    return HIRING_LABELS.heading_fallback


def agency_name_for(contract: ContractDocument, agency: Optional[AgencyProfile]) -> str:
    return (agency.name if agency else "") or contract.agency_name or "[Agency Name]"


def agency_email_for(contract: ContractDocument, agency: Optional[AgencyProfile]) -> str:
    return (agency.email if agency else "") or contract.agency_email or "[Agency Email]"


def generator_name_for(
    contract: ContractDocument,
    agency: Optional[AgencyProfile],
    default: str = DEFAULT_GENERATOR_NAME,
) -> str:
    return (agency.name if agency else "") or contract.agency_name or default


def payment_schedule_label(kind: str, schedule: str) -> str:
    if not schedule:
        return ""
    return PAYMENT_SCHEDULES.get(kind, {}).get(schedule, schedule)


def format_date(value: Union[date, datetime, None], empty: str = "Not specified") -> str:
    """Long US date, e.g. "January 5, 2025" """
    if value is None:
        return empty
    return f"{value:%B} {value.day}, {value.year}"


def format_short_date(value: Union[date, datetime]) -> str:
    return f"{value.month}/{value.day}/{value.year}"


def format_currency(amount: Optional[float], symbol: str = "₹") -> str:
    """Format with Indian digit grouping (12,34,567.89)."""
    if not amount:
        return f"{symbol}0.00"
    sign = "-" if amount < 0 else ""
    whole, fraction = f"{abs(amount):.2f}".split(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"{sign}{symbol}{whole}.{fraction}"
