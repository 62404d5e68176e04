"""Tests for contract payload normalization and the shared display formatting."""

from datetime import date, datetime
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from contractai.domain.contracts.schemas import (
    ContractData,
    SignatureRequest,
    normalize_clauses,
    normalize_scope,
)
from contractai.services.pdf.document import (
    AgencyProfile,
    ContractDocument,
    agency_name_for,
    format_currency,
    format_date,
    format_short_date,
    generator_name_for,
    heading_for,
    labels_for,
    payment_schedule_label,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, []),
        ("", []),
        ("Single item", ["Single item"]),
        (["Design", "", "  ", "Build"], ["Design", "Build"]),
        ([{"item": "A"}, {"scope_item": "B"}, {"text": "C"}], ["A", "B", "C"]),
        ({"item": "Only"}, ["Only"]),
        ([1, 2], ["1", "2"]),
    ],
)
def test_normalize_scope(value, expected):
    assert normalize_scope(value) == expected


def test_normalize_scope_accepts_rows():
    rows = [SimpleNamespace(item="First"), SimpleNamespace(item="Second")]
    assert normalize_scope(rows) == ["First", "Second"]


def test_normalize_clauses():
    clauses = normalize_clauses(
        [
            "Confidentiality",
            {"title": "Payment", "description": "Net 30"},
            {"title": "Termination"},
            {"body": "Governed by law"},
            SimpleNamespace(title="IP", description="Client owns deliverables"),
            42,
        ]
    )

    assert clauses == [
        {"title": "Confidentiality", "description": "Confidentiality"},
        {"title": "Payment", "description": "Net 30"},
        {"title": "Termination", "description": "Termination"},
        {"title": "Untitled Clause", "description": "Governed by law"},
        {"title": "IP", "description": "Client owns deliverables"},
        {"title": "Invalid Clause", "description": "Invalid clause data"},
    ]


def test_normalize_clauses_of_non_list():
    assert normalize_clauses(None) == []
    assert normalize_clauses(17) == []
    assert normalize_clauses("Single") == [{"title": "Single", "description": "Single"}]


def test_contract_data_coerces_loose_payloads():
    data = ContractData(
        id="",
        type="client",
        clientName=None,
        projectTitle="Website",
        scope="Build the site",
        paymentAmount="",
        startDate="",
        endDate="2025-06-30",
        clauses=[{"title": "Payment"}],
    )

    assert data.id is None
    assert data.clientName == ""
    assert data.scope == ["Build the site"]
    assert data.paymentAmount == 0
    assert data.startDate is None
    assert data.endDate == date(2025, 6, 30)
    assert data.clauses[0].title == "Payment"
    assert data.clauses[0].description == "Payment"
    assert data.status == "draft"


def test_contract_data_rejects_negative_amount():
    with pytest.raises(ValidationError):
        ContractData(paymentAmount=-1)


def test_signature_must_be_image_data_url():
    assert SignatureRequest(signature="data:image/png;base64,AAAA").signature
    with pytest.raises(ValidationError):
        SignatureRequest(signature="https://evil.example/sig.png")


@pytest.mark.parametrize(
    "amount, expected",
    [
        (0, "₹0.00"),
        (None, "₹0.00"),
        (999, "₹999.00"),
        (1000, "₹1,000.00"),
        (150000, "₹1,50,000.00"),
        (1234567.5, "₹12,34,567.50"),
    ],
)
def test_format_currency_uses_indian_grouping(amount, expected):
    assert format_currency(amount) == expected


def test_format_currency_symbol():
    assert format_currency(2500, "Rs. ") == "Rs. 2,500.00"


def test_date_formatting():
    assert format_date(date(2025, 1, 5)) == "January 5, 2025"
    assert format_date(datetime(2025, 12, 25, 10, 30)) == "December 25, 2025"
    assert format_date(None) == "Not specified"
    assert format_short_date(date(2025, 1, 5)) == "1/5/2025"


def test_headings_and_labels():
    client = ContractDocument(kind="client", title="Website Redesign")
    hiring = ContractDocument(kind="hiring", title="Senior Engineer")

    assert heading_for(client) == "WEBSITE REDESIGN"
    assert heading_for(ContractDocument(kind="client")) == "CONTRACT"
    assert heading_for(hiring) == "EMPLOYMENT CONTRACT"
    assert labels_for("client").provider == "SERVICE PROVIDER"
    assert labels_for("hiring").counterparty == "EMPLOYEE"


def test_payment_schedule_label():
    assert payment_schedule_label("client", "50-50") == "50% Upfront, 50% on Completion"
    assert payment_schedule_label("hiring", "bi-weekly") == "Bi-weekly"
    assert payment_schedule_label("client", "custom terms") == "custom terms"
    assert payment_schedule_label("client", "") == ""


def test_generator_and_agency_name_fallbacks():
    contract = ContractDocument(agency_name="Contract Agency")

    assert generator_name_for(contract, AgencyProfile(name="Profile Agency")) == "Profile Agency"
    assert generator_name_for(contract, None) == "Contract Agency"
    assert generator_name_for(ContractDocument(), None) == "ContractAI"
    assert agency_name_for(ContractDocument(), None) == "[Agency Name]"
