"""
Text-only contract rendering.

Walks the contract data directly instead of capturing the HTML preview, for
clients whose rendering engines struggle with full-page rasterization. A top
down cursor writes one line (or one signature image) at a time and breaks the
page before anything would cross the bottom margin, so nothing is ever split.
"""

import logging
from typing import Optional

from reportlab.lib.utils import simpleSplit
from reportlab.lib.units import mm

from .assembler import PdfDocument
from .document import (
    AgencyProfile,
    ContractDocument,
    agency_email_for,
    agency_name_for,
    format_currency,
    format_date,
    format_short_date,
    generator_name_for,
    heading_for,
    labels_for,
    payment_schedule_label,
)
from .images import decode_data_url, image_reader
from .paginator import Placement

logger = logging.getLogger(__name__)

FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
PT_TO_MM = 25.4 / 72
MIN_LINE_HEIGHT = 6.0  # mm
PARAGRAPH_GAP = 2.0
SECTION_GAP = 5.0
RULE_HEIGHT = 5.0
SIGNATURE_WIDTH = 60.0
SIGNATURE_HEIGHT = 20.0
BLANK_SIGNATURE = "_" * 30
BLANK_DATE = "_" * 15
# Helvetica has no rupee glyph
CURRENCY_SYMBOL = "Rs. "


def line_height(size: float) -> float:
    return max(MIN_LINE_HEIGHT, size * PT_TO_MM * 1.25)


class TextSegmentProducer:
    def __init__(
        self,
        contract: ContractDocument,
        agency: Optional[AgencyProfile],
        default_generator: str = "ContractAI",
    ):
        self.contract = contract
        self.agency = agency
        self.default_generator = default_generator
        self._document: Optional[PdfDocument] = None
        self._y = 0.0

    def produce(self, document: PdfDocument) -> None:
        self._document = document
        self._new_page()

        self._header()
        self._parties()
        self._details()
        self._scope()
        self._payment()
        self._clauses()
        self._signatures()
        self._closing()

    # Sections

    def _header(self) -> None:
        self._write(heading_for(self.contract), size=18, bold=True, center=True)
        self._write(f"Contract No: {self.contract.id or 'DRAFT'}", size=10, center=True)
        self._gap(SECTION_GAP)
        self._rule()

    def _parties(self) -> None:
        labels = labels_for(self.contract.kind)
        self._write("PARTIES", size=14, bold=True)
        self._write(f"{labels.provider}:")
        self._write(agency_name_for(self.contract, self.agency))
        self._write(agency_email_for(self.contract, self.agency))
        self._gap(3)
        self._write(f"{labels.counterparty}:")
        self._write(self.contract.client_name or "[Client/Employee Name]")
        self._write(self.contract.client_email or "[Client/Employee Email]")
        self._section_end()

    def _details(self) -> None:
        labels = labels_for(self.contract.kind)
        self._write(labels.details.upper(), size=14, bold=True)
        self._write(f"{labels.title}: {self.contract.title or '[Not specified]'}")
        self._write(f"Description: {self.contract.description or '[Not specified]'}")
        self._write(f"Start Date: {format_date(self.contract.start_date, '[Not specified]')}")
        self._write(
            f"{labels.end_date}: {format_date(self.contract.end_date, '[Not specified]')}"
        )
        self._section_end()

    def _scope(self) -> None:
        self._write(labels_for(self.contract.kind).scope.upper(), size=14, bold=True)
        if self.contract.scope:
            for number, item in enumerate(self.contract.scope, start=1):
                self._write(f"{number}. {item}")
        else:
            self._write("No scope items defined")
        self._section_end()

    def _payment(self) -> None:
        labels = labels_for(self.contract.kind)
        schedule = payment_schedule_label(self.contract.kind, self.contract.payment_terms)
        self._write(labels.payment.upper(), size=14, bold=True)
        self._write(
            f"{labels.amount}: {format_currency(self.contract.payment_amount, CURRENCY_SYMBOL)}"
        )
        self._write(f"Payment Schedule: {schedule or '[Not specified]'}")
        self._section_end()

    def _clauses(self) -> None:
        if not self.contract.clauses:
            return
        self._write("TERMS AND CONDITIONS", size=14, bold=True)
        for number, clause in enumerate(self.contract.clauses, start=1):
            self._write(f"{number}. {clause.title or f'Clause {number}'}", bold=True)
            self._write(clause.description or clause.title or "No description provided")
            self._gap(PARAGRAPH_GAP)
        self._section_end()

    def _signatures(self) -> None:
        self._write("SIGNATURES", size=14, bold=True)
        self._gap(10)

        self._signature_block(
            self.contract.agency_signature,
            self.contract.agency_name or agency_name_for(self.contract, self.agency),
            "Service Provider / Employer",
            self.contract.agency_signed_at,
        )
        self._gap(15)
        self._signature_block(
            self.contract.client_signature,
            self.contract.client_name or "[Client/Employee Name]",
            "Client / Employee",
            self.contract.client_signed_at,
        )
        self._gap(10)
        self._rule()

    def _closing(self) -> None:
        generator = generator_name_for(self.contract, self.agency, self.default_generator)
        generated_on = format_short_date(self._document.generated_on)
        self._write(
            "This contract is legally binding upon signature by both parties.", size=8, center=True
        )
        self._write(f"Generated by {generator} on {generated_on}", size=8, center=True)

    def _signature_block(self, signature, name, role, signed_at) -> None:
        if not (signature and self._signature_image(signature)):
            self._write(BLANK_SIGNATURE)
        self._write(name, size=10, bold=True)
        self._write(role, size=9)
        signed = format_short_date(signed_at) if signed_at else BLANK_DATE
        self._write(f"Date: {signed}", size=9)

    # Cursor primitives

    def _new_page(self) -> None:
        self._document.start_page()
        self._y = self._document.layout.top_margin

    def _ensure_room(self, height: float) -> None:
        if self._y + height > self._document.layout.content_bottom:
            self._new_page()

    def _gap(self, height: float) -> None:
        self._y += height

    def _section_end(self) -> None:
        self._gap(SECTION_GAP)
        self._rule()

    def _write(self, text: str, size: float = 12, bold: bool = False, center: bool = False) -> None:
        layout = self._document.layout
        font = FONT_BOLD if bold else FONT_REGULAR
        height = line_height(size)
        lines = simpleSplit(text, font, size, layout.content_width * mm) or [""]
        for line in lines:
            self._ensure_room(height)
            # Baseline sits at the cap height below the cursor
            baseline = self._y + size * PT_TO_MM
            self._document.draw_text(
                line, layout.left_margin, baseline, font=font, size=size,
                align="center" if center else "left",
            )
            self._document.record(Placement(layout.left_margin, self._y, layout.content_width, height))
            self._y += height
        self._y += PARAGRAPH_GAP

    def _rule(self) -> None:
        self._ensure_room(RULE_HEIGHT)
        self._document.draw_rule(self._y)
        self._y += RULE_HEIGHT

    def _signature_image(self, signature: str) -> bool:
        data = decode_data_url(signature)
        if data is None:
            return False
        try:
            reader = image_reader(data)
        except Exception as e:
            logger.warning(f"⚠️ Failed to add signature image: {e}")
            return False
        self._ensure_room(SIGNATURE_HEIGHT)
        placement = Placement(
            self._document.layout.left_margin, self._y, SIGNATURE_WIDTH, SIGNATURE_HEIGHT
        )
        self._document.draw_image(reader, placement)
        self._y += SIGNATURE_HEIGHT + 2
        return True
