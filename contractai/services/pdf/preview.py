"""
HTML contract preview.

The same markup is served by the preview endpoint and captured by the
rasterizer, so what the agency reviews is exactly what ends up in the PDF.
"""

import html
from datetime import date
from typing import Optional

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

PREVIEW_CONTAINER_CLASS = "contract-preview-container"


def _e(value) -> str:
    return html.escape(str(value), quote=True)


def _signature_html(signature: Optional[str], alt: str) -> str:
    # Only inline images; anything else could point the browser elsewhere
    if signature and signature.startswith("data:image/"):
        return f"<img src='{_e(signature)}' alt='{alt}' class='signature-image'>"
    return ""


def _signature_block(signature, name, role, signed_at, alt) -> str:
    signed = format_date(signed_at) if signed_at else "_______________"
    return f"""
        <div class="signature-block">
            <div class="signature-line">{_signature_html(signature, alt)}</div>
            <p class="strong">{_e(name)}</p>
            <p class="muted">{role}</p>
            <p class="muted">Date: {_e(signed)}</p>
        </div>"""


def render_preview_html(
    contract: ContractDocument,
    agency: Optional[AgencyProfile] = None,
    logo_src: Optional[str] = None,
    generated_on: Optional[date] = None,
    default_generator: str = "ContractAI",
    for_capture: bool = False,
) -> str:
    """
    Build the standalone preview page for a contract.

    `logo_src` is a browser-loadable URL (presigned or data URL) for the faint
    on-screen watermark. It is left out when `for_capture` is set because the
    PDF assembler stamps its own watermark on every page.
    """
    labels = labels_for(contract.kind)
    generated_on = generated_on or date.today()
    generator = generator_name_for(contract, agency, default_generator)
    schedule = payment_schedule_label(contract.kind, contract.payment_terms)

    watermark_html = ""
    if logo_src and not for_capture:
        watermark_html = (
            f"<div class='watermark'><img src='{_e(logo_src)}' alt='Agency Watermark'></div>"
        )

    scope_html = ""
    if contract.scope:
        items = "".join(f"<li>{_e(item)}</li>" for item in contract.scope)
        scope_html = f"""
        <div class="section">
            <h2>{labels.scope}</h2>
            <ul>{items}</ul>
        </div>"""

    clauses_html = ""
    if contract.clauses:
        blocks = []
        for number, clause in enumerate(contract.clauses, start=1):
            title = clause.title or f"Clause {number}"
            body = clause.description or clause.title or "No description provided"
            blocks.append(
                f"<div class='clause'><h3>{_e(title)}</h3><p>{_e(body)}</p></div>"
            )
        clauses_html = f"""
        <div class="section">
            <h2>Terms and Conditions</h2>
            {''.join(blocks)}
        </div>"""

    agency_block = _signature_block(
        contract.agency_signature,
        contract.agency_name or "[Agency Name]",
        labels.provider_role,
        contract.agency_signed_at,
        "Agency Signature",
    )
    client_block = _signature_block(
        contract.client_signature,
        contract.client_name or "[Client/Employee Name]",
        labels.counterparty_role,
        contract.client_signed_at,
        "Client Signature",
    )

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{_e(heading_for(contract))} - {_e(contract.id or 'DRAFT')}</title>
    <style>
        * {{
            box-sizing: border-box;
            -webkit-print-color-adjust: exact !important;
            print-color-adjust: exact !important;
        }}
        body {{
            margin: 0;
            background: white;
        }}
        .{PREVIEW_CONTAINER_CLASS} {{
            position: relative;
            background: white;
            color: #111827;
            font-family: Times, serif;
            font-size: 14px;
            line-height: 1.6;
        }}
        .{PREVIEW_CONTAINER_CLASS} .{PREVIEW_CONTAINER_CLASS} {{
            padding: 24px;
            min-height: 600px;
        }}
        .watermark {{
            position: absolute;
            inset: 0;
            display: flex;
            align-items: center;
            justify-content: center;
            pointer-events: none;
        }}
        .watermark img {{
            max-width: 300px;
            max-height: 300px;
            opacity: 0.05;
            object-fit: contain;
        }}
        .header {{
            text-align: center;
            border-bottom: 2px solid #d1d5db;
            padding-bottom: 16px;
            margin-bottom: 24px;
        }}
        .header h1 {{
            font-size: 24px;
            text-transform: uppercase;
            letter-spacing: 0.025em;
            margin: 0;
        }}
        .section {{
            margin-bottom: 24px;
            position: relative;
        }}
        h2 {{
            font-size: 18px;
            font-weight: 600;
            text-transform: uppercase;
            margin: 0 0 12px 0;
        }}
        h3 {{
            font-size: 16px;
            font-weight: 600;
            margin: 0 0 8px 0;
        }}
        p {{
            margin: 0;
        }}
        .parties {{
            display: grid;
            grid-template-columns: 1fr 1fr;
            gap: 16px;
        }}
        .clause {{
            text-align: justify;
            margin-bottom: 16px;
        }}
        .strong {{
            font-weight: 600;
        }}
        .muted {{
            color: #4b5563;
            font-size: 12px;
        }}
        .signatures {{
            margin-top: 32px;
            padding-top: 24px;
            border-top: 2px solid #d1d5db;
            break-inside: avoid;
        }}
        .signature-grid {{
            display: grid;
            grid-template-columns: 1fr 1fr;
            gap: 32px;
        }}
        .signature-line {{
            border-bottom: 1px solid #9ca3af;
            height: 64px;
            margin-bottom: 8px;
            display: flex;
            align-items: flex-end;
            padding-bottom: 8px;
        }}
        .signature-image {{
            max-width: 100%;
            max-height: 48px;
            object-fit: contain;
        }}
        .closing {{
            margin-top: 24px;
            padding-top: 16px;
            border-top: 1px solid #e5e7eb;
            text-align: center;
            font-size: 12px;
            color: #6b7280;
        }}
    </style>
</head>
<body>
<div class="{PREVIEW_CONTAINER_CLASS}">
    <div class="{PREVIEW_CONTAINER_CLASS}">
        {watermark_html}
        <div class="header">
            <h1>{_e(heading_for(contract))}</h1>
            <p class="muted">Contract No: {_e(contract.id or 'DRAFT')}</p>
        </div>

        <div class="section">
            <h2>Parties</h2>
            <div class="parties">
                <div>
                    <p class="strong">{labels.provider}:</p>
                    <p>{_e(agency_name_for(contract, agency))}</p>
                    <p>{_e(agency_email_for(contract, agency))}</p>
                </div>
                <div>
                    <p class="strong">{labels.counterparty}:</p>
                    <p>{_e(contract.client_name or '[Client/Employee Name]')}</p>
                    <p>{_e(contract.client_email or '[Client/Employee Email]')}</p>
                </div>
            </div>
        </div>

        <div class="section">
            <h2>{labels.details}</h2>
            <p><span class="strong">{labels.title}:</span> {_e(contract.title or '[Project/Position Title]')}</p>
            <p><span class="strong">Description:</span> {_e(contract.description or '[Project/Position Description]')}</p>
            <p><span class="strong">Start Date:</span> {_e(format_date(contract.start_date))}</p>
            <p><span class="strong">{labels.end_date}:</span> {_e(format_date(contract.end_date))}</p>
        </div>
        {scope_html}
        <div class="section">
            <h2>{labels.payment}</h2>
            <p><span class="strong">{labels.amount}:</span> {_e(format_currency(contract.payment_amount))}</p>
            <p><span class="strong">Payment Schedule:</span> {_e(schedule or '[Payment terms not specified]')}</p>
        </div>
        {clauses_html}
        <div class="signatures">
            <h2>Signatures</h2>
            <div class="signature-grid">{agency_block}{client_block}
            </div>
        </div>

        <div class="closing">
            <p>This contract is legally binding upon signature by both parties.</p>
            <p>Generated by {_e(generator)} on {_e(format_short_date(generated_on))}</p>
        </div>
    </div>
</div>
</body>
</html>
"""
