"""Tests for page assembly: raster segments, footers, watermark and the text fallback."""

from datetime import date

import pytest

from contractai.services.pdf.assembler import PdfDocument, RasterSegmentProducer
from contractai.services.pdf.document import AgencyProfile, Clause, ContractDocument
from contractai.services.pdf.errors import EmptyPreviewError
from contractai.services.pdf.layout import DEFAULT_LAYOUT, TEXT_LAYOUT
from contractai.services.pdf.pipeline import build_pdf
from contractai.services.pdf.text_renderer import (
    SIGNATURE_HEIGHT,
    SIGNATURE_WIDTH,
    TextSegmentProducer,
)
from contractai.services.pdf.watermark import Watermark

from conftest import make_capture, png_bytes, png_data_url

GENERATED_ON = date(2025, 1, 5)


def raster_pdf(image, watermark=None, invariant=True):
    document = PdfDocument(
        DEFAULT_LAYOUT,
        generator_name="Acme Studio",
        generated_on=GENERATED_ON,
        watermark=watermark,
        title="WEBSITE REDESIGN",
        invariant=invariant,
    )
    RasterSegmentProducer(image).produce(document)
    return document.finish(), document.pages


def test_raster_capture_becomes_two_pages_with_footers():
    content, pages = raster_pdf(make_capture(1600, 3000))

    assert content.startswith(b"%PDF")
    assert [page.number for page in pages] == [1, 2]
    assert [page.footer.right for page in pages] == ["Page 1", "Page 2"]
    for page in pages:
        assert page.footer.left == "Acme Studio"
        assert page.footer.center == "Generated on 1/5/2025"


def test_raster_content_never_reaches_footer_band():
    _, pages = raster_pdf(make_capture(1600, 9000))

    assert len(pages) == 5
    for page in pages:
        assert len(page.elements) == 1
        (placement,) = page.elements
        assert placement.bottom <= DEFAULT_LAYOUT.content_bottom + 1e-9
        assert placement.bottom < DEFAULT_LAYOUT.footer_rule_y


class ZeroHeightCapture:
    width = 1600
    height = 0


def test_empty_capture_is_a_precondition_failure():
    with pytest.raises(EmptyPreviewError):
        raster_pdf(ZeroHeightCapture())


def test_missing_logo_leaves_pdf_bytes_untouched():
    image = make_capture(1600, 1200)

    without, _ = raster_pdf(image, watermark=None)
    disabled, _ = raster_pdf(image, watermark=Watermark.load(None, DEFAULT_LAYOUT))
    broken, _ = raster_pdf(image, watermark=Watermark.load(b"not an image", DEFAULT_LAYOUT))

    assert disabled == without
    assert broken == without


def test_logo_watermark_is_drawn_on_every_page():
    image = make_capture(1600, 3000)
    watermark = Watermark.load(png_bytes(), DEFAULT_LAYOUT)
    assert watermark.enabled

    without, _ = raster_pdf(image)
    with_logo, pages = raster_pdf(image, watermark=watermark)

    assert with_logo != without
    assert len(pages) == 2


@pytest.mark.parametrize(
    "size, expected",
    [
        ((200, 100), (70.0, 35.0)),
        ((100, 200), (35.0, 70.0)),
        ((50, 50), (70.0, 70.0)),
    ],
)
def test_watermark_fits_box_keeping_aspect(size, expected):
    watermark = Watermark.load(png_bytes(size), DEFAULT_LAYOUT)
    assert watermark.size() == pytest.approx(expected)


def test_text_layout_uses_larger_fainter_watermark():
    watermark = Watermark.load(png_bytes((100, 100)), TEXT_LAYOUT)
    assert watermark.size() == pytest.approx((80.0, 80.0))
    assert watermark.opacity == pytest.approx(0.10)


def long_contract(**overrides) -> ContractDocument:
    fields = dict(
        id="contract_abc123",
        kind="client",
        client_name="Jane Doe",
        client_email="jane@example.com",
        agency_name="Acme Studio",
        agency_email="hello@acme.test",
        title="Website Redesign",
        description="Complete redesign of the marketing website. " * 10,
        scope=tuple(f"Deliverable number {n}" for n in range(1, 21)),
        payment_amount=150000.0,
        payment_terms="50-50",
        start_date=date(2025, 2, 1),
        end_date=date(2025, 6, 30),
        clauses=tuple(
            Clause(title=f"Clause title {n}", description="Lorem ipsum dolor sit amet. " * 12)
            for n in range(1, 26)
        ),
    )
    fields.update(overrides)
    return ContractDocument(**fields)


def test_text_renderer_breaks_pages_before_the_bottom_threshold():
    producer = TextSegmentProducer(long_contract(), AgencyProfile(name="Acme Studio"))
    content, pages = build_pdf(producer, TEXT_LAYOUT, "Acme Studio", GENERATED_ON)

    assert content.startswith(b"%PDF")
    assert len(pages) > 2
    assert [page.footer.right for page in pages] == [f"Page {n}" for n in range(1, len(pages) + 1)]
    for page in pages:
        assert page.elements
        for placement in page.elements:
            assert placement.y >= TEXT_LAYOUT.top_margin
            assert placement.bottom <= TEXT_LAYOUT.content_bottom + 1e-9


def test_text_renderer_embeds_signature_images():
    contract = long_contract(
        clauses=(),
        agency_signature=png_data_url(),
        client_signature="data:image/png;base64,!!!not-base64!!!",
    )
    producer = TextSegmentProducer(contract, None)
    _, pages = build_pdf(producer, TEXT_LAYOUT, "Acme Studio", GENERATED_ON)

    signatures = [
        placement
        for page in pages
        for placement in page.elements
        if (placement.width, placement.height) == (SIGNATURE_WIDTH, SIGNATURE_HEIGHT)
    ]
    # The undecodable client signature falls back to a signature line
    assert len(signatures) == 1


def test_text_renderer_handles_empty_contract():
    producer = TextSegmentProducer(ContractDocument(), None)
    _, pages = build_pdf(producer, TEXT_LAYOUT, "ContractAI", GENERATED_ON)

    assert len(pages) >= 1
    assert pages[0].footer.left == "ContractAI"
