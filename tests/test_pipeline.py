"""Tests for render mode selection, filenames, image encoding and the export entry point."""

import asyncio
import base64
import threading
from datetime import date

import pytest
from PIL import Image

from contractai.services.pdf.document import ContractDocument
from contractai.services.pdf.errors import PdfRenderError, PreviewNotFoundError
from contractai.services.pdf.images import (
    decode_data_url,
    encode_segment,
    flatten_to_white,
    open_image,
)
from contractai.services.pdf.layout import DEFAULT_LAYOUT
from contractai.services.pdf import pipeline
from contractai.services.pdf.pipeline import (
    RenderMode,
    capture_scale,
    contract_pdf_filename,
    export_contract_pdf,
    select_render_mode,
)

from conftest import FakeRasterizer, make_capture, png_bytes

IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
DESKTOP_UA = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 Chrome/120.0 Safari/537.36"


@pytest.mark.parametrize(
    "title, contract_id, expected",
    [
        ("Website Redesign (v2)!", "contract_1", "contract-Website_Redesign__v2__.pdf"),
        ("Logo", "contract_1", "contract-Logo.pdf"),
        ("Café Menü", None, "contract-Caf__Men_.pdf"),
        ("", "contract_1234567890", "contract-contract_1234567890.pdf"),
        (None, None, "contract-draft.pdf"),
    ],
)
def test_contract_pdf_filename(title, contract_id, expected):
    assert contract_pdf_filename(title, contract_id) == expected


def test_contract_pdf_filename_short_id():
    assert contract_pdf_filename("", "contract_1234567890", short_id=True) == "contract-34567890.pdf"


def test_explicit_mode_wins_over_user_agent():
    assert select_render_mode(RenderMode.RASTER, IPHONE_UA) == RenderMode.RASTER
    assert select_render_mode(RenderMode.TEXT, DESKTOP_UA) == RenderMode.TEXT


def test_auto_mode_uses_text_on_constrained_clients():
    assert select_render_mode(RenderMode.AUTO, IPHONE_UA) == RenderMode.TEXT
    assert select_render_mode(RenderMode.AUTO, DESKTOP_UA) == RenderMode.RASTER
    assert select_render_mode(RenderMode.AUTO, None) == RenderMode.RASTER


def test_capture_scale():
    assert capture_scale(DESKTOP_UA) == 2.0
    assert capture_scale(IPHONE_UA) == 1.5


def test_decode_data_url():
    payload = b"\x89PNG fake"
    url = "data:image/png;base64," + base64.b64encode(payload).decode()

    assert decode_data_url(url) == payload
    assert decode_data_url("https://example.com/logo.png") is None
    assert decode_data_url("data:image/png,rawdata") is None
    assert decode_data_url("") is None
    assert decode_data_url(None) is None


def test_flatten_to_white_removes_transparency():
    transparent = Image.new("RGBA", (4, 4), (0, 0, 0, 0))
    flattened = flatten_to_white(transparent)

    assert flattened.mode == "RGB"
    assert flattened.getpixel((0, 0)) == (255, 255, 255)


def test_open_image_rejects_garbage():
    with pytest.raises(PdfRenderError):
        open_image(b"definitely not an image")


def test_encode_segment_prefers_png():
    encoded = encode_segment(make_capture(400, 300), DEFAULT_LAYOUT)
    assert encoded.format == "PNG"
    assert encoded.data.startswith(b"\x89PNG")


def test_encode_segment_falls_back_to_jpeg_above_limit():
    layout = DEFAULT_LAYOUT.with_changes(lossless_limit_bytes=100)
    encoded = encode_segment(make_capture(400, 300), layout)

    assert encoded.format == "JPEG"
    assert encoded.data.startswith(b"\xff\xd8")


def sample_contract(**overrides):
    fields = dict(
        id="contract_abc",
        kind="client",
        client_name="Jane Doe",
        agency_name="Acme Studio",
        title="Website Redesign",
        scope=("Design", "Build"),
        payment_amount=1000.0,
    )
    fields.update(overrides)
    return ContractDocument(**fields)


def test_export_raster_path():
    rasterizer = FakeRasterizer(make_capture(1600, 3000))
    result = asyncio.run(
        export_contract_pdf(
            sample_contract(),
            user_agent=DESKTOP_UA,
            generated_on=date(2025, 1, 5),
            rasterize=rasterizer,
        )
    )

    assert result.ok
    assert result.error is None
    assert result.pdf.mode == RenderMode.RASTER
    assert result.pdf.page_count == 2
    assert result.pdf.filename == "contract-Website_Redesign.pdf"
    assert result.pdf.content.startswith(b"%PDF")

    (html, scale), = rasterizer.calls
    assert scale == 2.0
    assert "contract-preview-container" in html
    assert "WEBSITE REDESIGN" in html


def test_export_text_path_skips_the_browser():
    rasterizer = FakeRasterizer()
    result = asyncio.run(
        export_contract_pdf(sample_contract(), user_agent=IPHONE_UA, rasterize=rasterizer)
    )

    assert result.ok
    assert result.pdf.mode == RenderMode.TEXT
    assert rasterizer.calls == []


def test_export_with_logo_watermark():
    result = asyncio.run(
        export_contract_pdf(
            sample_contract(),
            mode=RenderMode.TEXT,
            logo_bytes=png_bytes(),
        )
    )
    assert result.ok


def test_export_without_contract_fails_cleanly():
    result = asyncio.run(export_contract_pdf(None))

    assert not result.ok
    assert result.pdf is None
    assert result.error == "No contract data to export"
    assert result.error_kind == "precondition"


def test_export_reports_missing_preview():
    rasterizer = FakeRasterizer(error=PreviewNotFoundError("no container"))
    result = asyncio.run(export_contract_pdf(sample_contract(), rasterize=rasterizer))

    assert not result.ok
    assert result.error == "Contract preview not found"
    assert result.error_kind == "precondition"


def test_export_never_raises_on_unexpected_errors():
    rasterizer = FakeRasterizer(error=RuntimeError("browser crashed"))
    result = asyncio.run(export_contract_pdf(sample_contract(), rasterize=rasterizer))

    assert not result.ok
    assert result.error == "Failed to generate PDF. Please try again."
    assert result.error_kind == "render"


@pytest.mark.parametrize("mode, renderer", [(RenderMode.TEXT, "render_text"), (RenderMode.RASTER, "render_raster")])
def test_page_assembly_runs_off_the_event_loop(monkeypatch, mode, renderer):
    real_renderer = getattr(pipeline, renderer)
    threads = []

    def recording_renderer(*args, **kwargs):
        threads.append(threading.get_ident())
        return real_renderer(*args, **kwargs)

    monkeypatch.setattr(pipeline, renderer, recording_renderer)
    result = asyncio.run(
        export_contract_pdf(
            sample_contract(), mode=mode, rasterize=FakeRasterizer(make_capture(1600, 900))
        )
    )

    assert result.ok
    assert len(threads) == 1
    assert threads[0] != threading.get_ident()
