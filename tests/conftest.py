"""
Pytest configuration for the ContractAI backend
"""

import base64
import io
import os

# Settings must be in place before the application modules are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-secret-with-enough-length-for-hs256")
os.environ.pop("REDIS_URL", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image, ImageDraw  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from contractai import rate_limiter  # noqa: E402
from contractai.auth import get_current_agency  # noqa: E402
from contractai.database import Base, get_db  # noqa: E402
from contractai.domain.contracts.pdf_service import ContractPDFService  # noqa: E402
from contractai.domain.contracts.router import get_pdf_service  # noqa: E402
from contractai.main import app  # noqa: E402
from contractai.models import Agency  # noqa: E402
from contractai.rate_limiter import GenerationGuard  # noqa: E402


def make_capture(width: int = 1600, height: int = 3000) -> Image.Image:
    """Synthetic preview capture: white page with evenly spaced black text bars"""
    image = Image.new("RGB", (width, height), "white")
    draw = ImageDraw.Draw(image)
    for y in range(40, height - 40, 60):
        draw.rectangle((40, y, width - 40, y + 20), fill="black")
    return image


def png_bytes(size=(200, 100), color=(20, 60, 200, 255), mode="RGBA") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def png_data_url(size=(120, 40)) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes(size)).decode("ascii")


@pytest.fixture(autouse=True)
def reset_rate_limits():
    rate_limiter.memory_cache.clear()
    yield
    rate_limiter.memory_cache.clear()


@pytest.fixture
def db_session():
    """Fresh in-memory database per test"""
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def agency(db_session):
    agency = Agency(auth_uid="auth-agency-1", name="Acme Studio", email="hello@acme.test")
    db_session.add(agency)
    db_session.commit()
    db_session.refresh(agency)
    return agency


@pytest.fixture
def other_agency(db_session):
    agency = Agency(auth_uid="auth-agency-2", name="Other Co", email="team@other.test")
    db_session.add(agency)
    db_session.commit()
    db_session.refresh(agency)
    return agency


class FakeRasterizer:
    """Stands in for headless Chromium; records the HTML and scale it was given"""

    def __init__(self, image=None, error=None):
        self.image = image if image is not None else make_capture()
        self.error = error
        self.calls = []

    async def __call__(self, html, scale):
        self.calls.append((html, scale))
        if self.error is not None:
            raise self.error
        return self.image


@pytest.fixture
def rasterizer():
    return FakeRasterizer()


@pytest.fixture
def guard():
    return GenerationGuard(ttl_seconds=60, client_factory=lambda: None)


@pytest.fixture
def client(db_session, agency, rasterizer, guard):
    """API client signed in as `agency`, with the browser capture faked"""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_agency] = lambda: agency
    app.dependency_overrides[get_pdf_service] = lambda: ContractPDFService(
        guard=guard, rasterize=rasterizer
    )
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
