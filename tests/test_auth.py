"""Tests for access token verification and agency resolution"""

import asyncio
import time

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from jose import jwt

from contractai.auth import ALGORITHM, get_current_agency, verify_access_token
from contractai.config import SUPABASE_JWT_AUDIENCE, SUPABASE_JWT_SECRET
from contractai.main import app
from contractai.models import Agency


def make_token(secret=SUPABASE_JWT_SECRET, **claims):
    payload = {
        "sub": "auth-new-user",
        "email": "founder@brightpixel.io",
        "aud": SUPABASE_JWT_AUDIENCE,
        "exp": int(time.time()) + 3600,
    }
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def test_valid_token_returns_claims():
    claims = verify_access_token(make_token())
    assert claims["sub"] == "auth-new-user"
    assert claims["email"] == "founder@brightpixel.io"


@pytest.mark.parametrize(
    "token",
    [
        "not-a-jwt",
        make_token(secret="some-other-secret-that-is-long-enough"),
        make_token(aud="anon"),
        make_token(sub=""),
    ],
)
def test_invalid_tokens_are_rejected(token):
    with pytest.raises(HTTPException) as excinfo:
        verify_access_token(token)
    assert excinfo.value.status_code == 401


def test_expired_token_is_flagged():
    with pytest.raises(HTTPException) as excinfo:
        verify_access_token(make_token(exp=int(time.time()) - 60))

    assert excinfo.value.status_code == 401
    assert excinfo.value.headers == {"X-Token-Expired": "true"}


def test_first_sign_in_creates_agency(db_session):
    claims = {
        "sub": "auth-new-user",
        "email": "founder@brightpixel.io",
        "user_metadata": {"agency_name": "Bright Pixel"},
    }

    agency = asyncio.run(get_current_agency(claims=claims, db=db_session))

    assert agency.auth_uid == "auth-new-user"
    assert agency.name == "Bright Pixel"
    assert agency.email == "founder@brightpixel.io"

    again = asyncio.run(get_current_agency(claims=claims, db=db_session))
    assert again.id == agency.id
    assert db_session.query(Agency).count() == 1


def test_agency_name_falls_back_to_email(db_session):
    agency = asyncio.run(
        get_current_agency(claims={"sub": "auth-x", "email": "studio@kite.io"}, db=db_session)
    )
    assert agency.name == "studio"


def test_protected_route_requires_bearer_token():
    with TestClient(app) as test_client:
        response = test_client.get("/contracts")

    # HTTPBearer rejects the missing header before any handler runs
    assert response.status_code in (401, 403)


def test_health_is_public():
    with TestClient(app) as test_client:
        response = test_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
