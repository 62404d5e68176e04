import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from jose import jwt as jose_jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import SUPABASE_JWT_AUDIENCE, SUPABASE_JWT_SECRET
from .database import get_db
from .models import Agency

logger = logging.getLogger(__name__)

security = HTTPBearer()

ALGORITHM = "HS256"


def verify_access_token(token: str) -> dict:
    """
    Verify an auth provider access token (HS256, shared secret) and return its claims.
    Raises HTTPException 401 for anything that is not a valid, unexpired token.
    """
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, length: {len(token)}")
        raise HTTPException(
            status_code=401, detail="Invalid token format. Expected a valid JWT token."
        )

    try:
        claims = jose_jwt.decode(
            token,
            SUPABASE_JWT_SECRET,
            algorithms=[ALGORITHM],
            audience=SUPABASE_JWT_AUDIENCE,
        )
    except ExpiredSignatureError as e:
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please refresh your session.",
            headers={"X-Token-Expired": "true"},
        ) from e
    except JWTError as e:
        logger.warning(f"⚠️ Token verification failed: {e}")
        raise HTTPException(status_code=401, detail="Token verification failed") from e

    if not claims.get("sub"):
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(claims.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")
    return claims


async def get_token_claims(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )
    return verify_access_token(credentials.credentials)


async def get_current_agency(
    claims: dict = Depends(get_token_claims),
    db: Session = Depends(get_db),
) -> Agency:
    """Resolve the signed-in agency, creating an empty profile on first sign-in"""
    auth_uid = claims["sub"]
    agency = db.query(Agency).filter(Agency.auth_uid == auth_uid).first()
    if agency:
        return agency

    email = claims.get("email") or ""
    metadata = claims.get("user_metadata") or {}
    logger.info(f"🆕 Creating agency profile for: {email or auth_uid}")
    name = metadata.get("agency_name") or (email.split("@")[0] if email else "") or "New Agency"
    agency = Agency(auth_uid=auth_uid, email=email, name=name)
    db.add(agency)
    try:
        db.commit()
        db.refresh(agency)
    except IntegrityError:
        # Another request created the profile between the lookup and the insert
        db.rollback()
        agency = db.query(Agency).filter(Agency.auth_uid == auth_uid).first()
        if agency is None:
            raise
    logger.info(f"✅ Agency profile ready: {agency.id}")
    return agency
