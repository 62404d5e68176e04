"""
Agency logo storage on Cloudflare R2.

Logos are private objects; the database stores the object key and readers
get a short-lived presigned URL. Legacy rows may still hold a full URL or an
inline data URL, and every helper here accepts all three.
"""

import logging
import uuid
from typing import Optional

import boto3
import httpx
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException

from ..config import R2_ACCESS_KEY_ID, R2_ACCOUNT_ID, R2_BUCKET_NAME, R2_SECRET_ACCESS_KEY
from ..services.pdf.images import decode_data_url

logger = logging.getLogger(__name__)

# Presigned URL expiration time (1 hour)
PRESIGNED_URL_EXPIRATION = 3600

MAX_LOGO_SIZE = 5 * 1024 * 1024  # 5MB
LOGO_IMAGE_TYPES = ["image/png", "image/jpeg", "image/jpg", "image/webp", "image/gif"]
LOGO_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp", ".gif")
DANGEROUS_FILENAME_CHARS = ["..", "/", "\\", "<", ">", ":", '"', "|", "?", "*"]


def r2_configured() -> bool:
    return bool(R2_ACCOUNT_ID and R2_ACCESS_KEY_ID and R2_SECRET_ACCESS_KEY)


def get_r2_client():
    """Create and return an R2 client."""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
        region_name="auto",
    )


def generate_presigned_url(key: str, expiration: int = PRESIGNED_URL_EXPIRATION) -> str:
    """Generate a presigned URL for accessing a private object in R2."""
    r2 = get_r2_client()
    params = {"Bucket": R2_BUCKET_NAME, "Key": key, "ResponseContentDisposition": "inline"}
    try:
        url = r2.generate_presigned_url("get_object", Params=params, ExpiresIn=expiration)
        logger.info(f"✅ Generated presigned URL for key: {key}")
        return url
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Failed to generate presigned URL for key {key}: {e}")
        raise


def validate_logo(filename: Optional[str], content_type: Optional[str], size: int) -> None:
    """Reject anything that is not a reasonably sized raster image (HTTPException 400)"""
    if content_type not in LOGO_IMAGE_TYPES:
        raise HTTPException(
            status_code=400,
            detail="Invalid file type. Only PNG, JPEG, WebP and GIF images are allowed.",
        )

    if filename:
        for char in DANGEROUS_FILENAME_CHARS:
            if char in filename:
                logger.warning(f"❌ Dangerous character '{char}' detected in filename: '{filename}'")
                raise HTTPException(
                    status_code=400, detail=f"Invalid filename - contains dangerous character '{char}'"
                )
        if not filename.lower().endswith(LOGO_EXTENSIONS):
            raise HTTPException(
                status_code=400, detail="Invalid filename - must have a valid image extension"
            )
        if len(filename) > 255:
            raise HTTPException(status_code=400, detail="Filename too long - maximum 255 characters")

    if size > MAX_LOGO_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"File size exceeds 5MB limit. Your file is {size / (1024 * 1024):.2f}MB.",
        )


def upload_logo(owner_uid: str, filename: Optional[str], content_type: str, contents: bytes) -> str:
    """Store a logo in R2 and return its object key"""
    ext = filename.rsplit(".", 1)[-1].lower() if filename and "." in filename else "png"
    key = f"logos/{owner_uid}/{uuid.uuid4()}.{ext}"

    r2 = get_r2_client()
    r2.put_object(Bucket=R2_BUCKET_NAME, Key=key, Body=contents, ContentType=content_type)
    logger.info(f"📤 Uploaded logo {key} ({len(contents) // 1024}KB)")
    return key


def is_object_key(logo_ref: Optional[str]) -> bool:
    return bool(logo_ref) and not logo_ref.startswith(("data:", "http://", "https://"))


def logo_display_url(logo_ref: Optional[str]) -> Optional[str]:
    """A URL a browser can load for the stored logo reference, or None"""
    if not logo_ref:
        return None
    if not is_object_key(logo_ref):
        return logo_ref
    if not r2_configured():
        return None
    try:
        return generate_presigned_url(logo_ref)
    except (BotoCoreError, ClientError) as e:
        logger.warning(f"⚠️ Could not presign logo {logo_ref}: {e}")
        return None


async def fetch_logo_bytes(logo_ref: Optional[str]) -> Optional[bytes]:
    """
    Load logo bytes for the PDF watermark.

    Only inline data URLs and our own R2 objects are read. Agency-supplied
    http(s) URLs are never fetched by the server; those logos still show in
    the browser preview but the PDF goes out without a watermark.

    Returns None on any failure; a missing watermark never blocks an export.
    """
    if not logo_ref:
        return None
    if logo_ref.startswith("data:"):
        return decode_data_url(logo_ref)
    if not is_object_key(logo_ref):
        logger.warning("⚠️ Skipping watermark: external logo URLs are not fetched server-side")
        return None

    url = logo_display_url(logo_ref)
    if not url:
        return None

    try:
        async with httpx.AsyncClient(timeout=30.0, follow_redirects=False) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.warning(f"⚠️ HTTP error downloading logo: {e.response.status_code}")
        return None
    except httpx.RequestError as e:
        logger.warning(f"⚠️ Request error downloading logo: {e}")
        return None

    if not response.content:
        logger.warning("⚠️ Downloaded logo has 0 bytes")
        return None
    return response.content
