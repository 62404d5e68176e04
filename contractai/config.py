import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./contractai.db")

# Supabase Auth Configuration (HS256 access tokens)
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")
if not SUPABASE_JWT_SECRET:
    import warnings

    warnings.warn(
        "SUPABASE_JWT_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION",
        RuntimeWarning,
        stacklevel=2,
    )
    SUPABASE_JWT_SECRET = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only
SUPABASE_JWT_AUDIENCE = os.getenv("SUPABASE_JWT_AUDIENCE", "authenticated")

# Cloudflare R2 Configuration (agency logos)
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "contractai")

# Frontend base URL for CORS, and the public URL counterparties open to sign
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
PUBLIC_APP_URL = os.getenv("PUBLIC_APP_URL", FRONTEND_URL)

# PDF export
PDF_GENERATOR_NAME = os.getenv("PDF_GENERATOR_NAME", "ContractAI")
PDF_RENDER_TIMEOUT_SECONDS = int(os.getenv("PDF_RENDER_TIMEOUT_SECONDS", "120"))
# Seconds a contract stays locked while one export is running
PDF_GENERATION_LOCK_SECONDS = int(os.getenv("PDF_GENERATION_LOCK_SECONDS", "180"))

# Redis (download rate limiting, per-contract export lock). Unset = in-process only
REDIS_URL = os.getenv("REDIS_URL")

# OpenAI (clause description drafting). Unset = the endpoint returns a "write it manually" hint
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
