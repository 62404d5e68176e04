"""
Hybrid in-memory + Redis rate limiting, and the per-contract PDF export lock.

Both fail open: when Redis is not configured or unreachable, the in-process
state is used alone and requests are never refused because of it.
"""

import logging
import secrets
import time
from contextlib import contextmanager
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request, status

from .config import PDF_GENERATION_LOCK_SECONDS, REDIS_URL

logger = logging.getLogger(__name__)

# Redis connection
redis_client: Optional[redis.Redis] = None

# In-memory rate limit windows
# Format: {key: {'count': int, 'reset_time': int, 'last_redis_sync': int}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

MEMORY_CACHE_SYNC_INTERVAL = 10  # Sync to Redis every 10 seconds
MEMORY_CACHE_CLEANUP_INTERVAL = 60
last_cleanup_time = 0


def get_redis_client() -> Optional[redis.Redis]:
    """Get or create the Redis client; None when Redis is not configured or down"""
    global redis_client

    if redis_client is None and REDIS_URL:
        logger.info("🔄 Initializing Redis connection...")
        if "@" in REDIS_URL:
            url_parts = REDIS_URL.split("@")
            protocol = url_parts[0].split(":")[0]
            masked_url = f"{protocol}:****@{url_parts[1]}"
        else:
            masked_url = "****"
        logger.info(f"📡 Using Redis URL connection: {masked_url}")

        try:
            client = redis.from_url(
                REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=10,
                retry_on_timeout=True,
                health_check_interval=30,
                max_connections=20,
            )
            client.ping()
            redis_client = client
            logger.info("✅ Redis connected successfully via URL")
        except redis.RedisError as e:
            logger.error(f"❌ Failed to connect to Redis via URL: {str(e)}")
            logger.warning("⚠️ Falling back to in-process limits (fail-open mode)")

    return redis_client


def cleanup_expired_cache():
    """Remove expired entries from memory cache"""
    global last_cleanup_time
    current_time = int(time.time())

    if current_time - last_cleanup_time < MEMORY_CACHE_CLEANUP_INTERVAL:
        return

    with cache_lock:
        expired_keys = [
            k for k, v in memory_cache.items() if current_time >= v.get("reset_time", 0)
        ]
        for k in expired_keys:
            del memory_cache[k]

        if expired_keys:
            logger.debug(f"🧹 Cleaned up {len(expired_keys)} expired rate limit entries")

    last_cleanup_time = current_time


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: Optional[redis.Redis]
) -> tuple[bool, int, int]:
    """Count one request against `key`.

    The window lives in memory and is only synced to Redis every few seconds,
    so a burst costs a handful of Redis commands rather than one per request.

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    current_time = int(time.time())
    cleanup_expired_cache()

    with cache_lock:
        if key not in memory_cache:
            entry = {
                "count": 0,
                "reset_time": current_time + window_seconds,
                "last_redis_sync": current_time,
            }
            if client is not None:
                try:
                    redis_count = client.get(key)
                    redis_ttl = client.ttl(key)
                    if redis_count and redis_ttl > 0:
                        entry["count"] = int(redis_count)
                        entry["reset_time"] = current_time + redis_ttl
                except redis.RedisError as e:
                    logger.warning(f"⚠️ Failed to load from Redis, using memory only: {e}")
            memory_cache[key] = entry

        cache_entry = memory_cache[key]

        if current_time >= cache_entry["reset_time"]:
            cache_entry["count"] = 0
            cache_entry["reset_time"] = current_time + window_seconds
            cache_entry["last_redis_sync"] = 0

        current_count = cache_entry["count"]
        is_allowed = current_count < limit
        if is_allowed:
            cache_entry["count"] += 1

        time_since_sync = current_time - cache_entry.get("last_redis_sync", 0)
        if client is not None and time_since_sync >= MEMORY_CACHE_SYNC_INTERVAL:
            try:
                client.set(key, cache_entry["count"], ex=window_seconds)
                cache_entry["last_redis_sync"] = current_time
                logger.debug(f"📡 Synced {key} to Redis: {cache_entry['count']}/{limit}")
            except redis.RedisError as e:
                logger.warning(f"⚠️ Failed to sync to Redis: {e}")

        ttl = cache_entry["reset_time"] - current_time
        return is_allowed, cache_entry["count"], max(0, ttl)


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Create a per-IP rate limiter dependency

    Example usage:
        rate_limit_pdf = create_rate_limiter(limit=20, window_seconds=300, key_prefix="pdf")

        @router.get("/{contract_id}/pdf")
        async def download(contract_id: str, _: None = Depends(rate_limit_pdf)):
            ...
    """

    async def rate_limiter(request: Request):
        key = f"{key_prefix}:{client_ip(request)}"
        is_allowed, current_count, ttl = check_rate_limit(
            key, limit, window_seconds, get_redis_client()
        )
        if not is_allowed:
            logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={
                    "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                    "retry_after": ttl,
                },
                headers={"Retry-After": str(ttl)},
            )

    return rate_limiter


class GenerationGuard:
    """
    Allows one running PDF export per contract.

    The lock is a Redis `SET NX EX` key so it holds across workers; it expires
    on its own if a worker dies mid-export. Without Redis an in-process table
    with the same expiry is used.
    """

    def __init__(self, ttl_seconds: int = PDF_GENERATION_LOCK_SECONDS, client_factory=get_redis_client):
        self.ttl_seconds = ttl_seconds
        self._client_factory = client_factory
        self._local: dict[str, tuple[str, float]] = {}
        self._lock = Lock()

    def acquire(self, contract_id: str) -> Optional[str]:
        """Return a release token, or None when an export is already running"""
        key = f"pdf_export:{contract_id}"
        token = secrets.token_hex(8)

        client = self._client_factory()
        if client is not None:
            try:
                if client.set(key, token, nx=True, ex=self.ttl_seconds):
                    return token
                return None
            except redis.RedisError as e:
                logger.warning(f"⚠️ Export lock unavailable in Redis, using local lock: {e}")

        now = time.monotonic()
        with self._lock:
            holder = self._local.get(key)
            if holder is not None and holder[1] > now:
                return None
            self._local[key] = (token, now + self.ttl_seconds)
        return token

    def release(self, contract_id: str, token: str) -> None:
        key = f"pdf_export:{contract_id}"
        with self._lock:
            holder = self._local.get(key)
            if holder is not None and holder[0] == token:
                del self._local[key]

        client = self._client_factory()
        if client is None:
            return
        try:
            if client.get(key) == token:
                client.delete(key)
        except redis.RedisError as e:
            logger.warning(f"⚠️ Failed to release export lock for {contract_id}: {e}")

    @contextmanager
    def hold(self, contract_id: str):
        token = self.acquire(contract_id)
        if token is None:
            logger.warning(f"⚠️ PDF export already running for contract {contract_id}")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A PDF for this contract is already being generated. Please wait.",
            )
        try:
            yield
        finally:
            self.release(contract_id, token)


generation_guard = GenerationGuard()
