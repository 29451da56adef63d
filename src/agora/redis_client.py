"""Redis connection pool shared by rate limiting and the zkLogin handshake."""

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str) -> None:
    """Create the shared Redis client."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
    )


async def close_redis() -> None:
    """Close the shared Redis client."""
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """Return the shared client (FastAPI dependency).

    Raises RuntimeError before init_redis() has run; the rate limiter relies
    on that to fail open.
    """
    if _client is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _client


def zklogin_nonce_key(user_id: int) -> str:
    """Key holding the single-use randomness of a pending zkLogin binding."""
    return f"zklogin:nonce:{user_id}"
