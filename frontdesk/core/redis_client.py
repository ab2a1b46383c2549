"""Redis connection holding the walk-in queue counters.

Counters must be shared by every API worker, so all workers talk to the
same Redis instance through one lazily created client per process.
"""

import redis
import structlog

from frontdesk.config import Settings, settings

logger = structlog.get_logger()

_redis_client: redis.Redis | None = None


def create_redis_client(config: Settings) -> redis.Redis:
    """Build a Redis client from settings."""
    return redis.Redis(
        host=config.redis_host,
        port=config.redis_port,
        username=config.redis_username,
        password=config.redis_password or None,
        decode_responses=config.redis_decode_responses,
        socket_connect_timeout=5,
        socket_keepalive=True,
        health_check_interval=30,
    )


def get_redis_client() -> redis.Redis:
    """
    Get the process-wide queue counter client, creating it on first use.

    Returns:
        Redis client instance
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = create_redis_client(settings)
        logger.debug("redis_client_created", host=settings.redis_host, port=settings.redis_port)

    return _redis_client


async def check_redis_connection() -> bool:
    """
    Check that the queue counter store answers.

    Returns:
        True if Redis replied to PING, False otherwise
    """
    try:
        return bool(get_redis_client().ping())
    except redis.RedisError as e:
        logger.warning("redis_ping_failed", error=str(e))
        return False


def close_redis_connection() -> None:
    """Close the client; the next call to ``get_redis_client`` reconnects."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None
