"""
Redis connection and generation queue for DISPATCH_BACKEND=rq.

The connection is opened lazily on first dispatch and reused for the
life of the process.
"""

from typing import Any, Dict, Optional

from redis import Redis
from rq import Queue

from launchpad.config import config

_redis_connection: Optional[Redis] = None


def get_redis_connection() -> Redis:
    """
    Get the shared Redis connection, opening and pinging it on first use.

    Raises:
        ValueError: If REDIS_URL is not configured
        ConnectionError: If Redis does not answer a ping
    """
    global _redis_connection

    if _redis_connection is None:
        if not config.REDIS_URL:
            raise ValueError("REDIS_URL is required when DISPATCH_BACKEND=rq")

        # RQ stores pickled payloads, so responses stay bytes
        connection = Redis.from_url(
            config.REDIS_URL,
            decode_responses=False,
            socket_timeout=10,
            socket_connect_timeout=5,
            health_check_interval=30,
        )
        try:
            connection.ping()
        except Exception as e:
            raise ConnectionError(f"Failed to connect to Redis: {e}") from e

        _redis_connection = connection

    return _redis_connection


def get_generation_queue() -> Queue:
    return Queue(config.GENERATION_QUEUE, connection=get_redis_connection())


def close_redis_connection() -> None:
    global _redis_connection
    if _redis_connection is not None:
        _redis_connection.close()
        _redis_connection = None


def queue_status() -> Dict[str, Any]:
    """Depth of the generation queue and its failed registry, or the connection error."""
    try:
        queue = get_generation_queue()
        return {
            "connected": True,
            "queue": queue.name,
            "queued_jobs": queue.count,
            "started_jobs": queue.started_job_registry.count,
            "failed_jobs": queue.failed_job_registry.count,
        }
    except Exception as e:
        return {"connected": False, "queue": config.GENERATION_QUEUE, "error": str(e)}
