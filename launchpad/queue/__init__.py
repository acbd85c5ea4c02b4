"""
Redis Queue (RQ) backend for generation jobs.

Used when DISPATCH_BACKEND=rq: the dispatcher enqueues
tasks.execute_job_task and run_worker executes it.
"""

from .connection import get_redis_connection, get_generation_queue, close_redis_connection, queue_status

__all__ = [
    "get_redis_connection",
    "get_generation_queue",
    "close_redis_connection",
    "queue_status",
]
