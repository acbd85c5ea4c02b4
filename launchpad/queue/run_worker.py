#!/usr/bin/env python3
"""
RQ worker process for DISPATCH_BACKEND=rq.

Each dequeued job runs tasks.execute_job_task, which drives the same
WorkerExecutor the HTTP worker endpoint uses.

Usage:
    python -m launchpad.queue.run_worker
    python -m launchpad.queue.run_worker --burst    # drain the queue and exit
"""

import argparse
import sys

from rq import Worker

from launchpad.config import config
from launchpad.queue.connection import (
    close_redis_connection,
    get_generation_queue,
    get_redis_connection,
)
from launchpad.utils.logging import configure_logging, worker_logger as logger


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the Launchpad generation worker")
    parser.add_argument("--burst", "-b", action="store_true", help="Process queued jobs and exit")
    parser.add_argument("--name", "-n", default=None, help="Worker name (auto-generated if omitted)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    level = "DEBUG" if args.verbose else config.LOG_LEVEL
    configure_logging(level)

    try:
        queue = get_generation_queue()
    except (ValueError, ConnectionError) as e:
        logger.critical(f"Cannot start worker: {e}")
        return 1

    logger.info(f"Worker listening on queue {queue.name}", burst=args.burst)
    try:
        Worker([queue], connection=get_redis_connection(), name=args.name).work(
            burst=args.burst,
            logging_level=level,
        )
    except KeyboardInterrupt:
        logger.info("Worker stopped by user")
    finally:
        close_redis_connection()
    return 0


if __name__ == "__main__":
    sys.exit(main())
