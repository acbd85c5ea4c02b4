"""Utility modules for Launchpad."""

from launchpad.utils.logging import (
    get_logger,
    get_log_buffer,
    configure_logging,
    LogLevel,
    LogEntry,
    AppLogger,
    job_logger,
    dispatch_logger,
    worker_logger,
    provider_logger,
    api_logger,
)

__all__ = [
    "get_logger",
    "get_log_buffer",
    "configure_logging",
    "LogLevel",
    "LogEntry",
    "AppLogger",
    "job_logger",
    "dispatch_logger",
    "worker_logger",
    "provider_logger",
    "api_logger",
]
