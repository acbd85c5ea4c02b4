"""
Security utilities for the Launchpad API.

Guards the worker entry point and the admin endpoints with the shared
service key, with a dev mode bypass when no key is configured.
"""

import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException

from launchpad.config import config


def get_api_key(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
) -> Optional[str]:
    """Extract the service key from the X-API-Key header."""
    return x_api_key


async def verify_worker_key(
    api_key: Optional[str] = Depends(get_api_key)
) -> str:
    """
    Verify the shared service key.

    With no WORKER_API_KEY configured (dev mode), authentication is bypassed.
    Returns the API key (or "dev" if bypassed).
    """
    if not config.worker_auth_required:
        return "dev"

    if not api_key:
        raise HTTPException(
            status_code=401,
            detail="API key required. Provide X-API-Key header."
        )

    if not secrets.compare_digest(api_key, config.WORKER_API_KEY):
        raise HTTPException(
            status_code=403,
            detail="Invalid API key"
        )

    return api_key


# Convenience dependency for routes that require the service key
require_service_key = Depends(verify_worker_key)
