"""
Authentication

Resolves the calling user from a Supabase access token. The user id
becomes the owner of every job the caller starts.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from launchpad.config import config
from launchpad.database.client import get_supabase_admin_client, SupabaseClientError

router = APIRouter(prefix="/api/auth", tags=["authentication"])

DEV_USER_ID = "dev-user-id"


# =============================================================================
# Dependencies
# =============================================================================

async def get_current_user_id(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> str:
    """
    Extract and verify user ID from Authorization header.

    In dev mode with DEV_MODE=true, allows bypass for testing.
    """
    # Dev mode bypass
    if config.DEV_MODE and not authorization:
        return DEV_USER_ID

    if not authorization:
        raise HTTPException(
            status_code=401,
            detail="Authorization header required"
        )

    # Extract token from "Bearer <token>" format
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=401,
            detail="Invalid authorization header format. Use 'Bearer <token>'"
        )

    token = parts[1]

    try:
        client = get_supabase_admin_client()
        user_response = client.auth.get_user(token)
    except SupabaseClientError as e:
        raise HTTPException(
            status_code=503,
            detail=f"Authentication service unavailable: {str(e)}"
        )
    except Exception as e:
        raise HTTPException(
            status_code=401,
            detail=f"Token verification failed: {str(e)}"
        )

    if not user_response or not user_response.user:
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token"
        )

    return str(user_response.user.id)


# =============================================================================
# Routes
# =============================================================================

@router.get("/me")
async def whoami(user_id: str = Depends(get_current_user_id)):
    """Return the user id the API resolves for the caller."""
    return {"user_id": user_id}
