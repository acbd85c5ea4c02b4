"""
Supabase Client Configuration

One service-role client per process, shared by the job store, the
domain services, and token verification. It bypasses Row Level
Security, so every domain write carries its own user_id predicate.
"""

from functools import lru_cache

from supabase import create_client, Client

from launchpad.config import config


class SupabaseClientError(Exception):
    """Raised when Supabase client cannot be initialized."""
    pass


def _required(name: str) -> str:
    value = getattr(config, name)
    if not value:
        raise SupabaseClientError(
            f"{name} is not configured. Set it in your .env file or environment variables."
        )
    return value


@lru_cache(maxsize=1)
def get_supabase_admin_client() -> Client:
    """
    Get the service-role client.

    Raises:
        SupabaseClientError: If SUPABASE_URL or SUPABASE_SERVICE_KEY is missing
    """
    return create_client(_required("SUPABASE_URL"), _required("SUPABASE_SERVICE_KEY"))


def verify_supabase_connection() -> bool:
    """True if the generation_jobs table can be queried."""
    try:
        get_supabase_admin_client().table("generation_jobs").select("id").limit(1).execute()
        return True
    except Exception as e:
        print(f"Supabase connection failed: {e}")
        return False
