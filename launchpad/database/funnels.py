"""
Funnel Service

Reads funnels with their profile and existing product, and writes
generated documents back onto the funnel row. Every query carries the
owner predicate because the admin client bypasses Row Level Security.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import UUID

from supabase import Client

from launchpad.jobs.errors import PersistenceError
from .client import get_supabase_admin_client


PRODUCT_LEVELS = ("front_end", "bump", "upsell_1", "upsell_2")


class FunnelService:
    """
    Service class for funnel operations.
    """

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_admin_client()
        return self._client

    async def get_with_relations(
        self,
        funnel_id: UUID | str,
        user_id: UUID | str
    ) -> Optional[Dict[str, Any]]:
        """Get a funnel with its profile and existing product, or None."""
        try:
            result = (
                self.client.table("funnels")
                .select(
                    "*, profiles (id, name, business_name), "
                    "existing_products (id, name, price, description)"
                )
                .eq("id", str(funnel_id))
                .eq("user_id", str(user_id))
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Failed to load funnel {funnel_id}: {e}") from e
        return result.data[0] if result.data else None

    async def update_generated(
        self,
        funnel_id: UUID | str,
        user_id: UUID | str,
        fields: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Write generated columns (e.g. front_end_tldr) onto a funnel.

        Raises:
            PersistenceError: If the write fails or the funnel is not the owner's
        """
        data = {**fields, "updated_at": datetime.now(timezone.utc).isoformat()}
        try:
            result = (
                self.client.table("funnels")
                .update(data)
                .eq("id", str(funnel_id))
                .eq("user_id", str(user_id))
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Failed to update funnel {funnel_id}: {e}") from e

        if not result.data:
            raise PersistenceError(f"Funnel {funnel_id} not found for owner")
        return result.data[0]
