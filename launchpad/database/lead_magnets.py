"""
Lead Magnet Service

Stores generated lead magnet content on the owner's lead_magnets row.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import UUID

from supabase import Client

from launchpad.jobs.errors import PersistenceError
from .client import get_supabase_admin_client


class LeadMagnetService:
    """
    Service class for lead magnet operations.
    """

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_admin_client()
        return self._client

    async def save_content(
        self,
        lead_magnet_id: UUID | str,
        user_id: UUID | str,
        content: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Save generated content onto a lead magnet.

        Raises:
            PersistenceError: If the write fails or the row is not the owner's
        """
        try:
            result = (
                self.client.table("lead_magnets")
                .update({
                    "content": content,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                })
                .eq("id", str(lead_magnet_id))
                .eq("user_id", str(user_id))
                .execute()
            )
        except Exception as e:
            raise PersistenceError(
                f"Failed to save lead magnet {lead_magnet_id}: {e}"
            ) from e

        if not result.data:
            raise PersistenceError(f"Lead magnet {lead_magnet_id} not found for owner")
        return result.data[0]
