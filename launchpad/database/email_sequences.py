"""
Email Sequence Service

Replaces the email sequences stored for a funnel. A funnel keeps one
sequence per sequence_type; regenerating deletes the old rows first.
"""

from typing import Optional, Dict, Any, List
from uuid import UUID

from supabase import Client

from launchpad.jobs.errors import PersistenceError
from launchpad.utils.logging import get_logger
from .client import get_supabase_admin_client

logger = get_logger("email_sequences")


class EmailSequenceService:
    """
    Service class for email sequence operations.
    """

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_admin_client()
        return self._client

    async def replace_for_funnel(
        self,
        funnel_id: UUID | str,
        user_id: UUID | str,
        sequences: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """
        Delete the owner's sequences for a funnel and insert new ones.

        A failed delete is logged and the insert still runs.

        Raises:
            PersistenceError: If the insert fails
        """
        try:
            (
                self.client.table("email_sequences")
                .delete()
                .eq("funnel_id", str(funnel_id))
                .eq("user_id", str(user_id))
                .execute()
            )
        except Exception as e:
            logger.warning(f"Could not clear old sequences for funnel {funnel_id}: {e}")

        rows = [
            {**sequence, "funnel_id": str(funnel_id), "user_id": str(user_id)}
            for sequence in sequences
        ]
        try:
            result = self.client.table("email_sequences").insert(rows).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to save email sequences: {e}") from e

        if not result.data:
            raise PersistenceError("Failed to save email sequences: store returned no rows")
        return result.data
