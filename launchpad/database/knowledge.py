"""
Knowledge Service

Reads embedded knowledge chunks for the linear-scan similarity search
and records retrieval metrics.
"""

import json
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List

from supabase import Client

from launchpad.jobs.errors import PersistenceError
from .client import get_supabase_admin_client


def parse_embedding(value: Any) -> Optional[List[float]]:
    """Embeddings come back as lists or as JSON strings depending on the column type."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return None
    if not isinstance(value, list):
        return None
    return [float(x) for x in value]


class KnowledgeService:
    """
    Service class for the knowledge base.
    """

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_admin_client()
        return self._client

    async def list_chunks(self) -> List[Dict[str, Any]]:
        """Get all chunks that have an embedding, with the embedding parsed."""
        try:
            result = (
                self.client.table("knowledge_chunks")
                .select("id, content, metadata, embedding")
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Failed to load knowledge chunks: {e}") from e

        chunks = []
        for row in result.data:
            embedding = parse_embedding(row.get("embedding"))
            if embedding:
                chunks.append({**row, "embedding": embedding})
        return chunks

    async def log_retrieval(self, entry: Dict[str, Any]) -> None:
        """Insert a rag_retrieval_logs row."""
        data = {"created_at": datetime.now(timezone.utc).isoformat(), **entry}
        try:
            self.client.table("rag_retrieval_logs").insert(data).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to log retrieval: {e}") from e
