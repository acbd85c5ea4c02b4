"""
Knowledge search: OpenAI embeddings plus a linear cosine-similarity scan
over the knowledge_chunks table.
"""

import asyncio
import math
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import openai
from openai import AsyncOpenAI

from launchpad.config import config
from launchpad.database.knowledge import KnowledgeService
from launchpad.jobs.errors import ProviderError
from launchpad.utils.logging import provider_logger as log


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 when either has zero length."""
    if len(a) != len(b):
        raise ValueError(f"Vector length mismatch: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class EmbeddingClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model or config.EMBEDDING_MODEL
        self._api_key = api_key or config.OPENAI_API_KEY
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    async def embed(self, text: str) -> List[float]:
        """
        Embed one piece of text.

        Raises:
            ProviderError: With the provider's status code when it gave one
        """
        try:
            response = await self.client.embeddings.create(model=self.model, input=text)
        except openai.APIStatusError as e:
            raise ProviderError(f"OpenAI API error {e.status_code}: {e.message}", status_code=e.status_code) from e
        except openai.APIConnectionError as e:
            raise ProviderError(f"OpenAI API unreachable: {e}") from e
        return list(response.data[0].embedding)


@dataclass
class SearchResult:
    query: str
    matches: List[Dict[str, Any]] = field(default_factory=list)
    chunks_scanned: int = 0
    threshold: float = 0.0
    embedding_time_ms: int = 0
    retrieval_time_ms: int = 0

    def retrieval_log(self) -> Dict[str, Any]:
        """Metrics in rag_retrieval_logs column form."""
        return {
            "search_query": self.query,
            "total_chunks_in_db": self.chunks_scanned,
            "chunks_retrieved": len(self.matches),
            "similarity_threshold": self.threshold,
            "top_5_scores": [
                {"rank": i + 1, "chunk_id": m["id"], "score": round(m["similarity"], 4)}
                for i, m in enumerate(self.matches[:5])
            ],
            "knowledge_context_passed": bool(self.matches),
            "embedding_time_ms": self.embedding_time_ms,
            "retrieval_time_ms": self.retrieval_time_ms,
            "total_time_ms": self.embedding_time_ms + self.retrieval_time_ms,
        }


def rank_chunks(
    query_vector: Sequence[float],
    chunks: List[Dict[str, Any]],
    threshold: float,
) -> List[Dict[str, Any]]:
    """Chunks at or above threshold, most similar first."""
    scored = []
    for chunk in chunks:
        embedding = chunk["embedding"]
        if len(embedding) != len(query_vector):
            continue
        similarity = cosine_similarity(query_vector, embedding)
        if similarity >= threshold:
            scored.append({
                "id": chunk["id"],
                "content": chunk.get("content"),
                "metadata": chunk.get("metadata"),
                "similarity": similarity,
            })
    scored.sort(key=lambda m: m["similarity"], reverse=True)
    return scored


class KnowledgeSearch:
    """Embeds a query and ranks every stored chunk against it."""

    def __init__(self, embeddings: EmbeddingClient, knowledge: KnowledgeService):
        self.embeddings = embeddings
        self.knowledge = knowledge

    async def search(
        self,
        query: str,
        *,
        limit: int = 10,
        threshold: float = 0.7,
    ) -> SearchResult:
        start = time.time()
        query_vector = await self.embeddings.embed(query)
        embedded = time.time()

        chunks = await self.knowledge.list_chunks()
        # CPU-bound scan runs in a worker thread
        scored = await asyncio.to_thread(rank_chunks, query_vector, chunks, threshold)
        finished = time.time()

        result = SearchResult(
            query=query,
            matches=scored[:limit],
            chunks_scanned=len(chunks),
            threshold=threshold,
            embedding_time_ms=int((embedded - start) * 1000),
            retrieval_time_ms=int((finished - embedded) * 1000),
        )
        log.info(
            f"Knowledge search matched {len(result.matches)} of {len(chunks)} chunks",
            threshold=threshold
        )
        return result
