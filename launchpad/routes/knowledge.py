"""
Knowledge Search Routes

Semantic search over the creator knowledge base.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from launchpad.api.dependencies import Services, get_services
from launchpad.jobs.errors import PersistenceError, ProviderError
from launchpad.utils.logging import api_logger as logger
from .auth import get_current_user_id

router = APIRouter(prefix="/api", tags=["knowledge"])


class VectorSearchRequest(BaseModel):
    query: Optional[str] = None
    limit: int = Field(default=10, ge=1, le=100)
    threshold: float = Field(default=0.7, ge=-1.0, le=1.0)


@router.post("/vector-search")
async def vector_search(
    request: VectorSearchRequest,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    """Rank knowledge chunks by cosine similarity to the query."""
    if not request.query or not request.query.strip():
        raise HTTPException(status_code=400, detail="Query is required")
    if services.search is None:
        raise HTTPException(status_code=503, detail="Knowledge search is not configured")

    try:
        result = await services.search.search(
            request.query, limit=request.limit, threshold=request.threshold
        )
    except ProviderError as e:
        logger.error(f"Vector search embedding failed: {e}", user_id=user_id)
        raise HTTPException(status_code=502, detail=str(e))
    except PersistenceError as e:
        logger.error(f"Vector search read failed: {e}", user_id=user_id)
        raise HTTPException(status_code=503, detail=str(e))

    return {
        "results": result.matches,
        "query": request.query,
        "total": len(result.matches),
    }
