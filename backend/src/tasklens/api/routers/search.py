"""Search endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from tasklens.api.deps import get_search_service
from tasklens.search.errors import EmbeddingUnavailable, InvalidQuery, StorageUnavailable
from tasklens.search.models import SearchResponse
from tasklens.search.service import SemanticSearchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/search", tags=["search"])


@router.get("", response_model=SearchResponse)
async def search(
    q: str = Query("", description="Search query"),
    service: SemanticSearchService = Depends(get_search_service),
) -> SearchResponse:
    """Find tasks by meaning across task text and chat messages.

    Each result carries the closest matching messages and, when the task's
    own text matched best, a snippet of that text.
    """
    try:
        results = await service.search(q)
    except InvalidQuery as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except EmbeddingUnavailable as e:
        logger.error(f"Query embedding failed for {q!r}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Semantic search is temporarily unavailable.",
        )
    except StorageUnavailable:
        # Details were logged by the service
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred during the search.",
        )

    return SearchResponse(query=q.strip(), results=results, total=len(results))
