"""Catalog update signals."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from hybrid_recommender.api.dependencies import get_orchestrator
from hybrid_recommender.services.orchestrator import RecommendationOrchestrator

router = APIRouter()


class InvalidationResponse(BaseModel):
    item_id: str
    invalidated: bool


@router.post("/{item_id}/invalidate", response_model=InvalidationResponse)
async def invalidate_item(
    item_id: str,
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> InvalidationResponse:
    """Drop cached features for an item the catalog system has just changed."""
    return InvalidationResponse(
        item_id=item_id, invalidated=orchestrator.invalidate_item(item_id)
    )
