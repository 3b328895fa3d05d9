"""Recommendation API endpoints."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pydantic import BaseModel, Field

from hybrid_recommender.api.dependencies import get_orchestrator
from hybrid_recommender.exceptions import InvalidInputError
from hybrid_recommender.models import RecommendationResult
from hybrid_recommender.services.orchestrator import RecommendationOrchestrator

logger = structlog.get_logger()

router = APIRouter()


class RecommendedItem(BaseModel):
    """A recommended catalog item."""

    item_id: str
    name: str
    category: str
    brand: str
    price: float
    price_tier: str
    rating: float
    position: int = Field(..., description="Position in recommendation list")


class RecommendationResponse(BaseModel):
    """Response containing recommendations."""

    recommendations: list[RecommendedItem]
    confidence: float = Field(..., ge=0.0, le=1.0)
    reasoning: list[str]
    strategy: str
    request_id: str
    user_id: str
    generated_at: str


def to_response(user_id: str, result: RecommendationResult) -> RecommendationResponse:
    return RecommendationResponse(
        recommendations=[
            RecommendedItem(
                item_id=item.item_id,
                name=item.name,
                category=item.category,
                brand=item.brand,
                price=item.price,
                price_tier=item.price_tier.value,
                rating=item.rating,
                position=i + 1,
            )
            for i, item in enumerate(result.items)
        ],
        confidence=result.confidence,
        reasoning=result.reasoning,
        strategy=result.strategy.value,
        request_id=result.request_id,
        user_id=user_id,
        generated_at=result.generated_at,
    )


@router.get("/{user_id}", response_model=RecommendationResponse)
async def get_recommendations(
    user_id: Annotated[str, Path(description="User ID for personalization")],
    count: Annotated[int, Query(ge=1, le=50)] = 10,
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> RecommendationResponse:
    """
    Get hybrid recommendations for a user.

    **Algorithm:**
    1. Collaborative, content-based and trending candidates in parallel
    2. Rank-weighted fusion with wishlist / click / cart-abandonment adjustments
    3. Stock and activity filtering, category and brand diversification
    4. Confidence and reasoning from the user's behavioral evidence

    Users without history receive the trending list.
    """
    try:
        result = await orchestrator.get_recommendations(user_id, count)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return to_response(user_id, result)
