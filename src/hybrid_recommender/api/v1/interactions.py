"""User interaction tracking API endpoints."""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from hybrid_recommender.api.dependencies import get_orchestrator
from hybrid_recommender.exceptions import InvalidInputError, StoreUnavailableError
from hybrid_recommender.models import InteractionAction
from hybrid_recommender.services.orchestrator import RecommendationOrchestrator

logger = structlog.get_logger()

router = APIRouter()


# =============================================================================
# Models
# =============================================================================


class InteractionRequest(BaseModel):
    """Request model for tracking a user interaction."""

    user_id: str = Field(..., description="User identifier")
    item_id: str = Field(..., description="Catalog item identifier")
    action: InteractionAction = Field(..., description="Type of interaction")


class InteractionResponse(BaseModel):
    """Response after recording an interaction."""

    success: bool
    recorded_at: str


class BatchInteractionRequest(BaseModel):
    """Request model for batch interaction tracking."""

    interactions: list[InteractionRequest] = Field(
        ...,
        max_length=100,
        description="List of interactions to record (max 100)",
    )


class BatchInteractionResponse(BaseModel):
    """Response after recording batch interactions."""

    success: bool
    recorded_count: int
    failed_count: int
    recorded_at: str


class SearchRequest(BaseModel):
    """A free-text search performed by a user."""

    user_id: str
    query: str


class InteractionScoresResponse(BaseModel):
    user_id: str
    scores: dict[str, float]


class InteractionScoreResponse(BaseModel):
    user_id: str
    item_id: str
    score: float


class CartAbandonmentResponse(BaseModel):
    user_id: str
    abandoned_items: list[str]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Endpoints
# =============================================================================


@router.post("", response_model=InteractionResponse)
async def track_interaction(
    interaction: InteractionRequest,
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> InteractionResponse:
    """
    Track a single user interaction.

    **Actions:**
    - `view`: User viewed an item page
    - `click`: User clicked an item
    - `cart`: User added the item to the cart
    - `purchase`: User completed a purchase
    - `wishlist`: User added the item to the wishlist
    """
    try:
        await orchestrator.track_interaction(
            interaction.user_id, interaction.item_id, interaction.action
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e

    return InteractionResponse(success=True, recorded_at=_now())


@router.post("/batch", response_model=BatchInteractionResponse)
async def track_interactions_batch(
    request: BatchInteractionRequest,
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> BatchInteractionResponse:
    """
    Track multiple user interactions in a single request.

    Each interaction is applied independently; partial success is possible.
    """
    if not request.interactions:
        raise HTTPException(
            status_code=400,
            detail="interactions list must not be empty",
        )

    recorded = 0
    failed = 0
    for interaction in request.interactions:
        try:
            await orchestrator.track_interaction(
                interaction.user_id, interaction.item_id, interaction.action
            )
            recorded += 1
        except (InvalidInputError, StoreUnavailableError) as e:
            logger.warning(
                "Batch interaction failed",
                user_id=interaction.user_id,
                item_id=interaction.item_id,
                error=str(e),
            )
            failed += 1

    return BatchInteractionResponse(
        success=failed == 0,
        recorded_count=recorded,
        failed_count=failed,
        recorded_at=_now(),
    )


@router.post("/search", response_model=InteractionResponse)
async def track_search(
    request: SearchRequest,
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> InteractionResponse:
    """Record a search query. Queries are stored for context but not scored."""
    try:
        await orchestrator.record_search(request.user_id, request.query)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e

    return InteractionResponse(success=True, recorded_at=_now())


@router.get("/{user_id}/scores", response_model=InteractionScoresResponse)
async def get_interaction_scores(
    user_id: str,
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> InteractionScoresResponse:
    """Weighted interaction totals per item for a user."""
    return InteractionScoresResponse(
        user_id=user_id, scores=orchestrator.interaction_scores.scores_for(user_id)
    )


@router.get("/{user_id}/scores/{item_id}", response_model=InteractionScoreResponse)
async def get_interaction_score(
    user_id: str,
    item_id: str,
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> InteractionScoreResponse:
    """Weighted interaction total for one item; 0 when the user never touched it."""
    return InteractionScoreResponse(
        user_id=user_id,
        item_id=item_id,
        score=orchestrator.interaction_scores.score(user_id, item_id),
    )


@router.post("/{user_id}/cart-abandonment", response_model=CartAbandonmentResponse)
async def mark_cart_abandoned(
    user_id: str,
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> CartAbandonmentResponse:
    """Mark everything left in the user's cart as abandoned."""
    try:
        abandoned = await orchestrator.mark_cart_abandoned(user_id)
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e

    return CartAbandonmentResponse(user_id=user_id, abandoned_items=abandoned)
