"""User-user and item-item similarity scores.

Pure functions with no I/O. The weighting constants are fixed; changing them
changes every ranking downstream.
"""

import math
from typing import AbstractSet, Sequence

import numpy as np

from hybrid_recommender.constants import (
    BRAND_MATCH_WEIGHT,
    CATEGORY_MATCH_WEIGHT,
    EMBEDDING_BLEND_WEIGHT,
    PRICE_TIER_MATCH_WEIGHT,
    PURCHASE_SIMILARITY_WEIGHT,
    TAG_OVERLAP_WEIGHT,
    VIEW_SIMILARITY_WEIGHT,
)
from hybrid_recommender.models import ItemFeatures, UserBehavior


def jaccard(a: AbstractSet[str], b: AbstractSet[str]) -> float:
    """Size of the intersection over size of the union, 0 for two empty sets."""
    union = len(a | b)
    if union == 0:
        return 0.0
    return len(a & b) / union


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0 when either has zero norm."""
    a = np.asarray(vec1, dtype=np.float64)
    b = np.asarray(vec2, dtype=np.float64)
    if a.shape != b.shape:
        raise ValueError(f"Embedding dimensions differ: {a.shape} vs {b.shape}")
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


def user_similarity(a: UserBehavior, b: UserBehavior) -> float:
    """Blend purchase overlap (Jaccard) with view overlap (set cosine)."""
    purchase_similarity = jaccard(a.purchased_items, b.purchased_items)

    viewed_a = set(a.viewed_items)
    viewed_b = set(b.viewed_items)
    if viewed_a and viewed_b:
        view_similarity = len(viewed_a & viewed_b) / math.sqrt(len(viewed_a) * len(viewed_b))
    else:
        view_similarity = 0.0

    return (
        PURCHASE_SIMILARITY_WEIGHT * purchase_similarity
        + VIEW_SIMILARITY_WEIGHT * view_similarity
    )


def item_similarity(p: ItemFeatures, q: ItemFeatures) -> float:
    """Attribute match score, blended 50/50 with embedding cosine when both have one."""
    similarity = 0.0
    if p.category == q.category:
        similarity += CATEGORY_MATCH_WEIGHT
    if p.brand == q.brand:
        similarity += BRAND_MATCH_WEIGHT
    if p.price_tier == q.price_tier:
        similarity += PRICE_TIER_MATCH_WEIGHT
    similarity += TAG_OVERLAP_WEIGHT * jaccard(p.tags, q.tags)

    if p.embedding is not None and q.embedding is not None:
        cosine = cosine_similarity(p.embedding, q.embedding)
        similarity = (
            (1 - EMBEDDING_BLEND_WEIGHT) * similarity + EMBEDDING_BLEND_WEIGHT * cosine
        )

    return similarity
