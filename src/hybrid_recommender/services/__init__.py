"""Recommendation services."""

from hybrid_recommender.services.business_rules import BusinessRuleFilter
from hybrid_recommender.services.cache import SimilarityCache
from hybrid_recommender.services.collaborative import CollaborativeRecommender
from hybrid_recommender.services.content_based import ContentRecommender
from hybrid_recommender.services.hybrid import HybridCombiner
from hybrid_recommender.services.orchestrator import RecommendationOrchestrator
from hybrid_recommender.services.trending import TrendingRecommender

__all__ = [
    "BusinessRuleFilter",
    "CollaborativeRecommender",
    "ContentRecommender",
    "HybridCombiner",
    "RecommendationOrchestrator",
    "SimilarityCache",
    "TrendingRecommender",
]
