"""Scoring weights, thresholds and caps used by the recommenders."""

# User similarity blend
PURCHASE_SIMILARITY_WEIGHT = 0.7
VIEW_SIMILARITY_WEIGHT = 0.3

# Item similarity components
CATEGORY_MATCH_WEIGHT = 0.3
BRAND_MATCH_WEIGHT = 0.2
PRICE_TIER_MATCH_WEIGHT = 0.2
TAG_OVERLAP_WEIGHT = 0.3
EMBEDDING_BLEND_WEIGHT = 0.5

# Price tier thresholds, in the catalog's base currency unit
BUDGET_PRICE_LIMIT = 1000
MID_PRICE_LIMIT = 5000

# Collaborative filtering
NEIGHBOR_SIMILARITY_THRESHOLD = 0.3
MAX_NEIGHBORS = 10
NEIGHBOR_SAMPLE_SIZE = 100

# Content-based filtering
ITEM_SIMILARITY_THRESHOLD = 0.4
CATEGORY_CANDIDATE_LIMIT = 50
CATEGORY_PREFERENCE_BOOST = 0.1
BRAND_PREFERENCE_BOOST = 0.05
PRICE_TIER_PREFERENCE_BOOST = 0.05
MAX_PREFERENCE_BOOST = 2.0

# Every recommender returns at most this many items
CANDIDATE_LIST_LIMIT = 20

# Hybrid fusion
HYBRID_WEIGHTS = {
    "collaborative": 0.40,
    "content": 0.35,
    "trending": 0.25,
}
WISHLIST_BOOST = 1.5
CLICK_BOOST = 1.2
CLICK_BOOST_THRESHOLD = 3
CART_ABANDONED_PENALTY = 0.8

# Diversification
MAX_DISTINCT_CATEGORIES = 3
MAX_DISTINCT_BRANDS = 5
MAX_DIVERSIFIED_ITEMS = 20

# Confidence
BASE_CONFIDENCE = 0.5
TRENDING_CONFIDENCE = 0.7
MAX_CONFIDENCE = 0.95
TRENDING_REASONING = ["Popular products", "Highly rated items"]

# Incremental interaction scores
INTERACTION_WEIGHTS = {
    "view": 0.1,
    "click": 0.2,
    "cart": 0.5,
    "wishlist": 0.6,
    "purchase": 1.0,
}
