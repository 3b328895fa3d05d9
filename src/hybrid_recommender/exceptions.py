"""Error taxonomy for the recommendation engine."""


class RecommenderError(Exception):
    """Base class for recommendation engine errors."""


class StoreUnavailableError(RecommenderError):
    """A behavior, feature or impression store failed to answer."""

    def __init__(self, store: str, reason: str = ""):
        self.store = store
        self.reason = reason
        message = f"{store} unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ItemNotFoundError(RecommenderError):
    """A referenced item is missing from the feature store."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item {item_id} not found")


class NoCandidatesError(RecommenderError):
    """No recommender produced a usable candidate."""


class InvalidInputError(RecommenderError):
    """The caller supplied a missing or malformed argument."""
