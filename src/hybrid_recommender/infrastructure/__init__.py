"""Storage adapters for behavior, catalog features and impressions."""
