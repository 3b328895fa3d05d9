"""PostgreSQL persistence for the catalog and recommendation impressions."""
