"""Application layer - enrichment services."""
