"""
Mise - Background jobs.
"""

from mise.background.embedding_backfill import BackfillResult, backfill_embeddings

__all__ = ["BackfillResult", "backfill_embeddings"]
