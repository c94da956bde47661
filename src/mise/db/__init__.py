"""
Mise - Storage.

Protocols for the recipe corpus and usage log, plus their Supabase
implementations (pgvector for similarity search).
"""

from mise.db.adapter import (
    RANDOM_SAMPLE_SIMILARITY,
    TAG_MATCH_SIMILARITY,
    RecipeCorpus,
    UsageLog,
    VectorFilters,
)
from mise.db.client import get_client
from mise.db.corpus import SupabaseRecipeCorpus
from mise.db.usage import SupabaseUsageLog

__all__ = [
    "RANDOM_SAMPLE_SIMILARITY",
    "RecipeCorpus",
    "SupabaseRecipeCorpus",
    "SupabaseUsageLog",
    "TAG_MATCH_SIMILARITY",
    "UsageLog",
    "VectorFilters",
    "get_client",
]
