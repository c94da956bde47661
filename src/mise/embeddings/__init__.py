"""
Mise - Embeddings.
"""

from mise.embeddings.service import (
    FALLBACK_PREFERENCE_TEXT,
    EmbeddingService,
    cosine_similarity,
    preference_phrases,
    preferences_text,
    recipe_text,
    replacement_text,
)

__all__ = [
    "EmbeddingService",
    "FALLBACK_PREFERENCE_TEXT",
    "cosine_similarity",
    "preference_phrases",
    "preferences_text",
    "recipe_text",
    "replacement_text",
]
