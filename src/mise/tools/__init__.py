"""
Mise - Text helpers shared by retrieval, generation and storage.
"""

from mise.tools.normalize import (
    canonical_id,
    clean_unit,
    display_cuisine,
    extract_quantity_unit,
    normalize_name,
    normalize_title,
    significant_words,
    title_key,
)

__all__ = [
    "canonical_id",
    "clean_unit",
    "display_cuisine",
    "extract_quantity_unit",
    "normalize_name",
    "normalize_title",
    "significant_words",
    "title_key",
]
