"""
Mise - Recipe Models.

These models map to the recipes table defined in
migrations/001_recipe_retrieval.sql. They are used for:
- Validating rows at the storage boundary (JSON columns included)
- Structured LLM outputs via Instructor
- Passing candidates through the retrieval pipeline
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from mise.tools.normalize import canonical_id, clean_unit


class RecipeSource(str, Enum):
    """Where a recipe came from."""

    MANUAL = "manual"
    URL = "url"
    GENERATED = "generated"
    MEAL_PLAN = "meal-plan"


class Ingredient(BaseModel):
    """
    One ingredient line of a recipe.

    canonical_id is the normalized form of the name used for overlap
    comparisons across recipes; it is derived when not supplied.
    """

    name: str
    quantity: float | str | None = Field(
        default=None, validation_alias=AliasChoices("quantity", "qty")
    )
    unit: str | None = None
    notes: str | None = None
    canonical_id: str = Field(
        default="", validation_alias=AliasChoices("canonical_id", "canonicalId")
    )

    @field_validator("unit")
    @classmethod
    def _clean_unit(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return clean_unit(value)

    @model_validator(mode="after")
    def _fill_canonical_id(self) -> "Ingredient":
        if not self.canonical_id:
            self.canonical_id = canonical_id(self.name)
        return self

    @property
    def search_text(self) -> str:
        """Name plus preparation note, lowercased (used by compliance checks)."""
        return f"{self.name} {self.notes or ''}".lower()


class Step(BaseModel):
    """A single instruction step."""

    order: int
    text: str


class Recipe(BaseModel):
    """
    A recipe in the corpus (or freshly generated, before it has an id).

    The retrieval pipeline never mutates recipes; embeddings are
    attached by the storage layer after creation.
    """

    id: str | None = None
    user_id: str | None = None
    title: str
    description: str | None = None
    servings: int | None = None
    total_minutes: int | None = None
    cuisine: str | None = None
    tags: list[str] = Field(default_factory=list)
    ingredients: list[Ingredient] = Field(default_factory=list)
    steps: list[Step] | None = None
    source: RecipeSource = RecipeSource.MANUAL
    embedding: list[float] | None = None
    embedding_version: int | None = None
    created_at: datetime | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [t.strip() for t in value.split(",") if t.strip()]
        return value

    @field_validator("ingredients", mode="before")
    @classmethod
    def _coerce_ingredients(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return json.loads(value)
        return value

    @field_validator("steps", mode="before")
    @classmethod
    def _coerce_steps(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = json.loads(value)
        if isinstance(value, list):
            # Plain string steps are numbered in order
            return [
                {"order": i + 1, "text": s} if isinstance(s, str) else s
                for i, s in enumerate(value)
            ]
        return value

    @field_validator("embedding", mode="before")
    @classmethod
    def _parse_embedding(cls, value: Any) -> Any:
        if isinstance(value, str):
            return from_pgvector(value)
        return value

    @property
    def is_complete(self) -> bool:
        """A complete recipe has at least one ingredient (steps may come later)."""
        return len(self.ingredients) > 0

    @property
    def canonical_ingredient_ids(self) -> set[str]:
        return {ing.canonical_id for ing in self.ingredients if ing.canonical_id}

    @property
    def ingredient_names(self) -> list[str]:
        return [ing.name for ing in self.ingredients if ing.name]


# =============================================================================
# Storage boundary
# =============================================================================

# Supabase column -> model field
_ROW_FIELDS = {
    "id": "id",
    "user_id": "user_id",
    "title": "title",
    "description": "description",
    "servings": "servings",
    "total_minutes": "total_minutes",
    "cuisine": "cuisine",
    "tags": "tags",
    "ingredients": "ingredients",
    "steps": "steps",
    "source": "source",
    "embedding": "embedding",
    "embedding_version": "embedding_version",
    "created_at": "created_at",
}


def recipe_from_row(row: dict) -> Recipe:
    """
    Validate a Supabase row into a Recipe.

    Unknown columns (e.g. a computed similarity) are ignored.
    """
    data = {field: row[column] for column, field in _ROW_FIELDS.items() if column in row}
    if data.get("id") is not None:
        data["id"] = str(data["id"])
    if data.get("user_id") is not None:
        data["user_id"] = str(data["user_id"])
    return Recipe.model_validate(data)


def recipe_to_row(recipe: Recipe) -> dict:
    """Serialize a Recipe for insert. id/created_at are left to the database."""
    row = recipe.model_dump(mode="json", exclude={"id", "created_at", "embedding"})
    if recipe.embedding is not None:
        row["embedding"] = to_pgvector(recipe.embedding)
    return row


def to_pgvector(embedding: list[float]) -> str:
    """Convert an embedding to pgvector text format: "[0.1,0.2,...]"."""
    return "[" + ",".join(str(float(v)) for v in embedding) + "]"


def from_pgvector(vector: str) -> list[float]:
    """Parse pgvector text format back into a list of floats."""
    cleaned = vector.strip().lstrip("[").rstrip("]")
    if not cleaned:
        return []
    return [float(v) for v in cleaned.split(",")]
