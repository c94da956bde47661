"""
Mise - Preference Models.

Request-scoped inputs to the planner. The preference bundle may be
backed by a stored user profile elsewhere; here it is a value object.
"""

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field

from mise.tools.normalize import display_cuisine, extract_quantity_unit, normalize_name

DEFAULT_DIET_STYLE = "omnivore"


class CuisineLevel(str, Enum):
    LOVE = "LOVE"
    LIKE = "LIKE"
    NEUTRAL = "NEUTRAL"
    DISLIKE = "DISLIKE"
    AVOID = "AVOID"


class CuisinePreference(BaseModel):
    cuisine: str
    level: CuisineLevel


class PreferenceBundle(BaseModel):
    """
    Dietary, cuisine and time constraints for one planning request.

    Drives both the preference embedding (soft, semantic) and the
    compliance filter (hard constraints).
    """

    diet_style: str | None = None
    allergies: list[str] = Field(default_factory=list)
    exclusions: list[str] = Field(default_factory=list)
    goals: list[str] = Field(default_factory=list)
    cuisine_preferences: list[CuisinePreference] = Field(default_factory=list)
    household_size: int | None = None
    max_minutes: int | None = None
    cooking_skill_level: str | None = None
    explanation: str | None = None
    start_date: date = Field(default_factory=date.today)
    end_date: date | None = None

    def _cuisines_at(self, *levels: CuisineLevel) -> list[str]:
        return [
            display_cuisine(c.cuisine)
            for c in self.cuisine_preferences
            if c.level in levels
        ]

    def loved_cuisines(self) -> list[str]:
        return self._cuisines_at(CuisineLevel.LOVE)

    def liked_cuisines(self) -> list[str]:
        return self._cuisines_at(CuisineLevel.LIKE)

    def avoided_cuisines(self) -> list[str]:
        return self._cuisines_at(CuisineLevel.AVOID, CuisineLevel.DISLIKE)

    @property
    def has_cuisine_affinities(self) -> bool:
        """True if any cuisine is loved or liked (tag fallback needs this)."""
        return bool(self.loved_cuisines() or self.liked_cuisines())


class InventoryItem(BaseModel):
    """Something the household already has. A soft signal for generation only."""

    name: str
    quantity: float | None = None
    unit: str | None = None

    @classmethod
    def parse(cls, text: str) -> "InventoryItem":
        """Parse a pantry entry such as "2 lb chicken" or "rice"."""
        quantity, unit, name = extract_quantity_unit(text)
        return cls(name=normalize_name(name), quantity=quantity, unit=unit)
