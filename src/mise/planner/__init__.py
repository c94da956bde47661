"""
Mise - Meal-Plan Assembly.
"""

from mise.planner.calendar import build_calendar
from mise.planner.orchestrator import MealPlanOrchestrator, dedup_by_title, split_targets

__all__ = [
    "MealPlanOrchestrator",
    "build_calendar",
    "dedup_by_title",
    "split_targets",
]
