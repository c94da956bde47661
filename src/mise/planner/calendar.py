"""
Mise - Calendar Layout.

One dinner per day, starting at the plan's start date. The day axis is
a presentation of the recipe sequence: a plan's end date is always
start + (recipes - 1) days, whatever end date was requested.
"""

from datetime import date, timedelta
from typing import Sequence

from mise.models import MealPlan, MealPlanDay, Recipe


def build_calendar(recipes: Sequence[Recipe], start_date: date) -> MealPlan:
    days = [
        MealPlanDay(date=start_date + timedelta(days=offset), dinner=recipe)
        for offset, recipe in enumerate(recipes)
    ]
    end_date = days[-1].date if days else start_date
    return MealPlan(start_date=start_date, end_date=end_date, days=days)
