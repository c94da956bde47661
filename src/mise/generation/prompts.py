"""
Mise - Generation Prompts.

System prompts and user-prompt builders for the generative fallback.

User prompts are assembled from optional sections; a section whose
data is missing is left out entirely rather than rendered empty.
"""

import json
from typing import Sequence

from mise.models import InventoryItem, PreferenceBundle, Recipe

DEFAULT_HOUSEHOLD_SIZE = 4
DEFAULT_SKILL_LEVEL = "intermediate"
DEFAULT_MAX_MINUTES = 45


GENERATE_SYSTEM_PROMPT = """\
You are an expert personal chef and meal planning assistant. You create \
personalized, practical dinner recipes based on the user's preferences, \
dietary needs and lifestyle.

When creating recipes:
1. Consider the user's cooking skill level and time constraints
2. Respect all dietary restrictions, allergies and exclusions
3. Balance nutrition, variety and flavor across the whole set
4. Favour the cuisines the user loves or likes
5. Provide realistic portion sizes for the household
6. Be aware of available inventory items, but DO NOT assume they are free or unlimited
7. When appropriate, include a simple complementary side (rice with curry, \
salad with pasta) and name it in the title

INVENTORY RULES:
- ALWAYS include the COMPLETE list of ingredients for each recipe, including inventory items
- Track inventory quantities across all recipes; once an item runs out, stop using it
- Prefer recipes that use inventory items, but never require more than is available

INGREDIENTS:
- name: the ingredient as displayed ("parmesan cheese")
- qty / unit: optional quantity and measurement unit ("cup", "lb", "tsp")
- notes: optional preparation note ("grated", "for the side")
- canonicalId: REQUIRED, lowercase underscore_separated name ("parmesan_cheese")

Every recipe must have a distinct title. Do not include cooking steps; \
they are filled in separately.\
"""


REPLACE_SYSTEM_PROMPT = """\
You are an expert chef who specializes in recipe substitutions. You suggest \
an alternative recipe that meets specific requirements.

When replacing a recipe:
1. Understand why the replacement is needed (time, ingredients, preferences)
2. Keep a similar flavor profile or nutritional role where it makes sense
3. Respect the user's dietary restrictions, allergies and exclusions
4. Consider their cooking skill level
5. Make the replacement genuinely different from the original, not a rename

Return one complete recipe: title, description, servings, totalMinutes, tags, \
ingredients (with canonicalId, lowercase underscore_separated) and numbered steps.\
"""


def _inventory_section(inventory: Sequence[InventoryItem], count: int) -> str:
    if not inventory:
        return "No inventory items available. Include all necessary ingredients for each recipe."

    lines = ["Available Inventory Items (USE WISELY - quantities are limited):"]
    for item in inventory:
        quantity = item.quantity if item.quantity is not None else "some"
        if isinstance(quantity, float) and quantity.is_integer():
            quantity = int(quantity)
        unit = f" {item.unit}" if item.unit else ""
        lines.append(f"- {item.name}: {quantity}{unit} available")

    lines.extend([
        "",
        "INVENTORY INSTRUCTIONS:",
        "- Incorporate inventory items where they fit naturally",
        f"- Quantities are shared across all {count} recipes; track what each recipe uses",
        "- If an inventory item runs out, don't use it in the remaining recipes",
        "- Prioritize items that spoil soon (fresh produce, meats, dairy)",
    ])
    return "\n".join(lines)


def build_generation_prompt(
    bundle: PreferenceBundle,
    inventory: Sequence[InventoryItem],
    count: int,
    avoid_titles: Sequence[str] = (),
) -> str:
    """
    User prompt asking for `count` dinner recipes.

    avoid_titles lists recipes already in the plan (or rejected as
    duplicates) so the model does not return them again.
    """
    end_date = bundle.end_date or bundle.start_date

    sections = [
        f"Please create {count} dinner recipes for a meal plan with the following requirements:",
        "\n".join([
            f"Date Range: {bundle.start_date.isoformat()} to {end_date.isoformat()}",
            f"Household Size: {bundle.household_size or DEFAULT_HOUSEHOLD_SIZE} people",
            f"Diet Style: {bundle.diet_style or 'omnivore'}",
            f"Cooking Skill Level: {bundle.cooking_skill_level or DEFAULT_SKILL_LEVEL}",
            f"Maximum Cooking Time: {bundle.max_minutes or DEFAULT_MAX_MINUTES} minutes",
        ]),
    ]

    if bundle.goals:
        sections.append(f"Goals: {', '.join(bundle.goals)}")
    if bundle.allergies:
        sections.append(f"ALLERGIES (MUST AVOID): {', '.join(bundle.allergies)}")
    if bundle.exclusions:
        sections.append(f"Exclusions: {', '.join(bundle.exclusions)}")

    cuisine_lines = []
    if bundle.loved_cuisines():
        cuisine_lines.append(f"Preferred Cuisines (LOVE): {', '.join(bundle.loved_cuisines())}")
    if bundle.liked_cuisines():
        cuisine_lines.append(f"Liked Cuisines: {', '.join(bundle.liked_cuisines())}")
    if bundle.avoided_cuisines():
        cuisine_lines.append(f"Cuisines to Avoid: {', '.join(bundle.avoided_cuisines())}")
    if cuisine_lines:
        sections.append("\n".join(cuisine_lines))

    sections.append(_inventory_section(inventory, count))

    if avoid_titles:
        titles = "\n".join(f"- {t}" for t in avoid_titles)
        sections.append(f"Already in this plan (do NOT repeat these or close variants):\n{titles}")

    if bundle.explanation:
        sections.append(f"Summary: {bundle.explanation}")

    sections.append(f"Return exactly {count} recipes.")
    return "\n\n".join(sections)


def build_replacement_prompt(
    original: Recipe,
    reason: str,
    bundle: PreferenceBundle | None = None,
) -> str:
    """User prompt asking for one replacement of `original`."""
    lines = ["Please suggest a replacement recipe for:", "", f"Original Recipe: {original.title}"]

    if original.total_minutes:
        lines.append(f"Original Time: {original.total_minutes} minutes")
    if original.ingredients:
        ingredients = [ing.model_dump(exclude_none=True) for ing in original.ingredients]
        lines.append(f"Original Ingredients: {json.dumps(ingredients)}")

    lines.extend(["", f"Reason for Replacement: {reason}"])

    if bundle is not None:
        requirements = []
        if bundle.household_size:
            requirements.append(f"Household Size: {bundle.household_size} people")
        if bundle.diet_style:
            requirements.append(f"Diet Style: {bundle.diet_style}")
        if bundle.cooking_skill_level:
            requirements.append(f"Cooking Skill Level: {bundle.cooking_skill_level}")
        if bundle.max_minutes:
            requirements.append(f"Maximum Cooking Time: {bundle.max_minutes} minutes")
        if bundle.allergies:
            requirements.append(f"ALLERGIES (MUST AVOID): {', '.join(bundle.allergies)}")
        if bundle.exclusions:
            requirements.append(f"Exclusions: {', '.join(bundle.exclusions)}")
        if bundle.loved_cuisines():
            requirements.append(f"Preferred Cuisines: {', '.join(bundle.loved_cuisines())}")
        if bundle.avoided_cuisines():
            requirements.append(f"Cuisines to Avoid: {', '.join(bundle.avoided_cuisines())}")
        if requirements:
            lines.extend(["", "User Requirements:", *requirements])

    return "\n".join(lines)
