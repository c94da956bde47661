"""
Mise - Generative Fallback.
"""

from mise.generation.generator import GeneratedRecipe, GeneratedRecipes, RecipeGenerator
from mise.generation.prompts import build_generation_prompt, build_replacement_prompt

__all__ = [
    "GeneratedRecipe",
    "GeneratedRecipes",
    "RecipeGenerator",
    "build_generation_prompt",
    "build_replacement_prompt",
]
