"""
Tests for the generative fallback and the structured LLM call.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import ValidationError

from conftest import make_recipe
from mise.errors import GenerationFailedError
from mise.generation import GeneratedRecipe, GeneratedRecipes, RecipeGenerator
from mise.models import PreferenceBundle, RecipeSource
from mise.observability.costs import CostTracker


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio needed)."""
    return asyncio.run(coro)


def _generated(title: str, minutes: int = 30) -> GeneratedRecipe:
    return GeneratedRecipe(
        title=title,
        description=f"A weeknight {title.lower()}",
        servings=4,
        totalMinutes=minutes,
        tags=["dinner"],
        ingredients=[
            {"name": "Chickpeas", "qty": 2, "unit": "Cans", "canonicalId": "chickpeas"},
            {"name": "Garlic", "qty": 3, "unit": "cloves", "notes": "minced", "canonicalId": "garlic"},
        ],
        steps=["Prep everything", "Cook it"],
    )


class TestGeneratedRecipe:
    def test_to_recipe(self):
        recipe = _generated("  Chickpea Stew ").to_recipe()

        assert recipe.title == "Chickpea Stew"
        assert recipe.id is None
        assert recipe.source == RecipeSource.GENERATED
        assert recipe.total_minutes == 30
        assert recipe.ingredients[0].unit == "can"
        assert recipe.ingredients[1].notes == "minced"
        assert [s.order for s in recipe.steps] == [1, 2]

    def test_no_steps_is_none(self):
        generated = _generated("Stew").model_copy(update={"steps": []})
        assert generated.to_recipe().steps is None

    def test_requires_ingredients(self):
        with pytest.raises(ValidationError):
            GeneratedRecipe(title="Air", ingredients=[])


class TestRecipeGenerator:
    """Generator behaviour with call_llm mocked out."""

    def test_generate_returns_recipes(self):
        response = GeneratedRecipes(recipes=[_generated("Chickpea Stew"), _generated("Lentil Curry")])

        with patch("mise.generation.generator.call_llm", new=AsyncMock(return_value=response)) as mock_call:
            recipes = _run(RecipeGenerator().generate(PreferenceBundle(), [], 2, avoid_titles=["Pad Thai"]))

        assert [r.title for r in recipes] == ["Chickpea Stew", "Lentil Curry"]
        kwargs = mock_call.call_args.kwargs
        assert kwargs["task"] == "generate"
        assert kwargs["response_model"] is GeneratedRecipes
        assert "Pad Thai" in kwargs["user_prompt"]
        assert "Return exactly 2 recipes." in kwargs["user_prompt"]

    def test_extra_recipes_are_truncated(self):
        response = GeneratedRecipes(recipes=[_generated(f"Dish {i}") for i in range(5)])

        with patch("mise.generation.generator.call_llm", new=AsyncMock(return_value=response)):
            recipes = _run(RecipeGenerator().generate(PreferenceBundle(), [], 3))

        assert len(recipes) == 3

    def test_fewer_recipes_are_returned_as_is(self):
        response = GeneratedRecipes(recipes=[_generated("Only One")])

        with patch("mise.generation.generator.call_llm", new=AsyncMock(return_value=response)):
            recipes = _run(RecipeGenerator().generate(PreferenceBundle(), [], 3))

        assert [r.title for r in recipes] == ["Only One"]

    def test_zero_count_skips_call(self):
        with patch("mise.generation.generator.call_llm", new=AsyncMock()) as mock_call:
            assert _run(RecipeGenerator().generate(PreferenceBundle(), [], 0)) == []
        mock_call.assert_not_called()

    def test_empty_response_is_failure(self):
        with patch("mise.generation.generator.call_llm", new=AsyncMock(return_value=GeneratedRecipes(recipes=[]))):
            with pytest.raises(GenerationFailedError) as exc_info:
                _run(RecipeGenerator().generate(PreferenceBundle(), [], 4))
        assert exc_info.value.requested == 4

    def test_backend_error_is_wrapped(self):
        failing = AsyncMock(side_effect=RuntimeError("rate limited"))

        with patch("mise.generation.generator.call_llm", new=failing):
            with pytest.raises(GenerationFailedError, match="rate limited") as exc_info:
                _run(RecipeGenerator().generate(PreferenceBundle(), [], 2))

        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_replacement(self):
        original = make_recipe("Beef Stew", ingredients=("beef", "carrot"), total_minutes=120)

        with patch("mise.generation.generator.call_llm", new=AsyncMock(return_value=_generated("Bean Stew"))) as mock_call:
            recipe = _run(RecipeGenerator().generate_replacement(original, "too long", PreferenceBundle()))

        assert recipe.title == "Bean Stew"
        kwargs = mock_call.call_args.kwargs
        assert kwargs["task"] == "replace"
        assert kwargs["response_model"] is GeneratedRecipe
        assert "Reason for Replacement: too long" in kwargs["user_prompt"]

    def test_replacement_error_is_wrapped(self):
        original = make_recipe("Beef Stew")

        with patch("mise.generation.generator.call_llm", new=AsyncMock(side_effect=TimeoutError())):
            with pytest.raises(GenerationFailedError):
                _run(RecipeGenerator().generate_replacement(original, "too long"))


class TestCallLlm:
    """Tests for the Instructor-backed call_llm."""

    def _client(self, response):
        mock_client = MagicMock()
        completion = MagicMock()
        completion.usage = MagicMock(prompt_tokens=1200, completion_tokens=800)
        mock_client.chat.completions.create_with_completion = AsyncMock(return_value=(response, completion))
        return mock_client

    def test_returns_validated_response_and_tracks_cost(self):
        from mise.llm.client import call_llm

        response = GeneratedRecipes(recipes=[_generated("Chickpea Stew")])
        mock_client = self._client(response)
        tracker = CostTracker()

        with patch("mise.llm.client.log_prompt"):
            result = _run(call_llm(
                response_model=GeneratedRecipes,
                system_prompt="You are a chef.",
                user_prompt="Make dinner.",
                task="generate",
                client=mock_client,
                cost_tracker=tracker,
            ))

        assert result is response
        kwargs = mock_client.chat.completions.create_with_completion.call_args.kwargs
        assert kwargs["model"] == "gpt-4.1-mini"
        assert kwargs["temperature"] == 0.8
        assert kwargs["response_model"] is GeneratedRecipes
        assert kwargs["messages"][0]["role"] == "system"
        assert tracker.total_input_tokens == 1200
        assert tracker.summary()["by_stage"].keys() == {"generate"}

    def test_logs_and_reraises_on_error(self):
        from mise.llm.client import call_llm

        mock_client = MagicMock()
        mock_client.chat.completions.create_with_completion = AsyncMock(side_effect=Exception("API error"))

        with patch("mise.llm.client.log_prompt") as mock_log:
            with pytest.raises(Exception, match="API error"):
                _run(call_llm(
                    response_model=GeneratedRecipe,
                    system_prompt="s",
                    user_prompt="u",
                    task="replace",
                    client=mock_client,
                ))

        mock_log.assert_called_once()
        assert mock_log.call_args.kwargs["error"] == "API error"


class TestModelRouter:
    def test_task_configs(self):
        from mise.llm.model_router import get_task_config

        config = get_task_config("generate", model="gpt-4.1")
        assert config == {"temperature": 0.8, "max_tokens": 8192, "model": "gpt-4.1"}

    def test_unknown_task_uses_default(self):
        from mise.llm.model_router import DEFAULT_CONFIG, get_task_config

        config = get_task_config("summarize", model="gpt-4.1-mini")
        assert config["temperature"] == DEFAULT_CONFIG["temperature"]

    def test_config_is_a_fresh_copy(self):
        from mise.llm.model_router import TASK_CONFIGS, get_task_config

        get_task_config("replace").pop("temperature")
        assert "temperature" in TASK_CONFIGS["replace"]
