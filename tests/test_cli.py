"""
Tests for the Typer CLI.
"""

from unittest.mock import patch

from typer.testing import CliRunner

from conftest import FakeEmbedder, InMemoryRecipeCorpus, InMemoryUsageLog, ScriptedGenerator, make_recipe
from mise import __version__
from mise.config import get_settings
from mise.errors import GenerationFailedError
from mise.main import app
from mise.planner import MealPlanOrchestrator

runner = CliRunner()


def _orchestrator(generator=None, corpus=None, usage_log=None):
    return MealPlanOrchestrator(
        corpus=corpus or InMemoryRecipeCorpus(),
        usage_log=usage_log or InMemoryUsageLog(),
        embedder=FakeEmbedder(),
        generator=generator or ScriptedGenerator(),
        embedding_version=1,
    )


class TestCli:
    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_health_fails_without_supabase(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
        get_settings.cache_clear()
        try:
            result = runner.invoke(app, ["health"])
        finally:
            get_settings.cache_clear()

        assert result.exit_code == 1
        assert "Supabase" in result.output

    def test_plan_prints_calendar(self):
        corpus = InMemoryRecipeCorpus([
            make_recipe("Chana Masala", ingredients=("chickpeas", "tomato")),
            make_recipe("Mushroom Risotto", ingredients=("arborio rice", "mushrooms")),
        ])
        usage_log = InMemoryUsageLog()
        orchestrator = _orchestrator(corpus=corpus, usage_log=usage_log)

        with patch("mise.main._build_orchestrator", return_value=orchestrator):
            result = runner.invoke(
                app, ["plan", "-n", "3", "--diet", "vegan", "--start", "2026-04-06", "--no-record"]
            )

        assert result.exit_code == 0, result.output
        assert "2026-04-06" in result.output
        assert "Generated Dish" in result.output
        assert "1 from corpus" in result.output
        assert usage_log.recorded_batches == []

    def test_plan_passes_inventory_to_generator(self):
        generator = ScriptedGenerator()

        with patch("mise.main._build_orchestrator", return_value=_orchestrator(generator=generator)):
            result = runner.invoke(
                app, ["plan", "-n", "2", "--have", "2 lb chicken", "--have", "Rice", "--no-record"]
            )

        assert result.exit_code == 0, result.output
        inventory = generator.calls[0]["inventory"]
        assert [(i.name, i.quantity, i.unit) for i in inventory] == [
            ("chicken", 2.0, "lb"),
            ("rice", None, None),
        ]

    def test_plan_generation_failure_exits_nonzero(self):
        generator = ScriptedGenerator(error=GenerationFailedError("model returned garbage"))

        with patch("mise.main._build_orchestrator", return_value=_orchestrator(generator=generator)):
            result = runner.invoke(app, ["plan", "-n", "2"])

        assert result.exit_code == 1
        assert "Generation failed" in result.output
