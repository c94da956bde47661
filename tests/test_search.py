"""
Tests for the search tier chain.
"""

import asyncio

import pytest

from conftest import FakeEmbedder, InMemoryRecipeCorpus, make_recipe
from mise.errors import EmptyInputError
from mise.models import CuisineLevel, CuisinePreference, PreferenceBundle
from mise.retrieval import RecipeSearch, tag_keywords


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio needed)."""
    return asyncio.run(coro)


def _italian_lover(**kwargs) -> PreferenceBundle:
    return PreferenceBundle(
        cuisine_preferences=[
            CuisinePreference(cuisine="ITALIAN", level=CuisineLevel.LOVE),
            CuisinePreference(cuisine="south_indian", level=CuisineLevel.LIKE),
            CuisinePreference(cuisine="french", level=CuisineLevel.AVOID),
        ],
        **kwargs,
    )


class TestTagKeywords:
    def test_loved_then_liked(self):
        assert tag_keywords(_italian_lover()) == ["italian", "south indian"]

    def test_no_affinities(self):
        assert tag_keywords(PreferenceBundle()) == []


class TestTierChain:
    """Vector -> tag -> random, each only when the previous found nothing."""

    def test_vector_tier_wins(self):
        corpus = InMemoryRecipeCorpus([
            make_recipe("Italian Lasagna", tags=("italian",)),
            make_recipe("Miso Soup", tags=("japanese",)),
        ])
        search = RecipeSearch(corpus, FakeEmbedder())

        candidates, tier = _run(search.find_candidates(_italian_lover(), 5))

        assert tier == "vector"
        assert corpus.calls == ["vector"]
        assert len(candidates) == 2
        assert all(0.0 <= c.similarity <= 1.0 for c in candidates)
        assert candidates[0].similarity >= candidates[1].similarity

    def test_tag_fallback_when_no_embeddings(self):
        corpus = InMemoryRecipeCorpus()
        corpus.add(make_recipe("Margherita Pizza", tags=("Italian", "pizza")), embed=False)
        corpus.add(make_recipe("Beef Pho", tags=("vietnamese",)), embed=False)
        search = RecipeSearch(corpus, FakeEmbedder())

        candidates, tier = _run(search.find_candidates(_italian_lover(), 5))

        assert tier == "tag"
        assert corpus.calls == ["vector", "tag"]
        assert [c.title for c in candidates] == ["Margherita Pizza"]
        assert candidates[0].similarity == pytest.approx(0.8)

    def test_tag_tier_skipped_without_affinities(self):
        corpus = InMemoryRecipeCorpus()
        corpus.add(make_recipe("Beef Pho", tags=("vietnamese",)), embed=False)
        search = RecipeSearch(corpus, FakeEmbedder())

        candidates, tier = _run(search.find_candidates(PreferenceBundle(), 5))

        assert tier == "random"
        assert corpus.calls == ["vector", "random"]
        assert candidates[0].similarity == pytest.approx(0.5)

    def test_random_after_tag_miss(self):
        corpus = InMemoryRecipeCorpus()
        corpus.add(make_recipe("Beef Pho", tags=("vietnamese",)), embed=False)
        search = RecipeSearch(corpus, FakeEmbedder())

        _, tier = _run(search.find_candidates(_italian_lover(), 5))

        assert tier == "random"
        assert corpus.calls == ["vector", "tag", "random"]

    def test_empty_corpus_is_not_an_error(self):
        corpus = InMemoryRecipeCorpus()
        search = RecipeSearch(corpus, FakeEmbedder())

        candidates, tier = _run(search.find_candidates(_italian_lover(), 5))

        assert candidates == []
        assert tier == "none"

    def test_exclusions_and_time_bound(self):
        corpus = InMemoryRecipeCorpus([
            make_recipe("Quick Pasta", id="a", total_minutes=20),
            make_recipe("Slow Ragu", id="b", total_minutes=240),
            make_recipe("Pasta Salad", id="c"),
            make_recipe("Pasta Bake", id="d", total_minutes=40),
        ])
        search = RecipeSearch(corpus, FakeEmbedder())

        candidates, _ = _run(search.find_candidates(PreferenceBundle(max_minutes=45), 10, exclude_ids=["d"]))

        assert {c.id for c in candidates} == {"a", "c"}


class TestSearchByQuery:
    def test_threshold_and_tier(self):
        corpus = InMemoryRecipeCorpus([
            make_recipe("Creamy Tomato Pasta", ingredients=("tomato", "cream", "pasta")),
            make_recipe("Beef Stew", ingredients=("beef", "carrot")),
        ])
        search = RecipeSearch(corpus, FakeEmbedder())

        results = _run(search.search_by_query("creamy tomato pasta", min_similarity=0.6))

        assert [c.title for c in results] == ["Creamy Tomato Pasta"]
        assert results[0].tier == "query"

    def test_blank_query_raises(self):
        search = RecipeSearch(InMemoryRecipeCorpus(), FakeEmbedder())
        with pytest.raises(EmptyInputError):
            _run(search.search_by_query("  "))
