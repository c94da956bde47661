"""
Mise - Meal-Plan Orchestrator.

Assembles a requested number of recipes into a dinner calendar:

    recency exclusion -> search tiers -> compliance filter ->
    diversity selection -> generate gap -> title dedup -> (one top-up) ->
    persist generated -> record usage -> calendar

At most half the plan comes from the corpus and the rest from the
generator. A thin corpus is never an error; the generation gap grows.

All stages run in sequence; each depends on the previous one's output.
"""

import logging
from typing import Sequence

from mise.db.adapter import RecipeCorpus, UsageLog, VectorFilters
from mise.embeddings import EmbeddingService
from mise.errors import GenerationFailedError
from mise.generation import RecipeGenerator
from mise.models import (
    Candidate,
    InventoryItem,
    MealPlanResult,
    PreferenceBundle,
    Recipe,
    RecipeSource,
    SearchTier,
)
from mise.observability.costs import CostTracker
from mise.planner.calendar import build_calendar
from mise.retrieval import (
    RecipeSearch,
    filter_compliant,
    has_restrictions,
    is_duplicate_recipe,
    select_diverse,
)
from mise.retrieval.diversity import INGREDIENT_OVERLAP_THRESHOLD, TITLE_SIMILARITY_THRESHOLD
from mise.tools.normalize import title_key

logger = logging.getLogger(__name__)

# Over-fetch so compliance and diversity have something to discard
OVERFETCH_FACTOR = 3

# Recency lookback, widest first; shrunk while too much of the corpus is excluded
RECENCY_WINDOWS = (14, 7, 3, 1)
MAX_EXCLUDED_FRACTION = 0.5

REPLACEMENT_SEARCH_LIMIT = 10


def split_targets(requested: int, corpus_count: int) -> tuple[int, int]:
    """
    Split a request between corpus and generator.

    Returns:
        (from_corpus, from_generator) with from_corpus = min(requested // 2,
        corpus_count) and the two always summing to `requested`.
    """
    from_corpus = max(0, min(requested // 2, corpus_count))
    return from_corpus, requested - from_corpus


def dedup_by_title(recipes: Sequence[Recipe]) -> list[Recipe]:
    """Drop later recipes whose trimmed, lowercased title was already seen."""
    seen: set[str] = set()
    kept: list[Recipe] = []
    for recipe in recipes:
        key = title_key(recipe.title)
        if key in seen:
            continue
        seen.add(key)
        kept.append(recipe)
    return kept


class MealPlanOrchestrator:
    """
    Hybrid retrieval + generation meal planner.

    Collaborators are injected; nothing here reaches for a global client.

    Args:
        corpus: Recipe store
        usage_log: Served-recipe log (recency exclusion and recording)
        embedder: Embedding service
        generator: Generative fallback
        search: Tiered search (built from corpus + embedder if omitted)
        cost_tracker: Optional tracker; each result carries the slice of it
            recorded during that request
        embedding_version: Version stamped on embeddings of persisted recipes
        persist_generated: Store generated recipes before laying out the plan
        require_complete: Raise instead of returning a plan that is short
            after the top-up round
    """

    def __init__(
        self,
        corpus: RecipeCorpus,
        usage_log: UsageLog,
        embedder: EmbeddingService,
        generator: RecipeGenerator,
        *,
        search: RecipeSearch | None = None,
        cost_tracker: CostTracker | None = None,
        embedding_version: int | None = None,
        persist_generated: bool = True,
        require_complete: bool = False,
        overfetch_factor: int = OVERFETCH_FACTOR,
        recency_windows: Sequence[int] = RECENCY_WINDOWS,
        max_excluded_fraction: float = MAX_EXCLUDED_FRACTION,
        title_threshold: float = TITLE_SIMILARITY_THRESHOLD,
        ingredient_threshold: float = INGREDIENT_OVERLAP_THRESHOLD,
    ):
        self.corpus = corpus
        self.usage_log = usage_log
        self.embedder = embedder
        self.generator = generator
        self.search = search or RecipeSearch(corpus, embedder)
        self.cost_tracker = cost_tracker
        self._embedding_version = embedding_version
        self.persist_generated = persist_generated
        self.require_complete = require_complete
        self.overfetch_factor = overfetch_factor
        self.recency_windows = tuple(recency_windows)
        self.max_excluded_fraction = max_excluded_fraction
        self.title_threshold = title_threshold
        self.ingredient_threshold = ingredient_threshold

    @property
    def embedding_version(self) -> int:
        if self._embedding_version is None:
            from mise.config import settings

            self._embedding_version = settings.embedding_version
        return self._embedding_version

    # ------------------------------------------------------------------
    # Plan
    # ------------------------------------------------------------------

    async def generate_plan(
        self,
        requester_id: str,
        count: int,
        bundle: PreferenceBundle,
        inventory: Sequence[InventoryItem] = (),
        *,
        record_usage: bool = True,
    ) -> MealPlanResult:
        """
        Build a meal plan of `count` dinners.

        Raises:
            ValueError: count < 1
            GenerationFailedError: the generator failed or returned nothing
                (or the plan is still short with require_complete=True)
        """
        if count < 1:
            raise ValueError(f"count must be at least 1, got {count}")

        cost_mark = self.cost_tracker.mark() if self.cost_tracker else 0
        corpus_count = await self.corpus.count()
        target_corpus, target_generated = split_targets(count, corpus_count)
        logger.info(
            f"Planner: {count} recipes requested, corpus has {corpus_count}; "
            f"target {target_corpus} from corpus, {target_generated} generated"
        )

        candidates: list[Candidate] = []
        tier: SearchTier = "none"
        window: int | None = None

        if target_corpus > 0:
            exclude_ids, window = await self._recent_exclusions(requester_id, corpus_count)
            candidates, tier = await self.search.find_candidates(
                bundle, target_corpus * self.overfetch_factor, exclude_ids
            )

            if has_restrictions(bundle):
                before = len(candidates)
                candidates = _restricted(candidates, bundle)
                logger.info(f"Planner: compliance filter kept {len(candidates)} of {before} candidates")

            candidates = select_diverse(
                candidates,
                target_corpus,
                title_threshold=self.title_threshold,
                ingredient_threshold=self.ingredient_threshold,
            )

        corpus_recipes = [c.recipe for c in candidates]
        recipes = await self._fill_gap(corpus_recipes, count, bundle, inventory)

        generated = [r for r in recipes if r.id is None]
        if self.persist_generated and generated:
            recipes = [
                await self._persist(requester_id, r, RecipeSource.MEAL_PLAN) if r.id is None else r
                for r in recipes
            ]

        used_ids = [r.id for r in recipes if r.id]
        if record_usage and used_ids:
            await self.usage_log.record_usage(requester_id, used_ids)

        result = MealPlanResult(
            plan=build_calendar(recipes, bundle.start_date),
            requested_count=count,
            corpus_count=len(recipes) - len(generated),
            generated_count=len(generated),
            used_recipe_ids=used_ids,
            recency_window_days=window,
            search_tier=tier,
            cost=self.cost_tracker.summary(since=cost_mark) if self.cost_tracker else {},
        )

        logger.info(
            f"Planner: plan ready with {result.achieved_count} recipes "
            f"({result.corpus_count} corpus, {result.generated_count} generated, tier={tier})"
        )
        if result.shortfall:
            logger.warning(
                f"Planner: plan is {result.shortfall} recipes short of {count} after top-up"
            )
        return result

    async def _recent_exclusions(self, requester_id: str, corpus_count: int) -> tuple[list[str], int]:
        """
        Recently served recipe ids, with the lookback shrunk for small corpora.

        Stops at the first window where at most max_excluded_fraction of
        the corpus is excluded; the narrowest window is used regardless.
        """
        ids: list[str] = []
        days = self.recency_windows[-1]
        for days in self.recency_windows:
            ids = await self.usage_log.recently_used(requester_id, days)
            fraction = len(ids) / corpus_count if corpus_count else 0.0
            if fraction <= self.max_excluded_fraction:
                break
            logger.info(
                f"Planner: {len(ids)} recipes used in last {days} days "
                f"({fraction:.0%} of corpus), shrinking window"
            )

        logger.info(f"Planner: excluding {len(ids)} recently used recipes ({days}-day window)")
        return ids, days

    async def _fill_gap(
        self,
        corpus_recipes: list[Recipe],
        count: int,
        bundle: PreferenceBundle,
        inventory: Sequence[InventoryItem],
    ) -> list[Recipe]:
        """Generate the shortfall, dedup by title, then top up once."""
        gap = count - len(corpus_recipes)
        if gap <= 0:
            return dedup_by_title(corpus_recipes)[:count]

        seen_titles = [r.title for r in corpus_recipes]
        logger.info(f"Planner: generating {gap} recipes to fill the plan")
        generated = await self.generator.generate(bundle, inventory, gap, avoid_titles=seen_titles)
        seen_titles.extend(r.title for r in generated)

        recipes = dedup_by_title(corpus_recipes + generated)
        if len(recipes) < count:
            remaining = count - len(recipes)
            logger.info(f"Planner: {remaining} short after dedup, issuing one top-up request")
            extra = await self.generator.generate(
                bundle, inventory, remaining, avoid_titles=_unique(seen_titles)
            )
            recipes = dedup_by_title(recipes + extra)

        recipes = recipes[:count]
        if len(recipes) < count and self.require_complete:
            raise GenerationFailedError(
                f"Could only assemble {len(recipes)} of {count} recipes",
                requested=count,
            )
        return recipes

    async def _persist(self, requester_id: str, recipe: Recipe, source: RecipeSource) -> Recipe:
        """
        Store a generated recipe for the requester.

        An existing recipe of the same user with the identical title is
        reused instead of inserting a duplicate. Embedding the new row is
        best-effort; a miss is picked up by the backfill job.
        """
        existing = await self.corpus.find_by_title(requester_id, recipe.title)
        if existing is not None:
            logger.debug(f"Planner: reusing stored recipe '{existing.title}' ({existing.id})")
            return existing

        stored = await self.corpus.create(
            recipe.model_copy(update={"user_id": requester_id, "source": source})
        )

        try:
            vector = await self.embedder.embed_recipe(stored)
            await self.corpus.update_embedding(stored.id, vector, self.embedding_version)
        except Exception as e:
            logger.warning(f"Planner: could not embed new recipe {stored.id}: {e}")
            return stored

        return stored.model_copy(
            update={"embedding": vector, "embedding_version": self.embedding_version}
        )

    # ------------------------------------------------------------------
    # Replacement
    # ------------------------------------------------------------------

    async def replace_recipe(
        self,
        requester_id: str,
        original: Recipe,
        reason: str,
        bundle: PreferenceBundle | None = None,
        exclude_ids: Sequence[str] = (),
        *,
        record_usage: bool = True,
    ) -> Recipe:
        """
        Find (or generate) one alternative to a planned recipe.

        Corpus first: nearest neighbours of the replacement text that
        pass the compliance filter and are not the same dish as the
        original. Otherwise a new recipe is generated and stored.
        """
        excluded = list(exclude_ids)
        if original.id and original.id not in excluded:
            excluded.append(original.id)

        vector = await self.embedder.embed_replacement(original, reason, bundle)
        filters = VectorFilters(
            max_minutes=bundle.max_minutes if bundle else None,
            exclude_ids=excluded,
        )
        candidates = await self.corpus.query_by_vector(vector, REPLACEMENT_SEARCH_LIMIT, filters)

        if bundle is not None and has_restrictions(bundle):
            candidates = _restricted(candidates, bundle)

        candidates = [
            c for c in candidates
            if not is_duplicate_recipe(c.recipe.title, c.recipe.ingredients, [original])
        ]

        if candidates:
            replacement = candidates[0].recipe
            logger.info(
                f"Planner: replacing '{original.title}' with corpus recipe "
                f"'{replacement.title}' ({candidates[0].similarity:.2f})"
            )
        else:
            logger.info(f"Planner: no corpus replacement for '{original.title}', generating one")
            generated = await self.generator.generate_replacement(original, reason, bundle)
            replacement = await self._persist(requester_id, generated, RecipeSource.GENERATED)

        if record_usage and replacement.id:
            await self.usage_log.record_usage(requester_id, [replacement.id])
        return replacement


def _restricted(candidates: list[Candidate], bundle: PreferenceBundle) -> list[Candidate]:
    """
    Compliance filter for a bundle with hard constraints.

    Recipes with no ingredient list are dropped too: there is nothing to
    check an allergy or diet style against.
    """
    complete = [c for c in candidates if c.recipe.is_complete]
    if len(complete) < len(candidates):
        logger.debug(f"Planner: dropped {len(candidates) - len(complete)} recipes with no ingredients")
    return filter_compliant(complete, bundle)


def _unique(titles: Sequence[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for title in titles:
        key = title_key(title)
        if key not in seen:
            seen.add(key)
            out.append(title)
    return out
