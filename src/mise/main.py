"""
Mise - CLI Entry Point.

Usage:
    mise plan                  Build a dinner plan for the dev user
    mise search QUERY          Free-text recipe search
    mise backfill-embeddings   Embed recipes that have no vector yet
    mise health                Check configuration and database
    mise --help                Show help
"""

import asyncio
import logging
import sys
from datetime import date
from typing import List, Optional

import typer
from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner
from rich.table import Table

app = typer.Typer(
    name="mise",
    help="Mise - hybrid recipe retrieval and meal-plan assembly.",
    add_completion=False,
)
console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Log pipeline stages to stderr; quiet the HTTP clients."""
    from mise.config import settings

    level = logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


def _build_orchestrator():
    from mise.db import SupabaseRecipeCorpus, SupabaseUsageLog
    from mise.embeddings import EmbeddingService
    from mise.generation import RecipeGenerator
    from mise.observability.costs import get_session_tracker
    from mise.planner import MealPlanOrchestrator

    tracker = get_session_tracker()
    corpus = SupabaseRecipeCorpus()
    return MealPlanOrchestrator(
        corpus=corpus,
        usage_log=SupabaseUsageLog(),
        embedder=EmbeddingService(cost_tracker=tracker),
        generator=RecipeGenerator(cost_tracker=tracker),
        cost_tracker=tracker,
    )


def _cuisine_prefs(love: list[str], like: list[str]):
    from mise.models import CuisineLevel, CuisinePreference

    prefs = [CuisinePreference(cuisine=c, level=CuisineLevel.LOVE) for c in love]
    prefs += [CuisinePreference(cuisine=c, level=CuisineLevel.LIKE) for c in like]
    return prefs


@app.command()
def plan(
    count: int = typer.Option(7, "--count", "-n", help="Number of dinners"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Requester id (defaults to DEV_USER_ID)"),
    diet: Optional[str] = typer.Option(None, "--diet", help="Diet style, e.g. vegan, pescatarian"),
    allergy: Optional[List[str]] = typer.Option(None, "--allergy", help="Allergy (repeatable)"),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", help="Excluded ingredient (repeatable)"),
    love: Optional[List[str]] = typer.Option(None, "--love", help="Loved cuisine (repeatable)"),
    like: Optional[List[str]] = typer.Option(None, "--like", help="Liked cuisine (repeatable)"),
    max_minutes: Optional[int] = typer.Option(None, "--max-minutes", help="Cooking time cap"),
    have: Optional[List[str]] = typer.Option(None, "--have", help="Inventory item, e.g. \"2 lb chicken\" (repeatable)"),
    start: Optional[str] = typer.Option(None, "--start", help="Start date (YYYY-MM-DD, default today)"),
    no_record: bool = typer.Option(False, "--no-record", help="Don't record usage for this plan"),
    log_prompts: bool = typer.Option(False, "--log-prompts", "-l", help="Log all LLM prompts to prompt_logs/"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Build a dinner plan from the corpus, generating whatever is missing."""
    from mise.config import settings
    from mise.errors import GenerationFailedError
    from mise.llm.prompt_logger import enable_prompt_logging, get_session_log_dir
    from mise.models import InventoryItem, PreferenceBundle

    setup_logging(verbose)
    if log_prompts:
        enable_prompt_logging(True)

    bundle = PreferenceBundle(
        diet_style=diet,
        allergies=allergy or [],
        exclusions=exclude or [],
        cuisine_preferences=_cuisine_prefs(love or [], like or []),
        max_minutes=max_minutes,
        start_date=date.fromisoformat(start) if start else date.today(),
    )
    inventory = [InventoryItem.parse(text) for text in have or []]
    orchestrator = _build_orchestrator()

    try:
        with Live(Spinner("dots", text="Planning..."), console=console, transient=True):
            result = asyncio.run(orchestrator.generate_plan(
                user or settings.dev_user_id,
                count,
                bundle,
                inventory,
                record_usage=not no_record,
            ))
    except GenerationFailedError as e:
        console.print(f"\n[red]❌ Generation failed: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Meal plan {result.plan.start_date} → {result.plan.end_date}")
    table.add_column("Date")
    table.add_column("Dinner")
    table.add_column("Minutes", justify="right")
    table.add_column("Source")
    for day in result.plan.days:
        recipe = day.dinner
        table.add_row(
            day.date.isoformat(),
            recipe.title if recipe else "-",
            str(recipe.total_minutes or "") if recipe else "",
            recipe.source.value if recipe else "",
        )
    console.print(table)

    console.print(
        f"\n{result.corpus_count} from corpus (tier: {result.search_tier}), "
        f"{result.generated_count} generated"
    )
    if result.shortfall:
        console.print(f"[yellow]⚠️  {result.shortfall} short of the {count} requested[/yellow]")
    if result.cost:
        console.print(f"[dim]Estimated cost: ${result.cost['total_cost_usd']:.4f}[/dim]")

    log_dir = get_session_log_dir()
    if log_dir:
        console.print(f"\n[dim]📝 Prompts logged to: {log_dir}[/dim]")


@app.command()
def search(
    query: str = typer.Argument(..., help="What you feel like eating"),
    limit: int = typer.Option(10, "--limit", "-n", help="Maximum results"),
    min_similarity: float = typer.Option(0.6, "--min-similarity", help="Similarity cut-off (0-1)"),
) -> None:
    """Search the recipe corpus by free text."""
    from mise.db import SupabaseRecipeCorpus
    from mise.embeddings import EmbeddingService
    from mise.retrieval import RecipeSearch

    setup_logging()
    searcher = RecipeSearch(SupabaseRecipeCorpus(), EmbeddingService())
    results = asyncio.run(searcher.search_by_query(query, limit=limit, min_similarity=min_similarity))

    if not results:
        console.print("[dim]No matching recipes.[/dim]")
        return

    table = Table(title=f"Recipes matching {query!r}")
    table.add_column("Similarity", justify="right")
    table.add_column("Title")
    table.add_column("Tags")
    for candidate in results:
        table.add_row(
            f"{candidate.similarity:.2f}",
            candidate.title,
            ", ".join(candidate.recipe.tags),
        )
    console.print(table)


@app.command("backfill-embeddings")
def backfill_embeddings_cmd(
    batch_size: int = typer.Option(20, "--batch-size", help="Recipes per batch"),
    force: bool = typer.Option(False, "--force", help="Re-embed every recipe"),
) -> None:
    """Compute embeddings for recipes that don't have one."""
    from mise.background import backfill_embeddings
    from mise.db import SupabaseRecipeCorpus
    from mise.embeddings import EmbeddingService

    setup_logging()
    result = asyncio.run(backfill_embeddings(
        SupabaseRecipeCorpus(),
        EmbeddingService(),
        batch_size=batch_size,
        force=force,
    ))

    console.print(f"✅ Updated {result.updated} of {result.found} recipes")
    if result.failed:
        console.print(f"[yellow]⚠️  {result.failed} failed: {', '.join(result.failed_ids)}[/yellow]")
        raise typer.Exit(1)


@app.command()
def health() -> None:
    """Check configuration and database connectivity."""
    from mise.config import get_settings

    console.print("\n[bold]Mise Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("✅ Configuration loaded")
        console.print(f"   Environment: {settings.mise_env}")
        console.print(f"   Log level: {settings.log_level}")
        console.print(f"   Embeddings: {settings.embedding_model} ({settings.embedding_dimensions}d)")
        console.print(f"   Generation: {settings.generation_model}")

        if settings.openai_api_key.startswith("sk-"):
            console.print("✅ OpenAI API key configured")
        else:
            console.print("⚠️  OpenAI API key may be invalid")

        if not settings.has_supabase:
            console.print("❌ Supabase URL or service role key missing")
            raise typer.Exit(1)
        console.print("✅ Supabase configured")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"\n[red]❌ Configuration error: {e}[/red]")
        console.print("[dim]Make sure you have a .env file with required variables.[/dim]")
        raise typer.Exit(1)

    from mise.db import get_client

    try:
        client = get_client()
        for table in ("recipes", "recipe_usage"):
            result = client.table(table).select("id", count="exact").limit(0).execute()
            console.print(f"  ✅ {table}: {result.count} rows")
    except Exception as e:
        console.print(f"\n[red]❌ Database check failed: {e}[/red]")
        raise typer.Exit(1)

    console.print("\n[green]All checks passed![/green]")


@app.command()
def version() -> None:
    """Show version information."""
    from mise import __version__

    console.print(f"Mise version {__version__}")


if __name__ == "__main__":
    app()
