#!/usr/bin/env python3
"""Ad hoc query runner for the Pantry Recipe Service.

Run the recipe pipeline directly without starting the API server.

Usage:
    python query.py egg flour milk
    python query.py "egg, flour, milk"
    python query.py '{"ingredients": ["egg", "flour"]}'
    python query.py --relaxed chicken rice    # Keep recipes missing some ingredients
    python query.py --debug egg flour         # Show full JSON response

Features:
- Direct pipeline execution (TheMealDB + Gemini)
- Accepts ingredients as arguments, comma-separated text, or a JSON body
- Rich table output with per-recipe panels
- Clean exit after completion
"""

import asyncio
import json
import sys
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from src.clients.mealdb import MealDBClient
from src.exceptions.recipe_exceptions import RecipeServiceError
from src.models.models import PipelineResult
from src.pipeline.matching import MatchMode
from src.pipeline.pipeline import initialize_recipe_pipeline
from src.utils.config import config
from src.utils.logger import logger

console = Console()


def parse_ingredients(args: list[str]) -> list[str]:
    """Turn CLI arguments into an ingredient list.

    Accepts a JSON body ({"ingredients": [...]}) or plain words, where commas
    separate multi-word ingredients ("olive oil, garlic").
    """
    text = " ".join(args).strip()
    try:
        request_data = json.loads(text)
        if isinstance(request_data, dict) and isinstance(request_data.get("ingredients"), list):
            return [str(item) for item in request_data["ingredients"]]
    except json.JSONDecodeError:
        pass

    if "," in text:
        return [item.strip() for item in text.split(",") if item.strip()]
    return [arg.strip() for arg in args if arg.strip()]


async def _run_pipeline(ingredients: list[str], match_mode: Optional[MatchMode]) -> PipelineResult:
    async with MealDBClient(
        base_url=config.MEALDB_BASE_URL,
        timeout=config.REQUEST_TIMEOUT,
        max_retries=config.MAX_RETRIES,
    ) as recipe_index:
        pipeline = initialize_recipe_pipeline(recipe_index, config)
        return await pipeline.run(ingredients, request_id="cli", match_mode=match_mode)


def render_result(result: PipelineResult) -> None:
    """Print recipes as a summary table followed by one panel per recipe."""
    if not result.recipes:
        console.print(f"[yellow]{result.message}[/yellow]")
        return

    table = Table(title="Recipe Suggestions")
    table.add_column("#", justify="right")
    table.add_column("Recipe", style="bold")
    table.add_column("Cuisine")
    table.add_column("Time")
    table.add_column("Serves", justify="right")
    table.add_column("kcal", justify="right")
    for idx, recipe in enumerate(result.recipes, start=1):
        table.add_row(
            str(idx),
            recipe.name,
            recipe.cuisine or "-",
            recipe.cooking_time,
            str(recipe.servings),
            f"{recipe.nutrition.calories:.0f}",
        )
    console.print(table)

    for recipe in result.recipes:
        lines = [recipe.description, ""]
        lines.append(f"[green]You have:[/green] {', '.join(recipe.ingredients_used) or '-'}")
        lines.append(f"[red]You need:[/red] {', '.join(recipe.additional_ingredients) or 'nothing else'}")
        n = recipe.nutrition
        lines.append(
            f"[dim]Per serving: {n.calories:.0f} kcal, protein {n.protein:.0f}g, "
            f"carbs {n.carbs:.0f}g, fat {n.fat:.0f}g[/dim]"
        )
        for label, url in (("Source", recipe.source_url), ("Video", recipe.video_url)):
            if url:
                lines.append(f"{label}: {url}")
        console.print(Panel("\n".join(lines), title=recipe.name, expand=False))

    if result.fallback_used:
        console.print("[dim]Some details are estimates (AI enrichment unavailable).[/dim]")


def run_query(ingredients: list[str], debug: bool = False, relaxed: bool = False) -> None:
    """Execute a single ad hoc query and print the response.

    Args:
        ingredients: Pantry ingredients.
        debug: If True, display full JSON response with all fields.
        relaxed: If True, use relaxed matching instead of the configured mode.
    """
    try:
        config.validate()
        logger.info(f"Running query: {', '.join(ingredients)}")
        match_mode = MatchMode.RELAXED if relaxed else None
        result = asyncio.run(_run_pipeline(ingredients, match_mode))

        console.print()
        if debug:
            console.print("[bold cyan]Debug Mode: Full Response[/bold cyan]")
            console.print("[dim]" + "=" * 60 + "[/dim]")
            console.print_json(data=result.model_dump(mode="json", by_alias=True))
            console.print("[dim]" + "=" * 60 + "[/dim]")
            console.print()

        render_result(result)

    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        sys.exit(0)
    except (ValueError, RecipeServiceError) as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Query execution failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    usage = "Usage: python query.py [--debug] [--relaxed] <ingredient> [<ingredient> ...]"
    if len(sys.argv) < 2:
        print(usage)
        print("")
        print("Examples:")
        print("  python query.py egg flour")
        print("  python query.py \"olive oil, garlic, pasta\"")
        print("  python query.py --relaxed chicken rice")
        print("  python query.py --debug '{\"ingredients\": [\"egg\", \"flour\"]}'")
        sys.exit(1)

    debug_mode = False
    relaxed_mode = False
    argv_start = 1

    while argv_start < len(sys.argv) and sys.argv[argv_start].startswith("--"):
        if sys.argv[argv_start] == "--debug":
            debug_mode = True
        elif sys.argv[argv_start] == "--relaxed":
            relaxed_mode = True
        else:
            print(f"Unknown flag: {sys.argv[argv_start]}")
            sys.exit(1)
        argv_start += 1

    ingredient_list = parse_ingredients(sys.argv[argv_start:])
    if not ingredient_list:
        print("Error: No ingredients provided")
        print(usage)
        sys.exit(1)

    run_query(ingredient_list, debug=debug_mode, relaxed=relaxed_mode)
