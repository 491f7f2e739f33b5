#!/usr/bin/env python3
"""Ad hoc recipe query runner for What To Eat.

Run the recommendation pipeline directly without starting the API server.

Usage:
    python query.py --ingredient chicken
    python query.py --language zh-CN --ingredient "鸡肉" --limit 3
    python query.py --category Seafood
    python query.py --cuisine Italian
    python query.py                     # random recommendations
    python query.py --debug --ingredient beef  # Show full JSON result

Features:
- Direct pipeline execution via recommend()
- Recipes rendered as markdown with rich
- Debug mode to display the full JSON result
- Clean exit after completion
"""

import asyncio
import sys

from pydantic import ValidationError
from rich.console import Console
from rich.markdown import Markdown

from whattoeat.models.models import NormalizedRecipe, RecipeQuery
from whattoeat.recipes.pipeline import recommend
from whattoeat.utils.config import config
from whattoeat.utils.errors import RecommendationError
from whattoeat.utils.logger import logger

console = Console()

USAGE = (
    "Usage: python query.py [--debug] [--language zh-CN|en-US] "
    "[--ingredient X | --category Y | --cuisine Z] [--limit N]"
)

# Flags that take a value, mapped to RecipeQuery fields
VALUE_FLAGS = {
    "--ingredient": "ingredient",
    "--category": "category",
    "--cuisine": "cuisine",
    "--limit": "limit",
    "--language": "target_language",
}


def format_recipe(index: int, recipe: NormalizedRecipe) -> str:
    """Render one recipe as markdown."""
    lines = [f"## {index}. {recipe.name}"]
    meta = " | ".join(part for part in (recipe.area, recipe.category) if part)
    if meta:
        lines.append(f"*{meta}*")
    if recipe.tags:
        lines.append(f"Tags: {', '.join(recipe.tags)}")
    if recipe.ingredients:
        lines.append("")
        lines.extend(
            f"- {item.ingredient}" + (f": {item.measure}" if item.measure else "") for item in recipe.ingredients
        )
    if recipe.instructions:
        lines.extend(["", recipe.instructions])
    if recipe.video_url:
        lines.extend(["", f"Video: {recipe.video_url}"])
    return "\n".join(lines)


def run_query(query: RecipeQuery, debug: bool = False) -> None:
    """Execute a single recommendation and print the recipes.

    Args:
        query: Validated pipeline query.
        debug: If True, display the full JSON result.
    """
    try:
        logger.info(f"Running query: {query.model_dump(exclude_none=True)}")
        result = asyncio.run(recommend(query))
        logger.info("---")
        console.print()

        if debug:
            console.print("[bold cyan]Debug Mode: Full Result[/bold cyan]")
            console.print("[dim]" + "=" * 60 + "[/dim]")
            console.print_json(data=result.model_dump())
            console.print("[dim]" + "=" * 60 + "[/dim]")
            console.print()

        if not result.recipes:
            console.print("[yellow]No recipes found[/yellow]")
            return

        console.print(f"[bold green]{len(result.recipes)} recipe(s) from {result.source} ({result.strategy})[/bold green]")
        for index, recipe in enumerate(result.recipes, start=1):
            console.print(Markdown(format_recipe(index, recipe)))
            console.print()

    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        sys.exit(0)
    except RecommendationError as e:
        console.print(f"[red]✗ {e} (stage: {e.stage})[/red]")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Query execution failed: {e}", exc_info=True)
        sys.exit(1)


def parse_args(argv: list[str]) -> tuple[RecipeQuery, bool]:
    """Parse command-line flags into (query, debug). Exits on invalid input."""
    debug_mode = False
    fields: dict = {"limit": config.DEFAULT_LIMIT, "target_language": "en-US"}
    position = 0

    while position < len(argv):
        flag = argv[position]
        if flag == "--debug":
            debug_mode = True
            position += 1
        elif flag in VALUE_FLAGS:
            position += 1
            if position >= len(argv):
                print(f"Error: {flag} flag requires a value")
                sys.exit(1)
            fields[VALUE_FLAGS[flag]] = argv[position]
            position += 1
        elif flag in ("-h", "--help"):
            print(USAGE)
            sys.exit(0)
        else:
            print(f"Unknown flag: {flag}")
            print(USAGE)
            sys.exit(1)

    try:
        return RecipeQuery(**fields), debug_mode
    except ValidationError as e:
        print(f"Error: invalid query: {e.errors(include_url=False)}")
        print(USAGE)
        sys.exit(1)


if __name__ == "__main__":
    recipe_query, debug = parse_args(sys.argv[1:])
    run_query(recipe_query, debug=debug)
