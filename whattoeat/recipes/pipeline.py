"""Recipe resolution pipeline.

Turns a loose query into a bounded, deduplicated list of normalized recipes.
Strategies are tried in order and each one that comes back empty hands over
to the next:

    filter  expand the governing term, filter by each keyword, fetch details
    name    free-text name search with the primary keyword
    random  repeated random picks, deduplicated by id

An exception while searching skips straight to random picks. Only a random
stage that could not reach the provider at all fails the request.
"""

import asyncio
from typing import Optional

from pydantic import ValidationError

from whattoeat.llm.expansion import KeywordExpander, build_keyword_expander
from whattoeat.llm.translation import Translator, build_translator
from whattoeat.models.models import (
    PROVIDER_SOURCE,
    SOURCE_LANGUAGE,
    KeywordExpansion,
    MealDetail,
    QueryKind,
    RecipeQuery,
    RecipeResult,
    split_terms,
)
from whattoeat.providers.mealdb import MealDBClient
from whattoeat.recipes.normalize import normalize_meal
from whattoeat.utils.config import config
from whattoeat.utils.errors import RecommendationError
from whattoeat.utils.logger import logger


def _first_term(value: str) -> str:
    """The provider filters on one term at a time: "chicken, broccoli" -> "chicken"."""
    terms = split_terms(value)
    return terms[0] if terms else value.strip()


def _dedupe(details: list[MealDetail]) -> list[MealDetail]:
    unique: dict[str, MealDetail] = {}
    for detail in details:
        unique.setdefault(detail.id, detail)
    return list(unique.values())


class RecipeResolver:
    """Runs one query through the fallback strategies.

    Args:
        provider: TheMealDB client (or anything with the same coroutine methods).
        expander: Keyword expander for the governing term.
        translator: Translator applied when the query asks for another language.
    """

    def __init__(self, provider: MealDBClient, expander: KeywordExpander, translator: Translator) -> None:
        self.provider = provider
        self.expander = expander
        self.translator = translator

    async def resolve(self, query: RecipeQuery) -> RecipeResult:
        """Resolve a query into recipes.

        Raises:
            RecommendationError: If the random fallback could not reach the provider
                and nothing was collected.
        """
        details, strategy = await self._search(query)
        if not details:
            details = await self._random(query.limit)
            strategy = "random"

        recipes = [normalize_meal(detail) for detail in details][: query.limit]
        if recipes and query.target_language != SOURCE_LANGUAGE:
            recipes = await self.translator.translate_recipes(recipes, query.target_language)

        logger.info(
            f"Resolved {len(recipes)} recipe(s) via {strategy}",
            extra={"strategy": strategy, "language": query.target_language},
        )
        return RecipeResult(recipes=recipes, source=PROVIDER_SOURCE, strategy=strategy)

    async def _search(self, query: RecipeQuery) -> tuple[list[MealDetail], str]:
        """Run the filter then name strategies; ([], "random") when both come back empty."""
        governing = query.governing_field()
        if governing is None:
            logger.info("No ingredient, category or cuisine given: recommending random recipes")
            return [], "random"

        kind, value = governing
        term = _first_term(value)
        try:
            expansion = await self.expander.expand(term, kind)

            details = await self._filter(kind, expansion, query.limit)
            if details:
                return details, "filter"
            logger.info(
                f"No {kind.value} matches for {expansion.keywords()}, trying name search",
                extra={"stage": "filter"},
            )

            details = await self._by_name(expansion.primary, query.limit)
            if details:
                return details, "name"
            logger.info(f"No name matches for '{expansion.primary}', falling back to random", extra={"stage": "name"})
        except Exception as e:
            logger.warning(f"Search for {kind.value} '{term}' failed, falling back to random: {e}")
        return [], "random"

    async def _filter(self, kind: QueryKind, expansion: KeywordExpansion, limit: int) -> list[MealDetail]:
        # Insertion order is provider order across keywords, primary keyword first
        candidates: dict[str, str] = {}
        for keyword in expansion.keywords():
            summaries = await self.provider.filter_by(kind, keyword)
            logger.debug(f"filter {kind.value}='{keyword}': {len(summaries)} result(s)")
            for summary in summaries:
                candidates.setdefault(summary.id, summary.name)
            if len(candidates) >= limit:
                break

        if not candidates:
            return []

        details = await self._fetch_details(list(candidates)[:limit])
        return [detail for detail in details if detail is not None]

    async def _fetch_details(self, ids: list[str]) -> list[Optional[MealDetail]]:
        """Look up details concurrently, keeping id order.

        The first failure propagates only after every sibling lookup has been
        cancelled and has finished, so no request outlives this stage (or the
        client session it runs on).
        """
        tasks = [asyncio.create_task(self.provider.fetch_detail(meal_id)) for meal_id in ids]
        try:
            return await asyncio.gather(*tasks)
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    async def _by_name(self, term: str, limit: int) -> list[MealDetail]:
        return _dedupe(await self.provider.search_by_name(term))[:limit]

    async def _random(self, limit: int) -> list[MealDetail]:
        """Collect up to min(limit, RANDOM_TARGET) distinct random meals.

        Each random.php call counts as one attempt whether it returns a new
        meal, a duplicate, nothing, or fails. Fewer than the target is fine.
        """
        target = min(limit, config.RANDOM_TARGET)
        collected: dict[str, MealDetail] = {}
        last_error: Optional[Exception] = None

        for _ in range(config.RANDOM_MAX_ATTEMPTS):
            if len(collected) >= target:
                break
            try:
                detail = await self.provider.random_one()
            except Exception as e:
                last_error = e
                logger.warning(f"Random recipe attempt failed: {e}", extra={"stage": "random"})
                continue
            if detail is not None:
                collected.setdefault(detail.id, detail)

        if not collected and last_error is not None:
            raise RecommendationError("Recipe provider is unavailable", stage="random") from last_error
        if len(collected) < target:
            logger.info(f"Random fallback collected {len(collected)}/{target} unique recipe(s)")
        return list(collected.values())


async def recommend(
    query: RecipeQuery,
    provider: Optional[MealDBClient] = None,
    expander: Optional[KeywordExpander] = None,
    translator: Optional[Translator] = None,
) -> RecipeResult:
    """Resolve a query with default collaborators for anything not supplied.

    When no provider is given a MealDBClient is opened for this call and
    closed afterwards.
    """
    expander = expander or build_keyword_expander()
    translator = translator or build_translator()
    if provider is not None:
        return await RecipeResolver(provider, expander, translator).resolve(query)

    async with MealDBClient() as client:
        return await RecipeResolver(client, expander, translator).resolve(query)


async def recommend_recipes_tool(
    ingredients: str = "",
    category: str = "",
    cuisine: str = "",
    limit: int = 5,
    language: str = SOURCE_LANGUAGE,
) -> dict:
    """Tool-call entry point: run the pipeline and return a JSON-ready dict.

    Invalid input and total failure come back as {"error": ..., "stage": ...}
    so the calling agent can explain the problem instead of crashing.
    """
    try:
        query = RecipeQuery(
            ingredient=ingredients or None,
            category=category or None,
            cuisine=cuisine or None,
            limit=limit,
            target_language=language,
        )
    except ValidationError as e:
        logger.warning(f"recommend_recipes called with invalid arguments: {e.errors(include_url=False)}")
        return {"error": "Invalid arguments: limit must be 1-10 and language zh-CN or en-US", "stage": "input"}

    try:
        result = await recommend(query)
    except RecommendationError as e:
        return e.to_dict()
    return result.model_dump()
