"""TheMealDB HTTP client.

Thin async wrapper around the public TheMealDB JSON API:

- filter.php?i= / ?c= / ?a=   filter by ingredient / category / area (summaries only)
- search.php?s=               search by free-text name (full details)
- lookup.php?i=               full detail for one id
- random.php                  one random full detail

Contract:
- "No matches" is never an error: `{"meals": null}`, a missing or malformed
  `meals` list, or an unparsable record yields [] / None.
- Transport failures (network error, timeout, non-2xx status, undecodable
  body) raise ProviderError so the pipeline can tell them apart from empty results.
- No retries here; fallback policy belongs to the pipeline.
"""

import asyncio
from typing import Any, Optional

import aiohttp

from whattoeat.models.models import MealDetail, MealSummary, QueryKind
from whattoeat.utils.config import config
from whattoeat.utils.errors import ProviderError, safe_execute_sync
from whattoeat.utils.logger import logger


class MealDBClient:
    """Async TheMealDB client.

    Use as an async context manager, or call close() when done. An injected
    aiohttp session is used as-is and never closed by this client.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.base_url = (base_url or config.MEALDB_BASE_URL).rstrip("/")
        self.timeout_seconds = timeout_seconds or config.REQUEST_TIMEOUT_SECONDS
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "MealDBClient":
        self._require_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    def _require_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout_seconds))
        return self._session

    async def _get_json(self, endpoint: str, operation: str, params: Optional[dict] = None) -> Any:
        """GET an endpoint and decode its JSON body.

        Raises:
            ProviderError: On network errors, timeouts, non-2xx status or an undecodable body.
        """
        url = f"{self.base_url}/{endpoint}"
        logger.debug(f"TheMealDB {operation}: GET {url} params={params}")
        session = self._require_session()
        try:
            async with session.get(url, params=params) as response:
                if response.status < 200 or response.status >= 300:
                    raise ProviderError(
                        f"{operation} returned HTTP {response.status}", operation=operation, url=url
                    )
                # TheMealDB does not always send application/json, so skip the content-type check
                return await response.json(content_type=None)
        except ProviderError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ProviderError(f"{operation} failed: {e}", operation=operation, url=url) from e

    @staticmethod
    def _meals(payload: Any) -> list[dict]:
        if not isinstance(payload, dict):
            return []
        meals = payload.get("meals")
        if not isinstance(meals, list):
            return []
        return [meal for meal in meals if isinstance(meal, dict)]

    def _summaries(self, payload: Any) -> list[MealSummary]:
        parsed = [
            safe_execute_sync(lambda m=meal: MealSummary.from_api(m), "Parse meal summary", log_level="debug")
            for meal in self._meals(payload)
        ]
        return [summary for summary in parsed if summary is not None]

    def _details(self, payload: Any) -> list[MealDetail]:
        parsed = [
            safe_execute_sync(lambda m=meal: MealDetail.from_api(m), "Parse meal detail", log_level="debug")
            for meal in self._meals(payload)
        ]
        return [detail for detail in parsed if detail is not None]

    async def filter_by_ingredient(self, ingredient: str) -> list[MealSummary]:
        """Summaries of meals using one ingredient (the API accepts a single term)."""
        payload = await self._get_json("filter.php", "filter_by_ingredient", {"i": ingredient})
        return self._summaries(payload)

    async def filter_by_category(self, category: str) -> list[MealSummary]:
        payload = await self._get_json("filter.php", "filter_by_category", {"c": category})
        return self._summaries(payload)

    async def filter_by_area(self, area: str) -> list[MealSummary]:
        payload = await self._get_json("filter.php", "filter_by_area", {"a": area})
        return self._summaries(payload)

    async def filter_by(self, kind: QueryKind, term: str) -> list[MealSummary]:
        """Dispatch to the filter endpoint matching the query kind."""
        if kind is QueryKind.INGREDIENT:
            return await self.filter_by_ingredient(term)
        if kind is QueryKind.CATEGORY:
            return await self.filter_by_category(term)
        return await self.filter_by_area(term)

    async def search_by_name(self, name: str) -> list[MealDetail]:
        """Full details of meals whose name matches the text."""
        payload = await self._get_json("search.php", "search_by_name", {"s": name})
        return self._details(payload)

    async def fetch_detail(self, meal_id: str) -> Optional[MealDetail]:
        """Full detail for one id, or None if the id is unknown."""
        payload = await self._get_json("lookup.php", "fetch_detail", {"i": meal_id})
        details = self._details(payload)
        return details[0] if details else None

    async def random_one(self) -> Optional[MealDetail]:
        """One random meal. Consecutive calls may return the same meal."""
        payload = await self._get_json("random.php", "random_one")
        details = self._details(payload)
        return details[0] if details else None
