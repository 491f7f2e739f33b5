"""Unit tests for the recipe resolution pipeline (stubbed provider)."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from whattoeat.llm.expansion import IdentityExpander
from whattoeat.llm.translation import PassthroughTranslator
from whattoeat.models.models import KeywordExpansion, MealDetail, MealSummary, QueryKind, RecipeQuery, RecipeResult
from whattoeat.recipes.pipeline import RecipeResolver, recommend, recommend_recipes_tool
from whattoeat.utils.errors import ProviderError, RecommendationError


def detail(meal_id: str, name: str = "") -> MealDetail:
    return MealDetail(
        id=meal_id,
        name=name or f"Meal {meal_id}",
        area="British",
        ingredient_slots=[("Chicken", "1 whole"), ("", "2 cups"), ("Salt", "")],
    )


class FakeProvider:
    """In-memory TheMealDB stand-in.

    Args:
        filters: {(kind, keyword): [ids]} for filter_by.
        details: {id: MealDetail} for fetch_detail (missing id -> None).
        by_name: {term: [MealDetail]} for search_by_name.
        randoms: sequence of MealDetail / None / Exception returned by random_one in turn.
        fail: operations that raise ProviderError ("filter", "name", "detail").
        failing_details: ids whose fetch_detail raises even when "detail" is not in fail.
        detail_delay: seconds each non-failing fetch_detail sleeps before answering.
    """

    def __init__(
        self, filters=None, details=None, by_name=None, randoms=None, fail=(), failing_details=(), detail_delay=0
    ):
        self.filters = filters or {}
        self.details = details or {}
        self.by_name = by_name or {}
        self.randoms = list(randoms or [])
        self.fail = set(fail)
        self.failing_details = set(failing_details)
        self.detail_delay = detail_delay
        self.in_flight = 0
        self.completed_details = []
        self.calls = []

    async def filter_by(self, kind, term):
        self.calls.append(("filter", kind, term))
        if "filter" in self.fail:
            raise ProviderError("filter down", operation="filter")
        return [MealSummary(id=i, name=f"Meal {i}") for i in self.filters.get((kind, term), [])]

    async def fetch_detail(self, meal_id):
        self.calls.append(("detail", meal_id))
        if "detail" in self.fail or meal_id in self.failing_details:
            raise ProviderError("lookup down", operation="lookup")
        self.in_flight += 1
        try:
            await asyncio.sleep(self.detail_delay)
        finally:
            self.in_flight -= 1
        self.completed_details.append(meal_id)
        return self.details.get(meal_id)

    async def search_by_name(self, term):
        self.calls.append(("name", term))
        if "name" in self.fail:
            raise ProviderError("search down", operation="search")
        return list(self.by_name.get(term, []))

    async def random_one(self):
        self.calls.append(("random",))
        if not self.randoms:
            return None
        item = self.randoms.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def count(self, name):
        return sum(1 for call in self.calls if call[0] == name)


class StaticExpander:
    def __init__(self, expansion: KeywordExpansion):
        self.expansion = expansion
        self.calls = []

    async def expand(self, term, kind):
        self.calls.append((term, kind))
        return self.expansion


def resolver(provider, expander=None, translator=None) -> RecipeResolver:
    return RecipeResolver(provider, expander or IdentityExpander(), translator or PassthroughTranslator())


class TestSelectQuery:
    """Test which field governs the search."""

    @pytest.mark.asyncio
    async def test_ingredient_wins_over_category_and_cuisine(self):
        """Test priority ingredient > category > cuisine."""
        provider = FakeProvider(
            filters={(QueryKind.INGREDIENT, "chicken"): ["1"]},
            details={"1": detail("1")},
        )

        await resolver(provider).resolve(RecipeQuery(ingredient="chicken", category="Seafood", cuisine="Chinese"))

        filter_calls = [call for call in provider.calls if call[0] == "filter"]
        assert filter_calls == [("filter", QueryKind.INGREDIENT, "chicken")]

    @pytest.mark.asyncio
    async def test_multi_term_uses_first_term(self):
        """Test that "chicken, broccoli" searches with "chicken" only."""
        expander = StaticExpander(KeywordExpansion.identity("chicken"))
        provider = FakeProvider(filters={(QueryKind.INGREDIENT, "chicken"): ["1"]}, details={"1": detail("1")})

        await resolver(provider, expander).resolve(RecipeQuery(ingredient="chicken，broccoli"))

        assert expander.calls == [("chicken", QueryKind.INGREDIENT)]

    @pytest.mark.asyncio
    async def test_no_fields_goes_straight_to_random(self):
        """Test that an empty query never calls filter or name search."""
        provider = FakeProvider(randoms=[detail("1"), detail("2")])

        result = await resolver(provider).resolve(RecipeQuery(limit=2))

        assert result.strategy == "random"
        assert [r.id for r in result.recipes] == ["1", "2"]
        assert provider.count("filter") == 0
        assert provider.count("name") == 0


class TestFilterStrategy:
    """Test keyword loop, early exit and detail fetch."""

    @pytest.mark.asyncio
    async def test_early_exit_preserves_keyword_order(self):
        """Test that candidates come from the first keyword first and later keywords are skipped."""
        expander = StaticExpander(
            KeywordExpansion(original="鸡肉", primary="chicken", alternatives=["chicken breast", "chicken thighs"])
        )
        provider = FakeProvider(
            filters={
                (QueryKind.INGREDIENT, "chicken"): ["1", "2"],
                (QueryKind.INGREDIENT, "chicken breast"): ["2", "3", "4"],
                (QueryKind.INGREDIENT, "chicken thighs"): ["5"],
            },
            details={i: detail(i) for i in "12345"},
        )

        result = await resolver(provider, expander).resolve(RecipeQuery(ingredient="鸡肉", limit=3))

        assert result.strategy == "filter"
        assert [r.id for r in result.recipes] == ["1", "2", "3"]
        assert ("filter", QueryKind.INGREDIENT, "chicken thighs") not in provider.calls

    @pytest.mark.asyncio
    async def test_fetches_only_first_limit_ids(self):
        """Test that details are fetched for at most `limit` ids."""
        provider = FakeProvider(
            filters={(QueryKind.CATEGORY, "Seafood"): [str(i) for i in range(30)]},
            details={str(i): detail(str(i)) for i in range(30)},
        )

        result = await resolver(provider).resolve(RecipeQuery(category="Seafood", limit=4))

        assert len(result.recipes) == 4
        assert provider.count("detail") == 4

    @pytest.mark.asyncio
    async def test_missing_details_dropped_in_order(self):
        """Test that ids whose lookup returns nothing are skipped, order kept."""
        provider = FakeProvider(
            filters={(QueryKind.CUISINE, "Chinese"): ["1", "2", "3"]},
            details={"1": detail("1"), "3": detail("3")},
        )

        result = await resolver(provider).resolve(RecipeQuery(cuisine="Chinese", limit=3))

        assert [r.id for r in result.recipes] == ["1", "3"]

    @pytest.mark.asyncio
    async def test_recipes_are_normalized(self):
        """Test that blank ingredient slots are dropped from the output."""
        provider = FakeProvider(filters={(QueryKind.INGREDIENT, "chicken"): ["1"]}, details={"1": detail("1")})

        result = await resolver(provider).resolve(RecipeQuery(ingredient="chicken", limit=1))

        assert [(i.ingredient, i.measure) for i in result.recipes[0].ingredients] == [
            ("Chicken", "1 whole"),
            ("Salt", ""),
        ]


class TestNameFallback:
    """Test the name search stage."""

    @pytest.mark.asyncio
    async def test_empty_filter_falls_back_to_name_search(self):
        """Test that no filter results leads to a name search with the primary keyword."""
        expander = StaticExpander(KeywordExpansion(original="宫保鸡丁", primary="Kung Pao Chicken"))
        provider = FakeProvider(by_name={"Kung Pao Chicken": [detail("10", "Kung Pao Chicken")]})

        result = await resolver(provider, expander).resolve(RecipeQuery(ingredient="宫保鸡丁"))

        assert result.strategy == "name"
        assert [r.name for r in result.recipes] == ["Kung Pao Chicken"]
        assert provider.count("random") == 0

    @pytest.mark.asyncio
    async def test_name_results_deduplicated_and_truncated(self):
        """Test that duplicate ids are dropped and output capped at limit."""
        provider = FakeProvider(by_name={"pie": [detail("1"), detail("1"), detail("2"), detail("3")]})

        result = await resolver(provider).resolve(RecipeQuery(ingredient="pie", limit=2))

        assert [r.id for r in result.recipes] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_all_details_missing_falls_back_to_name_search(self):
        """Test that candidates with no resolvable details count as empty."""
        provider = FakeProvider(
            filters={(QueryKind.INGREDIENT, "chicken"): ["1"]},
            by_name={"chicken": [detail("5")]},
        )

        result = await resolver(provider).resolve(RecipeQuery(ingredient="chicken"))

        assert result.strategy == "name"
        assert [r.id for r in result.recipes] == ["5"]


class TestRandomFallback:
    """Test the final random stage."""

    @pytest.mark.asyncio
    async def test_empty_searches_fall_back_to_random(self):
        """Test that no filter or name results leads to random picks."""
        provider = FakeProvider(randoms=[detail("1"), detail("2"), detail("3")])

        result = await resolver(provider).resolve(RecipeQuery(ingredient="unobtainium", limit=3))

        assert result.strategy == "random"
        assert len(result.recipes) == 3

    @pytest.mark.asyncio
    async def test_random_deduplicates_and_stops_at_attempt_cap(self):
        """Test that persistent duplicates end the loop after RANDOM_MAX_ATTEMPTS calls."""
        provider = FakeProvider(randoms=[detail("1")] * 50)

        result = await resolver(provider).resolve(RecipeQuery(limit=5))

        assert [r.id for r in result.recipes] == ["1"]
        assert provider.count("random") == 20

    @pytest.mark.asyncio
    async def test_random_stops_once_target_reached(self):
        """Test that no extra random calls are made after enough unique recipes."""
        provider = FakeProvider(randoms=[detail("1"), detail("1"), detail("2"), detail("3")])

        result = await resolver(provider).resolve(RecipeQuery(limit=2))

        assert [r.id for r in result.recipes] == ["1", "2"]
        assert provider.count("random") == 3

    @pytest.mark.asyncio
    async def test_search_error_skips_straight_to_random(self):
        """Test that a provider error during search degrades to random, skipping name search."""
        provider = FakeProvider(fail={"filter"}, randoms=[detail("1")])

        result = await resolver(provider).resolve(RecipeQuery(ingredient="chicken", limit=1))

        assert result.strategy == "random"
        assert [r.id for r in result.recipes] == ["1"]
        assert provider.count("name") == 0

    @pytest.mark.asyncio
    async def test_name_search_error_degrades_to_random(self):
        """Test that a failing name search still yields random recipes."""
        provider = FakeProvider(fail={"name"}, randoms=[detail("4")])

        result = await resolver(provider).resolve(RecipeQuery(category="Nothing", limit=1))

        assert result.strategy == "random"
        assert [r.id for r in result.recipes] == ["4"]

    @pytest.mark.asyncio
    async def test_detail_lookup_error_degrades_to_random(self):
        """Test that a failing detail lookup skips name search and yields random recipes."""
        provider = FakeProvider(
            filters={(QueryKind.INGREDIENT, "chicken"): ["1", "2"]},
            details={"2": detail("2")},
            fail={"detail"},
            randoms=[detail("9")],
        )

        result = await resolver(provider).resolve(RecipeQuery(ingredient="chicken", limit=1))

        assert result.strategy == "random"
        assert [r.id for r in result.recipes] == ["9"]
        assert provider.count("name") == 0

    @pytest.mark.asyncio
    async def test_detail_lookup_error_cancels_sibling_lookups(self):
        """Test that one failing lookup leaves no other lookup running after resolve returns."""
        provider = FakeProvider(
            filters={(QueryKind.INGREDIENT, "chicken"): ["1", "2", "3"]},
            details={"2": detail("2"), "3": detail("3")},
            failing_details={"1"},
            detail_delay=0.05,
            randoms=[detail("r")],
        )

        result = await resolver(provider).resolve(RecipeQuery(ingredient="chicken", limit=3))

        assert result.strategy == "random"
        assert [r.id for r in result.recipes] == ["r"]
        assert provider.in_flight == 0

        await asyncio.sleep(0.1)
        assert provider.completed_details == []

    @pytest.mark.asyncio
    async def test_expander_error_degrades_to_random(self):
        """Test that even an unexpected expander exception is absorbed."""
        expander = AsyncMock()
        expander.expand.side_effect = RuntimeError("boom")
        provider = FakeProvider(randoms=[detail("1")])

        result = await resolver(provider, expander).resolve(RecipeQuery(ingredient="chicken", limit=1))

        assert result.strategy == "random"

    @pytest.mark.asyncio
    async def test_random_attempt_errors_tolerated(self):
        """Test that failed random attempts are skipped when others succeed."""
        provider = FakeProvider(randoms=[ProviderError("flaky"), detail("1"), ProviderError("flaky"), detail("2")])

        result = await resolver(provider).resolve(RecipeQuery(limit=2))

        assert [r.id for r in result.recipes] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_total_failure_raises_recommendation_error(self):
        """Test that an unreachable provider surfaces as RecommendationError(stage="random")."""
        provider = FakeProvider(fail={"filter", "name"}, randoms=[ProviderError("down")] * 20)

        with pytest.raises(RecommendationError) as exc:
            await resolver(provider).resolve(RecipeQuery(ingredient="chicken"))

        assert exc.value.stage == "random"
        assert isinstance(exc.value.__cause__, ProviderError)

    @pytest.mark.asyncio
    async def test_random_with_no_data_returns_empty(self):
        """Test that a reachable provider with nothing to offer gives an empty result, not an error."""
        provider = FakeProvider()

        result = await resolver(provider).resolve(RecipeQuery(limit=3))

        assert result.recipes == []
        assert result.strategy == "random"


class TestTranslationStage:
    """Test translation hand-off."""

    @pytest.mark.asyncio
    async def test_translates_when_language_differs(self):
        """Test that the translator receives normalized recipes for zh-CN."""
        translator = AsyncMock()
        translator.translate_recipes.side_effect = lambda recipes, language: [
            r.model_copy(update={"name": f"[{language}] {r.name}"}) for r in recipes
        ]
        provider = FakeProvider(filters={(QueryKind.INGREDIENT, "chicken"): ["1"]}, details={"1": detail("1", "Pie")})

        result = await resolver(provider, translator=translator).resolve(
            RecipeQuery(ingredient="chicken", target_language="zh-CN")
        )

        assert result.recipes[0].name == "[zh-CN] Pie"
        translator.translate_recipes.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_translation_for_source_language(self):
        """Test that en-US output is not sent to the translator."""
        translator = AsyncMock()
        provider = FakeProvider(randoms=[detail("1")])

        await resolver(provider, translator=translator).resolve(RecipeQuery(limit=1))

        translator.translate_recipes.assert_not_awaited()


class TestInvariants:
    """Test output-wide guarantees."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [1, 3, 10])
    async def test_output_bounded_and_unique(self, limit):
        """Test len(recipes) <= limit and ids unique for every strategy."""
        ids = [str(i) for i in range(15)]
        provider = FakeProvider(
            filters={(QueryKind.INGREDIENT, "chicken"): ids + ids},
            details={i: detail(i) for i in ids},
        )

        result = await resolver(provider).resolve(RecipeQuery(ingredient="chicken", limit=limit))

        recipe_ids = [r.id for r in result.recipes]
        assert len(recipe_ids) <= limit
        assert len(set(recipe_ids)) == len(recipe_ids)
        assert result.source == "TheMealDB"

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        """Test that caller cancellation is not turned into a random fallback."""
        started = asyncio.Event()

        class SlowProvider(FakeProvider):
            async def filter_by(self, kind, term):
                self.calls.append(("filter", kind, term))
                started.set()
                await asyncio.sleep(10)
                return []

        provider = SlowProvider(randoms=[detail("1")])
        task = asyncio.create_task(resolver(provider).resolve(RecipeQuery(ingredient="chicken")))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert provider.count("random") == 0


class TestEndToEnd:
    """Scenario from a non-English query through to translated output."""

    @pytest.mark.asyncio
    async def test_chinese_chicken_query(self):
        """Test 鸡肉 -> chicken expansion, filter hits, details and translation."""
        expander = StaticExpander(
            KeywordExpansion(original="鸡肉", primary="chicken", alternatives=["chicken breast"])
        )
        translator = AsyncMock()
        translator.translate_recipes.side_effect = lambda recipes, language: [
            r.model_copy(update={"name": "照烧鸡"}) for r in recipes
        ]
        provider = FakeProvider(
            filters={
                (QueryKind.INGREDIENT, "chicken"): ["52772"],
                (QueryKind.INGREDIENT, "chicken breast"): ["52772", "52795"],
            },
            details={"52772": detail("52772", "Teriyaki Chicken"), "52795": detail("52795", "Chicken Handi")},
        )

        result = await resolver(provider, expander, translator).resolve(
            RecipeQuery(ingredient="鸡肉", limit=2, target_language="zh-CN")
        )

        assert result.strategy == "filter"
        assert [r.id for r in result.recipes] == ["52772", "52795"]
        assert all(r.name == "照烧鸡" for r in result.recipes)
        assert expander.calls == [("鸡肉", QueryKind.INGREDIENT)]


class TestRecommend:
    """Test the module-level entry points."""

    @pytest.mark.asyncio
    async def test_recommend_uses_supplied_collaborators(self):
        """Test that recommend() runs with an injected provider."""
        provider = FakeProvider(randoms=[detail("1")])

        result = await recommend(
            RecipeQuery(limit=1), provider=provider, expander=IdentityExpander(), translator=PassthroughTranslator()
        )

        assert [r.id for r in result.recipes] == ["1"]

    @pytest.mark.asyncio
    async def test_tool_returns_result_dict(self):
        """Test that the tool entry point returns a JSON-ready dict."""
        with patch(
            "whattoeat.recipes.pipeline.recommend",
            new_callable=AsyncMock,
            return_value=RecipeResult(recipes=[], strategy="random"),
        ) as mock_recommend:
            output = await recommend_recipes_tool(ingredients="chicken", limit=2, language="en-US")

        assert output == {"recipes": [], "source": "TheMealDB", "strategy": "random"}
        query = mock_recommend.await_args.args[0]
        assert query.ingredient == "chicken"
        assert query.limit == 2

    @pytest.mark.asyncio
    async def test_tool_reports_invalid_arguments(self):
        """Test that an out-of-range limit comes back as an error dict."""
        output = await recommend_recipes_tool(limit=50)

        assert output["stage"] == "input"
        assert "error" in output

    @pytest.mark.asyncio
    async def test_tool_reports_total_failure(self):
        """Test that RecommendationError comes back as an error dict."""
        with patch(
            "whattoeat.recipes.pipeline.recommend",
            new_callable=AsyncMock,
            side_effect=RecommendationError("Recipe provider is unavailable", stage="random"),
        ):
            output = await recommend_recipes_tool()

        assert output == {"error": "Recipe provider is unavailable", "stage": "random"}
