"""Translation of normalized recipes into the caller's language.

Each recipe's name, category, area, instructions and ingredient names go to
the model in one request, separated by a marker line; a reply with the wrong
number of items, or any error, leaves that recipe untranslated. Measures,
ids, tags and URLs are never translated. Individual texts are memoized by
(target_language, text).
"""

import asyncio
from typing import Optional, Protocol, Sequence

from whattoeat.llm.gemini import GeminiCompletion
from whattoeat.models.models import SOURCE_LANGUAGE, IngredientItem, NormalizedRecipe
from whattoeat.prompts.prompts import (
    TRANSLATION_SEPARATOR,
    build_translation_prompt,
    build_translation_system_prompt,
)
from whattoeat.utils.cache import MemoCache
from whattoeat.utils.config import config
from whattoeat.utils.errors import safe_execute_async
from whattoeat.utils.logger import logger


class Translator(Protocol):
    async def translate_recipes(
        self, recipes: Sequence[NormalizedRecipe], target_language: str
    ) -> list[NormalizedRecipe]: ...


class PassthroughTranslator:
    """Returns recipes unchanged."""

    async def translate_recipes(
        self, recipes: Sequence[NormalizedRecipe], target_language: str
    ) -> list[NormalizedRecipe]:
        return list(recipes)


# Shared across requests: (target_language, source_text) -> translated_text
_translation_cache = MemoCache(max_entries=config.CACHE_MAX_ENTRIES)


def _recipe_texts(recipe: NormalizedRecipe) -> list[str]:
    texts = [recipe.name, recipe.category, recipe.area, recipe.instructions]
    texts.extend(item.ingredient for item in recipe.ingredients)
    return [text for text in texts if text]


class GeminiTranslator:
    """Gemini-backed translator; recipes are translated concurrently with a cap."""

    def __init__(
        self,
        llm: Optional[GeminiCompletion] = None,
        cache: Optional[MemoCache] = None,
        concurrency: Optional[int] = None,
    ) -> None:
        self.llm = llm or GeminiCompletion()
        self.cache = cache if cache is not None else _translation_cache
        self.concurrency = concurrency or config.TRANSLATION_CONCURRENCY

    async def translate_recipes(
        self, recipes: Sequence[NormalizedRecipe], target_language: str
    ) -> list[NormalizedRecipe]:
        if not recipes or target_language == SOURCE_LANGUAGE:
            return list(recipes)

        logger.info(f"Translating {len(recipes)} recipe(s) into {target_language}...")
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _translate_one(recipe: NormalizedRecipe) -> NormalizedRecipe:
            async with semaphore:
                return await self.translate_recipe(recipe, target_language)

        return list(await asyncio.gather(*(_translate_one(recipe) for recipe in recipes)))

    async def translate_recipe(self, recipe: NormalizedRecipe, target_language: str) -> NormalizedRecipe:
        """Translate one recipe; untranslatable texts are kept as-is."""
        translations: dict[str, str] = {}
        pending: list[str] = []
        for text in dict.fromkeys(_recipe_texts(recipe)):
            cached = self.cache.get((target_language, text))
            if cached is not None:
                translations[text] = cached
            else:
                pending.append(text)

        if pending:
            translated = await safe_execute_async(
                self._batch_translate(pending, target_language),
                f"Translate recipe {recipe.id}",
                log_level="warning",
                default_return=None,
            )
            if translated is not None:
                for source_text, target_text in zip(pending, translated):
                    if target_text:
                        translations[source_text] = target_text
                        self.cache.set((target_language, source_text), target_text)
        else:
            logger.debug(f"Recipe {recipe.id}: all {len(translations)} texts served from translation cache")

        if not translations:
            return recipe

        def _t(text: Optional[str]) -> Optional[str]:
            return translations.get(text, text) if text else text

        return recipe.model_copy(
            update={
                "name": _t(recipe.name),
                "category": _t(recipe.category),
                "area": _t(recipe.area),
                "instructions": _t(recipe.instructions),
                "ingredients": [
                    IngredientItem(ingredient=_t(item.ingredient), measure=item.measure)
                    for item in recipe.ingredients
                ],
            }
        )

    async def _batch_translate(self, texts: list[str], target_language: str) -> list[str]:
        reply = await self.llm.generate_text(
            build_translation_prompt(texts, target_language),
            system_instruction=build_translation_system_prompt(target_language),
        )
        parts = [part.strip() for part in reply.split(TRANSLATION_SEPARATOR)]
        if len(parts) != len(texts):
            raise ValueError(f"Translation count mismatch: sent {len(texts)}, got {len(parts)}")
        return parts


def build_translator() -> Translator:
    """Gemini translator when enabled and a key is configured, passthrough otherwise."""
    if config.ENABLE_TRANSLATION and config.llm_enabled:
        return GeminiTranslator()
    logger.debug("Translation disabled or GEMINI_API_KEY missing: using passthrough translator")
    return PassthroughTranslator()
