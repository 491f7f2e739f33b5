"""Keyword expansion: one free-text query term -> search term + related alternatives.

Widens recall before the pipeline falls back to name search or random picks.
TheMealDB only understands English, so a term written in a non-Latin script
("鸡肉", "川菜") is mapped to its English search term plus up to three related
terms. Latin-script terms pass through unchanged.

Expanders never raise (cancellation aside): any failure yields the identity
expansion. Results are LLM-generated and not deterministic; callers must not
rely on the alternatives being identical across calls.
"""

import unicodedata
from typing import Optional, Protocol

from whattoeat.llm.gemini import GeminiCompletion, parse_json_response
from whattoeat.models.models import KeywordExpansion, QueryKind
from whattoeat.prompts.prompts import build_expansion_prompt
from whattoeat.utils.cache import MemoCache
from whattoeat.utils.config import config
from whattoeat.utils.errors import safe_execute_async
from whattoeat.utils.logger import logger


def contains_non_latin(term: str) -> bool:
    """True if any letter in the term belongs to a non-Latin script."""
    return any(ch.isalpha() and not unicodedata.name(ch, "").startswith("LATIN") for ch in term)


class KeywordExpander(Protocol):
    async def expand(self, term: str, kind: QueryKind) -> KeywordExpansion: ...


class IdentityExpander:
    """No-op expander used when no LLM backend is configured."""

    async def expand(self, term: str, kind: QueryKind) -> KeywordExpansion:
        return KeywordExpansion.identity(term.strip())


# Shared across requests: (kind, term) -> KeywordExpansion
_expansion_cache = MemoCache(max_entries=config.CACHE_MAX_ENTRIES)


class GeminiKeywordExpander:
    """Gemini-backed expander with a (kind, term) memo cache."""

    def __init__(
        self,
        llm: Optional[GeminiCompletion] = None,
        cache: Optional[MemoCache] = None,
        max_alternatives: Optional[int] = None,
    ) -> None:
        self.llm = llm or GeminiCompletion()
        self.cache = cache if cache is not None else _expansion_cache
        self.max_alternatives = config.MAX_KEYWORD_ALTERNATIVES if max_alternatives is None else max_alternatives

    async def expand(self, term: str, kind: QueryKind) -> KeywordExpansion:
        term = term.strip()
        if not term or not contains_non_latin(term):
            return KeywordExpansion.identity(term)

        # Failures come back as None and are not cached, so the next request retries
        expansion, hit = await self.cache.get_or_set(
            (kind.value, term),
            lambda: safe_execute_async(
                self._expand_remote(term, kind),
                f"Keyword expansion for {kind.value} '{term}'",
                log_level="warning",
                default_return=None,
            ),
        )
        if expansion is None:
            return KeywordExpansion.identity(term)

        if hit:
            logger.debug(f"Keyword expansion cache hit: {kind.value} '{term}'")
        else:
            logger.info(f"Expanded {kind.value} '{term}' -> {expansion.keywords()}")
        return expansion

    async def _expand_remote(self, term: str, kind: QueryKind) -> KeywordExpansion:
        text = await self.llm.generate_text(
            build_expansion_prompt(term, kind, self.max_alternatives),
            json_output=True,
        )
        data = parse_json_response(text)
        if data is None:
            raise ValueError("expansion response was not a JSON object")

        primary = str(data.get("primary") or "").strip() or term
        raw_alternatives = data.get("alternatives") or []
        if not isinstance(raw_alternatives, list):
            raw_alternatives = []

        alternatives: list[str] = []
        for alternative in raw_alternatives:
            alternative = str(alternative).strip()
            if not alternative or alternative.lower() == primary.lower():
                continue
            if alternative.lower() in (a.lower() for a in alternatives):
                continue
            alternatives.append(alternative)

        return KeywordExpansion(original=term, primary=primary, alternatives=alternatives[: self.max_alternatives])


def build_keyword_expander() -> KeywordExpander:
    """Gemini expander when enabled and a key is configured, identity otherwise."""
    if config.ENABLE_KEYWORD_EXPANSION and config.llm_enabled:
        return GeminiKeywordExpander()
    logger.debug("Keyword expansion disabled or GEMINI_API_KEY missing: using identity expansion")
    return IdentityExpander()
