"""Prompt templates for keyword expansion, translation and the chat agent."""

from whattoeat.models.models import QueryKind

LANGUAGE_NAMES = {
    "zh-CN": "Simplified Chinese",
    "en-US": "English",
}

# Vocabulary hints so expanded keywords match what TheMealDB filters accept
_KIND_HINTS = {
    QueryKind.INGREDIENT: (
        "an ingredient",
        'TheMealDB ingredient names in lowercase English, e.g. "chicken", "chicken breast", "broccoli"',
    ),
    QueryKind.CATEGORY: (
        "a dish category",
        "one of TheMealDB categories: Beef, Breakfast, Chicken, Dessert, Goat, Lamb, Miscellaneous, "
        "Pasta, Pork, Seafood, Side, Starter, Vegan, Vegetarian",
    ),
    QueryKind.CUISINE: (
        "a cuisine or region",
        "TheMealDB areas such as Chinese, Japanese, Thai, Indian, Italian, French, Mexican, American, "
        "British, Spanish, Greek, Turkish, Vietnamese, Malaysian",
    ),
}

TRANSLATION_SEPARATOR = "---SEPARATOR---"


def build_expansion_prompt(term: str, kind: QueryKind, max_alternatives: int) -> str:
    """Prompt asking for the English search term plus related alternatives as JSON."""
    description, vocabulary = _KIND_HINTS[kind]
    return (
        f'The user typed "{term}" as {description} for a recipe search.\n'
        f"Translate it into the closest English search term using {vocabulary}.\n"
        f"Then list up to {max_alternatives} closely related alternative terms that would also "
        "find relevant recipes (more specific or more general variants, no duplicates).\n"
        'Return ONLY valid JSON: {"primary": "<term>", "alternatives": ["<term>", ...]}'
    )


def build_translation_system_prompt(target_language: str) -> str:
    language = LANGUAGE_NAMES.get(target_language, target_language)
    return (
        f"You are a professional translator of recipe content into concise, natural {language}. "
        "Keep the original formatting and line structure. Translate every item and separate the "
        f"translated items with {TRANSLATION_SEPARATOR} exactly as in the input. Output nothing else."
    )


def build_translation_prompt(texts: list[str], target_language: str) -> str:
    language = LANGUAGE_NAMES.get(target_language, target_language)
    joined = f"\n{TRANSLATION_SEPARATOR}\n".join(texts)
    return (
        f"Translate each of the following {len(texts)} items into {language}, "
        f"keeping them separated by {TRANSLATION_SEPARATOR}:\n\n{joined}"
    )


def get_chat_instructions(language: str, max_recipes: int, max_tool_calls: int) -> str:
    """System instructions for the conversational recipe agent."""
    reply_language = LANGUAGE_NAMES.get(language, "Simplified Chinese")
    return f"""You are a friendly food and cooking assistant helping users decide what to eat.

## Language
- Reply in the language the user writes in. If unsure, reply in {reply_language}.

## Recommending Recipes
- When the user wants dish ideas or recipes, call `recommend_recipes` with at most ONE of:
  - `ingredients`: what they have (comma separated, e.g. "chicken, broccoli")
  - `category`: dish type (e.g. Seafood, Vegetarian, Dessert)
  - `cuisine`: cuisine or region (e.g. Chinese, Italian)
  Leave all three empty for a random recommendation.
- Use `limit` between 1 and {max_recipes}; default to 5.
- Pass the user's language as `language` ("zh-CN" or "en-US").
- Make at most {max_tool_calls} tool calls per reply.
- Present only recipes returned by the tool: name, cuisine, key ingredients with measures,
  and a short summary of the steps. Never invent recipe details.
- If the tool falls back to random picks, say so briefly and offer to refine the search.

## General Questions
- Answer cooking, ingredient and nutrition questions accurately and concisely.
  Calorie figures are estimates for a standard serving; say so.
- Politely steer off-topic conversations back to food.
"""
