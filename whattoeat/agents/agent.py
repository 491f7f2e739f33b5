"""Chat agent factory for What To Eat.

A stateless Agno Agent on Gemini with a single tool, recommend_recipes,
which runs the recipe resolution pipeline. No database, memory or session
history: every chat request builds a fresh agent for the requested model
and language.
"""

from typing import Optional

from agno.agent import Agent
from agno.models.google import Gemini
from agno.tools import tool

from whattoeat.prompts.prompts import get_chat_instructions
from whattoeat.recipes.pipeline import recommend_recipes_tool
from whattoeat.utils.config import config
from whattoeat.utils.logger import logger


@tool
# We use @tool decorator to register this function as an Agno tool, docstring used for tool description for the agent.
async def recommend_recipes(
    ingredients: str = "",
    category: str = "",
    cuisine: str = "",
    limit: int = 5,
    language: str = "zh-CN",
) -> dict:
    """Recommend real recipes from TheMealDB.

    Give at most ONE of ingredients, category or cuisine; leave all empty for
    random recommendations. Non-English terms are accepted.

    Args:
        ingredients: Comma-separated ingredients, e.g. "chicken, broccoli" or "鸡肉".
        category: Dish category, e.g. "Seafood", "Vegetarian", "Dessert".
        cuisine: Cuisine or region, e.g. "Chinese", "Italian".
        limit: Number of recipes to return (1-10).
        language: Language of the returned recipe text, "zh-CN" or "en-US".

    Returns:
        Dict with 'recipes' (name, area, category, ingredients with measures,
        instructions, thumbnail), 'source' and 'strategy' ("filter", "name" or
        "random"), or 'error' and 'stage' if no recipe could be fetched.
    """
    return await recommend_recipes_tool(
        ingredients=ingredients,
        category=category,
        cuisine=cuisine,
        limit=limit,
        language=language,
    )


def build_chat_agent(model_id: Optional[str] = None, language: Optional[str] = None) -> Agent:
    """Create the chat agent.

    Args:
        model_id: Gemini model id (default: GEMINI_MODEL).
        language: Fallback reply language when the user's language is unclear.

    Returns:
        Configured Agent instance.
    """
    model_id = model_id or config.GEMINI_MODEL
    language = language or config.DEFAULT_LANGUAGE

    agent = Agent(
        # === Model Configuration ===
        model=Gemini(
            id=model_id,
            api_key=config.GEMINI_API_KEY,
            temperature=config.TEMPERATURE,
        ),
        # === Tools ===
        tools=[recommend_recipes],
        # === Instructions ===
        instructions=get_chat_instructions(
            language=language,
            max_recipes=config.MAX_LIMIT,
            max_tool_calls=config.TOOL_CALL_LIMIT,
        ),
        markdown=True,
        # === Execution Limits ===
        tool_call_limit=config.TOOL_CALL_LIMIT,
        # === Metadata ===
        id="whattoeat-chat",
        name="What To Eat Agent",
        description="Recommends recipes from TheMealDB and answers cooking questions",
    )
    logger.debug(f"Chat agent built (model={model_id}, language={language})")
    return agent


async def run_chat(message: str, model_id: str, language: str, session_id: str) -> str:
    """Answer one message with a fresh agent and return the reply text."""
    agent = build_chat_agent(model_id=model_id, language=language)
    logger.info(f"Chat request on {model_id} (session={session_id})", extra={"language": language})
    response = await agent.arun(message, session_id=session_id)
    content = response.content if response is not None else None
    if content is None:
        return ""
    return content if isinstance(content, str) else str(content)
