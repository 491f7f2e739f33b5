"""HTTP routes: recipe recommendations, chat and model listing.

The recommendation and chat callables are injected through FastAPI
dependencies so they can be overridden (tests, alternative backends).
Errors are returned as ErrorResponse bodies; stack traces are only logged.
"""

import uuid
from typing import Any, Awaitable, Callable, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from whattoeat.agents.agent import run_chat
from whattoeat.api import messages
from whattoeat.models.models import (
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    RecipeRequest,
    RecipeResponse,
    RecipeResult,
    RecipeQuery,
)
from whattoeat.recipes.pipeline import recommend
from whattoeat.utils.config import config
from whattoeat.utils.errors import RecommendationError
from whattoeat.utils.logger import logger

Recommender = Callable[[RecipeQuery], Awaitable[RecipeResult]]
ChatRunner = Callable[..., Awaitable[str]]

router = APIRouter(prefix="/api")


def get_recommender() -> Recommender:
    return recommend


def get_chat_runner() -> ChatRunner:
    return run_chat


def _request_language(payload: Any) -> str:
    """Language for error messages, taken from the raw input when it is valid."""
    if isinstance(payload, dict) and payload.get("language") in ("zh-CN", "en-US"):
        return payload["language"]
    return config.DEFAULT_LANGUAGE


def _error(status_code: int, error: str, stage: Optional[str] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=error, stage=stage).model_dump())


def _suggestions(result: RecipeResult, language: str) -> str:
    if not result.recipes:
        return messages.no_recipes_found(language)
    if result.strategy == "random":
        return messages.random_recipes(len(result.recipes), language)
    names = [recipe.name or messages.unknown_recipe_name(language) for recipe in result.recipes]
    return messages.recipes_found(names, language)


async def _handle_recipes(payload: dict, recommender: Recommender) -> JSONResponse | RecipeResponse:
    language = _request_language(payload)
    try:
        recipe_request = RecipeRequest.model_validate(payload)
        query = recipe_request.to_query(config.DEFAULT_LIMIT, config.DEFAULT_LANGUAGE)
    except ValidationError as e:
        logger.warning(f"Invalid recipe request: {e.errors(include_url=False)}")
        return _error(400, messages.invalid_request(language), stage="input")

    language = recipe_request.language or config.DEFAULT_LANGUAGE
    try:
        result = await recommender(query)
    except RecommendationError as e:
        logger.error(f"Recipe recommendation failed at stage '{e.stage}': {e}")
        return _error(502, messages.provider_unavailable(language), stage=e.stage)
    except Exception as e:
        logger.error(f"Unexpected error while recommending recipes: {e}", exc_info=True)
        return _error(500, messages.internal_error(language))

    return RecipeResponse(
        suggestions=_suggestions(result, language),
        recipes=result.recipes,
        source=result.source,
        strategy=result.strategy,
        request={
            "original": recipe_request.model_dump(by_alias=True, exclude_none=True),
            "normalized": query.model_dump(exclude_none=True),
            "taste": recipe_request.taste,
            "timeBudget": recipe_request.time_budget,
            "servings": recipe_request.servings,
            "equipment": recipe_request.equipment,
        },
    )


@router.get("/recipes", response_model=RecipeResponse, responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}})
async def get_recipes(
    ingredients: Optional[str] = None,
    category: Optional[str] = None,
    cuisine: Optional[str] = None,
    taste: Optional[str] = None,
    time_budget: Optional[str] = Query(None, alias="timeBudget"),
    servings: Optional[str] = None,
    equipment: Optional[str] = None,
    limit: Optional[str] = None,
    language: Optional[str] = None,
    recommender: Recommender = Depends(get_recommender),
):
    """Recommend recipes from query parameters. With no filters, recommends random recipes."""
    # Raw strings are validated by RecipeRequest so bad values map to 400, not 422
    payload = {
        "ingredients": ingredients,
        "category": category,
        "cuisine": cuisine,
        "taste": taste,
        "timeBudget": time_budget,
        "servings": servings,
        "equipment": equipment,
        "limit": limit,
        "language": language,
    }
    return await _handle_recipes({k: v for k, v in payload.items() if v is not None}, recommender)


@router.post("/recipes", response_model=RecipeResponse, responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}})
async def post_recipes(request: Request, recommender: Recommender = Depends(get_recommender)):
    """Recommend recipes from a JSON body. An unreadable body is treated as an empty query."""
    try:
        payload = await request.json()
    except ValueError:
        logger.debug("POST /api/recipes body is not JSON, using empty query")
        payload = {}
    if not isinstance(payload, dict):
        return _error(400, messages.invalid_request(config.DEFAULT_LANGUAGE), stage="input")
    return await _handle_recipes(payload, recommender)


@router.post("/chat", response_model=ChatResponse, responses={400: {"model": ErrorResponse}})
async def chat(request: Request, chat_runner: ChatRunner = Depends(get_chat_runner)):
    """Answer one chat message with the stateless recipe agent."""
    try:
        payload = await request.json()
    except ValueError:
        payload = {}
    language = _request_language(payload)

    try:
        chat_request = ChatRequest.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Invalid chat request: {e.errors(include_url=False)}")
        return _error(400, messages.empty_message(language), stage="input")

    language = chat_request.language or config.DEFAULT_LANGUAGE
    model = chat_request.model or config.GEMINI_MODEL
    if model not in {m["id"] for m in messages.AVAILABLE_MODELS}:
        return _error(400, messages.unknown_model(model, language), stage="input")
    if not config.llm_enabled:
        logger.error("Chat requested but GEMINI_API_KEY is not configured")
        return _error(503, messages.internal_error(language), stage="chat")

    thread_id = chat_request.thread_id or f"thread-{uuid.uuid4().hex[:12]}"
    try:
        reply = await chat_runner(chat_request.message, model_id=model, language=language, session_id=thread_id)
    except Exception as e:
        logger.error(f"Chat agent failed: {e}", exc_info=True)
        return _error(500, messages.internal_error(language), stage="chat")

    return ChatResponse(response=reply, thread_id=thread_id, model=model)


@router.get("/models")
async def list_models():
    """Gemini models the chat endpoint accepts."""
    return {"models": messages.AVAILABLE_MODELS, "default": config.GEMINI_MODEL}
