"""Data models and schemas for the recipe recommendation service.

Defines Pydantic models for provider records, the normalized recipe shape,
pipeline input/output, and the HTTP request/response bodies.
All models use Pydantic v2 for strict validation and OpenAPI schema generation.
"""

import re
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Name of the upstream provider, reported on every result
PROVIDER_SOURCE = "TheMealDB"
# TheMealDB exposes ingredients as strIngredient1..20 / strMeasure1..20
INGREDIENT_SLOT_COUNT = 20
# Language the provider writes recipes in
SOURCE_LANGUAGE = "en-US"

Language = Literal["zh-CN", "en-US"]

# Separators accepted between terms of a multi-value field ("鸡肉，西兰花", "chicken, rice")
TERM_SEPARATORS = re.compile(r"[，,、]+")


def split_terms(value: Optional[str]) -> list[str]:
    """Split a comma-separated free-text field into trimmed, non-empty terms."""
    if not value:
        return []
    return [term.strip() for term in TERM_SEPARATORS.split(value) if term.strip()]


def _meal_id(payload: dict) -> str:
    """Read idMeal; records without one cannot be looked up again and are rejected."""
    meal_id = payload.get("idMeal")
    if meal_id is None or not str(meal_id).strip():
        raise ValueError(f"Meal record has no idMeal: {payload.get('strMeal')!r}")
    return str(meal_id).strip()


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class QueryKind(str, Enum):
    """Structured field a search is run against, in priority order."""

    INGREDIENT = "ingredient"
    CATEGORY = "category"
    CUISINE = "cuisine"


# ============================================================================
# Provider records (never returned to callers)
# ============================================================================


class MealSummary(BaseModel):
    """Minimal identity returned by TheMealDB filter endpoints."""

    id: str
    name: str
    thumbnail: Optional[str] = None

    @classmethod
    def from_api(cls, payload: dict) -> "MealSummary":
        return cls(
            id=_meal_id(payload),
            name=payload.get("strMeal") or "",
            thumbnail=payload.get("strMealThumb"),
        )


class MealDetail(BaseModel):
    """Full recipe record as returned by lookup/search/random endpoints.

    Ingredient slots are kept as a fixed-size list of (name, measure) pairs:
    slot i lives at index i - 1, empty slots are ("", "").
    """

    id: str
    name: str
    category: Optional[str] = None
    area: Optional[str] = None
    tags: Optional[str] = None
    instructions: Optional[str] = None
    thumbnail: Optional[str] = None
    video_url: Optional[str] = None
    ingredient_slots: Annotated[
        List[tuple[str, str]],
        Field(default_factory=list, max_length=INGREDIENT_SLOT_COUNT, description="Up to 20 (name, measure) pairs"),
    ]

    @field_validator("ingredient_slots", mode="after")
    @classmethod
    def pad_slots(cls, slots: List[tuple[str, str]]) -> List[tuple[str, str]]:
        """Pad to exactly INGREDIENT_SLOT_COUNT slots."""
        return list(slots) + [("", "")] * (INGREDIENT_SLOT_COUNT - len(slots))

    @classmethod
    def from_api(cls, payload: dict) -> "MealDetail":
        """Build from a raw TheMealDB meal object."""
        slots = [
            (payload.get(f"strIngredient{i}") or "", payload.get(f"strMeasure{i}") or "")
            for i in range(1, INGREDIENT_SLOT_COUNT + 1)
        ]
        return cls(
            id=_meal_id(payload),
            name=payload.get("strMeal") or "",
            category=payload.get("strCategory"),
            area=payload.get("strArea"),
            tags=payload.get("strTags"),
            instructions=payload.get("strInstructions"),
            thumbnail=payload.get("strMealThumb"),
            video_url=payload.get("strYoutube"),
            ingredient_slots=slots,
        )


# ============================================================================
# Normalized output
# ============================================================================


class IngredientItem(BaseModel):
    """One non-empty ingredient with its (possibly empty) measure."""

    model_config = ConfigDict(frozen=True)

    ingredient: Annotated[str, Field(min_length=1, description="Ingredient name (never blank)")]
    measure: Annotated[str, Field("", description="Quantity text, may be empty")]

    @field_validator("ingredient")
    @classmethod
    def ingredient_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("ingredient must not be blank")
        return value


class NormalizedRecipe(BaseModel):
    """Provider-independent recipe shape; the only recipe shape callers see."""

    model_config = ConfigDict(frozen=True)

    id: Annotated[str, Field(description="Recipe ID from TheMealDB")]
    name: Annotated[str, Field(description="Recipe name")]
    category: Optional[str] = None
    area: Annotated[Optional[str], Field(None, description="Cuisine / region")]
    tags: Optional[List[str]] = None
    instructions: Optional[str] = None
    thumbnail: Optional[str] = None
    video_url: Optional[str] = None
    ingredients: Annotated[List[IngredientItem], Field(default_factory=list)]


# ============================================================================
# Pipeline input / output
# ============================================================================


class RecipeQuery(BaseModel):
    """Input to the resolution pipeline.

    At most one of ingredient/category/cuisine governs the search, tried in
    priority order ingredient > category > cuisine. With none set the pipeline
    recommends random recipes. `limit` outside [1, 10] is rejected, never clamped.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    ingredient: Annotated[Optional[str], Field(None, max_length=200, description="Ingredient(s), comma separated")]
    category: Annotated[Optional[str], Field(None, max_length=100, description="Dish category, e.g. Seafood")]
    cuisine: Annotated[Optional[str], Field(None, max_length=100, description="Cuisine / region, e.g. Chinese")]
    limit: Annotated[int, Field(5, ge=1, le=10, description="Maximum recipes to return (1-10)")]
    target_language: Annotated[Language, Field(SOURCE_LANGUAGE, description="Language of the returned recipe text")]

    @field_validator("ingredient", "category", "cuisine", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def governing_field(self) -> Optional[tuple[QueryKind, str]]:
        """Return (kind, value) of the first non-empty field by priority, or None."""
        for kind, value in (
            (QueryKind.INGREDIENT, self.ingredient),
            (QueryKind.CATEGORY, self.category),
            (QueryKind.CUISINE, self.cuisine),
        ):
            if value:
                return kind, value
        return None


class KeywordExpansion(BaseModel):
    """Original term, the term to search with, and related alternatives."""

    original: str
    primary: str
    alternatives: Annotated[List[str], Field(default_factory=list, max_length=3)]

    @classmethod
    def identity(cls, term: str) -> "KeywordExpansion":
        return cls(original=term, primary=term, alternatives=[])

    def keywords(self) -> list[str]:
        """Primary first, then alternatives; blanks and case-insensitive repeats dropped."""
        seen: set[str] = set()
        ordered = []
        for keyword in [self.primary, *self.alternatives]:
            keyword = (keyword or "").strip()
            if keyword and keyword.lower() not in seen:
                seen.add(keyword.lower())
                ordered.append(keyword)
        return ordered


class RecipeResult(BaseModel):
    """Output of the resolution pipeline."""

    recipes: Annotated[List[NormalizedRecipe], Field(default_factory=list, max_length=10)]
    source: Literal["TheMealDB"] = PROVIDER_SOURCE
    strategy: Annotated[
        Literal["filter", "name", "random"],
        Field(description="Stage that produced the recipes"),
    ]


# ============================================================================
# HTTP surface
# ============================================================================


class RecipeRequest(BaseModel):
    """Body / query parameters accepted by the /api/recipes endpoint.

    Only ingredients, category, cuisine, limit and language drive the search;
    taste, time budget, servings and equipment are echoed back for the client.
    """

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    ingredients: Annotated[
        Optional[str | List[str]],
        Field(None, description='Ingredients, comma separated or a list, e.g. "鸡胸肉, 西兰花"'),
    ]
    category: Optional[str] = None
    cuisine: Optional[str] = None
    taste: Optional[str] = None
    time_budget: Annotated[Optional[int], Field(None, alias="timeBudget", ge=0, description="Minutes")]
    servings: Annotated[Optional[int], Field(None, ge=1)]
    equipment: Optional[str | List[str]] = None
    limit: Optional[int] = None
    language: Optional[Language] = None

    @field_validator("ingredients", mode="before")
    @classmethod
    def join_ingredients(cls, value: Any) -> Any:
        if isinstance(value, list):
            terms = [str(item).strip() for item in value if item is not None and str(item).strip()]
            return ",".join(terms) or None
        return _blank_to_none(value)

    @field_validator("category", "cuisine", "taste", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("equipment", mode="before")
    @classmethod
    def parse_equipment(cls, value: Any) -> Optional[List[str]]:
        if value is None:
            return None
        if isinstance(value, str):
            items = re.split(r"[，,、\s]+", value)
        else:
            items = [str(item) for item in value]
        return [item.strip() for item in items if item and item.strip()] or None

    def to_query(self, default_limit: int, default_language: str) -> RecipeQuery:
        """Build the pipeline query. Raises ValidationError for an out-of-range limit."""
        ingredients = ",".join(split_terms(self.ingredients)) if isinstance(self.ingredients, str) else None
        return RecipeQuery(
            ingredient=ingredients,
            category=self.category,
            cuisine=self.cuisine,
            limit=self.limit if self.limit is not None else default_limit,
            target_language=self.language or default_language,
        )


class RecipeResponse(BaseModel):
    """Response body of the /api/recipes endpoint."""

    suggestions: Annotated[str, Field(description="Short human-readable summary of the results")]
    recipes: Annotated[List[NormalizedRecipe], Field(default_factory=list)]
    source: Literal["TheMealDB"] = PROVIDER_SOURCE
    strategy: Literal["filter", "name", "random"]
    request: Annotated[dict, Field(default_factory=dict, description="Echo of the original and normalized input")]


class ChatRequest(BaseModel):
    """Body of the /api/chat endpoint."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    message: Annotated[str, Field(min_length=1, max_length=2000, description="User message (1-2000 chars)")]
    thread_id: Annotated[Optional[str], Field(None, alias="threadId", max_length=200)]
    model: Optional[str] = None
    language: Optional[Language] = None


class ChatResponse(BaseModel):
    """Response body of the /api/chat endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    response: str
    thread_id: Annotated[str, Field(serialization_alias="threadId")]
    model: str


class ErrorResponse(BaseModel):
    """Error body returned by the HTTP layer (no stack traces)."""

    error: str
    stage: Optional[str] = None
