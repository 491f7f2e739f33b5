"""Conversion of provider records into the normalized recipe shape.

Pure functions: no I/O, no shared state. normalize_meal(detail) called twice
on the same record returns equal values.
"""

from typing import Optional

from whattoeat.models.models import IngredientItem, MealDetail, NormalizedRecipe


def _clean(value: Optional[str]) -> Optional[str]:
    """Absent or whitespace-only text becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def extract_ingredients(detail: MealDetail) -> list[IngredientItem]:
    """Collect the non-empty ingredient slots of a meal, in slot order.

    Both name and measure are trimmed; a slot is kept only when its trimmed
    name is non-empty. The measure may be an empty string.
    """
    items = []
    for name, measure in detail.ingredient_slots:
        name = (name or "").strip()
        if not name:
            continue
        items.append(IngredientItem(ingredient=name, measure=(measure or "").strip()))
    return items


def split_tags(tags: Optional[str]) -> Optional[list[str]]:
    """Split a comma-joined tag string: "a, b,,c" -> ["a", "b", "c"]; absent -> None."""
    if tags is None:
        return None
    return [tag.strip() for tag in tags.split(",") if tag.strip()]


def normalize_meal(detail: MealDetail) -> NormalizedRecipe:
    """Map a provider record to a NormalizedRecipe."""
    return NormalizedRecipe(
        id=detail.id,
        name=detail.name.strip(),
        category=_clean(detail.category),
        area=_clean(detail.area),
        tags=split_tags(_clean(detail.tags)),
        instructions=_clean(detail.instructions),
        thumbnail=_clean(detail.thumbnail),
        video_url=_clean(detail.video_url),
        ingredients=extract_ingredients(detail),
    )
