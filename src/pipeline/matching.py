"""Ingredient coverage matching.

Containment is bidirectional and literal: "egg" covers "eggs" and
"egg yolks", "chicken breast" covers "chicken". There is no stemming or
synonym handling, so "aubergine" does not cover "eggplant".
"""

from enum import Enum
from typing import Iterable, List

from src.models.models import MatchedRecipe, RecipeRecord


class MatchMode(str, Enum):
    """Coverage policy applied while hydrating candidates."""

    STRICT = "strict"  # every user ingredient must be covered
    RELAXED = "relaxed"  # accept everything, report the overlap


def normalize_ingredient(value: str) -> str:
    return value.strip().lower()


def normalize_ingredients(values: Iterable[str]) -> List[str]:
    """Lower-case and trim each ingredient, dropping blanks. Order is kept."""
    normalized = []
    for value in values:
        if not isinstance(value, str):
            continue
        token = normalize_ingredient(value)
        if token:
            normalized.append(token)
    return normalized


def ingredients_overlap(first: str, second: str) -> bool:
    """True when either normalized string contains the other."""
    a = normalize_ingredient(first)
    b = normalize_ingredient(second)
    if not a or not b:
        return False
    return a in b or b in a


def is_covered(user_ingredient: str, recipe_ingredients: Iterable[str]) -> bool:
    return any(ingredients_overlap(user_ingredient, item) for item in recipe_ingredients)


def covers_all(user_ingredients: Iterable[str], recipe_ingredients: List[str]) -> bool:
    """Strict ALL-match check."""
    return all(is_covered(ingredient, recipe_ingredients) for ingredient in user_ingredients)


def split_recipe_ingredients(
    recipe_ingredients: Iterable[str], user_ingredients: List[str]
) -> tuple[List[str], List[str]]:
    """Partition recipe ingredients into (used from pantry, still needed).

    Order follows the recipe; raw casing is kept.
    """
    used: List[str] = []
    additional: List[str] = []
    for item in recipe_ingredients:
        if any(ingredients_overlap(item, user) for user in user_ingredients):
            used.append(item)
        else:
            additional.append(item)
    return used, additional


def match_recipe(
    record: RecipeRecord, user_ingredients: List[str], mode: MatchMode
) -> MatchedRecipe | None:
    """Apply the coverage policy to one hydrated record.

    Args:
        record: Hydrated recipe.
        user_ingredients: Normalized user ingredients.
        mode: STRICT discards records missing any ingredient; RELAXED keeps all.

    Returns:
        MatchedRecipe with the overlap report, or None when rejected.
    """
    normalized = normalize_ingredients(record.ingredients)
    matched = [ing for ing in user_ingredients if is_covered(ing, normalized)]
    missing = [ing for ing in user_ingredients if ing not in matched]

    if mode is MatchMode.STRICT and missing:
        return None

    return MatchedRecipe(
        record=record,
        normalized_ingredients=normalized,
        matched_ingredients=matched,
        missing_ingredients=missing,
    )
