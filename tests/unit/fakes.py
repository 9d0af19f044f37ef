"""Fake collaborators and builders for unit tests.

Fakes stand in for TheMealDB and Gemini so the pipeline runs without
network access.
"""

import json
from typing import Optional

from src.exceptions.recipe_exceptions import (
    EnrichmentCallError,
    UpstreamHydrationError,
    UpstreamSearchError,
)
from src.models.models import CandidateRecipe, EnrichmentRequest, RecipeRecord


def make_record(recipe_id: str, ingredients: list[str], **overrides) -> RecipeRecord:
    """Build a RecipeRecord with predictable URLs derived from the id."""
    fields = {
        "id": recipe_id,
        "name": f"Recipe {recipe_id}",
        "category": "Dessert",
        "cuisine": "French",
        "ingredients": ingredients,
        "measures": ["1 cup"] * len(ingredients),
        "instructions": "Mix everything. Bake for 20 minutes.",
        "image_url": f"https://img.example.com/{recipe_id}.jpg",
        "source_url": f"https://recipes.example.com/{recipe_id}",
        "video_url": f"https://video.example.com/{recipe_id}",
    }
    fields.update(overrides)
    return RecipeRecord(**fields)


def mealdb_meal(recipe_id: str, name: str, ingredients: list[tuple[str, str]], **extra) -> dict:
    """Build a TheMealDB lookup.php meal payload."""
    meal = {
        "idMeal": recipe_id,
        "strMeal": name,
        "strCategory": "Breakfast",
        "strArea": "British",
        "strInstructions": "Whisk and fry.",
        "strMealThumb": f"https://www.themealdb.com/images/media/meals/{recipe_id}.jpg",
        "strSource": f"https://example.com/{recipe_id}",
        "strYoutube": f"https://www.youtube.com/watch?v={recipe_id}",
    }
    for slot in range(1, 21):
        meal[f"strIngredient{slot}"] = ""
        meal[f"strMeasure{slot}"] = " "
    for slot, (ingredient, measure) in enumerate(ingredients, start=1):
        meal[f"strIngredient{slot}"] = ingredient
        meal[f"strMeasure{slot}"] = measure
    meal.update(extra)
    return meal


class FakeRecipeIndex:
    """In-memory recipe index recording every call."""

    def __init__(
        self,
        search_results: Optional[dict[str, list[str]]] = None,
        records: Optional[dict[str, RecipeRecord]] = None,
        failing_searches: Optional[set[str]] = None,
        failing_lookups: Optional[set[str]] = None,
    ) -> None:
        self.search_results = search_results or {}
        self.records = records or {}
        self.failing_searches = failing_searches or set()
        self.failing_lookups = failing_lookups or set()
        self.search_calls: list[str] = []
        self.lookup_calls: list[str] = []

    async def search_by_ingredient(self, ingredient: str) -> list[CandidateRecipe]:
        self.search_calls.append(ingredient)
        if ingredient in self.failing_searches:
            raise UpstreamSearchError(ingredient, "HTTP 503 from filter.php")
        return [
            CandidateRecipe(id=recipe_id, name=f"Recipe {recipe_id}")
            for recipe_id in self.search_results.get(ingredient, [])
        ]

    async def lookup(self, recipe_id: str) -> Optional[RecipeRecord]:
        self.lookup_calls.append(recipe_id)
        if recipe_id in self.failing_lookups:
            raise UpstreamHydrationError(recipe_id, "timeout calling lookup.php")
        return self.records.get(recipe_id)


class FakeGenerator:
    """Generative service returning canned text, or failing."""

    def __init__(self, text: Optional[str] = None, error: Optional[Exception] = None) -> None:
        self.text = text
        self.error = error
        self.requests: list[EnrichmentRequest] = []

    async def generate(self, request: EnrichmentRequest) -> str:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.text is None:
            raise EnrichmentCallError("no canned response")
        return self.text


def model_entry(recipe_id: str, **overrides) -> dict:
    """One well-formed model answer entry."""
    entry = {
        "id": recipe_id,
        "description": f"Model description for {recipe_id}.",
        "cookingTime": "25 minutes",
        "servings": 2,
        "ingredientsUsed": ["egg", "flour"],
        "additionalIngredients": ["sugar"],
        "nutrition": {"calories": 350, "protein": 12, "carbs": 45, "fat": 10},
    }
    entry.update(overrides)
    return entry


def model_answer(*entries: dict) -> str:
    return json.dumps({"recipes": list(entries)})

