"""Data models and schemas for the pantry recipe service.

Defines Pydantic models for request/response validation and domain objects.
All models use Pydantic v2 for strict validation and OpenAPI schema generation.

Lifecycle of a recipe through one request:
    CandidateRecipe (search hit) -> RecipeRecord (hydrated, frozen)
    -> MatchedRecipe (passed the coverage policy) -> EnrichedRecipe (returned)
"""

from typing import Any, List, Optional, Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


# TheMealDB stores ingredients in numbered columns strIngredient1..strIngredient20
MEALDB_INGREDIENT_SLOTS = 20


def _clean(value: Any) -> Optional[str]:
    """Return a stripped string, or None for null/blank values."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class RecipeRequest(BaseModel):
    """Request schema for recipe suggestions.

    Blank entries are dropped; an empty list after that is rejected.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    ingredients: Annotated[
        List[str],
        Field(min_length=1, max_length=50, description="Pantry ingredients (1-50 items)"),
    ]

    @field_validator("ingredients", mode="after")
    @classmethod
    def drop_blank_ingredients(cls, ingredients: List[str]) -> List[str]:
        """Remove empty strings and require at least one real ingredient."""
        cleaned = [item for item in ingredients if item]
        if not cleaned:
            raise ValueError("ingredients must contain at least one non-blank string")
        return cleaned


class CandidateRecipe(BaseModel):
    """Search hit from the recipe index: identifier plus partial record."""

    model_config = ConfigDict(frozen=True)

    id: Annotated[str, Field(min_length=1, description="Recipe identifier in the index")]
    name: Annotated[str, Field("", description="Recipe name as listed in search results")]
    image_url: Annotated[Optional[str], Field(None, description="Thumbnail URL")]

    @classmethod
    def from_mealdb(cls, meal: dict) -> "CandidateRecipe":
        """Build from a TheMealDB filter.php entry."""
        return cls(
            id=str(meal["idMeal"]).strip(),
            name=_clean(meal.get("strMeal")) or "",
            image_url=_clean(meal.get("strMealThumb")),
        )


class RecipeRecord(BaseModel):
    """Fully hydrated recipe. Authoritative source of names and URLs.

    Immutable once hydrated. `ingredients` and `measures` are parallel lists.
    """

    model_config = ConfigDict(frozen=True)

    id: Annotated[str, Field(min_length=1)]
    name: Annotated[str, Field(min_length=1, max_length=200)]
    category: Optional[str] = None
    cuisine: Optional[str] = None
    ingredients: Annotated[List[str], Field(default_factory=list)]
    measures: Annotated[List[str], Field(default_factory=list)]
    instructions: str = ""
    image_url: Optional[str] = None
    source_url: Optional[str] = None
    video_url: Optional[str] = None

    @classmethod
    def from_mealdb(cls, meal: dict) -> "RecipeRecord":
        """Build from a TheMealDB lookup.php entry.

        Ingredient slots with a blank name are skipped; their measure goes with them.
        """
        ingredients: List[str] = []
        measures: List[str] = []
        for slot in range(1, MEALDB_INGREDIENT_SLOTS + 1):
            name = _clean(meal.get(f"strIngredient{slot}"))
            if not name:
                continue
            ingredients.append(name)
            measures.append(_clean(meal.get(f"strMeasure{slot}")) or "")

        return cls(
            id=str(meal["idMeal"]).strip(),
            name=_clean(meal.get("strMeal")) or f"Recipe {meal['idMeal']}",
            category=_clean(meal.get("strCategory")),
            cuisine=_clean(meal.get("strArea")),
            ingredients=ingredients,
            measures=measures,
            instructions=_clean(meal.get("strInstructions")) or "",
            image_url=_clean(meal.get("strMealThumb")),
            source_url=_clean(meal.get("strSource")),
            video_url=_clean(meal.get("strYoutube")),
        )


class MatchedRecipe(BaseModel):
    """A RecipeRecord accepted by the coverage policy, with its overlap report."""

    record: RecipeRecord
    normalized_ingredients: List[str]
    matched_ingredients: Annotated[
        List[str], Field(default_factory=list, description="User ingredients the recipe covers")
    ]
    missing_ingredients: Annotated[
        List[str], Field(default_factory=list, description="User ingredients the recipe lacks")
    ]

    @property
    def id(self) -> str:
        return self.record.id


class Nutrition(BaseModel):
    """Per-serving nutrition estimate. Macros in grams."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    calories: Annotated[float, Field(ge=0)]
    protein: Annotated[float, Field(ge=0, description="grams")]
    carbs: Annotated[float, Field(ge=0, description="grams")]
    fat: Annotated[float, Field(ge=0, description="grams")]


class EnrichedRecipe(BaseModel):
    """Recipe suggestion returned to the caller.

    Serialized with camelCase keys (cookingTime, additionalIngredients, imageUrl, ...).
    URL fields always come from the hydrated RecipeRecord.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    description: Annotated[str, Field(min_length=1)]
    cooking_time: str
    servings: Annotated[int, Field(ge=1, le=100)]
    category: Optional[str] = None
    cuisine: Optional[str] = None
    ingredients_used: Annotated[List[str], Field(default_factory=list)]
    additional_ingredients: Annotated[List[str], Field(default_factory=list)]
    nutrition: Nutrition
    image_url: Optional[str] = None
    source_url: Optional[str] = None
    video_url: Optional[str] = None


class PipelineResult(BaseModel):
    """Outcome of one pipeline run.

    Either a non-empty recipe list, or an empty list with an explanatory message.
    """

    recipes: Annotated[List[EnrichedRecipe], Field(default_factory=list)]
    message: Optional[str] = None
    fallback_used: bool = False

    @model_validator(mode="after")
    def validate_recipes_or_message(self) -> "PipelineResult":
        """Reject the mixed state (recipes plus message) and the empty state (neither)."""
        if self.recipes and self.message:
            raise ValueError("message is only allowed when recipes is empty")
        if not self.recipes and not self.message:
            raise ValueError("an empty result requires a message")
        return self


class RecipeResponse(BaseModel):
    """HTTP success body."""

    recipes: List[EnrichedRecipe]
    message: Annotated[Optional[str], Field(None, description="Set only when recipes is empty")]


class ErrorResponse(BaseModel):
    """HTTP failure body."""

    error: str
    details: Optional[str] = None


class JSONExtraction(BaseModel):
    """Tagged result of pulling a JSON object out of free-form model text."""

    ok: bool
    value: Optional[dict[str, Any]] = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, value: dict[str, Any]) -> "JSONExtraction":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, reason: str) -> "JSONExtraction":
        return cls(ok=False, reason=reason)


class EnrichmentRequest(BaseModel):
    """Prompt pair handed to the generative service."""

    prompt: Annotated[str, Field(min_length=1)]
    system_instruction: Annotated[str, Field(min_length=1)]
