"""Enrichment response normalization, fallback synthesis and merging.

The model's answer is untrusted text. resolve_enrichment() turns it into a
list of EnrichedRecipe aligned with the matched recipes, or synthesizes that
list from hydrated data when the answer is missing or unusable. Either way
the caller gets the same shape.

Merge rules:
- Entries are matched to recipes by the echoed "id". Only when no entry
  carries an id does alignment fall back to position.
- id, name, category, cuisine and every URL come from the hydrated record.
- Free-text and numeric fields come from the model when valid, field by
  field, otherwise from the fallback record.
"""

import logging
import math
import re
from typing import Any, List, Optional, Union

from src.exceptions.recipe_exceptions import EnrichmentParseError
from src.models.models import EnrichedRecipe, JSONExtraction, MatchedRecipe, Nutrition
from src.pipeline.matching import split_recipe_ingredients
from src.prompts.prompts import DEFAULT_SERVINGS
from src.utils.json_parsing import extract_json_object
from src.utils.logger import logger as default_logger


LoggerLike = Union[logging.Logger, logging.LoggerAdapter]

FALLBACK_COOKING_TIME = "30–45 minutes"
FALLBACK_NUTRITION = {"calories": 400, "protein": 20, "carbs": 40, "fat": 15}
NUTRITION_FIELDS = ("calories", "protein", "carbs", "fat")

_NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")
# TheMealDB uses "Unknown" for recipes without an area
_UNKNOWN_VALUES = {"", "unknown", "none", "n/a"}


# ============================================================================
# Response normalization
# ============================================================================


def normalize_enrichment_response(raw_text: Optional[str]) -> JSONExtraction:
    """Extract the JSON object and check it holds a "recipes" array.

    Returns:
        JSONExtraction whose value has a list under "recipes", or a failure.
    """
    extraction = extract_json_object(raw_text)
    if not extraction.ok:
        return extraction

    recipes = extraction.value.get("recipes")
    if not isinstance(recipes, list):
        return JSONExtraction.failure("missing 'recipes' array")
    return extraction


# ============================================================================
# Fallback synthesis
# ============================================================================


def _known(value: Optional[str]) -> Optional[str]:
    if value is None or value.strip().lower() in _UNKNOWN_VALUES:
        return None
    return value.strip()


def fallback_description(matched: MatchedRecipe) -> str:
    """Generic description templated from cuisine and category."""
    record = matched.record
    cuisine = _known(record.cuisine)
    category = _known(record.category)
    descriptor = " ".join(part for part in (cuisine, category.lower() if category else None) if part)
    if not descriptor:
        descriptor = "home-style"
    return f"{record.name}: a delicious {descriptor} dish you can make with ingredients from your pantry."


def synthesize_fallback(
    matched: MatchedRecipe,
    user_ingredients: List[str],
    max_additional_ingredients: int = 6,
) -> EnrichedRecipe:
    """Build an EnrichedRecipe from hydrated data only, with fixed estimates."""
    record = matched.record
    used, additional = split_recipe_ingredients(record.ingredients, user_ingredients)
    return EnrichedRecipe(
        id=record.id,
        name=record.name,
        description=fallback_description(matched),
        cooking_time=FALLBACK_COOKING_TIME,
        servings=DEFAULT_SERVINGS,
        category=record.category,
        cuisine=record.cuisine,
        ingredients_used=used,
        additional_ingredients=additional[:max_additional_ingredients],
        nutrition=Nutrition(**FALLBACK_NUTRITION),
        image_url=record.image_url,
        source_url=record.source_url,
        video_url=record.video_url,
    )


def synthesize_fallback_recipes(
    matched: List[MatchedRecipe],
    user_ingredients: List[str],
    max_additional_ingredients: int = 6,
) -> List[EnrichedRecipe]:
    return [synthesize_fallback(item, user_ingredients, max_additional_ingredients) for item in matched]


# ============================================================================
# Field coercion
# ============================================================================


def _coerce_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _coerce_number(value: Any) -> Optional[float]:
    """Accept 20, 20.5, "20", "20g", "about 20 g". Negative and non-finite values are rejected."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        found = _NUMBER_PATTERN.search(value.replace(",", ""))
        if not found:
            return None
        number = float(found.group())
    else:
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return number


def _coerce_servings(value: Any) -> Optional[int]:
    number = _coerce_number(value)
    if number is None:
        return None
    servings = int(round(number))
    if 1 <= servings <= 100:
        return servings
    return None


def _coerce_cooking_time(value: Any) -> Optional[str]:
    text = _coerce_text(value)
    if text:
        return text
    number = _coerce_number(value)
    if number is not None and number > 0:
        return f"{int(round(number))} minutes"
    return None


def _coerce_string_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _coerce_nutrition(entry: dict, fallback: Nutrition) -> Nutrition:
    """Per-field repair. Flat keys on the entry are accepted when "nutrition" is absent."""
    source = entry.get("nutrition")
    if not isinstance(source, dict):
        source = entry
    values = {}
    for field in NUTRITION_FIELDS:
        number = _coerce_number(source.get(field))
        values[field] = number if number is not None else getattr(fallback, field)
    return Nutrition(**values)


def apply_model_entry(
    fallback: EnrichedRecipe, entry: dict, max_additional_ingredients: int = 6
) -> EnrichedRecipe:
    """Overlay valid model fields on the fallback record.

    Identity and URL fields are never taken from the entry.
    """
    updates: dict[str, Any] = {}

    description = _coerce_text(entry.get("description"))
    if description:
        updates["description"] = description

    cooking_time = _coerce_cooking_time(entry.get("cookingTime", entry.get("cooking_time")))
    if cooking_time:
        updates["cooking_time"] = cooking_time

    servings = _coerce_servings(entry.get("servings"))
    if servings is not None:
        updates["servings"] = servings

    used = _coerce_string_list(entry.get("ingredientsUsed", entry.get("ingredients_used")))
    if used is not None:
        updates["ingredients_used"] = used

    additional = _coerce_string_list(
        entry.get("additionalIngredients", entry.get("additional_ingredients"))
    )
    if additional is not None:
        updates["additional_ingredients"] = additional[:max_additional_ingredients]

    updates["nutrition"] = _coerce_nutrition(entry, fallback.nutrition)

    return fallback.model_copy(update=updates)


# ============================================================================
# Merging
# ============================================================================


def _entry_id(entry: Any) -> Optional[str]:
    if not isinstance(entry, dict):
        return None
    value = entry.get("id")
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


def align_entries(
    matched: List[MatchedRecipe], entries: List[Any], log: Optional[LoggerLike] = None
) -> List[Optional[dict]]:
    """Pair each matched recipe with its model entry (or None).

    Keyed by echoed id when any entry has one; positional otherwise.
    """
    log = log or default_logger

    if not any(_entry_id(entry) for entry in entries):
        if entries:
            log.debug("Model entries carry no ids, aligning by position")
        return [
            entries[i] if i < len(entries) and isinstance(entries[i], dict) else None
            for i in range(len(matched))
        ]

    by_id: dict[str, dict] = {}
    for entry in entries:
        entry_id = _entry_id(entry)
        if entry_id and entry_id not in by_id:
            by_id[entry_id] = entry

    known_ids = {item.id for item in matched}
    unknown = [entry_id for entry_id in by_id if entry_id not in known_ids]
    if unknown:
        log.warning(f"Ignoring model entries for unknown recipe ids: {', '.join(unknown)}")

    return [by_id.get(item.id) for item in matched]


def merge_enrichment(
    matched: List[MatchedRecipe],
    entries: List[Any],
    user_ingredients: List[str],
    max_additional_ingredients: int = 6,
    log: Optional[LoggerLike] = None,
) -> tuple[List[EnrichedRecipe], int]:
    """Reconcile model entries with authoritative records, in matched order.

    Returns:
        (recipes, number of recipes that had no model entry and were synthesized)
    """
    log = log or default_logger
    aligned = align_entries(matched, entries, log)

    merged = []
    synthesized = 0
    for item, entry in zip(matched, aligned):
        fallback = synthesize_fallback(item, user_ingredients, max_additional_ingredients)
        if entry is None:
            log.warning(f"No model output for recipe {item.id}, using fallback fields")
            merged.append(fallback)
            synthesized += 1
            continue
        merged.append(apply_model_entry(fallback, entry, max_additional_ingredients))
    return merged, synthesized


def resolve_enrichment(
    raw_text: Optional[str],
    matched: List[MatchedRecipe],
    user_ingredients: List[str],
    max_additional_ingredients: int = 6,
    log: Optional[LoggerLike] = None,
) -> tuple[List[EnrichedRecipe], bool]:
    """Normalize model output and merge it, or fall back.

    Args:
        raw_text: Model text, or None when the call itself failed.
        matched: Recipes that were sent for enrichment.
        user_ingredients: Normalized pantry ingredients.
        max_additional_ingredients: Cap on additional ingredients per recipe.
        log: Logger (request-scoped adapter in production).

    Returns:
        (recipes, fallback_used). fallback_used is True when any recipe was
        synthesized without model output.

    Raises:
        EnrichmentParseError: If the output is unusable and matched is empty.
    """
    log = log or default_logger

    if raw_text is None:
        parsed = JSONExtraction.failure("enrichment call failed")
    else:
        parsed = normalize_enrichment_response(raw_text)

    if parsed.ok:
        recipes, synthesized = merge_enrichment(
            matched, parsed.value["recipes"], user_ingredients, max_additional_ingredients, log
        )
        return recipes, synthesized > 0

    if not matched:
        raise EnrichmentParseError(parsed.reason or "unknown")

    log.warning(f"Using fallback enrichment for {len(matched)} recipe(s): {parsed.reason}")
    return synthesize_fallback_recipes(matched, user_ingredients, max_additional_ingredients), True
