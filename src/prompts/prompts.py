"""Prompts for the recipe enrichment call.

The model never chooses recipes. It receives recipes already pulled from the
recipe index and only writes descriptions, timings, servings and nutrition
estimates for them. Provides:
- get_system_instructions(): JSON-only system instruction
- summarize_recipe(): compact JSON-ready view of one matched recipe
- build_enrichment_prompt(): user prompt + system instruction as EnrichmentRequest
"""

import json
from typing import List

from src.models.models import EnrichmentRequest, MatchedRecipe


DEFAULT_SERVINGS = 4


def get_system_instructions() -> str:
    """System instruction demanding bare JSON output.

    Returns:
        str: Instruction text sent as the model's system prompt.
    """
    return (
        "You are a professional chef and nutritionist who enriches existing recipes. "
        "You never invent new recipes, rename them, or change their links. "
        "Respond ONLY with one valid JSON object. No preamble, no explanations, "
        "no markdown formatting and no code fences."
    )


def _get_output_contract(max_additional_ingredients: int) -> str:
    """Describe the JSON object the model must return.

    Args:
        max_additional_ingredients: Cap on the additionalIngredients list.

    Returns:
        str: Contract section with an example object.
    """
    example = {
        "recipes": [
            {
                "id": "52772",
                "description": "One or two appetizing sentences about the dish.",
                "cookingTime": "35 minutes",
                "servings": DEFAULT_SERVINGS,
                "ingredientsUsed": ["eggs", "flour"],
                "additionalIngredients": ["milk", "butter"],
                "nutrition": {"calories": 450, "protein": 18, "carbs": 52, "fat": 16},
            }
        ]
    }
    return f"""## Required Output

Return exactly one JSON object with a "recipes" array. Add one entry per recipe above, in the same order.

For each recipe:
- **id**: copy the recipe's "id" exactly (REQUIRED, used to match your answer to the recipe)
- **description**: 1-2 sentences, appetizing and specific to the dish
- **cookingTime**: total estimated time as text, e.g. "45 minutes"
- **servings**: integer estimate; use {DEFAULT_SERVINGS} when unclear
- **ingredientsUsed**: recipe ingredients the user already has
- **additionalIngredients**: recipe ingredients the user still needs (at most {max_additional_ingredients}, most important first, empty array if none)
- **nutrition**: per-serving estimates as plain non-negative numbers: calories (kcal), protein, carbs and fat (grams)

Do not include names, categories or URLs; those are already known.

Example:
{json.dumps(example, indent=2)}
"""


def _truncate(text: str, limit: int) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def summarize_recipe(matched: MatchedRecipe, instructions_preview_chars: int = 500) -> dict:
    """Compact view of one matched recipe for the prompt.

    Ingredients are rendered with their measures ("2 cups Flour").
    """
    record = matched.record
    ingredients = [
        f"{measure} {name}".strip() for name, measure in zip(record.ingredients, record.measures)
    ]
    return {
        "id": record.id,
        "name": record.name,
        "category": record.category,
        "cuisine": record.cuisine,
        "ingredients": ingredients,
        "instructions": _truncate(record.instructions, instructions_preview_chars),
        "imageUrl": record.image_url,
        "sourceUrl": record.source_url,
        "videoUrl": record.video_url,
    }


def build_enrichment_prompt(
    user_ingredients: List[str],
    matched: List[MatchedRecipe],
    max_additional_ingredients: int = 6,
    instructions_preview_chars: int = 500,
) -> EnrichmentRequest:
    """Build the enrichment request for a list of matched recipes.

    Args:
        user_ingredients: Normalized pantry ingredients.
        matched: Recipes to enrich, in output order.
        max_additional_ingredients: Cap on the additionalIngredients list.
        instructions_preview_chars: Instruction truncation length.

    Returns:
        EnrichmentRequest with prompt and system instruction.

    Raises:
        ValueError: If matched is empty.
    """
    if not matched:
        raise ValueError("Cannot build an enrichment prompt without recipes")

    summaries = [summarize_recipe(item, instructions_preview_chars) for item in matched]

    prompt = f"""I have these ingredients: {", ".join(user_ingredients)}.

These {len(summaries)} recipes from a recipe database use them:

{json.dumps(summaries, indent=2, ensure_ascii=False)}

{_get_output_contract(max_additional_ingredients)}"""

    return EnrichmentRequest(prompt=prompt, system_instruction=get_system_instructions())
