"""Recipe pipeline orchestration.

RecipePipeline.run() drives one request end to end:
1. Normalize ingredients
2. Search the recipe index per ingredient, dedupe (aggregation.py)
3. Hydrate candidates until enough pass the coverage policy
4. Build the enrichment prompt (prompts.py) and call the model
5. Normalize/merge the answer, or synthesize a fallback (enrichment.py)

Collaborators are injected, so tests run the whole flow with fakes.
"""

import uuid
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

from src.clients.gemini import GeminiEnrichmentClient
from src.exceptions.recipe_exceptions import EnrichmentCallError, InputValidationError
from src.models.models import EnrichmentRequest, PipelineResult
from src.pipeline.aggregation import RecipeIndex, aggregate_candidates, hydrate_matches
from src.pipeline.enrichment import resolve_enrichment
from src.pipeline.matching import MatchMode, normalize_ingredients
from src.prompts.prompts import build_enrichment_prompt
from src.utils.config import Config
from src.utils.logger import request_logger


NO_RECIPES_FOUND_MESSAGE = "No recipes found with those ingredients. Try different or more common ingredients."
NO_FULL_MATCH_MESSAGE = (
    "Found some recipes, but none use ALL of your ingredients. Try removing an ingredient or two."
)


class TextGenerator(Protocol):
    """What the pipeline needs from a generative service (GeminiEnrichmentClient or a fake)."""

    async def generate(self, request: EnrichmentRequest) -> str: ...


class PipelineSettings(BaseModel):
    """Tuning values injected into the pipeline."""

    model_config = ConfigDict(frozen=True)

    match_mode: MatchMode = MatchMode.STRICT
    max_search_ingredients: int = Field(3, ge=0)
    max_candidates: int = Field(25, ge=1)
    target_matches: int = Field(5, ge=1)
    max_additional_ingredients: int = Field(6, ge=0)
    instructions_preview_chars: int = Field(500, ge=50)

    @classmethod
    def from_config(cls, config: Config) -> "PipelineSettings":
        return cls(
            match_mode=MatchMode(config.MATCH_MODE),
            max_search_ingredients=config.MAX_SEARCH_INGREDIENTS,
            max_candidates=config.MAX_CANDIDATES,
            target_matches=config.TARGET_MATCHES,
            max_additional_ingredients=config.MAX_ADDITIONAL_INGREDIENTS,
            instructions_preview_chars=config.INSTRUCTIONS_PREVIEW_CHARS,
        )


class RecipePipeline:
    """Ingredient list in, enriched recipe suggestions out."""

    def __init__(
        self,
        recipe_index: RecipeIndex,
        generator: TextGenerator,
        settings: Optional[PipelineSettings] = None,
    ) -> None:
        self.recipe_index = recipe_index
        self.generator = generator
        self.settings = settings or PipelineSettings()

    async def run(
        self,
        ingredients: list[str],
        request_id: Optional[str] = None,
        match_mode: Optional[MatchMode] = None,
    ) -> PipelineResult:
        """Run the full pipeline for one ingredient list.

        Args:
            ingredients: Raw user ingredients.
            request_id: Correlation id for logs (generated when omitted).
            match_mode: Per-call override of settings.match_mode.

        Returns:
            PipelineResult with recipes, or an empty list and a message.

        Raises:
            InputValidationError: If no non-blank ingredient is given.
            RecipeIndexUnavailableError: If every index search failed.
        """
        log = request_logger(request_id or uuid.uuid4().hex[:8])
        settings = self.settings
        mode = match_mode or settings.match_mode

        user_ingredients = normalize_ingredients(ingredients or [])
        if not user_ingredients:
            raise InputValidationError("No ingredients provided")
        log.info(f"Pipeline start: {len(user_ingredients)} ingredient(s), mode={mode.value}")

        candidates = await aggregate_candidates(
            self.recipe_index,
            user_ingredients,
            max_search_ingredients=settings.max_search_ingredients,
            max_candidates=settings.max_candidates,
            log=log,
        )
        if not candidates:
            log.info("No candidates found, stopping before hydration")
            return PipelineResult(recipes=[], message=NO_RECIPES_FOUND_MESSAGE)

        matched = await hydrate_matches(
            self.recipe_index,
            candidates,
            user_ingredients,
            mode=mode,
            target_matches=settings.target_matches,
            log=log,
        )
        if not matched:
            message = NO_FULL_MATCH_MESSAGE if mode is MatchMode.STRICT else NO_RECIPES_FOUND_MESSAGE
            log.info(f"No recipes accepted: {message}")
            return PipelineResult(recipes=[], message=message)

        request = build_enrichment_prompt(
            user_ingredients,
            matched,
            max_additional_ingredients=settings.max_additional_ingredients,
            instructions_preview_chars=settings.instructions_preview_chars,
        )

        raw_text: Optional[str]
        try:
            raw_text = await self.generator.generate(request)
        except EnrichmentCallError as e:
            log.warning(f"Enrichment call failed: {e}")
            raw_text = None

        recipes, fallback_used = resolve_enrichment(
            raw_text,
            matched,
            user_ingredients,
            max_additional_ingredients=settings.max_additional_ingredients,
            log=log,
        )
        log.info(f"✓ Pipeline done: {len(recipes)} recipe(s), fallback_used={fallback_used}")
        return PipelineResult(recipes=recipes, fallback_used=fallback_used)


def initialize_recipe_pipeline(
    recipe_index: RecipeIndex,
    config: Config,
    generator: Optional[TextGenerator] = None,
) -> RecipePipeline:
    """Build a RecipePipeline from configuration.

    Args:
        recipe_index: Opened recipe index client (owned by the caller).
        config: Validated application configuration.
        generator: Optional generator override; defaults to a Gemini client.

    Returns:
        Ready-to-run RecipePipeline.
    """
    if generator is None:
        generator = GeminiEnrichmentClient(
            api_key=config.GEMINI_API_KEY,
            model=config.GEMINI_MODEL,
            max_output_tokens=config.MAX_OUTPUT_TOKENS,
            temperature=config.TEMPERATURE,
            timeout=config.ENRICHMENT_TIMEOUT,
        )
    return RecipePipeline(recipe_index, generator, PipelineSettings.from_config(config))
