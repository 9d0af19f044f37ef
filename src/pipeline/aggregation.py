"""Candidate aggregation and detail hydration.

aggregate_candidates(): one index search per ingredient, merged first-seen-wins.
hydrate_matches(): sequential lookups with the coverage policy as an early-exit
filter. Selection is greedy: the first records that pass win, not the best ones.
"""

import asyncio
import logging
from typing import List, Optional, Protocol, Union

from src.exceptions.recipe_exceptions import (
    RecipeIndexUnavailableError,
    UpstreamHydrationError,
    UpstreamSearchError,
)
from src.models.models import CandidateRecipe, MatchedRecipe, RecipeRecord
from src.pipeline.matching import MatchMode, match_recipe
from src.utils.logger import logger as default_logger


LoggerLike = Union[logging.Logger, logging.LoggerAdapter]


class RecipeIndex(Protocol):
    """What the pipeline needs from a recipe index (MealDBClient or a test fake)."""

    async def search_by_ingredient(self, ingredient: str) -> List[CandidateRecipe]: ...

    async def lookup(self, recipe_id: str) -> Optional[RecipeRecord]: ...


async def aggregate_candidates(
    index: RecipeIndex,
    ingredients: List[str],
    max_search_ingredients: int = 3,
    max_candidates: int = 25,
    log: Optional[LoggerLike] = None,
) -> List[CandidateRecipe]:
    """Search each ingredient and merge the hits.

    Searches run concurrently; gather() keeps ingredient order, so the merge
    is the same as running them one after another.

    Args:
        index: Recipe index collaborator.
        ingredients: Normalized user ingredients.
        max_search_ingredients: Only the first N are searched (0 = all).
        max_candidates: Bound on the merged list.
        log: Logger (request-scoped adapter in production).

    Returns:
        Deduplicated candidates, first occurrence wins, at most max_candidates.

    Raises:
        RecipeIndexUnavailableError: If every search failed.
    """
    log = log or default_logger
    terms = ingredients[:max_search_ingredients] if max_search_ingredients else list(ingredients)
    if not terms:
        return []

    log.info(f"Searching recipe index for {len(terms)} ingredient(s): {', '.join(terms)}")
    results = await asyncio.gather(
        *(index.search_by_ingredient(term) for term in terms),
        return_exceptions=True,
    )

    merged: List[CandidateRecipe] = []
    seen: set[str] = set()
    failures = 0
    for term, result in zip(terms, results):
        if isinstance(result, UpstreamSearchError):
            failures += 1
            log.warning(f"Skipping ingredient '{term}': {result}")
            continue
        if isinstance(result, BaseException):
            # Unexpected errors are not a routine upstream failure
            raise result

        for candidate in result:
            if candidate.id in seen:
                continue
            seen.add(candidate.id)
            merged.append(candidate)

    if failures == len(terms):
        raise RecipeIndexUnavailableError(attempted=failures)

    if len(merged) > max_candidates:
        log.debug(f"Bounding {len(merged)} candidates to {max_candidates}")
        merged = merged[:max_candidates]

    log.info(f"✓ {len(merged)} unique candidate recipe(s)")
    return merged


async def hydrate_matches(
    index: RecipeIndex,
    candidates: List[CandidateRecipe],
    ingredients: List[str],
    mode: MatchMode = MatchMode.STRICT,
    target_matches: int = 5,
    log: Optional[LoggerLike] = None,
) -> List[MatchedRecipe]:
    """Hydrate candidates in order until target_matches pass the coverage policy.

    Args:
        index: Recipe index collaborator.
        candidates: Deduplicated candidates in search order.
        ingredients: Normalized user ingredients.
        mode: Coverage policy.
        target_matches: Stop after this many accepted recipes.
        log: Logger (request-scoped adapter in production).

    Returns:
        Accepted recipes in candidate order (may be empty).
    """
    log = log or default_logger
    matched: List[MatchedRecipe] = []

    for candidate in candidates:
        if len(matched) >= target_matches:
            break

        try:
            record = await index.lookup(candidate.id)
        except UpstreamHydrationError as e:
            log.warning(f"Skipping recipe {candidate.id}: {e}")
            continue

        if record is None:
            log.warning(f"Skipping recipe {candidate.id}: not found in index")
            continue

        result = match_recipe(record, ingredients, mode)
        if result is None:
            log.debug(f"Rejected '{record.name}' ({record.id}): missing ingredients")
            continue

        matched.append(result)
        log.debug(f"Accepted '{record.name}' ({record.id}) [{len(matched)}/{target_matches}]")

    log.info(f"✓ {len(matched)} recipe(s) accepted in {mode.value} mode")
    return matched
