"""TheMealDB client with timeouts and retry logic.

This module provides the MealDBClient class wrapping the two index calls the
pipeline needs:
- search_by_ingredient(): filter.php?i=<ingredient> -> candidate recipes
- lookup(): lookup.php?i=<id> -> one full RecipeRecord, or None

The index is free and keyless but unreliable, so transient failures
(timeouts, connection resets, 429/5xx) are retried with backoff before a
typed error is raised.
"""

import asyncio
from typing import Any, List, Optional

import aiohttp

from src.exceptions.recipe_exceptions import UpstreamHydrationError, UpstreamSearchError
from src.models.models import CandidateRecipe, RecipeRecord
from src.utils.logger import logger


TRANSIENT_STATUSES = {429, 500, 502, 503, 504}


class MealDBRequestError(Exception):
    """Single failed request. `transient` marks errors worth retrying."""

    def __init__(self, message: str, transient: bool) -> None:
        super().__init__(message)
        self.transient = transient


class MealDBClient:
    """Async client for TheMealDB JSON API.

    Owns one aiohttp session, opened on first use. Use as an async context
    manager or call aclose() when done.
    """

    def __init__(
        self,
        base_url: str = "https://www.themealdb.com/api/json/v1/1",
        timeout: float = 10.0,
        max_retries: int = 2,
        retry_delays: Optional[list[float]] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """Initialize MealDBClient with configuration.

        Args:
            base_url: API root including the key segment.
            timeout: Total seconds allowed per request.
            max_retries: Attempts per call, including the first one.
            retry_delays: Delays in seconds between attempts. Defaults to [1, 2, 4].
            session: Optional externally managed session (not closed by aclose()).

        Raises:
            ValueError: If base_url is empty or max_retries < 1.
        """
        if not base_url:
            raise ValueError("MEALDB_BASE_URL is required")
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delays = retry_delays or [1, 2, 4]
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "MealDBClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"User-Agent": "pantry-recipes/1.0"},
            )
            self._owns_session = True
        return self._session

    async def _request_once(self, endpoint: str, params: dict[str, str]) -> dict[str, Any]:
        """Perform one GET and decode the JSON body.

        Raises:
            MealDBRequestError: On timeouts, client errors, bad status or bad JSON.
        """
        url = f"{self.base_url}/{endpoint}"
        try:
            async with self._get_session().get(url, params=params) as response:
                if response.status != 200:
                    raise MealDBRequestError(
                        f"HTTP {response.status} from {endpoint}",
                        transient=response.status in TRANSIENT_STATUSES,
                    )
                # TheMealDB sometimes answers with a text/html content type
                data = await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise MealDBRequestError(f"timeout calling {endpoint}", transient=True) from e
        except aiohttp.ClientConnectionError as e:
            raise MealDBRequestError(f"connection error calling {endpoint}: {e}", transient=True) from e
        except (aiohttp.ContentTypeError, ValueError) as e:
            raise MealDBRequestError(f"invalid JSON from {endpoint}: {e}", transient=False) from e
        except aiohttp.ClientError as e:
            # Truncated payloads and other client-side failures
            raise MealDBRequestError(f"request failed calling {endpoint}: {e}", transient=True) from e

        if not isinstance(data, dict):
            raise MealDBRequestError(f"unexpected payload from {endpoint}", transient=False)
        return data

    async def _get_json(self, endpoint: str, params: dict[str, str]) -> dict[str, Any]:
        """GET with retries on transient failures.

        Raises:
            MealDBRequestError: After the last attempt, or immediately for permanent errors.
        """
        last_exception: Optional[MealDBRequestError] = None
        for attempt in range(self.max_retries):
            try:
                return await self._request_once(endpoint, params)
            except MealDBRequestError as e:
                last_exception = e
                if not e.transient or attempt == self.max_retries - 1:
                    break
                delay = self.retry_delays[attempt] if attempt < len(self.retry_delays) else self.retry_delays[-1]
                logger.debug(
                    f"{endpoint} failed ({e}), retrying in {delay}s (attempt {attempt + 1}/{self.max_retries})"
                )
                await asyncio.sleep(delay)

        raise last_exception

    @staticmethod
    def _meals(payload: dict[str, Any]) -> List[dict]:
        # {"meals": null} is how TheMealDB says "no results"
        meals = payload.get("meals")
        if not isinstance(meals, list):
            return []
        return [meal for meal in meals if isinstance(meal, dict) and meal.get("idMeal")]

    async def search_by_ingredient(self, ingredient: str) -> List[CandidateRecipe]:
        """Find recipes listing an ingredient.

        Args:
            ingredient: Normalized ingredient name.

        Returns:
            Candidates in index order (may be empty).

        Raises:
            UpstreamSearchError: If the index could not be queried.
        """
        try:
            payload = await self._get_json("filter.php", {"i": ingredient})
        except MealDBRequestError as e:
            raise UpstreamSearchError(ingredient, str(e)) from e

        candidates = [CandidateRecipe.from_mealdb(meal) for meal in self._meals(payload)]
        logger.debug(f"Search '{ingredient}' returned {len(candidates)} candidates")
        return candidates

    async def lookup(self, recipe_id: str) -> Optional[RecipeRecord]:
        """Load the full record for one recipe id.

        Returns:
            RecipeRecord, or None when the index has no such recipe.

        Raises:
            UpstreamHydrationError: If the index could not be queried or the record is unusable.
        """
        try:
            payload = await self._get_json("lookup.php", {"i": recipe_id})
        except MealDBRequestError as e:
            raise UpstreamHydrationError(recipe_id, str(e)) from e

        meals = self._meals(payload)
        if not meals:
            return None
        try:
            return RecipeRecord.from_mealdb(meals[0])
        except ValueError as e:
            raise UpstreamHydrationError(recipe_id, f"invalid record: {e}") from e
