"""
Custom exception classes for the pantry recipe pipeline.

Each error carries the HTTP status the API layer answers with when the error
reaches it. Most never do: search, hydration and enrichment failures are
recovered inside the pipeline.
"""


class RecipeServiceError(Exception):
    """Base exception for the recipe service"""
    status_code = 500
    public_message = "Internal server error"


class InputValidationError(RecipeServiceError):
    """Raised when the ingredient list is missing, not a list, or empty"""
    status_code = 400
    public_message = "Please provide ingredients"


class UpstreamSearchError(RecipeServiceError):
    """Raised when searching the recipe index for one ingredient fails"""
    status_code = 502
    public_message = "Recipe search failed"

    def __init__(self, ingredient: str, error: str):
        self.ingredient = ingredient
        self.error = error
        super().__init__(f"Search for '{ingredient}' failed: {error}")


class UpstreamHydrationError(RecipeServiceError):
    """Raised when loading one recipe's details fails"""
    status_code = 502
    public_message = "Recipe lookup failed"

    def __init__(self, recipe_id: str, error: str):
        self.recipe_id = recipe_id
        self.error = error
        super().__init__(f"Lookup of recipe {recipe_id} failed: {error}")


class RecipeIndexUnavailableError(RecipeServiceError):
    """Raised when every search call failed and no recipe data exists"""
    status_code = 502
    public_message = "Recipe database is unavailable"

    def __init__(self, attempted: int):
        self.attempted = attempted
        super().__init__(f"All {attempted} recipe searches failed")


class EnrichmentCallError(RecipeServiceError):
    """Raised when the generative model call fails or returns nothing"""
    status_code = 502
    public_message = "Failed to get recipes from AI"


class EnrichmentParseError(RecipeServiceError):
    """Raised when model output is unusable and nothing can be synthesized instead"""
    status_code = 502
    public_message = "Failed to parse AI response"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Enrichment output unusable: {reason}")
