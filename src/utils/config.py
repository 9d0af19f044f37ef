"""Configuration management for Pantry Recipe Service.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        # Enrichment Model: writes descriptions, timings and nutrition estimates
        # Default: gemini-2.5-flash (fast, cost-effective for short structured output)
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
        # Temperature: Controls randomness (0.0 = deterministic, 1.0 = max randomness)
        self.TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.4"))
        # Max Output Tokens: five enriched recipes fit comfortably in 4096
        self.MAX_OUTPUT_TOKENS: int = int(os.getenv("MAX_OUTPUT_TOKENS", "4096"))
        # Enrichment Timeout: seconds to wait for the model before falling back
        self.ENRICHMENT_TIMEOUT: float = float(os.getenv("ENRICHMENT_TIMEOUT", "45"))

        # TheMealDB: free public recipe index (test key "1" needs no signup)
        self.MEALDB_BASE_URL: str = os.getenv("MEALDB_BASE_URL", "https://www.themealdb.com/api/json/v1/1")
        # Request Timeout: seconds per recipe index call
        self.REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "10"))
        # MAX_RETRIES: attempts per recipe index call (transient errors only)
        self.MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "2"))

        # Match Mode: "strict" or "relaxed"
        # "strict": recipe must contain ALL of the user's ingredients
        # "relaxed": any hydrated candidate is kept, overlap is only reported
        self.MATCH_MODE: str = os.getenv("MATCH_MODE", "strict").lower()
        # Only the first N ingredients are searched. 0 = search every ingredient
        self.MAX_SEARCH_INGREDIENTS: int = int(os.getenv("MAX_SEARCH_INGREDIENTS", "3"))
        # Upper bound on deduplicated candidates considered for hydration
        self.MAX_CANDIDATES: int = int(os.getenv("MAX_CANDIDATES", "25"))
        # Hydration stops once this many recipes are accepted
        self.TARGET_MATCHES: int = int(os.getenv("TARGET_MATCHES", "5"))
        # Cap on "additional ingredients" listed per recipe
        self.MAX_ADDITIONAL_INGREDIENTS: int = int(os.getenv("MAX_ADDITIONAL_INGREDIENTS", "6"))
        # Instructions are truncated to this many characters in the prompt
        self.INSTRUCTIONS_PREVIEW_CHARS: int = int(os.getenv("INSTRUCTIONS_PREVIEW_CHARS", "500"))

        # Server Port
        self.PORT: int = int(os.getenv("PORT", "7777"))

    def validate(self) -> None:
        """Validate required configuration.

        Raises:
            ValueError: If required API keys are missing or invalid values provided.
        """
        if not self.GEMINI_API_KEY:
            raise ValueError("GEMINI_API_KEY environment variable is required")
        if self.MATCH_MODE not in ("strict", "relaxed"):
            raise ValueError(
                f"MATCH_MODE must be 'strict' or 'relaxed', got: {self.MATCH_MODE}"
            )
        if not (0.0 <= self.TEMPERATURE <= 1.0):
            raise ValueError(
                f"TEMPERATURE must be between 0.0 and 1.0, got: {self.TEMPERATURE}"
            )
        if self.MAX_OUTPUT_TOKENS < 512:
            raise ValueError(
                f"MAX_OUTPUT_TOKENS must be at least 512, got: {self.MAX_OUTPUT_TOKENS}"
            )
        if self.MAX_RETRIES < 1:
            raise ValueError(
                f"MAX_RETRIES must be at least 1, got: {self.MAX_RETRIES}"
            )
        if self.REQUEST_TIMEOUT <= 0 or self.ENRICHMENT_TIMEOUT <= 0:
            raise ValueError("REQUEST_TIMEOUT and ENRICHMENT_TIMEOUT must be positive")
        if self.MAX_SEARCH_INGREDIENTS < 0:
            raise ValueError(
                f"MAX_SEARCH_INGREDIENTS must be 0 (no cap) or more, got: {self.MAX_SEARCH_INGREDIENTS}"
            )
        if self.MAX_CANDIDATES < 1:
            raise ValueError(
                f"MAX_CANDIDATES must be at least 1, got: {self.MAX_CANDIDATES}"
            )
        if self.TARGET_MATCHES < 1:
            raise ValueError(
                f"TARGET_MATCHES must be at least 1, got: {self.TARGET_MATCHES}"
            )
        if self.MAX_ADDITIONAL_INGREDIENTS < 0:
            raise ValueError(
                f"MAX_ADDITIONAL_INGREDIENTS must not be negative, got: {self.MAX_ADDITIONAL_INGREDIENTS}"
            )
        if self.INSTRUCTIONS_PREVIEW_CHARS < 50:
            raise ValueError(
                f"INSTRUCTIONS_PREVIEW_CHARS must be at least 50, got: {self.INSTRUCTIONS_PREVIEW_CHARS}"
            )


# Module-level config instance. Validated at start-up by app.py and query.py.
config = Config()
