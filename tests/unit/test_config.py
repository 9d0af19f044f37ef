"""Unit tests for configuration management."""

import pytest

from src.utils.config import Config


CONFIG_ENV_VARS = [
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "TEMPERATURE",
    "MAX_OUTPUT_TOKENS",
    "ENRICHMENT_TIMEOUT",
    "MEALDB_BASE_URL",
    "REQUEST_TIMEOUT",
    "MAX_RETRIES",
    "MATCH_MODE",
    "MAX_SEARCH_INGREDIENTS",
    "MAX_CANDIDATES",
    "TARGET_MATCHES",
    "MAX_ADDITIONAL_INGREDIENTS",
    "INSTRUCTIONS_PREVIEW_CHARS",
    "PORT",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every config variable so defaults apply."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def valid_env(clean_env):
    """Environment that passes validation."""
    clean_env.setenv("GEMINI_API_KEY", "test_gemini_key")
    return clean_env


class TestConfigInitialization:
    """Test Config class initialization and environment variable loading."""

    def test_config_loads_default_values(self, clean_env):
        """Test that Config uses default values when env vars not set."""
        config = Config()

        assert config.GEMINI_API_KEY == ""
        assert config.GEMINI_MODEL == "gemini-2.5-flash"
        assert config.TEMPERATURE == 0.4
        assert config.MAX_OUTPUT_TOKENS == 4096
        assert config.ENRICHMENT_TIMEOUT == 45
        assert config.MEALDB_BASE_URL == "https://www.themealdb.com/api/json/v1/1"
        assert config.REQUEST_TIMEOUT == 10
        assert config.MAX_RETRIES == 2
        assert config.MATCH_MODE == "strict"
        assert config.MAX_SEARCH_INGREDIENTS == 3
        assert config.MAX_CANDIDATES == 25
        assert config.TARGET_MATCHES == 5
        assert config.MAX_ADDITIONAL_INGREDIENTS == 6
        assert config.INSTRUCTIONS_PREVIEW_CHARS == 500
        assert config.PORT == 7777

    def test_config_loads_from_environment(self, clean_env):
        """Test that Config loads values from environment variables."""
        clean_env.setenv("GEMINI_API_KEY", "test_gemini_key")
        clean_env.setenv("GEMINI_MODEL", "custom-model")
        clean_env.setenv("MEALDB_BASE_URL", "http://localhost:9000/api")
        clean_env.setenv("TARGET_MATCHES", "3")
        clean_env.setenv("PORT", "8888")

        config = Config()

        assert config.GEMINI_API_KEY == "test_gemini_key"
        assert config.GEMINI_MODEL == "custom-model"
        assert config.MEALDB_BASE_URL == "http://localhost:9000/api"
        assert config.TARGET_MATCHES == 3
        assert config.PORT == 8888

    def test_config_converts_numeric_types(self, clean_env):
        """Test that Config properly converts numeric environment variables."""
        clean_env.setenv("TEMPERATURE", "0.7")
        clean_env.setenv("MAX_OUTPUT_TOKENS", "2048")
        clean_env.setenv("REQUEST_TIMEOUT", "2.5")
        clean_env.setenv("MAX_CANDIDATES", "40")

        config = Config()

        assert isinstance(config.TEMPERATURE, float)
        assert isinstance(config.MAX_OUTPUT_TOKENS, int)
        assert isinstance(config.REQUEST_TIMEOUT, float)
        assert config.REQUEST_TIMEOUT == 2.5
        assert isinstance(config.MAX_CANDIDATES, int)

    def test_match_mode_is_lowercased(self, clean_env):
        clean_env.setenv("MATCH_MODE", "RELAXED")
        assert Config().MATCH_MODE == "relaxed"


class TestConfigValidation:
    """Test Config validation logic."""

    def test_validate_succeeds_with_defaults_and_key(self, valid_env):
        """Test that validate() accepts the defaults once the API key is set."""
        Config().validate()  # Should not raise

    def test_validate_raises_error_for_missing_gemini_key(self, clean_env):
        """Test that validate() raises ValueError if GEMINI_API_KEY missing."""
        clean_env.setenv("GEMINI_API_KEY", "")

        config = Config()
        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            config.validate()

    def test_validate_rejects_unknown_match_mode(self, valid_env):
        valid_env.setenv("MATCH_MODE", "fuzzy")
        with pytest.raises(ValueError, match="MATCH_MODE"):
            Config().validate()

    def test_validate_accepts_relaxed_mode(self, valid_env):
        valid_env.setenv("MATCH_MODE", "relaxed")
        Config().validate()

    @pytest.mark.parametrize("value", ["-0.1", "1.5"])
    def test_validate_rejects_temperature_out_of_range(self, valid_env, value):
        valid_env.setenv("TEMPERATURE", value)
        with pytest.raises(ValueError, match="TEMPERATURE"):
            Config().validate()

    def test_validate_rejects_small_token_budget(self, valid_env):
        valid_env.setenv("MAX_OUTPUT_TOKENS", "100")
        with pytest.raises(ValueError, match="MAX_OUTPUT_TOKENS"):
            Config().validate()

    def test_validate_rejects_zero_retries(self, valid_env):
        valid_env.setenv("MAX_RETRIES", "0")
        with pytest.raises(ValueError, match="MAX_RETRIES"):
            Config().validate()

    @pytest.mark.parametrize("name", ["REQUEST_TIMEOUT", "ENRICHMENT_TIMEOUT"])
    def test_validate_rejects_non_positive_timeouts(self, valid_env, name):
        valid_env.setenv(name, "0")
        with pytest.raises(ValueError, match="TIMEOUT"):
            Config().validate()

    def test_validate_allows_uncapped_search(self, valid_env):
        """Test that MAX_SEARCH_INGREDIENTS=0 means 'search every ingredient'."""
        valid_env.setenv("MAX_SEARCH_INGREDIENTS", "0")
        Config().validate()

    @pytest.mark.parametrize(
        "name, value",
        [
            ("MAX_SEARCH_INGREDIENTS", "-1"),
            ("MAX_CANDIDATES", "0"),
            ("TARGET_MATCHES", "0"),
            ("MAX_ADDITIONAL_INGREDIENTS", "-2"),
            ("INSTRUCTIONS_PREVIEW_CHARS", "10"),
        ],
    )
    def test_validate_rejects_bad_pipeline_bounds(self, valid_env, name, value):
        valid_env.setenv(name, value)
        with pytest.raises(ValueError, match=name):
            Config().validate()


class TestConfigEnvironmentOverride:
    """Test that environment variables override other sources."""

    def test_system_env_overrides_defaults(self, clean_env):
        """Test that system environment variables override default values."""
        clean_env.setenv("MAX_RETRIES", "4")
        config = Config()
        assert config.MAX_RETRIES == 4

    def test_invalid_numeric_value_raises(self, clean_env):
        """Test that non-numeric values for numeric settings fail at load time."""
        clean_env.setenv("PORT", "not-a-port")
        with pytest.raises(ValueError):
            Config()
