"""Unit tests for app.py - HTTP surface of the recipe service.

Tests verify:
- Request validation (400 with "Please provide ingredients")
- Success bodies (camelCase recipes, message only on empty results)
- Error mapping for pipeline failures (502), unexpected errors (500), wrong methods and unknown routes
- CORS and X-Request-ID headers
- Start-up wiring via the lifespan handler
"""

from typing import Optional

import pytest
from fastapi.testclient import TestClient

from app import create_app, get_pipeline
from src.exceptions.recipe_exceptions import RecipeIndexUnavailableError
from src.models.models import EnrichedRecipe, Nutrition, PipelineResult
from src.pipeline.pipeline import NO_FULL_MATCH_MESSAGE, RecipePipeline
from src.utils.config import config


def _recipe(recipe_id: str = "52772") -> EnrichedRecipe:
    return EnrichedRecipe(
        id=recipe_id,
        name="Teriyaki Chicken Casserole",
        description="Sticky, savoury chicken baked with vegetables.",
        cooking_time="45 minutes",
        servings=4,
        category="Chicken",
        cuisine="Japanese",
        ingredients_used=["chicken breasts"],
        additional_ingredients=["soy sauce", "brown sugar"],
        nutrition=Nutrition(calories=450, protein=35, carbs=40, fat=12),
        image_url="https://www.themealdb.com/images/media/meals/wvpsxx1468256321.jpg",
        source_url=None,
        video_url="https://www.youtube.com/watch?v=4aZr5hZXP_s",
    )


class StubPipeline:
    """Records calls and returns a canned result (or raises)."""

    def __init__(self, result: Optional[PipelineResult] = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls = []

    async def run(self, ingredients, request_id=None, match_mode=None):
        self.calls.append({"ingredients": ingredients, "request_id": request_id})
        if self.error is not None:
            raise self.error
        return self.result


def _client(pipeline: StubPipeline) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    return TestClient(app, raise_server_exceptions=False)


class TestRequestValidation:
    """Tests for 400 responses."""

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"ingredients": []},
            {"ingredients": "egg, flour"},
            {"ingredients": [1, 2]},
            {"ingredients": ["", "   "]},
        ],
    )
    def test_invalid_bodies_rejected(self, body):
        pipeline = StubPipeline()
        response = _client(pipeline).post("/api/recipes", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "Please provide ingredients"
        assert "details" in response.json()
        assert pipeline.calls == []

    def test_malformed_json_rejected(self):
        response = _client(StubPipeline()).post(
            "/api/recipes", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Please provide ingredients"


class TestSuggestRecipes:
    """Tests for 200 responses."""

    def test_recipes_serialized_camel_case_without_message(self):
        pipeline = StubPipeline(PipelineResult(recipes=[_recipe()]))
        response = _client(pipeline).post("/api/recipes", json={"ingredients": [" chicken ", ""]})

        assert response.status_code == 200
        body = response.json()
        assert "message" not in body
        assert "fallbackUsed" not in body and "fallback_used" not in body

        recipe = body["recipes"][0]
        assert recipe["id"] == "52772"
        assert recipe["cookingTime"] == "45 minutes"
        assert recipe["additionalIngredients"] == ["soy sauce", "brown sugar"]
        assert recipe["ingredientsUsed"] == ["chicken breasts"]
        assert recipe["imageUrl"].endswith(".jpg")
        assert recipe["sourceUrl"] is None
        assert recipe["nutrition"]["calories"] == 450

        assert pipeline.calls[0]["ingredients"] == ["chicken"]

    def test_empty_result_includes_message(self):
        pipeline = StubPipeline(PipelineResult(recipes=[], message=NO_FULL_MATCH_MESSAGE))
        response = _client(pipeline).post("/api/recipes", json={"ingredients": ["egg", "durian"]})

        assert response.status_code == 200
        assert response.json() == {"recipes": [], "message": NO_FULL_MATCH_MESSAGE}

    def test_request_id_echoed(self):
        pipeline = StubPipeline(PipelineResult(recipes=[_recipe()]))
        response = _client(pipeline).post(
            "/api/recipes", json={"ingredients": ["egg"]}, headers={"X-Request-ID": "trace-123"}
        )

        assert response.headers["X-Request-ID"] == "trace-123"
        assert pipeline.calls[0]["request_id"] == "trace-123"

    def test_request_id_generated(self):
        pipeline = StubPipeline(PipelineResult(recipes=[_recipe()]))
        response = _client(pipeline).post("/api/recipes", json={"ingredients": ["egg"]})

        generated = response.headers["X-Request-ID"]
        assert len(generated) == 8
        assert pipeline.calls[0]["request_id"] == generated


class TestErrorMapping:
    """Tests for pipeline errors reaching the HTTP layer."""

    def test_index_outage_is_502(self):
        pipeline = StubPipeline(error=RecipeIndexUnavailableError(attempted=3))
        response = _client(pipeline).post("/api/recipes", json={"ingredients": ["egg"]})

        assert response.status_code == 502
        assert response.json() == {
            "error": "Recipe database is unavailable",
            "details": "All 3 recipe searches failed",
        }

    def test_unexpected_error_is_500(self):
        pipeline = StubPipeline(error=RuntimeError("boom"))
        response = _client(pipeline).post("/api/recipes", json={"ingredients": ["egg"]})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}

    def test_wrong_method_uses_error_body(self):
        response = _client(StubPipeline()).get("/api/recipes")

        assert response.status_code == 405
        assert response.json() == {"error": "Method Not Allowed"}
        assert "POST" in response.headers["allow"]

    def test_unknown_route_uses_error_body(self):
        response = _client(StubPipeline()).get("/api/nothing-here")

        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}


class TestCORS:
    """Tests for permissive cross-origin access."""

    def test_simple_request_allows_any_origin(self):
        pipeline = StubPipeline(PipelineResult(recipes=[_recipe()]))
        origin = "http://localhost:3000"
        response = _client(pipeline).post(
            "/api/recipes", json={"ingredients": ["egg"]}, headers={"Origin": origin}
        )
        assert response.headers["access-control-allow-origin"] in ("*", origin)

    def test_preflight(self):
        origin = "https://pantry.example.com"
        response = _client(StubPipeline()).options(
            "/api/recipes",
            headers={
                "Origin": origin,
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] in ("*", origin)


class TestHealthAndLifespan:
    """Tests for health check and start-up wiring."""

    def test_health(self):
        response = _client(StubPipeline()).get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_lifespan_builds_pipeline(self, monkeypatch):
        monkeypatch.setattr(config, "GEMINI_API_KEY", "test-key")
        app = create_app()

        with TestClient(app) as client:
            assert isinstance(app.state.pipeline, RecipePipeline)
            assert client.get("/health").status_code == 200

    def test_lifespan_rejects_invalid_config(self, monkeypatch):
        monkeypatch.setattr(config, "GEMINI_API_KEY", "")

        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            with TestClient(create_app()):
                pass
