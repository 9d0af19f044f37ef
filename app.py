"""FastAPI Application - Pantry Recipe Service.

Single entry point for the HTTP API:
- Validates configuration and opens the TheMealDB client on start-up
- Builds the recipe pipeline (recipe index + Gemini enrichment)
- Serves POST /api/recipes with permissive CORS
- Maps pipeline errors to JSON error bodies

Run with: python app.py
"""

import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.clients.mealdb import MealDBClient
from src.exceptions.recipe_exceptions import InputValidationError, RecipeServiceError
from src.models.models import ErrorResponse, RecipeRequest, RecipeResponse
from src.pipeline.pipeline import RecipePipeline, initialize_recipe_pipeline
from src.utils.config import config
from src.utils.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate config, open the recipe index client, build the pipeline."""
    logger.info("Step 1/2: Validating configuration...")
    config.validate()
    logger.info(f"✓ Configuration valid (model={config.GEMINI_MODEL}, match_mode={config.MATCH_MODE})")

    logger.info("Step 2/2: Opening TheMealDB client...")
    async with MealDBClient(
        base_url=config.MEALDB_BASE_URL,
        timeout=config.REQUEST_TIMEOUT,
        max_retries=config.MAX_RETRIES,
    ) as recipe_index:
        app.state.pipeline = initialize_recipe_pipeline(recipe_index, config)
        logger.info("✓ Recipe pipeline ready")
        yield
    logger.info("Recipe index client closed")


def get_pipeline(request: Request) -> RecipePipeline:
    """Dependency returning the pipeline built at start-up (overridden in tests)."""
    return request.app.state.pipeline


def _error(status_code: int, error: str, details: str | None = None, headers: dict | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True), headers=headers)


def create_app() -> FastAPI:
    """Create the FastAPI application with middleware, routes and error handlers."""
    app = FastAPI(
        title="Pantry Recipe Service",
        description="Turns pantry ingredients into enriched recipe suggestions",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        messages = [f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()]
        logger.info(f"Rejected request: {'; '.join(messages)}")
        return _error(400, InputValidationError.public_message, "; ".join(messages))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown routes and wrong methods; keeps the Allow header on 405
        return _error(exc.status_code, str(exc.detail), headers=exc.headers)

    @app.exception_handler(RecipeServiceError)
    async def handle_service_error(request: Request, exc: RecipeServiceError) -> JSONResponse:
        logger.warning(f"Request failed with {exc.status_code}: {exc}")
        return _error(exc.status_code, exc.public_message, str(exc))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unexpected error: {exc}", exc_info=exc)
        return _error(500, "Internal server error")

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @app.post(
        "/api/recipes",
        response_model=RecipeResponse,
        # message is only present on empty results
        response_model_exclude_unset=True,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    )
    async def suggest_recipes(
        body: RecipeRequest,
        request: Request,
        response: Response,
        pipeline: RecipePipeline = Depends(get_pipeline),
    ) -> RecipeResponse:
        """Suggest enriched recipes for a list of pantry ingredients."""
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        response.headers["X-Request-ID"] = request_id

        result = await pipeline.run(body.ingredients, request_id=request_id)
        if result.message:
            return RecipeResponse(recipes=result.recipes, message=result.message)
        return RecipeResponse(recipes=result.recipes)

    return app


app = create_app()


if __name__ == "__main__":
    logger.info(f"Starting Pantry Recipe Service on port {config.PORT}")
    logger.info(f"API docs available at: http://localhost:{config.PORT}/docs")
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
