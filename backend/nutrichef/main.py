from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from openinference.semconv.trace import OpenInferenceSpanKindValues

from .config import settings
from .errors import NutriChefError
from .favorites import FavoritesStore, JsonFileStorage
from .graph import RecipeOrchestrator
from .images import ImageGenerationClient
from .models import (
    FavoritesResponse,
    GenerateRequest,
    GenerateResponse,
    GenerationBatch,
    ImageRequest,
    ImageResponse,
    Recipe,
    ScanRequest,
    ScanResponse,
    ShareRequest,
    ShareResponse,
)
from .recipes import RecipeGenerationClient
from .scan import IngredientScanClient
from .sharing import build_share_url, decode_recipe, encode_recipe
from .tracing import set_output, setup_tracing, start_span, tracing_status

logger = logging.getLogger(__name__)

app = FastAPI(title="NutriChef")


@app.on_event("startup")
def _startup() -> None:
    setup_tracing()


@app.middleware("http")
async def request_tracing(request: Request, call_next):
    with start_span(
        "http_request",
        OpenInferenceSpanKindValues.CHAIN,
        input_value=f"{request.method} {request.url.path}",
        metadata={
            "http.method": request.method,
            "http.path": request.url.path,
            "http.query": request.url.query,
        },
    ) as span:
        response = await call_next(request)
        set_output(span, str(response.status_code))
        return response


@app.exception_handler(NutriChefError)
async def nutrichef_error_handler(request: Request, exc: NutriChefError) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request body.", "detail": jsonable_encoder(exc.errors())},
    )


def get_recipe_client() -> RecipeGenerationClient:
    return RecipeGenerationClient.from_settings()


def get_image_client() -> ImageGenerationClient:
    return ImageGenerationClient.from_settings()


def get_scan_client() -> IngredientScanClient:
    return IngredientScanClient.from_settings()


def get_favorites_store() -> FavoritesStore:
    return FavoritesStore(JsonFileStorage(settings.favorites_path))


@app.get("/healthz")
def health_check() -> dict:
    return {"status": "ok"}


@app.get("/debug/tracing")
def debug_tracing() -> dict:
    if settings.app_env != "dev":
        raise HTTPException(status_code=404, detail="Not found")
    return tracing_status()


@app.post("/api/generate", response_model=GenerateResponse)
def generate(
    payload: GenerateRequest,
    client: RecipeGenerationClient = Depends(get_recipe_client),
) -> GenerateResponse:
    recipes = client.generate_recipes(payload.ingredients, payload.language, payload.error_message)
    return GenerateResponse(recipes=recipes)


@app.post("/api/image", response_model=ImageResponse)
def image(
    payload: ImageRequest,
    client: ImageGenerationClient = Depends(get_image_client),
) -> ImageResponse:
    return ImageResponse(image_url=client.generate_image(payload.recipe_name, payload.recipe_description))


@app.post("/api/scan", response_model=ScanResponse)
def scan(
    payload: ScanRequest,
    client: IngredientScanClient = Depends(get_scan_client),
) -> ScanResponse:
    ingredients = client.identify_ingredients(payload.base64_image, payload.language, payload.error_message)
    return ScanResponse(ingredients=ingredients)


@app.post("/api/recipes/batch", response_model=GenerationBatch)
def recipe_batch(
    payload: GenerateRequest,
    recipe_client: RecipeGenerationClient = Depends(get_recipe_client),
    image_client: ImageGenerationClient = Depends(get_image_client),
) -> GenerationBatch:
    orchestrator = RecipeOrchestrator(recipe_client, image_client)
    return orchestrator.run(payload.ingredients, payload.language, payload.error_message)


@app.post("/api/share", response_model=ShareResponse)
def share_recipe(payload: ShareRequest) -> ShareResponse:
    return ShareResponse(
        token=encode_recipe(payload.recipe),
        url=build_share_url(payload.recipe, settings.public_base_url),
    )


@app.get("/api/share", response_model=Recipe)
def shared_recipe(recipe: str = Query(..., min_length=1)) -> Recipe:
    return decode_recipe(recipe)


@app.get("/api/favorites", response_model=FavoritesResponse)
def list_favorites(store: FavoritesStore = Depends(get_favorites_store)) -> FavoritesResponse:
    return FavoritesResponse(favorites=store.list())


@app.post("/api/favorites/toggle", response_model=FavoritesResponse)
def toggle_favorite(
    recipe: Recipe,
    store: FavoritesStore = Depends(get_favorites_store),
) -> FavoritesResponse:
    is_favorite = store.toggle(recipe)
    return FavoritesResponse(favorites=store.list(), is_favorite=is_favorite)


def run() -> None:
    import uvicorn

    uvicorn.run(
        "nutrichef.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
