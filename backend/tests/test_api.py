import pytest
from fastapi.testclient import TestClient

from nutrichef import main
from nutrichef.errors import ModelNotConfiguredError, QuotaExceededError
from nutrichef.favorites import FavoritesStore, MemoryStorage
from nutrichef.images import ImageGenerationClient
from nutrichef.recipes import RecipeGenerationClient
from nutrichef.scan import IngredientScanClient


class QuotaBackend:
    def __init__(self):
        self.calls = 0

    def __call__(self, prompt):
        self.calls += 1
        raise QuotaExceededError("Quota exceeded.")


@pytest.fixture
def client():
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


def override(dependency, value):
    main.app.dependency_overrides[dependency] = lambda: value


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_generate_returns_camel_case_recipes(client, fake_chat_model, recipes_reply):
    override(main.get_recipe_client, RecipeGenerationClient(fake_chat_model(reply=recipes_reply)))

    response = client.post(
        "/api/generate",
        json={"ingredients": ["Chicken Breast", "Broccoli", "Quinoa"], "language": "en"},
    )

    assert response.status_code == 200
    recipes = response.json()["recipes"]
    assert len(recipes) == 3
    assert recipes[2]["ingredients"][-1]["isStaple"] is True
    assert recipes[0]["difficulty"] == "Easy"


def test_generate_empty_ingredients_is_bad_request(client, fake_chat_model):
    override(main.get_recipe_client, RecipeGenerationClient(fake_chat_model(reply="[]")))

    response = client.post("/api/generate", json={"ingredients": [], "language": "en"})

    assert response.status_code == 400
    assert response.json() == {"error": "Please provide at least one ingredient."}


def test_generate_model_failure_returns_caller_message(client, fake_chat_model):
    override(main.get_recipe_client, RecipeGenerationClient(fake_chat_model(error=RuntimeError("down"))))

    response = client.post(
        "/api/generate",
        json={"ingredients": ["Tofu"], "language": "es", "errorMessage": "No se pudieron generar las recetas."},
    )

    assert response.status_code == 500
    assert response.json() == {"error": "No se pudieron generar las recetas."}


def test_missing_api_key_is_service_unavailable(client):
    def not_configured():
        raise ModelNotConfiguredError()

    main.app.dependency_overrides[main.get_recipe_client] = not_configured

    response = client.post("/api/generate", json={"ingredients": ["Tofu"]})

    assert response.status_code == 503
    assert response.json() == {"error": "OPENAI_API_KEY is not configured."}


def test_image_endpoint(client):
    def backend(prompt):
        return "aGVsbG8=", "image/jpeg"

    override(main.get_image_client, ImageGenerationClient(backend, sleep=lambda _: None))

    response = client.post("/api/image", json={"recipeName": "Soup", "recipeDescription": "Hot"})

    assert response.json() == {"imageUrl": "data:image/jpeg;base64,aGVsbG8="}


def test_image_quota_is_429(client):
    backend = QuotaBackend()
    override(main.get_image_client, ImageGenerationClient(backend, sleep=lambda _: None))

    response = client.post("/api/image", json={"recipeName": "Soup", "recipeDescription": "Hot"})

    assert response.status_code == 429
    assert response.json() == {"error": "Quota exceeded."}
    assert backend.calls == 1


def test_scan_endpoint(client, fake_chat_model):
    override(main.get_scan_client, IngredientScanClient(fake_chat_model(reply='["Tomate", "Cebolla"]')))

    ok = client.post("/api/scan", json={"base64Image": "data:image/jpeg;base64,AAAA", "language": "es"})
    bad = client.post("/api/scan", json={"base64Image": "fridge.jpg", "language": "es"})

    assert ok.json() == {"ingredients": ["Tomate", "Cebolla"]}
    assert bad.status_code == 400
    assert bad.json() == {"error": "Invalid image format."}


def test_invalid_language_is_rejected(client, fake_chat_model):
    override(main.get_scan_client, IngredientScanClient(fake_chat_model(reply="[]")))

    response = client.post("/api/scan", json={"base64Image": "data:image/jpeg;base64,AAAA", "language": "fr"})

    assert response.status_code == 422
    assert response.json()["error"] == "Invalid request body."


def test_missing_api_key_wins_over_invalid_body(client, monkeypatch):
    monkeypatch.setattr(main.settings, "openai_api_key", None)

    response = client.post("/api/scan", json={"base64Image": "data:image/jpeg;base64,AAAA", "language": "fr"})

    assert response.status_code == 503
    assert response.json() == {"error": "OPENAI_API_KEY is not configured."}


def test_batch_endpoint_applies_quota_fallback(client, fake_chat_model, recipes_reply):
    backend = QuotaBackend()
    override(main.get_recipe_client, RecipeGenerationClient(fake_chat_model(reply=recipes_reply)))
    override(main.get_image_client, ImageGenerationClient(backend, sleep=lambda _: None))

    response = client.post("/api/recipes/batch", json={"ingredients": ["Chicken Breast", "Broccoli", "Quinoa"]})

    body = response.json()
    assert response.status_code == 200
    assert body["phase"] == "aborted"
    assert body["imageError"] == "Quota exceeded."
    assert body["imageRequests"] == 1
    assert all(recipe["imageUrl"].startswith("data:image/svg+xml") for recipe in body["recipes"])
    assert backend.calls == 1


def test_share_round_trip(client, drafts_payload):
    recipe = dict(drafts_payload[0], id="bowl-1", imageUrl=None)

    shared = client.post("/api/share", json={"recipe": recipe}).json()
    restored = client.get("/api/share", params={"recipe": shared["token"]})

    assert shared["url"].startswith("http")
    assert "recipe=" in shared["url"]
    assert restored.status_code == 200
    assert restored.json()["id"] == "bowl-1"
    assert restored.json()["recipeName"] == recipe["recipeName"]
    assert client.get("/api/share", params={"recipe": "broken"}).status_code == 400


def test_toggle_favorites(client, drafts_payload):
    override(main.get_favorites_store, FavoritesStore(MemoryStorage()))
    recipe = dict(drafts_payload[1], id="salad-1")

    added = client.post("/api/favorites/toggle", json=recipe).json()
    listed = client.get("/api/favorites").json()
    removed = client.post("/api/favorites/toggle", json=recipe).json()

    assert added["isFavorite"] is True
    assert [fav["id"] for fav in listed["favorites"]] == ["salad-1"]
    assert removed == {"favorites": [], "isFavorite": False}


def test_debug_tracing_is_dev_only(client, monkeypatch):
    monkeypatch.setattr(main.settings, "app_env", "dev")
    status = client.get("/debug/tracing").json()
    assert set(status) == {"arize", "langsmith"}
    assert "api_key" not in status["arize"]

    monkeypatch.setattr(main.settings, "app_env", "prod")
    assert client.get("/debug/tracing").status_code == 404
