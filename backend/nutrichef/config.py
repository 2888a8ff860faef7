from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_BACKEND_DIR = Path(__file__).resolve().parents[1]
_ENV_FILE = _BACKEND_DIR / ".env"


class Settings(BaseSettings):
    # Always load `backend/.env` regardless of current working directory.
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        case_sensitive=False,
        extra="ignore",
    )

    app_env: str = "dev"
    app_host: str = "127.0.0.1"
    app_port: int = 8000
    public_base_url: str = "http://127.0.0.1:8000/"

    # LLM provider
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    recipe_temperature: float = 0.7
    scan_temperature: float = 0.0

    # Image generation
    openai_image_model: str = "gpt-image-1"
    image_size: str = "1536x1024"  # landscape, closest to 16:9
    image_output_format: str = "jpeg"
    image_max_attempts: int = 3
    image_initial_delay_ms: int = 1000

    # Favorites persistence
    favorites_path: str = str(_BACKEND_DIR / ".nutrichef" / "favorites.json")

    # Arize AX tracing (optional)
    arize_space_id: str | None = None
    arize_api_key: str | None = None
    arize_project_name: str = "nutrichef"
    arize_endpoint: str | None = None

    # Tracing (optional)
    langchain_tracing_v2: str | None = None
    langchain_project: str = "nutrichef"
    langsmith_api_key: str | None = None


settings = Settings()
