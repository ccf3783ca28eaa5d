"""Configuración centralizada de dochub con pydantic-settings."""

import pathlib

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Todas las variables se leen desde env vars con prefijo DOCHUB_."""

    # --- Fuentes ---
    docs_root: pathlib.Path = pathlib.Path("data-sources")
    static_sources: list[str] = []
    document_extensions: list[str] = [".md", ".txt"]
    skip_dirs: list[str] = ["node_modules", "__pycache__", "venv"]
    discover_url: str | None = None

    # --- Loader ---
    loader_base_url: str | None = None
    http_timeout: float = 10.0

    # --- Parser ---
    category_folder_pattern: str = r"^\d{2}_"
    max_tags: int = 10
    tag_keywords: dict[str, str] = {
        "smart home": "smart-home",
        "automation": "automation",
        "ai": "ai",
    }
    diagram_languages: list[str] = ["mermaid"]
    words_per_minute: int = 200
    description_min_chars: int = 50
    description_max_chars: int = 200

    # --- Search ---
    search_default_limit: int = 10
    search_match_threshold: float = 0.75
    search_prose_threshold: float = 0.85
    suggestion_limit: int = 5
    popular_terms: list[str] = [
        "campaign strategy",
        "email templates",
        "brand guidelines",
        "persona",
        "launch sequence",
        "visual assets",
        "competitor research",
        "pricing calculator",
        "business model",
        "go-to-market",
    ]

    # --- Refresh ---
    auto_refresh: bool = True
    refresh_interval_seconds: float = 30.0
    refresh_min_interval_seconds: float = 10.0

    # --- API ---
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: str = "*"

    model_config = {"env_prefix": "DOCHUB_", "env_file": ".env"}


def get_settings() -> Settings:
    """Construye la configuración desde el entorno."""
    return Settings()
