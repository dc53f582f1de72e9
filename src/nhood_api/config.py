"""Application configuration."""

import json

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_list(v):
    """Parse a list from a JSON string, a comma-separated string, or a list."""
    if isinstance(v, str):
        # Try JSON first
        try:
            parsed = json.loads(v)
            if isinstance(parsed, list):
                return parsed
        except json.JSONDecodeError:
            pass
        # Fall back to comma-separated
        return [item.strip() for item in v.split(",") if item.strip()]
    return v


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Datasets
    neighborhoods_path: str = "data/nta_2020.geojson"
    sales_path: str = "data/manhattan_sales_geocoded.geojson"

    # Load datasets during app startup instead of on first request
    preload_datasets: bool = True

    # Adjacency: radius is kilometres in "geographic" mode,
    # coordinate units in "planar" mode
    coordinate_system: str = "geographic"
    adjacency_radius: float = 1.6
    # Most adjacency results cached per resolver
    adjacency_cache_size: int = 1024

    # Property keys tried in order when reading neighborhood features
    code_keys: list[str] = ["nta2020", "ntacode", "NTACode", "id"]
    name_keys: list[str] = ["ntaname", "NTAName", "name"]
    borough_keys: list[str] = ["boroname", "BoroName", "boro_name", "borough"]

    # Logging
    log_level: str = "info"

    # CORS configuration
    cors_origins: list[str] = [
        "http://localhost:3000",
    ]

    @field_validator("cors_origins", "code_keys", "name_keys", "borough_keys", mode="before")
    @classmethod
    def parse_string_lists(cls, v):
        """Parse list settings from string (JSON or comma-separated) or list."""
        return _parse_list(v)

    @field_validator("coordinate_system")
    @classmethod
    def check_coordinate_system(cls, v: str) -> str:
        v = v.lower()
        if v not in ("geographic", "planar"):
            raise ValueError("coordinate_system must be 'geographic' or 'planar'")
        return v


settings = Settings()
