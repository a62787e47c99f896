"""Fleet ledger server configuration."""

import os
from functools import lru_cache
from typing import Annotated, Any, Literal

from dotenv import load_dotenv
from pydantic import AnyUrl, BeforeValidator, Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILES = {
    "production": "../.env",
    "development": "../.env.dev",
}


def get_env_file() -> str:
    """Pick the .env file: ENV_FILE wins, otherwise one per ENVIRONMENT."""
    selected = os.getenv(
        "ENV_FILE", ENV_FILES.get(os.getenv("ENVIRONMENT", "development"), "")
    )
    load_dotenv(selected, override=True)
    return selected or ENV_FILES["development"]


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    if isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=get_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=True,
        env_ignore_empty=True,
        extra="ignore",
    )
    ENVIRONMENT: Literal["development", "production"] = "development"
    PROJECT_NAME: str = "Fleet Ledger API"

    # API
    DOMAIN: str = "0.0.0.0"
    DEBUG_MODE: bool = False
    FASTAPI_API_KEY_HEADER: str = os.getenv("FASTAPI_API_KEY_HEADER", "X-API-Key")
    FASTAPI_API_KEY: str = os.getenv("FASTAPI_API_KEY", "default_key")
    FASTAPI_CORS_ORIGINS: Annotated[list[AnyUrl] | str, BeforeValidator(parse_cors)] = (
        []
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.FASTAPI_CORS_ORIGINS]

    # Ledger store
    POSTGRES_USER: str = "fleet"
    POSTGRES_PASSWORD: str = "fleet"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "fleet_ledger"

    # Production days roll over at local midnight in this zone
    TIMEZONE: str = "Asia/Kolkata"

    # Trip financials and reconciliation
    FLAT_FEE: int = Field(300, ge=0)
    PER_TRIP_FEE: int = Field(100, ge=0)
    SHORTAGE_TOLERANCE: float = Field(0.01, ge=0)
    DEFAULT_DIESEL_PRICE: float = Field(90.55, gt=0)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
