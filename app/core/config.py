from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List
import os
from pathlib import Path


class Config(BaseSettings):
    # Database Configuration (SQLite via aiosqlite by default, PostgreSQL via asyncpg)
    database_url: str = Field(
        default=f"sqlite+aiosqlite:///{Path(__file__).parent.parent.parent / 'data' / 'biodata.db'}",
        alias="DB_URL",
    )

    # JWT Configuration
    jwt_secret: str = Field(default="change-me", alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24, alias="ACCESS_TOKEN_EXPIRE_MINUTES"
    )

    # Monetization: "on" enables the credit system, anything else is free access
    monetization: str = Field(default="off", alias="MONETIZATION")

    # Biodata
    profile_id_prefix: str = Field(default="BIO", alias="PROFILE_ID_PREFIX")
    draft_autosave_seconds: float = Field(default=2.0, alias="DRAFT_AUTOSAVE_SECONDS")
    draft_cache_path: str = Field(
        default=str(Path.home() / ".biodata" / "draft.json"),
        alias="DRAFT_CACHE_PATH",
    )

    cors_origins: List[str] = Field(
        default=["http://localhost", "http://localhost:5173"],
        alias="CORS_ORIGINS",
    )

    is_production: bool = (
        os.getenv("ENVIRONMENT", "development").lower() == "production"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        populate_by_name = True


# Instantiate the settings
config = Config()
