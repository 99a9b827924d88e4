from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "https://localhost:3000",
    "http://127.0.0.1:3000",
    "https://127.0.0.1:3000",
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = "sqlite:///./rewards_portal.db"

    # CRM
    crm_base_url: str = "https://services.leadconnectorhq.com"
    crm_access_token: str | None = None
    crm_api_version: str = "2021-07-28"
    crm_points_field_id: str | None = None
    crm_timeout_seconds: float = 5.0
    crm_redeemed_tag: str = "loyalty-redeemed-reward"

    # Redemption tokens
    redemption_token_bytes: int = 16
    redemption_intent_ttl_minutes: int = 1440

    # Staff invites
    invite_ttl_days: int = 7

    portal_public_url: str = "http://localhost:3000"
    cors_allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"

    @field_validator("crm_base_url", "portal_public_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("crm_access_token", "crm_points_field_id", mode="before")
    @classmethod
    def _blank_as_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("redemption_token_bytes")
    @classmethod
    def _clamp_token_bytes(cls, value: int) -> int:
        # never below 128 bits of entropy
        return min(48, max(16, value))

    @field_validator("redemption_intent_ttl_minutes", "invite_ttl_days")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        return max(0, value)

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: object) -> list[str]:
        if value is None:
            return list(DEFAULT_CORS_ORIGINS)
        if isinstance(value, str):
            origins = [item.strip() for item in value.split(",") if item.strip()]
            return origins or list(DEFAULT_CORS_ORIGINS)
        if isinstance(value, (list, tuple, set)):
            return [str(item).strip() for item in value if str(item).strip()]
        return list(DEFAULT_CORS_ORIGINS)

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
