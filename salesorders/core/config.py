from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from salesorders.domain.currencies import is_valid_currency, normalize_currency

DEFAULT_CLERK_API_KEY = "so-clerk-dev-key"
DEFAULT_AUDITOR_API_KEY = "so-auditor-dev-key"
DEFAULT_SYSTEM_API_KEY = "so-system-dev-key"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="SO_", extra="ignore")

    app_name: str = "Sales Orders"
    env: str = "dev"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    database_url: str = "sqlite+pysqlite:///./salesorders.db"
    log_level: str = "INFO"

    settlement_currency: str = Field(
        default="EUR",
        description="ISO 4217 code every order total is expressed in",
    )

    auth_enabled: bool = True
    clerk_api_key: str = DEFAULT_CLERK_API_KEY
    auditor_api_key: str = DEFAULT_AUDITOR_API_KEY
    system_api_key: str = DEFAULT_SYSTEM_API_KEY
    clerk_actor_id: str = "clerk-001"
    auditor_actor_id: str = "auditor-001"
    system_actor_id: str = "system-001"

    @field_validator("settlement_currency")
    @classmethod
    def _check_currency(cls, value: str) -> str:
        value = normalize_currency(value)
        if not is_valid_currency(value):
            raise ValueError(f"settlement_currency is not an ISO 4217 code: {value}")
        return value

    def model_post_init(self, __context) -> None:
        if self.env.lower() == "dev":
            return

        insecure_items: list[str] = []
        if self.clerk_api_key == DEFAULT_CLERK_API_KEY:
            insecure_items.append("SO_CLERK_API_KEY")
        if self.auditor_api_key == DEFAULT_AUDITOR_API_KEY:
            insecure_items.append("SO_AUDITOR_API_KEY")
        if self.system_api_key == DEFAULT_SYSTEM_API_KEY:
            insecure_items.append("SO_SYSTEM_API_KEY")

        if insecure_items:
            raise ValueError(
                "insecure default api keys are not allowed outside dev mode; set env vars: "
                + ", ".join(sorted(insecure_items))
            )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
