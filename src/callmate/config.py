"""Application configuration."""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    """Database configuration."""

    url: str = "sqlite+aiosqlite:///data/callmate.db"
    echo: bool = False


class AuthSettings(BaseModel):
    """JWT authentication configuration.

    Identity is issued by the external auth provider; this service only
    verifies bearer tokens signed with the shared secret.
    """

    jwt_secret_key: str = ""  # MUST be set in production!
    jwt_algorithm: str = "HS256"
    jwt_expiry_minutes: int = 60


class LLMSettings(BaseModel):
    """LLM completion service (OpenAI-compatible chat API)."""

    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    timeout_seconds: float = 30.0


class PaymentSettings(BaseModel):
    """Payment provider (Stripe REST API)."""

    api_base: str = "https://api.stripe.com/v1"
    secret_key: str = ""
    currency: str = "usd"
    timeout_seconds: float = 15.0


class BusinessSettings(BaseModel):
    """Business rules shared by quotes, invoices and the dashboard."""

    name: str = "Call Mate"
    tax_rate: Decimal = Decimal("0.0825")
    # IANA zone used for "today" boundaries on the dashboard
    timezone: str = "UTC"
    quote_validity_days: int = 30
    invoice_due_days: int = 30


class Settings(BaseSettings):
    """Application settings.

    Loaded from:
    1. Environment variables (CALLMATE_*)
    2. configs/{environment}.yaml
    3. configs/default.yaml
    """

    model_config = SettingsConfigDict(
        env_prefix="CALLMATE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Environment
    environment: str = "development"
    debug: bool = True

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    cors_origins: list[str] = Field(default_factory=list)

    # Subsystems
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    payments: PaymentSettings = Field(default_factory=PaymentSettings)
    business: BusinessSettings = Field(default_factory=BusinessSettings)

    @property
    def is_production(self) -> bool:
        """Whether strict production checks apply."""
        return self.environment in ("production", "staging", "prod")


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings object loaded from config files and environment.
    """
    import os
    from dynaconf import Dynaconf

    config_dir = Path("configs")
    env = os.getenv("CALLMATE_ENV", "development")

    settings_files = []
    if (config_dir / "default.yaml").exists():
        settings_files.append(str(config_dir / "default.yaml"))
    if (config_dir / f"{env}.yaml").exists():
        settings_files.append(str(config_dir / f"{env}.yaml"))

    dynaconf = Dynaconf(
        envvar_prefix="CALLMATE",
        settings_files=settings_files,
        load_dotenv=True,
    )

    config_dict: dict[str, Any] = {}
    for key in dynaconf.keys():
        if not key.startswith("_"):
            value = dynaconf[key]
            config_dict[key.lower()] = _to_plain(value)

    config_dict["environment"] = env

    return Settings(**config_dict)


def _to_plain(value: Any) -> Any:
    """Convert Dynaconf Box containers into plain dicts/lists for pydantic."""
    if hasattr(value, "to_dict"):
        return {k.lower(): _to_plain(v) for k, v in value.to_dict().items()}
    if isinstance(value, dict):
        return {str(k).lower(): _to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value


def validate_production_settings(settings: Settings) -> list[str]:
    """Validate settings for production readiness.

    Args:
        settings: Application settings to validate.

    Returns:
        List of validation error messages (empty if all valid).
    """
    errors: list[str] = []

    if not settings.is_production:
        return errors

    if not settings.auth.jwt_secret_key:
        errors.append("CALLMATE_AUTH__JWT_SECRET_KEY must be set in production")

    if not settings.llm.api_key:
        errors.append("CALLMATE_LLM__API_KEY must be set in production")

    if not settings.payments.secret_key:
        errors.append("CALLMATE_PAYMENTS__SECRET_KEY must be set in production")

    if "sqlite" in settings.database.url:
        errors.append("CALLMATE_DATABASE__URL should point at PostgreSQL in production")

    return errors


def require_valid_settings() -> Settings:
    """Get settings and raise if production validation fails.

    Raises:
        ValueError: If production settings are invalid.

    Returns:
        Validated settings.
    """
    settings = get_settings()
    errors = validate_production_settings(settings)

    if errors:
        error_list = "\n  - ".join(errors)
        raise ValueError(
            f"Production configuration errors:\n  - {error_list}"
        )

    return settings
