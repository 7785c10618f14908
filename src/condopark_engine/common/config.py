"""CondoPark-Engine configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "secret_key": "insecure-dev-key-change-me",
    "api_key": "insecure-operator-key-change-me",
}


class CondoParkSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CONDOPARK_")

    environment: str = "development"
    secret_key: str = "insecure-dev-key-change-me"
    log_level: str = "INFO"

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/condopark.db"

    # API
    api_title: str = "CondoPark-Engine"
    api_version: str = "0.1.0"
    api_key: str = "insecure-operator-key-change-me"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:3000"]

    # Sessions
    session_ttl: int = 30 * 24 * 3600  # 30 days

    # Rate limiting (per normalized email)
    login_rate_limit: int = 5
    signup_rate_limit: int = 5
    rate_limit_window: int = 15 * 60  # seconds

    # Signup
    min_password_length: int = 12

    # Booking
    max_booking_hours: float = 24.0
    currency_decimals: int = 2
    reservation_lock_timeout: float = 5.0  # seconds
    reservation_retries: int = 3

    # Community codes
    tenant_code_random_length: int = 12

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"CONDOPARK_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default keys: set CONDOPARK_SECRET_KEY and "
                "CONDOPARK_API_KEY for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> CondoParkSettings:
    settings = CondoParkSettings()
    settings.validate_for_production()
    return settings
