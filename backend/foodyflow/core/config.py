"""Application configuration using pydantic-settings.

All environment variables should be accessed through the settings object
rather than using os.getenv() directly.
"""

from decimal import Decimal
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # Database - defaults to relative path for Docker, override via env for local dev
    database_url: str = "sqlite:///./data/foodyflow.db"
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_echo: bool = False

    # CORS - comma-separated origins or "*" for development only
    cors_origins: str = "http://localhost:3000,http://localhost:5000"

    # ==========================================================================
    # Costing
    # ==========================================================================
    # Share of the selling price retained as tax/service (IVA 10% by default)
    net_price_rate: Decimal = Decimal("0.10")
    target_food_cost_percent: Decimal = Decimal("30")

    # Cached stock aggregates (seconds)
    stock_summary_ttl_seconds: int = 300

    # ==========================================================================
    # Supplier order emails (SendGrid v3 HTTP API)
    # ==========================================================================
    sendgrid_api_key: Optional[str] = None
    sendgrid_api_url: str = "https://api.sendgrid.com/v3/mail/send"
    sendgrid_timeout_seconds: float = 15.0
    order_email_from: str = "ordini@foodyflow.app"
    order_email_reply_to: Optional[str] = None

    # Server
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # API
    api_v1_prefix: str = "/api/v1"

    # Rate limiting
    rate_limit_enabled: bool = True

    @field_validator("net_price_rate")
    @classmethod
    def validate_net_price_rate(cls, v: Decimal) -> Decimal:
        if v < 0 or v >= 1:
            raise ValueError("net_price_rate must be in [0, 1)")
        return v

    @field_validator("target_food_cost_percent")
    @classmethod
    def validate_target_food_cost(cls, v: Decimal) -> Decimal:
        if v <= 0 or v >= 100:
            raise ValueError("target_food_cost_percent must be between 0 and 100")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def notifications_configured(self) -> bool:
        return bool(self.sendgrid_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
