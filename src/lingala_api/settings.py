"""
lingala_api.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (session signing key, Stripe keys).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LINGALA_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "lingala-api"
    log_level: str = "INFO"
    # "console" is friendlier locally; JSON is what log shippers expect.
    log_renderer: Literal["json", "console"] = "json"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # End-user sessions (signed tokens, cookie or bearer transport)
    session_alg: str = "HS256"
    session_issuer: str = "lingala-api"
    session_audience: str = "lingala-web"
    session_secret: str = Field(default="dev-secret-change-me", repr=False)
    session_cookie_name: str = "lingala_session"
    session_ttl_hours: int = 24 * 7

    # Admin sessions (opaque tokens stored server-side)
    admin_session_ttl_hours: int = 24
    admin_session_reap_interval_seconds: int = 300

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./lingala.db"

    # "bcrypt" in every real deployment; "simple" keeps test suites fast.
    password_hasher: Literal["bcrypt", "simple"] = "bcrypt"

    # Billing
    stripe_api_base: str = "https://api.stripe.com/v1"
    stripe_secret_key: str = Field(default="sk_test_change_me", repr=False)
    stripe_webhook_secret: str = Field(default="whsec_change_me", repr=False)
    stripe_webhook_tolerance_seconds: int = 300
    app_url: str = "http://localhost:3000"
    subscription_price_cents: int = 2999
    subscription_currency: str = "usd"
    subscription_plan_type: str = "monthly_premium"

    supported_languages: tuple[str, ...] = ("en", "fr")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Every layer receives this object through dependencies; tests construct their
# own `Settings(env="test", ...)` and pass it to `create_app`.
