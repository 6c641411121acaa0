from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_env: str = "dev"
    log_level: str = "INFO"

    # Infra
    database_url: str = "postgresql://app:app@db:5432/app"
    db_pool_max_size: int = 10
    redis_url: str = "redis://redis:6379/0"
    redis_timeout_seconds: float = 2.0
    smtp_base_url: str = "http://smtp-mock:8025"

    # Tokens
    token_secret: str = "dev-only-secret-change-me-in-every-deployment"
    token_issuer: str = "authkeeper"
    access_token_ttl_minutes: int = 15
    refresh_token_ttl_minutes: int = 1440
    reset_token_ttl_minutes: int = 15

    # Security / policies
    bcrypt_rounds: int = 12
    code_length: int = 6
    code_ttl_seconds: int = 600
    resend_throttle_seconds: int = 60
    password_change_cooldown_seconds: int = 3600
    password_history_depth: int = 1
    revoke_superseded_tokens: bool = False
    reset_password_url: str = "http://localhost:8000/v1/auth/reset-password"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
