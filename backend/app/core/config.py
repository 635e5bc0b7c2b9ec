from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Storefront Promotions & Returns API"
    version: str = "0.1.0"
    DEBUG: bool = False
    APP_DATABASE_DSN: str = "sqlite:////tmp/storefront.db"
    REDIS_URL: str = "redis://localhost:6379"

    # Admin endpoints (coupon catalog, order updates, return transitions)
    ADMIN_API_KEY: str = ""  # empty disables the check for local development

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Returns policy
    RETURN_WINDOW_DAYS: int = 30

    # Rate limiting
    COUPON_VALIDATION_ATTEMPTS_PER_MINUTE: int = 20

    # Idempotency
    IDEMPOTENCY_RECORD_MAX_AGE_HOURS: int = 24

    @property
    def admin_auth_enabled(self) -> bool:
        return bool(self.ADMIN_API_KEY)


settings = Settings()
