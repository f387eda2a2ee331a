from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    DATABASE_URL: str = "postgresql+asyncpg://geoattend:geoattend_secret@db:5432/geoattend"
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Day boundary for the one-record-per-day rule and for status classification
    TIMEZONE: str = "UTC"

    # Used when the user has no work schedule assigned for the day
    FALLBACK_PRESENT_UNTIL_HOUR: int = 9
    FALLBACK_HALF_DAY_FROM_HOUR: int = 12

    # Relative to the assigned schedule's check_in_end
    LATE_GRACE_MINUTES: int = 0
    HALF_DAY_AFTER_MINUTES: int = 180

    HISTORY_DEFAULT_LIMIT: int = 10
    ADMIN_LIST_DEFAULT_LIMIT: int = 20
    MAX_PAGE_LIMIT: int = 100
    NEARBY_MAX_RADIUS_KM: float = 50.0

    # Where the lifespan hook runs `alembic upgrade head`
    ALEMBIC_WORKDIR: str = "/app"
    RUN_MIGRATIONS_ON_STARTUP: bool = True


settings = Settings()
