from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    DATABASE_URL: str = "postgresql+asyncpg://worklog:worklog_secret@db:5432/worklog"

    # Seed values for the settings table; the table is authoritative at runtime
    BREAK_THRESHOLD_HOURS: float = 6.0
    BREAK_DURATION_MINUTES: int = 30
    DAILY_ALLOWANCE_RATE: float = 1.27  # currency units per net hour

    # There is exactly one privileged principal; audit records carry this name
    ADMIN_ACTOR: str = "Admin"
    AUDIT_LOG_DEFAULT_LIMIT: int = 200

    FUZZY_MATCH_THRESHOLD: int = 90

    RUN_MIGRATIONS_ON_STARTUP: bool = True
    ALEMBIC_WORKDIR: str = "/app"

    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000"]


settings = Settings()
