from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    SUPABASE_TIMEOUT_SECONDS: float = 10.0

    SESSION_TTL_MINUTES: int = 10
    SESSION_DATA_DIR: str = "./data/booking_sessions"

    BUSINESS_UTC_OFFSET_HOURS: int = -3
    BOOKING_LOOKAHEAD_DAYS: int = 14
    BOOKING_MAX_DATES: int = 5
    BOOKING_MAX_TIMES: int = 10
    BOOKING_MIN_LEAD_MINUTES: int = 30
    DEFAULT_APPOINTMENT_MINUTES: int = 30

    DEV_SEED_FILE: str | None = None


settings = Settings()
