from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DATABASE_URL: str = "sqlite:///dojo.db"
    SQL_ECHO: bool = False
    LOG_LEVEL: str = "INFO"

    # Leaderboard / ledger policy
    FEATURED_SIZE: int = 3
    DEFAULT_POINTS_EARNED: int = 1
    CONFLICT_RETRIES: int = 1
    CLAWBACK_ON_EDIT: bool = False

    ADMIN_ROLE: str = "admin"
    STUDENT_ROLE: str = "student"

settings = Settings()
