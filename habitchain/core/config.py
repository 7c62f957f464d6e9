from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./habitchain.db"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Insert missing catalog badges at start-up.
    SEED_DEFAULT_BADGES: bool = True

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://habitchain.app,https://api.habitchain.app"
    CORS_ORIGINS: str = "*"

    # Secret badges stay hidden (and unearnable) until the user has logged
    # this many completions in total.
    SECRET_BADGE_REVEAL_COMPLETIONS: int = 50

    # "Streak Master": STREAK_MASTER_HABITS habits, each with a current
    # streak of at least STREAK_MASTER_MIN_STREAK days.
    STREAK_MASTER_MIN_STREAK: int = 10
    STREAK_MASTER_HABITS: int = 3

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
