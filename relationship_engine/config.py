from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False

    LOG_LEVEL: str = "INFO"
    LOG_QUEUE_SIZE: int = 10_000

    # Postgres settings
    DATABASE_URL: str | None = None

    # =================================================================
    # DATABASE POOL SETTINGS
    # =================================================================
    DB_POOL_MIN_SIZE: int = 2
    DB_POOL_MAX_SIZE: int = 10
    DB_POOL_TIMEOUT: float = 30.0
    DB_POOL_MAX_IDLE: float = 600.0  # 10 minutes
    DB_POOL_MAX_LIFETIME: float = 3600.0  # 1 hour

    # OpenAI settings
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE: float = 0.7
    OPENAI_MAX_TOKENS: int = 800
    OPENAI_TIMEOUT_SECONDS: float = 30.0
    OPENAI_MAX_RETRIES: int = 2

    # Contact insight engine
    INSIGHTS_AI_ENABLED: bool = True
    INSIGHTS_HISTORY_LIMIT: int = 20
    INSIGHTS_RECENT_WINDOW_DAYS: int = 30
    INSIGHTS_MAX_TAGS: int = 8
    INSIGHTS_PROMPT_EXCERPTS: int = 10
    INSIGHTS_MIN_INTERACTIONS_FOR_AI: int = 1

    # Bulk enrichment
    ENRICHMENT_BATCH_SIZE: int = 1000
    ENRICHMENT_DELAY_MS: int = 200
    ENRICHMENT_USER_ID: str | None = None

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def ai_configured(self) -> bool:
        """True when the AI-augmented analysis path can be attempted."""
        return bool(self.INSIGHTS_AI_ENABLED and self.OPENAI_API_KEY)

    def get_db_pool_config(self) -> dict:
        """
        Get database pool configuration.
        Adjust environment-specific settings based on self.environment.
        """
        config = {
            "min_size": self.DB_POOL_MIN_SIZE,
            "max_size": self.DB_POOL_MAX_SIZE,
            "timeout": self.DB_POOL_TIMEOUT,
            "max_idle": self.DB_POOL_MAX_IDLE,
            "max_lifetime": self.DB_POOL_MAX_LIFETIME,
        }

        if self.environment == "development":
            # More conservative for local development
            config.update(
                {
                    "min_size": 1,
                    "max_size": 4,
                    "timeout": 15.0,
                }
            )

        return config


settings = Settings()
