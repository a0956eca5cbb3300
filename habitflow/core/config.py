from pydantic_settings import BaseSettings
from typing import List
from dotenv import load_dotenv
import os

load_dotenv()


class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = os.getenv("DEBUG", True)

    # Database (service role, bypasses RLS - only hand to trusted collaborators)
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_SERVICE_KEY: str = os.getenv("SUPABASE_SERVICE_KEY", "")

    # CORS
    ALLOWED_ORIGINS: str = os.getenv("ALLOWED_ORIGINS", "*")

    @property
    def allowed_origins_list(self) -> List[str]:
        return self.ALLOWED_ORIGINS.split(",")

    # AI Services
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    INSIGHTS_MODEL: str = os.getenv("INSIGHTS_MODEL", "gpt-4o-mini")
    INSIGHTS_MAX_OUTPUT_TOKENS: int = os.getenv("INSIGHTS_MAX_OUTPUT_TOKENS", 1000)
    INSIGHTS_TEMPERATURE: float = os.getenv("INSIGHTS_TEMPERATURE", 0.7)
    INSIGHT_GENERATION_TIMEOUT_SECONDS: float = os.getenv(
        "INSIGHT_GENERATION_TIMEOUT_SECONDS", 45.0
    )

    # Insight caching
    # Kept low so new users see insights quickly; raise to 7 for a full week
    INSIGHTS_MIN_DAYS: int = os.getenv("INSIGHTS_MIN_DAYS", 1)
    INSIGHT_TTL_HOURS: float = os.getenv("INSIGHT_TTL_HOURS", 24)
    INSIGHT_RATE_LIMIT_HOURS: float = os.getenv("INSIGHT_RATE_LIMIT_HOURS", 6)
    INSIGHT_HASH_COMPLETION_WINDOW: int = os.getenv(
        "INSIGHT_HASH_COMPLETION_WINDOW", 50
    )
    INSIGHT_COMPLETION_FETCH_LIMIT: int = os.getenv(
        "INSIGHT_COMPLETION_FETCH_LIMIT", 500
    )

    # Redis (Celery broker + backend)
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379")

    # PostHog Analytics
    POSTHOG_API_KEY: str = os.getenv("POSTHOG_API_KEY", "")
    POSTHOG_HOST: str = os.getenv("POSTHOG_HOST", "https://us.i.posthog.com")
    POSTHOG_ENABLE_EXCEPTION_AUTOCAPTURE: bool = (
        os.getenv("POSTHOG_ENABLE_EXCEPTION_AUTOCAPTURE", "true").lower() == "true"
    )

    class Config:
        env_file = [".env.local", ".env"]
        case_sensitive = True
        extra = "ignore"


# Create settings instance
settings = Settings()
