from pydantic_settings import BaseSettings
from typing import List
from pydantic import model_validator


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./opsplan.db"
    ENVIRONMENT: str = "development"
    AUTO_CREATE_TABLES: bool = True
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"
    DEBUG: bool = True
    APP_NAME: str = "OpsPlan"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    ENABLE_REQUEST_ID: bool = True
    ENABLE_REQUEST_LOGGING: bool = True
    READINESS_CHECK_DATABASE: bool = True

    # Reasoning service (LLM)
    OPENAI_API_KEY: str = ""
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TEMPERATURE: float = 0.2
    LLM_TIMEOUT_SECONDS: float = 20.0

    # Planning defaults
    DEFAULT_VENDOR_LEAD_TIME_DAYS: int = 14
    DEFAULT_SAFETY_STOCK_PERCENT: float = 20.0
    SUGGESTED_ORDER_BUFFER: float = 1.1
    DEFAULT_PLAN_HORIZON_DAYS: int = 30

    # Reconciliation thresholds
    RECONCILIATION_PASS_UNITS: float = 1.0
    RECONCILIATION_PASS_PERCENT: float = 0.5
    RECONCILIATION_CRITICAL_PERCENT: float = 3.0

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",")]

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() in {"prod", "production"}

    @model_validator(mode="after")
    def validate_production_safety(self):
        if not self.is_production:
            return self

        if "sqlite" in self.DATABASE_URL.lower():
            raise ValueError("SQLite is not allowed when ENVIRONMENT is production.")

        if self.AUTO_CREATE_TABLES:
            raise ValueError("AUTO_CREATE_TABLES must be false in production; use Alembic migrations.")

        if self.SUGGESTED_ORDER_BUFFER < 1:
            raise ValueError("SUGGESTED_ORDER_BUFFER must be >= 1.")

        return self


settings = Settings()
