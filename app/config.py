"""Application configuration with comprehensive validation."""
from typing import Optional, Literal, List
from functools import lru_cache
from pydantic import Field, field_validator, model_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with production-grade validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Procurement Rating Service"
    APP_VERSION: str = "1.0.0"
    APP_ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "console"

    # API
    API_V1_PREFIX: str = "/api/v1"

    # Snowflake (submission store)
    SNOWFLAKE_ACCOUNT: Optional[str] = None
    SNOWFLAKE_USER: Optional[str] = None
    SNOWFLAKE_PASSWORD: Optional[SecretStr] = None
    SNOWFLAKE_DATABASE: Optional[str] = None
    SNOWFLAKE_SCHEMA: Optional[str] = None
    SNOWFLAKE_WAREHOUSE: Optional[str] = None
    SNOWFLAKE_ROLE: Optional[str] = None
    SUBMISSIONS_TABLE: str = "SUBMISSIONS"

    # AWS S3 (uploaded application documents)
    AWS_ACCESS_KEY_ID: Optional[SecretStr] = None
    AWS_SECRET_ACCESS_KEY: Optional[SecretStr] = None
    AWS_REGION: str = "us-east-2"
    S3_BUCKET_PREFIX: str = ""
    STORAGE_URL_PREFIX_SEGMENTS: int = Field(
        default=6,
        ge=0,
        le=20,
        description="Leading URL path segments stripped to get the object path",
    )

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_TTL_RANKINGS: int = 300  # 5 minutes
    RATING_LOCK_TTL_SECONDS: int = Field(default=900, ge=30, le=86400)

    # Generative AI (Gemini)
    GEMINI_API_KEY: Optional[SecretStr] = None
    DOCUMENT_RATER_MODEL: str = "gemini-2.0-flash"
    HOLISTIC_RATER_MODEL: str = "gemini-1.5-pro-latest"
    RATER_TIMEOUT_SECONDS: float = Field(default=45.0, ge=5.0, le=600.0)
    SECTION_TIMEOUT_SECONDS: float = Field(default=300.0, ge=10.0, le=3600.0)

    # Rating policy
    PRICE_CEILING: float = Field(default=1_000_000.0, description="Tender value ceiling")
    CORE_COUNT_FAILED_DOCUMENTS: bool = True
    EXPERIENCE_COUNT_FAILED_DOCUMENTS: bool = False

    # Dashboard criterion weights (percent)
    W_CORE: float = Field(default=30.0, ge=0.0, le=100.0)
    W_EXPERIENCE: float = Field(default=30.0, ge=0.0, le=100.0)
    W_TEAM: float = Field(default=30.0, ge=0.0, le=100.0)
    W_PRICE: float = Field(default=10.0, ge=0.0, le=100.0)

    # Qualification thresholds (0-10 scale)
    QUALIFICATION_MIN_CRITERION_SCORE: float = Field(default=3.0, ge=0.0, le=10.0)
    QUALIFICATION_MIN_TOTAL_SCORE: float = Field(default=5.0, ge=0.0, le=10.0)

    @field_validator("PRICE_CEILING")
    @classmethod
    def validate_price_ceiling(cls, v: float) -> float:
        if v < 0:
            raise ValueError("PRICE_CEILING must be non-negative")
        return v

    @model_validator(mode="after")
    def validate_criterion_weights(self):
        """Validate criterion weights sum to 100."""
        total = sum(self.criterion_weights.values())
        if abs(total - 100.0) > 0.001:
            raise ValueError(f"Criterion weights must sum to 100, got {total}")
        return self

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure production has required settings."""
        if self.APP_ENV == "production":
            if self.DEBUG:
                raise ValueError("DEBUG must be False in production")
            if self.GEMINI_API_KEY is None:
                raise ValueError("GEMINI_API_KEY required in production")
        return self

    @property
    def criterion_weights(self) -> dict:
        """Criterion weights keyed by section name."""
        return {
            "core": self.W_CORE,
            "experience": self.W_EXPERIENCE,
            "team": self.W_TEAM,
            "price": self.W_PRICE,
        }

    @property
    def snowflake_configured(self) -> bool:
        return all([self.SNOWFLAKE_ACCOUNT, self.SNOWFLAKE_USER, self.SNOWFLAKE_PASSWORD])

    @property
    def missing_snowflake_vars(self) -> List[str]:
        names = ["SNOWFLAKE_ACCOUNT", "SNOWFLAKE_USER", "SNOWFLAKE_PASSWORD"]
        return [n for n in names if not getattr(self, n)]


@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
