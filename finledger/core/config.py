"""
FinLedger Application Configuration

Uses Pydantic Settings for automatic validation
and loading environment variables from .env file.

Principles:
1. All settings in one place
2. Automatic type validation
3. Environment variables override defaults
4. Components receive the values they need at construction,
   nothing below the application factory reads this module
"""

from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEV_SECRET_KEY = "change-this-secret-key-in-production"


class Settings(BaseSettings):
    """
    Application settings with automatic loading from environment variables

    Pydantic Settings automatically:
    - Reads .env file
    - Converts data types
    - Validates values
    - Overrides with environment variables
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === MAIN SETTINGS ===
    project_name: str = Field(default="FinLedger", description="Project name")
    debug: bool = Field(default=False, description="Debug mode")
    env: str = Field(default="local", description="Deployment environment: local, dev or prod")
    api_prefix: str = Field(default="/api", description="API prefix")

    # === DATABASE ===
    database_url: str = Field(
        default="sqlite:///./storage/finledger.db",
        description="SQLAlchemy database URL (SQLite or PostgreSQL)"
    )

    # === JWT SETTINGS ===
    jwt_secret_key: str = Field(
        default=DEV_SECRET_KEY,
        description="Symmetric secret used to sign access tokens"
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm (HMAC family only)"
    )
    access_token_expire_minutes: int = Field(
        default=12 * 60,
        gt=0,
        description="Access token lifetime in minutes"
    )

    # === ADVICE (generative language API) ===
    advice_api_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the generative language API"
    )
    advice_api_key: Optional[str] = Field(
        default=None,
        description="API key for the advice provider"
    )
    advice_model: str = Field(
        default="gemini-1.5-flash",
        description="Model used to generate financial advice"
    )
    advice_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout in seconds for advice requests"
    )

    # === CORS ===
    allowed_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:63342"],
        description="Allowed origins for CORS"
    )

    # === LOGGING ===
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v):
        """Validate that database URL is supported"""
        if not (v.startswith("sqlite://") or v.startswith("postgresql")):
            raise ValueError("Database URL must start with sqlite:// or postgresql://")
        return v

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v):
        """Only symmetric HMAC algorithms make sense with a shared secret"""
        allowed = ["HS256", "HS384", "HS512"]
        if v.upper() not in allowed:
            raise ValueError(f"JWT algorithm must be one of: {allowed}")
        return v.upper()

    @field_validator("env")
    @classmethod
    def validate_env(cls, v):
        allowed = ["local", "dev", "prod"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate logging level"""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"Log level must be one of: {allowed_levels}")
        return v.upper()

    @property
    def uses_default_secret(self) -> bool:
        return self.jwt_secret_key == DEV_SECRET_KEY


def get_settings() -> Settings:
    """Load settings from the environment"""
    return Settings()


def get_cors_origins(settings: Settings) -> List[str]:
    """Get allowed origins for CORS"""
    return settings.allowed_origins
