"""Application configuration using Pydantic Settings."""

import re
from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Service Identity
    SERVICE_NAME: str = "image-relay"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development, staging, production

    # Logging Configuration
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    LOG_JSON: bool = True    # JSON logs (prod) vs pretty console (dev)
    DEBUG: bool = False      # Enable debug mode features

    # Upstream image-processing API (Claid.ai)
    # The key is never baked into the code; supply it via environment or .env
    CLAID_API_KEY: str = ""
    CLAID_API_URL: str = "https://api.claid.ai/v1/image-processing"
    CLAID_AUTH_SCHEME: str = "Claid-API-Key"
    CLAID_API_TIMEOUT: float = 60.0  # seconds

    # Multipart form layout expected by the upstream API
    UPSTREAM_IMAGE_FIELD: str = "source_image"
    UPSTREAM_IMAGE_FILENAME: str = "upload.png"
    UPSTREAM_IMAGE_CONTENT_TYPE: str = "image/png"
    UPSTREAM_INSTRUCTIONS_FIELD: str = "instructions"

    # Used when the upstream response carries no content-type header
    DEFAULT_RESULT_MIME_TYPE: str = "image/png"

    # CORS
    CORS_ALLOWED_ORIGINS: List[str] = ["*"]

    @field_validator('CLAID_API_URL')
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Validate upstream URL format."""
        if not re.match(r'^https?://.+', v):
            raise ValueError(
                f"CLAID_API_URL must start with http:// or https://, got '{v}'"
            )
        return v

    @field_validator('CLAID_AUTH_SCHEME')
    @classmethod
    def validate_auth_scheme(cls, v: str) -> str:
        """The scheme is the first token of the Authorization header."""
        if not v or any(ch.isspace() for ch in v):
            raise ValueError(
                f"CLAID_AUTH_SCHEME must be a single non-empty token, got '{v}'"
            )
        return v

    @field_validator('CLAID_API_TIMEOUT')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Ensure the upstream timeout is positive."""
        if v <= 0:
            raise ValueError(f"CLAID_API_TIMEOUT must be positive, got {v}")
        return v

    @property
    def is_debug_mode(self) -> bool:
        """Check if application is in debug mode."""
        return self.DEBUG or self.LOG_LEVEL.upper() == "DEBUG"

    @property
    def use_json_logs(self) -> bool:
        """Determine if JSON logging should be used.

        In production, always use JSON logs.
        In development, allow override via LOG_JSON setting.
        """
        if self.ENVIRONMENT == "production":
            return True
        if self.DEBUG:
            return self.LOG_JSON
        return True

    @property
    def is_upstream_configured(self) -> bool:
        """True when an upstream API key has been supplied."""
        return bool(self.CLAID_API_KEY)

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
