"""
Application settings for the ingestion gateway.

Loads configuration from environment variables (.env file) with sensible defaults.
All settings can be overridden via environment variables.
"""

import os
import tempfile
from typing import Tuple

from pydantic import BaseModel, Field, field_validator, ConfigDict
from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


class APISettings(BaseModel):
    """API and server settings."""

    title: str = Field(default="Ingestion Gateway", description="API title")
    description: str = Field(
        default="Normalizes YAML/JSON payloads into documents and writes them to OpenSearch.",
        description="API description",
    )
    version: str = Field(default="1.0.0", description="API version")


class StoreSettings(BaseModel):
    """Document store connection settings."""

    backend: str = Field(
        default=os.getenv("STORE_BACKEND", "opensearch"),
        description="Document store backend: 'opensearch' or 'memory'",
    )
    host: str = Field(
        default=os.getenv("OPENSEARCH_HOST", "localhost"),
        description="OpenSearch host",
    )
    port: int = Field(
        default=int(os.getenv("OPENSEARCH_PORT", "9200")),
        description="OpenSearch port",
    )
    protocol: str = Field(
        default=os.getenv("OPENSEARCH_PROTOCOL", "https"),
        description="Protocol used to reach OpenSearch: 'http' or 'https'",
    )
    auth: str = Field(
        default=os.getenv("OPENSEARCH_AUTH", "admin:admin"),
        description="Credential pair in 'user:password' form (change in production!)",
    )
    verify_certs: bool = Field(
        default=os.getenv("OPENSEARCH_VERIFY_CERTS", "false").lower() == "true",
        description="Verify the store's TLS certificate",
    )
    timeout_seconds: float = Field(
        default=float(os.getenv("OPENSEARCH_TIMEOUT", "30")),
        description="Per-request timeout for store calls (seconds)",
    )
    write_workers: int = Field(
        default=int(os.getenv("STORE_WRITE_WORKERS", "8")),
        description="Threads used to issue concurrent per-document writes",
    )

    @field_validator("backend")
    def validate_backend(cls, v):
        if v not in ["opensearch", "memory"]:
            raise ValueError("backend must be 'opensearch' or 'memory'")
        return v

    @field_validator("protocol")
    def validate_protocol(cls, v):
        if v not in ["http", "https"]:
            raise ValueError("protocol must be 'http' or 'https'")
        return v

    @field_validator("auth")
    def validate_auth(cls, v):
        if v and ":" not in v:
            raise ValueError("auth must be in 'user:password' form")
        return v

    @field_validator("port", "write_workers")
    def validate_positive_integer(cls, v):
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @field_validator("timeout_seconds")
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v

    @property
    def credentials(self) -> Tuple[str, str]:
        """Split the credential pair into (user, password)."""
        user, _, password = self.auth.partition(":")
        return user, password

    @property
    def url(self) -> str:
        """Endpoint URL without credentials (safe to log)."""
        return f"{self.protocol}://{self.host}:{self.port}"


class RateLimitSettings(BaseModel):
    """Admission control for mutating routes."""

    enabled: bool = Field(
        default=os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true",
        description="Enable/disable admission control",
    )
    max_requests: int = Field(
        default=int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100")),
        description="Maximum admitted requests per window",
    )
    window_seconds: float = Field(
        default=float(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60")),
        description="Length of the fixed window (seconds)",
    )
    scope: str = Field(
        default=os.getenv("RATE_LIMIT_SCOPE", "client"),
        description="Counter scope: 'client' (per source address) or 'global'",
    )
    trust_forwarded: bool = Field(
        default=os.getenv("RATE_LIMIT_TRUST_FORWARDED", "false").lower() == "true",
        description="Key clients by X-Forwarded-For (only behind a trusted proxy)",
    )

    @field_validator("max_requests")
    def validate_max_requests(cls, v):
        if v <= 0:
            raise ValueError("max_requests must be positive")
        return v

    @field_validator("window_seconds")
    def validate_window(cls, v):
        if v <= 0:
            raise ValueError("window_seconds must be positive")
        return v

    @field_validator("scope")
    def validate_scope(cls, v):
        if v not in ["client", "global"]:
            raise ValueError("scope must be 'client' or 'global'")
        return v


class UploadSettings(BaseModel):
    """Limits and scratch space for uploaded payloads."""

    max_bytes: int = Field(
        default=int(os.getenv("UPLOAD_MAX_BYTES", str(50 * 1000 * 1000))),
        description="Maximum upload size in bytes",  # 50MB
    )
    tmp_dir: str = Field(
        default=os.getenv("UPLOAD_TMP_DIR", tempfile.gettempdir()),
        description="Directory for temporary upload files",
    )

    @field_validator("max_bytes")
    def validate_max_bytes(cls, v):
        if v <= 0:
            raise ValueError("Max upload size must be positive")
        return v


class Settings(BaseModel):
    """Global application configuration.

    Configuration priority:
    1. Environment variables (.env file or system)
    2. Defaults specified below
    """

    api: APISettings = Field(
        default_factory=APISettings, description="API and server configuration"
    )
    store: StoreSettings = Field(
        default_factory=StoreSettings, description="Document store configuration"
    )
    rate_limit: RateLimitSettings = Field(
        default_factory=RateLimitSettings, description="Admission control configuration"
    )
    upload: UploadSettings = Field(
        default_factory=UploadSettings, description="Upload configuration"
    )

    model_config = ConfigDict(
        extra="forbid",  # Prevent typos in environment variables
        validate_assignment=True,  # Validate on attribute assignment
    )


# Global settings instance
settings = Settings()
