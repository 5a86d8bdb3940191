"""Configuration schema with Pydantic for type safety and validation."""

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Environment(str, Enum):
    """Deployment environment types."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ServiceEndpoint(BaseModel):
    """Address the HTTP server binds to."""

    host: str = Field(default="127.0.0.1", min_length=1)
    port: int = Field(default=9001, ge=1, le=65535)


class GenerationConfig(BaseModel):
    """Page generation settings."""

    corpus_files: List[str] = Field(
        default_factory=lambda: ["chain1.txt", "chain2.txt", "chain3.txt"],
        min_length=1,
    )
    url_prefix: str = Field(default="/babble/")
    word_count: int = Field(default=200, ge=1, le=100_000)
    paragraph_count: int = Field(default=3, ge=1, le=1_000)
    link_count: int = Field(default=5, ge=0, le=100)
    buffer_size: int = Field(default=5 * 1024, ge=64, le=16 * 1024 * 1024)
    poison: str = Field(default="", repr=False)
    count_bytes_served: bool = Field(default=False)
    retry_after_seconds: int = Field(default=5, ge=1, le=3600)

    @field_validator("url_prefix")
    @classmethod
    def validate_prefix(cls, value: str) -> str:
        if not (value.startswith("/") and value.endswith("/")) or value == "/":
            raise ValueError("url_prefix must begin and end with '/'")
        return value

    @field_validator("corpus_files")
    @classmethod
    def validate_corpus_files(cls, value: List[str]) -> List[str]:
        files = [v.strip() for v in value if v.strip()]
        if not files:
            raise ValueError("at least one corpus file is required")
        return files

    @property
    def status_prefix(self) -> str:
        return f"{self.url_prefix}status"


class SecurityConfig(BaseModel):
    """Security middleware settings. A limit of 0 disables rate limiting."""

    rate_limit_requests: int = Field(default=0, ge=0)
    rate_limit_window: int = Field(default=60, ge=1)
    enable_https: bool = Field(default=False)


class AppConfig(BaseModel):
    """Complete application configuration schema."""

    log_level: LogLevel = Field(default=LogLevel.INFO)
    debug: bool = Field(default=False)
    app_env: Environment = Field(default=Environment.PRODUCTION)
    service_name: str = Field(default="babbler", min_length=1)

    server: ServiceEndpoint = Field(default_factory=ServiceEndpoint)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)

    model_config = ConfigDict(
        use_enum_values=True,
        validate_assignment=True,
    )
