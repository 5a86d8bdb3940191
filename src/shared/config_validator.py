"""Configuration loading from the environment."""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

from pydantic import ValidationError

from .config_schema import (
    AppConfig,
    Environment,
    GenerationConfig,
    LogLevel,
    SecurityConfig,
    ServiceEndpoint,
)

logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""


def _flag(env: Dict[str, str], name: str, default: str = "false") -> bool:
    return env.get(name, default).lower() == "true"


class ConfigLoader:
    """Load and validate configuration from environment variables."""

    def load_from_env(self, env: Optional[Dict[str, str]] = None) -> AppConfig:
        """
        Load configuration from environment variables.

        Args:
            env: Optional dictionary of environment variables.
                If None, uses os.environ.

        Raises:
            ConfigValidationError: If any value is missing or invalid.
        """
        env = dict(os.environ) if env is None else env
        try:
            config = AppConfig(
                log_level=LogLevel(env.get("LOG_LEVEL", "INFO").upper()),
                debug=_flag(env, "DEBUG"),
                app_env=Environment(env.get("APP_ENV", "production").lower()),
                service_name=env.get("SERVICE_NAME", "babbler"),
                server=ServiceEndpoint(
                    host=env.get("BABBLER_HOST", "127.0.0.1"),
                    port=int(env.get("BABBLER_PORT", 9001)),
                ),
                generation=self._load_generation_config(env),
                security=SecurityConfig(
                    rate_limit_requests=int(env.get("RATE_LIMIT_REQUESTS", 0)),
                    rate_limit_window=int(env.get("RATE_LIMIT_WINDOW", 60)),
                    enable_https=_flag(env, "ENABLE_HTTPS"),
                ),
            )
        except ValidationError as e:
            raise ConfigValidationError(f"Configuration validation failed: {e}") from e
        except (ValueError, OSError) as e:
            raise ConfigValidationError(f"Failed to load configuration: {e}") from e

        logger.debug(
            "Configuration loaded for environment %s (%d corpus files)",
            config.app_env,
            len(config.generation.corpus_files),
        )
        return config

    def _load_generation_config(self, env: Dict[str, str]) -> GenerationConfig:
        files = env.get("BABBLER_CORPUS_FILES")
        extra = {}
        if files is not None:
            extra["corpus_files"] = files.split(",")
        return GenerationConfig(
            url_prefix=env.get("BABBLER_URL_PREFIX", "/babble/"),
            word_count=int(env.get("BABBLER_WORD_COUNT", 200)),
            paragraph_count=int(env.get("BABBLER_PARAGRAPH_COUNT", 3)),
            link_count=int(env.get("BABBLER_LINK_COUNT", 5)),
            buffer_size=int(env.get("BABBLER_BUFFER_SIZE", 5 * 1024)),
            poison=self._load_poison(env),
            count_bytes_served=_flag(env, "BABBLER_COUNT_BYTES_SERVED"),
            retry_after_seconds=int(env.get("BABBLER_RETRY_AFTER_SECONDS", 5)),
            **extra,
        )

    def _load_poison(self, env: Dict[str, str]) -> str:
        """Inline BABBLER_POISON wins over BABBLER_POISON_FILE."""
        if env.get("BABBLER_POISON"):
            return env["BABBLER_POISON"]
        path = env.get("BABBLER_POISON_FILE")
        if not path:
            return ""
        return Path(path).read_text(encoding="utf-8")
