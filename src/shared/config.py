"""Process-wide configuration, loaded once from the environment."""

from .config_schema import AppConfig
from .config_validator import ConfigLoader


def load_config() -> AppConfig:
    return ConfigLoader().load_from_env()


CONFIG: AppConfig = load_config()
