import os
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from tourbook.timezones import DEFAULT_TIMEZONE


class ApiConfig(BaseModel):
    """Connection settings for the booking backend."""

    base_url: str = Field(description="Base URL of the booking REST API")
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    retries: int = Field(default=0, description="Retries of GET requests on 5xx responses")
    backoff_factor: float = Field(default=1.0, description="Retry backoff factor")


class AppConfig(BaseModel):
    """Application configuration."""

    api: ApiConfig
    storage_path: Path = Field(
        default=Path("tourbook-state.json"),
        description="JSON file holding the cart and customer details",
    )
    default_timezone: str = Field(
        default=DEFAULT_TIMEZONE,
        description="Timezone used for packages that do not declare one",
    )


def substitute_env_vars(value: str) -> str:
    """Substitute <ENV_VAR> patterns with environment variable values."""
    pattern = r"<([A-Z_][A-Z0-9_]*)>"

    def replace(match: re.Match) -> str:
        env_var = match.group(1)
        env_value = os.environ.get(env_var)
        if env_value is None:
            raise ValueError(f"Environment variable {env_var} is not set")
        return env_value

    return re.sub(pattern, replace, value)


def process_config_values(obj):
    """Recursively process config values to substitute environment variables."""
    if isinstance(obj, dict):
        return {k: process_config_values(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [process_config_values(item) for item in obj]
    elif isinstance(obj, str):
        return substitute_env_vars(obj)
    return obj


def load_config(config_path: Path | str = "config.yaml") -> AppConfig:
    """Load configuration from YAML file with environment variable substitution."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw_config = yaml.safe_load(f) or {}

    return AppConfig(**process_config_values(raw_config))
