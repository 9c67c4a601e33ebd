"""Configuration management for the firelytics CLI.

Handles persistent storage of collector settings in a cross-platform config
directory. Supports environment variables as override.
"""

import os
import uuid
from pathlib import Path
from typing import Any

import yaml
from platformdirs import user_config_dir
from pydantic import BaseModel, Field

from firelytics.telemetry.schema import ClientConfig, ClientOptions
from firelytics.version import __version__

# Cross-platform config directory
# Linux: ~/.config/firelytics
# macOS: ~/Library/Application Support/firelytics
# Windows: C:\\Users\\<user>\\AppData\\Local\\firelytics
CONFIG_DIR = Path(user_config_dir("firelytics", appauthor=False))

CONFIG_FILE = CONFIG_DIR / "config.yaml"
CLIENT_ID_FILE = CONFIG_DIR / "client_id"

MEASUREMENT_ID_ENV = "FIRELYTICS_MEASUREMENT_ID"
DEBUG_ENV = "FIRELYTICS_DEBUG"


class CollectorConfig(BaseModel):
    """Collector (measurement) settings."""

    measurement_id: str | None = Field(
        default=None, description="Measurement ID (G-XXXXXXXXXX)"
    )
    app_name: str = Field(default="firelytics", description="Application name sent as 'an'")
    app_version: str = Field(default=__version__, description="Application version sent as 'av'")
    user_language: str | None = Field(default=None, description="User language sent as 'ul'")
    headers: dict[str, str] = Field(default_factory=dict, description="Extra request headers")


class SettingsConfig(BaseModel):
    """General client settings."""

    max_cache_time: int = Field(default=5000, ge=0, description="Flush delay in milliseconds")
    debug: bool = Field(default=False, description="Send events in debug mode")
    origin: str = Field(default="firebase", description="Event origin tag")
    enabled: bool = Field(default=True, description="Enable analytics collection")


class FirelyticsConfig(BaseModel):
    """Complete CLI configuration."""

    collector: CollectorConfig = Field(default_factory=CollectorConfig)
    settings: SettingsConfig = Field(default_factory=SettingsConfig)


def ensure_config_dir() -> None:
    """Create config directory if it doesn't exist."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)


def load_config() -> FirelyticsConfig:
    """Load configuration from file, with environment overrides applied."""
    config = FirelyticsConfig()
    if CONFIG_FILE.exists():
        try:
            with open(CONFIG_FILE) as f:
                data = yaml.safe_load(f) or {}
                config = FirelyticsConfig(**data)
        except (yaml.YAMLError, ValueError):
            pass  # Use defaults if file is corrupted

    # Environment variables override file
    env_measurement_id = os.environ.get(MEASUREMENT_ID_ENV)
    if env_measurement_id:
        config.collector.measurement_id = env_measurement_id
    env_debug = os.environ.get(DEBUG_ENV)
    if env_debug:
        config.settings.debug = env_debug.lower() in ("true", "1", "yes")

    return config


def save_config(config: FirelyticsConfig) -> None:
    """Save configuration to file."""
    ensure_config_dir()

    with open(CONFIG_FILE, "w") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False)


def get_effective_config(
    measurement_id: str | None = None,
    debug: bool | None = None,
    max_cache_time: int | None = None,
) -> FirelyticsConfig:
    """Get effective config with command-line overrides applied."""
    config = load_config()

    if measurement_id:
        config.collector.measurement_id = measurement_id
    if debug is not None:
        config.settings.debug = debug
    if max_cache_time is not None:
        config.settings.max_cache_time = max_cache_time

    return config


def update_config(key: str, value: Any) -> None:
    """Update a specific config value.

    Args:
        key: Dot-notation key (e.g., "collector.measurement_id", "settings.debug")
        value: New value
    """
    config = load_config()

    parts = key.split(".")
    if len(parts) != 2:
        raise ValueError(f"Invalid config key format: {key}")

    section, field = parts
    if not hasattr(config, section):
        raise ValueError(f"Unknown section: {section}")
    section_obj = getattr(config, section)
    if field not in type(section_obj).model_fields:
        raise ValueError(f"Unknown field: {field} in {section}")

    # Type coercion for common types
    current = getattr(section_obj, field)
    if isinstance(current, bool):
        value = str(value).lower() in ("true", "1", "yes")
    elif isinstance(current, int):
        value = int(value)
    elif isinstance(current, dict):
        raise ValueError(f"Cannot set mapping field {key} from the command line")
    setattr(section_obj, field, value)

    save_config(config)


def get_client_id() -> str:
    """Get or generate a stable client ID (UUID v4) for this machine.

    The ID is generated once and reused, so consecutive runs count as the
    same client in the analytics reports.
    """
    ensure_config_dir()

    if CLIENT_ID_FILE.exists():
        try:
            client_id = CLIENT_ID_FILE.read_text().strip()
            uuid.UUID(client_id)
            return client_id
        except (OSError, UnicodeDecodeError, ValueError):
            pass  # File corrupted, regenerate

    client_id = str(uuid.uuid4())
    try:
        CLIENT_ID_FILE.write_text(client_id)
    except OSError:
        pass  # If we can't write, still return the ID for this session

    return client_id


def build_client_settings(
    config: FirelyticsConfig,
    client_id: str | None = None,
    session_id: str | None = None,
) -> tuple[ClientConfig, ClientOptions]:
    """Translate CLI configuration into analytics client settings.

    Args:
        config: Effective CLI configuration
        client_id: Client ID override (default: persisted machine client ID)
        session_id: Session ID (default: a fresh one per invocation)

    Returns:
        Tuple of (client config, client options)
    """
    collector, settings = config.collector, config.settings
    client_config = ClientConfig(measurement_id=collector.measurement_id)
    options = ClientOptions(
        client_id=client_id or get_client_id(),
        session_id=session_id or uuid.uuid4().hex[:10],
        app_name=collector.app_name,
        app_version=collector.app_version,
        user_language=collector.user_language,
        headers=collector.headers or None,
        max_cache_time=settings.max_cache_time,
        origin=settings.origin,
        debug=settings.debug,
    )
    return client_config, options


def get_config_paths() -> dict[str, Path]:
    """Get paths to config files for debugging."""
    return {
        "config_dir": CONFIG_DIR,
        "config_file": CONFIG_FILE,
        "client_id_file": CLIENT_ID_FILE,
    }
