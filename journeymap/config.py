# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Configuration management for JourneyMap.
Handles loading, validation, and defaults for all settings.

Settings come from a YAML file and can be overridden by environment
variables, so deployments can keep secrets out of the config file.
"""

import os
import yaml
from typing import Any, Dict, List, Mapping, Optional
from dataclasses import dataclass, field
import logging

logger = logging.getLogger(__name__)

# Default paths
DEFAULT_CONFIG_PATHS = [
    "/etc/journeymap/config.yaml",
    os.path.expanduser("~/.config/journeymap/config.yaml"),
    "./config.yaml",
]

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_PHOTOS_API_URL = "https://photoslibrary.googleapis.com/v1"

# Environment variable -> (section, field)
ENV_OVERRIDES = {
    "GOOGLE_CLIENT_ID": ("google", "client_id"),
    "GOOGLE_CLIENT_SECRET": ("google", "client_secret"),
    "GOOGLE_REDIRECT_URI": ("google", "redirect_uri"),
    "GOOGLE_REFRESH_TOKEN": ("google", "refresh_token"),
    "GOOGLE_PHOTOS_ALBUM_ID": ("album", "album_id"),
    "CRON_SECRET": ("sync", "secret"),
    "JOURNEYMAP_STORE_BACKEND": ("store", "backend"),
    "JOURNEYMAP_STORE_PATH": ("store", "path"),
}

SECRET_FIELDS = {"client_secret", "refresh_token", "secret"}


class ConfigError(Exception):
    """Raised when settings required for an operation are missing."""


@dataclass
class GoogleConfig:
    """OAuth client and API endpoint settings."""
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = ""
    refresh_token: str = ""
    token_url: str = GOOGLE_TOKEN_URL
    api_base_url: str = GOOGLE_PHOTOS_API_URL


@dataclass
class AlbumConfig:
    """The shared album being synced."""
    album_id: str = ""


@dataclass
class SyncConfig:
    """Sync and URL resolution settings."""
    secret: str = ""
    page_size: int = 100
    batch_size: int = 50  # mediaItems:batchGet limit
    url_size_suffix: str = "=w800-h600"
    request_timeout_seconds: int = 30


@dataclass
class StoreConfig:
    """Key-value store settings."""
    backend: str = "json"  # json, memory
    path: str = "~/.local/share/journeymap/store"


@dataclass
class WebConfig:
    """Web API settings."""
    port: int = 8080
    host: str = "0.0.0.0"
    dev_mode: bool = False
    cache_max_age_seconds: int = 1800
    stale_while_revalidate_seconds: int = 3600


@dataclass
class JourneyMapConfig:
    """Main configuration class."""
    google: GoogleConfig = field(default_factory=GoogleConfig)
    album: AlbumConfig = field(default_factory=AlbumConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    web: WebConfig = field(default_factory=WebConfig)

    # Runtime state (not persisted)
    config_path: Optional[str] = None


def _dict_to_dataclass(data: Optional[Dict[str, Any]], cls: type) -> Any:
    """Convert a dictionary to a dataclass instance, ignoring unknown keys."""
    if data is None:
        return cls()

    field_names = set(cls.__dataclass_fields__)
    kwargs = {key: value for key, value in data.items() if key in field_names}
    return cls(**kwargs)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def apply_env_overrides(config: JourneyMapConfig, environ: Mapping[str, str]) -> None:
    """
    Overlay environment variables on a loaded config.

    Empty variables are ignored so an unset secret in the environment never
    blanks out a value from the config file.
    """
    for env_name, (section, field_name) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            setattr(getattr(config, section), field_name, value)
            logger.debug(f"Config {section}.{field_name} set from {env_name}")

    dev_mode = environ.get("JOURNEYMAP_DEV_MODE")
    if dev_mode:
        config.web.dev_mode = _parse_bool(dev_mode)
    elif environ.get("NODE_ENV") == "development":
        config.web.dev_mode = True


def load_config(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None
) -> JourneyMapConfig:
    """
    Load configuration from a YAML file and the environment.

    Args:
        config_path: Path to config file. If None, searches default locations.
        environ: Environment mapping. Defaults to os.environ.

    Returns:
        JourneyMapConfig instance with loaded or default values.
    """
    if environ is None:
        environ = os.environ

    # Find config file
    if config_path:
        paths_to_try = [config_path]
    else:
        paths_to_try = DEFAULT_CONFIG_PATHS

    config_data = {}
    found_path = None

    for path in paths_to_try:
        expanded_path = os.path.expanduser(path)
        if os.path.exists(expanded_path):
            try:
                with open(expanded_path, 'r') as f:
                    config_data = yaml.safe_load(f) or {}
                found_path = expanded_path
                logger.info(f"Loaded config from {expanded_path}")
                break
            except Exception as e:
                logger.warning(f"Failed to load config from {expanded_path}: {e}")

    if not found_path:
        logger.info("No config file found, using defaults and environment")

    config = JourneyMapConfig(
        google=_dict_to_dataclass(config_data.get('google'), GoogleConfig),
        album=_dict_to_dataclass(config_data.get('album'), AlbumConfig),
        sync=_dict_to_dataclass(config_data.get('sync'), SyncConfig),
        store=_dict_to_dataclass(config_data.get('store'), StoreConfig),
        web=_dict_to_dataclass(config_data.get('web'), WebConfig),
        config_path=found_path,
    )

    apply_env_overrides(config, environ)

    # Expand store path
    config.store.path = os.path.expanduser(config.store.path)

    return config


def config_to_dict(config: JourneyMapConfig, redact_secrets: bool = False) -> Dict[str, Any]:
    """Convert config to dictionary for serialization."""
    def dataclass_to_dict(obj: Any) -> Any:
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name in obj.__dataclass_fields__:
                if field_name == 'config_path':
                    continue  # Skip runtime state
                value = getattr(obj, field_name)
                if redact_secrets and field_name in SECRET_FIELDS and value:
                    value = "***"
                result[field_name] = dataclass_to_dict(value)
            return result
        elif isinstance(obj, list):
            return [dataclass_to_dict(item) for item in obj]
        elif isinstance(obj, dict):
            return {k: dataclass_to_dict(v) for k, v in obj.items()}
        else:
            return obj

    return dataclass_to_dict(config)


def missing_sync_settings(config: JourneyMapConfig) -> List[str]:
    """Return the names of settings a sync cannot run without."""
    required = [
        ("album.album_id", config.album.album_id),
        ("google.client_id", config.google.client_id),
        ("google.client_secret", config.google.client_secret),
        ("google.refresh_token", config.google.refresh_token),
    ]
    return [name for name, value in required if not value]


def require_sync_config(config: JourneyMapConfig) -> None:
    """Raise ConfigError if the album or OAuth credentials are missing."""
    missing = missing_sync_settings(config)
    if missing:
        raise ConfigError(f"Missing required settings: {', '.join(missing)}")


def validate_config(config: JourneyMapConfig) -> List[str]:
    """
    Validate configuration and return list of errors.

    Returns:
        List of error messages. Empty if valid.
    """
    errors = []

    for name in missing_sync_settings(config):
        errors.append(f"{name} is not set. Sync will not be available.")

    if not config.sync.secret:
        errors.append("sync.secret is not set. The sync endpoint will reject all requests.")

    if config.sync.page_size < 1 or config.sync.page_size > 100:
        errors.append("sync.page_size must be between 1 and 100")

    if config.sync.batch_size < 1 or config.sync.batch_size > 50:
        errors.append("sync.batch_size must be between 1 and 50")

    if config.sync.url_size_suffix and not config.sync.url_size_suffix.startswith('='):
        errors.append("sync.url_size_suffix must start with '='")

    if config.sync.request_timeout_seconds <= 0:
        errors.append("sync.request_timeout_seconds must be positive")

    if config.store.backend not in ['json', 'memory']:
        errors.append("Store backend must be 'json' or 'memory'")

    if config.store.backend == 'json' and not config.store.path:
        errors.append("store.path is required for the json backend")

    if config.web.port < 1 or config.web.port > 65535:
        errors.append("Web port must be between 1 and 65535")

    return errors
