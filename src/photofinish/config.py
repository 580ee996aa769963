"""Central Configuration System for photofinish.

This module is the single source of truth for application configuration.
Every other module that needs settings imports from here.

The configuration system supports:
- Multi-source configuration (environment variables > config file > defaults)
- Nested sections addressable from the environment with ``__``
- Graceful degradation when the config file is missing or malformed

Example:
    >>> from photofinish.config import get_config
    >>>
    >>> cfg = get_config()
    >>> cfg.reconcile.use_filename_dates
    True
    >>> reconciler = TemporalReconciler.from_config(cfg)

Environment:
    ``PHOTOFINISH_RECONCILE__LOCAL_TIMEZONE=America/Denver`` sets
    ``reconcile.local_timezone``; ``PHOTOFINISH_DEBUG=1`` sets ``debug``.

Config File Format (YAML):
    ```yaml
    reconcile:
      local_timezone: America/Denver  # IANA id or PT/MT/CT/ET/...; empty = system
      use_file_system_dates: true
      use_filename_dates: true

    commit:
      save_original_filename: false
      set_uuid: false

    logging:
      level: WARNING
      log_file: ~/.photofinish/photofinish.log

    debug: false
    verbose: false
    ```
"""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from photofinish.core.errors import AdjustmentError
from photofinish.reconcile.adjust import resolve_zone

logger = logging.getLogger(__name__)

CONFIG_SEARCH_PATHS = [
    Path("./photofinish.yaml"),
    Path("./photofinish.yml"),
    Path.home() / ".photofinish" / "config.yaml",
]

_SECTIONS = ("reconcile", "commit", "logging")


# =============================================================================
# Exceptions
# =============================================================================


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConfigFileError(ConfigError):
    """Exception raised for YAML config file issues.

    Raised when:
    - Config file exists but cannot be read
    - Config file contains malformed YAML
    - Config file has structural issues
    """

    pass


# =============================================================================
# Sections
# =============================================================================


class ReconcileConfig(BaseModel):
    """Settings for date and timezone reconciliation.

    Attributes:
        local_timezone: Zone used to interpret aware file system timestamps.
            An IANA id or an abbreviation such as ``MT``. None uses the
            system zone.
        use_file_system_dates: Consult file creation/modification times.
        use_filename_dates: Consult dates embedded in file names.

    Example:
        >>> ReconcileConfig(local_timezone="MT").zone()
        zoneinfo.ZoneInfo(key='America/Denver')
    """

    local_timezone: str | None = Field(
        default=None, description="Default local zone; None for the system zone."
    )
    use_file_system_dates: bool = Field(
        default=True, description="Match container times against file system times."
    )
    use_filename_dates: bool = Field(
        default=True, description="Parse dates from original file names."
    )

    @field_validator("local_timezone")
    @classmethod
    def validate_zone(cls, v: str | None) -> str | None:
        """Reject zone names that cannot be resolved."""
        if v is None or not v.strip():
            return None
        _lookup_zone(v)
        return v.strip()

    def zone(self) -> ZoneInfo | None:
        """The configured zone, or None for the system zone."""
        if self.local_timezone is None:
            return None
        return _lookup_zone(self.local_timezone)


class CommitConfig(BaseModel):
    """Settings for writing results back as inline tags.

    Attributes:
        save_original_filename: Record ``originalFilename`` when absent.
        set_uuid: Record a ``uuid`` when absent.
    """

    save_original_filename: bool = Field(
        default=False, description="Add originalFilename tag if not present."
    )
    set_uuid: bool = Field(default=False, description="Add uuid tag if not present.")


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING", description="Log level for the package."
    )
    log_file: Path | None = Field(default=None, description="Optional log file path.")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("log_file", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Any:
        """Expand ~ in the log path."""
        if isinstance(v, str) and v.strip():
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v or None


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Combines all configuration sections and supports loading from environment
    variables with the PHOTOFINISH_ prefix.

    Configuration priority (highest wins):
    1. Environment variables (PHOTOFINISH_*)
    2. Config file (YAML)
    3. In-code defaults

    Attributes:
        reconcile: Reconciliation settings.
        commit: Tag write-back settings.
        logging: Log level and file.
        debug: Enable debug mode (debug logging, tracebacks).
        verbose: Enable verbose console output.
    """

    reconcile: ReconcileConfig = Field(default_factory=ReconcileConfig)
    commit: CommitConfig = Field(default_factory=CommitConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    debug: bool = Field(default=False, description="Enable debug mode.")
    verbose: bool = Field(default=False, description="Enable verbose output.")

    model_config = {
        "env_prefix": "PHOTOFINISH_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore unknown fields for forward compatibility
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment overrides values read from the config file.
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.logging.level


# =============================================================================
# Module-Level Functions
# =============================================================================


def find_config_file(path: Path | None = None) -> Path | None:
    """Return the first existing config file, checking ``path`` first."""
    for candidate in [path, *CONFIG_SEARCH_PATHS]:
        if candidate is not None and candidate.exists():
            return candidate
    return None


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML config file into a dict.

    Raises:
        ConfigFileError: If the file cannot be read, is malformed YAML, or
            is not a mapping.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigFileError(f"Failed to read config file {path}: {e}") from e
    try:
        loaded = yaml.safe_load(content) if content.strip() else None
    except yaml.YAMLError as e:
        raise ConfigFileError(f"Failed to parse config file {path}: {e}") from e
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigFileError(f"Config file {path} has unexpected format.")
    return loaded


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from file, environment, and defaults.

    If no config file is found, uses defaults only (not an error).
    If the config file is malformed, logs a warning and uses defaults.

    Args:
        path: Optional path to config file. If None, searches default locations.

    Returns:
        Fully-populated AppConfig instance.

    Example:
        >>> config = load_config()  # Use defaults and env vars
        >>> config = load_config(Path("./photofinish.yaml"))  # Specific file
    """
    config_data: dict[str, Any] = {}
    config_file = find_config_file(path)
    if config_file is not None:
        try:
            config_data = read_config_file(config_file)
            logger.debug(f"Loaded config file {config_file}")
        except ConfigFileError as e:
            logger.warning(f"{e} Using defaults.")

    values: dict[str, Any] = {}
    for section in _SECTIONS:
        data = config_data.get(section)
        if isinstance(data, dict):
            values[section] = data
        elif data is not None:
            logger.warning(f"Config section '{section}' is not a mapping. Using defaults.")
    for flag in ("debug", "verbose"):
        if flag in config_data:
            values[flag] = config_data[flag]

    try:
        return AppConfig(**values)
    except ValidationError as e:
        logger.warning(f"Error parsing config values: {e}. Using defaults.")
        return AppConfig()


@functools.lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Get the cached configuration singleton.

    Loads configuration once and returns the same instance on subsequent calls.

    Returns:
        Cached AppConfig instance.
    """
    return load_config()


def reset_config() -> None:
    """Clear the configuration cache for testing.

    After calling this, the next call to get_config() will reload
    configuration from sources.
    """
    get_config.cache_clear()


def _lookup_zone(name: str) -> ZoneInfo:
    try:
        return resolve_zone(name)
    except AdjustmentError as e:
        raise ValueError(str(e)) from e
