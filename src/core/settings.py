"""Configuration management for Fuzzy Search.

This module provides the Settings dataclass and loading/validation functions.
All configuration values are read from config/settings.yaml and may be
overridden at runtime (the command-line entry point does so).

Design Principles:
    - Config-Driven: All values sourced from settings.yaml
    - Fail-Fast: Missing required fields cause immediate failure
    - Clear Errors: Error messages include field paths (e.g., 'store.uri')
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class StoreConfig:
    """Document store configuration.

    Attributes:
        provider: Document store type (mongodb) - REQUIRED
        uri: Connection string - REQUIRED
        database: Database name, used when the connection string has none
        collection: Collection holding the documents - REQUIRED
        server_selection_timeout_ms: Upper bound on waiting for a server
        socket_timeout_ms: Upper bound on each network round-trip (cursor
            fetches, bulk writes, index builds); None waits indefinitely
    """
    provider: str | None = None
    uri: str | None = None
    database: str | None = None
    collection: str | None = None
    server_selection_timeout_ms: int = 30000
    socket_timeout_ms: int | None = None


@dataclass
class SoundexConfig:
    """Phonetic code configuration.

    Attributes:
        fields: Dotted 'array.leaf' paths to compute codes for
        array_field: Document field that stores the code array
        index_name: Name of the index on the code array
    """
    fields: list[str] = field(default_factory=list)
    array_field: str = "soundex"
    index_name: str = "soundexIndex"


@dataclass
class BackfillConfig:
    """Bulk back-fill configuration.

    Attributes:
        batch_size: Update requests per bulk write; also the cursor batch size
        max_await_time_ms: Cursor maxAwaitTimeMS; the server applies it only
            to tailable-await cursors, so store.socket_timeout_ms is what
            bounds a fetch on the plain scan
        max_attempts: Bulk-write attempts per batch before giving up
        base_delay_ms: Backoff unit; attempt N waits base_delay_ms * N
        backpressure_code: Store error code meaning "no operations applied"
    """
    batch_size: int = 100
    max_await_time_ms: int = 5000
    max_attempts: int = 10
    base_delay_ms: int = 50
    backpressure_code: int = 82


@dataclass
class SearchConfig:
    """Search configuration.

    Attributes:
        predicates: Terms to search for phonetically
    """
    predicates: list[str] = field(default_factory=list)


@dataclass
class IndexConfig:
    """Index build configuration.

    Attributes:
        build: Whether to ensure the code array index exists
    """
    build: bool = False


@dataclass
class ObservabilityConfig:
    """Observability and logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path to an additional log file
    """
    log_level: str = "INFO"
    log_file: str | None = None


@dataclass
class Settings:
    """Application settings container.

    Attributes:
        store: Document store configuration
        soundex: Phonetic code configuration
        backfill: Bulk back-fill configuration
        search: Search configuration
        index: Index build configuration
        observability: Observability configuration
    """
    store: StoreConfig = field(default_factory=StoreConfig)
    soundex: SoundexConfig = field(default_factory=SoundexConfig)
    backfill: BackfillConfig = field(default_factory=BackfillConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    index: IndexConfig = field(default_factory=IndexConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)


class SettingsError(Exception):
    """Base exception for settings-related errors."""

    pass


class SettingsFileError(SettingsError):
    """Raised when settings file cannot be read or parsed."""

    pass


class SettingsValidationError(SettingsError):
    """Raised when settings validation fails."""

    def __init__(self, message: str, missing_fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing_fields = missing_fields or []


def _flatten_dict(d: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten a nested dictionary to dot-notation keys.

    Args:
        d: Dictionary to flatten
        prefix: Prefix for nested keys

    Returns:
        Flattened dictionary with dot-notation keys
    """
    result: dict[str, Any] = {}
    for key, value in d.items():
        new_key = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            result.update(_flatten_dict(value, new_key))
        else:
            result[new_key] = value
    return result


def _get_required_fields() -> list[str]:
    """Field paths that must be present and non-empty."""
    return [
        "store.provider",
        "store.uri",
        "store.collection",
        "soundex.array_field",
    ]


def _get_positive_fields() -> list[str]:
    """Numeric field paths that must be >= 1."""
    return [
        "backfill.batch_size",
        "backfill.max_await_time_ms",
        "backfill.max_attempts",
        "backfill.base_delay_ms",
        "store.server_selection_timeout_ms",
    ]


def _get_optional_positive_fields() -> list[str]:
    """Numeric field paths that may be null but otherwise must be >= 1."""
    return ["store.socket_timeout_ms"]


def _get_string_list_fields() -> list[str]:
    """Field paths that must hold a list of strings."""
    return ["soundex.fields", "search.predicates"]


def _lookup(settings: Settings, field_path: str) -> Any:
    current: Any = settings
    for part in field_path.split("."):
        current = getattr(current, part, None)
        if current is None:
            return None
    return current


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def validate_settings(settings: Settings) -> None:
    """Validate required fields in settings.

    Args:
        settings: Settings object to validate

    Raises:
        SettingsValidationError: If required fields are missing or a
            numeric field is out of range, or a list field holds something
            other than a list of strings

    Example:
        >>> settings = load_settings("config/settings.yaml")
        >>> validate_settings(settings)  # May raise if required fields missing
    """
    missing = [p for p in _get_required_fields() if not _lookup(settings, p)]
    if missing:
        field_list = ", ".join(missing)
        raise SettingsValidationError(
            f"Missing required configuration fields: {field_list}",
            missing_fields=missing
        )

    invalid = [
        p for p in _get_positive_fields()
        if not _is_positive_int(_lookup(settings, p))
    ]
    invalid += [
        p for p in _get_optional_positive_fields()
        if _lookup(settings, p) is not None and not _is_positive_int(_lookup(settings, p))
    ]
    if invalid:
        raise SettingsValidationError(
            f"Configuration fields must be integers >= 1: {', '.join(invalid)}"
        )

    not_lists = [
        p for p in _get_string_list_fields()
        if not _is_string_list(_lookup(settings, p))
    ]
    if not_lists:
        raise SettingsValidationError(
            f"Configuration fields must be lists of strings: {', '.join(not_lists)}"
        )


def _yaml_to_settings(data: dict[str, Any]) -> Settings:
    """Convert YAML dictionary to Settings object.

    Args:
        data: Parsed YAML dictionary

    Returns:
        Settings object
    """
    def _build_store(data: dict[str, Any]) -> StoreConfig:
        return StoreConfig(
            provider=data.get("provider", "mongodb"),
            uri=data.get("uri", "mongodb://localhost:27017/"),
            database=data.get("database"),
            collection=data.get("collection", "fuzzy"),
            server_selection_timeout_ms=data.get("server_selection_timeout_ms", 30000),
            socket_timeout_ms=data.get("socket_timeout_ms"),
        )

    def _build_soundex(data: dict[str, Any]) -> SoundexConfig:
        return SoundexConfig(
            fields=data.get("fields") or [],
            array_field=data.get("array_field", "soundex"),
            index_name=data.get("index_name", "soundexIndex"),
        )

    def _build_backfill(data: dict[str, Any]) -> BackfillConfig:
        return BackfillConfig(
            batch_size=data.get("batch_size", 100),
            max_await_time_ms=data.get("max_await_time_ms", 5000),
            max_attempts=data.get("max_attempts", 10),
            base_delay_ms=data.get("base_delay_ms", 50),
            backpressure_code=data.get("backpressure_code", 82),
        )

    def _build_search(data: dict[str, Any]) -> SearchConfig:
        return SearchConfig(predicates=data.get("predicates") or [])

    def _build_index(data: dict[str, Any]) -> IndexConfig:
        return IndexConfig(build=bool(data.get("build", False)))

    def _build_observability(data: dict[str, Any]) -> ObservabilityConfig:
        return ObservabilityConfig(
            log_level=data.get("log_level", "INFO"),
            log_file=data.get("log_file"),
        )

    return Settings(
        store=_build_store(data.get("store") or {}),
        soundex=_build_soundex(data.get("soundex") or {}),
        backfill=_build_backfill(data.get("backfill") or {}),
        search=_build_search(data.get("search") or {}),
        index=_build_index(data.get("index") or {}),
        observability=_build_observability(data.get("observability") or {}),
    )


def load_settings(path: str | Path = "config/settings.yaml") -> Settings:
    """Load settings from a YAML file.

    Args:
        path: Path to the settings YAML file (default: config/settings.yaml)

    Returns:
        Settings object with all configuration loaded

    Raises:
        SettingsFileError: If the file cannot be read or parsed
        SettingsValidationError: If required fields are missing

    Example:
        >>> settings = load_settings()
        >>> print(settings.store.collection)
        fuzzy
    """
    path = Path(path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise SettingsFileError(f"Settings file not found: {path}") from e
    except yaml.YAMLError as e:
        raise SettingsFileError(f"Invalid YAML in settings file: {e}") from e

    if not isinstance(data, dict):
        raise SettingsFileError(f"Settings file must contain a mapping: {path}")

    settings = _yaml_to_settings(data)
    validate_settings(settings)

    return settings


def get_effective_settings(
    path: str | Path = "config/settings.yaml",
    overrides: dict[str, Any] | None = None
) -> Settings:
    """Load settings with optional runtime overrides.

    Overrides whose value is None are ignored, so callers can pass every
    command-line option and only the ones actually given take effect. The
    result is validated again after overrides are applied.

    Args:
        path: Path to the settings YAML file
        overrides: Optional dictionary of field paths to override.
                   Use dot-notation (e.g., {"store.collection": "people"})

    Returns:
        Settings object with overrides applied

    Example:
        >>> settings = get_effective_settings(
        ...     overrides={"store.database": "demo"}
        ... )
        >>> settings.store.database
        demo
    """
    settings = load_settings(path)

    if overrides:
        flat_overrides = _flatten_dict(overrides)
        for field_path, value in flat_overrides.items():
            if value is None:
                continue
            parts = field_path.split(".")
            obj = settings
            for part in parts[:-1]:
                obj = getattr(obj, part)
            if not hasattr(obj, parts[-1]):
                raise SettingsValidationError(f"Unknown configuration field: {field_path}")
            setattr(obj, parts[-1], value)
        validate_settings(settings)

    return settings
