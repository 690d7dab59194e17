"""Settings, the process-wide log store, and logging setup."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from .exceptions import ConfigurationError
from .store import LogStore, MemoryLogStore, SqliteLogStore

DEFAULT_CONFIG_FILE = "actify.toml"
DEFAULT_LOG_LEVEL = "info"

_ENV_KEYS = {
    "ACTIFY_LOG_DB": "log_db_path",
    "ACTIFY_USE_POLICY": "use_policy",
    "ACTIFY_LOG_LEVEL": "log_level",
}

_default_store: LogStore | None = None


class Settings(BaseModel):
    """Engine-wide settings.

    ``log_db_path`` selects the SQLite file for the default log store; when
    unset, logs are kept in memory.
    """

    log_db_path: str | None = None
    use_policy: bool = False
    log_level: str = DEFAULT_LOG_LEVEL


def _load_file(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Failed to parse {path}: {e}") from e
    # allow either a top-level table or an [actify] section
    section = raw.get("actify", raw)
    return {key.replace("-", "_"): value for key, value in section.items()}


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from ``actify.toml`` (if present) and the environment.

    Environment variables win over the file.
    """
    values: dict[str, Any] = {}
    config_file = Path(path) if path is not None else Path.cwd() / DEFAULT_CONFIG_FILE
    if config_file.is_file():
        values.update(_load_file(config_file))
    elif path is not None:
        raise ConfigurationError(f"Config file not found: {config_file}")

    for env_key, field in _ENV_KEYS.items():
        env_value = os.environ.get(env_key)
        if env_value:
            values[field] = env_value

    try:
        return Settings.model_validate(values)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e


def build_log_store(settings: Settings) -> LogStore:
    if settings.log_db_path:
        return SqliteLogStore(settings.log_db_path)
    return MemoryLogStore()


def default_log_store(settings: Settings | None = None) -> LogStore:
    """Return the process-wide log store, creating it on first use."""
    global _default_store
    if _default_store is None:
        _default_store = build_log_store(settings or load_settings())
    return _default_store


def reset_default_log_store() -> None:
    global _default_store
    _default_store = None


def configure_logging(level: str = DEFAULT_LOG_LEVEL, log_file: str | None = None) -> None:
    """Attach a stream handler (and optionally a file handler) to the actify logger."""
    logger = logging.getLogger("actify")
    logger.handlers.clear()
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level.upper())
