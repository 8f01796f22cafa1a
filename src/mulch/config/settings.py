"""
Configuration management with environment variable and .env support.

Configuration precedence (highest to lowest):
1. Environment variables (MULCH_*)
2. Project config file (<root>/.mulch/mulch.config.yaml)
3. Hardcoded constants (constants.py)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from ..core.logging_config import LogConfig
from ..expertise.errors import ConfigError
from .constants import (
    CONFIG_FILE,
    DEFAULT_CONFIG_VERSION,
    DEFAULT_HARD_LIMIT,
    DEFAULT_MAX_ENTRIES,
    DEFAULT_SEARCH_CASE_SENSITIVE,
    DEFAULT_SHELF_LIFE_OBSERVATIONAL,
    DEFAULT_SHELF_LIFE_TACTICAL,
    DEFAULT_WARN_ENTRIES,
    ENV_FILE,
    ENV_LOG_FILE,
    ENV_LOG_LEVEL,
    ENV_SEARCH_CASE_SENSITIVE,
    ENV_SHELF_LIFE_OBSERVATIONAL,
    ENV_SHELF_LIFE_TACTICAL,
    ERROR_NO_CONFIG,
    MULCH_DIR,
)
from .path_resolver import PathResolver


def _load_env_files(root: Path) -> None:
    """Load .env files from the project root and its .mulch directory."""
    env_locations = [
        root / ENV_FILE,
        root / MULCH_DIR / ENV_FILE,
    ]

    for env_path in env_locations:
        if env_path.exists():
            load_dotenv(env_path, override=False)  # Don't override already-set vars


def _get_env_str(key: str, default: str | None = None) -> str | None:
    """Get string value from environment variable. Empty strings are treated as missing."""
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return value


def _get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _section(data: dict, key: str) -> dict:
    """Return a nested mapping; a missing or null section reads as empty."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping, got {type(value).__name__}")
    return value


def _config_int(data: dict, key: str, default: int, section: str) -> int:
    value = data.get(key, default)
    if isinstance(value, bool):
        raise ConfigError(f"'{section}.{key}' must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"'{section}.{key}' must be an integer, got {value!r}") from None


def _get_env_bool(key: str, default: bool) -> bool:
    """Get boolean value from environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


@dataclass(frozen=True)
class ShelfLife:
    """Days a non-foundational record stays fresh, per classification."""

    tactical: int = DEFAULT_SHELF_LIFE_TACTICAL
    observational: int = DEFAULT_SHELF_LIFE_OBSERVATIONAL

    @classmethod
    def from_dict(cls, data: dict) -> "ShelfLife":
        """Create ShelfLife from dict with environment variable overrides."""
        return cls(
            tactical=_get_env_int(
                ENV_SHELF_LIFE_TACTICAL,
                _config_int(data, "tactical", DEFAULT_SHELF_LIFE_TACTICAL, "shelf_life"),
            ),
            observational=_get_env_int(
                ENV_SHELF_LIFE_OBSERVATIONAL,
                _config_int(data, "observational", DEFAULT_SHELF_LIFE_OBSERVATIONAL, "shelf_life"),
            ),
        )

    def to_dict(self) -> dict[str, int]:
        return {"tactical": self.tactical, "observational": self.observational}


@dataclass
class ClassificationDefaults:
    shelf_life: ShelfLife = field(default_factory=ShelfLife)

    @classmethod
    def from_dict(cls, data: dict) -> "ClassificationDefaults":
        return cls(shelf_life=ShelfLife.from_dict(_section(data, "shelf_life")))

    def to_dict(self) -> dict[str, Any]:
        return {"shelf_life": self.shelf_life.to_dict()}


@dataclass
class GovernanceConfig:
    max_entries: int = DEFAULT_MAX_ENTRIES
    warn_entries: int = DEFAULT_WARN_ENTRIES
    hard_limit: int = DEFAULT_HARD_LIMIT

    @classmethod
    def from_dict(cls, data: dict) -> "GovernanceConfig":
        return cls(
            max_entries=_config_int(data, "max_entries", DEFAULT_MAX_ENTRIES, "governance"),
            warn_entries=_config_int(data, "warn_entries", DEFAULT_WARN_ENTRIES, "governance"),
            hard_limit=_config_int(data, "hard_limit", DEFAULT_HARD_LIMIT, "governance"),
        )

    def health(self, count: int) -> str:
        """Governance level for a domain holding ``count`` records."""
        if count >= self.hard_limit:
            return "over_limit"
        if count >= self.warn_entries:
            return "warning"
        if count >= self.max_entries:
            return "approaching"
        return "ok"

    def to_dict(self) -> dict[str, int]:
        return {
            "max_entries": self.max_entries,
            "warn_entries": self.warn_entries,
            "hard_limit": self.hard_limit,
        }


@dataclass
class SearchConfig:
    case_sensitive: bool = DEFAULT_SEARCH_CASE_SENSITIVE

    @classmethod
    def from_dict(cls, data: dict) -> "SearchConfig":
        return cls(
            case_sensitive=_get_env_bool(
                ENV_SEARCH_CASE_SENSITIVE,
                bool(data.get("case_sensitive", DEFAULT_SEARCH_CASE_SENSITIVE)),
            ),
        )


def _is_log_level(value: object) -> bool:
    return isinstance(value, str) and isinstance(logging.getLevelName(value.upper()), int)


def _log_config_from_dict(data: dict) -> LogConfig:
    known = set(LogConfig.__dataclass_fields__)
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"unknown logging option(s): {', '.join(map(str, unknown))}")
    cfg = LogConfig(**data)
    if not _is_log_level(cfg.level):
        raise ConfigError(f"'logging.level' is not a logging level: {cfg.level!r}")
    level = _get_env_str(ENV_LOG_LEVEL)
    if level:
        if not _is_log_level(level):
            raise ConfigError(f"{ENV_LOG_LEVEL} is not a logging level: {level!r}")
        cfg.level = level
    log_file = _get_env_str(ENV_LOG_FILE)
    if log_file:
        cfg.file_enabled = True
        cfg.file_path = log_file
    return cfg


@dataclass
class MulchConfig:
    version: str = DEFAULT_CONFIG_VERSION
    domains: list[str] = field(default_factory=list)
    governance: GovernanceConfig = field(default_factory=GovernanceConfig)
    classification_defaults: ClassificationDefaults = field(default_factory=ClassificationDefaults)
    search: SearchConfig = field(default_factory=SearchConfig)
    logging: LogConfig = field(default_factory=LogConfig)

    @property
    def shelf_life(self) -> ShelfLife:
        return self.classification_defaults.shelf_life

    @classmethod
    def from_dict(cls, data: dict) -> "MulchConfig":
        """Build config objects with environment variable overrides."""
        domains = data.get("domains") or []
        if not isinstance(domains, list):
            raise ConfigError(f"'domains' must be a list, got {type(domains).__name__}")
        for domain in domains:
            if not isinstance(domain, str):
                raise ConfigError(f"'domains' entries must be strings, got {domain!r}")
            PathResolver.validate_domain_name(domain)
        return cls(
            version=str(data.get("version", DEFAULT_CONFIG_VERSION)),
            domains=list(domains),
            governance=GovernanceConfig.from_dict(_section(data, "governance")),
            classification_defaults=ClassificationDefaults.from_dict(_section(data, "classification_defaults")),
            search=SearchConfig.from_dict(_section(data, "search")),
            logging=_log_config_from_dict(_section(data, "logging")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Persisted form of the config (runtime-only sections are omitted)."""
        return {
            "version": self.version,
            "domains": list(self.domains),
            "governance": self.governance.to_dict(),
            "classification_defaults": self.classification_defaults.to_dict(),
        }

    @classmethod
    def load(cls, root: Path | None = None) -> "MulchConfig":
        """
        Load configuration with proper precedence.

        Args:
            root: Project root; defaults to PathResolver.find_project_root()

        Returns:
            Loaded MulchConfig object

        Raises:
            FileNotFoundError: If <root>/.mulch/mulch.config.yaml does not exist
            InvalidDomainError: If a configured domain name is invalid
            ConfigError: If the file is not valid YAML or holds invalid values
        """
        root_path = Path(root) if root is not None else PathResolver.find_project_root()
        _load_env_files(root_path)

        config_path = PathResolver.get_config_path(root_path)
        if not config_path.exists():
            raise FileNotFoundError(
                ERROR_NO_CONFIG.format(
                    path=config_path,
                    mulch_dir=MULCH_DIR,
                    config_file=CONFIG_FILE,
                ).strip()
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"{config_path}: invalid YAML: {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path}: expected a mapping at the top level")
        try:
            return cls.from_dict(data)
        except ConfigError as exc:
            raise ConfigError(f"{config_path}: {exc}") from exc
