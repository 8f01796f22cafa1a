from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from mulch.config.constants import (
    GITATTRIBUTES_FILE,
    GITATTRIBUTES_LINE,
    MULCH_README,
    README_FILE,
)
from mulch.config.path_resolver import PathResolver
from mulch.config.settings import MulchConfig
from mulch.expertise.errors import ConfigError, MulchError
from mulch.expertise.store import ExpertiseStore


class ConfigUpdateError(MulchError, RuntimeError):
    """Raised when the project config cannot be updated safely."""


def load_config_data(root: Path) -> dict[str, Any]:
    """Mapping stored in mulch.config.yaml, without defaults or env overrides.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigError: If the file is not a YAML mapping.
    """
    config_path = PathResolver.get_config_path(root)
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"{config_path}: invalid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path}: expected a mapping at the top level")
    return data


def write_config(config: MulchConfig, root: Path) -> Path:
    """Persist a freshly built ``config`` to <root>/.mulch/mulch.config.yaml."""
    return write_config_data(config.to_dict(), root)


def write_config_data(payload: dict[str, Any], root: Path) -> Path:
    """Write ``payload`` as the project config.

    The rendered YAML is parsed back before anything touches disk, and the
    file is replaced through a temp file.

    Raises:
        ConfigUpdateError: If the rendered YAML does not round-trip.
    """
    config_path = PathResolver.get_config_path(root)
    rendered = yaml.safe_dump(payload, sort_keys=False, default_flow_style=False)

    try:
        reparsed = yaml.safe_load(rendered)
    except yaml.YAMLError as exc:
        raise ConfigUpdateError(f"Refusing to write invalid {config_path.name}: {exc}") from exc
    if reparsed != payload:
        raise ConfigUpdateError(f"Refusing to write {config_path.name}: YAML round-trip mismatch")

    config_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = config_path.with_suffix(config_path.suffix + ".tmp")
    tmp_path.write_text(rendered, encoding="utf-8")
    tmp_path.replace(config_path)
    return config_path


def ensure_gitattributes(root: Path) -> bool:
    """Add the union-merge rule for domain files once. Returns True if written."""
    path = Path(root) / GITATTRIBUTES_FILE
    existing = path.read_text(encoding="utf-8") if path.exists() else ""
    if GITATTRIBUTES_LINE in existing.splitlines():
        return False
    separator = "\n" if existing and not existing.endswith("\n") else ""
    path.write_text(existing + separator + GITATTRIBUTES_LINE + "\n", encoding="utf-8")
    return True


def init_mulch_dir(root: Path) -> MulchConfig:
    """Create the .mulch scaffolding; existing files are preserved."""
    root = Path(root)
    mulch_dir = PathResolver.get_mulch_dir(root)
    PathResolver.get_expertise_dir(root).mkdir(parents=True, exist_ok=True)

    if PathResolver.get_config_path(root).exists():
        config = MulchConfig.load(root)
    else:
        config = MulchConfig()
        write_config(config, root)

    ensure_gitattributes(root)

    readme = mulch_dir / README_FILE
    if not readme.exists():
        readme.write_text(MULCH_README, encoding="utf-8")
    return config


def add_domain(config: MulchConfig, domain: str, root: Path) -> Path:
    """Register ``domain`` in the config and create its empty file.

    Only the ``domains`` list of the stored YAML changes; other sections are
    written back as found, and environment overrides never reach the file.

    Raises:
        InvalidDomainError: If the name is not a valid domain name.
        ConfigUpdateError: If the domain already exists.
        ConfigError: If the stored config cannot be read back.
    """
    PathResolver.validate_domain_name(domain)
    data = load_config_data(root)
    stored = data.get("domains") or []
    if not isinstance(stored, list):
        raise ConfigError(f"'domains' must be a list, got {type(stored).__name__}")
    if domain in config.domains or domain in stored:
        raise ConfigUpdateError(f'Domain "{domain}" already exists.')

    path = ExpertiseStore(root).create_domain(domain)
    data["domains"] = [*stored, domain]
    write_config_data(data, root)
    config.domains.append(domain)
    return path
