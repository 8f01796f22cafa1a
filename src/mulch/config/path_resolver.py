"""
Path resolution for the per-project ``.mulch`` directory.

Layout (relative to the project root):

    .mulch/
        mulch.config.yaml
        README.md
        expertise/
            <domain>.jsonl
"""

import os
from pathlib import Path

from mulch.config.constants import (
    CONFIG_FILE,
    DOMAIN_NAME_PATTERN,
    ENV_ROOT,
    ERROR_INVALID_DOMAIN,
    EXPERTISE_DIR,
    EXPERTISE_SUFFIX,
    MULCH_DIR,
)
from mulch.expertise.errors import InvalidDomainError


class PathResolver:
    """Resolves mulch paths for a project root."""

    @staticmethod
    def find_project_root(start: Path | None = None) -> Path:
        """
        Locate the project root.

        Checks in order:
        1. Environment variable (MULCH_ROOT)
        2. Nearest ancestor of ``start`` (default: cwd) containing ``.mulch/``
        3. ``start`` itself

        Args:
            start: Directory to search upward from

        Returns:
            Path to the project root
        """
        env_root = os.getenv(ENV_ROOT)
        if env_root:
            return Path(env_root).expanduser()

        origin = (start or Path.cwd()).resolve()
        for candidate in (origin, *origin.parents):
            if (candidate / MULCH_DIR).is_dir():
                return candidate
        return origin

    @staticmethod
    def get_mulch_dir(root: Path) -> Path:
        return Path(root) / MULCH_DIR

    @staticmethod
    def get_config_path(root: Path) -> Path:
        return PathResolver.get_mulch_dir(root) / CONFIG_FILE

    @staticmethod
    def get_expertise_dir(root: Path) -> Path:
        return PathResolver.get_mulch_dir(root) / EXPERTISE_DIR

    @staticmethod
    def validate_domain_name(domain: str) -> None:
        """Raise InvalidDomainError unless ``domain`` is a safe file stem."""
        if not isinstance(domain, str) or not DOMAIN_NAME_PATTERN.fullmatch(domain):
            raise InvalidDomainError(ERROR_INVALID_DOMAIN.format(domain=domain))

    @staticmethod
    def get_expertise_path(domain: str, root: Path) -> Path:
        PathResolver.validate_domain_name(domain)
        return PathResolver.get_expertise_dir(root) / f"{domain}{EXPERTISE_SUFFIX}"
