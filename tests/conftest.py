"""Pytest configuration and fixtures for mulch tests."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from mulch.config.constants import (
    ENV_LOG_FILE,
    ENV_LOG_LEVEL,
    ENV_ROOT,
    ENV_SEARCH_CASE_SENSITIVE,
    ENV_SHELF_LIFE_OBSERVATIONAL,
    ENV_SHELF_LIFE_TACTICAL,
)

_MULCH_ENV_VARS = (
    ENV_ROOT,
    ENV_SHELF_LIFE_TACTICAL,
    ENV_SHELF_LIFE_OBSERVATIONAL,
    ENV_SEARCH_CASE_SENSITIVE,
    ENV_LOG_LEVEL,
    ENV_LOG_FILE,
)


@pytest.fixture(autouse=True)
def isolate_mulch_env(monkeypatch):
    """Keep developer MULCH_* settings out of the tests."""
    for name in _MULCH_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """CLI commands reconfigure the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An initialized project with a ``testing`` domain."""
    from mulch.config import MulchConfig
    from mulch.config.config_writer import add_domain, init_mulch_dir

    init_mulch_dir(tmp_path)
    add_domain(MulchConfig.load(tmp_path), "testing", tmp_path)
    return tmp_path
