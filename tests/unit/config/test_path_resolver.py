"""Tests for mulch.config.path_resolver.PathResolver."""
from __future__ import annotations

from pathlib import Path

import pytest

from mulch.config.path_resolver import PathResolver
from mulch.expertise.errors import InvalidDomainError


class TestFindProjectRoot:
    """Tests for PathResolver.find_project_root."""

    def test_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MULCH_ROOT", str(tmp_path / "elsewhere"))
        assert PathResolver.find_project_root(tmp_path) == tmp_path / "elsewhere"

    def test_nearest_ancestor_with_mulch_dir(self, tmp_path):
        (tmp_path / ".mulch").mkdir()
        nested = tmp_path / "src" / "pkg"
        nested.mkdir(parents=True)
        assert PathResolver.find_project_root(nested) == tmp_path.resolve()

    def test_falls_back_to_start(self, tmp_path):
        start = tmp_path / "plain"
        start.mkdir()
        assert PathResolver.find_project_root(start) == start.resolve()


class TestLayout:
    def test_paths(self, tmp_path):
        assert PathResolver.get_mulch_dir(tmp_path) == tmp_path / ".mulch"
        assert PathResolver.get_config_path(tmp_path) == tmp_path / ".mulch" / "mulch.config.yaml"
        assert PathResolver.get_expertise_dir(tmp_path) == tmp_path / ".mulch" / "expertise"

    def test_expertise_path(self):
        root = Path("/repo")
        assert PathResolver.get_expertise_path("api", root) == root / ".mulch" / "expertise" / "api.jsonl"


class TestValidateDomainName:
    @pytest.mark.parametrize("name", ["api", "API_2", "web-client", "0day"])
    def test_valid(self, name):
        PathResolver.validate_domain_name(name)

    @pytest.mark.parametrize("name", ["", "_private", "a b", "a/b", "..", "api\n", "ünicode"])
    def test_invalid(self, name):
        with pytest.raises(InvalidDomainError):
            PathResolver.validate_domain_name(name)

    def test_non_string(self):
        with pytest.raises(InvalidDomainError):
            PathResolver.validate_domain_name(42)

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            PathResolver.validate_domain_name("bad name")
