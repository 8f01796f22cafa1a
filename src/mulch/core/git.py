"""Thin wrappers around the git CLI used by `mulch diff` and `mulch learn`.

Only text output is consumed; a git invocation that fails (unknown ref,
no commits yet) is treated as producing no output.
"""
from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from mulch.config.constants import EXPERTISE_DIR, MULCH_DIR

logger = logging.getLogger(__name__)


def _run_git(args: list[str], cwd: Path) -> str | None:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=True,
        )
    except (FileNotFoundError, subprocess.CalledProcessError) as exc:
        logger.debug("git %s failed: %s", " ".join(args), exc)
        return None
    return result.stdout


def is_git_repo(cwd: Path) -> bool:
    output = _run_git(["rev-parse", "--is-inside-work-tree"], cwd)
    return output is not None and output.strip() == "true"


def _split_names(output: str | None) -> list[str]:
    if not output:
        return []
    return [line for line in output.splitlines() if line.strip()]


def get_changed_files(cwd: Path, since: str) -> list[str]:
    """Files changed since ``since`` plus staged and unstaged edits.

    Returns a sorted, de-duplicated list of repo-relative paths.
    """
    files: set[str] = set()
    files.update(_split_names(_run_git(["diff", "--name-only", since], cwd)))
    files.update(_split_names(_run_git(["diff", "--name-only", "--cached"], cwd)))
    files.update(_split_names(_run_git(["diff", "--name-only"], cwd)))
    return sorted(files)


def get_expertise_diff(cwd: Path, since: str) -> str:
    """Unified diff of the expertise directory against ``since``."""
    output = _run_git(["diff", since, "--", f"{MULCH_DIR}/{EXPERTISE_DIR}/"], cwd)
    return output or ""
