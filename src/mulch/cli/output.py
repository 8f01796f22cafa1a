"""Helpers shared by the mulch CLI commands."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape

from mulch.config import MulchConfig, PathResolver
from mulch.core.logging_config import setup_logging
from mulch.expertise.models import BaseRecord, record_summary


def add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--json",
        dest="json_",
        action="store_true",
        default=False,
        help="Print a JSON payload instead of formatted text.",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Project root (default: nearest directory containing .mulch/).",
    )


def make_console() -> Console:
    return Console(soft_wrap=True, highlight=False)


def print_error(msg: str) -> None:
    print(f"Error: {msg}", file=sys.stderr)


def output_json(command: str, **payload: Any) -> None:
    result = {"success": True, "command": command, **payload}
    print(json.dumps(result, indent=2, ensure_ascii=False))


def output_json_error(command: str, error: str) -> None:
    result = {"success": False, "command": command, "error": error}
    print(json.dumps(result, indent=2, ensure_ascii=False), file=sys.stderr)


def fail(command: str, message: str, json_mode: bool) -> int:
    """Report a command failure in the requested format and return exit code 1."""
    if json_mode:
        output_json_error(command, message)
    else:
        print_error(message)
    return 1


def resolve_root(args: argparse.Namespace) -> Path:
    if args.root is not None:
        return Path(args.root).expanduser()
    return PathResolver.find_project_root()


def load_project(args: argparse.Namespace) -> tuple[Path, MulchConfig]:
    """Resolve the project root, load its config and configure logging.

    Raises:
        FileNotFoundError: If the project has not been initialized.
    """
    root = resolve_root(args)
    config = MulchConfig.load(root)
    setup_logging(config.logging)
    return root, config


def split_csv(value: str | None) -> list[str] | None:
    if value is None:
        return None
    items = [item.strip() for item in value.split(",")]
    return [item for item in items if item]


def record_line(record: BaseRecord) -> str:
    """Rich markup for a single record: ``[type] id summary (classification)``."""
    id_part = f"[dim]{escape(record.id)}[/dim] " if record.id else ""
    return (
        f"[cyan]{escape(f'[{record.type.value}]')}[/cyan] {id_part}"
        f"{escape(record_summary(record))} [dim]({record.classification.value})[/dim]"
    )
