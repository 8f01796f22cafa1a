"""CLI command: mulch validate: check every domain file line by line."""
from __future__ import annotations

import argparse

from rich.markup import escape

from mulch.cli.output import add_common_args, fail, load_project, make_console, output_json

# Errors printed before the rest are summarized.
_MAX_SHOWN = 20


def run_validate(argv: list[str]) -> int:
    """Entry point for `mulch validate`. Exits 1 when any line is invalid."""
    parser = argparse.ArgumentParser(
        prog="mulch validate",
        description="Validate all expertise records against the record schema.",
    )
    add_common_args(parser)
    args = parser.parse_args(argv)

    from mulch.expertise.errors import MulchError
    from mulch.expertise.store import ExpertiseStore
    from mulch.expertise.validation import validate_domain_files

    try:
        root, config = load_project(args)
        report = validate_domain_files(ExpertiseStore(root), config.domains)
    except (MulchError, OSError) as exc:
        return fail("validate", str(exc), args.json_)

    if args.json_:
        output_json(
            "validate",
            valid=report.valid,
            total_records=report.total_records,
            total_errors=report.total_errors,
            errors=[e.to_dict() for e in report.errors],
        )
        return 0 if report.valid else 1

    console = make_console()
    if report.valid:
        console.print(f"[green]All {report.total_records} records are valid.[/green]")
        return 0

    for error in report.errors[:_MAX_SHOWN]:
        console.print(f"  [red]ERROR[/red] {error.domain}:{error.line}: {escape(error.message)}")
    if report.total_errors > _MAX_SHOWN:
        console.print(f"  … and {report.total_errors - _MAX_SHOWN} more")
    console.print(
        f"\n[red]{report.total_errors} of {report.total_records} records failed validation.[/red]"
    )
    return 1
