"""CLI command: mulch prune: remove expired expertise records."""
from __future__ import annotations

import argparse

from rich.markup import escape

from mulch.cli.output import add_common_args, fail, load_project, make_console, output_json


def _result_line(result, dry_run: bool) -> str:
    if dry_run:
        return (
            f"{escape('[DRY RUN]')} {result.domain}: Would prune {result.pruned} of "
            f"{result.before} entries ({result.after} remaining)"
        )
    return f"{result.domain}: Pruned {result.pruned} of {result.before} entries ({result.after} remaining)"


def run_prune(argv: list[str]) -> int:
    """Entry point for `mulch prune`."""
    parser = argparse.ArgumentParser(
        prog="mulch prune",
        description="Remove tactical and observational records older than their shelf life.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Show what would be pruned without rewriting any file",
    )
    add_common_args(parser)
    args = parser.parse_args(argv)

    from mulch.expertise.errors import MulchError
    from mulch.expertise.staleness import PruneAbortedError, PruneManager
    from mulch.expertise.store import ExpertiseStore

    try:
        root, config = load_project(args)
    except (MulchError, OSError) as exc:
        return fail("prune", str(exc), args.json_)

    manager = PruneManager(ExpertiseStore(root), config.shelf_life)
    console = make_console()

    try:
        result = manager.prune(config.domains, dry_run=args.dry_run)
    except PruneAbortedError as exc:
        if not args.json_:
            for done in exc.partial.results:
                console.print(_result_line(done, args.dry_run))
        cause = exc.__cause__ or exc
        return fail("prune", f"{exc}: {cause}", args.json_)

    if args.json_:
        output_json(
            "prune",
            dry_run=result.dry_run,
            total_pruned=result.total_pruned,
            results=[r.to_dict() for r in result.results],
        )
        return 0

    if result.total_pruned == 0:
        console.print("[green]No stale entries found. All records are within shelf life.[/green]")
        return 0

    for domain_result in result.results:
        console.print(_result_line(domain_result, result.dry_run))

    verb = "would be pruned" if result.dry_run else "pruned"
    console.print(f"\n[bold]Total: {result.total_pruned} entries {verb}.[/bold]")
    if result.dry_run:
        console.print("[yellow]Dry-run mode, no changes made. Run without --dry-run to prune.[/yellow]")
    return 0
