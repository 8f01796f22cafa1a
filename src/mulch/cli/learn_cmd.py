"""CLI command: mulch learn: suggest domains for the files changed in a session."""
from __future__ import annotations

import argparse

from rich.markup import escape

from mulch.cli.output import add_common_args, fail, load_project, make_console, output_json
from mulch.config.constants import DEFAULT_DIFF_SINCE


def run_learn(argv: list[str]) -> int:
    """Entry point for `mulch learn`."""
    parser = argparse.ArgumentParser(
        prog="mulch learn",
        description="Show changed files and suggest domains for recording learnings.",
    )
    parser.add_argument(
        "--since",
        default=DEFAULT_DIFF_SINCE,
        help=f"Git ref to diff against (default: {DEFAULT_DIFF_SINCE})",
    )
    add_common_args(parser)
    args = parser.parse_args(argv)

    from mulch.core import git
    from mulch.expertise.errors import MulchError
    from mulch.expertise.matcher import match_files_to_domains
    from mulch.expertise.store import ExpertiseStore

    try:
        root, config = load_project(args)
    except (MulchError, OSError) as exc:
        return fail("learn", str(exc), args.json_)

    if not git.is_git_repo(root):
        return fail("learn", "Not in a git repository.", args.json_)

    changed = git.get_changed_files(root, args.since)
    if not changed:
        if args.json_:
            output_json("learn", changed_files=[], suggested_domains=[], unmatched_files=[])
        else:
            make_console().print("No changed files found. Nothing to learn from.")
        return 0

    try:
        domain_records = ExpertiseStore(root).load_all(config.domains)
    except (MulchError, OSError) as exc:
        return fail("learn", str(exc), args.json_)
    result = match_files_to_domains(changed, domain_records)

    if args.json_:
        output_json(
            "learn",
            changed_files=changed,
            suggested_domains=[
                {"domain": m.domain, "match_count": m.match_count, "files": m.matched_files}
                for m in result.matches
            ],
            unmatched_files=result.unmatched,
        )
        return 0

    console = make_console()
    console.print("[bold]Session learnings check[/bold]\n")
    console.print(f"[cyan]Changed files ({len(changed)}):[/cyan]")
    for path in changed:
        console.print(f"  {escape(path)}")

    if result.matches:
        console.print("\n[cyan]Suggested domains:[/cyan]")
        for match in result.matches:
            label = "file matches" if match.match_count == 1 else "files match"
            console.print(f"  [bold]{match.domain}[/bold] ({match.match_count} {label} existing records)")

    if result.unmatched:
        console.print("\n[yellow]Unmatched files (no domain association):[/yellow]")
        for path in result.unmatched:
            console.print(f"  {escape(path)}")

    console.print("\n[dim]Record learnings with:[/dim]")
    console.print(escape('  mulch record <domain> --type <type> --description "..."'), style="dim")
    return 0
