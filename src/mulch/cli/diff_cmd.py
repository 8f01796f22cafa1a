"""CLI command: mulch diff: show expertise changes since a git ref."""
from __future__ import annotations

import argparse

from mulch.cli.output import add_common_args, fail, load_project, make_console, output_json, record_line
from mulch.config.constants import DEFAULT_DIFF_SINCE


def run_diff(argv: list[str]) -> int:
    """Entry point for `mulch diff`."""
    parser = argparse.ArgumentParser(
        prog="mulch diff",
        description="Show expertise records added or removed since a git ref.",
    )
    parser.add_argument(
        "--since",
        default=DEFAULT_DIFF_SINCE,
        help=f"Git ref to diff against (default: {DEFAULT_DIFF_SINCE})",
    )
    add_common_args(parser)
    args = parser.parse_args(argv)

    from mulch.core import git
    from mulch.expertise.diff import parse_expertise_diff
    from mulch.expertise.errors import MulchError

    try:
        root, _config = load_project(args)
    except (MulchError, OSError) as exc:
        return fail("diff", str(exc), args.json_)

    if not git.is_git_repo(root):
        return fail("diff", "Not in a git repository.", args.json_)

    entries = parse_expertise_diff(git.get_expertise_diff(root, args.since))

    if args.json_:
        output_json("diff", since=args.since, domains=[entry.to_dict() for entry in entries])
        return 0

    console = make_console()
    if not entries:
        console.print(f"No expertise changes since {args.since}.")
        return 0

    console.print(f"[bold]Expertise changes since {args.since}[/bold]\n")
    for entry in entries:
        label = "change" if entry.change_count == 1 else "changes"
        console.print(f"[bold]{entry.domain}[/bold] ({entry.change_count} {label}):")
        for record in entry.added:
            console.print(f"  [green]+[/green] {record_line(record)}")
        for record in entry.removed:
            console.print(f"  [red]-[/red] {record_line(record)}")
        console.print()
    return 0
