"""CLI command: mulch prime: print expertise as context for an agent session."""
from __future__ import annotations

import argparse
import json
from pathlib import Path

from mulch.cli.output import add_common_args, fail, load_project, make_console, output_json
from mulch.config.constants import DEFAULT_DIFF_SINCE


def run_prime(argv: list[str]) -> int:
    """Entry point for `mulch prime`."""
    parser = argparse.ArgumentParser(
        prog="mulch prime",
        description="Generate a priming prompt from expertise records.",
    )
    parser.add_argument("domains", nargs="*", default=[], help="Domains to include (default: all).")
    parser.add_argument(
        "--domain",
        dest="extra_domains",
        action="append",
        default=[],
        help="Domain to include; may be repeated.",
    )
    parser.add_argument(
        "--format",
        dest="format_",
        choices=["markdown", "plain"],
        default="markdown",
        help="Output format (default: markdown).",
    )
    parser.add_argument(
        "--full",
        action="store_true",
        default=False,
        help="Append classification, evidence and tags to each markdown entry.",
    )
    parser.add_argument(
        "--context",
        action="store_true",
        default=False,
        help="Only include records relevant to files changed in git.",
    )
    parser.add_argument(
        "--since",
        default=DEFAULT_DIFF_SINCE,
        help=f"Git ref used by --context (default: {DEFAULT_DIFF_SINCE})",
    )
    parser.add_argument("--export", type=Path, default=None, help="Write the output to a file.")
    add_common_args(parser)
    args = parser.parse_args(argv)

    from mulch.core import git
    from mulch.expertise.errors import MulchError
    from mulch.expertise.primer import PrimeFormatter, build_prime
    from mulch.expertise.store import ExpertiseStore

    try:
        root, config = load_project(args)
    except (MulchError, OSError) as exc:
        return fail("prime", str(exc), args.json_)

    requested = list(dict.fromkeys([*args.domains, *args.extra_domains]))
    for domain in requested:
        if domain not in config.domains:
            available = ", ".join(config.domains) or "none"
            return fail(
                "prime",
                f'Domain "{domain}" not found in config. Available domains: {available}',
                args.json_,
            )
    domains = requested or list(config.domains)

    changed_files = None
    if args.context:
        if not git.is_git_repo(root):
            return fail("prime", "Not in a git repository. --context requires git.", args.json_)
        changed_files = git.get_changed_files(root, args.since)
        if not changed_files:
            if args.json_:
                output_json("prime", type="expertise", domains=[])
            else:
                make_console().print("No changed files found. Nothing to filter by.")
            return 0

    try:
        sections = build_prime(ExpertiseStore(root), domains, changed_files)
    except (MulchError, OSError) as exc:
        return fail("prime", str(exc), args.json_)

    formatter = PrimeFormatter()
    if args.json_:
        payload = formatter.format_json(sections)
        if args.export is None:
            output_json("prime", **payload)
            return 0
        rendered = json.dumps(payload, indent=2, ensure_ascii=False)
    elif args.format_ == "plain":
        rendered = formatter.format_plain(sections)
    else:
        rendered = formatter.format_markdown(sections, full=args.full)

    if args.export is None:
        print(rendered)
        return 0

    try:
        args.export.write_text(rendered + "\n", encoding="utf-8")
    except OSError as exc:
        return fail("prime", f"Cannot write {args.export}: {exc}", args.json_)
    if args.json_:
        output_json("prime", exported=str(args.export), domains=[s.domain for s in sections])
    else:
        make_console().print(f"[green]Exported to {args.export}[/green]")
    return 0
