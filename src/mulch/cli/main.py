"""Top-level `mulch` command dispatcher."""
from __future__ import annotations

import sys
from typing import Callable

from mulch.cli.diff_cmd import run_diff
from mulch.cli.edit_cmd import run_delete, run_edit
from mulch.cli.expertise_cmd import run_query, run_ready, run_record, run_search, run_status
from mulch.cli.init_cmd import run_add, run_init
from mulch.cli.learn_cmd import run_learn
from mulch.cli.prime_cmd import run_prime
from mulch.cli.prune import run_prune
from mulch.cli.validate_cmd import run_validate

COMMANDS: dict[str, tuple[Callable[[list[str]], int], str]] = {
    "init": (run_init, "Initialize .mulch/ in the current project"),
    "add": (run_add, "Add a new expertise domain"),
    "record": (run_record, "Record an expertise record"),
    "edit": (run_edit, "Edit an existing record"),
    "delete": (run_delete, "Delete a record by id or index"),
    "query": (run_query, "Show the records of a domain"),
    "search": (run_search, "Search records across domains"),
    "status": (run_status, "Show record counts and governance health"),
    "prime": (run_prime, "Print expertise as context for an agent session"),
    "ready": (run_ready, "Show recently recorded entries"),
    "validate": (run_validate, "Validate every record against the schema"),
    "prune": (run_prune, "Remove records past their shelf life"),
    "diff": (run_diff, "Show record changes since a git ref"),
    "learn": (run_learn, "Suggest domains for changed files"),
}

# Flags accepted before the command name and forwarded to it.
_GLOBAL_FLAGS = ("--json",)


def _print_usage() -> None:
    print("Usage: mulch [--json] <command> [options]")
    print()
    print("Structured expertise records for coding agents.")
    print()
    print("Commands:")
    width = max(len(name) for name in COMMANDS)
    for name, (_func, summary) in COMMANDS.items():
        print(f"  {name:<{width}}  {summary}")
    print()
    print("Run `mulch <command> --help` for command options.")


def main(argv: list[str] | None = None) -> int:
    """Entry point for the `mulch` console script."""
    args = list(sys.argv[1:] if argv is None else argv)

    forwarded: list[str] = []
    while args and args[0].startswith("-"):
        flag = args.pop(0)
        if flag == "--version":
            from mulch import __version__

            print(__version__)
            return 0
        if flag in ("-h", "--help"):
            _print_usage()
            return 0
        if flag in _GLOBAL_FLAGS:
            forwarded.append(flag)
            continue
        print(f"Error: unknown option {flag}", file=sys.stderr)
        _print_usage()
        return 2

    if not args:
        _print_usage()
        return 0

    name, rest = args[0], args[1:]
    entry = COMMANDS.get(name)
    if entry is None:
        print(f"Error: unknown command '{name}'", file=sys.stderr)
        _print_usage()
        return 2

    func, _summary = entry
    return func(rest + [flag for flag in forwarded if flag not in rest])


if __name__ == "__main__":
    sys.exit(main())
