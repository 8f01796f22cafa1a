"""CLI commands for reading and writing expertise records."""
from __future__ import annotations

import argparse
import re
from datetime import timedelta
from typing import Any

from rich.markup import escape

from mulch.cli.output import (
    add_common_args,
    fail,
    load_project,
    make_console,
    output_json,
    record_line,
    split_csv,
)
from mulch.config.constants import DEFAULT_READY_LIMIT
from mulch.expertise.models import Classification, ExpertiseType, format_time_ago

_TYPE_CHOICES = [t.value for t in ExpertiseType]
_CLASSIFICATION_CHOICES = [c.value for c in Classification]

# Named records are upserted in place instead of being skipped as duplicates.
_NAMED_TYPES = frozenset({
    ExpertiseType.PATTERN,
    ExpertiseType.DECISION,
    ExpertiseType.REFERENCE,
    ExpertiseType.GUIDE,
})

_DURATION_RE = re.compile(r"(\d+)([hdw])")
_DURATION_UNITS = {"h": "hours", "d": "days", "w": "weeks"}


def parse_duration(text: str) -> timedelta:
    """Parse ``24h``, ``7d`` or ``2w`` into a timedelta.

    Raises:
        ValueError: For anything else.
    """
    match = _DURATION_RE.fullmatch(text.strip())
    if not match:
        raise ValueError(f'Invalid duration: "{text}". Use a format like "24h", "7d", "2w".')
    return timedelta(**{_DURATION_UNITS[match.group(2)]: int(match.group(1))})


def _unknown_domain(command: str, domain: str, domains: list[str], json_mode: bool) -> int:
    available = ", ".join(domains) or "none"
    return fail(
        command,
        f'Domain "{domain}" not found in config. Available domains: {available}',
        json_mode,
    )


# ---------------------------------------------------------------------------
# record
# ---------------------------------------------------------------------------


def _record_payload(args: argparse.Namespace) -> dict[str, Any]:
    """Raw record dict assembled from command-line options."""
    from mulch.expertise.models import RECORD_CLASSES, utcnow_iso

    record_type = ExpertiseType(args.type_)
    candidates: dict[str, Any] = {
        "content": args.content or args.description,
        "name": args.name,
        "description": args.description or args.content,
        "resolution": args.resolution,
        "title": args.title,
        "rationale": args.rationale,
        "date": args.date,
        "files": split_csv(args.files),
    }

    payload: dict[str, Any] = {
        "type": record_type.value,
        "classification": args.classification,
        "recorded_at": utcnow_iso(),
    }
    cls = RECORD_CLASSES[record_type]
    for name in (*cls.required_fields, *cls.optional_fields):
        if candidates.get(name) is not None:
            payload[name] = candidates[name]

    evidence = {
        key: value
        for key, value in (
            ("commit", args.evidence_commit),
            ("issue", args.evidence_issue),
            ("file", args.evidence_file),
        )
        if value
    }
    if evidence:
        payload["evidence"] = evidence

    tags = split_csv(args.tags)
    if tags:
        payload["tags"] = tags
    return payload


def run_record(argv: list[str]) -> int:
    """Entry point for `mulch record`."""
    parser = argparse.ArgumentParser(
        prog="mulch record",
        description="Record an expertise record in a domain.",
    )
    parser.add_argument("domain", help="Domain to record into.")
    parser.add_argument("content", nargs="?", default=None, help="Record content.")
    parser.add_argument("--type", dest="type_", required=True, choices=_TYPE_CHOICES, help="Record type.")
    parser.add_argument(
        "--classification",
        choices=_CLASSIFICATION_CHOICES,
        default=Classification.TACTICAL.value,
        help="Expiry tier (default: tactical).",
    )
    parser.add_argument("--name", default=None, help="Name (pattern, reference, guide).")
    parser.add_argument("--description", default=None, help="Description.")
    parser.add_argument("--resolution", default=None, help="Resolution (failure).")
    parser.add_argument("--title", default=None, help="Title (decision).")
    parser.add_argument("--rationale", default=None, help="Rationale (decision).")
    parser.add_argument("--date", default=None, help="Decision date (decision).")
    parser.add_argument("--files", default=None, help="Comma-separated related files (pattern, reference).")
    parser.add_argument("--tags", default=None, help="Comma-separated tags.")
    parser.add_argument("--evidence-commit", default=None, help="Evidence: commit hash.")
    parser.add_argument("--evidence-issue", default=None, help="Evidence: issue reference.")
    parser.add_argument("--evidence-file", default=None, help="Evidence: file path.")
    parser.add_argument(
        "--force",
        action="store_true",
        default=False,
        help="Append even if a duplicate record exists.",
    )
    add_common_args(parser)
    args = parser.parse_args(argv)

    from mulch.expertise.codec import record_from_dict, record_to_dict
    from mulch.expertise.errors import MulchError
    from mulch.expertise.models import find_duplicate, generate_record_id
    from mulch.expertise.store import ExpertiseStore

    try:
        root, config = load_project(args)
    except (MulchError, OSError) as exc:
        return fail("record", str(exc), args.json_)

    if args.domain not in config.domains:
        return _unknown_domain("record", args.domain, config.domains, args.json_)

    try:
        record = record_from_dict(_record_payload(args))
    except MulchError as exc:
        return fail("record", f"Invalid {args.type_} record: {exc}", args.json_)
    if record.id is None:
        record.id = generate_record_id(record)

    store = ExpertiseStore(root)
    try:
        existing = store.load(args.domain)
        duplicate = find_duplicate(existing, record) if not args.force else None

        if duplicate is None:
            store.append(args.domain, record)
            action = "created"
        elif record.type in _NAMED_TYPES:
            index, _old = duplicate
            existing[index] = record
            store.rewrite(args.domain, existing)
            action = "updated"
        else:
            action = "skipped"
    except (MulchError, OSError) as exc:
        return fail("record", str(exc), args.json_)

    if args.json_:
        payload: dict[str, Any] = {"action": action, "domain": args.domain, "type": args.type_}
        if duplicate is not None:
            payload["index"] = duplicate[0] + 1
        if action != "skipped":
            payload["record"] = record_to_dict(record)
        output_json("record", **payload)
        return 0

    console = make_console()
    if action == "created":
        console.print(f"[green]Recorded {args.type_} in {args.domain}[/green] {escape(record.id or '')}")
    elif action == "updated":
        console.print(
            f"[green]Updated existing {args.type_} in {args.domain} (record #{duplicate[0] + 1})[/green]"
        )
    else:
        console.print(
            f"[yellow]Duplicate {args.type_} already exists in {args.domain} "
            f"(record #{duplicate[0] + 1}). Use --force to add anyway.[/yellow]"
        )
    return 0


# ---------------------------------------------------------------------------
# query
# ---------------------------------------------------------------------------


def run_query(argv: list[str]) -> int:
    """Entry point for `mulch query`."""
    parser = argparse.ArgumentParser(
        prog="mulch query",
        description="Show the expertise records of a domain.",
    )
    parser.add_argument("domain", nargs="?", default=None, help="Domain to show.")
    parser.add_argument("--type", dest="type_", choices=_TYPE_CHOICES, default=None, help="Filter by type.")
    parser.add_argument("--all", dest="all_", action="store_true", default=False, help="Show all domains.")
    add_common_args(parser)
    args = parser.parse_args(argv)

    from mulch.expertise.codec import record_to_dict
    from mulch.expertise.errors import MulchError
    from mulch.expertise.search import filter_by_type
    from mulch.expertise.store import ExpertiseStore

    try:
        root, config = load_project(args)
    except (MulchError, OSError) as exc:
        return fail("query", str(exc), args.json_)

    if args.domain is not None:
        if args.domain not in config.domains:
            return _unknown_domain("query", args.domain, config.domains, args.json_)
        domains = [args.domain]
    elif args.all_:
        domains = list(config.domains)
    else:
        return fail("query", "Please specify a domain or use --all.", args.json_)

    store = ExpertiseStore(root)
    try:
        loaded = store.load_all(domains)
    except (MulchError, OSError) as exc:
        return fail("query", str(exc), args.json_)
    if args.type_:
        loaded = {domain: filter_by_type(records, args.type_) for domain, records in loaded.items()}

    if args.json_:
        output_json(
            "query",
            domains=[
                {"domain": domain, "records": [record_to_dict(r) for r in records]}
                for domain, records in loaded.items()
            ],
        )
        return 0

    console = make_console()
    for domain, records in loaded.items():
        modified = store.log(domain).modified_at()
        updated = f", updated {format_time_ago(modified)}" if modified else ""
        console.print(f"[bold]## {domain}[/bold] ({len(records)} records{updated})")
        if not records:
            console.print("  [dim]No records.[/dim]")
        for record in records:
            console.print(f"  - {record_line(record)}")
        console.print()
    return 0


# ---------------------------------------------------------------------------
# search
# ---------------------------------------------------------------------------


def run_search(argv: list[str]) -> int:
    """Entry point for `mulch search`."""
    parser = argparse.ArgumentParser(
        prog="mulch search",
        description="Search expertise records across domains.",
    )
    parser.add_argument("query", help="Substring to look for.")
    parser.add_argument("--domain", default=None, help="Limit to a domain.")
    parser.add_argument("--type", dest="type_", choices=_TYPE_CHOICES, default=None, help="Filter by type.")
    parser.add_argument(
        "--case-sensitive",
        action="store_true",
        default=False,
        help="Match case exactly (default: from config, case-insensitive).",
    )
    add_common_args(parser)
    args = parser.parse_args(argv)

    from mulch.expertise.codec import record_to_dict
    from mulch.expertise.errors import MulchError
    from mulch.expertise.search import filter_by_type, search_records
    from mulch.expertise.store import ExpertiseStore

    try:
        root, config = load_project(args)
    except (MulchError, OSError) as exc:
        return fail("search", str(exc), args.json_)

    if args.domain is not None and args.domain not in config.domains:
        return _unknown_domain("search", args.domain, config.domains, args.json_)
    domains = [args.domain] if args.domain else list(config.domains)
    case_sensitive = args.case_sensitive or config.search.case_sensitive

    store = ExpertiseStore(root)
    results: dict[str, list] = {}
    try:
        for domain in domains:
            records = store.load(domain)
            if args.type_:
                records = filter_by_type(records, args.type_)
            hits = search_records(records, args.query, case_sensitive=case_sensitive)
            if hits:
                results[domain] = hits
    except (MulchError, OSError) as exc:
        return fail("search", str(exc), args.json_)

    total = sum(len(hits) for hits in results.values())
    if args.json_:
        output_json(
            "search",
            query=args.query,
            total=total,
            domains=[
                {"domain": domain, "matches": [record_to_dict(r) for r in hits]}
                for domain, hits in results.items()
            ],
        )
        return 0

    console = make_console()
    if not results:
        console.print(f'[yellow]No records matching "{escape(args.query)}".[/yellow]')
        return 0

    for domain, hits in results.items():
        console.print(f"[bold]## {domain}[/bold] ({len(hits)} matches)")
        for record in hits:
            console.print(f"  - {record_line(record)}")
        console.print()
    console.print(f"{total} matching records.")
    return 0


# ---------------------------------------------------------------------------
# status
# ---------------------------------------------------------------------------

_HEALTH_STYLES = {
    "ok": "green",
    "approaching": "yellow",
    "warning": "yellow",
    "over_limit": "red",
}


def run_status(argv: list[str]) -> int:
    """Entry point for `mulch status`."""
    parser = argparse.ArgumentParser(
        prog="mulch status",
        description="Show record counts and governance health per domain.",
    )
    add_common_args(parser)
    args = parser.parse_args(argv)

    from rich.table import Table

    from mulch.expertise.errors import MulchError
    from mulch.expertise.store import ExpertiseStore

    try:
        root, config = load_project(args)
    except (MulchError, OSError) as exc:
        return fail("status", str(exc), args.json_)

    store = ExpertiseStore(root)
    rows: list[dict[str, Any]] = []
    for domain in config.domains:
        log = store.log(domain)
        count = sum(1 for _ in log.iter_lines())
        modified = log.modified_at()
        rows.append({
            "domain": domain,
            "count": count,
            "last_updated": modified.isoformat() if modified else None,
            "health": config.governance.health(count),
            "_modified": modified,
        })

    if args.json_:
        output_json(
            "status",
            domains=[{k: v for k, v in row.items() if not k.startswith("_")} for row in rows],
            governance=config.governance.to_dict(),
        )
        return 0

    console = make_console()
    if not rows:
        console.print("[yellow]No domains yet. Use `mulch add <domain>` to create one.[/yellow]")
        return 0

    table = Table(title="Mulch Status", show_lines=False)
    table.add_column("Domain", style="magenta")
    table.add_column("Records", justify="right")
    table.add_column("Updated")
    table.add_column("Health")
    for row in rows:
        style = _HEALTH_STYLES[row["health"]]
        modified = row["_modified"]
        table.add_row(
            row["domain"],
            str(row["count"]),
            format_time_ago(modified) if modified else "never",
            f"[{style}]{row['health']}[/{style}]",
        )
    console.print(table)

    gov = config.governance
    for row in rows:
        if row["health"] == "over_limit":
            console.print(
                f"[red]{row['domain']}: {row['count']} records exceeds the hard limit of {gov.hard_limit}. "
                "Prune or split this domain.[/red]"
            )
        elif row["health"] == "warning":
            console.print(
                f"[yellow]{row['domain']}: {row['count']} records is over the warning threshold "
                f"of {gov.warn_entries}.[/yellow]"
            )
        elif row["health"] == "approaching":
            console.print(
                f"[yellow]{row['domain']}: {row['count']} records reached the target of "
                f"{gov.max_entries}.[/yellow]"
            )
    return 0


# ---------------------------------------------------------------------------
# ready
# ---------------------------------------------------------------------------


def run_ready(argv: list[str]) -> int:
    """Entry point for `mulch ready`."""
    parser = argparse.ArgumentParser(
        prog="mulch ready",
        description="Show recently recorded expertise entries.",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_READY_LIMIT,
        help=f"Maximum entries to show (default: {DEFAULT_READY_LIMIT}).",
    )
    parser.add_argument("--domain", default=None, help="Limit to a domain.")
    parser.add_argument("--since", default=None, help="Only entries newer than a duration (24h, 7d, 2w).")
    add_common_args(parser)
    args = parser.parse_args(argv)

    from mulch.expertise.codec import record_to_dict
    from mulch.expertise.errors import MulchError
    from mulch.expertise.models import record_summary, utcnow
    from mulch.expertise.store import ExpertiseStore

    if args.limit < 1:
        return fail("ready", "--limit must be a positive integer.", args.json_)

    window = None
    if args.since:
        try:
            window = parse_duration(args.since)
        except ValueError as exc:
            return fail("ready", str(exc), args.json_)

    try:
        root, config = load_project(args)
    except (MulchError, OSError) as exc:
        return fail("ready", str(exc), args.json_)

    if args.domain is not None and args.domain not in config.domains:
        return _unknown_domain("ready", args.domain, config.domains, args.json_)
    domains = [args.domain] if args.domain else list(config.domains)

    store = ExpertiseStore(root)
    try:
        entries = [
            (domain, record)
            for domain, records in store.load_all(domains).items()
            for record in records
        ]
    except (MulchError, OSError) as exc:
        return fail("ready", str(exc), args.json_)

    entries.sort(key=lambda entry: entry[1].recorded_at_datetime, reverse=True)
    now = utcnow()
    if window is not None:
        cutoff = now - window
        entries = [e for e in entries if e[1].recorded_at_datetime >= cutoff]
    entries = entries[: args.limit]

    if args.json_:
        output_json(
            "ready",
            count=len(entries),
            entries=[
                {
                    "domain": domain,
                    "id": record.id,
                    "type": record.type.value,
                    "recorded_at": record.recorded_at,
                    "summary": record_summary(record),
                    "record": record_to_dict(record),
                }
                for domain, record in entries
            ],
        )
        return 0

    console = make_console()
    if not entries:
        console.print("No recent expertise entries found.")
        return 0

    header = f"last {args.since}" if args.since else f"last {len(entries)} entries"
    console.print(f"[bold]Recent Expertise ({header})[/bold]\n")
    for domain, record in entries:
        age = format_time_ago(record.recorded_at_datetime, now)
        console.print(f"  [dim]{age:<10}[/dim][cyan]{domain:<14}[/cyan]{record_line(record)}")
    return 0
