"""CLI commands: mulch delete, mulch edit."""
from __future__ import annotations

import argparse
from typing import Any

from rich.markup import escape

from mulch.cli.output import add_common_args, fail, load_project, make_console, output_json, split_csv
from mulch.expertise.models import Classification

# Options that replace a record field of the same name.
_EDITABLE_FIELDS = ("content", "name", "description", "resolution", "title", "rationale", "date", "files")


def _add_target_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("domain", help="Expertise domain.")
    parser.add_argument("identifier", help="Record ID (mx-XXXXXX) or 1-based index.")


def _unknown_domain(command: str, domain: str, domains: list[str], json_mode: bool) -> int:
    available = ", ".join(domains) or "none"
    return fail(command, f'Domain "{domain}" not found in config. Available domains: {available}', json_mode)


def run_delete(argv: list[str]) -> int:
    """Entry point for `mulch delete`."""
    parser = argparse.ArgumentParser(
        prog="mulch delete",
        description="Delete an expertise record.",
    )
    _add_target_args(parser)
    add_common_args(parser)
    args = parser.parse_args(argv)

    from mulch.expertise.errors import MulchError
    from mulch.expertise.models import find_record_index, record_summary
    from mulch.expertise.store import ExpertiseStore

    try:
        root, config = load_project(args)
    except (MulchError, OSError) as exc:
        return fail("delete", str(exc), args.json_)

    if args.domain not in config.domains:
        return _unknown_domain("delete", args.domain, config.domains, args.json_)

    store = ExpertiseStore(root)
    try:
        records = store.load(args.domain)
        index = find_record_index(records, args.identifier, args.domain)
        deleted = records.pop(index)
        store.rewrite(args.domain, records)
    except (MulchError, OSError) as exc:
        return fail("delete", str(exc), args.json_)

    if args.json_:
        output_json(
            "delete",
            domain=args.domain,
            id=deleted.id,
            index=index + 1,
            type=deleted.type.value,
            summary=record_summary(deleted),
        )
        return 0

    id_label = f" ({deleted.id})" if deleted.id else ""
    make_console().print(
        f"[green]Deleted {deleted.type.value} #{index + 1}{escape(id_label)} from {args.domain}:[/green] "
        f"{escape(record_summary(deleted))}"
    )
    return 0


def _apply_updates(record_dict: dict[str, Any], args: argparse.Namespace, allowed: set[str]) -> list[str]:
    """Copy the given options onto ``record_dict``; return options that do not apply."""
    rejected: list[str] = []
    for name in _EDITABLE_FIELDS:
        value = getattr(args, name)
        if value is None:
            continue
        if name not in allowed:
            rejected.append(f"--{name}")
            continue
        record_dict[name] = split_csv(value) if name == "files" else value
    if args.classification is not None:
        record_dict["classification"] = args.classification
    if args.tags is not None:
        tags = split_csv(args.tags)
        if tags:
            record_dict["tags"] = tags
        else:
            record_dict.pop("tags", None)
    return rejected


def run_edit(argv: list[str]) -> int:
    """Entry point for `mulch edit`."""
    parser = argparse.ArgumentParser(
        prog="mulch edit",
        description="Edit an existing expertise record.",
    )
    _add_target_args(parser)
    parser.add_argument(
        "--classification",
        choices=[c.value for c in Classification],
        default=None,
        help="New classification.",
    )
    parser.add_argument("--content", default=None, help="New content (convention).")
    parser.add_argument("--name", default=None, help="New name (pattern, reference, guide).")
    parser.add_argument("--description", default=None, help="New description.")
    parser.add_argument("--resolution", default=None, help="New resolution (failure).")
    parser.add_argument("--title", default=None, help="New title (decision).")
    parser.add_argument("--rationale", default=None, help="New rationale (decision).")
    parser.add_argument("--date", default=None, help="New decision date (decision).")
    parser.add_argument("--files", default=None, help="New comma-separated file list (pattern, reference).")
    parser.add_argument("--tags", default=None, help="New comma-separated tags; empty clears them.")
    add_common_args(parser)
    args = parser.parse_args(argv)

    from mulch.expertise.codec import record_from_dict, record_to_dict
    from mulch.expertise.errors import MulchError
    from mulch.expertise.models import find_record_index
    from mulch.expertise.store import ExpertiseStore

    try:
        root, config = load_project(args)
    except (MulchError, OSError) as exc:
        return fail("edit", str(exc), args.json_)

    if args.domain not in config.domains:
        return _unknown_domain("edit", args.domain, config.domains, args.json_)

    store = ExpertiseStore(root)
    try:
        records = store.load(args.domain)
        index = find_record_index(records, args.identifier, args.domain)
    except (MulchError, OSError) as exc:
        return fail("edit", str(exc), args.json_)

    if all(getattr(args, name) is None for name in (*_EDITABLE_FIELDS, "classification", "tags")):
        return fail("edit", "Nothing to update. Pass at least one field option.", args.json_)

    current = records[index]
    allowed = {*current.required_fields, *current.optional_fields}
    updated_dict = record_to_dict(current)
    rejected = _apply_updates(updated_dict, args, allowed)
    if rejected:
        return fail(
            "edit",
            f"{', '.join(rejected)} does not apply to {current.type.value} records.",
            args.json_,
        )

    try:
        updated = record_from_dict(updated_dict)
    except MulchError as exc:
        return fail("edit", f"Updated record is invalid: {exc}", args.json_)

    records[index] = updated
    try:
        store.rewrite(args.domain, records)
    except (MulchError, OSError) as exc:
        return fail("edit", str(exc), args.json_)

    if args.json_:
        output_json(
            "edit",
            domain=args.domain,
            id=updated.id,
            index=index + 1,
            type=updated.type.value,
            record=record_to_dict(updated),
        )
        return 0

    id_label = f" ({updated.id})" if updated.id else ""
    make_console().print(
        f"[green]Updated {updated.type.value} #{index + 1}{escape(id_label)} in {args.domain}[/green]"
    )
    return 0
