"""CLI commands: mulch init, mulch add."""
from __future__ import annotations

import argparse

from mulch.cli.output import add_common_args, fail, load_project, make_console, output_json, resolve_root


def run_init(argv: list[str]) -> int:
    """Entry point for `mulch init`."""
    parser = argparse.ArgumentParser(
        prog="mulch init",
        description="Initialize a .mulch directory in the project root.",
    )
    add_common_args(parser)
    args = parser.parse_args(argv)

    from mulch.config import PathResolver
    from mulch.config.config_writer import init_mulch_dir
    from mulch.core.logging_config import setup_logging
    from mulch.expertise.errors import MulchError

    root = resolve_root(args)
    existed = PathResolver.get_config_path(root).exists()
    try:
        config = init_mulch_dir(root)
    except (MulchError, OSError) as exc:
        return fail("init", str(exc), args.json_)
    setup_logging(config.logging)

    mulch_dir = PathResolver.get_mulch_dir(root)
    if args.json_:
        output_json(
            "init",
            created=not existed,
            path=str(mulch_dir),
            domains=list(config.domains),
        )
        return 0

    console = make_console()
    if existed:
        console.print(f"[yellow]{mulch_dir} already initialized; missing files restored.[/yellow]")
    else:
        console.print(f"[green]Initialized {mulch_dir}[/green]")
    return 0


def run_add(argv: list[str]) -> int:
    """Entry point for `mulch add`."""
    parser = argparse.ArgumentParser(
        prog="mulch add",
        description="Add a new expertise domain.",
    )
    parser.add_argument("domain", help="Domain name (letters, digits, '-' and '_').")
    add_common_args(parser)
    args = parser.parse_args(argv)

    from mulch.config.config_writer import add_domain
    from mulch.expertise.errors import MulchError

    try:
        root, config = load_project(args)
        path = add_domain(config, args.domain, root)
    except (MulchError, OSError) as exc:
        return fail("add", str(exc), args.json_)

    if args.json_:
        output_json("add", domain=args.domain, path=str(path))
        return 0

    make_console().print(f"[green]Added domain[/green] {args.domain} ({path})")
    return 0
