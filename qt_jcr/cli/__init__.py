"""QueryTorque JCR CLI: investigate JCR-SQL2 queries from the shell.

Usage: qt-jcr <command> [options]
"""

from __future__ import annotations

import click


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-essential output.")
@click.pass_context
def main(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """QueryTorque JCR: which index serves a query, and what it costs."""
    import logging

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    # Investigations lower the query logger to DEBUG, so the handler
    # carries the level instead of the root logger
    handler = logging.StreamHandler()
    if verbose:
        handler.setLevel(logging.DEBUG)
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(message)s", handlers=[handler])
    elif quiet:
        handler.setLevel(logging.WARNING)
        logging.basicConfig(level=logging.WARNING, handlers=[handler])
    else:
        handler.setLevel(logging.INFO)
        logging.basicConfig(level=logging.INFO, format="%(message)s", handlers=[handler])


# --- Lazy command registration (keeps `qt-jcr --help` fast) ---

def _register_commands() -> None:
    """Import and register all sub-commands."""
    from .cmd_investigate import investigate
    from .cmd_explain import explain
    from .cmd_classify import classify
    from .cmd_indexes import indexes

    main.add_command(investigate)
    main.add_command(explain)
    main.add_command(classify)
    main.add_command(indexes)


_register_commands()
