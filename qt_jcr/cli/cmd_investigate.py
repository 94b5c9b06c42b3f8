"""qt-jcr investigate: full investigation report for one query."""

from __future__ import annotations

import click


@click.command()
@click.argument("query")
@click.option("-c", "--content", default=None, help="JSON content file (default: $QT_JCR_CONTENT_FILE).")
@click.option("--page-size", type=click.IntRange(min=1), default=None, help="Nodes in the timed first page.")
def investigate(
    query: str,
    content: str | None,
    page_size: int | None,
) -> None:
    """Explain, run and cost QUERY against the in-memory repository.

    Prints the index the engine selected, the cost it estimated for every
    index it considered, and how long executing and reading the result took.
    """
    from ._common import load_engine, print_error
    from ..errors import QueryInvestigationError
    from ..investigation import QueryInvestigation

    engine = load_engine(content)
    try:
        result = QueryInvestigation(engine, page_size=page_size).investigate(query)
    except QueryInvestigationError as e:
        print_error(str(e))
        raise SystemExit(1)

    click.echo(result.render())
