"""qt-jcr explain: EXPLAIN MEASURE plan for one query."""

from __future__ import annotations

import click


@click.command()
@click.argument("query")
@click.option("-c", "--content", default=None, help="JSON content file (default: $QT_JCR_CONTENT_FILE).")
def explain(query: str, content: str | None) -> None:
    """Print the plan the in-memory engine would use for QUERY."""
    from ._common import load_engine, print_error
    from ..errors import QueryInvestigationError
    from ..investigation import QueryInvestigation

    engine = load_engine(content)
    try:
        plan = QueryInvestigation(engine).explain_and_measure(query)
    except QueryInvestigationError as e:
        print_error(str(e))
        raise SystemExit(1)

    click.echo(plan)
