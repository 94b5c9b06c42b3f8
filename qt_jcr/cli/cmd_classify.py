"""qt-jcr classify: name the index an explain plan selected."""

from __future__ import annotations

import click


@click.command()
@click.argument("plan_file", type=click.File("r"), default="-")
@click.option("--short-names", is_flag=True, help="Also print the index's cost-log short names.")
def classify(plan_file, short_names: bool) -> None:
    """Classify an EXPLAIN MEASURE plan read from PLAN_FILE (default: stdin).

    Works on plans copied from any Oak repository, no content file needed.
    """
    from ._common import print_error
    from ..errors import QueryInvestigationError
    from ..plan import classify as classify_plan

    raw_plan = plan_file.read()
    try:
        descriptor = classify_plan(raw_plan)
    except QueryInvestigationError as e:
        print_error(str(e))
        raise SystemExit(1)

    if short_names:
        click.echo(f"{descriptor.index_class} {descriptor.short_names_display()}")
    else:
        click.echo(descriptor.index_class)
