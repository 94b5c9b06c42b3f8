"""qt-jcr indexes: list the index implementations the tool recognises."""

from __future__ import annotations

import click


@click.command()
def indexes() -> None:
    """Show every known index: class, plan prefix and cost-log short names."""
    from rich.table import Table

    from ._common import console, print_header
    from ..index import INDEX_REGISTRY

    print_header(f"Known indexes ({len(INDEX_REGISTRY)})")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Index class", min_width=30)
    table.add_column("Plan prefix")
    table.add_column("Short names")

    for descriptor in INDEX_REGISTRY:
        table.add_row(
            descriptor.index_class.rsplit(".", 1)[-1],
            repr(descriptor.plan_prefix),
            ", ".join(descriptor.short_names),
        )

    console.print(table)
