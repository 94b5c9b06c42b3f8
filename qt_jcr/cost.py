"""Per-index query cost, read from the engine's intercepted cost log lines.

The engine logs one cost estimate per index it considered, in two shapes
(``\\n`` terminated)::

    cost for nodeType is 14.0
    cost for [/oak:index/clientFullName] of type (lucene-property) with plan [lucene:clientFullName
        indexDefinition: /oak:index/clientFullName
        estimatedEntries: 16356
        luceneQuery: *:*
    ] is 9357.00

The compound shape is inferred from observed output; nested brackets inside
the plan block are tolerated, other layouts are not guaranteed.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Iterable

from .index import INDEX_REGISTRY, IndexDescriptor, IndexRegistry

logger = logging.getLogger(__name__)

# Compound shape first: a single-line compound entry also fits the simple one.
COST_LOG_PATTERNS = (
    re.compile(
        r"cost for \[/.*?] of type \((.*?)\) with plan \[.*?] is (.*)\n?",
        re.DOTALL,
    ),
    re.compile(r"cost for (.*?) is (.*)\n?"),
)


@dataclass(frozen=True)
class RankedCost:
    """An index descriptor with the cost the engine reported for it."""

    descriptor: IndexDescriptor
    cost: str
    """Cost token as logged, e.g. ``14.0``, ``1.0E7`` or ``Infinity``."""

    value: float = field(compare=False)
    """Numeric cost used for ranking; unparsable tokens rank as infinite."""

    @property
    def index_class(self) -> str:
        return self.descriptor.index_class

    def __str__(self) -> str:
        return (
            f"Query cost for '{self.descriptor.index_class}' "
            f"{self.descriptor.short_names_display()}: {self.cost}"
        )


def parse_cost(token: str) -> float:
    """Parse a logged cost token; ``Infinity``, NaN and garbage give +inf."""
    try:
        value = float(token)
    except ValueError:
        return math.inf
    if math.isnan(value):
        return math.inf
    return value


def _cost_entries(lines: Iterable[str]) -> list[tuple[str, str]]:
    """Return ``(short_name, cost_token)`` for each cost line, in order."""
    entries = []
    for line in lines:
        for pattern in COST_LOG_PATTERNS:
            match = pattern.fullmatch(line)
            if match:
                entries.append((match.group(1).strip(), match.group(2).strip()))
                break
    return entries


class CostExtractor:
    """Turn captured cost log lines into a cheapest-first cost table."""

    def __init__(self, registry: IndexRegistry = INDEX_REGISTRY):
        self.registry = registry

    def extract(self, lines: Iterable[str]) -> list[RankedCost]:
        """Rank the registry's indexes by the costs found in ``lines``.

        One entry per descriptor with a matching line; the first matching
        line wins. Entries are sorted ascending by cost, infinite costs last,
        equal costs in registration order.
        """
        entries = _cost_entries(lines)
        ranked: list[RankedCost] = []
        for descriptor in self.registry.all():
            costs = [cost for name, cost in entries if name in descriptor.short_names]
            if not costs:
                continue
            if len(costs) > 1:
                logger.debug(
                    "Several costs logged for %s: %s; keeping %s",
                    descriptor.index_class, costs, costs[0],
                )
            ranked.append(RankedCost(descriptor, costs[0], parse_cost(costs[0])))
            logger.debug("'%s' matched with %s", costs[0], descriptor.index_class)

        unmatched = {name for name, _ in entries} - {
            name for descriptor in self.registry.all() for name in descriptor.short_names
        }
        if unmatched:
            logger.debug("Costs logged for unknown indexes: %s", sorted(unmatched))

        return sorted(ranked, key=lambda entry: entry.value)


def extract_costs(lines: Iterable[str], registry: IndexRegistry = INDEX_REGISTRY) -> list[RankedCost]:
    """Shortcut for ``CostExtractor(registry).extract(lines)``."""
    return CostExtractor(registry).extract(lines)
