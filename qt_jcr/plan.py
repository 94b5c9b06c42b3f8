"""Classify an ``EXPLAIN MEASURE`` plan into the index that serves the query.

The first line of a plan holds the selector and, after a `` /* `` marker,
the identifier of the chosen index::

    [nt:unstructured] as [client] /* nodeType
        path: /content
        primaryTypes: [nt:unstructured, rep:root]
        mixinTypes: []
     */ cost: { "client": 8.0 }
"""

from __future__ import annotations

import logging

from .errors import InvalidPlanFormat, UnknownIndexType
from .index import INDEX_REGISTRY, IndexDescriptor, IndexRegistry

logger = logging.getLogger(__name__)

PLAN_MARKER = " /* "


class QueryPlan:
    """Raw explain plan text plus classification against an index registry."""

    def __init__(self, raw_plan: str, registry: IndexRegistry = INDEX_REGISTRY):
        self.raw_plan = raw_plan
        self.registry = registry

    def index_identifier(self) -> str:
        """Return the index identifier that follows the plan marker.

        Raises:
            InvalidPlanFormat: If the plan is empty, has no marker, or nothing
                follows the marker on its line.
        """
        if not self.raw_plan or not self.raw_plan.strip():
            raise InvalidPlanFormat("Raw plan is empty or invalid.")

        marker_at = self.raw_plan.find(PLAN_MARKER)
        if marker_at == -1:
            raise InvalidPlanFormat(
                f"Cannot find {PLAN_MARKER!r} marker in the plan: {self.raw_plan!r}"
            )

        rest = self.raw_plan[marker_at + len(PLAN_MARKER):]
        identifier = rest.splitlines()[0].strip() if rest else ""
        if not identifier:
            raise InvalidPlanFormat(
                f"No index identifier after {PLAN_MARKER!r} marker in the plan: {self.raw_plan!r}"
            )
        logger.debug("Index identifier in plan: %r", identifier)
        return identifier

    def index_descriptor(self) -> IndexDescriptor:
        """Return the descriptor of the index named in the plan.

        When several plan prefixes match, the longest one wins; prefixes of
        equal length fall back to registration order.

        Raises:
            InvalidPlanFormat: See :meth:`index_identifier`.
            UnknownIndexType: If no registered descriptor matches.
        """
        identifier = self.index_identifier()
        best: IndexDescriptor | None = None
        for descriptor in self.registry.all():
            if not descriptor.matches_plan_identifier(identifier):
                continue
            if best is None or len(descriptor.plan_prefix) > len(best.plan_prefix):
                best = descriptor
        if best is None:
            raise UnknownIndexType(f"Unknown index type for plan: {self.raw_plan}")
        return best

    def __str__(self) -> str:
        return self.raw_plan


def classify(raw_plan: str, registry: IndexRegistry = INDEX_REGISTRY) -> IndexDescriptor:
    """Classify ``raw_plan`` into one registered index descriptor."""
    return QueryPlan(raw_plan, registry).index_descriptor()
