"""Catalog of the query index implementations known to the investigator.

Each descriptor carries three pieces of information about one Oak
``QueryIndex`` implementation:

- ``index_class``: fully qualified class name of the implementation.
- ``plan_prefix``: what the index identifier starts with (or equals) in the
  first line of an ``EXPLAIN MEASURE`` plan, right after the `` /* `` marker.
- ``short_names``: names the engine uses for the index in its cost log lines
  (``cost for <name> is <cost>``).

Plan identifiers per index, as emitted by the engine::

    [crm:client] as [client] /* lucene:clientFullName        -> "lucene:"
    [crm:client] as [client] /* nodeType                     -> "nodeType"
    [nt:base] as [node] /* property slingResourceType         -> "property "
    [nt:base] as [nt:base] /* traverse                       -> "traverse"

The catalog is closed: an unrecognised plan identifier is an error, and the
fix is to add a descriptor here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass(frozen=True)
class IndexDescriptor:
    """One query index implementation."""

    index_class: str
    """Fully qualified class name of the index implementation."""

    plan_prefix: str
    """Prefix of (or exact) index identifier in an explain plan."""

    short_names: tuple[str, ...]
    """Names used for this index in cost log lines."""

    def matches_plan_identifier(self, identifier: str) -> bool:
        """True if ``identifier`` starts with (or equals) the plan prefix."""
        return identifier.startswith(self.plan_prefix)

    def short_names_display(self) -> str:
        """Short names as ``[a, b]``."""
        return "[" + ", ".join(self.short_names) + "]"


AGGREGATE_INDEX = IndexDescriptor(
    index_class="org.apache.jackrabbit.oak.plugins.index.aggregate.AggregateIndex",
    plan_prefix="aggregate ",
    short_names=(
        "aggregate no-index",
        "aggregate elasticsearch",
        "aggregate lucene",
        "aggregate lucene-property",
    ),
)

ELASTIC_INDEX = IndexDescriptor(
    index_class="org.apache.jackrabbit.oak.plugins.index.elastic.query.ElasticIndex",
    plan_prefix="elasticsearch:",
    short_names=("elasticsearch",),
)

LUCENE_PROPERTY_INDEX = IndexDescriptor(
    index_class="org.apache.jackrabbit.oak.plugins.index.lucene.LucenePropertyIndex",
    plan_prefix="lucene:",
    short_names=("lucene-property",),
)

NODE_TYPE_INDEX = IndexDescriptor(
    index_class="org.apache.jackrabbit.oak.plugins.index.nodetype.NodeTypeIndex",
    plan_prefix="nodeType",
    short_names=("nodeType",),
)

PROPERTY_INDEX = IndexDescriptor(
    index_class="org.apache.jackrabbit.oak.plugins.index.property.PropertyIndex",
    plan_prefix="property ",
    short_names=("property",),
)

REFERENCE_INDEX = IndexDescriptor(
    index_class="org.apache.jackrabbit.oak.plugins.index.reference.ReferenceIndex",
    plan_prefix="reference",
    short_names=("reference",),
)

TRAVERSING_INDEX = IndexDescriptor(
    index_class="org.apache.jackrabbit.oak.query.index.TraversingIndex",
    plan_prefix="traverse",
    short_names=("traverse",),
)


class IndexRegistry:
    """Fixed, ordered collection of :class:`IndexDescriptor`.

    Registration order matters: it breaks ties during plan classification
    and orders cost entries with equal cost.
    """

    def __init__(self, descriptors: tuple[IndexDescriptor, ...]):
        self._descriptors = tuple(descriptors)

    def all(self) -> tuple[IndexDescriptor, ...]:
        """Return every known descriptor in registration order."""
        return self._descriptors

    def find_by_short_name(self, name: str) -> Optional[IndexDescriptor]:
        """Return the first descriptor that uses ``name`` in cost logs."""
        for descriptor in self._descriptors:
            if name in descriptor.short_names:
                return descriptor
        return None

    def __iter__(self) -> Iterator[IndexDescriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)


INDEX_REGISTRY = IndexRegistry((
    AGGREGATE_INDEX,
    ELASTIC_INDEX,
    LUCENE_PROPERTY_INDEX,
    NODE_TYPE_INDEX,
    PROPERTY_INDEX,
    REFERENCE_INDEX,
    TRAVERSING_INDEX,
))
