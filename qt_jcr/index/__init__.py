"""Index descriptors: the closed catalog of known query index implementations."""

from .descriptors import (
    AGGREGATE_INDEX,
    ELASTIC_INDEX,
    INDEX_REGISTRY,
    LUCENE_PROPERTY_INDEX,
    NODE_TYPE_INDEX,
    PROPERTY_INDEX,
    REFERENCE_INDEX,
    TRAVERSING_INDEX,
    IndexDescriptor,
    IndexRegistry,
)

__all__ = [
    "IndexDescriptor",
    "IndexRegistry",
    "INDEX_REGISTRY",
    "AGGREGATE_INDEX",
    "ELASTIC_INDEX",
    "LUCENE_PROPERTY_INDEX",
    "NODE_TYPE_INDEX",
    "PROPERTY_INDEX",
    "REFERENCE_INDEX",
    "TRAVERSING_INDEX",
]
