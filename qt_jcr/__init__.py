"""QueryTorque JCR: investigation of JCR-SQL2 queries.

Pipeline:
1. Explain:   EXPLAIN MEASURE plan -> index the engine selected
2. Intercept: engine cost log lines captured under a correlation key
3. Measure:   execute + read results, four timed phases
4. Cost:      per-index costs, cheapest first
5. Report:    one text block

Usage:
    from qt_jcr import QueryInvestigation
    from qt_jcr.engine import MemoryQueryEngine

    investigation = QueryInvestigation(MemoryQueryEngine.from_file("content.json"))
    print(investigation.report("SELECT * FROM [nt:unstructured] AS n"))
"""

from .cost import CostExtractor, RankedCost, extract_costs
from .errors import (
    InvalidPlanFormat,
    QueryExecutionFailure,
    QueryInvestigationError,
    UnknownIndexType,
)
from .index import INDEX_REGISTRY, IndexDescriptor, IndexRegistry
from .interception import QueryLogInterception, get_interception, interception_key
from .investigation import QueryInvestigation, QueryInvestigationResult
from .performance import QueryPerformance, QueryPerformanceResult
from .plan import QueryPlan, classify

__version__ = "0.1.0"

__all__ = [
    "QueryInvestigation",
    "QueryInvestigationResult",
    "QueryPlan",
    "classify",
    "QueryLogInterception",
    "get_interception",
    "interception_key",
    "CostExtractor",
    "RankedCost",
    "extract_costs",
    "QueryPerformance",
    "QueryPerformanceResult",
    "IndexDescriptor",
    "IndexRegistry",
    "INDEX_REGISTRY",
    "QueryInvestigationError",
    "InvalidPlanFormat",
    "UnknownIndexType",
    "QueryExecutionFailure",
]
