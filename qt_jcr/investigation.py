"""Investigate a JCR-SQL2 query.

Pipeline (one synchronous call, under one interception key):
1. Explain:   engine EXPLAIN MEASURE plan -> selected index descriptor
2. Measure:   execute the query and time each phase of reading its results,
              while the engine's cost log lines are captured
3. Cost:      captured lines -> per-index costs, cheapest first
4. Report:    everything rendered as one text block

Usage:
    from qt_jcr import QueryInvestigation
    from qt_jcr.engine import MemoryQueryEngine

    investigation = QueryInvestigation(MemoryQueryEngine.from_file("content.json"))
    print(investigation.investigate("SELECT * FROM [nt:unstructured] AS n"))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .config import get_settings
from .cost import CostExtractor, RankedCost
from .engine.base import QueryEngine
from .index import INDEX_REGISTRY, IndexDescriptor, IndexRegistry
from .interception import QueryLogInterception, get_interception
from .performance import QueryPerformance, QueryPerformanceResult
from .plan import QueryPlan

logger = logging.getLogger(__name__)


@dataclass
class QueryInvestigationResult:
    """Everything learnt about one query."""

    query: str
    plan: QueryPlan
    index_descriptor: IndexDescriptor
    """Index the engine selected, according to the plan."""

    query_costs: list[RankedCost]
    """Cost the engine estimated per index, cheapest first."""

    performance: QueryPerformanceResult

    def render(self) -> str:
        costs = "\n".join(f" - {cost}" for cost in self.query_costs) or " - [none]"
        return (
            "QUERY:\n"
            f"{self.query}\n"
            "\n"
            "QUERY PLAN:\n"
            f"{self.plan}\n"
            "\n"
            "INDEX CLASS IN QUERY PLAN:\n"
            f"{self.index_descriptor.index_class}\n"
            "\n"
            "QUERY COST PER INDEX:\n"
            f"{costs}\n"
            "\n"
            f"{self.performance.render()}"
        )

    def __str__(self) -> str:
        return self.render()


class QueryInvestigation:
    """Investigates queries written in the JCR-SQL2 query language.

    Args:
        engine: Engine that plans and runs the queries.
        interception: Log interception to capture cost lines with; defaults
            to the process-wide one installed on the query logger.
        registry: Known index descriptors.
        page_size: Nodes in the timed first page; defaults to settings.
    """

    def __init__(
        self,
        engine: QueryEngine,
        interception: Optional[QueryLogInterception] = None,
        registry: IndexRegistry = INDEX_REGISTRY,
        page_size: Optional[int] = None,
    ):
        self.engine = engine
        self.interception = interception if interception is not None else get_interception()
        self.registry = registry
        self.page_size = page_size if page_size is not None else get_settings().page_size

    def explain_and_measure(self, query: str) -> str:
        """Return the engine's EXPLAIN MEASURE plan for ``query``."""
        logger.debug("Running EXPLAIN MEASURE on query: %r", query)
        plan = self.engine.explain_plan(query)
        logger.debug("Query plan for %r: %r", query, plan)
        return plan

    def investigate(self, query: str) -> QueryInvestigationResult:
        """Classify, run, time and cost ``query``.

        Raises:
            InvalidPlanFormat: If the plan cannot be read.
            UnknownIndexType: If the plan names an unregistered index.
            QueryExecutionFailure: If the engine fails.

        Captured log lines are discarded on every path, including failures.
        """
        logger.debug("Investigating %r", query)
        with self.interception.window() as key:
            plan = QueryPlan(self.explain_and_measure(query), self.registry)
            descriptor = plan.index_descriptor()
            performance = QueryPerformance(self.engine, self.page_size).check(query)
            # Safe to read: execution and consumption have returned
            costs = CostExtractor(self.registry).extract(self.interception.saved_logs(key))

        logger.info(
            "Investigated %r: %s, %d results, %d index costs",
            query, descriptor.index_class, performance.total_number_of_results, len(costs),
        )
        return QueryInvestigationResult(
            query=query,
            plan=plan,
            index_descriptor=descriptor,
            query_costs=costs,
            performance=performance,
        )

    def report(self, query: str) -> str:
        """Investigate ``query`` and return the rendered report."""
        return self.investigate(query).render()
