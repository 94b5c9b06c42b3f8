"""Wall-clock timing of executing a query and reading its results.

Four sequential, non-overlapping phases are timed with
:func:`time.perf_counter`:

1. ``engine.execute(query)``
2. ``result.nodes()``
3. reading the first page of nodes
4. reading the remaining nodes

There is no timeout: a hung engine or an endless result blocks the caller.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from .engine.base import QueryEngine

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


@dataclass
class QueryPerformanceResult:
    """Timings (milliseconds) and result size of one query run."""

    query: str
    page_size: int
    total_number_of_results: int
    query_execution_time_ms: float
    get_nodes_time_ms: float
    read_first_page_time_ms: float
    read_remaining_time_ms: float
    first_page_results: list[str] = field(default_factory=list)
    """Paths of the nodes in the first page."""

    @property
    def total_time_ms(self) -> float:
        return (
            self.query_execution_time_ms
            + self.get_nodes_time_ms
            + self.read_first_page_time_ms
            + self.read_remaining_time_ms
        )

    @property
    def remaining_results(self) -> int:
        return max(0, self.total_number_of_results - len(self.first_page_results))

    def render(self) -> str:
        first_page = "\n".join(f"  - {path}" for path in self.first_page_results) or "  - [none]"
        return (
            "QUERY PERFORMANCE RESULT:\n"
            f"  QUERY: {self.query}\n"
            f"  PAGE SIZE: {self.page_size}\n"
            "  FIRST PAGE RESULTS:\n"
            f"{first_page}\n"
            f"  1. TOTAL NUMBER OF RESULTS: {self.total_number_of_results}\n"
            f"  2. QUERY EXECUTION TIME: {self.query_execution_time_ms:.3f} ms\n"
            "     [QueryEngine.execute()]\n"
            f"  3. GET NODES TIME: {self.get_nodes_time_ms:.3f} ms\n"
            "     [QueryResult.nodes()]\n"
            f"  4. READ NODES IN FIRST PAGE TIME: {self.read_first_page_time_ms:.3f} ms\n"
            f"     [next(nodes) * {self.page_size}]\n"
            f"  5. READ REMAINING NODES TIME: {self.read_remaining_time_ms:.3f} ms\n"
            f"     [next(nodes) * {self.remaining_results}]\n"
            f"  6. TOTAL TIME: {self.total_time_ms:.3f} ms\n"
        )

    def __str__(self) -> str:
        return self.render()


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class QueryPerformance:
    """Run a query and time each phase of reading its results."""

    def __init__(self, engine: QueryEngine, page_size: int = DEFAULT_PAGE_SIZE):
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.engine = engine
        self.page_size = page_size

    def check(self, query: str) -> QueryPerformanceResult:
        """Execute ``query`` and consume every result node.

        Engine failures propagate unchanged.
        """
        start = time.perf_counter()
        result = self.engine.execute(query)
        execution_ms = _elapsed_ms(start)

        start = time.perf_counter()
        nodes = iter(result.nodes())
        get_nodes_ms = _elapsed_ms(start)

        first_page: list[str] = []
        start = time.perf_counter()
        for node in nodes:
            first_page.append(node.path)
            if len(first_page) >= self.page_size:
                break
        first_page_ms = _elapsed_ms(start)

        remaining = 0
        start = time.perf_counter()
        for _ in nodes:
            remaining += 1
        remaining_ms = _elapsed_ms(start)

        performance = QueryPerformanceResult(
            query=query,
            page_size=self.page_size,
            total_number_of_results=len(first_page) + remaining,
            query_execution_time_ms=execution_ms,
            get_nodes_time_ms=get_nodes_ms,
            read_first_page_time_ms=first_page_ms,
            read_remaining_time_ms=remaining_ms,
            first_page_results=first_page,
        )
        logger.debug(
            "Query %r returned %d results in %.3f ms",
            query, performance.total_number_of_results, performance.total_time_ms,
        )
        return performance
