"""Protocols for the query engine the investigator drives."""

from typing import Iterator, Protocol


class Node(Protocol):
    """A node returned by a query."""

    path: str
    """Absolute repository path of the node."""


class QueryResult(Protocol):
    """Lazy result of one executed query.

    Nodes are produced on demand, the sequence is finite and it cannot be
    restarted without executing the query again.
    """

    def result_count(self) -> int:
        """Number of nodes in the result, or -1 if the engine cannot tell."""
        ...

    def nodes(self) -> Iterator[Node]:
        """Return the iterator over the result's nodes."""
        ...


class QueryEngine(Protocol):
    """Protocol for JCR-SQL2 query engines.

    Engines report their per-index cost estimates through the query-planning
    logger while a query is planned and executed. Failures surface as
    :class:`~qt_jcr.errors.QueryExecutionFailure`.
    """

    def explain_plan(self, query: str) -> str:
        """Return the ``EXPLAIN MEASURE`` plan text for ``query``."""
        ...

    def execute(self, query: str) -> QueryResult:
        """Plan and execute ``query``."""
        ...
