"""Exceptions raised while investigating a query."""


class QueryInvestigationError(Exception):
    """Base class for query investigation failures."""


class InvalidPlanFormat(QueryInvestigationError, ValueError):
    """Raised when an explain plan is empty or lacks the index marker."""


class UnknownIndexType(QueryInvestigationError, LookupError):
    """Raised when a plan names an index that no descriptor recognises.

    The index registry is incomplete and must be extended; this is never
    silently ignored.
    """


class QueryExecutionFailure(QueryInvestigationError, RuntimeError):
    """Raised by a query engine when planning, execution or iteration fails."""
