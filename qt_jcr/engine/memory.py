"""In-memory JCR content repository with an Oak-style query planner.

Supports a JCR-SQL2 subset, parsed with sqlglot's T-SQL dialect (which reads
``[bracketed]`` names)::

    SELECT [jcr:uuid] FROM [nt:unstructured] AS client
    WHERE ISDESCENDANTNODE(client, '/content') AND client.[clientFullName] = 'Some Client'

Conditions may be joined with AND only: ``ISDESCENDANTNODE``, ``ISCHILDNODE``
and ``<selector>.[property] = '<value>'``.

Planning estimates a cost for every index that could serve the query on a
worker pool and logs each estimate to the Oak query logger, the way Oak's
``QueryImpl`` does::

    cost for nodeType is 3.0
    cost for [/oak:index/clientFullName] of type (lucene-property) with plan [lucene:clientFullName
        ...
    ] is 2.0

Usage:
    engine = MemoryQueryEngine.from_file("content.json")
    print(engine.explain_plan("SELECT * FROM [nt:unstructured] AS n"))
    for node in engine.execute("SELECT * FROM [nt:unstructured] AS n").nodes():
        print(node.path)
"""

from __future__ import annotations

import contextvars
import json
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, Optional, Union

import sqlglot
from pydantic import BaseModel, ValidationError
from sqlglot import exp
from sqlglot.errors import SqlglotError

from ..config import OAK_QUERY_LOGGER
from ..errors import QueryExecutionFailure

logger = logging.getLogger(__name__)
query_logger = logging.getLogger(OAK_QUERY_LOGGER)

ANY_NODE_TYPE = "nt:base"
INDEX_ROOT = "/oak:index"

# Reading a node from storage costs more than reading an index entry
TRAVERSAL_COST_PER_ENTRY = 10.0


# =============================================================================
# Content model
# =============================================================================

class ContentNode(BaseModel):
    """A node stored in the repository."""

    path: str
    primary_type: str = "nt:unstructured"
    mixin_types: list[str] = []
    properties: dict[str, Any] = {}

    class Config:
        frozen = True

    def value(self, name: str) -> Any:
        """Property value, with ``jcr:primaryType`` and ``jcr:mixinTypes`` built in."""
        if name == "jcr:primaryType":
            return self.primary_type
        if name == "jcr:mixinTypes":
            return self.mixin_types
        return self.properties.get(name)

    def has_type(self, node_type: str) -> bool:
        return (
            node_type == ANY_NODE_TYPE
            or self.primary_type == node_type
            or node_type in self.mixin_types
        )

    @property
    def parent_path(self) -> str:
        parent = self.path.rsplit("/", 1)[0]
        return parent or "/"


class IndexDefinition(BaseModel):
    """An index definition under ``/oak:index``.

    ``type`` is ``"property"`` (served by Oak's PropertyIndex) or
    ``"lucene"`` (served by LucenePropertyIndex).
    """

    name: str
    type: str = "property"
    properties: list[str] = []

    class Config:
        frozen = True

    @property
    def path(self) -> str:
        return f"{INDEX_ROOT}/{self.name}"


class RepositoryContent(BaseModel):
    """Schema of a JSON content file."""

    nodes: list[ContentNode] = []
    indexes: list[IndexDefinition] = []


# =============================================================================
# Query parsing
# =============================================================================

@dataclass
class ParsedQuery:
    """The parts of a JCR-SQL2 query the planner understands."""

    node_type: str
    selector: str
    descendant_of: Optional[str] = None
    child_of: Optional[str] = None
    equals: dict[str, str] = field(default_factory=dict)

    @property
    def path(self) -> str:
        return self.descendant_of or self.child_of or "/"

    def in_scope(self, node: ContentNode) -> bool:
        """True if ``node`` satisfies the path restriction."""
        if self.descendant_of is not None:
            return node.path.startswith(self.descendant_of.rstrip("/") + "/")
        if self.child_of is not None:
            return node.parent_path == (self.child_of.rstrip("/") or "/")
        return True

    def matches(self, node: ContentNode) -> bool:
        if not node.has_type(self.node_type) or not self.in_scope(node):
            return False
        return all(_value_equals(node.value(name), value) for name, value in self.equals.items())


def _value_equals(actual: Any, expected: str) -> bool:
    if actual is None:
        return False
    if isinstance(actual, (list, tuple)):
        return expected in (str(item) for item in actual)
    return str(actual) == expected


def _conjuncts(condition: exp.Expression) -> Iterator[exp.Expression]:
    if isinstance(condition, exp.And):
        yield from _conjuncts(condition.left)
        yield from _conjuncts(condition.right)
    elif isinstance(condition, exp.Paren):
        yield from _conjuncts(condition.this)
    else:
        yield condition


def _string_literal(node: exp.Expression, query: str) -> str:
    if not isinstance(node, exp.Literal) or not node.is_string:
        raise QueryExecutionFailure(f"Expected a string literal, got {node.sql()!r} in: {query}")
    return node.this


def parse_query(query: str) -> ParsedQuery:
    """Parse the supported JCR-SQL2 subset.

    Raises:
        QueryExecutionFailure: On a syntax error or an unsupported construct.
    """
    try:
        parsed = sqlglot.parse_one(query, dialect="tsql")
    except SqlglotError as e:
        raise QueryExecutionFailure(f"Cannot parse query: {query}") from e

    if not isinstance(parsed, exp.Select):
        raise QueryExecutionFailure(f"Only SELECT queries are supported: {query}")

    tables = list(parsed.find_all(exp.Table))
    if len(tables) != 1:
        raise QueryExecutionFailure(f"Exactly one selector is supported: {query}")
    table = tables[0]
    result = ParsedQuery(node_type=table.name, selector=table.alias or table.name)

    where = parsed.find(exp.Where)
    if where is None:
        return result

    for condition in _conjuncts(where.this):
        if isinstance(condition, exp.EQ):
            column, literal = condition.left, condition.right
            if isinstance(literal, exp.Column):
                column, literal = literal, column
            if not isinstance(column, exp.Column):
                raise QueryExecutionFailure(f"Unsupported comparison {condition.sql()!r} in: {query}")
            result.equals[column.name] = _string_literal(literal, query)
        elif isinstance(condition, exp.Anonymous) and condition.name.upper() in ("ISDESCENDANTNODE", "ISCHILDNODE"):
            if not condition.expressions:
                raise QueryExecutionFailure(f"{condition.name} needs a path in: {query}")
            path = _string_literal(condition.expressions[-1], query)
            if condition.name.upper() == "ISDESCENDANTNODE":
                result.descendant_of = path
            else:
                result.child_of = path
        else:
            raise QueryExecutionFailure(f"Unsupported condition {condition.sql()!r} in: {query}")

    return result


# =============================================================================
# Planning
# =============================================================================

def format_cost(cost: float) -> str:
    """Render a cost the way the engine logs it (``14.0``, ``Infinity``)."""
    if math.isinf(cost):
        return "Infinity"
    return repr(float(cost))


@dataclass
class IndexPlan:
    """One index's plan for a query."""

    identifier: str
    """Index identifier as it appears in the explain plan."""

    cost: float
    details: list[str] = field(default_factory=list)


class _Planner:
    """Cost estimation for one query against a snapshot of the content."""

    def __init__(self, query: ParsedQuery, nodes: list[ContentNode], indexes: list[IndexDefinition]):
        self.query = query
        self.nodes = nodes
        self.indexes = indexes
        self.scope = [node for node in nodes if query.in_scope(node)]

    def traversing(self) -> list[IndexPlan]:
        entries = len(self.scope)
        restriction = "allNodes (warning: slow)" if self.query.path == "/" else f"path: {self.query.path}//*"
        plan = IndexPlan("traverse", TRAVERSAL_COST_PER_ENTRY * entries, [restriction, f"estimatedEntries: {float(entries)}"])
        query_logger.debug("cost for %s is %s", "traverse", format_cost(plan.cost))
        return [plan]

    def node_type(self) -> list[IndexPlan]:
        if self.query.node_type == ANY_NODE_TYPE:
            cost = math.inf
        else:
            cost = 1.0 + sum(1 for node in self.scope if node.has_type(self.query.node_type))
        query_logger.debug("cost for %s is %s", "nodeType", format_cost(cost))
        if math.isinf(cost):
            return []
        return [IndexPlan("nodeType", cost, [
            f"path: {self.query.path}",
            f"primaryTypes: [{self.query.node_type}]",
            "mixinTypes: []",
        ])]

    def property_index(self) -> list[IndexPlan]:
        plans = []
        for definition in self._covering("property"):
            name = next(p for p in definition.properties if p in self.query.equals)
            value = self.query.equals[name]
            cost = 2.0 + sum(1 for node in self.nodes if _value_equals(node.value(name), value))
            plans.append(IndexPlan(f"property {definition.name}", cost, [
                f"indexDefinition: {definition.path}",
                f"values: '{value}'",
                f"estimatedCost: {cost}",
            ]))
        cheapest = min((plan.cost for plan in plans), default=math.inf)
        query_logger.debug("cost for %s is %s", "property", format_cost(cheapest))
        return plans

    def lucene(self) -> list[IndexPlan]:
        plans = []
        for definition in self._covering("lucene"):
            name = next(p for p in definition.properties if p in self.query.equals)
            value = self.query.equals[name]
            entries = sum(1 for node in self.nodes if node.value(name) is not None)
            plan = IndexPlan(f"lucene:{definition.name}", 1.0 + entries / 2, [
                f"indexDefinition: {definition.path}",
                f"estimatedEntries: {entries}",
                f"luceneQuery: {name}:{value}",
            ])
            detail = "\n".join([plan.identifier] + [f"    {line}" for line in plan.details]) + "\n"
            query_logger.debug(
                "cost for [%s] of type (%s) with plan [%s] is %s",
                definition.path, "lucene-property", detail, format_cost(plan.cost),
            )
            plans.append(plan)
        if not plans:
            query_logger.debug("cost for %s is %s", "lucene-property", format_cost(math.inf))
        return plans

    def reference(self) -> list[IndexPlan]:
        # REFERENCES() constraints are not supported, so the index never applies
        query_logger.debug("cost for %s is %s", "reference", format_cost(math.inf))
        return []

    def _covering(self, index_type: str) -> list[IndexDefinition]:
        return [
            definition for definition in self.indexes
            if definition.type == index_type
            and any(name in self.query.equals for name in definition.properties)
        ]

    def estimators(self) -> list[Callable[[], list[IndexPlan]]]:
        """Estimators in the order ties between equal costs are broken."""
        return [self.lucene, self.node_type, self.property_index, self.reference, self.traversing]


def render_plan(query: ParsedQuery, plan: IndexPlan) -> str:
    """Render an explain plan in Oak's text layout."""
    lines = [f"[{query.node_type}] as [{query.selector}] /* {plan.identifier}"]
    lines.extend(f"    {line}" for line in plan.details)
    lines.append(f' */ cost: {{ "{query.selector}": {format_cost(plan.cost)} }}')
    return "\n".join(lines)


# =============================================================================
# Engine
# =============================================================================

class MemoryQueryResult:
    """Lazy result over a snapshot of the repository.

    ``nodes()`` may be called once; run the query again for a fresh pass.
    """

    def __init__(self, query: ParsedQuery, nodes: list[ContentNode]):
        self._query = query
        self._nodes = nodes
        self._consumed = False

    def result_count(self) -> int:
        return sum(1 for node in self._nodes if self._query.matches(node))

    def nodes(self) -> Iterator[ContentNode]:
        if self._consumed:
            raise QueryExecutionFailure("Query result nodes were already requested; execute the query again")
        self._consumed = True
        return (node for node in self._nodes if self._query.matches(node))


class MemoryQueryEngine:
    """Query engine over nodes held in memory.

    Args:
        nodes: Repository content.
        indexes: Index definitions under ``/oak:index``.
        max_workers: Worker threads used to estimate index costs.
    """

    def __init__(
        self,
        nodes: Iterable[ContentNode] = (),
        indexes: Iterable[IndexDefinition] = (),
        max_workers: int = 4,
    ):
        self._nodes: dict[str, ContentNode] = {}
        self._indexes = list(indexes)
        self.max_workers = max_workers
        for node in nodes:
            self.add_node(node)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MemoryQueryEngine":
        """Create an engine from the JSON content schema (``nodes``, ``indexes``).

        Raises:
            ValueError: If ``data`` does not follow the schema.
        """
        try:
            content = RepositoryContent.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid repository content: {e}") from e
        return cls(content.nodes, content.indexes)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "MemoryQueryEngine":
        """Create an engine from a JSON content file."""
        return cls.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))

    def add_node(self, node: ContentNode) -> None:
        self._nodes[node.path] = node

    def add_index(self, definition: IndexDefinition) -> None:
        self._indexes.append(definition)

    def explain_plan(self, query: str) -> str:
        parsed, plan = self._plan(query)
        return render_plan(parsed, plan)

    def execute(self, query: str) -> MemoryQueryResult:
        parsed, plan = self._plan(query)
        logger.debug("Executing %r with %s (cost %s)", query, plan.identifier, format_cost(plan.cost))
        return MemoryQueryResult(parsed, self._snapshot())

    def _snapshot(self) -> list[ContentNode]:
        return sorted(self._nodes.values(), key=lambda node: node.path)

    def _plan(self, query: str) -> tuple[ParsedQuery, IndexPlan]:
        query_logger.debug("Parsing JCR-SQL2 statement: %s", query)
        parsed = parse_query(query)
        planner = _Planner(parsed, self._snapshot(), list(self._indexes))

        # Each task gets its own context copy so worker threads see the
        # caller's context variables
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [
                pool.submit(contextvars.copy_context().run, estimator)
                for estimator in planner.estimators()
            ]
            plans = [plan for future in futures for plan in future.result()]

        best = plans[0]
        for plan in plans[1:]:
            if plan.cost < best.cost:
                best = plan
        return parsed, best
