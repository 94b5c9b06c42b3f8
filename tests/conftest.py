"""Pytest configuration and fixtures for qt-jcr tests."""

import logging
from dataclasses import dataclass
from pathlib import Path

import pytest

from qt_jcr.config import OAK_QUERY_LOGGER
from qt_jcr.interception import QueryLogInterception

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"
CONTENT_FILE = FIXTURES_DIR / "content.json"

CLIENT_QUERY = (
    "SELECT [jcr:uuid] FROM [nt:unstructured] AS client "
    "WHERE ISDESCENDANTNODE(client, '/content') "
    "AND client.[clientFullName] = 'Some Client'"
)


# =============================================================================
# PLAN FIXTURES
# =============================================================================

LUCENE_PLAN = """[crm:client] as [client] /* lucene:clientFullName
    indexDefinition: /oak:index/clientFullName
    estimatedEntries: 1871
    luceneQuery: crm:clientFullName:John Doe
*/ cost: { "client": { perEntry: 1.0, perExecution: 1.0, count: 1871 } }"""

NODE_TYPE_PLAN = """[crm:client] as [client] /* nodeType
    path: /content/crm/clients
    primaryTypes: [crm:client]
    mixinTypes: []
*/ cost: { "client": 3360.0 }"""

PROPERTY_PLAN = """[nt:base] as [node] /* property slingResourceType
    indexDefinition: /oak:index/slingResourceType
    values: 'crm/client'
    estimatedCost: 2.0
*/ cost: { "node": 2.0 }"""

TRAVERSE_PLAN = """[nt:base] as [nt:base] /* traverse
    allNodes (warning: slow)
    estimatedEntries: 8292.0
 */ cost: { "nt:base": 8292.0 }"""


# =============================================================================
# COST LOG FIXTURES
# =============================================================================

LUCENE_COST_LINE = (
    "cost for [/oak:index/clientFullName] of type (lucene-property) with plan "
    "[lucene:clientFullName\n"
    "    indexDefinition: /oak:index/clientFullName\n"
    "    estimatedEntries: 16356\n"
    "    luceneQuery: *:*\n"
    "] is 9357.00\n"
)

COST_LINES = [
    "cost for reference is Infinity\n",
    "cost for property is Infinity\n",
    "cost for nodeType is 14.0\n",
    "cost for traverse is 1.0E7\n",
    LUCENE_COST_LINE,
]


# =============================================================================
# ENGINE FIXTURES
# =============================================================================

@dataclass
class FakeNode:
    path: str


class FakeResult:
    def __init__(self, paths):
        self._paths = list(paths)

    def result_count(self) -> int:
        return len(self._paths)

    def nodes(self):
        return (FakeNode(path) for path in self._paths)


class FakeEngine:
    """Engine with a canned plan that logs the fixture cost lines when executing."""

    def __init__(self, plan=NODE_TYPE_PLAN, paths=("/content/someClient",), fail_execute=None):
        self.plan = plan
        self.paths = paths
        self.fail_execute = fail_execute
        self.query_logger = logging.getLogger(OAK_QUERY_LOGGER)

    def explain_plan(self, query: str) -> str:
        return self.plan

    def execute(self, query: str) -> FakeResult:
        self.query_logger.debug("Parsing JCR-SQL2 statement: %s", query)
        for line in COST_LINES:
            self.query_logger.debug("%s", line.rstrip("\n"))
        if self.fail_execute is not None:
            raise self.fail_execute
        return FakeResult(self.paths)


@pytest.fixture
def fake_engine() -> FakeEngine:
    """Engine with the nodeType plan and one result node."""
    return FakeEngine()


@pytest.fixture
def interception():
    """Fresh interception installed on the Oak query logger."""
    target = logging.getLogger(OAK_QUERY_LOGGER)
    original_level = target.level
    interception = QueryLogInterception()
    interception.install()
    yield interception
    interception.uninstall()
    target.setLevel(original_level)


@pytest.fixture
def memory_engine():
    """In-memory engine over the fixture content (no indexes)."""
    from qt_jcr.engine.memory import MemoryQueryEngine
    return MemoryQueryEngine.from_file(CONTENT_FILE)
