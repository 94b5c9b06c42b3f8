"""Tests for explain plan classification."""

import pytest

from conftest import LUCENE_PLAN, NODE_TYPE_PLAN, PROPERTY_PLAN, TRAVERSE_PLAN
from qt_jcr.errors import InvalidPlanFormat, QueryInvestigationError, UnknownIndexType
from qt_jcr.index import (
    INDEX_REGISTRY,
    LUCENE_PROPERTY_INDEX,
    NODE_TYPE_INDEX,
    PROPERTY_INDEX,
    TRAVERSING_INDEX,
    IndexDescriptor,
    IndexRegistry,
)
from qt_jcr.plan import QueryPlan, classify


class TestClassify:
    @pytest.mark.parametrize("plan,expected", [
        (LUCENE_PLAN, "org.apache.jackrabbit.oak.plugins.index.lucene.LucenePropertyIndex"),
        (NODE_TYPE_PLAN, "org.apache.jackrabbit.oak.plugins.index.nodetype.NodeTypeIndex"),
        (PROPERTY_PLAN, "org.apache.jackrabbit.oak.plugins.index.property.PropertyIndex"),
        (TRAVERSE_PLAN, "org.apache.jackrabbit.oak.query.index.TraversingIndex"),
    ])
    def test_documented_plan_shapes(self, plan, expected):
        assert classify(plan).index_class == expected

    def test_returns_registered_descriptor(self):
        assert classify(LUCENE_PLAN) is LUCENE_PROPERTY_INDEX
        assert classify(NODE_TYPE_PLAN) is NODE_TYPE_INDEX
        assert classify(PROPERTY_PLAN) is PROPERTY_INDEX
        assert classify(TRAVERSE_PLAN) is TRAVERSING_INDEX

    def test_empty_plan(self):
        with pytest.raises(InvalidPlanFormat):
            classify("")

    def test_blank_plan(self):
        with pytest.raises(InvalidPlanFormat):
            classify("   \n  ")

    def test_plan_without_marker(self):
        with pytest.raises(InvalidPlanFormat):
            classify("[nt:base] as [nt:base]")

    def test_marker_without_identifier(self):
        with pytest.raises(InvalidPlanFormat):
            classify("[nt:base] as [nt:base] /* \n */")

    def test_unknown_index(self):
        with pytest.raises(UnknownIndexType, match="unknown:index"):
            classify("[nt:base] as [nt:base] /* unknown:index */")

    def test_errors_share_base_class(self):
        with pytest.raises(QueryInvestigationError):
            classify("")
        with pytest.raises(QueryInvestigationError):
            classify("[nt:base] as [nt:base] /* unknown:index */")

    def test_plan_is_not_modified(self):
        plan = QueryPlan(NODE_TYPE_PLAN)
        plan.index_descriptor()
        assert str(plan) == NODE_TYPE_PLAN


class TestIndexIdentifier:
    def test_identifier_ends_at_line_end(self):
        assert QueryPlan(LUCENE_PLAN).index_identifier() == "lucene:clientFullName"

    def test_single_line_plan(self):
        plan = QueryPlan('[nt:base] as [a] /* reference */ cost: { "a": 1.0 }')
        assert plan.index_identifier() == "reference */ cost: { \"a\": 1.0 }"
        assert plan.index_descriptor().index_class.endswith("ReferenceIndex")

    def test_aggregate_identifier(self):
        plan = QueryPlan("[nt:base] as [a] /* aggregate lucene:fulltext\n */")
        assert plan.index_descriptor().index_class.endswith("AggregateIndex")


class TestLongestPrefix:
    def test_longest_prefix_wins(self):
        generic = IndexDescriptor("com.example.Generic", "lucene", ("generic",))
        registry = IndexRegistry((generic, LUCENE_PROPERTY_INDEX))
        assert classify(LUCENE_PLAN, registry) is LUCENE_PROPERTY_INDEX

    def test_equal_prefixes_use_registration_order(self):
        first = IndexDescriptor("com.example.First", "nodeType", ("first",))
        second = IndexDescriptor("com.example.Second", "nodeType", ("second",))
        assert classify(NODE_TYPE_PLAN, IndexRegistry((first, second))) is first
        assert classify(NODE_TYPE_PLAN, IndexRegistry((second, first))) is second

    def test_default_registry_is_unambiguous(self):
        prefixes = [descriptor.plan_prefix for descriptor in INDEX_REGISTRY]
        assert len(prefixes) == len(set(prefixes))
