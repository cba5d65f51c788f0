"""Tests for the query guide."""

from __future__ import annotations

from tracker_query import FilterOperator, build_query_guide


class TestQueryGuide:
    def test_lists_every_operator(self) -> None:
        guide = build_query_guide()
        names = {op["name"] for op in guide["operators"]}
        assert names == {op.value for op in FilterOperator}

    def test_sections(self) -> None:
        guide = build_query_guide()
        assert "state" in guide["common_fields"]
        assert "state: Open" in guide["example_queries"]
        assert guide["usage_tips"]

    def test_examples_are_scoped(self) -> None:
        guide = build_query_guide("YTM")
        assert all(q.startswith("project: YTM ") for q in guide["example_queries"])

    def test_custom_scope_field(self) -> None:
        guide = build_query_guide("DOCS", scope_field="space")
        assert guide["example_queries"][0] == "space: DOCS state: Open"
