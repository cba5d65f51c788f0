"""Tests for QueryValidator."""

from __future__ import annotations

from tracker_query import QueryRequest, QueryValidator
from tracker_query.validator import WARN_LARGE_LIMIT, WARN_NO_SCOPE


class TestQueryValidator:
    def test_scoped_request_is_clean(self, validator) -> None:
        result = validator.validate(QueryRequest(scope_id="YTM"))
        assert result.valid
        assert result
        assert result.errors == []
        assert result.warnings == []
        assert result.request.scope_id == "YTM"

    def test_unscoped_request_warns(self, validator) -> None:
        result = validator.validate(QueryRequest())
        assert result.valid
        assert result.warnings == [WARN_NO_SCOPE]

    def test_scope_filter_counts_as_scope(self, validator) -> None:
        request = QueryRequest(
            filters=[{"field": "project", "operator": "equals", "value": "YTM"}]
        )
        assert WARN_NO_SCOPE not in validator.validate(request).warnings

    def test_scope_filter_match_is_case_insensitive(self, validator) -> None:
        request = QueryRequest(
            filters=[{"field": "Project", "operator": "equals", "value": "YTM"}]
        )
        assert validator.validate(request).warnings == []

    def test_negated_scope_filter_does_not_count_as_scope(self, validator) -> None:
        request = QueryRequest(
            filters=[
                {"field": "project", "operator": "equals", "value": "YTM", "negate": True}
            ]
        )
        assert validator.validate(request).warnings == [WARN_NO_SCOPE]

    def test_large_limit_warns(self, validator) -> None:
        request = QueryRequest(scope_id="YTM", pagination={"limit": 5000})
        result = validator.validate(request)
        assert result.valid
        assert result.warnings == [WARN_LARGE_LIMIT]

    def test_limit_at_maximum_does_not_warn(self, validator) -> None:
        request = QueryRequest(scope_id="YTM", pagination={"limit": 1000})
        assert validator.validate(request).warnings == []

    def test_missing_field_is_an_error(self, validator) -> None:
        request = QueryRequest(
            scope_id="YTM",
            filters=[{"field": " ", "operator": "equals", "value": "Open"}],
        )
        result = validator.validate(request)
        assert not result.valid
        assert not result
        assert "index 0" in result.errors[0]
        assert "missing field" in result.errors[0]

    def test_missing_value_is_an_error(self, validator) -> None:
        request = QueryRequest(
            scope_id="YTM",
            filters=[
                {"field": "state", "operator": "equals", "value": "Open"},
                {"field": "summary", "operator": "contains"},
            ],
        )
        result = validator.validate(request)
        assert len(result.errors) == 1
        assert "index 1" in result.errors[0]
        assert "'summary'" in result.errors[0]

    def test_existence_filter_needs_no_value(self, validator) -> None:
        request = QueryRequest(
            scope_id="YTM",
            filters=[{"field": "assignee", "operator": "isEmpty"}],
        )
        assert validator.validate(request).valid

    def test_errors_and_warnings_are_independent(self, validator) -> None:
        request = QueryRequest(
            filters=[{"field": "summary", "operator": "equals"}],
            pagination={"limit": 2000},
        )
        result = validator.validate(request)
        assert len(result.errors) == 1
        assert result.warnings == [WARN_NO_SCOPE, WARN_LARGE_LIMIT]

    def test_mapping_input_is_parsed(self, validator) -> None:
        result = validator.validate({"scopeId": "YTM", "textSearch": "crash"})
        assert result.valid
        assert result.request.text_search == "crash"

    def test_malformed_mapping_reports_errors_without_raising(self, validator) -> None:
        result = validator.validate(
            {
                "filters": [
                    {"field": "created", "operator": "between", "value": ["a"]}
                ]
            }
        )
        assert not result.valid
        assert result.request is None
        assert any(e.startswith("filters.0") for e in result.errors)

    def test_unknown_operator_reports_error(self, validator) -> None:
        result = validator.validate(
            {"filters": [{"field": "state", "operator": "like", "value": "x"}]}
        )
        assert not result.valid

    def test_custom_scope_field_and_limit(self) -> None:
        validator = QueryValidator(scope_field="space", max_limit=50)
        request = QueryRequest(
            filters=[{"field": "space", "operator": "equals", "value": "DOCS"}],
            pagination={"limit": 51},
        )
        assert validator.validate(request).warnings == [WARN_LARGE_LIMIT]
