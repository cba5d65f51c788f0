"""Tests for the request/response models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from tracker_query import (
    ExistenceFilter,
    FilterOperator,
    ListFilter,
    OperatorNotSupportedError,
    Pagination,
    QueryRequest,
    RangeFilter,
    ScalarFilter,
    SortDirection,
    SortSpec,
    build_filter,
)


class TestFilterShapes:
    @pytest.mark.parametrize(
        ("operator", "value", "expected_type"),
        [
            ("equals", "Open", ScalarFilter),
            ("contains", "crash", ScalarFilter),
            ("startsWith", "Log", ScalarFilter),
            ("endsWith", "out", ScalarFilter),
            ("greater", "2025-01-01", ScalarFilter),
            ("less", 10, ScalarFilter),
            ("in", ["High", "Critical"], ListFilter),
            ("notIn", ["Low"], ListFilter),
            ("between", ["2025-01-01", "2025-02-01"], RangeFilter),
            ("isEmpty", None, ExistenceFilter),
            ("isNotEmpty", None, ExistenceFilter),
        ],
    )
    def test_operator_selects_shape(self, operator, value, expected_type) -> None:
        spec = build_filter({"field": "f", "operator": operator, "value": value})
        assert isinstance(spec, expected_type)
        assert spec.operator is FilterOperator(operator)

    def test_between_requires_exactly_two_values(self) -> None:
        with pytest.raises(PydanticValidationError):
            build_filter(
                {"field": "created", "operator": "between", "value": ["a", "b", "c"]}
            )
        with pytest.raises(PydanticValidationError):
            build_filter({"field": "created", "operator": "between", "value": ["a"]})

    def test_in_rejects_empty_list(self) -> None:
        with pytest.raises(PydanticValidationError):
            build_filter({"field": "priority", "operator": "in", "value": []})

    def test_in_wraps_bare_scalar(self) -> None:
        spec = build_filter({"field": "priority", "operator": "in", "value": "High"})
        assert spec.value == ("High",)

    def test_scalar_value_keeps_type(self) -> None:
        assert build_filter({"field": "f", "operator": "equals", "value": 3}).value == 3
        assert (
            build_filter({"field": "f", "operator": "equals", "value": True}).value
            is True
        )

    def test_existence_filter_ignores_value(self) -> None:
        spec = build_filter({"field": "assignee", "operator": "isEmpty", "value": "x"})
        assert isinstance(spec, ExistenceFilter)
        assert not hasattr(spec, "value")

    def test_operator_must_match_shape(self) -> None:
        with pytest.raises(PydanticValidationError):
            ScalarFilter(field="priority", operator=FilterOperator.IN, value="High")

    def test_unknown_operator_suggests_alternatives(self) -> None:
        with pytest.raises(OperatorNotSupportedError) as exc_info:
            build_filter({"field": "summary", "operator": "startswith", "value": "x"})
        assert "startsWith" in exc_info.value.suggestions
        assert exc_info.value.to_dict()["error"] == "OPERATOR_NOT_SUPPORTED"

    def test_filters_are_immutable(self) -> None:
        spec = build_filter({"field": "state", "operator": "equals", "value": "Open"})
        with pytest.raises(PydanticValidationError):
            spec.value = "Done"


class TestQueryRequest:
    def test_defaults(self) -> None:
        request = QueryRequest()
        assert request.scope_id is None
        assert request.filters == ()
        assert request.sorting == ()
        assert request.pagination == Pagination()
        assert request.field_selector is None
        assert request.include_metadata is False

    def test_accepts_camel_case_aliases(self) -> None:
        request = QueryRequest.model_validate(
            {
                "scopeId": "YTM",
                "textSearch": "crash",
                "fieldSelector": ["id", "summary"],
                "includeMetadata": True,
                "filters": [{"field": "state", "operator": "in", "value": ["Open"]}],
                "sorting": [{"field": "created", "direction": "DESC"}],
                "pagination": {"limit": 10, "offset": 20},
            }
        )
        assert request.scope_id == "YTM"
        assert request.text_search == "crash"
        assert request.field_selector == ("id", "summary")
        assert request.include_metadata is True
        assert isinstance(request.filters[0], ListFilter)
        assert request.sorting[0] == SortSpec(field="created", direction=SortDirection.DESC)
        assert request.pagination.limit == 10
        assert request.pagination.offset == 20

    def test_unknown_operator_in_request_is_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            QueryRequest.model_validate(
                {"filters": [{"field": "state", "operator": "like", "value": "x"}]}
            )

    def test_request_is_immutable(self) -> None:
        request = QueryRequest(scope_id="YTM")
        with pytest.raises(PydanticValidationError):
            request.scope_id = "OTHER"

    def test_pagination_bounds(self) -> None:
        with pytest.raises(PydanticValidationError):
            Pagination(limit=0)
        with pytest.raises(PydanticValidationError):
            Pagination(offset=-1)

    def test_cache_params_are_json_compatible(self) -> None:
        request = QueryRequest(
            scope_id="YTM",
            filters=[{"field": "created", "operator": "between", "value": ["a", "b"]}],
        )
        params = request.cache_params()
        assert params["scopeId"] == "YTM"
        assert params["filters"][0]["operator"] == "between"
        assert params["filters"][0]["value"] == ["a", "b"]
