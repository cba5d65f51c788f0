"""Static reference of query fields, operators and examples for calling agents."""

from __future__ import annotations

from typing import Any

from .operators import FilterOperator

COMMON_FIELDS: tuple[str, ...] = (
    "state",
    "priority",
    "type",
    "assignee",
    "reporter",
    "created",
    "updated",
    "resolved",
    "summary",
    "description",
)

OPERATOR_EXAMPLES: dict[FilterOperator, tuple[str, str]] = {
    FilterOperator.EQUALS: (":", "state: Open"),
    FilterOperator.CONTAINS: (":", "summary: bug"),
    FilterOperator.STARTS_WITH: (":", "summary: login"),
    FilterOperator.ENDS_WITH: (":", "summary: timeout"),
    FilterOperator.IN: (",", "state: Open,Done"),
    FilterOperator.NOT_IN: ("-", "-state: Resolved,Duplicate"),
    FilterOperator.GREATER: ("..", "created: 2025-01-01.."),
    FilterOperator.LESS: ("..", "updated: ..2025-07-01"),
    FilterOperator.BETWEEN: ("..", "created: 2025-01-01..2025-07-01"),
    FilterOperator.IS_EMPTY: ("has: -", "has: -assignee"),
    FilterOperator.IS_NOT_EMPTY: ("has:", "has: assignee"),
}

EXAMPLE_QUERIES: tuple[str, ...] = (
    "state: Open",
    "priority: High",
    "assignee: me",
    "state: Open,Done",
    "priority: High or priority: Critical",
    "created: 2025-01-01..",
    "updated: ..2025-07-01",
    "created: 2025-01-01..2025-07-01",
    "priority: Critical -state: Resolved",
    "has: -assignee priority: High",
    "#crash priority: Critical",
)

USAGE_TIPS: tuple[str, ...] = (
    "Always include a project filter for best performance",
    "Use the 'in' operator for multiple values of the same field",
    "Use isEmpty/isNotEmpty for field existence (has: -field / has: field)",
    "Dates use YYYY-MM-DD; ranges use '..' with optional open ends",
    "Text search renders as #token and matches summary and description",
    "State values cannot contain spaces; they are never quoted",
    "Use limit/offset pagination for large result sets",
    "Enable include_metadata to see timing and optimisation suggestions",
)


def build_query_guide(scope_id: str | None = None, scope_field: str = "project") -> dict[str, Any]:
    """
    Return a JSON-compatible guide to the query grammar.

    When *scope_id* is given, example queries are prefixed with its scope
    clause so they can be run as-is.
    """
    prefix = f"{scope_field}: {scope_id} " if scope_id else ""
    return {
        "common_fields": list(COMMON_FIELDS),
        "operators": [
            {"name": op.value, "symbol": symbol, "example": example}
            for op, (symbol, example) in OPERATOR_EXAMPLES.items()
        ],
        "example_queries": [f"{prefix}{q}" for q in EXAMPLE_QUERIES],
        "usage_tips": list(USAGE_TIPS),
    }
