"""
Exception hierarchy for query compilation, validation and execution.

All exceptions inherit from ``TrackerQueryError`` and provide
``to_dict()`` for API-friendly error responses.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any


class TrackerQueryError(Exception):
    """Root exception for the query subsystem."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class ValidationError(TrackerQueryError):
    """
    A filter cannot be rendered into backend query text.

    Raised by the compiler instead of silently dropping a clause, e.g. when
    every value of an exempt-field ``in`` filter contains a space.
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        operator: str | None = None,
        value: Any = None,
    ) -> None:
        self.message = message
        self.field = field
        self.operator = operator
        self.value = value
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "VALIDATION_ERROR",
            "message": self.message,
            "field": self.field,
            "operator": self.operator,
            "value": self.value,
        }


class QueryValidationError(TrackerQueryError):
    """The validator rejected a request; nothing was sent to the backend."""

    def __init__(
        self,
        errors: list[str],
        warnings: list[str] | None = None,
    ) -> None:
        self.errors = list(errors)
        self.warnings = list(warnings or [])
        super().__init__(f"Query validation failed: {'; '.join(self.errors)}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "QUERY_VALIDATION_ERROR",
            "errors": self.errors,
            "warnings": self.warnings,
        }


class OperatorNotSupportedError(TrackerQueryError):
    """
    Unknown filter operator.

    Provides fuzzy-matched suggestions for likely intended operators.
    """

    def __init__(self, operator: str, valid_operators: list[str]) -> None:
        self.operator = operator
        self.valid_operators = valid_operators
        self.suggestions = get_close_matches(operator, valid_operators, n=3, cutoff=0.6)

        message = f"Unknown operator: '{operator}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        message += f" Valid operators: {', '.join(sorted(valid_operators))}"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "OPERATOR_NOT_SUPPORTED",
            "operator": self.operator,
            "suggestions": self.suggestions,
            "valid_operators": sorted(self.valid_operators),
        }
