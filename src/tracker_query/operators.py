from __future__ import annotations

from enum import Enum

from .exceptions import OperatorNotSupportedError


class FilterOperator(str, Enum):
    """Supported comparison operators for structured filters."""

    # Single value
    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"

    # Set membership
    IN = "in"
    NOT_IN = "notIn"

    # Ranges
    GREATER = "greater"
    LESS = "less"
    BETWEEN = "between"

    # Field existence
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"

    @classmethod
    def parse(cls, raw: FilterOperator | str) -> FilterOperator:
        """Resolve *raw* to an operator, raising with suggestions when unknown."""
        if isinstance(raw, FilterOperator):
            return raw
        try:
            return cls(raw)
        except ValueError:
            raise OperatorNotSupportedError(
                str(raw), [m.value for m in cls]
            ) from None


SCALAR_OPERATORS: frozenset[FilterOperator] = frozenset(
    {
        FilterOperator.EQUALS,
        FilterOperator.CONTAINS,
        FilterOperator.STARTS_WITH,
        FilterOperator.ENDS_WITH,
        FilterOperator.GREATER,
        FilterOperator.LESS,
    }
)
LIST_OPERATORS: frozenset[FilterOperator] = frozenset(
    {FilterOperator.IN, FilterOperator.NOT_IN}
)
RANGE_OPERATORS: frozenset[FilterOperator] = frozenset({FilterOperator.BETWEEN})
EXISTENCE_OPERATORS: frozenset[FilterOperator] = frozenset(
    {FilterOperator.IS_EMPTY, FilterOperator.IS_NOT_EMPTY}
)
