"""QueryValidator — advisory/blocking pre-check of a ``QueryRequest``."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .exceptions import TrackerQueryError
from .models import ExistenceFilter, QueryRequest

MAX_RECOMMENDED_LIMIT = 1000

WARN_NO_SCOPE = "No project filter specified - query may be slow"
WARN_LARGE_LIMIT = (
    "Large limit specified - consider pagination for better performance"
)


@dataclass
class QueryValidationResult:
    """Errors block execution; warnings are informational."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    request: QueryRequest | None = None

    @property
    def valid(self) -> bool:
        return len(self.errors) == 0

    def __bool__(self) -> bool:
        return self.valid


class QueryValidator:
    """
    Structural and performance checks that never raise.

    Accepts either a built :class:`QueryRequest` or a raw mapping; model
    construction errors from a mapping are reported as error strings.
    """

    def __init__(
        self,
        scope_field: str = "project",
        max_limit: int = MAX_RECOMMENDED_LIMIT,
    ) -> None:
        self._scope_field = scope_field
        self._max_limit = max_limit

    def validate(self, request: QueryRequest | Mapping[str, Any]) -> QueryValidationResult:
        result = QueryValidationResult()

        if not isinstance(request, QueryRequest):
            parsed = self._parse(request, result)
            if parsed is None:
                return result
            request = parsed
        result.request = request

        self._check_filters(request, result)
        self._check_performance(request, result)
        return result

    # -- internals -----------------------------------------------------------

    def _parse(
        self, data: Mapping[str, Any], result: QueryValidationResult
    ) -> QueryRequest | None:
        try:
            return QueryRequest.model_validate(dict(data))
        except PydanticValidationError as exc:
            for error in exc.errors():
                loc = ".".join(str(p) for p in error.get("loc", ("__root__",)))
                msg = error.get("msg", "validation error")
                result.errors.append(f"{loc}: {msg}")
        except (TrackerQueryError, TypeError, ValueError) as exc:
            result.errors.append(str(exc))
        return None

    def _check_filters(
        self, request: QueryRequest, result: QueryValidationResult
    ) -> None:
        for index, spec in enumerate(request.filters):
            if not spec.field or not spec.field.strip():
                result.errors.append(
                    f"Invalid filter at index {index}: missing field "
                    f"(operator '{spec.operator.value}')"
                )
                continue
            if isinstance(spec, ExistenceFilter):
                continue
            if getattr(spec, "value", None) is None:
                result.errors.append(
                    f"Invalid filter at index {index}: field '{spec.field}' "
                    f"with operator '{spec.operator.value}' has no value"
                )

    def _check_performance(
        self, request: QueryRequest, result: QueryValidationResult
    ) -> None:
        scoped = bool(request.scope_id) or any(
            spec.field.lower() == self._scope_field.lower() and not spec.negate
            for spec in request.filters
        )
        if not scoped:
            result.warnings.append(WARN_NO_SCOPE)

        limit = request.pagination.limit
        if limit is not None and limit > self._max_limit:
            result.warnings.append(WARN_LARGE_LIMIT)
