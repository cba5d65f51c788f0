"""
QueryCompiler — structured ``QueryRequest`` -> backend query text.

Example::

    request = QueryRequest(
        scope_id="YTM",
        filters=[
            {"field": "state", "operator": "in", "value": ["Open", "Done"]},
            {"field": "created", "operator": "greater", "value": "2025-01-01"},
        ],
        text_search="crash",
    )
    QueryCompiler().compile(request)
    # → 'project: YTM state: Open,Done created: 2025-01-01.. #crash'

Rendering is deterministic and never drops a clause silently: values the
backend grammar cannot express raise :class:`ValidationError`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .exceptions import ValidationError
from .models import (
    ExistenceFilter,
    ListFilter,
    RangeFilter,
    ScalarFilter,
)
from .operators import FilterOperator

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .models import FilterSpec, QueryRequest, Scalar, SortSpec

logger = logging.getLogger("tracker_query.compiler")

NEGATION = "-"
RANGE = ".."
_NEEDS_QUOTES = re.compile(r"[\s:{}\-]")
_NEEDS_QUOTES_IN_RANGE = re.compile(r"[\s:{}]")
_WHITESPACE = re.compile(r"\s")


@dataclass(frozen=True)
class CompilerConfig:
    """
    Grammar settings for the target backend.

    Attributes:
        scope_field: Field that ``QueryRequest.scope_id`` is rendered against.
        exempt_fields: Enum-like fields whose literals may be neither quoted
            nor contain spaces; multi-value ``in`` renders as ``field: a,b``.
        unquoted_fields: Fields that are never quoted but otherwise behave
            like ordinary fields (e.g. priority values such as ``Show-stopper``).
    """

    scope_field: str = "project"
    exempt_fields: frozenset[str] = frozenset({"state"})
    unquoted_fields: frozenset[str] = frozenset({"priority"})


@dataclass(frozen=True)
class CompiledQuery:
    """Result of compiling a request: query text, order-by text and warnings."""

    text: str
    order_by: str | None = None
    warnings: list[str] = field(default_factory=list)


class QueryCompiler:
    """Render structured filters into the backend's textual query syntax."""

    def __init__(self, config: CompilerConfig | None = None) -> None:
        self._config = config or CompilerConfig()
        self._exempt = {f.lower() for f in self._config.exempt_fields}
        self._unquoted = self._exempt | {
            f.lower() for f in self._config.unquoted_fields
        }

    @property
    def config(self) -> CompilerConfig:
        return self._config

    # -- public API ----------------------------------------------------------

    def compile(self, request: QueryRequest) -> str:
        """Return the backend query text for *request* (``""`` matches all)."""
        return self.compile_query(request).text

    def compile_query(self, request: QueryRequest) -> CompiledQuery:
        """Compile query text and order-by, collecting non-fatal warnings."""
        warnings: list[str] = []
        parts: list[str] = []

        if request.scope_id:
            parts.append(f"{self._config.scope_field}: {request.scope_id}")

        for spec in request.filters:
            clause = self._compile_filter(spec, warnings)
            if clause:
                parts.append(clause)

        if request.text_search:
            parts.append(f"#{request.text_search}")

        return CompiledQuery(
            text=" ".join(parts),
            order_by=self.compile_sorting(request.sorting),
            warnings=warnings,
        )

    def compile_filter(self, spec: FilterSpec) -> str:
        """Render a single filter clause."""
        return self._compile_filter(spec, [])

    def compile_sorting(self, sorting: Sequence[SortSpec]) -> str | None:
        """Render sort keys as ``"field direction, ..."``; ``None`` when empty."""
        if not sorting:
            return None
        return ", ".join(f"{s.field} {s.direction.value}" for s in sorting)

    def escape_value(
        self,
        value: Scalar,
        field_name: str,
        *,
        range_bound: bool = False,
    ) -> str:
        """
        Render *value* for use after ``field:``.

        Values with whitespace, ``:``, braces or ``-`` are double-quoted,
        except for exempt/unquoted fields which the grammar only accepts
        bare.  Exempt-field values containing whitespace are rejected.  Range
        bounds may contain ``-`` unquoted so that dates stay literals.
        """
        text = _to_text(value)
        key = field_name.lower()
        if key in self._unquoted:
            if key in self._exempt and _WHITESPACE.search(text):
                raise ValidationError(
                    f"{field_name} values with spaces (like \"{text}\") cannot be "
                    f"queried. Use values without spaces like: Open, Done, Duplicate",
                    field=field_name,
                    value=value,
                )
            return text
        pattern = _NEEDS_QUOTES_IN_RANGE if range_bound else _NEEDS_QUOTES
        if pattern.search(text):
            escaped = text.replace('"', '\\"')
            return f'"{escaped}"'
        return text

    def is_exempt(self, field_name: str) -> bool:
        return field_name.lower() in self._exempt

    # -- per-shape rendering -------------------------------------------------

    def _compile_filter(self, spec: FilterSpec, warnings: list[str]) -> str:
        neg = NEGATION if spec.negate else ""
        try:
            if isinstance(spec, ScalarFilter):
                return self._compile_scalar(spec, neg)
            if isinstance(spec, ListFilter):
                return self._compile_list(spec, warnings)
            if isinstance(spec, RangeFilter):
                low, high = (
                    self.escape_value(v, spec.field, range_bound=True)
                    for v in spec.value
                )
                return f"{neg}{spec.field}: {low}{RANGE}{high}"
            if isinstance(spec, ExistenceFilter):
                # negate flips the existence check instead of stacking markers
                empty = (spec.operator is FilterOperator.IS_EMPTY) != spec.negate
                return f"has: {NEGATION if empty else ''}{spec.field}"
        except ValidationError as exc:
            if exc.operator is None:
                exc.operator = spec.operator.value
            raise
        raise ValidationError(
            f"Cannot compile filter of type {type(spec).__name__}",
            field=getattr(spec, "field", None),
        )

    def _compile_scalar(self, spec: ScalarFilter, neg: str) -> str:
        if spec.value is None:
            raise ValidationError(
                f"Filter on '{spec.field}' with operator '{spec.operator.value}' "
                f"has no value",
                field=spec.field,
                operator=spec.operator.value,
            )
        is_range = spec.operator in (FilterOperator.GREATER, FilterOperator.LESS)
        value = self.escape_value(spec.value, spec.field, range_bound=is_range)
        if spec.operator is FilterOperator.GREATER:
            return f"{neg}{spec.field}: {value}{RANGE}"
        if spec.operator is FilterOperator.LESS:
            return f"{neg}{spec.field}: {RANGE}{value}"
        # equals/contains/startsWith/endsWith share one form
        return f"{neg}{spec.field}: {value}"

    def _compile_list(self, spec: ListFilter, warnings: list[str]) -> str:
        # notIn is in with negation over the whole expression; an explicit
        # negate on notIn cancels it out.
        negated = spec.negate != (spec.operator is FilterOperator.NOT_IN)
        neg = NEGATION if negated else ""

        if self.is_exempt(spec.field):
            values = self._exempt_values(spec, warnings)
            return f"{neg}{spec.field}: {','.join(values)}"

        escaped = [self.escape_value(v, spec.field) for v in spec.value]
        clauses = [f"{neg}{spec.field}: {v}" for v in escaped]
        # NOT (a or b) == -a -b
        joiner = " " if negated else " or "
        return joiner.join(clauses)

    def _exempt_values(self, spec: ListFilter, warnings: list[str]) -> list[str]:
        texts = [_to_text(v) for v in spec.value]
        valid = [t for t in texts if not _WHITESPACE.search(t)]
        if not valid:
            raise ValidationError(
                f"All provided {spec.field} values contain spaces and cannot be "
                f"queried: {_join(texts)}. Use values without spaces like: "
                f"Open, Done, Duplicate",
                field=spec.field,
                operator=spec.operator.value,
                value=list(spec.value),
            )
        if len(valid) != len(texts):
            dropped = [t for t in texts if _WHITESPACE.search(t)]
            message = (
                f"Some {spec.field} values with spaces were filtered out "
                f"({_join(dropped)}). Using: {_join(valid)}"
            )
            logger.warning(message)
            warnings.append(message)
        return valid


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _join(values: Iterable[str]) -> str:
    return ", ".join(values)
