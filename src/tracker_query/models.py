"""
Typed request/response models for structured tracker queries.

A ``FilterSpec`` is a discriminated union keyed by ``operator``: the shape
of ``value`` depends on the operator family, and illegal shapes (a
``between`` with three values, an ``in`` with no values) are rejected when
the model is built rather than when the query is compiled.

All models are immutable and accept both snake_case field names and the
camelCase aliases used on the wire (``scopeId``, ``textSearch``, ...).
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, ClassVar, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .exceptions import OperatorNotSupportedError
from .operators import (
    EXISTENCE_OPERATORS,
    LIST_OPERATORS,
    RANGE_OPERATORS,
    SCALAR_OPERATORS,
    FilterOperator,
)
from .performance import PerformanceClass

Scalar = bool | int | float | str

_MODEL_CONFIG = ConfigDict(
    frozen=True,
    populate_by_name=True,
    alias_generator=to_camel,
)


class _BaseFilter(BaseModel):
    """Fields shared by every filter shape."""

    model_config = _MODEL_CONFIG

    allowed_operators: ClassVar[frozenset[FilterOperator]] = frozenset()

    field: str
    operator: FilterOperator
    negate: bool = False

    @field_validator("operator")
    @classmethod
    def check_operator_family(cls, v: FilterOperator) -> FilterOperator:
        if v not in cls.allowed_operators:
            raise ValueError(
                f"operator '{v.value}' is not valid for {cls.__name__}"
            )
        return v


class ScalarFilter(_BaseFilter):
    """``equals``/``contains``/``startsWith``/``endsWith``/``greater``/``less``.

    ``value`` may be ``None`` so that a missing value is reported by the
    validator instead of failing construction.
    """

    allowed_operators: ClassVar[frozenset[FilterOperator]] = SCALAR_OPERATORS

    value: Scalar | None = None


class ListFilter(_BaseFilter):
    """``in``/``notIn`` over one or more values. A bare scalar becomes a 1-tuple."""

    allowed_operators: ClassVar[frozenset[FilterOperator]] = LIST_OPERATORS

    value: tuple[Scalar, ...] = Field(min_length=1)

    @field_validator("value", mode="before")
    @classmethod
    def wrap_scalar(cls, v: Any) -> Any:
        if isinstance(v, (str, int, float, bool)):
            return (v,)
        return v


class RangeFilter(_BaseFilter):
    """``between`` with exactly two bounds."""

    allowed_operators: ClassVar[frozenset[FilterOperator]] = RANGE_OPERATORS

    value: tuple[Scalar, Scalar]


class ExistenceFilter(_BaseFilter):
    """``isEmpty``/``isNotEmpty``. Carries no value; a supplied one is ignored."""

    allowed_operators: ClassVar[frozenset[FilterOperator]] = EXISTENCE_OPERATORS


def _filter_kind(data: Any) -> str | None:
    raw = data.get("operator") if isinstance(data, dict) else getattr(data, "operator", None)
    try:
        op = FilterOperator.parse(raw)
    except OperatorNotSupportedError:
        return None
    if op in LIST_OPERATORS:
        return "list"
    if op in RANGE_OPERATORS:
        return "range"
    if op in EXISTENCE_OPERATORS:
        return "existence"
    return "scalar"


FilterSpec = Annotated[
    Union[
        Annotated[ScalarFilter, Tag("scalar")],
        Annotated[ListFilter, Tag("list")],
        Annotated[RangeFilter, Tag("range")],
        Annotated[ExistenceFilter, Tag("existence")],
    ],
    Discriminator(
        _filter_kind,
        custom_error_type="invalid_operator",
        custom_error_message="Unsupported filter operator",
    ),
]

_FILTER_ADAPTER: TypeAdapter[Any] = TypeAdapter(FilterSpec)


def build_filter(data: dict[str, Any] | FilterSpec) -> FilterSpec:
    """
    Build a filter from a mapping, choosing the shape from its operator.

    Unknown operators raise :class:`OperatorNotSupportedError` with
    suggestions; malformed values raise ``pydantic.ValidationError``.
    """
    if isinstance(data, dict):
        FilterOperator.parse(data.get("operator"))
    return _FILTER_ADAPTER.validate_python(data)


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SortSpec(BaseModel):
    model_config = _MODEL_CONFIG

    field: str
    direction: SortDirection = SortDirection.ASC

    @field_validator("direction", mode="before")
    @classmethod
    def normalise_direction(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v


class Pagination(BaseModel):
    model_config = _MODEL_CONFIG

    limit: int | None = Field(default=None, ge=1)
    offset: int | None = Field(default=None, ge=0)


class QueryRequest(BaseModel):
    """
    Immutable structured search request.

    Attributes:
        scope_id: Top-level container (project) to restrict the search to.
        filters: Filter clauses, combined with AND.
        text_search: Free-text token rendered as ``#token``.
        sorting: Sort keys, rendered separately from the query text.
        pagination: Limit/offset for the backend call.
        field_selector: Record fields to fetch; ``None`` uses the default set.
        include_metadata: Whether ``QueryResult.to_payload()`` emits metadata.
    """

    model_config = _MODEL_CONFIG

    scope_id: str | None = None
    filters: tuple[FilterSpec, ...] = ()
    text_search: str | None = None
    sorting: tuple[SortSpec, ...] = ()
    pagination: Pagination = Field(default_factory=Pagination)
    field_selector: tuple[str, ...] | None = None
    include_metadata: bool = False

    def cache_params(self) -> dict[str, Any]:
        """JSON-compatible representation used to derive the cache key."""
        return self.model_dump(mode="json", by_alias=True)


class QueryMetadata(BaseModel):
    """Execution metadata attached to every ``QueryResult``."""

    model_config = _MODEL_CONFIG

    total_count: int
    has_more: bool
    query_time_ms: float
    filters: tuple[FilterSpec, ...] = ()
    sorting: tuple[SortSpec, ...] = ()
    compiled_query: str = ""
    order_by: str | None = None
    performance_class: PerformanceClass
    suggestions: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    cached: bool = False
    cache_key: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class QueryResult(BaseModel):
    """Records returned by the backend plus their execution metadata."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    records: tuple[Any, ...] = ()
    metadata: QueryMetadata
    include_metadata: bool = False

    @property
    def cached(self) -> bool:
        return self.metadata.cached

    def to_payload(self) -> dict[str, Any]:
        """Render the response body handed back to the calling agent."""
        payload: dict[str, Any] = {"success": True, "issues": list(self.records)}
        if self.include_metadata:
            payload["metadata"] = self.metadata.model_dump(mode="json", by_alias=True)
        return payload
