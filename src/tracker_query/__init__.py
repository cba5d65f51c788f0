"""Compile, cache and run structured issue-tracker queries."""

from .cache import (
    CacheConfig,
    CacheEntry,
    CacheHealth,
    CacheLookup,
    CacheStats,
    ResultCache,
)
from .compiler import CompiledQuery, CompilerConfig, QueryCompiler
from .exceptions import (
    OperatorNotSupportedError,
    QueryValidationError,
    TrackerQueryError,
    ValidationError,
)
from .guide import build_query_guide
from .metrics import QueryMetrics
from .models import (
    ExistenceFilter,
    FilterSpec,
    ListFilter,
    Pagination,
    QueryMetadata,
    QueryRequest,
    QueryResult,
    RangeFilter,
    ScalarFilter,
    SortDirection,
    SortSpec,
    build_filter,
)
from .operators import FilterOperator
from .orchestrator import OrchestratorConfig, QueryOrchestrator
from .performance import (
    OperationMonitor,
    OperationStats,
    PerformanceClass,
    PerformanceReport,
    classify,
)
from .ports import DEFAULT_SEARCH_FIELDS, IQueryExecutor
from .validator import QueryValidationResult, QueryValidator

__all__ = [
    # Model
    "FilterOperator",
    "FilterSpec",
    "ScalarFilter",
    "ListFilter",
    "RangeFilter",
    "ExistenceFilter",
    "SortDirection",
    "SortSpec",
    "Pagination",
    "QueryRequest",
    "QueryMetadata",
    "QueryResult",
    "build_filter",
    # Compilation / validation
    "CompiledQuery",
    "CompilerConfig",
    "QueryCompiler",
    "QueryValidationResult",
    "QueryValidator",
    # Cache
    "CacheConfig",
    "CacheEntry",
    "CacheHealth",
    "CacheLookup",
    "CacheStats",
    "ResultCache",
    # Execution
    "DEFAULT_SEARCH_FIELDS",
    "IQueryExecutor",
    "OrchestratorConfig",
    "QueryOrchestrator",
    # Performance
    "OperationMonitor",
    "QueryMetrics",
    "OperationStats",
    "PerformanceClass",
    "PerformanceReport",
    "classify",
    # Guide
    "build_query_guide",
    # Exceptions
    "TrackerQueryError",
    "ValidationError",
    "QueryValidationError",
    "OperatorNotSupportedError",
]
