from .executor import DEFAULT_SEARCH_FIELDS, IQueryExecutor

__all__ = [
    "DEFAULT_SEARCH_FIELDS",
    "IQueryExecutor",
]
