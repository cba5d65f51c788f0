from .executor import ExecutedQuery, InMemoryQueryExecutor

__all__ = [
    "ExecutedQuery",
    "InMemoryQueryExecutor",
]
