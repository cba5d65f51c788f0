"""IQueryExecutor — the single backend capability the query engine consumes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

# Record fields requested when the caller does not pass a field selector.
DEFAULT_SEARCH_FIELDS: tuple[str, ...] = (
    "id",
    "idReadable",
    "summary",
    "description",
    "project(id,shortName,name)",
    "reporter(login,fullName)",
    "created",
    "updated",
    "customFields(name,value(name,presentation))",
    "tags(name)",
    "commentsCount",
)


@runtime_checkable
class IQueryExecutor(Protocol):
    """
    Execute compiled query text against the tracker backend.

    Implementations own transport concerns (HTTP, authentication, retries,
    timeouts).  Errors raised here propagate to the caller unchanged.
    """

    async def execute_query(
        self,
        query_text: str,
        field_selector: Sequence[str],
        limit: int,
        offset: int,
        order_by: str | None = None,
    ) -> Sequence[Any]:
        """Return the matching records as opaque objects."""
        ...
