"""InMemoryQueryExecutor — list-backed fake for unit tests."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tracker_query.ports.executor import IQueryExecutor

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


@dataclass(frozen=True)
class ExecutedQuery:
    query_text: str
    field_selector: tuple[str, ...]
    limit: int
    offset: int
    order_by: str | None


class InMemoryQueryExecutor(IQueryExecutor):
    """In-memory implementation of ``IQueryExecutor``.

    Ignores the query text and returns a ``limit``/``offset`` slice of the
    configured records.  Every call is recorded in ``calls``.
    """

    def __init__(
        self,
        records: Iterable[Any] = (),
        *,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self._records: list[Any] = list(records)
        self._error = error
        self._delay = delay
        self.calls: list[ExecutedQuery] = []

    async def execute_query(
        self,
        query_text: str,
        field_selector: Sequence[str],
        limit: int,
        offset: int,
        order_by: str | None = None,
    ) -> Sequence[Any]:
        self.calls.append(
            ExecutedQuery(
                query_text=query_text,
                field_selector=tuple(field_selector),
                limit=limit,
                offset=offset,
                order_by=order_by,
            )
        )
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._records[offset : offset + limit]

    # ── Test helpers ─────────────────────────────────────────────

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def set_records(self, records: Iterable[Any]) -> None:
        self._records = list(records)

    def fail_with(self, error: Exception | None) -> None:
        self._error = error
