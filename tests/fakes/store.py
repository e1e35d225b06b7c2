"""Store client fakes that fail or stall on demand."""

from __future__ import annotations

import asyncio
from typing import Any

from dronescheduler.core.types import BaseDocument, FeedResponse, QueryOptions
from dronescheduler.store.predicates import Predicate


class _ScriptedQuery:
    """Serves ``pages`` in order, then raises ``error`` if one is set."""

    def __init__(self, pages: list[FeedResponse], error: BaseException | None, gate: asyncio.Event | None):
        self._pages = list(pages)
        self._error = error
        self._gate = gate
        self._done = False

    @property
    def has_more_results(self) -> bool:
        return not self._done

    def where(self, predicate: Predicate, document_cls: type[BaseDocument]) -> "_ScriptedQuery":
        return self

    async def execute_next(self) -> FeedResponse:
        if self._gate is not None:
            await self._gate.wait()
        if self._pages:
            page = self._pages.pop(0)
            if not self._pages and self._error is None:
                self._done = True
            return page
        self._done = True
        if self._error is not None:
            raise self._error
        return FeedResponse()


class FailingDocumentClient:
    """Returns ``pages_before_failure`` pages, then raises ``error``."""

    def __init__(self, error: BaseException, pages_before_failure: list[FeedResponse] | None = None):
        self.error = error
        self.pages_before_failure = pages_before_failure or []
        self.calls: list[tuple[str, QueryOptions]] = []

    def create_document_query(self, collection_uri: str, options: QueryOptions) -> _ScriptedQuery:
        self.calls.append((collection_uri, options))
        return _ScriptedQuery(self.pages_before_failure, self.error, None)

    async def close(self) -> None:
        pass


class BlockingDocumentClient:
    """Queries wait on ``gate`` before every page; used to test cancellation."""

    def __init__(self, items: list[dict[str, Any]] | None = None):
        self.gate = asyncio.Event()
        self.started = asyncio.Event()
        self.items = items or []
        self.calls: list[tuple[str, QueryOptions]] = []

    def create_document_query(self, collection_uri: str, options: QueryOptions) -> _ScriptedQuery:
        self.calls.append((collection_uri, options))
        self.started.set()
        return _ScriptedQuery([FeedResponse(items=self.items, request_charge=1.0)], None, self.gate)

    async def close(self) -> None:
        pass


class StaticDocumentClient:
    """Returns the same pages for every query, ignoring scope and filters."""

    def __init__(self, pages: list[FeedResponse]):
        self.pages = pages
        self.calls: list[tuple[str, QueryOptions]] = []

    def create_document_query(self, collection_uri: str, options: QueryOptions) -> _ScriptedQuery:
        self.calls.append((collection_uri, options))
        return _ScriptedQuery(self.pages, None, None)

    async def close(self) -> None:
        pass
