"""
Per-course, per-kind list controller.

A ListController owns the cached items of one resource kind for one course,
its loading flag and the token of the next unfetched page. All state changes
happen on the event loop; the list source does its network I/O elsewhere and
is only awaited here.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Protocol

from sync.posts.cache import DiskCache
from sync.posts.merge import merge_into, newer_first, same_id
from sync.posts.models import Page, Record, ResourceKind
from sync.posts.observable import Observable

logger = logging.getLogger("post_sync")


class ListSource(Protocol):
    async def list_page(
        self,
        course_id: str,
        kind: ResourceKind,
        page_token: Optional[str] = None,
    ) -> Page:
        ...


class ListController:
    def __init__(
        self,
        course_id: str,
        kind: ResourceKind,
        cache: DiskCache,
        source: ListSource,
    ):
        self.course_id = course_id
        self.kind = kind
        self.cache = cache
        self.source = source
        self.changed = Observable()
        self.last_error: Optional[BaseException] = None

        self._items: list[Record] = []
        self._loading = False
        self._next_page_token: Optional[str] = None
        self._in_flight = 0
        self._fetch_lock = asyncio.Lock()

    def __repr__(self) -> str:
        return (
            f"<ListController {self.kind.value} course={self.course_id} "
            f"items={len(self._items)} loading={self._loading}>"
        )

    # ── Observable state ─────────────────────────────────────

    @property
    def items(self) -> tuple[Record, ...]:
        return tuple(self._items)

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def next_page_token(self) -> Optional[str]:
        return self._next_page_token

    @property
    def has_next_page(self) -> bool:
        return self._next_page_token is not None

    def _set_loading(self, value: bool) -> None:
        if self._loading != value:
            self._loading = value
            self.changed.emit(self, "loading")

    def _set_next_page_token(self, value: Optional[str]) -> None:
        value = value or None
        if self._next_page_token != value:
            self._next_page_token = value
            self.changed.emit(self, "next_page_token")

    def _merge(self, records: list[Record]) -> None:
        if not records:
            return
        merge_into(self._items, records, is_same=same_id, is_before=newer_first)
        self.changed.emit(self, "items")

    # ── Loading ──────────────────────────────────────────────

    def load_list(
        self,
        bypass_cache: bool = False,
        only_cache: bool = False,
    ) -> Optional[asyncio.Task]:
        """
        Show cached items, then refresh from the network when needed.

        With a non-empty cache and bypass_cache=False the network is not
        touched. Otherwise a refresh is scheduled on the running loop and its
        task returned. only_cache=True never schedules anything.
        """
        cached = self.cache.read(self.kind, self.course_id)
        self._merge(cached)

        if only_cache:
            return None
        if cached and not bypass_cache:
            if self._in_flight == 0:
                self._set_loading(False)
            return None

        loop = asyncio.get_running_loop()
        self._set_loading(True)
        return loop.create_task(self.refresh_list())

    async def refresh_list(self, fetch_all_pages: bool = False) -> bool:
        """Fetch from the first page. Returns False if a page failed."""
        return await self._run(from_stored_token=False, fetch_all_pages=fetch_all_pages)

    async def load_next_page(self, fetch_all_pages: bool = False) -> bool:
        """Fetch the page after the last one loaded, if the server has one."""
        return await self._run(from_stored_token=True, fetch_all_pages=fetch_all_pages)

    def clear_cache(self) -> bool:
        return self.cache.clear(self.kind, self.course_id)

    # ── Fetching ─────────────────────────────────────────────

    async def _run(self, from_stored_token: bool, fetch_all_pages: bool) -> bool:
        self._in_flight += 1
        self._set_loading(True)
        try:
            # One fetch sequence at a time per controller.
            async with self._fetch_lock:
                page_token = None
                if from_stored_token:
                    page_token = self._next_page_token
                    if page_token is None:
                        logger.debug("No next page for %s course=%s", self.kind.value, self.course_id)
                        return True
                return await self._fetch_pages(page_token, fetch_all_pages)
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._set_loading(False)

    async def _fetch_pages(self, page_token: Optional[str], fetch_all_pages: bool) -> bool:
        pages = 0
        while True:
            try:
                page = await self.source.list_page(self.course_id, self.kind, page_token)
            except Exception as exc:
                self.last_error = exc
                logger.warning(
                    "Failed to list %s for course=%s page_token=%s after %d page(s): %s",
                    self.kind.value,
                    self.course_id,
                    page_token,
                    pages,
                    exc,
                )
                return False

            pages += 1
            self._merge(page.records)
            logger.debug(
                "Merged %d %s record(s) for course=%s next_page_token=%s",
                len(page.records),
                self.kind.value,
                self.course_id,
                page.next_page_token,
            )

            if fetch_all_pages and page.next_page_token:
                page_token = page.next_page_token
                continue

            self.last_error = None
            self._set_next_page_token(page.next_page_token)
            self.cache.write(self.kind, self.course_id, self._items)
            logger.info(
                "Refreshed %s for course=%s: pages=%d items=%d more=%s",
                self.kind.value,
                self.course_id,
                pages,
                len(self._items),
                self.has_next_page,
            )
            return True


class ControllerTable:
    """At most one ListController per course for a single resource kind."""

    def __init__(self, kind: ResourceKind, factory: Callable[[str], ListController]):
        self.kind = kind
        self._factory = factory
        self._controllers: dict[str, ListController] = {}

    def get(self, course_id: str) -> ListController:
        controller = self._controllers.get(course_id)
        if controller is None:
            controller = self._factory(course_id)
            self._controllers[course_id] = controller
            logger.debug("Registered %s controller for course=%s", self.kind.value, course_id)
        return controller

    def loaded(self, course_id: str) -> Optional[ListController]:
        return self._controllers.get(course_id)

    def course_ids(self) -> list[str]:
        return list(self._controllers)

    def __contains__(self, course_id: object) -> bool:
        return course_id in self._controllers

    def __len__(self) -> int:
        return len(self._controllers)
