from __future__ import annotations

import logging
from typing import Iterable, NamedTuple

from sync.posts.cache import DiskCache
from sync.posts.controller import ControllerTable, ListController, ListSource
from sync.posts.feed import PostFeed
from sync.posts.models import ResourceKind

logger = logging.getLogger("post_sync")


class CourseControllers(NamedTuple):
    announcements: ListController
    course_works: ListController
    course_materials: ListController


class SyncSession:
    """
    Owns the cache, the list source and one controller table per kind.

    Everything that needs controllers gets them from a session, so two
    consumers asking for the same course share the same controllers.
    """

    def __init__(self, cache: DiskCache, source: ListSource):
        self.cache = cache
        self.source = source
        self.tables: dict[ResourceKind, ControllerTable] = {
            kind: ControllerTable(kind, self._factory_for(kind)) for kind in ResourceKind
        }
        self._feeds: dict[tuple[str, ...], PostFeed] = {}

    def _factory_for(self, kind: ResourceKind):
        def build(course_id: str) -> ListController:
            return ListController(course_id, kind, self.cache, self.source)

        return build

    def controller(self, course_id: str, kind: ResourceKind) -> ListController:
        return self.tables[kind].get(course_id)

    def controllers(self, course_id: str) -> CourseControllers:
        return CourseControllers(
            announcements=self.controller(course_id, ResourceKind.ANNOUNCEMENTS),
            course_works=self.controller(course_id, ResourceKind.COURSE_WORKS),
            course_materials=self.controller(course_id, ResourceKind.COURSE_MATERIALS),
        )

    def course_feed(self, course_id: str) -> PostFeed:
        return self.multi_course_feed([course_id])

    def multi_course_feed(self, course_ids: Iterable[str]) -> PostFeed:
        """
        Feed over the given courses, shared between callers asking for the
        same course ids in the same order. A closed feed is rebuilt on the
        next request.
        """
        key = tuple(dict.fromkeys(course_ids))
        feed = self._feeds.get(key)
        if feed is not None and not feed.closed:
            return feed

        groups = [self.controllers(course_id) for course_id in key]
        feed = PostFeed(
            announcements=[g.announcements for g in groups],
            course_works=[g.course_works for g in groups],
            course_materials=[g.course_materials for g in groups],
        )
        self._feeds[key] = feed
        return feed

    def preload_cached_streams(
        self,
        course_ids: Iterable[str],
        archived: Iterable[str] = (),
    ) -> list[str]:
        """Fill controllers of every non-archived course from the disk cache only."""
        skipped = set(archived)
        loaded = []
        for course_id in course_ids:
            if course_id in skipped:
                continue
            for controller in self.controllers(course_id):
                controller.load_list(only_cache=True)
            loaded.append(course_id)
        logger.info("Loaded cached streams for %d course(s): %s", len(loaded), loaded)
        return loaded

    def loaded_course_ids(self) -> list[str]:
        seen: dict[str, None] = {}
        for table in self.tables.values():
            seen.update(dict.fromkeys(table.course_ids()))
        return list(seen)

    def clear_cache(self, course_id: str) -> None:
        for controller in self.controllers(course_id):
            controller.clear_cache()
