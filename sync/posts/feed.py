"""
PostFeed - one newest-first stream of posts built from list controllers.

A feed never changes controller items. It listens to every controller it was
built from and recomputes its posts whenever one of their item lists
changes, then re-emits the change on its own signal.
"""
from __future__ import annotations

import asyncio
from enum import Enum
from functools import reduce
from typing import Callable, Iterable, Optional, Sequence

from sync.posts.controller import ListController
from sync.posts.merge import merged_with, newer_first, same_id
from sync.posts.models import Post, ResourceKind
from sync.posts.observable import Observable


class DisplayOption(Enum):
    ALL_POSTS = "All Posts"
    ANNOUNCEMENTS = "Announcements"
    COURSE_WORK = "Course Works"
    COURSE_MATERIAL = "Course Materials"

    @property
    def kind(self) -> Optional[ResourceKind]:
        return {
            DisplayOption.ALL_POSTS: None,
            DisplayOption.ANNOUNCEMENTS: ResourceKind.ANNOUNCEMENTS,
            DisplayOption.COURSE_WORK: ResourceKind.COURSE_WORKS,
            DisplayOption.COURSE_MATERIAL: ResourceKind.COURSE_MATERIALS,
        }[self]


def _posts_for(controllers: Sequence[ListController], kind: ResourceKind) -> list[Post]:
    streams = ([Post(kind, record) for record in c.items] for c in controllers)
    return reduce(
        lambda merged, stream: merged_with(merged, stream, is_same=same_id, is_before=newer_first),
        streams,
        [],
    )


class PostFeed:
    def __init__(
        self,
        announcements: Iterable[ListController] = (),
        course_works: Iterable[ListController] = (),
        course_materials: Iterable[ListController] = (),
    ):
        self._by_kind: dict[ResourceKind, tuple[ListController, ...]] = {
            ResourceKind.ANNOUNCEMENTS: tuple(announcements),
            ResourceKind.COURSE_WORKS: tuple(course_works),
            ResourceKind.COURSE_MATERIALS: tuple(course_materials),
        }
        for kind, controllers in self._by_kind.items():
            for controller in controllers:
                if controller.kind is not kind:
                    raise ValueError(
                        f"{controller!r} cannot feed the {kind.value} stream"
                    )

        self.changed = Observable()
        self._closed = False
        self._post_data: tuple[Post, ...] = ()
        self._unsubscribers: list[Callable[[], None]] = [
            controller.changed.subscribe(self._on_controller_changed)
            for controller in self.controllers
        ]
        self._recompute()

    @property
    def controllers(self) -> tuple[ListController, ...]:
        return tuple(c for group in self._by_kind.values() for c in group)

    def controllers_for(self, kind: ResourceKind) -> tuple[ListController, ...]:
        return self._by_kind[kind]

    # ── Derived state ────────────────────────────────────────

    @property
    def post_data(self) -> tuple[Post, ...]:
        return self._post_data

    @property
    def loading(self) -> bool:
        return any(c.loading for c in self.controllers)

    @property
    def has_next_page(self) -> bool:
        return any(c.has_next_page for c in self.controllers)

    @property
    def is_empty(self) -> bool:
        return not self._post_data

    def posts(self, display_option: DisplayOption = DisplayOption.ALL_POSTS) -> tuple[Post, ...]:
        kind = display_option.kind
        if kind is None:
            return self._post_data
        return tuple(post for post in self._post_data if post.kind is kind)

    def _recompute(self) -> None:
        announcements = _posts_for(self._by_kind[ResourceKind.ANNOUNCEMENTS], ResourceKind.ANNOUNCEMENTS)
        course_works = _posts_for(self._by_kind[ResourceKind.COURSE_WORKS], ResourceKind.COURSE_WORKS)
        course_materials = _posts_for(
            self._by_kind[ResourceKind.COURSE_MATERIALS], ResourceKind.COURSE_MATERIALS
        )
        merged = merged_with(announcements, course_works, is_same=same_id, is_before=newer_first)
        merged = merged_with(merged, course_materials, is_same=same_id, is_before=newer_first)
        self._post_data = tuple(merged)

    def _on_controller_changed(self, controller: ListController, field: str) -> None:
        if field == "items":
            self._recompute()
        self.changed.emit(self, field)

    # ── Actions fanned out to every controller ───────────────

    def load_list(self, bypass_cache: bool = False, only_cache: bool = False) -> list[asyncio.Task]:
        tasks = []
        for controller in self.controllers:
            task = controller.load_list(bypass_cache=bypass_cache, only_cache=only_cache)
            if task is not None:
                tasks.append(task)
        return tasks

    async def refresh_list(self, fetch_all_pages: bool = False) -> bool:
        results = await asyncio.gather(
            *(c.refresh_list(fetch_all_pages=fetch_all_pages) for c in self.controllers)
        )
        return all(results)

    async def load_next_page(self, fetch_all_pages: bool = False) -> bool:
        results = await asyncio.gather(
            *(c.load_next_page(fetch_all_pages=fetch_all_pages) for c in self.controllers if c.has_next_page)
        )
        return all(results)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._closed = True
