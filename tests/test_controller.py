import asyncio

import pytest

from sync.posts import ListController, ResourceKind

from factories import announcement

KIND = ResourceKind.ANNOUNCEMENTS


def make_controller(cache, source, course_id="A"):
    return ListController(course_id, KIND, cache, source)


def ids(controller):
    return [r.id for r in controller.items]


class TestLoadList:
    def test_cache_first_load_needs_no_network(self, cache, source):
        cache.write(KIND, "A", [announcement("a1", 1), announcement("a2", 2)])
        controller = make_controller(cache, source)

        task = controller.load_list()

        assert task is None
        assert ids(controller) == ["a2", "a1"]
        assert controller.loading is False
        assert source.calls == []

    def test_only_cache_never_fetches(self, cache, source):
        controller = make_controller(cache, source)
        assert controller.load_list(only_cache=True) is None
        assert controller.items == ()
        assert source.calls == []

    @pytest.mark.asyncio
    async def test_empty_cache_triggers_refresh(self, cache, source):
        source.add("A", KIND, None, [announcement("a1", 1)], next_page_token="P1")
        controller = make_controller(cache, source)

        task = controller.load_list()
        assert task is not None
        assert controller.loading is True
        assert await task is True

        assert ids(controller) == ["a1"]
        assert controller.next_page_token == "P1"
        assert controller.loading is False
        assert [r.id for r in cache.read(KIND, "A")] == ["a1"]

    @pytest.mark.asyncio
    async def test_bypass_cache_shows_cache_then_refreshes(self, cache, source):
        cache.write(KIND, "A", [announcement("old", 1, text="cached")])
        source.add("A", KIND, None, [announcement("old", 1, text="fresh"), announcement("new", 5)])
        controller = make_controller(cache, source)

        task = controller.load_list(bypass_cache=True)
        assert ids(controller) == ["old"]
        assert controller.items[0].text == "cached"

        await task
        assert ids(controller) == ["new", "old"]
        assert controller.items[0].id == "new"
        assert controller.items[1].text == "fresh"


class TestRefreshList:
    @pytest.mark.asyncio
    async def test_fetch_all_pages_converges(self, cache, source):
        source.add("A", KIND, None, [announcement("a1", 1), announcement("a4", 4)], next_page_token="P1")
        source.add("A", KIND, "P1", [announcement("a3", 3)], next_page_token="P2")
        source.add("A", KIND, "P2", [announcement("a5", 5), announcement("a2", 2)], next_page_token="P3")
        source.add("A", KIND, "P3", [announcement("a0", 0)], next_page_token=None)
        controller = make_controller(cache, source)

        assert await controller.refresh_list(fetch_all_pages=True) is True

        assert ids(controller) == ["a5", "a4", "a3", "a2", "a1", "a0"]
        assert controller.next_page_token is None
        assert controller.loading is False
        assert [call[2] for call in source.calls] == [None, "P1", "P2", "P3"]
        assert len(cache.read(KIND, "A")) == 6

    @pytest.mark.asyncio
    async def test_single_page_keeps_token(self, cache, source):
        source.add("A", KIND, None, [announcement("a1", 1)], next_page_token="P1")
        controller = make_controller(cache, source)

        await controller.refresh_list()

        assert controller.next_page_token == "P1"
        assert controller.has_next_page
        assert len(source.calls) == 1

    @pytest.mark.asyncio
    async def test_failure_on_later_page_keeps_earlier_pages(self, cache, source, caplog):
        source.add("A", KIND, None, [announcement("a1", 1)], next_page_token="P1")
        source.fail("A", KIND, "P1", RuntimeError("network down"))
        source.add("A", KIND, "P2", [announcement("a3", 3)])
        controller = make_controller(cache, source)

        result = await controller.refresh_list(fetch_all_pages=True)

        assert result is False
        assert ids(controller) == ["a1"]
        assert controller.loading is False
        assert controller.next_page_token is None
        assert isinstance(controller.last_error, RuntimeError)
        assert "network down" in caplog.text
        assert cache.read(KIND, "A") == []

    @pytest.mark.asyncio
    async def test_failure_leaves_token_unchanged(self, cache, source):
        source.add("A", KIND, None, [announcement("a1", 1)], next_page_token="P1")
        controller = make_controller(cache, source)
        await controller.refresh_list()

        source.fail("A", KIND, None)
        assert await controller.refresh_list() is False
        assert controller.next_page_token == "P1"
        assert ids(controller) == ["a1"]

    @pytest.mark.asyncio
    async def test_success_clears_last_error(self, cache, source):
        source.fail("A", KIND, None)
        controller = make_controller(cache, source)
        await controller.refresh_list()
        assert controller.last_error is not None

        source.add("A", KIND, None, [announcement("a1", 1)])
        await controller.refresh_list()
        assert controller.last_error is None


class TestLoadNextPage:
    @pytest.mark.asyncio
    async def test_loads_one_page_from_stored_token(self, cache, source):
        source.add("A", KIND, None, [announcement("a3", 3)], next_page_token="P1")
        source.add("A", KIND, "P1", [announcement("a2", 2)], next_page_token="P2")
        source.add("A", KIND, "P2", [announcement("a1", 1)])
        controller = make_controller(cache, source)

        await controller.refresh_list()
        await controller.load_next_page()

        assert ids(controller) == ["a3", "a2"]
        assert controller.next_page_token == "P2"

        await controller.load_next_page()
        assert ids(controller) == ["a3", "a2", "a1"]
        assert controller.next_page_token is None

    @pytest.mark.asyncio
    async def test_without_token_does_nothing(self, cache, source):
        controller = make_controller(cache, source)
        assert await controller.load_next_page() is True
        assert source.calls == []
        assert controller.loading is False


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_overlapping_refreshes_are_serialized(self, cache, source):
        source.add("A", KIND, None, [announcement("a1", 1)], next_page_token="P1")
        gate = source.gate("A", KIND, None)
        controller = make_controller(cache, source)

        first = asyncio.ensure_future(controller.refresh_list())
        second = asyncio.ensure_future(controller.refresh_list())
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        assert controller.loading is True
        assert len(source.calls) == 1

        gate.set()
        await first
        assert controller.loading is True

        await second
        assert controller.loading is False
        assert len(source.calls) == 2
        assert ids(controller) == ["a1"]

    @pytest.mark.asyncio
    async def test_cached_load_keeps_loading_during_fetch(self, cache, source):
        source.add("A", KIND, None, [announcement("a2", 2)])
        gate = source.gate("A", KIND, None)
        controller = make_controller(cache, source)

        pending = asyncio.ensure_future(controller.refresh_list())
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        cache.write(KIND, "A", [announcement("a1", 1)])

        assert controller.load_list() is None
        assert ids(controller) == ["a1"]
        assert controller.loading is True

        gate.set()
        await pending
        assert controller.loading is False
        assert ids(controller) == ["a2", "a1"]

    @pytest.mark.asyncio
    async def test_controllers_fetch_independently(self, cache, source):
        source.add("A", KIND, None, [announcement("a1", 1)])
        source.add("B", KIND, None, [announcement("b1", 1, course_id="B")])
        gate = source.gate("B", KIND, None)
        a = make_controller(cache, source, "A")
        b = make_controller(cache, source, "B")

        b_task = asyncio.ensure_future(b.refresh_list())
        await a.refresh_list()

        assert ids(a) == ["a1"]
        assert b.items == ()
        assert b.loading is True

        gate.set()
        await b_task
        assert ids(b) == ["b1"]


class TestNotifications:
    @pytest.mark.asyncio
    async def test_emits_field_changes(self, cache, source):
        source.add("A", KIND, None, [announcement("a1", 1)], next_page_token="P1")
        controller = make_controller(cache, source)
        fields = []
        controller.changed.subscribe(lambda c, field: fields.append(field))

        await controller.refresh_list()

        assert fields == ["loading", "items", "next_page_token", "loading"]

    def test_items_are_read_only(self, cache, source):
        controller = make_controller(cache, source)
        assert isinstance(controller.items, tuple)


def test_clear_cache_keeps_memory(cache, source):
    cache.write(KIND, "A", [announcement("a1", 1)])
    controller = make_controller(cache, source)
    controller.load_list()

    assert controller.clear_cache() is True
    assert cache.read(KIND, "A") == []
    assert ids(controller) == ["a1"]
