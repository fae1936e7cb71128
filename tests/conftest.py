import pytest

from sync.posts import DiskCache, SyncSession

from factories import FakeSource


@pytest.fixture
def cache(tmp_path) -> DiskCache:
    return DiskCache(tmp_path / "cache")


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def session(cache, source) -> SyncSession:
    return SyncSession(cache, source)
