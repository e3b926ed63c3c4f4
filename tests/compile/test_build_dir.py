import shutil
import sys
from pathlib import Path

import pytest

from rust_inline.compile import BuildCache


def test_acquire_creates_layout(tmp_path: Path):
    cache = BuildCache(tmp_path)
    path = cache.acquire()

    assert path.is_absolute()
    assert path == path.resolve()
    assert path.parent == tmp_path.resolve()
    for name in ("src", "target", ".cargo"):
        assert (path / name).is_dir()
    assert cache.path == path


def test_cached_acquire_reuses_directory(tmp_path: Path):
    cache = BuildCache(tmp_path)
    first = cache.acquire()
    (first / "target" / "marker").write_text("kept")

    second = cache.acquire(cache=True)

    assert second == first
    assert (second / "target" / "marker").read_text() == "kept"


def test_uncached_acquire_replaces_directory(tmp_path: Path):
    cache = BuildCache(tmp_path)
    first = cache.acquire()

    second = cache.acquire(cache=False)

    assert second != first
    assert not first.exists()
    assert second.is_dir()


@pytest.mark.parametrize("removed", ["", ".cargo", "src"])
def test_cached_acquire_replaces_incomplete_directory(tmp_path: Path, removed: str):
    cache = BuildCache(tmp_path)
    first = cache.acquire()
    shutil.rmtree(first / removed)

    second = cache.acquire(cache=True)

    assert second != first
    assert not first.exists()
    for name in BuildCache.SUBDIRS:
        assert (second / name).is_dir()


def test_release(tmp_path: Path):
    cache = BuildCache(tmp_path)
    path = cache.acquire()

    cache.release()

    assert cache.path is None
    assert not path.exists()
    # Releasing again is a no-op.
    cache.release()
    assert cache.path is None


def test_root_created_on_demand(tmp_path: Path):
    root = tmp_path / "nested" / "builds"
    path = BuildCache(root).acquire()
    assert path.parent == root.resolve()


def test_default_root_is_temp_dir():
    cache = BuildCache()
    try:
        path = cache.acquire()
        assert path.name.startswith("rust_inline_")
    finally:
        cache.release()


if __name__ == "__main__":
    pytest.main(sys.argv)
