import io
import shutil
from pathlib import Path
from typing import Callable, Iterator, List, Optional

import pytest
from rich.console import Console

from rust_inline.compile import BuildCache, HostDescriptor, RustBuilder
from rust_inline.config import RustInlineConfig


def _cargo_available() -> bool:
    """Check if cargo can be found on PATH.

    Returns
    -------
    bool
        True if a cargo executable is on PATH, False otherwise.
    """
    return shutil.which("cargo") is not None


def pytest_collection_modifyitems(config: pytest.Config, items: List[pytest.Item]) -> None:
    """Modify pytest collection to skip tests that require cargo when it is not installed."""
    if _cargo_available():
        return

    skip_cargo = pytest.mark.skip(reason="cargo not available on PATH, skip test")
    for item in items:
        if any(item.iter_markers(name="requires_cargo")):
            item.add_marker(skip_cargo)


class FakeCargoProcess:
    """Replays canned cargo output."""

    def __init__(self, lines: List[str], returncode: int, stderr: Optional[str] = None) -> None:
        self._lines = lines
        self._returncode = returncode
        self.stderr = stderr

    def __iter__(self) -> Iterator[str]:
        return iter(self._lines)

    def wait(self) -> int:
        return self._returncode


class FakeCargoInvoker:
    """Records every cargo invocation instead of running it.

    Set ``lines``, ``returncode`` and ``stderr`` to script the next builds. ``on_start`` is called
    with the command line, e.g. to create the artifact cargo would have written.
    """

    def __init__(self) -> None:
        self.calls: List[dict] = []
        self.lines: List[str] = []
        self.returncode = 0
        self.stderr: Optional[str] = None
        self.on_start: Optional[Callable[[List[str]], None]] = None

    def start(self, command, env=None, quiet=False) -> FakeCargoProcess:
        self.calls.append({"command": list(command), "env": env, "quiet": quiet})
        if self.on_start is not None:
            self.on_start(list(command))
        return FakeCargoProcess(list(self.lines), self.returncode, self.stderr)


@pytest.fixture(autouse=True)
def _reset_library_counter(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start every test with anonymous library names at ``rust_inline1``."""
    monkeypatch.setattr(RustBuilder, "_count", 1)


@pytest.fixture
def fake_invoker() -> FakeCargoInvoker:
    return FakeCargoInvoker()


@pytest.fixture
def console() -> Console:
    """A non-terminal console recording everything printed to it."""
    return Console(file=io.StringIO(), force_terminal=False, width=200)


@pytest.fixture
def linux_host() -> HostDescriptor:
    return HostDescriptor(system="Linux", machine="x86_64", runtime_version=(3, 12))


@pytest.fixture
def tmp_build_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Use an isolated directory as build root.

    This fixture sets RUST_INLINE_BUILD_ROOT so that builders created from the environment put
    their build directories under the test's temporary directory.
    """
    root = tmp_path / "builds"
    monkeypatch.setenv("RUST_INLINE_BUILD_ROOT", str(root))
    return root


@pytest.fixture
def loaded_paths(monkeypatch: pytest.MonkeyPatch) -> List[Path]:
    """Replace the dynamic loader and collect the paths it is asked to load."""
    paths: List[Path] = []

    def fake_load(path: Path) -> object:
        paths.append(path)
        return object()

    monkeypatch.setattr("rust_inline.compile.builder.load_library", fake_load)
    return paths


@pytest.fixture
def builder(
    tmp_build_root: Path,
    fake_invoker: FakeCargoInvoker,
    console: Console,
    linux_host: HostDescriptor,
) -> RustBuilder:
    """A builder driving the fake invoker on a simulated Linux host."""
    return RustBuilder(
        cache=BuildCache(tmp_build_root),
        invoker=fake_invoker,
        console=console,
        host=linux_host,
        config=RustInlineConfig(),
    )
