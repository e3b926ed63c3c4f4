"""Handle to a compiled and loaded Rust library."""

from __future__ import annotations

import ctypes
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from rust_inline.data import BuildProfile


class LibraryMetadata(BaseModel):
    """Metadata about a loaded library and the build that produced it."""

    name: str
    """Crate name, which is also the library file stem."""
    path: Path
    """Location of the loaded file."""
    profile: BuildProfile
    """Cargo profile used for the build."""
    target: Optional[str] = None
    """Target triple, or None for the host default."""
    module_name: str
    """Module name handed to the collaborators."""
    warnings: List[str] = Field(default_factory=list)
    """Compiler warnings emitted during the build."""


class LoadedLibrary:
    """A loaded shared library together with how it was built.

    Attribute access is forwarded to the underlying ``ctypes.CDLL``, so exported functions are
    available directly (``lib.add``) and can be given ``argtypes``/``restype`` as usual.
    """

    metadata: LibraryMetadata
    """Metadata about the build."""

    _handle: ctypes.CDLL
    """The ctypes handle."""

    def __init__(self, handle: ctypes.CDLL, metadata: LibraryMetadata) -> None:
        self._handle = handle
        self.metadata = metadata

    @property
    def handle(self) -> ctypes.CDLL:
        """The underlying ``ctypes.CDLL``."""
        return self._handle

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def path(self) -> Path:
        return self.metadata.path

    def __getattr__(self, symbol: str) -> Any:
        if symbol.startswith("_"):
            raise AttributeError(symbol)
        return getattr(self._handle, symbol)

    def __repr__(self) -> str:
        return f"LoadedLibrary(name={self.metadata.name!r}, path={str(self.metadata.path)!r})"
