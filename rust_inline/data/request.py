"""Strong-typed data definitions for build requests."""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ConfigDict, Field, model_validator

from .utils import BaseModelWithDocstrings, DependencySpec, NonEmptyString


class BuildProfile(str, Enum):
    """Cargo build profiles accepted by the builder."""

    DEV = "dev"
    """Fast compilation, unoptimized code. Output goes to the ``debug`` folder."""
    RELEASE = "release"
    """Optimized build."""
    PERF = "perf"
    """Release build with thin LTO, ``opt-level = 3``, ``panic = "abort"`` and a single codegen
    unit. Always declared in the generated manifest."""


DEFAULT_INTEROP_DEPS: Dict[str, DependencySpec] = {"pyo3": "*"}
"""Mandatory base dependency added to every generated manifest unless overridden."""

DEFAULT_MODULE_NAME = "rust_inline"


class BuildRequest(BaseModelWithDocstrings):
    """A single request to compile Rust source into a shared library.

    Exactly one of ``code`` and ``file`` must be given. The request is frozen once constructed.
    """

    model_config = ConfigDict(use_attribute_docstrings=True, frozen=True)

    code: Optional[str] = None
    """Raw Rust source written to ``src/lib.rs``."""
    file: Optional[Path] = None
    """Path to a Rust file copied verbatim to ``src/lib.rs``. The library is named after it."""
    module_name: NonEmptyString = DEFAULT_MODULE_NAME
    """Name of the module declared in the Rust source, passed to the collaborators."""
    dependencies: Dict[str, Optional[DependencySpec]] = Field(default_factory=dict)
    """Extra ``[dependencies]`` entries. Entries override ``interop_deps`` on key collision."""
    patch_crates_io: Optional[Dict[str, Optional[DependencySpec]]] = None
    """Entries of the ``[patch.crates-io]`` table."""
    profile: BuildProfile = BuildProfile.DEV
    """Cargo profile used for the build."""
    toolchain: Optional[str] = None
    """Rust toolchain channel (e.g. ``"nightly"``). ``None`` uses the default toolchain."""
    features: Dict[str, List[str]] = Field(default_factory=dict)
    """Entries of the ``[features]`` table."""
    interop_deps: Optional[Dict[str, Optional[DependencySpec]]] = Field(
        default_factory=lambda: dict(DEFAULT_INTEROP_DEPS)
    )
    """Mandatory base dependencies. ``None`` is rejected when the manifest is generated."""
    target: Optional[str] = None
    """Explicit target triple. Ignored on Windows, where the triple is always resolved."""
    use_interop_prelude: bool = True
    """Whether ``use pyo3::prelude::*;`` is prepended to ``code``. Ignored for ``file``."""
    generate_module_macro: bool = True
    """Whether the module macro collaborator output is appended to ``code``. Ignored for
    ``file``."""
    cache_build: bool = True
    """Whether the build directory is kept and reused across calls."""
    quiet: bool = False
    """Suppress compiler warnings and cargo's stderr."""
    use_companion_toolchain: bool = True
    """On Windows, add the MinGW-w64 toolchain to ``PATH`` for the build."""

    @model_validator(mode="after")
    def _validate_source(self) -> "BuildRequest":
        """Validate that exactly one source is given.

        Raises
        ------
        ValueError
            If both or neither of ``code`` and ``file`` are set.
        """
        if (self.code is None) == (self.file is None):
            raise ValueError("Exactly one of 'code' and 'file' must be provided")
        return self

    @property
    def is_anonymous(self) -> bool:
        """True for in-memory sources, which get a counter-based library name."""
        return self.code is not None
