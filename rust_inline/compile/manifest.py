"""Generation of ``Cargo.toml`` and ``.cargo/config.toml`` for a build directory."""

from __future__ import annotations

from typing import Any, ClassVar, Dict, List, Mapping, Optional

import tomli_w
from pydantic import Field

from rust_inline.data import BaseModelWithDocstrings, DependencySpec

from .errors import ConfigurationError


class Manifest(BaseModelWithDocstrings):
    """In-memory ``Cargo.toml`` for a single-crate ``cdylib`` build."""

    PERF_PROFILE: ClassVar[Dict[str, Any]] = {
        "inherits": "release",
        "lto": "thin",
        "opt-level": 3,
        "panic": "abort",
        "codegen-units": 1,
    }
    """The ``[profile.perf]`` table. Always emitted so ``--profile=perf`` works on demand."""

    name: str
    """Package (and library) name."""
    version: str = "0.0.1"
    """Package version."""
    edition: str = "2021"
    """Rust edition."""
    resolver: str = "2"
    """Cargo feature resolver version."""
    crate_type: List[str] = Field(default_factory=lambda: ["cdylib"])
    """Library crate types."""
    dependencies: Dict[str, DependencySpec] = Field(default_factory=dict)
    """The ``[dependencies]`` table."""
    patch_crates_io: Dict[str, DependencySpec] = Field(default_factory=dict)
    """The ``[patch.crates-io]`` table. Omitted when empty."""
    features: Dict[str, List[str]] = Field(default_factory=dict)
    """The ``[features]`` table. Omitted when empty."""

    def to_document(self) -> Dict[str, Any]:
        """Return the manifest as a TOML document tree."""
        document: Dict[str, Any] = {
            "package": {
                "name": self.name,
                "version": self.version,
                "edition": self.edition,
                "resolver": self.resolver,
            },
            "lib": {"crate-type": list(self.crate_type)},
            "dependencies": dict(self.dependencies),
        }
        if self.patch_crates_io:
            document["patch"] = {"crates-io": dict(self.patch_crates_io)}
        if self.features:
            document["features"] = {k: list(v) for k, v in self.features.items()}
        document["profile"] = {"perf": dict(self.PERF_PROFILE)}
        return document

    def to_toml(self) -> str:
        """Serialize the manifest to ``Cargo.toml`` text."""
        return tomli_w.dumps(self.to_document())


def _check_specs(table: Mapping[str, Optional[DependencySpec]], what: str) -> None:
    for name, spec in table.items():
        if spec is None:
            raise ConfigurationError(f"Invalid argument: {what} '{name}' cannot be None.")


def merge_dependencies(
    interop_deps: Optional[Mapping[str, Optional[DependencySpec]]],
    dependencies: Optional[Mapping[str, Optional[DependencySpec]]] = None,
) -> Dict[str, DependencySpec]:
    """Merge the mandatory interop dependencies with user dependencies.

    Parameters
    ----------
    interop_deps : Optional[Mapping[str, Optional[DependencySpec]]]
        The base dependencies. Must not be None.
    dependencies : Optional[Mapping[str, Optional[DependencySpec]]]
        User-declared dependencies. They take precedence on key collision.

    Returns
    -------
    Dict[str, DependencySpec]
        The merged ``[dependencies]`` table, interop entries first.

    Raises
    ------
    ConfigurationError
        If ``interop_deps`` or any dependency specification is None.
    """
    if interop_deps is None:
        raise ConfigurationError("Invalid argument: `interop_deps` cannot be None.")
    _check_specs(interop_deps, "interop dependency")
    _check_specs(dependencies or {}, "dependency")
    merged: Dict[str, DependencySpec] = dict(interop_deps)
    merged.update(dependencies or {})
    return merged


def generate_manifest(
    libname: str,
    dependencies: Optional[Mapping[str, Optional[DependencySpec]]] = None,
    patch_crates_io: Optional[Mapping[str, Optional[DependencySpec]]] = None,
    interop_deps: Optional[Mapping[str, Optional[DependencySpec]]] = None,
    features: Optional[Mapping[str, List[str]]] = None,
) -> Manifest:
    """Build the manifest for a library.

    Dependency specifications are not validated beyond being non-None; malformed entries are
    reported by cargo.

    Parameters
    ----------
    libname : str
        Package and library name. Must be a valid crate identifier.
    dependencies : Optional[Mapping[str, Optional[DependencySpec]]]
        User-declared dependencies.
    patch_crates_io : Optional[Mapping[str, Optional[DependencySpec]]]
        ``[patch.crates-io]`` entries.
    interop_deps : Optional[Mapping[str, Optional[DependencySpec]]]
        Mandatory base dependencies.
    features : Optional[Mapping[str, List[str]]]
        ``[features]`` entries.

    Returns
    -------
    Manifest
        The manifest document.

    Raises
    ------
    ConfigurationError
        If a dependency specification is None.
    """
    merged = merge_dependencies(interop_deps, dependencies)
    _check_specs(patch_crates_io or {}, "patch")
    return Manifest(
        name=libname,
        dependencies=merged,
        patch_crates_io=dict(patch_crates_io or {}),
        features={k: list(v) for k, v in (features or {}).items()},
    )


def generate_cargo_config() -> str:
    """Return the ``.cargo/config.toml`` text used for every build."""
    return tomli_w.dumps(
        {"build": {"rustflags": ["-C", "target-cpu=native"], "target-dir": "target"}}
    )
