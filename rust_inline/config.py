"""Configuration defaults for rust_inline, overridable through environment variables."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, Field

from rust_inline.data import DEFAULT_INTEROP_DEPS, DependencySpec

ENV_TOOLCHAIN = "RUST_INLINE_TOOLCHAIN"
ENV_CARGO = "RUST_INLINE_CARGO"
ENV_PATCH_CRATES_IO = "RUST_INLINE_PATCH_CRATES_IO"
ENV_INTEROP_DEPS = "RUST_INLINE_INTEROP_DEPS"
ENV_USE_COMPANION_TOOLCHAIN = "RUST_INLINE_USE_COMPANION_TOOLCHAIN"
ENV_BUILD_ROOT = "RUST_INLINE_BUILD_ROOT"

_FALSE_VALUES = {"0", "false", "no", "off"}


class RustInlineConfig(BaseModel):
    """Session-wide defaults applied to build requests that do not set them explicitly."""

    toolchain: Optional[str] = None
    """Default Rust toolchain channel. ``None`` uses cargo's default."""
    cargo: str = "cargo"
    """The cargo executable."""
    patch_crates_io: Optional[Dict[str, DependencySpec]] = None
    """Default ``[patch.crates-io]`` entries."""
    interop_deps: Dict[str, DependencySpec] = Field(
        default_factory=lambda: dict(DEFAULT_INTEROP_DEPS)
    )
    """Default mandatory base dependencies."""
    use_companion_toolchain: bool = True
    """Whether the MinGW-w64 toolchain is added to ``PATH`` on Windows."""
    build_root: Optional[Path] = None
    """Parent directory for temporary build directories. ``None`` uses the system temp dir."""

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RustInlineConfig":
        """Build a config from ``RUST_INLINE_*`` environment variables.

        Parameters
        ----------
        environ : Optional[Mapping[str, str]]
            The environment to read. Defaults to ``os.environ``.

        Returns
        -------
        RustInlineConfig
            The config, with unset variables left at their defaults.

        Raises
        ------
        ValueError
            If a JSON-valued variable does not hold a JSON object.
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, object] = {}
        if environ.get(ENV_TOOLCHAIN):
            values["toolchain"] = environ[ENV_TOOLCHAIN]
        if environ.get(ENV_CARGO):
            values["cargo"] = environ[ENV_CARGO]
        if environ.get(ENV_PATCH_CRATES_IO):
            values["patch_crates_io"] = _load_json_table(ENV_PATCH_CRATES_IO, environ)
        if environ.get(ENV_INTEROP_DEPS):
            values["interop_deps"] = _load_json_table(ENV_INTEROP_DEPS, environ)
        if environ.get(ENV_USE_COMPANION_TOOLCHAIN):
            flag = environ[ENV_USE_COMPANION_TOOLCHAIN].strip().lower()
            values["use_companion_toolchain"] = flag not in _FALSE_VALUES
        if environ.get(ENV_BUILD_ROOT):
            values["build_root"] = Path(environ[ENV_BUILD_ROOT])
        return cls(**values)


def _load_json_table(name: str, environ: Mapping[str, str]) -> Dict[str, DependencySpec]:
    try:
        value = json.loads(environ[name])
    except json.JSONDecodeError as e:
        raise ValueError(f"{name} must hold a JSON object: {e}") from e
    if not isinstance(value, dict):
        raise ValueError(f"{name} must hold a JSON object, got {type(value).__name__}")
    return value
