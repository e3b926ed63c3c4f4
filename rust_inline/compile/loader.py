"""Locating and loading the compiled shared library."""

from __future__ import annotations

import ctypes
import logging
import os
import platform
from pathlib import Path
from typing import Optional

from rust_inline.data import BuildProfile, ToolchainPlan

from .errors import ArtifactError

logger = logging.getLogger(__name__)


def dynlib_name(libname: str, system: Optional[str] = None) -> str:
    """Return the library file stem cargo produces: ``lib`` prefixed except on Windows."""
    system = system or platform.system()
    return libname if system == "Windows" else f"lib{libname}"


def dynlib_ext(system: Optional[str] = None) -> str:
    """Return the shared library extension for a platform."""
    system = system or platform.system()
    if system == "Darwin":
        return ".dylib"
    if system == "Windows":
        return ".dll"
    return ".so"


def artifact_path(
    build_dir: Path,
    libname: str,
    profile: BuildProfile,
    plan: ToolchainPlan,
    system: Optional[str] = None,
) -> Path:
    """Compute where cargo writes the library.

    Parameters
    ----------
    build_dir : Path
        Root of the build directory.
    libname : str
        Crate name from the manifest.
    profile : BuildProfile
        Cargo profile used for the build.
    plan : ToolchainPlan
        Plan used for the build; its target adds a subdirectory.
    system : Optional[str]
        Platform name. Defaults to the host's.

    Returns
    -------
    Path
        ``<build_dir>/target[/<triple>]/<profile folder>/<prefix><libname><ext>``.
    """
    filename = dynlib_name(libname, system) + dynlib_ext(system)
    return plan.output_dir(build_dir, profile) / filename


def load_library(path: Path) -> ctypes.CDLL:
    """Load a shared library into the process.

    Parameters
    ----------
    path : Path
        Library file.

    Returns
    -------
    ctypes.CDLL
        Handle to the library.

    Raises
    ------
    ArtifactError
        If the file does not exist or the dynamic loader rejects it.
    """
    if not path.is_file():
        raise ArtifactError(f"Compiled library not found at {path}")
    mode = ctypes.DEFAULT_MODE
    if os.name == "posix":
        mode = os.RTLD_NOW | os.RTLD_LOCAL
    try:
        handle = ctypes.CDLL(str(path), mode=mode)
    except OSError as e:
        raise ArtifactError(f"Failed to load compiled library {path}: {e}") from e
    logger.debug("Loaded %s", path)
    return handle
