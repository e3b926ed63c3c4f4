"""Resolution of the Rust toolchain and target triple for the current host."""

from __future__ import annotations

import os
import platform
import shutil
import sys
import sysconfig
from dataclasses import dataclass
from pathlib import PureWindowsPath
from typing import Callable, Dict, Mapping, Optional, Tuple

from rust_inline.data import ToolchainPlan

from .errors import ConfigurationError

WINDOWS_TARGETS: Dict[str, str] = {
    "x86_64": "x86_64-pc-windows-gnu",
    "amd64": "x86_64-pc-windows-gnu",
    "i386": "i686-pc-windows-gnu",
    "i686": "i686-pc-windows-gnu",
    "x86": "i686-pc-windows-gnu",
}
"""Target triples used on Windows, keyed by lower-cased machine name."""

COMPANION_ROOT_ENV = "MSYS2_ROOT"
"""Environment variable pointing at the MinGW-w64 (MSYS2) installation root."""

COMPANION_DEFAULT_ROOT = r"C:\msys64"
"""Installation root used when ``MSYS2_ROOT`` is not set."""

SUPPORTED_RUNTIME_MAJOR = 3


@dataclass(frozen=True)
class HostDescriptor:
    """The facts about the host that determine the toolchain plan."""

    system: str
    """Operating system name as reported by ``platform.system()``."""
    machine: str
    """CPU architecture as reported by ``platform.machine()``."""
    runtime_version: Tuple[int, int] = (3, 0)
    """Major and minor version of the host interpreter."""
    crt: Optional[str] = None
    """C runtime flavor on Windows: ``"ucrt"`` or ``"msvcrt"``. None elsewhere."""

    @property
    def is_windows(self) -> bool:
        return self.system == "Windows"

    @classmethod
    def current(cls) -> "HostDescriptor":
        """Describe the running interpreter."""
        system = platform.system()
        crt = None
        if system == "Windows":
            # MSYS2 builds report e.g. "mingw_x86_64_msvcrt"; MSVC builds link the UCRT.
            crt = "msvcrt" if "msvcrt" in sysconfig.get_platform() else "ucrt"
        return cls(
            system=system,
            machine=platform.machine(),
            runtime_version=(sys.version_info.major, sys.version_info.minor),
            crt=crt,
        )


def resolve_target(host: HostDescriptor, target: Optional[str] = None) -> Optional[str]:
    """Return the target triple for the host.

    Parameters
    ----------
    host : HostDescriptor
        The host to resolve for.
    target : Optional[str]
        Explicit triple, honored on non-Windows hosts only.

    Returns
    -------
    Optional[str]
        The GNU triple on Windows, otherwise ``target`` (None meaning the host default).

    Raises
    ------
    ConfigurationError
        If the host is Windows and its architecture is not known.
    """
    if not host.is_windows:
        return target
    triple = WINDOWS_TARGETS.get(host.machine.lower())
    if triple is None:
        raise ConfigurationError(f"Unknown Windows architecture: '{host.machine}'")
    return triple


def _find_companion_root(
    environ: Mapping[str, str],
    isdir: Callable[[str], bool],
    which: Callable[[str], Optional[str]],
) -> Optional[str]:
    root = environ.get(COMPANION_ROOT_ENV)
    if root:
        if not isdir(root):
            raise ConfigurationError(
                f"{COMPANION_ROOT_ENV} points to a missing MinGW-w64 installation: {root}"
            )
        return root
    if isdir(COMPANION_DEFAULT_ROOT):
        return COMPANION_DEFAULT_ROOT
    gcc = which("gcc")
    if gcc is not None:
        # <root>/<environment>/bin/gcc.exe
        return str(PureWindowsPath(gcc).parent.parent.parent)
    return None


def resolve_toolchain_plan(
    host: HostDescriptor,
    toolchain: Optional[str] = None,
    target: Optional[str] = None,
    use_companion_toolchain: bool = True,
    environ: Optional[Mapping[str, str]] = None,
    isdir: Optional[Callable[[str], bool]] = None,
    which: Optional[Callable[[str], Optional[str]]] = None,
) -> ToolchainPlan:
    """Compute the toolchain plan for a build.

    On Windows the crate is built for the GNU target, which needs the MinGW-w64 linker. When
    ``use_companion_toolchain`` is set its ``bin`` directory is located and appended to
    ``PATH`` for the build: ``ucrt64`` for UCRT hosts, ``mingw64``/``mingw32`` otherwise.

    Parameters
    ----------
    host : HostDescriptor
        The host to resolve for.
    toolchain : Optional[str]
        Toolchain channel, passed through unchanged.
    target : Optional[str]
        Explicit target triple for non-Windows hosts.
    use_companion_toolchain : bool
        Whether to locate the MinGW-w64 toolchain on Windows.
    environ : Optional[Mapping[str, str]]
        Environment to read. Defaults to ``os.environ``.
    isdir, which : Optional[Callable]
        Filesystem probes. Default to ``os.path.isdir`` and ``shutil.which``.

    Returns
    -------
    ToolchainPlan
        The resolved plan.

    Raises
    ------
    ConfigurationError
        If the architecture is unknown, the companion toolchain is missing, ``MSYS2_ROOT`` or the
        ``bin`` directory does not exist, or the host runtime version is unsupported.
    """
    environ = os.environ if environ is None else environ
    isdir = isdir or os.path.isdir
    which = which or shutil.which
    triple = resolve_target(host, target)
    plan = ToolchainPlan(toolchain=toolchain, target=triple)
    if not (host.is_windows and use_companion_toolchain):
        return plan

    root = _find_companion_root(environ, isdir, which)
    if root is None:
        raise ConfigurationError(
            "Unable to find the MinGW-w64 toolchain needed for compilation. "
            f"Install MSYS2 or set {COMPANION_ROOT_ENV}."
        )

    is_64bit = triple.startswith("x86_64")
    extra_env: Dict[str, str] = {}
    if host.crt == "ucrt":
        if host.runtime_version[0] != SUPPORTED_RUNTIME_MAJOR:
            raise ConfigurationError(
                f"rust_inline currently supports Python {SUPPORTED_RUNTIME_MAJOR}.x, "
                f"got {host.runtime_version[0]}.{host.runtime_version[1]}"
            )
        subdir = "ucrt64" if is_64bit else "mingw32"
    else:
        subdir = "mingw64" if is_64bit else "mingw32"
        extra_env["MSYSTEM"] = subdir.upper()

    bin_dir = str(PureWindowsPath(root, subdir, "bin"))
    if not isdir(bin_dir):
        raise ConfigurationError(f"MinGW-w64 toolchain path does not exist: {bin_dir}")

    return ToolchainPlan(
        toolchain=toolchain, target=triple, path_suffix=bin_dir, extra_env=extra_env
    )
