"""Data definitions for toolchain plans and build results."""

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import Field

from .request import BuildProfile
from .utils import BaseModelWithDocstrings


def profile_folder(profile: BuildProfile) -> str:
    """Return the cargo output folder name for a profile (``dev`` builds land in ``debug``)."""
    profile = BuildProfile(profile)
    return "debug" if profile == BuildProfile.DEV else profile.value


class ToolchainPlan(BaseModelWithDocstrings):
    """Resolved toolchain parameters for a single cargo invocation."""

    toolchain: Optional[str] = None
    """Toolchain channel passed as ``+<toolchain>``. ``None`` uses the default toolchain."""
    target: Optional[str] = None
    """Target triple. ``None`` means the host default."""
    path_suffix: Optional[str] = None
    """Directory appended to ``PATH`` for the duration of the build."""
    extra_env: Dict[str, str] = Field(default_factory=dict)
    """Environment variables set for the duration of the build."""

    def output_dir(self, build_dir: Path, profile: BuildProfile) -> Path:
        """Directory cargo writes the profile's artifacts to.

        Parameters
        ----------
        build_dir : Path
            Root of the build directory.
        profile : BuildProfile
            The build profile.

        Returns
        -------
        Path
            ``<build_dir>/target[/<target>]/<profile folder>``.
        """
        target_dir = build_dir / "target"
        if self.target is not None:
            target_dir = target_dir / self.target
        return target_dir / profile_folder(profile)


class DiagnosticRecord(BaseModelWithDocstrings):
    """One ``compiler-message`` record emitted by cargo."""

    reason: str
    """The record kind. Only ``compiler-message`` records are kept."""
    level: str
    """Severity, e.g. ``warning``, ``error``, ``note``."""
    rendered: str
    """Human-readable message, possibly with ANSI color sequences."""


class BuildOutcome(BaseModelWithDocstrings):
    """Result of compiling one build request."""

    success: bool
    """Whether cargo exited with status zero."""
    returncode: int
    """The cargo exit status."""
    artifact: Optional[Path] = None
    """Path to the shared library. Set only for successful builds."""
    errors: Optional[List[str]] = None
    """Rendered error messages in stream order, with braces escaped. Set only for failures."""
    warnings: List[str] = Field(default_factory=list)
    """Rendered warning messages in stream order."""
    stderr: Optional[str] = None
    """Captured cargo stderr. Only available for quiet builds."""
