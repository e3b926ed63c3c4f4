"""Exception hierarchy for the build pipeline."""

from __future__ import annotations

from typing import List, Optional, Sequence

from rust_inline.data import BuildOutcome

from .diagnostics import unescape_braces

_COMPILATION_FAILED = "Rust code could not be compiled successfully. Aborting."


class BuildError(RuntimeError):
    """Raised when a build request cannot be turned into a loaded library."""


class ConfigurationError(BuildError):
    """Raised before compilation when the request or the host environment is unusable.

    Examples are an invalid profile, a ``None`` dependency specification, an unknown Windows
    architecture, or a missing companion toolchain.
    """


class CompilationError(BuildError):
    """Raised when cargo exits with a non-zero status.

    The message lists every rendered compiler error, numbered in stream order.

    Parameters
    ----------
    errors : Sequence[str]
        Rendered errors with braces escaped as ``{{`` and ``}}``, as in
        :attr:`BuildOutcome.errors`. Unescaped braces are reported as they are.
    returncode : int
        The cargo exit status.
    warnings : Sequence[str]
        Rendered warnings.
    stderr : Optional[str]
        Captured cargo stderr.
    """

    errors: List[str]
    """Rendered error messages, with braces escaped as ``{{`` and ``}}``."""
    warnings: List[str]
    """Rendered warning messages."""
    returncode: int
    """The cargo exit status."""
    stderr: Optional[str]
    """Captured cargo stderr, available for quiet builds only."""

    def __init__(
        self,
        errors: Sequence[str],
        returncode: int,
        warnings: Sequence[str] = (),
        stderr: Optional[str] = None,
    ) -> None:
        self.errors = list(errors)
        self.warnings = list(warnings)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(self._render())

    @classmethod
    def from_outcome(cls, outcome: BuildOutcome) -> "CompilationError":
        """Create the error for a failed build outcome."""
        return cls(
            errors=outcome.errors or [],
            returncode=outcome.returncode,
            warnings=outcome.warnings,
            stderr=outcome.stderr,
        )

    def _render(self) -> str:
        lines = [_COMPILATION_FAILED]
        if self.errors:
            lines.extend(
                f"{i}. {unescape_braces(error)}" for i, error in enumerate(self.errors, start=1)
            )
        else:
            lines.append(
                f"cargo exited with status {self.returncode} without reporting an error."
            )
        return "\n".join(lines)


class ArtifactError(BuildError):
    """Raised when the compiled library is missing or cannot be loaded."""
