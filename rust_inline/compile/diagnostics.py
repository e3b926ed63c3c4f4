"""Parsing and reporting of cargo's JSON diagnostics."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from rich.console import Console
from rich.text import Text

from rust_inline.data import BuildOutcome, DiagnosticRecord

logger = logging.getLogger(__name__)

COMPILER_MESSAGE = "compiler-message"


def supports_color(console: Console) -> bool:
    """Whether the console renders ANSI colors."""
    return console.is_terminal and console.color_system is not None


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from ``text``."""
    return Text.from_ansi(text).plain


def escape_braces(text: str) -> str:
    """Escape braces so ``text`` survives ``str.format`` unchanged."""
    return text.replace("{", "{{").replace("}", "}}")


def unescape_braces(text: str) -> str:
    """Undo :func:`escape_braces`. Single braces are left as they are."""
    return text.replace("{{", "{").replace("}}", "}")


def parse_diagnostic(line: str) -> Optional[DiagnosticRecord]:
    """Parse one line of cargo output.

    Parameters
    ----------
    line : str
        A single stdout line from ``cargo build --message-format=json-*``.

    Returns
    -------
    Optional[DiagnosticRecord]
        The record for ``compiler-message`` lines, None for every other line.
    """
    line = line.strip()
    if not line:
        return None
    try:
        payload = json.loads(line)
    except json.JSONDecodeError:
        logger.debug("Ignoring non-JSON cargo output: %s", line)
        return None
    if not isinstance(payload, dict) or payload.get("reason") != COMPILER_MESSAGE:
        return None
    message = payload.get("message") or {}
    rendered = message.get("rendered")
    if rendered is None:
        rendered = message.get("message", "")
    return DiagnosticRecord(
        reason=COMPILER_MESSAGE, level=str(message.get("level", "")), rendered=rendered
    )


class DiagnosticProcessor:
    """Classifies diagnostic records from one build.

    Warnings are shown on the console as soon as they arrive, unless ``quiet``. Errors are kept,
    brace-escaped, until :meth:`finish` decides the outcome from the cargo exit status.
    """

    def __init__(
        self, console: Optional[Console] = None, quiet: bool = False, color: Optional[bool] = None
    ) -> None:
        """Initialize the processor.

        Parameters
        ----------
        console : Optional[Console]
            Where warnings are printed. Defaults to a console on stderr.
        quiet : bool
            Suppress warning output. Warnings are still collected.
        color : Optional[bool]
            Keep ANSI sequences in rendered messages. Defaults to the console's capability.
        """
        self._console = console if console is not None else Console(stderr=True)
        self._quiet = quiet
        self._color = supports_color(self._console) if color is None else color
        self._warnings: List[str] = []
        self._errors: List[str] = []

    @property
    def color(self) -> bool:
        return self._color

    def _render(self, record: DiagnosticRecord) -> str:
        return record.rendered if self._color else strip_ansi(record.rendered)

    def feed(self, record: DiagnosticRecord) -> None:
        """Process one record."""
        if record.reason != COMPILER_MESSAGE:
            return
        if record.level == "warning":
            rendered = self._render(record)
            self._warnings.append(rendered)
            if not self._quiet:
                self._emit_warning(rendered)
        elif record.level == "error":
            self._errors.append(escape_braces(self._render(record)))

    def feed_lines(self, lines: Iterable[str]) -> None:
        """Parse and process raw cargo output lines in order."""
        for line in lines:
            record = parse_diagnostic(line)
            if record is not None:
                self.feed(record)

    def _emit_warning(self, rendered: str) -> None:
        message = Text("! ", style="bold yellow")
        message.append(Text.from_ansi(rendered) if self._color else Text(rendered))
        self._console.print(message, highlight=False, soft_wrap=True)

    def finish(
        self, returncode: int, artifact: Optional[Path] = None, stderr: Optional[str] = None
    ) -> BuildOutcome:
        """Build the outcome once cargo has exited.

        Parameters
        ----------
        returncode : int
            Cargo's exit status. Only a zero status is a success, whatever was parsed.
        artifact : Optional[Path]
            Path of the library, recorded on success.
        stderr : Optional[str]
            Captured cargo stderr, if any.

        Returns
        -------
        BuildOutcome
            The outcome. On failure ``errors`` may be empty.
        """
        if returncode == 0:
            return BuildOutcome(
                success=True,
                returncode=0,
                artifact=artifact,
                warnings=list(self._warnings),
                stderr=stderr,
            )
        return BuildOutcome(
            success=False,
            returncode=returncode,
            errors=list(self._errors),
            warnings=list(self._warnings),
            stderr=stderr,
        )
