"""Launching cargo and streaming its structured output."""

from __future__ import annotations

import logging
import os
import queue
import subprocess
import threading
from pathlib import Path
from typing import IO, Iterator, List, Mapping, Optional, Sequence

from rust_inline.data import BuildProfile, ToolchainPlan

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

MESSAGE_FORMAT = "json-diagnostic-rendered-ansi"


def build_cargo_command(
    plan: ToolchainPlan,
    build_dir: Path,
    profile: BuildProfile,
    color: bool,
    cargo: str = "cargo",
) -> List[str]:
    """Assemble the ``cargo build`` command line for a build directory.

    Parameters
    ----------
    plan : ToolchainPlan
        Resolved toolchain and target.
    build_dir : Path
        Directory holding ``Cargo.toml``.
    profile : BuildProfile
        Cargo profile.
    color : bool
        Whether rendered diagnostics should carry ANSI color sequences.
    cargo : str
        The cargo executable.

    Returns
    -------
    List[str]
        The command and its arguments.
    """
    command = [cargo]
    if plan.toolchain:
        command.append(f"+{plan.toolchain}")
    command.extend(["build", "--lib"])
    if plan.target:
        command.append(f"--target={plan.target}")
    command.extend(
        [
            f"--manifest-path={build_dir / 'Cargo.toml'}",
            f"--target-dir={build_dir / 'target'}",
            f"--profile={BuildProfile(profile).value}",
            f"--message-format={MESSAGE_FORMAT}",
            "--color=always" if color else "--color=never",
        ]
    )
    return command


def build_cargo_env(plan: ToolchainPlan, environ: Optional[Mapping[str, str]] = None) -> dict:
    """Return the environment for the cargo process.

    ``plan.extra_env`` is applied on top of ``environ`` and ``plan.path_suffix`` is appended to
    ``PATH``.
    """
    env = dict(os.environ if environ is None else environ)
    env.update(plan.extra_env)
    if plan.path_suffix:
        current = env.get("PATH", "")
        env["PATH"] = os.pathsep.join(p for p in (current, plan.path_suffix) if p)
    return env


_EOF = object()


class CargoProcess:
    """A running cargo process whose stdout is consumed line by line.

    A reader thread pushes every stdout line onto a queue as soon as it is produced; iterating
    the process blocks on that queue, so lines arrive in order and one at a time. ``wait()``
    drains any remaining output before returning the exit status.
    """

    def __init__(self, popen: subprocess.Popen) -> None:
        self._popen = popen
        self._lines: "queue.Queue[object]" = queue.Queue()
        self._stderr_chunks: List[str] = []
        self._drained = False
        self._reader = threading.Thread(
            target=self._pump, args=(popen.stdout,), name="cargo-stdout", daemon=True
        )
        self._reader.start()
        self._stderr_reader: Optional[threading.Thread] = None
        if popen.stderr is not None:
            self._stderr_reader = threading.Thread(
                target=self._collect_stderr,
                args=(popen.stderr,),
                name="cargo-stderr",
                daemon=True,
            )
            self._stderr_reader.start()

    def _pump(self, stream: IO[str]) -> None:
        try:
            for line in stream:
                self._lines.put(line.rstrip("\r\n"))
        finally:
            stream.close()
            self._lines.put(_EOF)

    def _collect_stderr(self, stream: IO[str]) -> None:
        try:
            for chunk in stream:
                self._stderr_chunks.append(chunk)
        finally:
            stream.close()

    def __iter__(self) -> Iterator[str]:
        while not self._drained:
            item = self._lines.get()
            if item is _EOF:
                self._drained = True
                break
            yield item  # type: ignore[misc]

    @property
    def stderr(self) -> Optional[str]:
        """Captured stderr. None when stderr was not captured."""
        if self._stderr_reader is None:
            return None
        return "".join(self._stderr_chunks)

    def wait(self) -> int:
        """Drain stdout, wait for the process to exit and return its exit status."""
        for _ in self:
            pass
        self._reader.join()
        returncode = self._popen.wait()
        if self._stderr_reader is not None:
            self._stderr_reader.join()
        return returncode


class CargoInvoker:
    """Starts cargo subprocesses. Replace with a fake to test the pipeline without cargo."""

    def start(
        self,
        command: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
        quiet: bool = False,
    ) -> CargoProcess:
        """Launch a cargo command.

        Parameters
        ----------
        command : Sequence[str]
            Command line from :func:`build_cargo_command`.
        env : Optional[Mapping[str, str]]
            Process environment. Defaults to the current environment.
        quiet : bool
            Capture stderr instead of letting it through to the terminal.

        Returns
        -------
        CargoProcess
            The running process.

        Raises
        ------
        ConfigurationError
            If the executable cannot be found.
        """
        logger.info("Running %s", " ".join(command))
        try:
            popen = subprocess.Popen(
                list(command),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE if quiet else None,
                env=dict(env) if env is not None else None,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except FileNotFoundError as e:
            raise ConfigurationError(
                f"Unable to run '{command[0]}'. Is the Rust toolchain installed and on PATH?"
            ) from e
        return CargoProcess(popen)
