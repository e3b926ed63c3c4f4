"""Lifecycle of the scratch directory used for cargo builds."""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import ClassVar, Optional, Tuple, Union

logger = logging.getLogger(__name__)


class BuildCache:
    """Owns at most one build directory and decides when it may be reused.

    A directory acquired with ``cache=True`` is kept and handed out again on the next
    acquisition, so cargo can reuse compiled dependencies. Acquiring with ``cache=False``
    discards any existing directory first and always yields a fresh tree.

    The cache is plain mutable state without locking. Concurrent callers should use separate
    instances or disable caching.
    """

    SUBDIRS: ClassVar[Tuple[str, ...]] = ("src", "target", ".cargo")
    """Subdirectories every tracked build directory contains."""

    _PREFIX: ClassVar[str] = "rust_inline_"
    """Prefix of the temporary directory name."""

    def __init__(self, root: Optional[Union[str, Path]] = None) -> None:
        """Initialize the cache.

        Parameters
        ----------
        root : Optional[Union[str, Path]]
            Parent directory for build directories. ``None`` uses the system temp dir.
        """
        self._root = Path(root) if root is not None else None
        self._path: Optional[Path] = None

    @property
    def path(self) -> Optional[Path]:
        """The tracked build directory, or None."""
        return self._path

    def acquire(self, cache: bool = True) -> Path:
        """Return the build directory, creating it if needed.

        Parameters
        ----------
        cache : bool
            If False, any tracked directory is deleted first. A tracked directory that lost one of
            its subdirectories is always replaced.

        Returns
        -------
        Path
            Absolute, symlink-resolved path of a directory containing ``src``, ``target`` and
            ``.cargo``.
        """
        if not cache or not self._is_intact():
            self.release()

        if self._path is None:
            if self._root is not None:
                self._root.mkdir(parents=True, exist_ok=True)
            created = Path(tempfile.mkdtemp(prefix=self._PREFIX, dir=self._root))
            try:
                for name in self.SUBDIRS:
                    (created / name).mkdir()
            except OSError:
                shutil.rmtree(created, ignore_errors=True)
                raise
            self._path = created.resolve()
            logger.debug("Created build directory %s", self._path)
        return self._path

    def _is_intact(self) -> bool:
        if self._path is None:
            return True
        intact = all((self._path / name).is_dir() for name in self.SUBDIRS)
        if not intact:
            logger.debug("Build directory %s is incomplete, recreating it", self._path)
        return intact

    def release(self) -> None:
        """Delete the tracked build directory and stop tracking it. No-op if none is tracked."""
        if self._path is None:
            return
        path, self._path = self._path, None
        logger.debug("Removing build directory %s", path)
        shutil.rmtree(path, ignore_errors=True)
