"""Utility functions for preparing a build directory."""

from __future__ import annotations

import re
import shutil
from pathlib import Path
from typing import Callable, Optional

INTEROP_PRELUDE = "use pyo3::prelude::*;"
"""Import line prepended to in-memory sources."""

ModuleMacroGenerator = Callable[[str, str], str]
"""Collaborator proposing a module-registration declaration for ``(code, module_name)``."""


def as_valid_crate_name(name: str) -> str:
    """Normalize ``name`` into a valid crate and library identifier.

    Characters other than ASCII letters, digits and underscores become underscores, and a
    leading digit gets an underscore prefix.

    Examples
    --------
    >>> as_valid_crate_name("my-lib.v2")
    'my_lib_v2'
    >>> as_valid_crate_name("2fast")
    '_2fast'
    """
    s = re.sub(r"[^0-9a-zA-Z_]", "_", name)
    if not s or s[0].isdigit():
        s = "_" + s
    return s


def prepare_code(
    code: str,
    module_name: str,
    use_interop_prelude: bool = True,
    module_macro: Optional[ModuleMacroGenerator] = None,
) -> str:
    """Assemble the contents of ``src/lib.rs`` for in-memory code.

    Parameters
    ----------
    code : str
        User source.
    module_name : str
        Module name handed to ``module_macro``.
    use_interop_prelude : bool
        Prepend :data:`INTEROP_PRELUDE`.
    module_macro : Optional[ModuleMacroGenerator]
        When given, its declaration is appended after the user code.

    Returns
    -------
    str
        The source text, newline terminated.
    """
    parts = [code]
    if module_macro is not None:
        parts.append(module_macro(code, module_name))
    if use_interop_prelude:
        parts.insert(0, INTEROP_PRELUDE)
    return "\n".join(part.rstrip("\n") for part in parts) + "\n"


def write_source(build_dir: Path, code: Optional[str] = None, file: Optional[Path] = None) -> Path:
    """Write ``src/lib.rs`` from text or by copying a file, overwriting any previous source.

    Returns
    -------
    Path
        Path of the written ``lib.rs``.
    """
    lib_rs = build_dir / "src" / "lib.rs"
    lib_rs.parent.mkdir(parents=True, exist_ok=True)
    if file is not None:
        shutil.copyfile(file, lib_rs)
    else:
        lib_rs.write_text(code or "", encoding="utf-8")
    return lib_rs
