"""Module-level entry points for compiling Rust code from Python."""

from __future__ import annotations

import inspect
from pathlib import Path
from typing import Any, Dict, List, MutableMapping, Optional, Union

from pydantic import ValidationError

from rust_inline.compile import (
    ConfigurationError,
    LoadedLibrary,
    ModuleMacroGenerator,
    RustBuilder,
    WrapperGenerator,
)
from rust_inline.data import DEFAULT_MODULE_NAME, BuildProfile, BuildRequest, DependencySpec

_UNSET: Any = object()


def rust_source(
    file: Optional[Union[str, Path]] = None,
    code: Optional[str] = None,
    *,
    module_name: str = DEFAULT_MODULE_NAME,
    dependencies: Optional[Dict[str, DependencySpec]] = None,
    patch_crates_io: Optional[Dict[str, DependencySpec]] = _UNSET,
    profile: Union[BuildProfile, str] = BuildProfile.DEV,
    toolchain: Optional[str] = _UNSET,
    interop_deps: Optional[Dict[str, DependencySpec]] = _UNSET,
    features: Optional[Dict[str, List[str]]] = None,
    env: Optional[MutableMapping[str, Any]] = None,
    use_interop_prelude: bool = True,
    generate_module_macro: bool = True,
    cache_build: bool = True,
    quiet: bool = False,
    use_companion_toolchain: Optional[bool] = None,
    module_macro: Optional[ModuleMacroGenerator] = None,
    wrapper_generator: Optional[WrapperGenerator] = None,
    builder: Optional[RustBuilder] = None,
) -> LoadedLibrary:
    """Compile Rust source into a shared library and load it.

    Parameters
    ----------
    file : Optional[Union[str, Path]]
        Rust file to compile. The library is named after the file.
    code : Optional[str]
        Rust code, used instead of ``file``.
    module_name : str
        Name of the module declared in the source, passed to the collaborators.
    dependencies : Optional[Dict[str, DependencySpec]]
        Extra ``[dependencies]`` entries, e.g. ``{"pulldown-cmark": "0.8"}``.
    patch_crates_io : Optional[Dict[str, DependencySpec]]
        ``[patch.crates-io]`` entries. Defaults to the configured value.
    profile : Union[BuildProfile, str]
        ``"dev"``, ``"release"`` or ``"perf"``. ``"dev"`` compiles fastest.
    toolchain : Optional[str]
        Rust toolchain, e.g. ``"nightly"``. Defaults to the configured value.
    interop_deps : Optional[Dict[str, DependencySpec]]
        Mandatory base dependencies. Defaults to the configured value; None is an error.
    features : Optional[Dict[str, List[str]]]
        ``[features]`` entries.
    env : Optional[MutableMapping[str, Any]]
        Namespace receiving the wrapper definitions. Defaults to the caller's globals.
    use_interop_prelude : bool
        Prepend ``use pyo3::prelude::*;`` to ``code``. Ignored for ``file``.
    generate_module_macro : bool
        Append the ``module_macro`` declaration to ``code``. Ignored for ``file``.
    cache_build : bool
        Reuse the build directory between calls.
    quiet : bool
        Suppress compiler output.
    use_companion_toolchain : Optional[bool]
        On Windows, add the MinGW-w64 toolchain to ``PATH``. Defaults to the configured value.
    module_macro : Optional[ModuleMacroGenerator]
        Collaborator generating the module declaration.
    wrapper_generator : Optional[WrapperGenerator]
        Collaborator generating Python wrappers for the loaded library.
    builder : Optional[RustBuilder]
        Builder to use. Defaults to :meth:`RustBuilder.get_default`.

    Returns
    -------
    LoadedLibrary
        The loaded library.

    Raises
    ------
    ConfigurationError
        If an argument or the toolchain setup is invalid.
    CompilationError
        If the code does not compile.
    ArtifactError
        If the library cannot be loaded.

    Examples
    --------
    >>> lib = rust_source(code='''
    ... #[no_mangle]
    ... pub extern "C" fn add(a: f64, b: f64) -> f64 { a + b }
    ... ''', use_interop_prelude=False, interop_deps={})
    >>> lib.add.restype = ctypes.c_double
    """
    builder = builder if builder is not None else RustBuilder.get_default()
    config = builder.config
    if patch_crates_io is _UNSET:
        patch_crates_io = config.patch_crates_io
    if toolchain is _UNSET:
        toolchain = config.toolchain
    if interop_deps is _UNSET:
        interop_deps = config.interop_deps
    if use_companion_toolchain is None:
        use_companion_toolchain = config.use_companion_toolchain
    if env is None:
        frame = inspect.currentframe()
        env = frame.f_back.f_globals if frame is not None and frame.f_back is not None else {}

    try:
        request = BuildRequest(
            code=code,
            file=Path(file) if file is not None else None,
            module_name=module_name,
            dependencies=dependencies or {},
            patch_crates_io=patch_crates_io,
            profile=profile,
            toolchain=toolchain,
            features=features or {},
            interop_deps=interop_deps,
            use_interop_prelude=use_interop_prelude,
            generate_module_macro=generate_module_macro,
            cache_build=cache_build,
            quiet=quiet,
            use_companion_toolchain=use_companion_toolchain,
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid argument: {e}") from e

    return builder.build(
        request, env=env, module_macro=module_macro, wrapper_generator=wrapper_generator
    )


def as_exported_function(code: str) -> str:
    """Turn a single Rust function into an exported C ABI function.

    A leading ``fn`` becomes ``pub extern "C" fn`` and ``#[no_mangle]`` is added, so the symbol
    keeps its name in the library.
    """
    code = code.strip()
    if code.startswith("fn "):
        code = 'pub extern "C" ' + code
    elif code.startswith("pub fn "):
        code = 'pub extern "C" ' + code[len("pub ") :]
    return "#[no_mangle]\n" + code


def rust_function(
    code: str, env: Optional[MutableMapping[str, Any]] = None, **kwargs: Any
) -> LoadedLibrary:
    """Compile and load a single Rust function.

    Parameters
    ----------
    code : str
        A single function definition, e.g. ``"fn add(a: f64, b: f64) -> f64 { a + b }"``.
    env : Optional[MutableMapping[str, Any]]
        Namespace receiving the wrapper definitions. Defaults to the caller's globals.
    kwargs : Any
        Other arguments forwarded to :func:`rust_source`.

    Returns
    -------
    LoadedLibrary
        The loaded library exporting the function.
    """
    if env is None:
        frame = inspect.currentframe()
        env = frame.f_back.f_globals if frame is not None and frame.f_back is not None else {}
    return rust_source(code=as_exported_function(code), env=env, **kwargs)
