"""Orchestration of a single Rust build: from source text to a loaded library."""

from __future__ import annotations

import logging
import runpy
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, ClassVar, Dict, Iterator, MutableMapping, Optional, Tuple

from rich.console import Console

from rust_inline.config import RustInlineConfig
from rust_inline.data import BuildOutcome, BuildRequest, ToolchainPlan

from .build_dir import BuildCache
from .diagnostics import DiagnosticProcessor
from .errors import CompilationError, ConfigurationError
from .invoker import CargoInvoker, build_cargo_command, build_cargo_env
from .library import LibraryMetadata, LoadedLibrary
from .loader import artifact_path, load_library
from .manifest import generate_cargo_config, generate_manifest
from .target import HostDescriptor, resolve_toolchain_plan
from .utils import ModuleMacroGenerator, as_valid_crate_name, prepare_code, write_source

logger = logging.getLogger(__name__)

WrapperGenerator = Callable[[LoadedLibrary, str, Path], None]
"""Collaborator writing Python wrapper code for ``(library, module_name, outfile)``."""

WRAPPER_FILE_NAME = "rust_inline_wrappers.py"


class RustBuilder:
    """Builds Rust sources into shared libraries and loads them.

    A builder owns a :class:`BuildCache`. Cached builds reuse one build directory, so cargo only
    recompiles what changed. Anonymous builds are numbered by a counter shared by all builders
    in the process, so a library loaded earlier is never shadowed by a later one with the same
    crate name.

    Builders are independent of each other. :meth:`get_default` returns the shared builder used
    by :func:`rust_inline.rust_source`; create separate builders for isolated sessions.

    Examples
    --------
    >>> builder = RustBuilder()
    >>> lib = builder.build(BuildRequest(code=src, interop_deps={}, use_interop_prelude=False))
    >>> lib.add(1, 2)
    """

    _default: ClassVar[Optional["RustBuilder"]] = None
    """Shared builder instance used by the module-level API."""

    ANONYMOUS_PREFIX: ClassVar[str] = "rust_inline"
    """Prefix of library names generated for in-memory code."""

    _count: ClassVar[int] = 1
    """Index of the next anonymous library, shared by all builders."""

    _count_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(
        self,
        cache: Optional[BuildCache] = None,
        invoker: Optional[CargoInvoker] = None,
        console: Optional[Console] = None,
        host: Optional[HostDescriptor] = None,
        config: Optional[RustInlineConfig] = None,
    ) -> None:
        """Initialize the builder.

        Parameters
        ----------
        cache : Optional[BuildCache]
            Build directory cache. Defaults to a new cache under ``config.build_root``.
        invoker : Optional[CargoInvoker]
            Launches cargo.
        console : Optional[Console]
            Console for compiler warnings. Defaults to stderr.
        host : Optional[HostDescriptor]
            Host used for target resolution. Defaults to the running interpreter.
        config : Optional[RustInlineConfig]
            Session defaults. Defaults to :meth:`RustInlineConfig.from_env`.
        """
        self._config = config if config is not None else RustInlineConfig.from_env()
        self._cache = cache if cache is not None else BuildCache(self._config.build_root)
        self._invoker = invoker if invoker is not None else CargoInvoker()
        self._console = console if console is not None else Console(stderr=True)
        self._host = host if host is not None else HostDescriptor.current()

    @classmethod
    def get_default(cls) -> "RustBuilder":
        """Return the shared builder, creating it on first use."""
        if cls._default is None:
            cls._default = cls()
        return cls._default

    @property
    def cache(self) -> BuildCache:
        return self._cache

    @property
    def config(self) -> RustInlineConfig:
        return self._config

    @property
    def counter(self) -> int:
        """Index the next anonymous library will get, in any builder."""
        return RustBuilder._count

    def build(
        self,
        request: BuildRequest,
        env: Optional[MutableMapping[str, Any]] = None,
        module_macro: Optional[ModuleMacroGenerator] = None,
        wrapper_generator: Optional[WrapperGenerator] = None,
    ) -> LoadedLibrary:
        """Compile a request and load the resulting library.

        Parameters
        ----------
        request : BuildRequest
            What to build.
        env : Optional[MutableMapping[str, Any]]
            Namespace that receives the wrapper definitions. Only used with
            ``wrapper_generator``.
        module_macro : Optional[ModuleMacroGenerator]
            Collaborator appending a module declaration to in-memory code.
        wrapper_generator : Optional[WrapperGenerator]
            Collaborator writing Python wrappers for the loaded library.

        Returns
        -------
        LoadedLibrary
            The loaded library.

        Raises
        ------
        ConfigurationError
            If the request or the host toolchain setup is invalid.
        CompilationError
            If cargo exits with a non-zero status.
        ArtifactError
            If the library is missing or cannot be loaded.
        """
        with self._build_directory(request) as build_dir:
            outcome, libname, plan = self._compile_in(build_dir, request, module_macro)
            if not outcome.success:
                raise CompilationError.from_outcome(outcome)

            handle = load_library(outcome.artifact)
            library = LoadedLibrary(
                handle,
                LibraryMetadata(
                    name=libname,
                    path=outcome.artifact,
                    profile=request.profile,
                    target=plan.target,
                    module_name=request.module_name,
                    warnings=outcome.warnings,
                ),
            )
            logger.info("Loaded %s from %s", libname, outcome.artifact)

            if wrapper_generator is not None:
                self._source_wrappers(
                    build_dir, library, request.module_name, wrapper_generator, env
                )
            return library

    def compile(
        self, request: BuildRequest, module_macro: Optional[ModuleMacroGenerator] = None
    ) -> BuildOutcome:
        """Compile a request without loading it.

        Unlike :meth:`build`, a failed compilation is reported through the returned outcome
        instead of an exception. For uncached requests the artifact is removed together with
        the build directory before this method returns.

        Raises
        ------
        ConfigurationError
            If the request or the host toolchain setup is invalid.
        """
        with self._build_directory(request) as build_dir:
            outcome, _, _ = self._compile_in(build_dir, request, module_macro)
            return outcome

    @contextmanager
    def _build_directory(self, request: BuildRequest) -> Iterator[Path]:
        if request.interop_deps is None:
            raise ConfigurationError("Invalid argument: `interop_deps` cannot be None.")
        build_dir = self._cache.acquire(request.cache_build)
        try:
            yield build_dir
        finally:
            if not request.cache_build:
                self._cache.release()

    def _next_libname(self, request: BuildRequest) -> str:
        if request.is_anonymous:
            with RustBuilder._count_lock:
                index = RustBuilder._count
                RustBuilder._count += 1
            return f"{self.ANONYMOUS_PREFIX}{index}"
        return as_valid_crate_name(Path(request.file).stem)

    def _write_sources(
        self,
        build_dir: Path,
        request: BuildRequest,
        module_macro: Optional[ModuleMacroGenerator],
    ) -> str:
        if request.is_anonymous:
            code = prepare_code(
                request.code,
                request.module_name,
                use_interop_prelude=request.use_interop_prelude,
                module_macro=module_macro if request.generate_module_macro else None,
            )
            write_source(build_dir, code=code)
        else:
            try:
                write_source(build_dir, file=request.file)
            except OSError as e:
                raise ConfigurationError(f"Cannot read Rust source file {request.file}: {e}") from e
        libname = self._next_libname(request)

        manifest = generate_manifest(
            libname,
            dependencies=request.dependencies,
            patch_crates_io=request.patch_crates_io,
            interop_deps=request.interop_deps,
            features=request.features,
        )
        (build_dir / "Cargo.toml").write_text(manifest.to_toml(), encoding="utf-8")
        (build_dir / ".cargo" / "config.toml").write_text(generate_cargo_config(), encoding="utf-8")
        return libname

    def _compile_in(
        self,
        build_dir: Path,
        request: BuildRequest,
        module_macro: Optional[ModuleMacroGenerator],
    ) -> Tuple[BuildOutcome, str, ToolchainPlan]:
        logger.debug("Build directory: %s", build_dir)
        if not request.quiet:
            self._console.print(
                f"Build directory: {build_dir}", markup=False, highlight=False, soft_wrap=True
            )
        libname = self._write_sources(build_dir, request, module_macro)
        plan = resolve_toolchain_plan(
            self._host,
            toolchain=request.toolchain,
            target=request.target,
            use_companion_toolchain=request.use_companion_toolchain,
        )

        processor = DiagnosticProcessor(self._console, quiet=request.quiet)
        command = build_cargo_command(
            plan, build_dir, request.profile, processor.color, cargo=self._config.cargo
        )
        process = self._invoker.start(command, env=build_cargo_env(plan), quiet=request.quiet)
        processor.feed_lines(process)
        returncode = process.wait()

        artifact = artifact_path(build_dir, libname, request.profile, plan, self._host.system)
        outcome = processor.finish(
            returncode, artifact if returncode == 0 else None, stderr=process.stderr
        )
        if outcome.success:
            logger.info("Compiled %s (%d warnings)", libname, len(outcome.warnings))
        else:
            logger.info("Compilation of %s failed with exit status %d", libname, returncode)
        return outcome, libname, plan

    def _source_wrappers(
        self,
        build_dir: Path,
        library: LoadedLibrary,
        module_name: str,
        wrapper_generator: WrapperGenerator,
        env: Optional[MutableMapping[str, Any]],
    ) -> None:
        wrapper_file = build_dir / "target" / WRAPPER_FILE_NAME
        wrapper_generator(library, module_name, wrapper_file)
        namespace: Dict[str, Any] = runpy.run_path(
            str(wrapper_file), init_globals={"__rust_inline_library__": library}
        )
        if env is not None:
            env.update({k: v for k, v in namespace.items() if not k.startswith("__")})
