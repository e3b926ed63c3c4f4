"""Build pipeline package.

This package turns Rust source into a loaded shared library. It includes:
- RustBuilder: Orchestrates a build and owns the build directory cache
- BuildCache: Lifecycle of the scratch build directory
- Manifest: Typed ``Cargo.toml`` document
- CargoInvoker: Launches cargo and streams its JSON diagnostics
- DiagnosticProcessor: Reports warnings and aggregates errors
- LoadedLibrary: Handle to the loaded library

The typical workflow is:
1. Create a builder (or use the shared one): builder = RustBuilder.get_default()
2. Build a request: lib = builder.build(BuildRequest(code=...))
3. Call exported functions: lib.add(1, 2)
"""

from .build_dir import BuildCache
from .builder import RustBuilder, WrapperGenerator
from .diagnostics import DiagnosticProcessor, parse_diagnostic
from .errors import ArtifactError, BuildError, CompilationError, ConfigurationError
from .invoker import CargoInvoker, CargoProcess, build_cargo_command
from .library import LibraryMetadata, LoadedLibrary
from .manifest import Manifest, generate_cargo_config, generate_manifest
from .target import HostDescriptor, resolve_toolchain_plan
from .utils import ModuleMacroGenerator

__all__ = [
    "ArtifactError",
    "BuildCache",
    "BuildError",
    "CargoInvoker",
    "CargoProcess",
    "CompilationError",
    "ConfigurationError",
    "DiagnosticProcessor",
    "HostDescriptor",
    "LibraryMetadata",
    "LoadedLibrary",
    "Manifest",
    "ModuleMacroGenerator",
    "RustBuilder",
    "WrapperGenerator",
    "build_cargo_command",
    "generate_cargo_config",
    "generate_manifest",
    "parse_diagnostic",
    "resolve_toolchain_plan",
]
