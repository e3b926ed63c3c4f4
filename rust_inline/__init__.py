from rust_inline.api import as_exported_function, rust_function, rust_source
from rust_inline.compile import (
    ArtifactError,
    BuildCache,
    BuildError,
    CompilationError,
    ConfigurationError,
    LoadedLibrary,
    RustBuilder,
)
from rust_inline.config import RustInlineConfig
from rust_inline.data import BuildOutcome, BuildProfile, BuildRequest, ToolchainPlan
from rust_inline.logging import configure_logging, get_logger

__all__ = [
    # Main API
    "rust_source",
    "rust_function",
    "as_exported_function",
    "RustBuilder",
    "BuildCache",
    "LoadedLibrary",
    "RustInlineConfig",
    # Data types
    "BuildRequest",
    "BuildProfile",
    "BuildOutcome",
    "ToolchainPlan",
    # Errors
    "BuildError",
    "ConfigurationError",
    "CompilationError",
    "ArtifactError",
    "configure_logging",
    "get_logger",
]
