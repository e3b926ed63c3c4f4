"""Data layer with strongly-typed models for rust_inline."""

from .outcome import BuildOutcome, DiagnosticRecord, ToolchainPlan, profile_folder
from .request import DEFAULT_INTEROP_DEPS, DEFAULT_MODULE_NAME, BuildProfile, BuildRequest
from .utils import BaseModelWithDocstrings, DependencySpec, NonEmptyString

__all__ = [
    # Request types
    "BuildProfile",
    "BuildRequest",
    "DEFAULT_INTEROP_DEPS",
    "DEFAULT_MODULE_NAME",
    # Result types
    "BuildOutcome",
    "DiagnosticRecord",
    "ToolchainPlan",
    "profile_folder",
    # Base types
    "BaseModelWithDocstrings",
    "DependencySpec",
    "NonEmptyString",
]
