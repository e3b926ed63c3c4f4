import argparse
import shutil
import sys
from pathlib import Path
from typing import Dict, List, Optional

from rich.console import Console

from rust_inline.compile import (
    BuildCache,
    BuildError,
    CompilationError,
    HostDescriptor,
    RustBuilder,
    build_cargo_command,
    resolve_toolchain_plan,
)
from rust_inline.compile.diagnostics import supports_color
from rust_inline.config import RustInlineConfig
from rust_inline.data import BuildProfile, BuildRequest
from rust_inline.logging import configure_logging


def _parse_deps(items: Optional[List[str]]) -> Dict[str, str]:
    deps: Dict[str, str] = {}
    for item in items or []:
        name, sep, spec = item.partition("=")
        if not sep or not name:
            raise ValueError(f"Invalid dependency '{item}'. Expected NAME=SPEC.")
        deps[name.strip()] = spec.strip()
    return deps


def build(args: argparse.Namespace) -> int:
    """Compile a Rust file and copy the library to the output directory."""
    config = RustInlineConfig.from_env()
    cache = BuildCache(config.build_root)
    builder = RustBuilder(cache=cache, config=config)
    request = BuildRequest(
        file=args.file,
        profile=args.profile,
        toolchain=args.toolchain or config.toolchain,
        dependencies=_parse_deps(args.dep),
        patch_crates_io=config.patch_crates_io,
        interop_deps=config.interop_deps,
        quiet=args.quiet,
        use_companion_toolchain=config.use_companion_toolchain,
    )
    try:
        outcome = builder.compile(request)
        if not outcome.success:
            print(CompilationError.from_outcome(outcome), file=sys.stderr)
            return 1
        args.output.mkdir(parents=True, exist_ok=True)
        destination = args.output / outcome.artifact.name
        shutil.copy2(outcome.artifact, destination)
    finally:
        cache.release()
    print(destination)
    return 0


def plan(args: argparse.Namespace) -> int:
    """Print the cargo command that would be used on this host."""
    config = RustInlineConfig.from_env()
    toolchain_plan = resolve_toolchain_plan(
        HostDescriptor.current(),
        toolchain=args.toolchain or config.toolchain,
        use_companion_toolchain=config.use_companion_toolchain,
    )
    command = build_cargo_command(
        toolchain_plan,
        Path("<build-dir>"),
        BuildProfile(args.profile),
        supports_color(Console(stderr=True)),
        cargo=config.cargo,
    )
    print(" ".join(command))
    if toolchain_plan.path_suffix:
        print(f"PATH suffix: {toolchain_plan.path_suffix}")
    for key, value in toolchain_plan.extra_env.items():
        print(f"{key}={value}")
    return 0


def cli(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Compile Rust sources into shared libraries",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--log-level", default="WARNING")

    command_subparsers = parser.add_subparsers(
        dest="command", required=True, help="Primary commands"
    )

    profiles = [p.value for p in BuildProfile]

    build_parser = command_subparsers.add_parser("build", help="Compile a Rust file.")
    build_parser.add_argument("file", type=Path, help="Rust source file.")
    build_parser.add_argument("--profile", choices=profiles, default=BuildProfile.DEV.value)
    build_parser.add_argument("--toolchain", default=None)
    build_parser.add_argument(
        "--dep",
        action="append",
        metavar="NAME=SPEC",
        help="Adds a dependency, e.g. --dep pulldown-cmark=0.8. Can be repeated.",
    )
    build_parser.add_argument(
        "--output", type=Path, default=Path("."), help="Directory receiving the library."
    )
    build_parser.add_argument("--quiet", action="store_true", help="Suppress compiler output.")
    build_parser.set_defaults(func=build)

    plan_parser = command_subparsers.add_parser(
        "plan", help="Show the cargo command for this host."
    )
    plan_parser.add_argument("--profile", choices=profiles, default=BuildProfile.DEV.value)
    plan_parser.add_argument("--toolchain", default=None)
    plan_parser.set_defaults(func=plan)

    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    try:
        return args.func(args)
    except (BuildError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


def main() -> None:
    sys.exit(cli())
