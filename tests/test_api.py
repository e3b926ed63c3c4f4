import sys
from pathlib import Path

import pytest

import rust_inline
from rust_inline import (
    BuildCache,
    ConfigurationError,
    RustBuilder,
    RustInlineConfig,
    as_exported_function,
    rust_function,
    rust_source,
)


@pytest.mark.parametrize(
    "code, expected",
    [
        ("fn add(a: i32) -> i32 { a }", '#[no_mangle]\npub extern "C" fn add(a: i32) -> i32 { a }'),
        ("pub fn one() -> i32 { 1 }", '#[no_mangle]\npub extern "C" fn one() -> i32 { 1 }'),
        ('  pub extern "C" fn two() {}\n', '#[no_mangle]\npub extern "C" fn two() {}'),
    ],
)
def test_as_exported_function(code, expected):
    assert as_exported_function(code) == expected


def test_rust_function_exports_symbol(builder, loaded_paths):
    lib = rust_function(
        "fn add(a: f64, b: f64) -> f64 { a + b }",
        builder=builder,
        use_interop_prelude=False,
        interop_deps={},
    )

    lib_rs = (builder.cache.path / "src" / "lib.rs").read_text()
    assert lib_rs == '#[no_mangle]\npub extern "C" fn add(a: f64, b: f64) -> f64 { a + b }\n'
    assert lib.name == "rust_inline1"


def test_rust_source_uses_config_defaults(
    tmp_path, fake_invoker, console, linux_host, loaded_paths
):
    builder = RustBuilder(
        cache=BuildCache(tmp_path),
        invoker=fake_invoker,
        console=console,
        host=linux_host,
        config=RustInlineConfig(toolchain="nightly", interop_deps={"libc": "0.2"}),
    )

    rust_source(code="fn a() {}", builder=builder)
    assert fake_invoker.calls[0]["command"][1] == "+nightly"
    manifest = (builder.cache.path / "Cargo.toml").read_text()
    assert 'libc = "0.2"' in manifest
    assert "pyo3" not in manifest

    # Explicit arguments, including None, override the configured defaults.
    rust_source(code="fn a() {}", builder=builder, toolchain=None, interop_deps={"pyo3": "0.20"})
    assert fake_invoker.calls[1]["command"][1] == "build"
    assert 'pyo3 = "0.20"' in (builder.cache.path / "Cargo.toml").read_text()


def test_rust_source_from_file(builder, loaded_paths, tmp_path: Path):
    source = tmp_path / "fast_math.rs"
    source.write_text("pub fn f() {}\n")

    lib = rust_source(str(source), builder=builder)

    assert lib.name == "fast_math"
    assert lib.metadata.profile == "dev"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"code": "fn a() {}", "profile": "fastest"},
        {"code": "fn a() {}", "file": "lib.rs"},
        {},
        {"code": "fn a() {}", "module_name": ""},
    ],
)
def test_invalid_arguments(builder, fake_invoker, kwargs):
    with pytest.raises(ConfigurationError, match="Invalid argument"):
        rust_source(builder=builder, **kwargs)
    assert fake_invoker.calls == []


def test_interop_deps_none(builder, fake_invoker):
    with pytest.raises(ConfigurationError, match="interop_deps"):
        rust_source(code="fn a() {}", builder=builder, interop_deps=None)
    assert fake_invoker.calls == []


def _write_marker(library, module_name, outfile):
    outfile.write_text(f"rust_inline_marker = {library.name!r}\n")


def test_wrappers_defined_in_caller_globals(builder, loaded_paths):
    try:
        rust_source(code="fn a() {}", builder=builder, wrapper_generator=_write_marker)
        assert globals()["rust_inline_marker"] == "rust_inline1"
    finally:
        globals().pop("rust_inline_marker", None)


def test_wrappers_defined_in_env(builder, loaded_paths):
    env = {}
    rust_function("fn a() {}", env=env, builder=builder, wrapper_generator=_write_marker)
    assert env == {"rust_inline_marker": "rust_inline1"}
    assert "rust_inline_marker" not in globals()


def test_default_builder(builder, loaded_paths, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(RustBuilder, "_default", builder)
    assert RustBuilder.get_default() is builder

    lib = rust_inline.rust_source(code="fn a() {}")

    assert lib.path == builder.cache.path / "target" / "debug" / "librust_inline1.so"


if __name__ == "__main__":
    pytest.main(sys.argv)
