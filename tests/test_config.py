import sys
from pathlib import Path

import pytest

from rust_inline.config import RustInlineConfig


def test_defaults():
    config = RustInlineConfig.from_env({})
    assert config.toolchain is None
    assert config.cargo == "cargo"
    assert config.patch_crates_io is None
    assert config.interop_deps == {"pyo3": "*"}
    assert config.use_companion_toolchain is True
    assert config.build_root is None


def test_defaults_are_not_shared():
    first = RustInlineConfig()
    first.interop_deps["libc"] = "0.2"
    assert RustInlineConfig().interop_deps == {"pyo3": "*"}


def test_from_env():
    config = RustInlineConfig.from_env(
        {
            "RUST_INLINE_TOOLCHAIN": "nightly",
            "RUST_INLINE_CARGO": "/opt/rust/bin/cargo",
            "RUST_INLINE_PATCH_CRATES_IO": '{"pyo3": {"git": "https://github.com/PyO3/pyo3"}}',
            "RUST_INLINE_INTEROP_DEPS": '{"pyo3": {"version": "0.20", "features": ["abi3"]}}',
            "RUST_INLINE_USE_COMPANION_TOOLCHAIN": "off",
            "RUST_INLINE_BUILD_ROOT": "/tmp/rust-builds",
        }
    )
    assert config.toolchain == "nightly"
    assert config.cargo == "/opt/rust/bin/cargo"
    assert config.patch_crates_io == {"pyo3": {"git": "https://github.com/PyO3/pyo3"}}
    assert config.interop_deps == {"pyo3": {"version": "0.20", "features": ["abi3"]}}
    assert config.use_companion_toolchain is False
    assert config.build_root == Path("/tmp/rust-builds")


@pytest.mark.parametrize(
    "value, expected", [("1", True), ("yes", True), ("0", False), ("False", False)]
)
def test_companion_toolchain_flag(value, expected):
    config = RustInlineConfig.from_env({"RUST_INLINE_USE_COMPANION_TOOLCHAIN": value})
    assert config.use_companion_toolchain is expected


@pytest.mark.parametrize("value", ["not json", "[1, 2]"])
def test_invalid_json_table(value):
    with pytest.raises(ValueError, match="RUST_INLINE_INTEROP_DEPS"):
        RustInlineConfig.from_env({"RUST_INLINE_INTEROP_DEPS": value})


def test_reads_process_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("RUST_INLINE_TOOLCHAIN", "stable")
    assert RustInlineConfig.from_env().toolchain == "stable"


if __name__ == "__main__":
    pytest.main(sys.argv)
