import os
import sys
import textwrap
from pathlib import Path

import pytest

from rust_inline.compile import (
    CargoInvoker,
    ConfigurationError,
    build_cargo_command,
    parse_diagnostic,
)
from rust_inline.compile.invoker import build_cargo_env
from rust_inline.data import BuildProfile, ToolchainPlan


def test_minimal_command():
    command = build_cargo_command(ToolchainPlan(), Path("/b"), BuildProfile.DEV, color=False)
    assert command == [
        "cargo",
        "build",
        "--lib",
        f"--manifest-path={Path('/b') / 'Cargo.toml'}",
        f"--target-dir={Path('/b') / 'target'}",
        "--profile=dev",
        "--message-format=json-diagnostic-rendered-ansi",
        "--color=never",
    ]


def test_full_command():
    plan = ToolchainPlan(toolchain="nightly", target="x86_64-pc-windows-gnu")
    command = build_cargo_command(plan, Path("/b"), "perf", color=True, cargo="/opt/cargo")
    assert command[:5] == [
        "/opt/cargo",
        "+nightly",
        "build",
        "--lib",
        "--target=x86_64-pc-windows-gnu",
    ]
    assert "--profile=perf" in command
    assert command[-1] == "--color=always"


def test_cargo_env():
    plan = ToolchainPlan(path_suffix="/mingw/bin", extra_env={"MSYSTEM": "MINGW64"})
    env = build_cargo_env(plan, {"PATH": "/usr/bin", "HOME": "/home/me"})
    assert env == {
        "PATH": os.pathsep.join(["/usr/bin", "/mingw/bin"]),
        "HOME": "/home/me",
        "MSYSTEM": "MINGW64",
    }

    assert build_cargo_env(ToolchainPlan(), {"PATH": "/usr/bin"}) == {"PATH": "/usr/bin"}
    assert build_cargo_env(plan, {})["PATH"] == "/mingw/bin"


def _python(script: str, *args: str):
    return [sys.executable, "-c", textwrap.dedent(script), *args]


def test_process_output_and_exit_status():
    script = """
        import json
        import sys
        print("   Compiling demo v0.0.1")
        message = {"level": "warning", "rendered": "warning: unused"}
        print(json.dumps({"reason": "compiler-message", "message": message}))
        sys.stderr.write("error: could not compile\\n")
        sys.exit(3)
    """
    process = CargoInvoker().start(_python(script), quiet=True)

    lines = list(process)

    assert lines[0] == "   Compiling demo v0.0.1"
    record = parse_diagnostic(lines[1])
    assert record.level == "warning"
    assert record.rendered == "warning: unused"
    assert process.wait() == 3
    assert process.stderr == "error: could not compile\n"


def test_lines_are_streamed_before_exit(tmp_path: Path):
    flag = tmp_path / "continue"
    script = """
        import os
        import sys
        import time
        print("ready", flush=True)
        deadline = time.time() + 10
        while not os.path.exists(sys.argv[1]) and time.time() < deadline:
            time.sleep(0.01)
        print("done" if os.path.exists(sys.argv[1]) else "timeout")
    """
    process = CargoInvoker().start(_python(script, str(flag)))
    lines = iter(process)

    assert next(lines) == "ready"
    flag.write_text("")
    assert list(lines) == ["done"]
    assert process.wait() == 0
    assert process.stderr is None


def test_wait_drains_unread_output():
    process = CargoInvoker().start(_python("for i in range(1000):\n    print(i)\n"))
    assert process.wait() == 0
    assert list(process) == []


def test_missing_executable():
    with pytest.raises(ConfigurationError, match="Rust toolchain"):
        CargoInvoker().start(["rust-inline-definitely-not-cargo", "build"])


if __name__ == "__main__":
    pytest.main(sys.argv)
