"""
Shared pytest fixtures for crossbuild tests.

No real build tool is invoked.  ``fake_tool`` replaces ``subprocess.run``
with a recorder that answers like the build tool would: exit 0 and an
output file, or a non-zero exit with stderr for targets marked as failing.

Toolchain-dependent fixtures (gcc for a real ELF) skip when unavailable.
"""
import shutil
import subprocess
import threading
import time
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from crossbuild.config import Settings
from crossbuild.core.options import CompileOptions

# Captured before any test patches subprocess.run.
_real_run = subprocess.run

class FakeBuildTool:
    """Thread-safe stand-in for ``subprocess.run`` of the build tool."""

    def __init__(self, prefix: str = "bun-"):
        self.prefix = prefix
        self.calls: List[List[str]] = []
        self.failures: Dict[str, str] = {}    # target → stderr
        self.raises: Dict[str, Exception] = {}
        self.delays: Dict[str, float] = {}
        self.default_delay = 0.0
        self.write_outputs = True
        self.in_flight = 0
        self.max_in_flight = 0
        self.spans: Dict[str, tuple] = {}    # target → (start, end)
        self._lock = threading.Lock()

    def target_of(self, cmd: List[str]) -> str:
        return cmd[cmd.index("--target") + 1][len(self.prefix):]

    def __call__(self, cmd, **kwargs):
        if "--target" not in cmd:
            raise FileNotFoundError(cmd[0])
        target = self.target_of(cmd)
        with self._lock:
            self.calls.append(list(cmd))
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        start = time.monotonic()
        try:
            time.sleep(self.delays.get(target, self.default_delay))
            if target in self.raises:
                raise self.raises[target]
            if target in self.failures:
                return subprocess.CompletedProcess(cmd, 1, stdout="", stderr=self.failures[target])
            if self.write_outputs:
                out_file = Path(cmd[cmd.index("--outfile") + 1])
                out_file.parent.mkdir(parents=True, exist_ok=True)
                out_file.write_bytes(b"#!fake-executable\n")
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")
        finally:
            with self._lock:
                self.in_flight -= 1
                self.spans[target] = (start, time.monotonic())

    @property
    def targets_called(self) -> List[str]:
        return [self.target_of(c) for c in self.calls]


@pytest.fixture
def fake_tool(monkeypatch) -> FakeBuildTool:
    """Patch the compiler's subprocess.run with a FakeBuildTool."""
    tool = FakeBuildTool()
    monkeypatch.setattr("crossbuild.core.compiler.subprocess.run", tool)
    return tool


@pytest.fixture
def settings() -> Settings:
    return Settings(
        BUILD_TOOL="bun",
        BUILD_SUBCOMMAND=["build", "--compile"],
        TARGET_PREFIX="bun-",
        DEFAULT_OUT_DIR="dist",
        DEFAULT_CONCURRENCY=4,
    )


@pytest.fixture
def entry(tmp_path) -> Path:
    """An existing entry file."""
    p = tmp_path / "src" / "main.ts"
    p.parent.mkdir(parents=True)
    p.write_text('console.log("hello");\n')
    return p


@pytest.fixture
def make_options(entry, tmp_path):
    """Factory for CompileOptions rooted in tmp_path."""

    def _make(targets, max_concurrency: int = 4, prefix: str = "", **flags) -> CompileOptions:
        return CompileOptions(
            entries=(str(entry),),
            targets=tuple(targets),
            out_dir=str(tmp_path / "dist"),
            out_file_prefix=prefix,
            max_concurrency=max_concurrency,
            **flags,
        )

    return _make


# ── Real ELF fixture ─────────────────────────────────────────────────────────

def _gcc_elf(output: Path) -> Optional[Path]:
    src = output.with_suffix(".c")
    src.write_text("int main(void) { return 0; }\n")
    try:
        _real_run(
            ["gcc", str(src), "-o", str(output)],
            check=True,
            capture_output=True,
            timeout=30,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if not output.exists() or output.read_bytes()[:4] != b"\x7fELF":
        return None
    return output


@pytest.fixture(scope="session")
def host_elf(tmp_path_factory) -> Path:
    """A host-native ELF executable compiled with gcc."""
    if shutil.which("gcc") is None:
        pytest.skip("gcc not available - install gcc to run these tests")
    out = _gcc_elf(tmp_path_factory.mktemp("elf") / "hello")
    if out is None:
        pytest.skip("gcc does not produce ELF binaries on this host")
    return out
