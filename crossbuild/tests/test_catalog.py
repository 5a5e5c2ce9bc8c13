"""
test_catalog — target catalog contents, filters and host detection.
"""
import subprocess

import pytest

from crossbuild.core import catalog
from crossbuild.core.catalog import (
    AVAILABLE_TARGETS,
    available_targets,
    current_target,
    format_target_name,
    is_valid_target,
    musl_targets,
    split_target,
    standard_targets,
    targets_by_arch,
    targets_by_platform,
)
from crossbuild.errors import ConfigurationError, UnsupportedHost


class TestCatalogContents:

    def test_full_catalog_order(self):
        assert available_targets() == (
            "linux-x64",
            "linux-arm64",
            "darwin-x64",
            "darwin-arm64",
            "linux-x64-musl",
            "linux-arm64-musl",
        )

    def test_catalog_is_immutable(self):
        assert isinstance(AVAILABLE_TARGETS, tuple)
        assert available_targets() is available_targets()

    def test_musl_only_for_linux(self):
        for target in AVAILABLE_TARGETS:
            if target.endswith("-musl"):
                assert target.startswith("linux-")
        assert "darwin-x64-musl" not in AVAILABLE_TARGETS

    @pytest.mark.parametrize("value", [
        "linux-x64", "darwin-arm64", "linux-arm64-musl",
    ])
    def test_valid(self, value):
        assert is_valid_target(value)

    @pytest.mark.parametrize("value", [
        "", "linux", "windows-x64", "darwin-x64-musl", "bun-linux-x64",
        "LINUX-X64", "linux-x64 ", None, 42,
    ])
    def test_invalid(self, value):
        assert not is_valid_target(value)


class TestFilters:

    def test_by_platform(self):
        assert targets_by_platform("darwin") == ("darwin-x64", "darwin-arm64")
        assert targets_by_platform("linux") == (
            "linux-x64", "linux-arm64", "linux-x64-musl", "linux-arm64-musl",
        )

    def test_by_arch(self):
        assert targets_by_arch("arm64") == ("linux-arm64", "darwin-arm64", "linux-arm64-musl")

    def test_musl_and_standard_partition_catalog(self):
        assert musl_targets() == ("linux-x64-musl", "linux-arm64-musl")
        assert set(musl_targets()) | set(standard_targets()) == set(AVAILABLE_TARGETS)
        assert not set(musl_targets()) & set(standard_targets())

    def test_split_target(self):
        assert split_target("linux-arm64-musl") == ("linux", "arm64", True)
        assert split_target("darwin-x64") == ("darwin", "x64", False)
        with pytest.raises(ValueError):
            split_target("solaris-sparc")


class TestFormatting:

    def test_plain_label(self):
        assert format_target_name("darwin-arm64") == "Darwin ARM64"

    def test_musl_and_current_label(self):
        label = format_target_name("linux-x64-musl", current="linux-x64-musl")
        assert label == "[current] Linux X64 (musl)"

    def test_current_only_marks_matching_target(self):
        assert format_target_name("linux-x64", current="linux-arm64") == "Linux X64"


class TestHostDetection:

    def _host(self, monkeypatch, system, machine, musl=False):
        monkeypatch.setattr(catalog.platform, "system", lambda: system)
        monkeypatch.setattr(catalog.platform, "machine", lambda: machine)
        monkeypatch.setattr(catalog, "is_musl", lambda: musl)

    @pytest.mark.parametrize("system,machine,expected", [
        ("Linux", "x86_64", "linux-x64"),
        ("Linux", "aarch64", "linux-arm64"),
        ("Darwin", "arm64", "darwin-arm64"),
        ("Darwin", "x86_64", "darwin-x64"),
    ])
    def test_current_target(self, monkeypatch, system, machine, expected):
        self._host(monkeypatch, system, machine)
        assert current_target() == expected

    def test_current_target_musl(self, monkeypatch):
        self._host(monkeypatch, "Linux", "x86_64", musl=True)
        assert current_target() == "linux-x64-musl"

    @pytest.mark.parametrize("system,machine", [
        ("Windows", "AMD64"),
        ("Linux", "riscv64"),
    ])
    def test_unsupported_host(self, monkeypatch, system, machine):
        self._host(monkeypatch, system, machine)
        with pytest.raises(UnsupportedHost):
            current_target()

    def test_unsupported_host_is_configuration_error(self):
        assert issubclass(UnsupportedHost, ConfigurationError)

    def test_is_musl_reads_ldd(self, monkeypatch):
        monkeypatch.setattr(catalog.platform, "system", lambda: "Linux")
        monkeypatch.setattr(
            catalog.subprocess, "run",
            lambda *a, **k: subprocess.CompletedProcess(a, 1, stdout="", stderr="musl libc (x86_64)\n"),
        )
        assert catalog.is_musl() is True

    def test_is_musl_false_for_glibc(self, monkeypatch):
        monkeypatch.setattr(catalog.platform, "system", lambda: "Linux")
        monkeypatch.setattr(
            catalog.subprocess, "run",
            lambda *a, **k: subprocess.CompletedProcess(a, 0, stdout="ldd (GNU libc) 2.39\n", stderr=""),
        )
        assert catalog.is_musl() is False

    def test_is_musl_false_when_ldd_missing(self, monkeypatch):
        def missing(*a, **k):
            raise FileNotFoundError("ldd")

        monkeypatch.setattr(catalog.platform, "system", lambda: "Linux")
        monkeypatch.setattr(catalog.subprocess, "run", missing)
        assert catalog.is_musl() is False

    def test_is_musl_false_off_linux(self, monkeypatch):
        monkeypatch.setattr(catalog.platform, "system", lambda: "Darwin")
        assert catalog.is_musl() is False
