"""
Catalog — the closed set of target identifiers.

A target is ``<platform>-<arch>`` with an optional ``-musl`` suffix that
only exists for linux.  The catalog is computed once at import time and
never mutated.

Also resolves the invoking host to its own catalog target (``--current``).
"""
import logging
import platform
import subprocess
from typing import Optional, Tuple

from crossbuild.errors import UnsupportedHost

logger = logging.getLogger(__name__)

SUPPORTED_PLATFORMS: Tuple[str, ...] = ("linux", "darwin")
SUPPORTED_ARCHS: Tuple[str, ...] = ("x64", "arm64")
MUSL_SUFFIX = "-musl"

# platform.machine() spellings → catalog arch
_MACHINE_ALIASES = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


def _build_catalog() -> Tuple[str, ...]:
    """Standard targets in platform × arch order, then the musl variants."""
    standard = []
    musl = []
    for plat in SUPPORTED_PLATFORMS:
        for arch in SUPPORTED_ARCHS:
            target = f"{plat}-{arch}"
            standard.append(target)
            if plat == "linux":
                musl.append(target + MUSL_SUFFIX)
    return tuple(standard + musl)


AVAILABLE_TARGETS: Tuple[str, ...] = _build_catalog()
_TARGET_SET = frozenset(AVAILABLE_TARGETS)


# ── Queries ──────────────────────────────────────────────────────────────────

def available_targets() -> Tuple[str, ...]:
    return AVAILABLE_TARGETS


def is_valid_target(target: object) -> bool:
    """True only for exact catalog members."""
    return isinstance(target, str) and target in _TARGET_SET


def split_target(target: str) -> Tuple[str, str, bool]:
    """Split a catalog target into (platform, arch, is_musl)."""
    if not is_valid_target(target):
        raise ValueError(f"Unknown target: {target}")
    parts = target.split("-")
    return parts[0], parts[1], len(parts) == 3


def targets_by_platform(plat: str) -> Tuple[str, ...]:
    return tuple(t for t in AVAILABLE_TARGETS if split_target(t)[0] == plat)


def targets_by_arch(arch: str) -> Tuple[str, ...]:
    return tuple(t for t in AVAILABLE_TARGETS if split_target(t)[1] == arch)


def musl_targets() -> Tuple[str, ...]:
    return tuple(t for t in AVAILABLE_TARGETS if t.endswith(MUSL_SUFFIX))


def standard_targets() -> Tuple[str, ...]:
    return tuple(t for t in AVAILABLE_TARGETS if not t.endswith(MUSL_SUFFIX))


# ── Host detection ───────────────────────────────────────────────────────────

def is_musl() -> bool:
    """Detect a musl libc host by asking ``ldd --version``."""
    if platform.system().lower() != "linux":
        return False
    try:
        r = subprocess.run(
            ["ldd", "--version"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("ldd probe failed: %s", e)
        return False
    return "musl" in f"{r.stderr}{r.stdout}".lower()


def current_target() -> str:
    """Return the catalog target matching the invoking host."""
    plat = platform.system().lower()
    machine = platform.machine().lower()
    arch = _MACHINE_ALIASES.get(machine)

    if plat not in SUPPORTED_PLATFORMS or arch is None:
        raise UnsupportedHost(f"Unsupported platform/arch: {plat}-{machine}")

    target = f"{plat}-{arch}"
    if plat == "linux" and is_musl():
        target += MUSL_SUFFIX

    if not is_valid_target(target):
        raise UnsupportedHost(f"Generated target is not supported: {target}")
    return target


def format_target_name(target: str, current: Optional[str] = None) -> str:
    """Human label for pickers, e.g. ``[current] Linux X64 (musl)``."""
    plat, arch, musl = split_target(target)
    label = f"{plat.capitalize()} {arch.upper()}"
    if musl:
        label += " (musl)"
    if current is not None and current == target:
        label = "[current] " + label
    return label
