"""
Artifact — inspect a produced executable.

Records hash, size, container format and machine so a receipt can show
what actually landed on disk.  Linux targets are ELF (read with
pyelftools); darwin targets are Mach-O (magic bytes only).

Inspection never fails a target: problems are logged and reported as
missing metadata.
"""
import hashlib
import logging
import struct
from pathlib import Path
from typing import Optional, Tuple

from elftools.common.exceptions import ELFError
from elftools.elf.elffile import ELFFile

from crossbuild.core.catalog import split_target
from crossbuild.io.schema import ArtifactMeta

logger = logging.getLogger(__name__)

ELF_MAGIC = b"\x7fELF"
MACHO_MAGIC_64_BE = b"\xfe\xed\xfa\xcf"
MACHO_MAGIC_64_LE = b"\xcf\xfa\xed\xfe"

_MACHO_CPU_TYPES = {
    0x01000007: "CPU_TYPE_X86_64",
    0x0100000C: "CPU_TYPE_ARM64",
}

# catalog arch → (ELF e_machine, Mach-O cputype)
EXPECTED_MACHINE = {
    "x64": ("EM_X86_64", "CPU_TYPE_X86_64"),
    "arm64": ("EM_AARCH64", "CPU_TYPE_ARM64"),
}


def hash_file(path: Path) -> str:
    """SHA-256 of a file."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def _elf_machine(path: Path) -> Optional[str]:
    try:
        with open(path, "rb") as f:
            return ELFFile(f).header["e_machine"]
    except ELFError as e:
        logger.warning("ELF header unreadable for %s: %s", path, e)
        return None


def _macho_machine(magic: bytes, header: bytes) -> Optional[str]:
    if len(header) < 8:
        return None
    order = ">" if magic == MACHO_MAGIC_64_BE else "<"
    (cputype,) = struct.unpack(order + "I", header[4:8])
    return _MACHO_CPU_TYPES.get(cputype, hex(cputype))


def detect_format(path: Path) -> Tuple[str, Optional[str]]:
    """Return (format, machine) from the file header."""
    with open(path, "rb") as f:
        header = f.read(16)

    magic = header[:4]
    if magic == ELF_MAGIC:
        return "ELF", _elf_machine(path)
    if magic in (MACHO_MAGIC_64_BE, MACHO_MAGIC_64_LE):
        return "Mach-O", _macho_machine(magic, header)
    return "unknown", None


def arch_matches(target: str, fmt: str, machine: Optional[str]) -> Optional[bool]:
    """Whether the produced binary fits *target*; None when undecidable."""
    if machine is None:
        return None
    plat, arch, _ = split_target(target)
    elf_machine, macho_machine = EXPECTED_MACHINE[arch]
    if plat == "linux":
        return fmt == "ELF" and machine == elf_machine
    return fmt == "Mach-O" and machine == macho_machine


def inspect_artifact(path: Path, target: str) -> Optional[ArtifactMeta]:
    """Collect ArtifactMeta for *path*; None if it cannot be read."""
    try:
        fmt, machine = detect_format(path)
        meta = ArtifactMeta(
            path=str(path),
            sha256=hash_file(path),
            size_bytes=path.stat().st_size,
            format=fmt,
            machine=machine,
            arch_matches=arch_matches(target, fmt, machine),
        )
    except OSError as e:
        logger.warning("Artifact inspection failed for %s: %s", path, e)
        return None

    if meta.arch_matches is False:
        logger.warning(
            "%s: produced %s %s does not match the target architecture",
            target, meta.format, meta.machine,
        )
    return meta
