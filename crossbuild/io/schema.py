"""
Schema — Pydantic models for compile results and the build receipt.

  - CompilationResult: one per requested target, in target order.
  - CompilerSummary:   aggregate of a whole run.
  - BuildReceipt:      optional JSON record of a run (``--receipt``).
"""
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from crossbuild import RECEIPT_VERSION, TOOL_NAME, __version__


# ── Artifact ─────────────────────────────────────────────────────────────────

class ArtifactMeta(BaseModel):
    """Metadata for a produced executable.  Informational only."""
    path: str
    sha256: str
    size_bytes: int
    format: str = "unknown"           # ELF | Mach-O | unknown
    machine: Optional[str] = None     # EM_X86_64, CPU_TYPE_ARM64, ...
    arch_matches: Optional[bool] = None


# ── Per-target result ────────────────────────────────────────────────────────

class CompilationResult(BaseModel):
    target: str
    success: bool
    error: Optional[str] = None
    duration_ms: int = 0
    out_file: str
    exit_code: Optional[int] = None
    artifact: Optional[ArtifactMeta] = None


# ── Run summary ──────────────────────────────────────────────────────────────

class CompilerSummary(BaseModel):
    """Ordered results plus counts.  ``success`` means zero failures."""
    success: bool
    results: List[CompilationResult] = Field(default_factory=list)
    total_duration_ms: int = 0
    success_count: int = 0
    failure_count: int = 0


class CompilerStats(BaseModel):
    total_targets: int = 0
    completed_targets: int = 0
    successful_targets: int = 0
    failed_targets: int = 0
    total_duration_ms: int = 0
    average_duration_ms: float = 0.0


# ── Receipt ──────────────────────────────────────────────────────────────────

class ToolInfo(BaseModel):
    name: str = TOOL_NAME
    version: str = __version__
    receipt_version: str = RECEIPT_VERSION


class RequestedBuild(BaseModel):
    """What was asked for, after option resolution."""
    entries: List[str]
    targets: List[str]
    out_dir: str
    out_file_prefix: str = ""
    minify: bool = False
    sourcemap: bool = False
    bytecode: bool = False
    clean_out_dir: bool = False
    max_concurrency: int
    command_template: str = ""


class BuildReceipt(BaseModel):
    tool: ToolInfo = ToolInfo()
    created_at: str
    finished_at: Optional[str] = None
    requested: RequestedBuild
    summary: CompilerSummary
    stats: CompilerStats = CompilerStats()


def now_iso() -> str:
    """Current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()
