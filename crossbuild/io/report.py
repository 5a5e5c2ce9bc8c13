"""
Report — aggregate per-target results and render them for the log.

All functions here are pure except ``report_results`` / ``report_plan``,
which only emit log lines.
"""
import logging
from typing import List, Sequence, Tuple

from crossbuild.core.options import CompileOptions
from crossbuild.io.schema import CompilationResult, CompilerStats, CompilerSummary

logger = logging.getLogger(__name__)

ReportLine = Tuple[int, str]


def summarize(results: Sequence[CompilationResult], total_duration_ms: int) -> CompilerSummary:
    """
    Counts and overall verdict for a run.

    *total_duration_ms* is wall clock around the scheduler; per-target
    durations overlap and are not summed.
    """
    success_count = sum(1 for r in results if r.success)
    failure_count = len(results) - success_count
    return CompilerSummary(
        success=failure_count == 0,
        results=list(results),
        total_duration_ms=total_duration_ms,
        success_count=success_count,
        failure_count=failure_count,
    )


def compute_stats(summary: CompilerSummary) -> CompilerStats:
    durations = [r.duration_ms for r in summary.results]
    average = sum(durations) / len(durations) if durations else 0.0
    return CompilerStats(
        total_targets=len(summary.results),
        completed_targets=summary.success_count + summary.failure_count,
        successful_targets=summary.success_count,
        failed_targets=summary.failure_count,
        total_duration_ms=summary.total_duration_ms,
        average_duration_ms=round(average, 1),
    )


def render_report(summary: CompilerSummary) -> List[ReportLine]:
    """Failures with diagnostics, then successes with timing, then total time."""
    failures = [r for r in summary.results if not r.success]
    successes = [r for r in summary.results if r.success]
    lines: List[ReportLine] = []

    if failures:
        lines.append((logging.INFO, f"Compilation completed with {len(failures)} failure(s):"))
        for r in failures:
            lines.append((logging.ERROR, f"{r.target}: {r.error}"))

    if successes:
        lines.append((logging.INFO, f"Successfully compiled {len(successes)} target(s):"))
        for r in successes:
            lines.append((logging.INFO, f"{r.target} ({r.duration_ms}ms) -> {r.out_file}"))

    lines.append((logging.INFO, f"Total compilation time: {summary.total_duration_ms}ms"))
    return lines


def render_plan(options: CompileOptions) -> List[str]:
    def state(flag: bool) -> str:
        return "enabled" if flag else "disabled"

    lines = ["Targeting platforms:"]
    lines += [f"  {t}" for t in options.targets]
    lines += [
        "Compilation options:",
        f"  Minification:         {state(options.minify)}",
        f"  Bytecode generation:  {state(options.bytecode)}",
        f"  Sourcemap:            {state(options.sourcemap)}",
    ]
    return lines


def report_plan(options: CompileOptions) -> None:
    for line in render_plan(options):
        logger.info(line)


def report_results(summary: CompilerSummary) -> None:
    for level, line in render_report(summary):
        logger.log(level, line)
