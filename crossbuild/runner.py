"""
Runner — top-level orchestration: options → scheduler → summary.

Ties option resolution, the worker pool and reporting together into a
single ``compile_project`` function that can be called from Python or
from the ``crossbuild`` CLI.

Usage:
    crossbuild compile src/main.ts --target linux-x64 darwin-arm64
    crossbuild compile src/main.ts --current --outdir build --minify
    crossbuild targets --platform linux
"""
from __future__ import annotations

import argparse
import functools
import logging
import math
import shutil
import sys
import time
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from crossbuild import MAX_CONCURRENCY, __version__
from crossbuild.config import Settings, settings as default_settings
from crossbuild.core.catalog import (
    AVAILABLE_TARGETS,
    SUPPORTED_ARCHS,
    SUPPORTED_PLATFORMS,
    current_target,
    musl_targets,
    standard_targets,
    targets_by_arch,
    targets_by_platform,
)
from crossbuild.core.compiler import compile_target
from crossbuild.core.options import CompileOptions, resolve_options
from crossbuild.core.scheduler import CompileFn, ProgressFn, compile_targets
from crossbuild.errors import ConfigurationError, OutputDirectoryError
from crossbuild.io.report import compute_stats, report_plan, report_results, summarize
from crossbuild.io.schema import BuildReceipt, CompilerSummary, RequestedBuild, now_iso
from crossbuild.io.writer import write_receipt
from crossbuild.policy.selection import ExplicitSelector, PromptSelector, TargetSelector

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_TARGET_FAILURES = 1
EXIT_CONFIG_ERROR = 2
EXIT_ORCHESTRATION_ERROR = 3


# ── Output directory ─────────────────────────────────────────────────────────

def clean_dir(path: str, throw_on_error: bool = False) -> None:
    """Remove *path* recursively.  Failures are only logged unless asked to raise."""
    logger.info("Cleaning %s directory...", path)
    try:
        if Path(path).exists():
            shutil.rmtree(path)
    except OSError as e:
        logger.warning("Failed to clean %s: %s", path, e)
        if throw_on_error:
            raise


def ensure_dir(path: str) -> None:
    try:
        Path(path).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputDirectoryError(f"Failed to create directory {path}: {e}") from e


# ── Receipt ──────────────────────────────────────────────────────────────────

def build_receipt(
    options: CompileOptions,
    summary: CompilerSummary,
    created_at: str,
    settings: Settings,
) -> BuildReceipt:
    return BuildReceipt(
        created_at=created_at,
        finished_at=now_iso(),
        requested=RequestedBuild(
            entries=list(options.entries),
            targets=list(options.targets),
            out_dir=options.out_dir,
            out_file_prefix=options.out_file_prefix,
            minify=options.minify,
            sourcemap=options.sourcemap,
            bytecode=options.bytecode,
            clean_out_dir=options.clean_out_dir,
            max_concurrency=options.max_concurrency,
            command_template=settings.command_template,
        ),
        summary=summary,
        stats=compute_stats(summary),
    )


# ── Orchestration ────────────────────────────────────────────────────────────

def compile_project(
    entries: Sequence[str],
    targets: Optional[Iterable[str]] = None,
    *,
    out_dir: Optional[str] = None,
    out_file_prefix: Optional[str] = None,
    minify: bool = False,
    sourcemap: bool = False,
    bytecode: bool = False,
    clean_out_dir: bool = False,
    max_concurrency: Optional[int] = None,
    selector: Optional[TargetSelector] = None,
    settings: Optional[Settings] = None,
    receipt_path: Optional[Path] = None,
    compile_fn: Optional[CompileFn] = None,
    on_progress: Optional[ProgressFn] = None,
) -> CompilerSummary:
    """
    Compile *entries* for every resolved target.

    Raises ConfigurationError before any build starts when the options
    are unusable, and OutputDirectoryError when the output directory
    cannot be created.  Per-target failures are reported in the returned
    summary, never raised.
    """
    if settings is None:
        settings = default_settings
    if compile_fn is None:
        compile_fn = functools.partial(compile_target, settings=settings)

    created_at = now_iso()
    try:
        options = resolve_options(
            entries,
            targets,
            out_dir=out_dir,
            out_file_prefix=out_file_prefix,
            minify=minify,
            sourcemap=sourcemap,
            bytecode=bytecode,
            clean_out_dir=clean_out_dir,
            max_concurrency=max_concurrency,
            selector=selector,
            settings=settings,
        )

        if options.clean_out_dir:
            clean_dir(options.out_dir)
        ensure_dir(options.out_dir)

        logger.info("Compiling the project...")
        report_plan(options)

        t0 = time.monotonic()
        results = compile_targets(
            options.targets,
            options.max_concurrency,
            options,
            compile_fn=compile_fn,
            on_progress=on_progress,
        )
        total_duration = math.ceil((time.monotonic() - t0) * 1000)
        summary = summarize(results, total_duration)
        report_results(summary)

        if receipt_path is not None:
            receipt = build_receipt(options, summary, created_at, settings)
            try:
                written = write_receipt(receipt, receipt_path)
                logger.info("Receipt saved: %s", written)
            except OSError as e:
                # The builds already ran; keep their summary.
                logger.warning("Failed to write receipt %s: %s", receipt_path, e)

        return summary

    except Exception as e:
        logger.error("Compilation failed: %s", e)
        raise


# ── CLI ──────────────────────────────────────────────────────────────────────

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crossbuild",
        description="crossbuild — compile entries into standalone executables per target platform",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    comp = sub.add_parser("compile", parents=[common], help="Compile entries into single-file executables")
    comp.add_argument("entries", nargs="+", help="Entry file(s) passed to the build tool")
    which = comp.add_mutually_exclusive_group()
    which.add_argument(
        "-t", "--target",
        dest="targets",
        nargs="+",
        action="extend",
        choices=AVAILABLE_TARGETS,
        default=[],
        metavar="TARGET",
        help=f"Target platform(s), repeatable. One of: {', '.join(AVAILABLE_TARGETS)}",
    )
    which.add_argument("--current", action="store_true", help="Build for the current platform")
    comp.add_argument("--prefix", default=None, help="Prefix for compiled executable name(s)")
    comp.add_argument("--outdir", default=None, help="Output directory (default: dist)")
    comp.add_argument("--minify", action="store_true", help="Enable the build tool's minification")
    comp.add_argument("--sourcemap", action="store_true", help="Compile with sourcemaps")
    comp.add_argument("--bytecode", action="store_true", help="Use a bytecode cache for the executable")
    comp.add_argument("--clean", action="store_true", help="Clean output directory before compiling")
    comp.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help=f"Max concurrent build processes, 1-{MAX_CONCURRENCY} (default: 4)",
    )
    comp.add_argument("--receipt", type=Path, default=None, help="Write a JSON build receipt to this path")

    tgt = sub.add_parser("targets", parents=[common], help="List supported targets")
    tgt.add_argument("--platform", choices=SUPPORTED_PLATFORMS, default=None)
    tgt.add_argument("--arch", choices=SUPPORTED_ARCHS, default=None)
    variant = tgt.add_mutually_exclusive_group()
    variant.add_argument("--musl", action="store_true", help="Only musl targets")
    variant.add_argument("--standard", action="store_true", help="Only non-musl targets")
    return parser


def list_targets(
    platform: Optional[str] = None,
    arch: Optional[str] = None,
    musl: bool = False,
    standard: bool = False,
) -> List[str]:
    """Catalog targets narrowed by the given filters, in catalog order."""
    selected = set(AVAILABLE_TARGETS)
    if platform:
        selected &= set(targets_by_platform(platform))
    if arch:
        selected &= set(targets_by_arch(arch))
    if musl:
        selected &= set(musl_targets())
    if standard:
        selected &= set(standard_targets())
    return [t for t in AVAILABLE_TARGETS if t in selected]


def _run_compile(args: argparse.Namespace) -> int:
    try:
        targets = [current_target()] if args.current else list(args.targets)
    except ConfigurationError as e:
        logger.error("%s", e)
        return EXIT_CONFIG_ERROR

    # Only consulted when no target was given on the command line.
    selector: TargetSelector = PromptSelector() if sys.stdin.isatty() else ExplicitSelector()

    try:
        summary = compile_project(
            args.entries,
            targets,
            out_dir=args.outdir,
            out_file_prefix=args.prefix,
            minify=args.minify,
            sourcemap=args.sourcemap,
            bytecode=args.bytecode,
            clean_out_dir=args.clean,
            max_concurrency=args.concurrency,
            selector=selector,
            receipt_path=args.receipt,
        )
    except ConfigurationError:
        return EXIT_CONFIG_ERROR
    except OutputDirectoryError:
        return EXIT_ORCHESTRATION_ERROR

    return EXIT_OK if summary.success else EXIT_TARGET_FAILURES


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point for crossbuild."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "targets":
        for target in list_targets(args.platform, args.arch, args.musl, args.standard):
            print(target)
        return EXIT_OK

    return _run_compile(args)


if __name__ == "__main__":
    sys.exit(main())
