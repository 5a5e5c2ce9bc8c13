"""
Compiler — build exactly one target with the native build tool.

One subprocess per target:

    <tool> build --compile --target <prefix><target> --outfile <out_file>
           [--minify] [--sourcemap] [--bytecode] <entries...>

Every outcome, including a missing tool or an OS error, becomes a
CompilationResult.  Nothing raises past ``compile_target``.
"""
import logging
import math
import os
import subprocess
import time
from pathlib import Path
from typing import List, Optional

from crossbuild.config import Settings, settings as default_settings
from crossbuild.core.artifact import inspect_artifact
from crossbuild.core.options import CompileOptions
from crossbuild.io.schema import CompilationResult

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error"


def out_file_path(out_file_prefix: str, target: str, out_dir: str) -> str:
    """``<out_dir>/[<prefix>-]<target>``"""
    filename = f"{out_file_prefix}-{target}" if out_file_prefix else target
    return os.path.join(out_dir, filename)


def build_command(
    target: str,
    options: CompileOptions,
    settings: Optional[Settings] = None,
) -> List[str]:
    """Argument vector for the build tool.  Flags appear only when enabled."""
    if settings is None:
        settings = default_settings

    out_file = out_file_path(options.out_file_prefix, target, options.out_dir)
    cmd = [settings.BUILD_TOOL] + list(settings.BUILD_SUBCOMMAND) + [
        "--target", f"{settings.TARGET_PREFIX}{target}",
        "--outfile", out_file,
    ]
    if options.minify:
        cmd.append("--minify")
    if options.sourcemap:
        cmd.append("--sourcemap")
    if options.bytecode:
        cmd.append("--bytecode")
    cmd += list(options.entries)
    return cmd


def _elapsed_ms(t0: float) -> int:
    return math.ceil((time.monotonic() - t0) * 1000)


def compile_target(
    target: str,
    options: CompileOptions,
    settings: Optional[Settings] = None,
) -> CompilationResult:
    """Run the build tool for *target* and capture exit status, stderr and timing."""
    out_file = out_file_path(options.out_file_prefix, target, options.out_dir)
    t0 = time.monotonic()

    try:
        cmd = build_command(target, options, settings)
        logger.debug("%s: %s", target, " ".join(cmd))
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
        duration = _elapsed_ms(t0)
        exit_code = result.returncode
        stderr_content = (result.stderr or "").strip()
    except (OSError, subprocess.SubprocessError) as e:
        return CompilationResult(
            target=target,
            success=False,
            error=str(e) or UNKNOWN_ERROR,
            duration_ms=_elapsed_ms(t0),
            out_file=out_file,
        )
    except Exception as e:
        logger.error("Unexpected error compiling %s: %s", target, e, exc_info=True)
        return CompilationResult(
            target=target,
            success=False,
            error=str(e) or UNKNOWN_ERROR,
            duration_ms=_elapsed_ms(t0),
            out_file=out_file,
        )

    if exit_code != 0:
        return CompilationResult(
            target=target,
            success=False,
            error=f"Exit code {exit_code}: {stderr_content or UNKNOWN_ERROR}",
            duration_ms=duration,
            out_file=out_file,
            exit_code=exit_code,
        )

    artifact = None
    out_path = Path(out_file)
    if out_path.is_file():
        try:
            artifact = inspect_artifact(out_path, target)
        except Exception as e:
            logger.warning("Skipping artifact metadata for %s: %s", target, e)

    return CompilationResult(
        target=target,
        success=True,
        duration_ms=duration,
        out_file=out_file,
        exit_code=exit_code,
        artifact=artifact,
    )
