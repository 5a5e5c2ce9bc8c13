"""
Options — validate raw compile options and resolve the final target list.

Every check here runs before any subprocess is spawned.  Failures are
configuration errors that abort the run.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from crossbuild import MAX_CONCURRENCY
from crossbuild.config import Settings, settings as default_settings
from crossbuild.core.catalog import is_valid_target
from crossbuild.errors import (
    InvalidConcurrency,
    InvalidEntry,
    NoTargetsSelected,
    SelectionCancelled,
)
from crossbuild.policy.selection import ExplicitSelector, TargetSelector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompileOptions:
    """Fully resolved options for one compile run."""

    entries: Tuple[str, ...]
    targets: Tuple[str, ...]
    out_dir: str = "dist"
    out_file_prefix: str = ""
    minify: bool = False
    sourcemap: bool = False
    bytecode: bool = False
    clean_out_dir: bool = False
    max_concurrency: int = min(4, MAX_CONCURRENCY)


# ── Validation ───────────────────────────────────────────────────────────────

def validate_entries(entries: Optional[Sequence[str]]) -> Tuple[str, ...]:
    if isinstance(entries, (str, Path)):
        entries = [entries]
    if not entries:
        raise InvalidEntry("Entry file path is required and cannot be empty")

    checked = []
    for entry in entries:
        entry = str(entry)
        if not entry.strip():
            raise InvalidEntry("Entry file path is required and cannot be empty")
        if not Path(entry).exists():
            raise InvalidEntry(f"Entry file not found: {entry}")
        checked.append(entry)
    return tuple(checked)


def validate_concurrency(value: Optional[int], default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConcurrency(f"maxConcurrency must be an integer, got {value!r}")
    if value < 1 or value > MAX_CONCURRENCY:
        raise InvalidConcurrency(f"maxConcurrency must be between 1 and {MAX_CONCURRENCY}")
    return value


def filter_targets(targets: Optional[Iterable[str]]) -> List[str]:
    """Keep catalog targets only, first occurrence wins."""
    kept: List[str] = []
    for target in targets or ():
        if not is_valid_target(target):
            logger.debug("Dropping unknown target %r", target)
            continue
        if target not in kept:
            kept.append(target)
    return kept


def resolve_targets(
    targets: Optional[Iterable[str]],
    selector: Optional[TargetSelector] = None,
) -> Tuple[str, ...]:
    """
    Filter the requested targets; fall back to *selector* when none survive.

    Raises NoTargetsSelected when the selector is cancelled or only yields
    unknown targets.
    """
    kept = filter_targets(targets)
    if kept:
        return tuple(kept)

    if selector is None:
        selector = ExplicitSelector()

    try:
        selected = selector.select()
    except SelectionCancelled as e:
        raise NoTargetsSelected(f"At least one target has to be provided! ({e})") from e

    kept = filter_targets(selected)
    if not kept:
        raise NoTargetsSelected("At least one target has to be provided!")
    return tuple(kept)


# ── Resolver ─────────────────────────────────────────────────────────────────

def resolve_options(
    entries: Optional[Sequence[str]],
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
) -> CompileOptions:
    """
    Merge caller options with defaults into a validated CompileOptions.

    Entries and concurrency are checked before targets so that a bad
    invocation never reaches the interactive selector.
    """
    if settings is None:
        settings = default_settings

    checked_entries = validate_entries(entries)
    concurrency = validate_concurrency(max_concurrency, settings.default_concurrency)
    resolved = resolve_targets(targets, selector)

    return CompileOptions(
        entries=checked_entries,
        targets=resolved,
        out_dir=out_dir or settings.DEFAULT_OUT_DIR,
        out_file_prefix=out_file_prefix or "",
        minify=bool(minify),
        sourcemap=bool(sourcemap),
        bytecode=bool(bytecode),
        clean_out_dir=bool(clean_out_dir),
        max_concurrency=concurrency,
    )
