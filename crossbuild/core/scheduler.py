"""
Scheduler — compile a target list on a bounded pool of worker threads.

    results = [None] * N                  pre-sized, one slot per target
    W = min(max_concurrency, N) workers, each looping:
        i = cursor.claim()                lock-guarded fetch-and-increment
        if i is None: exit
        results[i] = compile(targets[i])  slot i is owned by this worker
        progress.increment()              lock-guarded

Completion order is free; storage order always equals target order.
A failure in one target is recorded in its own slot and never stops the
pool.  The call returns after every worker has exited.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

from crossbuild.core.compiler import compile_target, out_file_path
from crossbuild.core.options import CompileOptions
from crossbuild.io.schema import CompilationResult

logger = logging.getLogger(__name__)

CompileFn = Callable[[str, CompileOptions], CompilationResult]
ProgressFn = Callable[[int, int, CompilationResult], None]


class WorkCursor:
    """Shared next-index counter.  Each index is handed out exactly once."""

    def __init__(self, total: int):
        self.total = total
        self._next = 0
        self._lock = threading.Lock()

    def claim(self) -> Optional[int]:
        with self._lock:
            if self._next >= self.total:
                return None
            index = self._next
            self._next += 1
            return index


class ProgressCounter:
    def __init__(self, total: int):
        self.total = total
        self._done = 0
        self._lock = threading.Lock()

    def increment(self) -> int:
        with self._lock:
            self._done += 1
            return self._done

    @property
    def done(self) -> int:
        with self._lock:
            return self._done


def _failed_result(target: str, options: CompileOptions, error: BaseException) -> CompilationResult:
    return CompilationResult(
        target=target,
        success=False,
        error=str(error) or "Unknown error",
        duration_ms=0,
        out_file=out_file_path(options.out_file_prefix, target, options.out_dir),
    )


def compile_targets(
    targets: Sequence[str],
    max_concurrency: int,
    options: CompileOptions,
    compile_fn: Optional[CompileFn] = None,
    on_progress: Optional[ProgressFn] = None,
) -> List[CompilationResult]:
    """
    Compile every target with at most *max_concurrency* in flight.

    Parameters
    ----------
    targets : sequence of str
        Resolved target list.  Result slot *i* belongs to ``targets[i]``.
    max_concurrency : int
        Worker count upper bound (already validated by the resolver).
    options : CompileOptions
        Shared, immutable options passed to every compilation.
    compile_fn : callable, optional
        ``(target, options) -> CompilationResult``.  Defaults to
        ``compile_target``.
    on_progress : callable, optional
        ``(completed, total, result)`` after each slot is written.

    Returns
    -------
    list of CompilationResult, same length and order as *targets*.
    """
    if compile_fn is None:
        compile_fn = compile_target

    targets = list(targets)
    total = len(targets)
    if total == 0:
        return []

    results: List[Optional[CompilationResult]] = [None] * total
    cursor = WorkCursor(total)
    progress = ProgressCounter(total)
    n_workers = max(1, min(max_concurrency, total))

    def worker() -> None:
        while True:
            index = cursor.claim()
            if index is None:
                return

            target = targets[index]
            try:
                results[index] = compile_fn(target, options)
            except Exception as e:
                logger.error("%s: compilation raised %s", target, e, exc_info=True)
                results[index] = _failed_result(target, options, e)

            completed = progress.increment()
            logger.info("Completed: %d/%d targets", completed, total)
            if on_progress is not None:
                try:
                    on_progress(completed, total, results[index])
                except Exception as e:
                    logger.warning("Progress callback failed: %s", e)

    logger.debug("Starting %d worker(s) for %d target(s)", n_workers, total)
    with ThreadPoolExecutor(max_workers=n_workers, thread_name_prefix="crossbuild") as executor:
        futures = [executor.submit(worker) for _ in range(n_workers)]
        for future in futures:
            future.result()

    missing = [targets[i] for i, r in enumerate(results) if r is None]
    if missing:
        raise RuntimeError(f"Result slots never written for: {', '.join(missing)}")
    return results  # type: ignore[return-value]
