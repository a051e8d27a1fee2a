"""Parallel prime scan used by the multi-threaded benchmark phase.

:func:`run_parallel_prime_scan` splits ``[2, limit]`` into one contiguous
partition per worker and scans each partition in its own
:class:`concurrent.futures.ProcessPoolExecutor` worker.  Workers share no
memory: each receives only its bounds and sends back a single ``frozenset``
of primes.

The coordinator holds one future per partition and joins all of them with
:func:`concurrent.futures.as_completed`, so results are merged in arrival
order and only the coordinating thread touches the merged set.

Two failure modes abort the scan:

``WorkerTimeoutError``
    Not every worker reported before ``timeout`` seconds elapsed.

``WorkerFailedError``
    A worker raised while scanning its partition.  There is no retry; the
    remaining partitions are cancelled.

On either failure the worker processes still running are terminated, so an
abandoned scan does not keep the interpreter from exiting.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import Executor, Future, ProcessPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from time import perf_counter
from typing import Callable, Dict, FrozenSet, List, Set, Tuple

from .compute import find_primes_in_range
from .errors import WorkerFailedError, WorkerTimeoutError

logger = logging.getLogger(__name__)

ScanFunc = Callable[[int, int], FrozenSet[int]]
ExecutorFactory = Callable[..., Executor]


@dataclass(frozen=True)
class PartitionResult:
    """Primes found by a single worker in ``[low, high]``."""

    index: int
    low: int
    high: int
    primes: FrozenSet[int]


@dataclass(frozen=True)
class PrimeScanResult:
    """Outcome of one dispatcher round."""

    elapsed: float
    primes: FrozenSet[int]
    partitions: Tuple[PartitionResult, ...]


def _ensure_positive(name: str, value: int) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value!r}")


def _split_work(amount: int, parts: int) -> List[int]:
    base = amount // parts
    remainder = amount % parts
    return [base + (1 if index < remainder else 0) for index in range(parts)]


def default_worker_count() -> int:
    """Return the number of logical CPUs, falling back to one."""
    return os.cpu_count() or 1


def _terminate_workers(executor: Executor) -> None:
    """Shut *executor* down without waiting and terminate live worker processes.

    Interpreter exit joins process pool workers, so a stuck worker left
    running would keep the process alive after the scan was abandoned.
    """
    terminate = getattr(executor, "terminate_workers", None)
    if callable(terminate):  # Python 3.14+
        terminate()
        return

    # shutdown() clears the process table, so take a copy first.
    processes = dict(getattr(executor, "_processes", None) or {})
    executor.shutdown(wait=False, cancel_futures=True)
    terminated = []
    for process in processes.values():
        try:
            if process.is_alive():
                process.terminate()
                terminated.append(process)
        except (ProcessLookupError, ValueError):
            continue
    for process in terminated:
        process.join(timeout=5)
    if terminated:
        logger.debug("Terminated %d worker processes", len(terminated))


def partition_range(low: int, high: int, parts: int) -> List[Tuple[int, int]]:
    """Split the inclusive range ``[low, high]`` into *parts* contiguous ranges.

    Widths differ by at most one, with the first partitions taking the
    remainder.  When *parts* exceeds the number of values the trailing
    partitions are empty, i.e. ``low > high``.
    """
    _ensure_positive("parts", parts)

    amount = max(0, high - low + 1)
    partitions: List[Tuple[int, int]] = []
    start = low
    for width in _split_work(amount, parts):
        partitions.append((start, start + width - 1))
        start += width
    return partitions


def run_parallel_prime_scan(
    limit: int,
    worker_count: int,
    *,
    timeout: float | None = None,
    executor_factory: ExecutorFactory = ProcessPoolExecutor,
    scan: ScanFunc = find_primes_in_range,
) -> PrimeScanResult:
    """Find every prime in ``[2, limit]`` using *worker_count* workers.

    Parameters
    ----------
    limit:
        Inclusive upper bound of the scan.
    worker_count:
        Number of partitions and of executor workers.
    timeout:
        Seconds to wait for all workers; ``None`` waits indefinitely.
    executor_factory:
        Callable accepting ``max_workers`` that returns an executor.  Worker
        processes are used by default.
    scan:
        Function scanning one inclusive partition.  Must be picklable when a
        process pool is used.

    Returns
    -------
    PrimeScanResult
        Elapsed wall-clock seconds from dispatch until the last worker
        reported, plus the merged primes.
    """

    _ensure_positive("worker_count", worker_count)
    if limit < 0:
        raise ValueError(f"limit must not be negative, got {limit!r}")

    partitions = partition_range(2, limit, worker_count)
    logger.debug("Scanning [2, %d] with %d partitions: %s", limit, worker_count, partitions)

    start = perf_counter()
    executor = executor_factory(max_workers=worker_count)
    pending: Dict[Future, int] = {}
    completed: List[PartitionResult] = []
    merged: Set[int] = set()
    aborted = True
    try:
        for index, (low, high) in enumerate(partitions):
            pending[executor.submit(scan, low, high)] = index

        try:
            for future in as_completed(pending, timeout=timeout):
                index = pending[future]
                low, high = partitions[index]
                try:
                    primes = future.result()
                except Exception as exc:
                    raise WorkerFailedError(
                        f"worker for partition {index} [{low}, {high}] failed: {exc}"
                    ) from exc
                completed.append(
                    PartitionResult(index=index, low=low, high=high, primes=frozenset(primes))
                )
                merged.update(primes)
                logger.debug("Partition %d [%d, %d] reported %d primes", index, low, high, len(primes))
        except FuturesTimeoutError as exc:
            missing = sorted(set(range(len(partitions))) - {result.index for result in completed})
            raise WorkerTimeoutError(
                f"worker did not respond within {timeout}s (partitions still pending: {missing})"
            ) from exc

        elapsed = perf_counter() - start
        aborted = False
    finally:
        if aborted:
            for future in pending:
                future.cancel()
            _terminate_workers(executor)
        else:
            executor.shutdown(wait=True)

    return PrimeScanResult(elapsed=elapsed, primes=frozenset(merged), partitions=tuple(completed))


__all__ = [
    "PartitionResult",
    "PrimeScanResult",
    "default_worker_count",
    "partition_range",
    "run_parallel_prime_scan",
]
