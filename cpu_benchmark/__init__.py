"""CPU and memory micro-benchmark harness."""

from __future__ import annotations

from .compute import fibonacci, find_primes_in_range, memory_pass
from .errors import BenchmarkError, ReportWriteError, WorkerFailedError, WorkerTimeoutError

__all__ = [
    "fibonacci",
    "find_primes_in_range",
    "memory_pass",
    "BenchmarkError",
    "ReportWriteError",
    "WorkerFailedError",
    "WorkerTimeoutError",
    "run_benchmarks",
    "main",
    "run_parallel_prime_scan",
    "write_report",
]


def __getattr__(name: str):
    if name in {"run_benchmarks", "main"}:
        from . import benchmark as _benchmark

        return getattr(_benchmark, name)
    if name == "run_parallel_prime_scan":
        from . import concurrency as _concurrency

        return getattr(_concurrency, name)
    if name == "write_report":
        from . import reporting as _reporting

        return getattr(_reporting, name)
    raise AttributeError(name)
