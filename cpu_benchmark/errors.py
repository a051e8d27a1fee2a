"""Exceptions raised by the benchmark harness."""

from __future__ import annotations


class BenchmarkError(RuntimeError):
    """Base class for failures that abort a benchmark run."""


class WorkerTimeoutError(BenchmarkError):
    """Raised when parallel workers do not report before the deadline."""


class WorkerFailedError(BenchmarkError):
    """Raised when a parallel worker raises while scanning its partition."""


class ReportWriteError(BenchmarkError):
    """Raised when the results report cannot be written."""

    def __init__(self, path: object, cause: BaseException) -> None:
        super().__init__(f"could not write report to '{path}': {cause}")
        self.path = path
        self.cause = cause


__all__ = [
    "BenchmarkError",
    "WorkerTimeoutError",
    "WorkerFailedError",
    "ReportWriteError",
]
