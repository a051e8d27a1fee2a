"""Run the CPU and memory benchmark suite and save a report to the Desktop.

Three categories are measured in order, each repeated a fixed number of
times and averaged:

* single-threaded recursive Fibonacci,
* multi-process prime scan across all logical CPUs,
* sequential memory read/modify/write over a byte buffer.
"""

from __future__ import annotations

import argparse
import json
import logging
import platform
import statistics
import sys
from dataclasses import asdict, dataclass, field
from time import perf_counter
from typing import Callable, Dict, Iterable, Optional, Sequence, TextIO, Tuple

from .compute import run_fibonacci_trial, run_memory_trial
from .concurrency import _ensure_positive, default_worker_count, run_parallel_prime_scan
from .errors import BenchmarkError
from .progress import Spinner
from .reporting import default_destination, write_report

logger = logging.getLogger(__name__)

TrialFunc = Callable[[], float]

DEFAULT_PARALLEL_TIMEOUT = 300.0


@dataclass(frozen=True)
class FibonacciConfig:
    iterations: int = 40
    depth: int = 30
    runs: int = 5

    def __post_init__(self) -> None:
        _ensure_positive("iterations", self.iterations)
        _ensure_positive("runs", self.runs)
        if self.depth < 0:
            raise ValueError(f"depth must not be negative, got {self.depth!r}")


@dataclass(frozen=True)
class PrimeConfig:
    limit: int = 100_000
    runs: int = 5

    def __post_init__(self) -> None:
        _ensure_positive("limit", self.limit)
        _ensure_positive("runs", self.runs)


@dataclass(frozen=True)
class MemoryConfig:
    size: int = 100 * 1024 * 1024
    runs: int = 5

    def __post_init__(self) -> None:
        _ensure_positive("size", self.size)
        _ensure_positive("runs", self.runs)


@dataclass(frozen=True)
class BenchmarkConfig:
    """Complete, immutable configuration for one invocation."""

    fibonacci: FibonacciConfig = field(default_factory=FibonacciConfig)
    prime: PrimeConfig = field(default_factory=PrimeConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    worker_count: Optional[int] = None
    parallel_timeout: Optional[float] = DEFAULT_PARALLEL_TIMEOUT

    def __post_init__(self) -> None:
        if self.worker_count is not None:
            _ensure_positive("worker_count", self.worker_count)
        if self.parallel_timeout is not None and self.parallel_timeout <= 0:
            raise ValueError(
                f"parallel_timeout must be positive or None, got {self.parallel_timeout!r}"
            )

    @property
    def workers(self) -> int:
        return self.worker_count if self.worker_count is not None else default_worker_count()

    def to_dict(self) -> Dict[str, object]:
        return {
            "fibonacci": asdict(self.fibonacci),
            "prime": {**asdict(self.prime), "workers": self.workers},
            "memory": asdict(self.memory),
            "parallel_timeout": self.parallel_timeout,
        }


@dataclass(frozen=True)
class CategoryResult:
    """Mean duration and throughput score for one benchmark category."""

    name: str
    unit: str
    samples: Tuple[float, ...]
    mean: float
    score: float
    score_label: str = "CPU Score"

    @classmethod
    def from_samples(
        cls,
        *,
        name: str,
        unit: str,
        samples: Sequence[float],
        runs: int,
        workload_size: int,
        score_label: str = "CPU Score",
    ) -> "CategoryResult":
        """Average *samples* and derive ``workload_size / mean``.

        All *runs* samples must be present; partial sequences are rejected.
        """
        if len(samples) != runs:
            raise BenchmarkError(
                f"{name}: expected {runs} samples, got {len(samples)}"
            )
        mean = statistics.mean(samples)
        if mean <= 0:
            raise BenchmarkError(f"{name}: mean duration must be positive, got {mean!r}")
        return cls(
            name=name,
            unit=unit,
            samples=tuple(samples),
            mean=mean,
            score=round(workload_size / mean, 2),
            score_label=score_label,
        )


@dataclass(frozen=True)
class BenchmarkResults:
    fibonacci: CategoryResult
    prime: CategoryResult
    memory: CategoryResult


def _split_elapsed(elapsed: float) -> Tuple[int, float]:
    seconds = int(elapsed)
    return seconds, (elapsed - seconds) * 1000.0


def run_trials(label: str, trial: TrialFunc, runs: int, *, stream: TextIO) -> Tuple[float, ...]:
    """Execute *trial* sequentially *runs* times and collect its samples."""

    _ensure_positive("runs", runs)

    samples = []
    for index in range(runs):
        start = perf_counter()
        samples.append(trial())
        seconds, millis = _split_elapsed(perf_counter() - start)
        print(f"\n{label} run {index + 1} completed in {seconds}s {millis:.3f}ms", file=stream)
    return tuple(samples)


def run_fibonacci_benchmark(config: FibonacciConfig, *, stream: TextIO = sys.stdout) -> CategoryResult:
    print("Running single-threaded Fibonacci benchmark...", file=stream)
    with Spinner("Fibonacci benchmark in progress...", stream=stream):
        samples = run_trials(
            "Fibonacci benchmark",
            lambda: run_fibonacci_trial(config.iterations, config.depth),
            config.runs,
            stream=stream,
        )
    print("Fibonacci benchmark completed.", file=stream)
    return CategoryResult.from_samples(
        name="fibonacci",
        unit="seconds",
        samples=samples,
        runs=config.runs,
        workload_size=config.iterations,
    )


def run_prime_benchmark(
    config: PrimeConfig,
    *,
    worker_count: int,
    timeout: Optional[float] = DEFAULT_PARALLEL_TIMEOUT,
    stream: TextIO = sys.stdout,
) -> CategoryResult:
    print("Running multi-threaded prime number benchmark...", file=stream)
    with Spinner("Prime number benchmark in progress...", stream=stream):
        samples = run_trials(
            "Prime number benchmark",
            lambda: run_parallel_prime_scan(config.limit, worker_count, timeout=timeout).elapsed,
            config.runs,
            stream=stream,
        )
    print("Prime number benchmark completed.", file=stream)
    return CategoryResult.from_samples(
        name="prime",
        unit="seconds",
        samples=samples,
        runs=config.runs,
        workload_size=config.limit,
    )


def run_memory_benchmark(config: MemoryConfig, *, stream: TextIO = sys.stdout) -> CategoryResult:
    print("Running memory access speed test...", file=stream)
    with Spinner("Memory access speed test in progress...", stream=stream):
        samples = run_trials(
            "Memory access speed test",
            lambda: run_memory_trial(config.size),
            config.runs,
            stream=stream,
        )
    print("Memory access speed test completed.", file=stream)
    return CategoryResult.from_samples(
        name="memory",
        unit="milliseconds",
        samples=samples,
        runs=config.runs,
        workload_size=config.size,
        score_label="Memory Score",
    )


def run_benchmarks(config: BenchmarkConfig, *, stream: TextIO = sys.stdout) -> BenchmarkResults:
    """Run every category in order and return the aggregated results."""

    print("Benchmark Configuration:", file=stream)
    print(json.dumps(config.to_dict(), indent=2), file=stream)
    logger.debug(
        "Python %s (%s), %d workers",
        platform.python_version(),
        platform.python_implementation(),
        config.workers,
    )

    fibonacci_result = run_fibonacci_benchmark(config.fibonacci, stream=stream)
    prime_result = run_prime_benchmark(
        config.prime,
        worker_count=config.workers,
        timeout=config.parallel_timeout,
        stream=stream,
    )
    memory_result = run_memory_benchmark(config.memory, stream=stream)
    return BenchmarkResults(fibonacci=fibonacci_result, prime=prime_result, memory=memory_result)


def _timeout_seconds(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid timeout: {value!r}") from None
    if seconds < 0:
        raise argparse.ArgumentTypeError(f"timeout must not be negative, got {value!r}")
    return seconds


def main(args: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--timeout",
        type=_timeout_seconds,
        default=DEFAULT_PARALLEL_TIMEOUT,
        help="Seconds to wait for each parallel prime round (0 waits forever)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    parsed = parser.parse_args(args=args)

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = BenchmarkConfig(parallel_timeout=parsed.timeout or None)
    try:
        results = run_benchmarks(config)
        path = write_report(results, default_destination())
    except BenchmarkError as exc:
        logger.error("Benchmark failed: %s", exc)
        return 1

    print(f"Results saved to {path}")
    return 0


__all__ = [
    "BenchmarkConfig",
    "BenchmarkResults",
    "CategoryResult",
    "FibonacciConfig",
    "MemoryConfig",
    "PrimeConfig",
    "main",
    "run_benchmarks",
    "run_fibonacci_benchmark",
    "run_memory_benchmark",
    "run_prime_benchmark",
    "run_trials",
]


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
