from __future__ import annotations

import io
import re
from pathlib import Path

import pytest

import cpu_benchmark.benchmark as benchmark
from cpu_benchmark.benchmark import (
    BenchmarkConfig,
    BenchmarkResults,
    CategoryResult,
    FibonacciConfig,
    MemoryConfig,
    PrimeConfig,
)
from cpu_benchmark.errors import BenchmarkError, WorkerTimeoutError


def _small_config() -> BenchmarkConfig:
    return BenchmarkConfig(
        fibonacci=FibonacciConfig(iterations=2, depth=8, runs=2),
        prime=PrimeConfig(limit=500, runs=2),
        memory=MemoryConfig(size=2048, runs=2),
        worker_count=2,
        parallel_timeout=60,
    )


def _fixed_results() -> BenchmarkResults:
    return BenchmarkResults(
        fibonacci=CategoryResult.from_samples(
            name="fibonacci", unit="seconds", samples=[2.0], runs=1, workload_size=40
        ),
        prime=CategoryResult.from_samples(
            name="prime", unit="seconds", samples=[0.5], runs=1, workload_size=100_000
        ),
        memory=CategoryResult.from_samples(
            name="memory",
            unit="milliseconds",
            samples=[1000.0],
            runs=1,
            workload_size=1024,
            score_label="Memory Score",
        ),
    )


def test_mean_and_score_use_all_samples() -> None:
    result = CategoryResult.from_samples(
        name="fibonacci", unit="seconds", samples=[1.0, 2.0, 3.0], runs=3, workload_size=40
    )

    assert result.mean == pytest.approx(2.0)
    assert result.score == 20.0
    assert result.samples == (1.0, 2.0, 3.0)


def test_score_is_rounded_to_two_decimals() -> None:
    result = CategoryResult.from_samples(
        name="prime", unit="seconds", samples=[3.0], runs=1, workload_size=10
    )
    assert result.score == 3.33


def test_partial_samples_are_rejected() -> None:
    with pytest.raises(BenchmarkError):
        CategoryResult.from_samples(
            name="memory", unit="milliseconds", samples=[1.0, 2.0], runs=3, workload_size=10
        )


def test_non_positive_mean_is_rejected() -> None:
    with pytest.raises(BenchmarkError):
        CategoryResult.from_samples(
            name="memory", unit="milliseconds", samples=[0.0], runs=1, workload_size=10
        )


def test_run_trials_is_sequential_and_reports_each_run() -> None:
    calls = []

    def trial() -> float:
        calls.append(len(calls))
        return float(len(calls))

    stream = io.StringIO()
    samples = benchmark.run_trials("Example", trial, 3, stream=stream)

    assert samples == (1.0, 2.0, 3.0)
    assert calls == [0, 1, 2]
    lines = re.findall(r"Example run (\d) completed in (\d+)s (\d+\.\d{3})ms", stream.getvalue())
    assert [run for run, _, _ in lines] == ["1", "2", "3"]


def test_fibonacci_benchmark_single_run() -> None:
    stream = io.StringIO()
    result = benchmark.run_fibonacci_benchmark(
        FibonacciConfig(iterations=40, depth=10, runs=1), stream=stream
    )

    assert len(result.samples) == 1
    assert result.score == round(40 / result.samples[0], 2)
    assert result.unit == "seconds"
    output = stream.getvalue()
    assert "Fibonacci benchmark run 1 completed in" in output
    assert "Fibonacci benchmark completed." in output


def test_memory_benchmark_scores_bytes_per_millisecond() -> None:
    result = benchmark.run_memory_benchmark(MemoryConfig(size=4096, runs=2), stream=io.StringIO())

    assert len(result.samples) == 2
    assert result.unit == "milliseconds"
    assert result.score_label == "Memory Score"
    assert result.score == round(4096 / result.mean, 2)


def test_run_benchmarks_end_to_end() -> None:
    stream = io.StringIO()
    results = benchmark.run_benchmarks(_small_config(), stream=stream)

    assert len(results.fibonacci.samples) == 2
    assert len(results.prime.samples) == 2
    assert len(results.memory.samples) == 2
    assert results.prime.score == round(500 / results.prime.mean, 2)

    output = stream.getvalue()
    assert output.startswith("Benchmark Configuration:")
    assert '"workers": 2' in output
    assert output.index("Fibonacci benchmark completed.") < output.index(
        "Prime number benchmark completed."
    ) < output.index("Memory access speed test completed.")


def test_prime_phase_failure_stops_the_run(monkeypatch: pytest.MonkeyPatch) -> None:
    def hang(*args, **kwargs):
        raise WorkerTimeoutError("worker did not respond")

    monkeypatch.setattr(benchmark, "run_parallel_prime_scan", hang)
    memory_calls = []
    monkeypatch.setattr(benchmark, "run_memory_trial", lambda size: memory_calls.append(size) or 1.0)

    with pytest.raises(WorkerTimeoutError):
        benchmark.run_benchmarks(_small_config(), stream=io.StringIO())
    assert memory_calls == []


def test_config_validation() -> None:
    with pytest.raises(ValueError):
        FibonacciConfig(runs=0)
    with pytest.raises(ValueError):
        FibonacciConfig(depth=-1)
    with pytest.raises(ValueError):
        PrimeConfig(limit=0)
    with pytest.raises(ValueError):
        MemoryConfig(size=0)
    with pytest.raises(ValueError):
        BenchmarkConfig(worker_count=0)
    with pytest.raises(ValueError):
        BenchmarkConfig(parallel_timeout=-1)


def test_default_config_matches_reference_workloads() -> None:
    config = BenchmarkConfig()
    data = config.to_dict()

    assert data["fibonacci"] == {"iterations": 40, "depth": 30, "runs": 5}
    assert data["prime"]["limit"] == 100_000
    assert data["prime"]["workers"] >= 1
    assert data["memory"] == {"size": 100 * 1024 * 1024, "runs": 5}


def test_main_writes_report(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    captured = {}

    def fake_run(config):
        captured["config"] = config
        return _fixed_results()

    monkeypatch.setattr(benchmark, "run_benchmarks", fake_run)
    monkeypatch.setattr(benchmark, "default_destination", lambda: tmp_path)

    exit_code = benchmark.main([])

    assert exit_code == 0
    [report] = list(tmp_path.iterdir())
    assert re.fullmatch(r"cpu-benchmark-\d+\.txt", report.name)
    assert f"Results saved to {report}" in capsys.readouterr().out
    assert captured["config"].parallel_timeout == benchmark.DEFAULT_PARALLEL_TIMEOUT


def test_main_zero_timeout_disables_deadline(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    captured = {}

    def fake_run(config):
        captured["config"] = config
        return _fixed_results()

    monkeypatch.setattr(benchmark, "run_benchmarks", fake_run)
    monkeypatch.setattr(benchmark, "default_destination", lambda: tmp_path)

    assert benchmark.main(["--timeout", "0"]) == 0
    assert captured["config"].parallel_timeout is None


def test_main_reports_failure_without_writing(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fail(config):
        raise WorkerTimeoutError("worker did not respond")

    monkeypatch.setattr(benchmark, "run_benchmarks", fail)
    monkeypatch.setattr(benchmark, "default_destination", lambda: tmp_path)

    assert benchmark.main([]) == 1
    assert list(tmp_path.iterdir()) == []


def test_main_returns_error_when_destination_missing(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setattr(benchmark, "run_benchmarks", lambda config: _fixed_results())
    monkeypatch.setattr(benchmark, "default_destination", lambda: tmp_path / "missing")

    assert benchmark.main([]) == 1


@pytest.mark.parametrize("value", ["-1", "soon"])
def test_main_rejects_invalid_timeout(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], value: str
) -> None:
    calls = []
    monkeypatch.setattr(benchmark, "run_benchmarks", lambda config: calls.append(config))

    with pytest.raises(SystemExit) as excinfo:
        benchmark.main(["--timeout", value])

    assert excinfo.value.code == 2
    assert "--timeout" in capsys.readouterr().err
    assert calls == []
