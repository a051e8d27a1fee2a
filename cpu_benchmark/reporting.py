"""Plain-text report written at the end of a benchmark run."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING

from .errors import ReportWriteError

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .benchmark import BenchmarkResults, CategoryResult

logger = logging.getLogger(__name__)

FIBONACCI_HEADER = "Single-threaded Fibonacci"
PRIME_HEADER = "Multi-threaded Prime Number"
MEMORY_HEADER = "Memory Access Speed"


def _format_section(header: str, result: "CategoryResult") -> str:
    return (
        f"{header}:\n"
        f"Time Taken: {result.mean:.2f} {result.unit}\n"
        f"{result.score_label}: {result.score:.2f}"
    )


def format_report(results: "BenchmarkResults") -> str:
    sections = [
        _format_section(FIBONACCI_HEADER, results.fibonacci),
        _format_section(PRIME_HEADER, results.prime),
        _format_section(MEMORY_HEADER, results.memory),
    ]
    return "Benchmark Results:\n" + "\n\n".join(sections)


def report_filename(timestamp_ms: int) -> str:
    return f"cpu-benchmark-{timestamp_ms}.txt"


def default_destination() -> Path:
    """Return ``~/Desktop``, the fixed location for reports."""
    return Path.home() / "Desktop"


def write_report(
    results: "BenchmarkResults",
    destination_dir: Path,
    *,
    timestamp_ms: int | None = None,
) -> Path:
    """Write *results* to a new ``cpu-benchmark-<timestamp>.txt`` file.

    The file is created exclusively and never overwritten; if a report with
    the same timestamp already exists the next millisecond is used.  The
    destination directory must already exist.  Any other filesystem failure
    is raised as :class:`ReportWriteError` with the target path attached.
    """

    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000

    content = format_report(results)
    while True:
        path = Path(destination_dir) / report_filename(timestamp_ms)
        try:
            with path.open("x", encoding="utf-8") as handle:
                handle.write(content)
        except FileExistsError:
            timestamp_ms += 1
            continue
        except OSError as exc:
            raise ReportWriteError(path, exc) from exc
        break

    logger.debug("Report written to %s", path)
    return path


__all__ = [
    "FIBONACCI_HEADER",
    "PRIME_HEADER",
    "MEMORY_HEADER",
    "default_destination",
    "format_report",
    "report_filename",
    "write_report",
]
