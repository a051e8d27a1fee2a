"""CPU and memory bound workloads measured by the benchmark suite."""

from __future__ import annotations

import math
from time import perf_counter
from typing import FrozenSet


def fibonacci(n: int) -> int:
    """Compute the nth Fibonacci number using the doubly recursive definition.

    No memoization is applied: the exponential call tree is the load.
    """
    if n <= 1:
        return n
    return fibonacci(n - 1) + fibonacci(n - 2)


def is_prime(number: int) -> bool:
    """Return ``True`` when *number* has no divisor other than 1 and itself."""
    if number < 2:
        return False
    for divisor in range(2, math.isqrt(number) + 1):
        if number % divisor == 0:
            return False
    return True


def find_primes_in_range(low: int, high: int) -> FrozenSet[int]:
    """Return the primes ``p`` with ``low <= p <= high`` using trial division.

    An empty range (``low > high``) yields an empty set.
    """
    if low > high:
        return frozenset()
    return frozenset(number for number in range(max(low, 2), high + 1) if is_prime(number))


def memory_pass(buffer: bytearray) -> float:
    """Increment every byte of *buffer* modulo 256 in one sequential pass.

    The buffer is modified in place; the elapsed time of the pass is
    returned in milliseconds.
    """
    start = perf_counter()
    for index in range(len(buffer)):
        buffer[index] = (buffer[index] + 1) % 256
    return (perf_counter() - start) * 1000.0


def run_fibonacci_trial(iterations: int, depth: int) -> float:
    """Compute ``fibonacci(depth)`` *iterations* times and return elapsed seconds."""
    start = perf_counter()
    for _ in range(iterations):
        fibonacci(depth)
    return perf_counter() - start


def run_memory_trial(size: int) -> float:
    """Run :func:`memory_pass` over a fresh zeroed buffer of *size* bytes.

    Allocation is not part of the measurement; the result is in milliseconds.
    """
    buffer = bytearray(size)
    return memory_pass(buffer)


__all__ = [
    "fibonacci",
    "is_prime",
    "find_primes_in_range",
    "memory_pass",
    "run_fibonacci_trial",
    "run_memory_trial",
]
