"""
Metrics calculation utilities for the LOB benchmark.

Throughput is always computed over the whole read loop of a strategy
(iterations x payload size / total elapsed time), never averaged from
per-iteration rates.
"""

import numpy as np
from typing import Dict, List

KIB = 1 << 10
MIB = 1 << 20


def throughput_mib_per_second(iterations: int, payload_size: int, elapsed_seconds: float) -> float:
    """
    Aggregate throughput of a read loop.

    Args:
        iterations: Number of complete reads of the payload
        payload_size: Payload size in bytes
        elapsed_seconds: Wall-clock time of the whole loop

    Returns:
        MiB/s, or 0.0 when no measurable time elapsed

    Example:
        >>> throughput_mib_per_second(5, 300 * MIB, 2.5)
        600.0
    """
    if elapsed_seconds <= 0:
        return 0.0
    return iterations * payload_size / elapsed_seconds / MIB


def calculate_metrics(iteration_seconds: List[float], payload_size: int) -> Dict[str, float]:
    """
    Summarise per-iteration read durations.

    Args:
        iteration_seconds: Duration of each iteration in seconds
        payload_size: Payload size in bytes

    Returns:
        Dictionary with:
        - min_s / median_s / max_s: per-iteration durations
        - throughput_mib_s: aggregate throughput over all iterations
        - count: number of iterations
    """
    if not iteration_seconds:
        return {
            'min_s': 0.0,
            'median_s': 0.0,
            'max_s': 0.0,
            'throughput_mib_s': 0.0,
            'count': 0
        }

    timings = np.array(iteration_seconds, dtype=np.float64)

    return {
        'min_s': float(timings.min()),
        'median_s': float(np.median(timings)),
        'max_s': float(timings.max()),
        'throughput_mib_s': throughput_mib_per_second(len(timings), payload_size, float(timings.sum())),
        'count': len(timings)
    }


def format_duration(seconds: float) -> str:
    """
    Render a duration in lower-cased ISO-8601 form without the ``PT`` prefix:
    ``0s``, ``1.234s``, ``2m3.5s``, ``1h2s``.

    Millisecond resolution; trailing zeros of the fraction are dropped.
    """
    millis = int(round(seconds * 1000))
    hours, rest = divmod(millis, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    secs, ms = divmod(rest, 1000)

    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or ms or not parts:
        text = str(secs)
        if ms:
            text += f".{ms:03d}".rstrip("0")
        parts.append(f"{text}s")
    return "".join(parts)
