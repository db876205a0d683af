"""
Descriptive statistics over benchmark operation results.

Latency statistics are computed over successful operations only. Percentiles
use the nearest-rank rule: index ceil(p/100 * n) - 1 into the sorted sample.
Throughput is deliberately simple: successful operations divided by the
slowest observed response time in seconds, not a windowed rate.
"""

from __future__ import annotations

import math
import statistics
from typing import Any, Dict, Iterable, List, Optional, Sequence

from showdown.domain.models import OperationResult

LATENCY_BUCKETS = (
    ("under_50ms", 0.0, 50.0),
    ("50_100ms", 50.0, 100.0),
    ("100_500ms", 100.0, 500.0),
    ("500_1000ms", 500.0, 1000.0),
    ("over_1000ms", 1000.0, math.inf),
)


def _round_float(value: float, decimals: int = 2) -> float:
    """Round a float to specified decimal places for human-readable output."""
    return round(value, decimals)


def percentile(values: Sequence[float], p: float) -> float:
    """
    Nearest-rank percentile.

    >>> percentile([10, 20, 30, 40, 50, 100, 200, 300, 400, 1000], 95)
    1000
    """
    if not values:
        return 0.0
    if not 0 < p <= 100:
        raise ValueError("p must be in (0, 100]")
    ordered = sorted(values)
    index = max(0, math.ceil(p / 100 * len(ordered)) - 1)
    return ordered[index]


def median(values: Sequence[float]) -> float:
    """Middle value; mean of the two middle values for an even count."""
    if not values:
        return 0.0
    return statistics.median(values)


def summarize(results: Sequence[OperationResult]) -> Dict[str, Any]:
    """Aggregate one database pass."""
    total = len(results)
    times = [r.response_time_ms for r in results if r.success]
    successful = len(times)

    if not times:
        return {
            "total_operations": total,
            "successful": 0,
            "failed": total,
            "success_rate": 0.0,
            "avg_response_time": 0.0,
            "min_response_time": 0.0,
            "max_response_time": 0.0,
            "median_response_time": 0.0,
            "p50_response_time": 0.0,
            "p95_response_time": 0.0,
            "p99_response_time": 0.0,
            "total_response_time": 0.0,
            "ops_per_second": 0.0,
        }

    slowest = max(times)
    return {
        "total_operations": total,
        "successful": successful,
        "failed": total - successful,
        "success_rate": _round_float(successful / total * 100),
        "avg_response_time": _round_float(statistics.fmean(times)),
        "min_response_time": _round_float(min(times)),
        "max_response_time": _round_float(slowest),
        "median_response_time": _round_float(median(times)),
        "p50_response_time": _round_float(percentile(times, 50)),
        "p95_response_time": _round_float(percentile(times, 95)),
        "p99_response_time": _round_float(percentile(times, 99)),
        "total_response_time": _round_float(sum(times)),
        "ops_per_second": _round_float(successful / (slowest / 1000)) if slowest > 0 else 0.0,
    }


def error_types(messages: Iterable[Optional[str]]) -> Dict[str, int]:
    """Histogram of error classes, keyed by the text before the first colon."""
    counts: Dict[str, int] = {}
    for message in messages:
        if not message:
            continue
        kind = message.split(":", 1)[0].strip() or "Unknown Error"
        counts[kind] = counts.get(kind, 0) + 1
    return counts


def latency_breakdown(results: Sequence[OperationResult]) -> Dict[str, int]:
    """Count successful operations per latency bucket."""
    breakdown = {label: 0 for label, _, _ in LATENCY_BUCKETS}
    for result in results:
        if not result.success:
            continue
        for label, low, high in LATENCY_BUCKETS:
            if low <= result.response_time_ms < high:
                breakdown[label] += 1
                break
    return breakdown


def database_block(name: str, results: Sequence[OperationResult], max_errors: int = 5) -> Dict[str, Any]:
    """Stats plus error details for one database, as published in a report."""
    errors: List[str] = [r.error_message for r in results if not r.success and r.error_message]
    block = summarize(results)
    block.update(
        {
            "database": name,
            "errors": errors[:max_errors],
            "error_types": error_types(errors),
            "latency_breakdown": latency_breakdown(results),
        }
    )
    return block


def compare(first: Dict[str, Any], second: Dict[str, Any]) -> Dict[str, Any]:
    """
    Head-to-head between two database blocks.

    The winner has the lower average response time; a database with no
    successful operation cannot win against one that has some. On a tie the
    second database wins.
    """
    a_avg, b_avg = first["avg_response_time"], second["avg_response_time"]
    if first["successful"] == 0 and second["successful"] > 0:
        winner, loser = second, first
    elif second["successful"] == 0 and first["successful"] > 0:
        winner, loser = first, second
    elif a_avg < b_avg:
        winner, loser = first, second
    else:
        winner, loser = second, first

    slower = loser["avg_response_time"]
    advantage_ms = max(0.0, slower - winner["avg_response_time"])
    return {
        "winner": winner["database"],
        "advantage_ms": _round_float(advantage_ms),
        "advantage_percent": _round_float(advantage_ms / slower * 100) if slower > 0 else 0.0,
        "success_rate_diff": _round_float(first["success_rate"] - second["success_rate"]),
        "performance_ratio": _round_float(b_avg / a_avg) if a_avg else 1.0,
    }


__all__ = [
    "percentile",
    "median",
    "summarize",
    "error_types",
    "latency_breakdown",
    "database_block",
    "compare",
]
