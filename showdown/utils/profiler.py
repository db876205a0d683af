"""
Profiling utilities for the loader and benchmark runs.

Measures wall-clock time (perf_counter) and resident memory (psutil). The
loader runs on a single event loop, so memory is sampled at explicit points
(block entry/exit and whenever the caller invokes `stats.sample()`, e.g. after
each batch) rather than from a background thread.

Usage:
    from showdown.utils.profiler import profile_block

    with profile_block("load") as stats:
        for batch in batches:
            write(batch)
            stats.sample()

    print(stats.duration_seconds, stats.peak_rss_bytes)
"""

from __future__ import annotations

import contextlib
import time
from dataclasses import dataclass, field
from typing import Any, Generator, Optional

import psutil


@dataclass
class ProfileStats:
    """
    Container for profiling measurements.
    """

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    peak_rss_bytes: Optional[int] = field(default=None)
    samples: int = field(default=0)
    extra: dict[str, Any] = field(default_factory=dict)
    _process: Optional[psutil.Process] = field(default=None, repr=False)

    def sample(self) -> None:
        """Record the current RSS, keeping the maximum seen so far."""
        if self._process is None:
            return
        try:
            rss = self._process.memory_info().rss
        except psutil.Error:
            return
        self.samples += 1
        if self.peak_rss_bytes is None or rss > self.peak_rss_bytes:
            self.peak_rss_bytes = rss

    def elapsed(self) -> float:
        """Seconds since the block started (usable while still inside it)."""
        end = self.end_ts or time.perf_counter()
        return end - self.start_ts


@contextlib.contextmanager
def profile_block(label: str) -> Generator[ProfileStats, None, None]:
    """
    Context manager to profile a block of code.

    Parameters
    ----------
    label : str
        Human-friendly label for the profiled block.
    """
    stats = ProfileStats(label=label, _process=psutil.Process())
    stats.sample()
    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts
        stats.sample()


__all__ = ["ProfileStats", "profile_block"]
