"""
Database showdown - load one financial dataset into a document store and a
search engine, then race them on identical read workloads.

This package provides:

- A streaming CSV loader that writes every batch to MongoDB and
  Elasticsearch concurrently, in dependency order (users, cards, transactions)
- A benchmark harness that times a rotation of read/aggregate queries
  against each store and compares latency percentiles and throughput
- Progress and per-operation events for any attached observer
- A relational results log and leaderboard
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from showdown.benchmark import BenchmarkHarness, BenchmarkRun
from showdown.config import Settings, get_settings
from showdown.ingest import (
    BatchAccumulator,
    DualSinkWriter,
    IngestionPipeline,
    LoadState,
    ProgressReporter,
)
from showdown.notify import BroadcastNotifier, Notifier, NullNotifier
from showdown.utils.logging import configure_logging, get_logger
from showdown.utils.profiler import ProfileStats, profile_block

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Ingestion
    "BatchAccumulator",
    "DualSinkWriter",
    "IngestionPipeline",
    "LoadState",
    "ProgressReporter",
    # Benchmark
    "BenchmarkHarness",
    "BenchmarkRun",
    # Notifications
    "BroadcastNotifier",
    "Notifier",
    "NullNotifier",
    # Logging
    "configure_logging",
    "get_logger",
    # Profiling
    "ProfileStats",
    "profile_block",
]
