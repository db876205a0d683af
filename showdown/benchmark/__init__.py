"""
Benchmark package: query shapes, database targets, statistics and the
harness that runs the comparison.
"""

from showdown.benchmark.harness import BenchmarkHarness, BenchmarkRun
from showdown.benchmark.queries import QUERY_SETS, QueryShape, rotation
from showdown.benchmark.stats import compare, percentile, summarize
from showdown.benchmark.targets import BenchmarkTarget, ElasticsearchTarget, MongoTarget

__all__ = [
    "BenchmarkHarness",
    "BenchmarkRun",
    "QUERY_SETS",
    "QueryShape",
    "rotation",
    "compare",
    "percentile",
    "summarize",
    "BenchmarkTarget",
    "ElasticsearchTarget",
    "MongoTarget",
]
