"""
Ingestion package: CSV transform, batching, dual-sink writes and the
pipeline that sequences them.
"""

from showdown.ingest.batching import BatchAccumulator, iter_batches
from showdown.ingest.pipeline import IngestionPipeline, LoadState, LoadSummary
from showdown.ingest.progress import ProgressReporter
from showdown.ingest.sinks import BatchSink, ElasticsearchSink, MongoSink
from showdown.ingest.source import discover_inputs
from showdown.ingest.transform import SourceFormat, transformer_for
from showdown.ingest.writer import DualSinkWriter

__all__ = [
    "BatchAccumulator",
    "iter_batches",
    "IngestionPipeline",
    "LoadState",
    "LoadSummary",
    "ProgressReporter",
    "BatchSink",
    "ElasticsearchSink",
    "MongoSink",
    "discover_inputs",
    "SourceFormat",
    "transformer_for",
    "DualSinkWriter",
]
