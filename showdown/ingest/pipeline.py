"""
Ingestion pipeline: CSV files -> transform -> batch -> dual-sink write.

A run walks a fixed sequence of states:

    IDLE -> DROPPING_EXISTING -> CREATING_SCHEMAS -> LOADING_USERS
         -> LOADING_CARDS -> LOADING_TRANSACTIONS -> CREATING_INDEXES -> DONE

and drops to FAILED from any of them. Entities load strictly one after the
other (transactions reference users and cards) and only one batch is in
flight at a time. Secondary indexes are built after the bulk load.

Usage:
    writer = DualSinkWriter(MongoSink(db), ElasticsearchSink(es))
    pipeline = IngestionPipeline(writer, progress=ProgressReporter(notifier))
    summary = await pipeline.run("/data/kaggle-finance")
"""

from __future__ import annotations

import enum
from contextlib import closing
from functools import partial
from pathlib import Path
from typing import Dict, List, Optional, Sequence, TypedDict

from showdown.domain.models import LoadStats
from showdown.domain.schema import ENTITIES, EntitySpec
from showdown.errors import IngestionError, MissingInputError
from showdown.ingest.batching import BatchAccumulator, iter_batches
from showdown.ingest.progress import ProgressReporter
from showdown.ingest.source import discover_inputs, iter_records, read_rows
from showdown.ingest.transform import SourceFormat, transformer_for
from showdown.ingest.writer import DualSinkWriter
from showdown.utils.logging import get_logger
from showdown.utils.profiler import ProfileStats, profile_block

log = get_logger(__name__)


class LoadState(str, enum.Enum):
    IDLE = "idle"
    DROPPING_EXISTING = "dropping_existing"
    CREATING_SCHEMAS = "creating_schemas"
    LOADING_USERS = "loading_users"
    LOADING_CARDS = "loading_cards"
    LOADING_TRANSACTIONS = "loading_transactions"
    CREATING_INDEXES = "creating_indexes"
    DONE = "done"
    FAILED = "failed"


_LOADING_STATES: Dict[str, LoadState] = {
    "users": LoadState.LOADING_USERS,
    "cards": LoadState.LOADING_CARDS,
    "transactions": LoadState.LOADING_TRANSACTIONS,
}

_RUNNING = frozenset(
    {
        LoadState.DROPPING_EXISTING,
        LoadState.CREATING_SCHEMAS,
        LoadState.LOADING_USERS,
        LoadState.LOADING_CARDS,
        LoadState.LOADING_TRANSACTIONS,
        LoadState.CREATING_INDEXES,
    }
)


class LoadSummary(TypedDict, total=False):
    """Result of a completed run."""

    users: int
    cards: int
    transactions: int
    rows_read: int
    skipped: int
    elapsed_seconds: float
    peak_rss_bytes: Optional[int]
    databases: List[str]
    per_destination: Dict[str, Dict[str, int]]
    files: Dict[str, str]
    batch_size: int
    transaction_limit: Optional[int]
    state: str


class IngestionPipeline:
    """
    Load the users, cards and transactions files into both destinations.

    Parameters
    ----------
    writer : DualSinkWriter
        Destination pair; the pipeline never talks to a sink directly.
    progress : ProgressReporter | None
        Observer for coarse progress events. None means no events.
    batch_size : int
        Records per bulk write.
    transaction_limit : int | None
        Optional cap on transactions loaded; reading stops once it is hit.
    source_format : SourceFormat
        Which producer's boolean spellings the CSV files use.
    transaction_estimate : int | None
        Approximate transaction count, used only for percent-complete.
    """

    def __init__(
        self,
        writer: DualSinkWriter,
        progress: Optional[ProgressReporter] = None,
        batch_size: int = 10_000,
        transaction_limit: Optional[int] = None,
        source_format: SourceFormat = SourceFormat.DIRECT,
        transaction_estimate: Optional[int] = None,
        entities: Sequence[EntitySpec] = ENTITIES,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.writer = writer
        self.progress = progress or ProgressReporter()
        self.batch_size = batch_size
        self.transaction_limit = transaction_limit
        self.source_format = source_format
        self.transaction_estimate = transaction_estimate
        self.entities = tuple(entities)
        self.state = LoadState.IDLE
        self.history: List[LoadState] = [LoadState.IDLE]
        self.stats = LoadStats()

    def _transition(self, state: LoadState) -> None:
        log.debug(f"[STATE] {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def _expected_total(self, spec: EntitySpec) -> Optional[int]:
        if spec.name != "transactions":
            return None
        estimates = [n for n in (self.transaction_limit, self.transaction_estimate) if n]
        return min(estimates) if estimates else None

    async def _load_entity(
        self, spec: EntitySpec, path: Path, index: int, profile: ProfileStats
    ) -> int:
        cap = self.transaction_limit if spec.name == "transactions" else None
        accumulator: BatchAccumulator = BatchAccumulator(self.batch_size, cap=cap)
        expected_total = self._expected_total(spec)
        transform = transformer_for(spec.name, self.source_format)

        log.info(
            f"[ENTITY START] {spec.name} from {path.name}",
            extra={"entity": spec.name, "file": str(path), "cap": cap},
        )
        self.progress.stage_started(spec.name, index)

        written = 0
        with closing(read_rows(path)) as rows:
            records = iter_records(
                rows,
                transform,
                on_read=partial(self.stats.row_read, spec.name),
                on_skip=partial(self.stats.row_skipped, spec.name),
            )
            for batch in iter_batches(records, accumulator):
                written += await self.writer.write(spec, batch, self.stats)
                profile.sample()
                log.debug(
                    f"[BATCH] {spec.name} +{len(batch)} ({written:,} total)",
                    extra={"entity": spec.name, "records": len(batch), "total": written},
                )
                self.progress.advance(
                    spec.name, index, written, spec.progress_interval, expected_total
                )

        if accumulator.exhausted:
            log.info(
                f"[LIMIT] Reached {spec.name} limit of {cap:,}",
                extra={"entity": spec.name, "cap": cap},
            )
        self.progress.stage_completed(spec.name, index, written)
        log.info(
            f"[ENTITY COMPLETE] {spec.name}: {written:,} loaded",
            extra={"entity": spec.name, "records": written},
        )
        return written

    async def run(self, data_path: Path | str) -> LoadSummary:
        """
        Execute one full load.

        Raises
        ------
        MissingInputError
            Before anything is dropped, if the directory or a file is missing.
        IngestionError
            If any destination call fails; carries the partial counts.
        """
        if self.state in _RUNNING:
            raise RuntimeError("A load is already running on this pipeline")
        self.state = LoadState.IDLE
        self.history = [LoadState.IDLE]
        self.stats = LoadStats()
        self.progress.started()

        try:
            files = discover_inputs(data_path, self.entities)
        except MissingInputError as exc:
            self._transition(LoadState.FAILED)
            self.progress.failed(LoadState.IDLE.value, str(exc))
            log.error(f"[LOAD FAILED] {exc}", extra={"missing": exc.missing})
            raise

        log.info(
            f"[LOAD START] batch_size={self.batch_size} limit={self.transaction_limit}",
            extra={"sinks": self.writer.names, "batch_size": self.batch_size},
        )
        per_destination: Dict[str, Dict[str, int]] = {}
        with profile_block("load") as profile:
            try:
                self._transition(LoadState.DROPPING_EXISTING)
                await self.writer.reset(self.entities)

                self._transition(LoadState.CREATING_SCHEMAS)
                await self.writer.prepare(self.entities)

                for index, spec in enumerate(self.entities, start=1):
                    self._transition(_LOADING_STATES[spec.name])
                    await self._load_entity(spec, files[spec.name], index, profile)

                self._transition(LoadState.CREATING_INDEXES)
                self.progress.indexing(len(self.entities) + 1)
                await self.writer.build_indexes(self.entities)

                await self.writer.refresh(self.entities)
                for spec in self.entities:
                    for sink, count in (await self.writer.counts(spec)).items():
                        per_destination.setdefault(sink, {})[spec.name] = count
            except Exception as exc:
                failed_in = self.state
                self._transition(LoadState.FAILED)
                self.progress.failed(failed_in.value, str(exc))
                log.exception(
                    f"[LOAD FAILED] during {failed_in.value}",
                    extra={"state": failed_in.value, "stats": self.stats.snapshot()},
                )
                raise IngestionError(
                    f"Load failed during {failed_in.value}: {exc}",
                    state=failed_in.value,
                    stats=self.stats.snapshot(),
                ) from exc

        self._transition(LoadState.DONE)
        summary = LoadSummary(
            rows_read=sum(c.read for c in self.stats.entities.values()),
            skipped=self.stats.skipped(),
            elapsed_seconds=round(profile.duration_seconds, 2),
            peak_rss_bytes=profile.peak_rss_bytes,
            databases=self.writer.names,
            per_destination=per_destination,
            files={name: path.name for name, path in files.items()},
            batch_size=self.batch_size,
            transaction_limit=self.transaction_limit,
            state=self.state.value,
        )
        for spec in self.entities:
            summary[spec.name] = self.stats.loaded(spec.name)  # type: ignore[literal-required]
        self.progress.completed(dict(summary))
        log.info(
            "[LOAD COMPLETE] "
            + ", ".join(f"{spec.name}={summary.get(spec.name, 0):,}" for spec in self.entities),
            extra={"elapsed_seconds": summary["elapsed_seconds"]},
        )
        return summary


__all__ = ["IngestionPipeline", "LoadState", "LoadSummary"]
