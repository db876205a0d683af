"""
Dual-sink writer: one batch, two destinations, written concurrently.

Both writes are started together and the writer waits until both have
settled. If either failed, `DualSinkError` is raised naming the failing sink
(and the one that did acknowledge, if any). There is no retry and no
compensating delete; a failed run is meant to be re-run from scratch, which
is safe because every run starts by dropping both destinations.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence

from showdown.domain.models import LoadStats, _Record
from showdown.domain.schema import EntitySpec
from showdown.errors import DualSinkError
from showdown.ingest.sinks import BatchSink
from showdown.utils.logging import get_logger

log = get_logger(__name__)


class DualSinkWriter:
    def __init__(self, primary: BatchSink, secondary: BatchSink) -> None:
        if primary.name == secondary.name:
            raise ValueError("Sinks must have distinct names")
        self.sinks: Sequence[BatchSink] = (primary, secondary)

    @property
    def names(self) -> List[str]:
        return [sink.name for sink in self.sinks]

    async def _each(self, method: str, entities: Sequence[EntitySpec]) -> None:
        # Schema management runs sink by sink; a failure stops the run.
        for sink in self.sinks:
            await getattr(sink, method)(entities)

    async def reset(self, entities: Sequence[EntitySpec]) -> None:
        await self._each("reset", entities)

    async def prepare(self, entities: Sequence[EntitySpec]) -> None:
        await self._each("prepare", entities)

    async def build_indexes(self, entities: Sequence[EntitySpec]) -> None:
        await self._each("build_indexes", entities)

    async def refresh(self, entities: Sequence[EntitySpec]) -> None:
        await self._each("refresh", entities)

    async def counts(self, entity: EntitySpec) -> Dict[str, int]:
        return {sink.name: await sink.count(entity) for sink in self.sinks}

    async def write(
        self,
        entity: EntitySpec,
        batch: List[_Record],
        stats: Optional[LoadStats] = None,
    ) -> int:
        """
        Write `batch` to both sinks and wait for both.

        Returns
        -------
        int
            Batch size, once both sinks acknowledged it.

        Raises
        ------
        DualSinkError
            If at least one sink failed.
        """
        if not batch:
            return 0
        outcomes = await asyncio.gather(
            *(sink.write(entity, [record.to_document() for record in batch]) for sink in self.sinks),
            return_exceptions=True,
        )

        failures: Dict[str, BaseException] = {}
        acknowledged: List[str] = []
        for sink, outcome in zip(self.sinks, outcomes):
            if isinstance(outcome, BaseException):
                failures[sink.name] = outcome
                continue
            acknowledged.append(sink.name)
            if stats is not None:
                stats.acknowledge(entity.name, sink.name, outcome)

        if failures:
            log.error(
                f"[BATCH FAILED] {entity.name}",
                extra={
                    "entity": entity.name,
                    "records": len(batch),
                    "failed": sorted(failures),
                    "acknowledged": acknowledged,
                },
            )
            raise DualSinkError(entity.name, failures, acknowledged)
        return len(batch)


__all__ = ["DualSinkWriter"]
