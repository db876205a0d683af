"""
Exception hierarchy for the loader and the benchmark harness.

Row-level problems (`RowSkipped`) are always recovered inside the pipeline.
Destination failures (`SinkWriteError`, `DualSinkError`) are fatal to an
ingestion run and surface to the caller wrapped in `IngestionError`, which
also carries whatever counts were gathered before the failure.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional


class ShowdownError(Exception):
    """Base class for all project errors."""


class MissingInputError(ShowdownError):
    """The data directory or one of the required CSV files is absent."""

    def __init__(self, message: str, missing: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.missing: List[str] = list(missing)


class RowSkipped(ShowdownError):
    """A CSV row could not be turned into a record."""


class SinkWriteError(ShowdownError):
    """A single destination rejected a batch."""

    def __init__(self, sink: str, entity: str, message: str) -> None:
        super().__init__(f"{sink}: {entity}: {message}")
        self.sink = sink
        self.entity = entity


class DualSinkError(ShowdownError):
    """
    One or both destinations failed to write a batch.

    `failures` maps sink name to the exception it raised; `acknowledged` lists
    the sinks that did persist the batch, i.e. where the stores now diverge.
    """

    def __init__(
        self,
        entity: str,
        failures: Mapping[str, BaseException],
        acknowledged: Iterable[str] = (),
    ) -> None:
        self.entity = entity
        self.failures: Dict[str, BaseException] = dict(failures)
        self.acknowledged: List[str] = list(acknowledged)
        detail = "; ".join(f"{name}: {exc}" for name, exc in self.failures.items())
        super().__init__(f"Batch write failed for '{entity}' ({detail})")


class IngestionError(ShowdownError):
    """A load run stopped in the FAILED state."""

    def __init__(
        self,
        message: str,
        state: str,
        stats: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.state = state
        self.stats: Dict[str, Any] = stats or {}


__all__ = [
    "ShowdownError",
    "MissingInputError",
    "RowSkipped",
    "SinkWriteError",
    "DualSinkError",
    "IngestionError",
]
