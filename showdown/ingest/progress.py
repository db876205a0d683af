"""
Coarse progress notifications for a load run.

Counts arrive after each batch, so an event is emitted whenever the running
total crosses the next multiple of the entity's interval (users every 100,
cards every 500, transactions every 50,000 by default), plus one event when a
stage starts and one when it completes.
"""

from __future__ import annotations

import time
from typing import Dict, Optional

from showdown.notify import LOADING_PROGRESS, Notifier, NullNotifier, Payload, safe_emit

TOTAL_STAGES = 4  # users, cards, transactions, indexing


class ProgressReporter:
    def __init__(self, notifier: Optional[Notifier] = None, total_stages: int = TOTAL_STAGES) -> None:
        self.notifier: Notifier = notifier or NullNotifier()
        self.total_stages = total_stages
        self._last_bucket: Dict[str, int] = {}

    def _emit(
        self,
        stage: str,
        message: str,
        current_stage: int,
        processed: Optional[int] = None,
        percent: Optional[int] = None,
    ) -> Payload:
        payload: Payload = {
            "stage": stage,
            "message": message,
            "currentStage": current_stage,
            "totalStages": self.total_stages,
            "timestamp": int(time.time() * 1000),
        }
        if processed is not None:
            payload["itemsProcessed"] = processed
        if percent is not None:
            payload["percentComplete"] = percent
        safe_emit(self.notifier, LOADING_PROGRESS, payload)
        return payload

    def started(self) -> None:
        self._emit("started", "Starting data loading", 0)

    def stage_started(self, stage: str, index: int, message: Optional[str] = None) -> None:
        self._last_bucket[stage] = 0
        self._emit(f"{stage}_start", message or f"Starting to load {stage}", index)

    def advance(
        self,
        stage: str,
        index: int,
        processed: int,
        interval: int,
        expected_total: Optional[int] = None,
    ) -> Optional[Payload]:
        """Emit when `processed` crosses a new multiple of `interval`; else do nothing."""
        bucket = processed // interval
        if bucket <= self._last_bucket.get(stage, 0):
            return None
        self._last_bucket[stage] = bucket
        message = f"Loading {stage}: {processed:,} processed"
        percent = None
        if expected_total:
            message = f"Loading {stage}: {processed:,} / ~{expected_total:,} processed"
            percent = min(100, round(processed / expected_total * 100))
        return self._emit(stage, message, index, processed, percent)

    def stage_completed(self, stage: str, index: int, processed: int) -> None:
        self._emit(
            f"{stage}_complete",
            f"Completed loading {processed:,} {stage}",
            index,
            processed,
            100 if stage == "transactions" else None,
        )

    def indexing(self, index: int) -> None:
        self._emit("indexing", "Creating database indexes", index)

    def completed(self, summary: Payload) -> None:
        self._emit(
            "completed",
            "Data loading completed",
            self.total_stages,
            sum(summary.get(name, 0) for name in ("users", "cards", "transactions")),
            100,
        )

    def failed(self, stage: str, error: str) -> None:
        payload: Payload = {
            "stage": "failed",
            "message": f"Loading failed during {stage}: {error}",
            "currentStage": -1,
            "totalStages": self.total_stages,
            "timestamp": int(time.time() * 1000),
        }
        safe_emit(self.notifier, LOADING_PROGRESS, payload)


__all__ = ["ProgressReporter", "TOTAL_STAGES"]
