"""
Benchmark harness: the same read workload against each database in turn.

Each target gets a full sequential pass (no interleaving, one operation in
flight), so response times are pure sequential latency. Every operation is
timed, classified as success or failure, announced to the notifier and,
when a results log is attached, recorded. An operation that raises is
recorded with its message and the pass continues.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from showdown.benchmark.queries import QueryShape, rotation, shape_for
from showdown.benchmark.stats import compare, database_block
from showdown.benchmark.targets import BenchmarkTarget
from showdown.domain.models import OperationResult
from showdown.infrastructure.results_log import ResultsLog
from showdown.notify import (
    LEADERBOARD_UPDATED,
    OPERATION_COMPLETED,
    TEST_COMPLETED,
    TEST_PROGRESS,
    TEST_STARTED,
    Notifier,
    NullNotifier,
    safe_emit,
)
from showdown.utils.logging import get_logger

log = get_logger(__name__)

PROGRESS_EVERY = 5
POINTS_PER_SUCCESSES = 10


@dataclass
class BenchmarkRun:
    """Raw per-operation results plus the published report."""

    results: Dict[str, List[OperationResult]] = field(default_factory=dict)
    report: Dict[str, Any] = field(default_factory=dict)


class BenchmarkHarness:
    """
    Parameters
    ----------
    targets : sequence of BenchmarkTarget
        Exactly two databases; passes run in this order.
    notifier : Notifier | None
        Receives test/operation events. None drops them.
    results_log : ResultsLog | None
        Optional store for each operation and the score award.
    clock : callable
        Monotonic clock in seconds (perf_counter by default).
    """

    def __init__(
        self,
        targets: Sequence[BenchmarkTarget],
        notifier: Optional[Notifier] = None,
        results_log: Optional[ResultsLog] = None,
        test_type: str = "STRESS_TEST",
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        if len(targets) != 2:
            raise ValueError("The benchmark compares exactly two databases")
        if targets[0].name == targets[1].name:
            raise ValueError("Targets must have distinct names")
        self.targets = tuple(targets)
        self.notifier: Notifier = notifier or NullNotifier()
        self.results_log = results_log
        self.test_type = test_type
        self._clock = clock

    async def _timed(self, target: BenchmarkTarget, shape: QueryShape, number: int) -> OperationResult:
        start = self._clock()
        error: Optional[str] = None
        try:
            await target.execute(shape)
        except Exception as exc:  # noqa: BLE001 - intentional broad catch to record failures
            error = str(exc) or type(exc).__name__
        elapsed_ms = (self._clock() - start) * 1000
        return OperationResult(
            database=target.name,
            operation=shape.label,
            operation_number=number,
            response_time_ms=round(elapsed_ms, 3),
            success=error is None,
            error_message=error,
        )

    async def _run_pass(
        self,
        target: BenchmarkTarget,
        user_id: str,
        operations: int,
        shapes: Tuple[QueryShape, ...],
    ) -> List[OperationResult]:
        log.info(
            f"[PASS START] {target.name} x{operations}",
            extra={"database": target.name, "operations": operations},
        )
        results: List[OperationResult] = []
        for i in range(operations):
            if i % PROGRESS_EVERY == 0:
                safe_emit(
                    self.notifier,
                    TEST_PROGRESS,
                    {
                        "userId": user_id,
                        "database": target.name,
                        "progress": round(i / operations * 100),
                        "currentOperation": i + 1,
                        "totalOperations": operations,
                    },
                )

            result = await self._timed(target, shape_for(i, shapes), i + 1)
            if not result.success:
                log.warning(
                    f"[OPERATION FAILED] {target.name} #{i + 1} {result.operation}",
                    extra={"database": target.name, "error": result.error_message},
                )
            safe_emit(self.notifier, OPERATION_COMPLETED, result.to_event(user_id, operations))
            if self.results_log is not None:
                await self.results_log.record(user_id, result, self.test_type)
            results.append(result)

        ok = sum(1 for r in results if r.success)
        log.info(
            f"[PASS COMPLETE] {target.name}: {ok}/{operations} succeeded",
            extra={"database": target.name, "successful": ok, "operations": operations},
        )
        return results

    async def run(
        self,
        user_id: str,
        operations: int,
        query_set: str = "basic",
        user_name: Optional[str] = None,
    ) -> BenchmarkRun:
        """
        Run `operations` operations against each target and build the report.
        """
        if operations <= 0:
            raise ValueError("operations must be positive")
        shapes = rotation(query_set)
        started_at = datetime.now(timezone.utc)
        start = self._clock()

        safe_emit(
            self.notifier,
            TEST_STARTED,
            {
                "userId": user_id,
                "userName": user_name or user_id,
                "database": "BOTH",
                "operationType": self.test_type,
                "startTime": started_at.isoformat(),
            },
        )
        log.info(
            f"[BENCHMARK START] user={user_id} operations={operations} set={query_set}",
            extra={"user_id": user_id, "operations": operations, "query_set": query_set},
        )

        run = BenchmarkRun()
        for target in self.targets:
            run.results[target.name] = await self._run_pass(target, user_id, operations, shapes)

        total_successful = sum(r.success for results in run.results.values() for r in results)
        score_earned = total_successful // POINTS_PER_SUCCESSES
        new_score: Optional[int] = None
        if self.results_log is not None:
            new_score = await self.results_log.award(user_id, score_earned)

        duration_ms = round((self._clock() - start) * 1000, 2)
        blocks = {name: database_block(name, results) for name, results in run.results.items()}
        first, second = (blocks[target.name] for target in self.targets)

        run.report = {
            "test_info": {
                "test_id": f"{user_id}-{uuid.uuid4().hex[:12]}",
                "user_id": user_id,
                "user_name": user_name or user_id,
                "test_type": self.test_type,
                "started_at": started_at.isoformat(),
                "finished_at": datetime.now(timezone.utc).isoformat(),
                "duration_ms": duration_ms,
                "operations_requested": operations,
                "total_operations": operations * len(self.targets),
                "query_set": query_set,
                "operation_labels": [shape.label for shape in shapes],
                "score_earned": score_earned,
                "new_score": new_score,
            },
            "databases": blocks,
            "comparison": compare(first, second),
        }

        safe_emit(
            self.notifier,
            TEST_COMPLETED,
            {
                "userId": user_id,
                "userName": user_name or user_id,
                "scoreEarned": score_earned,
                "newScore": new_score,
                "testDuration": duration_ms,
                **{f"{name}Results": len(results) for name, results in run.results.items()},
            },
        )
        if new_score is not None:
            safe_emit(
                self.notifier,
                LEADERBOARD_UPDATED,
                {
                    "userId": user_id,
                    "userName": user_name or user_id,
                    "newScore": new_score,
                    "scoreIncrease": score_earned,
                },
            )

        log.info(
            f"[BENCHMARK COMPLETE] winner={run.report['comparison']['winner']}",
            extra={"user_id": user_id, "score_earned": score_earned, "duration_ms": duration_ms},
        )
        return run


__all__ = ["BenchmarkHarness", "BenchmarkRun", "PROGRESS_EVERY", "POINTS_PER_SUCCESSES"]
