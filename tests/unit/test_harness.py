from __future__ import annotations

from itertools import count

import pytest

from showdown.benchmark.harness import BenchmarkHarness
from showdown.notify import (
    LEADERBOARD_UPDATED,
    OPERATION_COMPLETED,
    TEST_COMPLETED,
    TEST_PROGRESS,
    TEST_STARTED,
)


def _ticking_clock(step: float = 0.01):
    ticks = count()
    return lambda: next(ticks) * step


@pytest.mark.asyncio
async def test_each_database_gets_every_operation(make_target, notifier) -> None:
    mongo, es = make_target("MongoDB"), make_target("Elasticsearch")
    harness = BenchmarkHarness([mongo, es], notifier=notifier)

    run = await harness.run("u1", 9)

    assert set(run.results) == {"MongoDB", "Elasticsearch"}
    for results in run.results.values():
        assert len(results) == 9
        assert [r.operation_number for r in results] == list(range(1, 10))
        assert len({r.operation for r in results}) == 3
        assert all(r.success for r in results)
    assert mongo.executed == ["fetch_rows", "sum_amount", "max_amount"] * 3
    assert run.report["test_info"]["total_operations"] == 18


@pytest.mark.asyncio
async def test_passes_are_sequential(make_target, notifier) -> None:
    harness = BenchmarkHarness([make_target("MongoDB"), make_target("Elasticsearch")], notifier=notifier)

    await harness.run("u1", 4)

    databases = [p["database"] for p in notifier.named(OPERATION_COMPLETED)]
    assert databases == ["MongoDB"] * 4 + ["Elasticsearch"] * 4


@pytest.mark.asyncio
async def test_extended_query_set(make_target) -> None:
    harness = BenchmarkHarness([make_target("MongoDB"), make_target("Elasticsearch")])

    run = await harness.run("u1", 10, query_set="extended")

    assert len({r.operation for r in run.results["MongoDB"]}) == 5
    assert len(run.report["test_info"]["operation_labels"]) == 5


@pytest.mark.asyncio
async def test_failures_are_recorded_and_run_continues(make_target) -> None:
    es = make_target("Elasticsearch", fail_keys={"sum_amount"}, message="ApiError: index_not_found")
    harness = BenchmarkHarness([make_target("MongoDB"), es])

    run = await harness.run("u1", 6)

    failed = [r for r in run.results["Elasticsearch"] if not r.success]
    assert len(failed) == 2
    assert failed[0].error_message == "ApiError: index_not_found"
    assert len(run.results["Elasticsearch"]) == 6
    block = run.report["databases"]["Elasticsearch"]
    assert block["failed"] == 2
    assert block["error_types"] == {"ApiError": 2}


@pytest.mark.asyncio
async def test_empty_error_message_falls_back_to_type_name(make_target) -> None:
    harness = BenchmarkHarness(
        [make_target("MongoDB", fail_keys={"fetch_rows"}), make_target("Elasticsearch")]
    )
    run = await harness.run("u1", 1)
    assert run.results["MongoDB"][0].error_message == "RuntimeError"


@pytest.mark.asyncio
async def test_timing_uses_injected_clock(make_target) -> None:
    harness = BenchmarkHarness(
        [make_target("MongoDB"), make_target("Elasticsearch")], clock=_ticking_clock(0.01)
    )

    run = await harness.run("u1", 3)

    assert {r.response_time_ms for results in run.results.values() for r in results} == {10.0}
    assert run.report["databases"]["MongoDB"]["avg_response_time"] == 10.0
    assert run.report["comparison"]["winner"] == "Elasticsearch"


@pytest.mark.asyncio
async def test_events_emitted(make_target, notifier) -> None:
    harness = BenchmarkHarness([make_target("MongoDB"), make_target("Elasticsearch")], notifier=notifier)

    await harness.run("u1", 10, user_name="Ada")

    started = notifier.named(TEST_STARTED)
    assert len(started) == 1 and started[0]["userName"] == "Ada"
    # Progress every fifth operation, per database.
    assert [p["currentOperation"] for p in notifier.named(TEST_PROGRESS)] == [1, 6, 1, 6]
    assert len(notifier.named(OPERATION_COMPLETED)) == 20
    completed = notifier.named(TEST_COMPLETED)
    assert completed[0]["scoreEarned"] == 2
    assert completed[0]["MongoDBResults"] == 10
    assert notifier.named(LEADERBOARD_UPDATED) == []
    assert notifier.events[0][0] == TEST_STARTED
    assert notifier.events[-1][0] == TEST_COMPLETED


@pytest.mark.asyncio
async def test_results_log_records_and_awards(make_target, notifier, results_log) -> None:
    harness = BenchmarkHarness(
        [make_target("MongoDB"), make_target("Elasticsearch", fail_keys={"max_amount"})],
        notifier=notifier,
        results_log=results_log,
    )

    run = await harness.run("u1", 15)

    # 15 + 10 successes -> 2 points on top of the starting score of 5.
    assert len(results_log.recorded) == 30
    assert results_log.awards == [2]
    assert run.report["test_info"]["score_earned"] == 2
    assert run.report["test_info"]["new_score"] == 7
    leaderboard = notifier.named(LEADERBOARD_UPDATED)
    assert leaderboard == [{"userId": "u1", "userName": "u1", "newScore": 7, "scoreIncrease": 2}]


@pytest.mark.asyncio
async def test_invalid_arguments(make_target) -> None:
    with pytest.raises(ValueError):
        BenchmarkHarness([make_target("MongoDB")])
    with pytest.raises(ValueError):
        BenchmarkHarness([make_target("x"), make_target("x")])

    harness = BenchmarkHarness([make_target("MongoDB"), make_target("Elasticsearch")])
    with pytest.raises(ValueError):
        await harness.run("u1", 0)
    with pytest.raises(ValueError):
        await harness.run("u1", 3, query_set="nope")


@pytest.mark.asyncio
async def test_raising_notifier_does_not_stop_the_benchmark(make_target, raising_notifier, results_log) -> None:
    harness = BenchmarkHarness(
        [make_target("MongoDB"), make_target("Elasticsearch")],
        notifier=raising_notifier,
        results_log=results_log,
    )

    run = await harness.run("u1", 6)

    assert len(run.results["Elasticsearch"]) == 6
    assert run.report["test_info"]["new_score"] == 6
    # started + 2 progress per pass + 12 operations + completed + leaderboard
    assert raising_notifier.calls == 1 + 4 + 12 + 1 + 1
