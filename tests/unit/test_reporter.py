from __future__ import annotations

import io

from rich.console import Console

from showdown.reporter import print_benchmark, print_load_summary


def _console() -> Console:
    return Console(file=io.StringIO(), width=160, color_system=None)


def test_load_summary_lists_each_destination() -> None:
    console = _console()
    print_load_summary(
        {
            "users": 3,
            "cards": 5,
            "databases": ["MongoDB", "Elasticsearch"],
            "per_destination": {"MongoDB": {"users": 3, "cards": 5}, "Elasticsearch": {"users": 3, "cards": 4}},
            "files": {"users": "users_data.csv", "cards": "cards_data.csv"},
            "elapsed_seconds": 1.5,
            "batch_size": 10,
        },
        console=console,
    )
    output = console.file.getvalue()
    assert "Elasticsearch" in output
    assert "cards_data.csv" in output


def test_benchmark_without_results() -> None:
    console = _console()
    print_benchmark({}, console=console)
    assert "No results" in console.file.getvalue()


def test_benchmark_shows_winner_and_errors() -> None:
    block = {"database": "MongoDB", "success_rate": 90.0, "avg_response_time": 12.0}
    console = _console()
    print_benchmark(
        {
            "test_info": {"operations_requested": 10, "query_set": "basic", "score_earned": 1},
            "databases": {
                "MongoDB": block,
                "Elasticsearch": {**block, "database": "Elasticsearch", "error_types": {"ApiError": 1}},
            },
            "comparison": {"winner": "MongoDB", "advantage_ms": 3.0, "advantage_percent": 20.0},
        },
        console=console,
    )
    output = console.file.getvalue()
    assert "Winner: MongoDB" in output
    assert "ApiError x1" in output
