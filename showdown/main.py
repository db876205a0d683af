from __future__ import annotations

import asyncio
import json
import sys
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from showdown.analytics import transaction_overview
from showdown.benchmark import (
    QUERY_SETS,
    BenchmarkHarness,
    BenchmarkRun,
    ElasticsearchTarget,
    MongoTarget,
)
from showdown.config import Settings, get_settings
from showdown.domain import ENTITIES
from showdown.errors import IngestionError, MissingInputError
from showdown.infrastructure import connect_relational, mongo_database, open_destinations, ping_stores
from showdown.infrastructure.results_log import PostgresResultsLog
from showdown.ingest import (
    DualSinkWriter,
    ElasticsearchSink,
    IngestionPipeline,
    LoadSummary,
    MongoSink,
    ProgressReporter,
    SourceFormat,
    discover_inputs,
)
from showdown.notify import LoggingNotifier
from showdown.persistence import persist_results
from showdown.reporter import print_benchmark, print_leaderboard, print_load_summary, print_status
from showdown.utils.logging import configure_logging

app = typer.Typer(help="Database showdown: load the finance dataset and benchmark both stores.")


def _bootstrap() -> Settings:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)
    return settings


@app.command()
def info() -> None:
    """
    Show effective configuration values (credentials masked).
    """
    settings = get_settings()
    typer.echo(json.dumps(settings.redacted(), indent=2, default=str))


async def _load(
    settings: Settings,
    data_path: Path,
    batch_size: int,
    limit: Optional[int],
    source_format: SourceFormat,
) -> LoadSummary:
    # Fail on missing files before any store is contacted.
    discover_inputs(data_path, ENTITIES)
    async with open_destinations(settings) as dest:
        writer = DualSinkWriter(MongoSink(dest.mongo), ElasticsearchSink(dest.elasticsearch))
        pipeline = IngestionPipeline(
            writer,
            progress=ProgressReporter(LoggingNotifier()),
            batch_size=batch_size,
            transaction_limit=limit,
            source_format=source_format,
            transaction_estimate=settings.transaction_estimate,
        )
        return await pipeline.run(data_path)


@app.command()
def load(
    data_path: Optional[Path] = typer.Option(
        None, "--data-path", "-d", help="Directory holding the users/cards/transactions CSV files."
    ),
    batch_size: Optional[int] = typer.Option(
        None, "--batch-size", "-b", min=1, help="Records per bulk write (default from settings)."
    ),
    limit: Optional[int] = typer.Option(
        None, "--limit", "-l", min=1, help="Cap on transactions loaded (default from settings)."
    ),
    source_format: SourceFormat = typer.Option(
        SourceFormat.DIRECT, "--format", help="Which producer wrote the CSV files."
    ),
) -> None:
    """
    Drop and reload users, cards and transactions into MongoDB and Elasticsearch.
    """
    settings = _bootstrap()
    try:
        summary = asyncio.run(
            _load(
                settings,
                data_path or Path(settings.data_path),
                batch_size or settings.batch_size,
                limit or settings.transaction_limit,
                source_format,
            )
        )
    except MissingInputError as exc:
        typer.echo(f"Missing input: {exc}", err=True)
        raise typer.Exit(code=1)
    except IngestionError as exc:
        typer.echo(f"Load failed in state '{exc.state}': {exc}", err=True)
        typer.echo(json.dumps({"partial": exc.stats}, indent=2), err=True)
        raise typer.Exit(code=1)

    print_load_summary(dict(summary))
    persist_results(dict(summary), settings.results_dir, prefix="load")


async def _benchmark(
    settings: Settings,
    user_id: str,
    user_name: Optional[str],
    operations: int,
    query_set: str,
    record: bool,
) -> BenchmarkRun:
    async with AsyncExitStack() as stack:
        dest = await stack.enter_async_context(open_destinations(settings))
        results_log = None
        if record:
            conn = await connect_relational(settings.database_url)
            stack.push_async_callback(conn.close)
            results_log = PostgresResultsLog(conn)
            await results_log.ensure_schema()
            user = await results_log.get_user(user_id)
            if user is None:
                if not user_name:
                    raise typer.BadParameter(
                        f"User '{user_id}' not found; pass --name to register it", param_hint="--user"
                    )
                await results_log.register_user(user_id, user_name)
            else:
                user_name = user_name or user["name"]

        harness = BenchmarkHarness(
            [MongoTarget(dest.mongo), ElasticsearchTarget(dest.elasticsearch)],
            notifier=LoggingNotifier(),
            results_log=results_log,
        )
        return await harness.run(user_id, operations, query_set=query_set, user_name=user_name)


@app.command()
def benchmark(
    user: str = typer.Option(..., "--user", "-u", help="User identity the run is scored for."),
    name: Optional[str] = typer.Option(None, "--name", help="Display name; registers new users."),
    operations: Optional[int] = typer.Option(
        None, "--operations", "-n", min=1, help="Operations per database (default from settings)."
    ),
    query_set: Optional[str] = typer.Option(
        None, "--query-set", "-q", help="basic (3 query shapes) or extended (5)."
    ),
    record: bool = typer.Option(
        True, "--record/--no-record", help="Log results and award points in the relational store."
    ),
) -> None:
    """
    Run the same read workload against both databases and compare them.
    """
    settings = _bootstrap()
    chosen = query_set or settings.benchmark_query_set
    if chosen not in QUERY_SETS:
        raise typer.BadParameter(
            f"Unknown query set '{chosen}'. Available: {', '.join(sorted(QUERY_SETS))}",
            param_hint="'--query-set'",
        )
    run = asyncio.run(
        _benchmark(
            settings,
            user,
            name,
            operations or settings.benchmark_operations,
            chosen,
            record,
        )
    )
    print_benchmark(run.report)
    persist_results(run.report, settings.results_dir, prefix="benchmark")


async def _leaderboard(settings: Settings, limit: int) -> List[Dict[str, Any]]:
    conn = await connect_relational(settings.database_url)
    try:
        results_log = PostgresResultsLog(conn)
        await results_log.ensure_schema()
        return await results_log.leaderboard(limit)
    finally:
        await conn.close()


@app.command()
def leaderboard(limit: int = typer.Option(10, "--limit", "-l", min=1)) -> None:
    """
    Show the top scores.
    """
    settings = _bootstrap()
    print_leaderboard(asyncio.run(_leaderboard(settings, limit)))


async def _stats(settings: Settings) -> Dict[str, Any]:
    async with mongo_database(settings) as db:
        return await transaction_overview(db)


@app.command()
def stats() -> None:
    """
    Print transaction analytics from the document store.
    """
    settings = _bootstrap()
    typer.echo(json.dumps(asyncio.run(_stats(settings)), indent=2))


@app.command()
def status() -> None:
    """
    Ping every store and report round-trip times.
    """
    settings = _bootstrap()
    result = asyncio.run(ping_stores(settings))
    print_status(result)
    if not all(entry["connected"] for entry in result.values()):
        raise typer.Exit(code=1)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
