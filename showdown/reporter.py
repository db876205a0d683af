from __future__ import annotations

from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table


def _ms(value: float) -> str:
    return f"{value:,.2f}"


def print_load_summary(summary: Dict[str, Any], console: Optional[Console] = None) -> None:
    """
    Render a load summary: one row per entity, one count column per destination.
    """
    console = console or Console()
    destinations = summary.get("databases", [])
    per_destination = summary.get("per_destination", {})

    table = Table(
        title="Data Load Summary",
        box=box.ROUNDED,
        caption=(
            f"{summary.get('elapsed_seconds', 0.0):.2f}s | "
            f"batch={summary.get('batch_size')} | skipped rows={summary.get('skipped', 0):,}"
        ),
    )
    table.add_column("Entity", style="cyan", no_wrap=True)
    table.add_column("File", style="dim")
    table.add_column("Loaded", justify="right", style="bold green")
    for name in destinations:
        table.add_column(name, justify="right", style="magenta")

    for entity, filename in summary.get("files", {}).items():
        row = [entity, filename, f"{summary.get(entity, 0):,}"]
        row.extend(f"{per_destination.get(name, {}).get(entity, 0):,}" for name in destinations)
        table.add_row(*row)

    console.print(table)


def print_benchmark(report: Dict[str, Any], console: Optional[Console] = None) -> None:
    """
    Render a benchmark report as a side-by-side table plus the verdict.
    """
    console = console or Console()
    blocks: Dict[str, Dict[str, Any]] = report.get("databases", {})
    if not blocks:
        console.print("[yellow]No results to display.[/yellow]")
        return

    info = report.get("test_info", {})
    table = Table(
        title=f"Benchmark Results\n[dim]{info.get('operations_requested', 0)} operations per database "
        f"({info.get('query_set', 'basic')} queries)[/dim]",
        box=box.ROUNDED,
    )
    table.add_column("Metric", style="cyan", no_wrap=True)
    for name in blocks:
        table.add_column(name, justify="right", style="green")

    rows = [
        ("Success rate (%)", "success_rate", lambda v: f"{v:.1f}"),
        ("Successful", "successful", str),
        ("Failed", "failed", str),
        ("Avg (ms)", "avg_response_time", _ms),
        ("Min (ms)", "min_response_time", _ms),
        ("Median (ms)", "median_response_time", _ms),
        ("P95 (ms)", "p95_response_time", _ms),
        ("P99 (ms)", "p99_response_time", _ms),
        ("Max (ms)", "max_response_time", _ms),
        ("Ops/sec", "ops_per_second", lambda v: f"{v:,.2f}"),
    ]
    for label, key, fmt in rows:
        table.add_row(label, *(fmt(block.get(key, 0)) for block in blocks.values()))
    console.print(table)

    for name, block in blocks.items():
        if block.get("error_types"):
            kinds = ", ".join(f"{kind} x{count}" for kind, count in block["error_types"].items())
            console.print(f"[red]{name} errors:[/red] {kinds}")

    comparison = report.get("comparison", {})
    console.print(
        f"[bold]Winner:[/bold] {comparison.get('winner')} "
        f"(faster by {comparison.get('advantage_ms', 0):.2f} ms, "
        f"{comparison.get('advantage_percent', 0):.1f}%)"
    )
    if info.get("score_earned") is not None:
        console.print(f"Score earned: [bold]{info['score_earned']}[/bold]")


def print_leaderboard(rows: List[Dict[str, Any]], console: Optional[Console] = None) -> None:
    console = console or Console()
    table = Table(title="Leaderboard", box=box.ROUNDED)
    table.add_column("#", justify="right", style="dim")
    table.add_column("User", style="cyan")
    table.add_column("Score", justify="right", style="bold green")
    table.add_column("Operations", justify="right", style="magenta")
    for rank, row in enumerate(rows, start=1):
        table.add_row(str(rank), row["name"], f"{row['score']:,}", f"{row.get('operations', 0):,}")
    console.print(table)


def print_status(status: Dict[str, Dict[str, Any]], console: Optional[Console] = None) -> None:
    console = console or Console()
    table = Table(title="Store Status", box=box.ROUNDED)
    table.add_column("Store", style="cyan")
    table.add_column("Connected")
    table.add_column("Response (ms)", justify="right")
    for name, entry in status.items():
        connected = "[green]yes[/green]" if entry.get("connected") else "[red]no[/red]"
        table.add_row(name, connected, _ms(float(entry.get("response_time_ms", 0.0))))
    console.print(table)


__all__ = ["print_load_summary", "print_benchmark", "print_leaderboard", "print_status"]
