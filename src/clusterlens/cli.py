"""ClusterLens CLI entry point."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from clusterlens.view.status import CRITICAL, HEALTHY, WARNING, classify_status

app = typer.Typer(
    name="clusterlens",
    help="ClusterLens: live health picture of a microservice cluster",
    no_args_is_help=True,
)
console = Console()

_STYLES = {HEALTHY: "green", WARNING: "yellow", CRITICAL: "red"}


def _styled(status: str | None) -> str:
    if not status:
        return "[dim]—[/dim]"
    style = _STYLES.get(classify_status(status), "dim")
    return f"[{style}]{status}[/{style}]"


def _ms(value: float | None) -> str:
    if value is None or value < 0:
        return "—"
    return f"{value:.0f}ms"


def _load(path: Path | None = None):
    from clusterlens.config.loader import load_config

    try:
        return load_config(path=path)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)


def _fetch_state(config):
    from clusterlens.snapshot.poller import SnapshotPoller

    poller = SnapshotPoller.from_config(config)
    state = asyncio.run(poller.poll_once())
    if state.snapshot is None:
        console.print(f"[red]{state.error_kind}: {state.error}[/red]")
        raise typer.Exit(1)
    return state


@app.command()
def status(
    path: Path | None = typer.Option(None, "--path", "-p", help="Path to .clusterlens.yaml"),
) -> None:
    """Probe every service's ping and DB endpoints once."""
    from clusterlens.probes.scheduler import ProbeScheduler

    config = _load(path)
    scheduler = ProbeScheduler.from_config(config)
    results = asyncio.run(scheduler.refresh_all())

    table = Table(title="Service Probes")
    table.add_column("Service", style="bold")
    table.add_column("Ping")
    table.add_column("Ping latency", justify="right")
    table.add_column("DB")
    table.add_column("DB latency", justify="right")

    for name in scheduler.service_names:
        result = results.get(name)
        if result is None:
            table.add_row(name, _styled("PENDING"), "—", _styled("PENDING"), "—")
            continue
        table.add_row(
            name,
            _styled(result.ping_status),
            _ms(result.ping_latency_ms),
            _styled(result.db_status),
            _ms(result.db_latency_ms),
        )
    console.print(table)


@app.command()
def snapshot(
    path: Path | None = typer.Option(None, "--path", "-p", help="Path to .clusterlens.yaml"),
) -> None:
    """Fetch the aggregator snapshot once and summarize it."""
    from clusterlens.view.builder import build_view

    config = _load(path)
    view = build_view(_fetch_state(config), {})

    console.print(f"[bold]Overall:[/bold] {_styled(view.overall_status)}  ({view.snapshot_timestamp})")
    average = "unavailable" if view.average_latency_ms is None else _ms(view.average_latency_ms)
    console.print(f"[bold]Average latency:[/bold] {average}")
    console.print(f"[bold]Pods:[/bold] {view.total_pod_count} ({view.problem_pod_count} with problems)\n")

    services = Table(title="Application Services")
    services.add_column("Service", style="bold")
    services.add_column("Status")
    services.add_column("Response", justify="right")
    for svc in view.services:
        services.add_row(svc.name, _styled(svc.snapshot_status), _ms(svc.response_time_ms))
    console.print(services)

    for name, dep in view.dependencies.items():
        console.print(f"  {name}: {_styled(dep.get('status'))} {_ms(dep.get('response_time_ms'))}")

    if view.connectivity:
        matrix = Table(title="Connectivity")
        matrix.add_column("Source")
        matrix.add_column("Target")
        matrix.add_column("Status")
        matrix.add_column("Latency", justify="right")
        matrix.add_column("Error")
        for edge in view.connectivity:
            matrix.add_row(
                edge["source"],
                edge["target"],
                _styled(edge["status"]),
                _ms(edge["response_time_ms"]),
                edge.get("error_message") or "",
            )
        console.print(matrix)


@app.command()
def pods(
    search: str = typer.Option("", "--search", "-s", help="Case-insensitive pod name filter"),
    problems_only: bool = typer.Option(False, "--problems-only", help="Only pods not Running or with restarts"),
    path: Path | None = typer.Option(None, "--path", "-p", help="Path to .clusterlens.yaml"),
) -> None:
    """List pods from the aggregator snapshot."""
    from clusterlens.view.builder import filter_pods, flatten_pods

    config = _load(path)
    state = _fetch_state(config)
    matched = filter_pods(flatten_pods(state.snapshot), search, problems_only)

    table = Table(title=f"Pods ({len(matched)})")
    table.add_column("Name", style="bold")
    table.add_column("Status")
    table.add_column("Ready")
    table.add_column("Restarts", justify="right")
    table.add_column("Age")
    table.add_column("Node")
    for pod in matched:
        table.add_row(
            pod.name,
            _styled(pod.status),
            "yes" if pod.ready else "no",
            str(pod.restarts),
            pod.age,
            pod.node or "",
        )
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8000, help="Bind port"),
) -> None:
    """Start the proxy, background refresh loops, and dashboard API."""
    import uvicorn

    console.print(f"[bold]ClusterLens[/bold] starting on http://{host}:{port}")
    uvicorn.run("clusterlens.api.app:app", host=host, port=port, reload=False)


config_app = typer.Typer(name="config", help="Configuration commands")
app.add_typer(config_app)


@config_app.command("validate")
def config_validate(
    path: Path | None = typer.Option(None, "--path", "-p", help="Path to .clusterlens.yaml"),
) -> None:
    """Validate configuration file."""
    import yaml

    from clusterlens.config.loader import check_config, load_config

    try:
        config = load_config(path=path)
        console.print("[green]✓[/green] YAML parses correctly")
        console.print("[green]✓[/green] Pydantic validation passes")
    except FileNotFoundError as exc:
        console.print(f"[red]✗ {exc}[/red]")
        raise typer.Exit(1)
    except yaml.YAMLError as exc:
        console.print(f"[red]✗ YAML parsing failed: {exc}[/red]")
        raise typer.Exit(1)
    except ValueError as exc:
        console.print("[green]✓[/green] YAML parses correctly")
        console.print(f"[red]✗ Pydantic validation failed: {exc}[/red]")
        raise typer.Exit(1)

    errors = check_config(config)
    if errors:
        for err in errors:
            console.print(f"[red]✗ {err}[/red]")
        console.print(f"\n[red bold]{len(errors)} validation error(s) found.[/red bold]")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] {len(config.router.prefixes)} route prefix(es), none overlapping")
    console.print(f"[green]✓[/green] {len(config.services)} probed service URL(s) are valid")
    console.print("\n[green bold]Configuration is valid.[/green bold]")


@config_app.command("show")
def config_show(
    path: Path | None = typer.Option(None, "--path", "-p", help="Path to .clusterlens.yaml"),
) -> None:
    """Print resolved configuration."""
    config = _load(path)

    console.print(f"[bold]{config.lens.name}[/bold] v{config.lens.version}\n")

    console.print("[bold]Router:[/bold]")
    console.print(f"  Upstream: {config.router.upstream_origin}")
    console.print(f"  Prefixes: {', '.join(config.router.prefixes)}\n")

    console.print("[bold]Probed services:[/bold]")
    for key in config.services:
        console.print(f"  {key}: {config.service_base_url(key)}")

    polling = config.polling
    console.print(f"\n[bold]Snapshot:[/bold] {config.snapshot_url}")
    console.print(
        f"[bold]Polling:[/bold] probes every {polling.probe_interval:g}s (timeout {polling.probe_timeout:g}s), "
        f"snapshot every {polling.snapshot_interval:g}s (timeout {polling.snapshot_timeout:g}s)"
    )


def main() -> None:
    app()
