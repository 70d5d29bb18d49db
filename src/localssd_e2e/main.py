"""CLI main entry point."""

from __future__ import annotations

import json
import sys
from typing import Any

import click
from rich.console import Console
from rich.markup import escape

from .config import ScenarioConfig, load_config
from .errors import ConfigError, ScenarioError, ScenarioSkipped
from .labels import DEFAULT_PAYLOAD
from .scenario import LocalSSDScenario
from .shared.logging import configure_logging
from .workload import build_workload, write_read_command

console = Console(stderr=True)

LOG_LEVELS = ["warning", "info", "debug"]


def _load(ctx: click.Context, overrides: dict[str, Any] | None = None) -> ScenarioConfig:
    """Load config or exit with a usage error."""
    try:
        return load_config(ctx.obj["config_path"], overrides)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(e.message)}")
        sys.exit(2)


@click.group()
@click.option("-c", "--config", type=click.Path(), help="Config file path")
@click.option("-v", "--verbose", count=True, help="Increase verbosity")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.option("--log-file", type=click.Path(), help="Write logs to a file")
@click.pass_context
def cli(
    ctx: click.Context,
    config: str | None,
    verbose: int,
    json_output: bool,
    log_file: str | None,
) -> None:
    """Node local SSD end-to-end check."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["json_output"] = json_output

    level = LOG_LEVELS[min(verbose, len(LOG_LEVELS) - 1)]
    configure_logging(level, log_file=log_file, json_output=json_output)


@cli.command()
@click.option("--cluster", help="Cluster to create the node pool in")
@click.option("--provider", help="Cloud provider (default: gke)")
@click.option("--zone", help="Cluster zone passed to gcloud")
@click.option("--project", help="Project passed to gcloud")
@click.option("--namespace", help="Namespace for the test pod")
@click.option("--pool-name", help="Node pool name (default: np-ssd)")
@click.option("--kubeconfig", help="Kubeconfig path")
@click.option("--timeout", type=float, help="Seconds to wait for the pod to finish")
@click.option("--poll-interval", type=float, help="Seconds between phase checks")
@click.option(
    "--cleanup-workload",
    is_flag=True,
    help="Delete the test pod when done",
)
@click.pass_context
def run(
    ctx: click.Context,
    cluster: str | None,
    provider: str | None,
    zone: str | None,
    project: str | None,
    namespace: str | None,
    pool_name: str | None,
    kubeconfig: str | None,
    timeout: float | None,
    poll_interval: float | None,
    cleanup_workload: bool,
) -> None:
    """Create a local SSD node pool and check a pod can write and read it.

    Examples:

        localssd-e2e run --cluster my-cluster

        localssd-e2e run --cluster my-cluster --zone us-central1-a --cleanup-workload
    """
    config = _load(
        ctx,
        {
            "cluster": cluster,
            "provider": provider,
            "zone": zone,
            "project": project,
            "namespace": namespace,
            "pool_name": pool_name,
            "kubeconfig": kubeconfig,
            "timeout": timeout,
            "poll_interval": poll_interval,
            # Unset flag keeps the file or environment value
            "cleanup_workload": cleanup_workload or None,
        },
    )

    try:
        result = LocalSSDScenario(config).run_sync()
    except ScenarioSkipped as e:
        click.echo(f"SKIPPED: {e.message}")
        return
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(e.message)}")
        sys.exit(2)
    except ScenarioError as e:
        console.print(f"[red]FAILED[/red] ({type(e).__name__})")
        click.echo(e.message, err=True)
        sys.exit(1)

    verification = result.verification
    if ctx.obj["json_output"]:
        click.echo(
            json.dumps(
                {
                    "status": "passed",
                    "pool": result.pool.name,
                    "cluster": result.pool.cluster_name,
                    "workload": verification.workload,
                    "phase": verification.phase.value,
                    "output": verification.lines,
                    "elapsed_seconds": round(verification.elapsed_seconds, 2),
                },
                indent=2,
            )
        )
    else:
        click.echo(f"PASSED: {verification.workload} read back {verification.lines!r}")
        click.echo(f"  Pool:  {result.pool.name} (cluster {result.pool.cluster_name})")
        click.echo(f"  Phase: {verification.phase.value}")


@cli.command()
@click.option("--namespace", help="Namespace written into the manifest")
@click.pass_context
def manifest(ctx: click.Context, namespace: str | None) -> None:
    """Print the pod manifest that `run` submits."""
    config = _load(ctx, {"namespace": namespace})
    descriptor = build_workload(write_read_command(DEFAULT_PAYLOAD), image=config.image)
    click.echo(descriptor.to_yaml(config.namespace), nl=False)


@cli.group()
def config() -> None:
    """Show scenario configuration."""


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show effective configuration and where each value came from."""
    scenario_config = _load(ctx)
    values = scenario_config.as_dict()

    if ctx.obj["json_output"]:
        sources = {key: scenario_config.get_source(key) for key in values}
        click.echo(json.dumps({"values": values, "sources": sources}, indent=2))
        return

    click.echo("Local SSD Scenario Configuration\n")
    for key, value in values.items():
        shown = "(not set)" if value in (None, "") else value
        click.echo(f"  {key}: {shown}  [{scenario_config.get_source(key)}]")


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
