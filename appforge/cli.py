"""Command line interface: ``appforge serve`` and ``appforge run``."""

import asyncio

import click
from rich.console import Console
from rich.panel import Panel

from .appforge import AppForge
from .runtime.worker import ExecutionStatus
from .utils.config import AppForgeConfig

console = Console()


@click.group()
@click.option("--log-file", type=click.Path(dir_okay=False), help="Write logs to this file")
@click.pass_context
def main(ctx: click.Context, log_file: str | None) -> None:
    """Run the coding-agent pipeline."""
    ctx.ensure_object(dict)
    ctx.obj["log_file"] = log_file


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Serve the event API."""
    config = AppForgeConfig.from_env()
    forge = AppForge(config, host=host, port=port, log_file=ctx.obj["log_file"])
    console.print(
        Panel.fit(
            f"[bold blue]appforge[/bold blue] listening on http://{host}:{port}\n"
            f"[dim]sandbox={config.sandbox_env} store={config.store} model={config.model}[/dim]",
            border_style="blue",
        )
    )
    try:
        asyncio.run(forge.serve())
    except KeyboardInterrupt:
        console.print("[dim]Stopped[/dim]")


@main.command()
@click.argument("project_id")
@click.argument("prompt")
@click.option("--execution-id", help="Resume an earlier run with this execution id")
@click.pass_context
def run(ctx: click.Context, project_id: str, prompt: str, execution_id: str | None) -> None:
    """Run the code agent once for PROJECT_ID with PROMPT."""
    forge = AppForge(AppForgeConfig.from_env(), log_file=ctx.obj["log_file"])

    with console.status("[bold]Running code agent...[/bold]"):
        record = asyncio.run(forge.run(project_id, prompt, execution_id=execution_id))

    if record.status != ExecutionStatus.COMPLETED:
        console.print(
            Panel(
                f"[red]{record.error}[/red]",
                title=f"Run {record.execution_id} failed",
                border_style="red",
            )
        )
        raise SystemExit(1)

    result = record.result or {}
    console.print(
        Panel.fit(
            f"[bold]URL:[/bold] {result.get('url')}\n"
            f"[bold]Files:[/bold] {len(result.get('files') or {})}",
            title=f"Run {record.execution_id}",
            border_style="green",
        )
    )
    if result.get("summary"):
        console.print(result["summary"])
    for path in sorted(result.get("files") or {}):
        console.print(f"  [cyan]{path}[/cyan]")


if __name__ == "__main__":
    main()
