"""CLI entry point."""

import asyncio

import typer
from rich.console import Console

from postdb import __version__
from postdb.config import get_settings
from postdb.logging_config import setup_logging

app = typer.Typer(name="postdb", help="CouchDB-style document store on PostgreSQL")
console = Console()


@app.command()
def serve(
    host: str = typer.Option(None, help="Bind address (default: POSTDB_HOST)"),
    port: int = typer.Option(None, help="Bind port (default: POSTDB_PORT)"),
) -> None:
    """Start the HTTP API server."""
    from postdb.main import run_server

    settings = get_settings()
    if host is not None:
        settings.host = host
    if port is not None:
        settings.port = port
    console.print(f"[green]Starting postdb on {settings.host}:{settings.port}[/green]")
    run_server(settings)


@app.command()
def replicate(
    source: str = typer.Option(None, help="Source collection name or http(s) URL"),
    target: str = typer.Option(None, help="Local target collection"),
    continuous: bool = typer.Option(False, help="Keep following the source feed"),
    create_target: bool = typer.Option(False, help="Create the target collection if missing"),
    restart: bool = typer.Option(False, help="Replay from the beginning on resubmission"),
    exit_when_idle: bool = typer.Option(
        False, help="Exit once every discovered job has stopped instead of polling"
    ),
) -> None:
    """Run the replication scheduler, optionally submitting a job first.

    Examples:
        postdb replicate
        postdb replicate --source http://node-a:5984/orders --target orders --continuous
        postdb replicate --source orders --target orders_copy --create-target --exit-when-idle
    """
    from postdb.main import run_replicator

    if (source is None) != (target is None):
        raise typer.BadParameter("--source and --target must be given together")

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    submit = None
    if source is not None:
        submit = {
            "source": source,
            "target": target,
            "continuous": continuous,
            "create_target": create_target,
            "restart": restart,
        }
    asyncio.run(run_replicator(settings, submit=submit, exit_when_idle=exit_when_idle))


@app.command()
def version() -> None:
    """Print the postdb version."""
    console.print(f"postdb v{__version__}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
