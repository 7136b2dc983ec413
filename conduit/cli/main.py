"""CLI entry point.

Provides the main CLI application with commands for:
- serve: Run the API server (and, per CONDUIT_ROLE, the cron runner)
- check-config: Validate configuration, including the vault key
- init-db: Create database tables
- catalog: Show the trigger/action catalogs
- generate-key: Print a fresh credential encryption key
"""

import asyncio
import secrets
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from conduit.catalog.registry import find_catalog, supported_platforms
from conduit.exceptions import ConfigurationError
from conduit.settings import get_settings
from conduit.vault import CredentialVault

app = typer.Typer(
    name="conduit",
    help="Integration automation engine",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


@app.command()
def serve(
    host: Annotated[
        Optional[str],  # noqa: UP007
        typer.Option("--host", "-h", help="Host to bind to (default: API_HOST)"),
    ] = None,
    port: Annotated[
        Optional[int],  # noqa: UP007
        typer.Option("--port", "-p", help="Port to bind to (default: API_PORT)"),
    ] = None,
    reload: Annotated[
        bool,
        typer.Option("--reload", "-r", help="Enable auto-reload for development"),
    ] = False,
) -> None:
    """Start the Conduit API server.

    Refuses to start without a credential encryption key.
    """
    import uvicorn

    settings = get_settings()
    _require_vault()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print(
        Panel(
            f"[bold green]Starting Conduit[/bold green]\n"
            f"Host: {host}\n"
            f"Port: {port}\n"
            f"Role: {settings.conduit_role}\n"
            f"Reload: {reload}",
            title="Conduit",
            border_style="green",
        )
    )

    uvicorn.run(
        "conduit.api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=1 if reload else settings.api_workers,
        log_level=settings.log_level.lower(),
    )


@app.command(name="check-config")
def check_config() -> None:
    """Validate configuration and show the effective (non-secret) settings."""
    settings = get_settings()

    table = Table(title="Configuration", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("environment", settings.environment)
    table.add_row("role", settings.conduit_role)
    table.add_row("database", str(settings.database_url).rsplit("@", 1)[-1])
    table.add_row("api key", "set" if settings.api_key.get_secret_value() else "[yellow]not set[/yellow]")
    table.add_row("scheduler", "enabled" if settings.scheduler_enabled else "disabled")
    table.add_row("scheduler timezone", settings.scheduler_timezone)
    table.add_row("adapter timeout", f"{settings.adapter_timeout_seconds:g}s")
    table.add_row("public base url", settings.public_base_url)
    console.print(table)

    _require_vault()
    console.print("[green]Credential vault key configured.[/green]")


@app.command(name="init-db")
def init_db() -> None:
    """Create all tables (development bootstrap)."""
    asyncio.run(_create_tables())


async def _create_tables() -> None:
    from conduit.storage import close_db, create_tables

    try:
        await create_tables()
    finally:
        await close_db()
    console.print("[green]Database tables created.[/green]")


@app.command()
def catalog(
    platform: Annotated[
        Optional[str],  # noqa: UP007
        typer.Argument(help="Platform type to show (omit to list platforms)"),
    ] = None,
) -> None:
    """Show the trigger and action catalog of a platform."""
    if platform is None:
        table = Table(title="Catalog platforms", show_header=True)
        table.add_column("Platform", style="cyan")
        table.add_column("Triggers", justify="right")
        table.add_column("Actions", justify="right")
        for platform_type in supported_platforms():
            entry = find_catalog(platform_type)
            table.add_row(platform_type, str(len(entry.triggers)), str(len(entry.actions)))
        console.print(table)
        return

    entry = find_catalog(platform)
    if entry is None:
        console.print(f"[red]No catalog for platform '{platform}'.[/red]")
        raise typer.Exit(code=1)

    triggers = Table(title=f"{platform} triggers", show_header=True)
    triggers.add_column("Key", style="cyan")
    triggers.add_column("Name")
    triggers.add_column("Event type")
    triggers.add_column("Category")
    for trigger in entry.triggers:
        triggers.add_row(trigger.key, trigger.name, trigger.event_type.value, trigger.category or "")
    console.print(triggers)

    actions = Table(title=f"{platform} actions", show_header=True)
    actions.add_column("Key", style="cyan")
    actions.add_column("Method")
    actions.add_column("Endpoint")
    actions.add_column("Required")
    for action in entry.actions:
        actions.add_row(
            action.key,
            action.http_method.value,
            action.endpoint,
            ", ".join(action.required_fields),
        )
    console.print(actions)


@app.command(name="generate-key")
def generate_key() -> None:
    """Print a random value suitable for CREDENTIAL_ENCRYPTION_KEY."""
    console.print(secrets.token_urlsafe(32), highlight=False)


def _require_vault() -> CredentialVault:
    try:
        return CredentialVault.from_settings(get_settings())
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from e


if __name__ == "__main__":
    app()
