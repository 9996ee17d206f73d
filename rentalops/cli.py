"""``rentalops`` command line: run the API server and inspect configuration."""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.table import Table

from rentalops import __version__
from rentalops.config import load_settings

logger = logging.getLogger(__name__)

app = typer.Typer(name="rentalops", help="Rental-property management API.", no_args_is_help=True)


@app.command("serve")
def serve_command(
    host: str | None = typer.Option(None, "--host", help="Bind address (defaults to RENTAL_HOST)."),
    port: int | None = typer.Option(None, "--port", "-p", help="Port (defaults to RENTAL_PORT)."),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes."),
) -> None:
    """Start the API server."""
    import uvicorn

    settings = load_settings()
    bind_host = host or settings.host
    bind_port = port or settings.port
    console = Console(stderr=True)
    if not settings.is_supabase_configured:
        console.print("[yellow]![/yellow] Supabase is not configured; invoices use the local fallback store only")
    console.print(f"[green]✓[/green] API server starting on http://{bind_host}:{bind_port}")

    uvicorn.run(
        "rentalops.main:app",
        host=bind_host,
        port=bind_port,
        reload=reload,
        log_level="debug" if settings.debug else "info",
        access_log=False,
    )


@app.command("config")
def config_command() -> None:
    """Show the effective configuration (secrets masked)."""
    settings = load_settings()
    table = Table(title=f"rentalops {__version__}")
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("supabase_url", settings.supabase_url or "-")
    table.add_row("supabase_configured", str(settings.is_supabase_configured))
    table.add_row("service_role", "set" if settings.has_service_role else "not set")
    table.add_row("session_cookie", settings.session_cookie_name)
    table.add_row("fallback_store_path", settings.fallback_store_path)
    table.add_row("cors_origins", ", ".join(settings.cors_origins))
    table.add_row("structured_logging", str(settings.structured_logging))
    Console().print(table)


if __name__ == "__main__":
    app()
