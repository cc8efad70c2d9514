"""Typer CLI root application with serve command."""

import typer

from nurture_geo.core.config import get_settings
from nurture_geo.core.logging import setup_logging

app = typer.Typer(name="nurture-geo", help="NZ address geocoding and proximity CLI")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development"),
    host: str = typer.Option("0.0.0.0", "--host", help="Bind host"),  # noqa: S104
    port: int = typer.Option(8000, "--port", help="Bind port"),
) -> None:
    """Start the API server."""
    import uvicorn

    uvicorn.run(
        "nurture_geo.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


def _register_subcommands() -> None:
    """Register all CLI subcommand groups."""
    from nurture_geo.cli.geocode_cmd import geocode_app

    app.add_typer(geocode_app, name="geocode", help="Geocoding and distance commands")


_register_subcommands()
