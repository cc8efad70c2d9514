"""Geocoding CLI commands for single lookups, parsing, distances, batch files, and provider status."""

import asyncio
import json
from pathlib import Path

import typer

geocode_app = typer.Typer()


@geocode_app.command("lookup")
def lookup(
    address: str = typer.Argument(..., help="Freeform NZ address"),  # noqa: B008
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),  # noqa: FBT001
) -> None:
    """Geocode a single address through the provider chain."""
    from nurture_geo.services.geocoding_service import geocode

    result = asyncio.run(geocode(address))
    if as_json:
        typer.echo(result.model_dump_json())
        return

    typer.echo(f"Address:    {result.formatted_address}")
    typer.echo(f"Lat/Lng:    {result.lat}, {result.lng}")
    typer.echo(f"Provider:   {result.provider}")
    confidence = "n/a" if result.confidence is None else f"{result.confidence:.2f}"
    typer.echo(f"Confidence: {confidence}")
    typer.echo(f"Quality:    {result.quality or 'n/a'}")


@geocode_app.command("parse")
def parse(
    address: str = typer.Argument(..., help="Freeform NZ address"),  # noqa: B008
) -> None:
    """Parse an address into components and report missing fields."""
    from nurture_geo.services.geocoding_service import describe_address

    parsed = describe_address(address)
    typer.echo(f"Normalized: {parsed.normalized_address}")
    for name, value in parsed.components.items():
        typer.echo(f"  {name + ':':<15} {value}")
    typer.echo(f"Formatted:  {parsed.formatted_address}")
    if parsed.validation.missing_components:
        typer.echo(f"Missing:    {', '.join(parsed.validation.missing_components)}")
    for malformed in parsed.validation.malformed_components:
        typer.echo(f"Malformed:  {malformed.component} ({malformed.issue})")


@geocode_app.command("distance")
def distance(
    lat1: float = typer.Argument(..., help="First latitude"),  # noqa: B008
    lng1: float = typer.Argument(..., help="First longitude"),  # noqa: B008
    lat2: float = typer.Argument(..., help="Second latitude"),  # noqa: B008
    lng2: float = typer.Argument(..., help="Second longitude"),  # noqa: B008
) -> None:
    """Print the great-circle distance in kilometers between two points."""
    from nurture_geo.services.proximity_service import calculate_distance

    typer.echo(f"{calculate_distance(lat1, lng1, lat2, lng2):.3f} km")


@geocode_app.command("providers")
def providers() -> None:
    """List geocoding providers and their position in the fallback order."""
    from nurture_geo.core.config import get_settings
    from nurture_geo.lib.geocoder import get_available_providers, get_configured_providers

    active = [geocoder.provider_name for geocoder in get_configured_providers(get_settings())]
    for name in get_available_providers():
        status = f"active (#{active.index(name) + 1})" if name in active else "not configured"
        typer.echo(f"{name:<10} {status}")
    typer.echo(f"{'mock':<10} fallback")


@geocode_app.command("batch")
def batch(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="File with one address per line"),  # noqa: B008
    batch_size: int | None = typer.Option(None, "--batch-size", min=1, help="Addresses per concurrent chunk"),
    delay: float | None = typer.Option(None, "--delay", help="Seconds to wait between chunks"),
) -> None:
    """Geocode every address in a file and print one JSON object per line."""
    addresses = [line.strip() for line in file.read_text(encoding="utf-8").splitlines() if line.strip()]
    if not addresses:
        typer.echo("No addresses found.", err=True)
        raise typer.Exit(code=1)

    asyncio.run(_batch(addresses, batch_size, delay))


async def _batch(addresses: list[str], batch_size: int | None, delay: float | None) -> None:
    """Async implementation of batch geocoding."""
    from nurture_geo.services.geocoding_service import batch_geocode

    results = await batch_geocode(addresses, batch_size=batch_size, delay=delay)

    for address in addresses:
        result = results[address]
        typer.echo(json.dumps({"input": address, **result.model_dump()}))

    mock_count = sum(1 for r in results.values() if r.provider == "mock")
    typer.echo(f"Geocoded {len(results)} unique addresses ({mock_count} approximate)", err=True)
