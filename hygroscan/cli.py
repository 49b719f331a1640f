"""Typer CLI entrypoint."""

from __future__ import annotations

import asyncio
import logging

import typer

from hygroscan.adapters.ble_scanner import BleakAdapter
from hygroscan.api import Client
from hygroscan.core.errors import HygroscanError
from hygroscan.core.model import DiscoveredDevice, Reading
from hygroscan.core.scanner import DEFAULT_RESTART_DELAY_S, ScanListener

app = typer.Typer(help="Passive BLE scanner and decoder for Xiaomi environmental sensors")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_client() -> Client:
    client = Client()
    for warning in getattr(client, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return client


def format_reading(reading: Reading) -> str:
    separator = "" if reading.unit in ("°C", "%") else " "
    line = f"{reading.kind.label}: {reading.value}{separator}{reading.unit}"
    if reading.address:
        line = f"[{reading.address}] {line}"
    return line


class EchoListener(ScanListener):
    def __init__(self, *, show_rssi: bool = False) -> None:
        self.show_rssi = show_rssi

    def on_reading(self, reading: Reading, device: DiscoveredDevice) -> None:
        line = format_reading(reading)
        if self.show_rssi and reading.rssi is not None:
            line = f"{line} (rssi {reading.rssi})"
        typer.echo(line)

    def on_error(self, error: HygroscanError) -> None:
        typer.echo(f"Error: {error}", err=True)


@app.command("decode")
def decode_payload(
    payload: str = typer.Argument(..., help="Service data payload as hex"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show frame header fields"),
) -> None:
    """Decode one fe95 service-data payload and print its readings."""
    try:
        client = _build_client()
        if verbose:
            frame = client.parse(payload)
            typer.echo(
                f"product=0x{frame.product_id:04x} counter={frame.frame_counter} "
                f"address={frame.address} records={len(frame.records)}"
            )
        readings = client.decode(payload)
        if not readings:
            typer.echo("No readings in payload")
            return
        for reading in readings:
            typer.echo(format_reading(reading))
    except HygroscanError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("products")
def list_products() -> None:
    """List known products and their header lengths."""
    try:
        client = _build_client()
        for product in client.list_products():
            typer.echo(f"0x{product.product_id:04x}: {product.name} (header {product.header_length} bytes)")
    except HygroscanError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("scan")
def scan(
    address: str | None = typer.Option(None, "--address", help="Only report this device address"),
    duration: float | None = typer.Option(None, "--duration", help="Seconds to scan; runs until interrupted if omitted"),
    force_discovering: bool = typer.Option(
        True,
        "--force-discovering/--no-force-discovering",
        help="Restart scanning when it stops unexpectedly",
    ),
    restart_delay: float = typer.Option(DEFAULT_RESTART_DELAY_S, "--restart-delay", help="Seconds before restarting"),
    passive: bool = typer.Option(False, "--passive", help="Use passive scanning where the platform supports it"),
    rssi: bool = typer.Option(False, "--rssi", help="Print signal strength with each reading"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Scan for sensor advertisements and print decoded readings."""
    _configure_logging(verbose)
    try:
        client = _build_client()
        adapter = BleakAdapter(scanning_mode="passive" if passive else "active")
        controller = client.scanner(
            adapter,
            EchoListener(show_rssi=rssi),
            address=address,
            force_discovering=force_discovering,
            restart_delay=restart_delay,
        )
        controller.start()
        try:
            asyncio.run(adapter.run(duration))
        except KeyboardInterrupt:
            pass
        finally:
            controller.stop()
    except HygroscanError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
