"""Command-line interface for AlphaCloud."""

import asyncio
import json
from collections.abc import Callable, Coroutine
from datetime import datetime
from pathlib import Path
from typing import Any

import click
import httpx
from rich.console import Console
from rich.table import Table

from alphacloud.api.connector import Connector
from alphacloud.api.errors import RequestStatus
from alphacloud.config.logging import configure_logging, get_logger
from alphacloud.config.settings import Configuration, Settings, get_settings
from alphacloud.controllers import DailyEnergy, DayPowerSeries, DeviceInventory, LiveData
from alphacloud.controllers.base import EntityController
from alphacloud.utils.exceptions import AlphaCloudError, APIError, ConfigurationError

console = Console()
err_console = Console(stderr=True)


def run_async(coro: Coroutine[Any, Any, Any]) -> Any:
    """Run an async coroutine."""
    return asyncio.run(coro)


def create_transport(configuration: Configuration) -> httpx.AsyncClient:
    """Create the HTTP client requests are sent with.

    Args:
        configuration: API configuration, its request timeout becomes the
            client's default timeout.
    """
    timeout = configuration.request_timeout / 1000 if configuration.request_timeout else None
    return httpx.AsyncClient(timeout=timeout)


def load_settings(config_path: str | None = None) -> Settings:
    """Load settings and configure logging.

    Args:
        config_path: Optional path to the INI configuration file.

    Returns:
        Settings object.
    """
    get_settings.cache_clear()
    settings = get_settings()
    if config_path:
        settings = settings.model_copy(update={"config_file": Path(config_path)})

    configure_logging(settings)
    return settings


def build_configuration(ctx: click.Context) -> tuple[Settings, Configuration]:
    """Build the API configuration from the INI file, environment and options.

    Raises:
        ConfigurationError: If the resulting configuration is invalid.
    """
    settings = load_settings(ctx.obj.get("config_path"))
    configuration = Configuration.from_settings(settings)

    if ctx.obj.get("api_url"):
        configuration.api_url = ctx.obj["api_url"]
    if ctx.obj.get("app_id"):
        configuration.app_id = ctx.obj["app_id"]
    if ctx.obj.get("app_secret"):
        configuration.app_secret = ctx.obj["app_secret"]

    if not configuration.valid:
        raise ConfigurationError(
            f"Invalid API configuration, check {settings.get_config_file()} "
            "or pass --url, --key and --secret"
        )

    return settings, configuration


def check_status(controller: EntityController, what: str) -> None:
    """Raise if the controller ended in an error.

    Raises:
        APIError: If ``status`` is ``ERROR``.
    """
    if controller.status is RequestStatus.ERROR:
        raise APIError(
            f"Failed to load {what}: {controller.error_string or int(controller.error)}",
            code=int(controller.error),
        )


async def load(controller: EntityController, what: str) -> None:
    """Reload a controller and wait for the result.

    Raises:
        AlphaCloudError: If the request could not be sent.
        APIError: If the request failed.
    """
    if not controller.reload():
        raise AlphaCloudError(f"Failed to request {what}")
    await controller.wait()
    check_status(controller, what)


async def resolve_serial_number(connector: Connector, serial_number: str | None) -> str:
    """Get the given serial number, or the primary one if none was given."""
    if serial_number:
        return serial_number

    err_console.print("Fetching primary serial number...")
    inventory = DeviceInventory(connector, cached=False)
    await load(inventory, "storage systems")

    if not inventory.primary_serial_number:
        raise AlphaCloudError("No storage systems found")
    return inventory.primary_serial_number


async def poll(
    controller: EntityController,
    what: str,
    render: Callable[[Any], None],
    follow: float,
) -> None:
    """Load and render, then repeat every ``follow`` seconds if set."""
    while True:
        await load(controller, what)
        render(controller)

        if not follow:
            return
        console.print()
        await asyncio.sleep(follow)


def print_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


def run_command(ctx: click.Context, name: str, body: Callable[..., Coroutine[Any, Any, None]]) -> None:
    """Run a command coroutine with a connector and handle failures."""
    logger = get_logger(__name__)

    try:
        _, configuration = build_configuration(ctx)
    except ConfigurationError as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        raise SystemExit(1) from None

    async def _run() -> None:
        async with create_transport(configuration) as client:
            connector = Connector(configuration, client)
            await body(connector)

    try:
        run_async(_run())
    except KeyboardInterrupt:
        logger.debug("Interrupted", command=name)
    except AlphaCloudError as e:
        err_console.print(f"[red]{e}[/red]")
        logger.error("Command failed", command=name, error=str(e))
        raise SystemExit(1) from None


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Path to INI configuration file",
)
@click.option("--url", "-u", "api_url", help="API URL")
@click.option("--key", "-k", "app_id", help="App ID")
@click.option("--secret", "-p", "app_secret", help="App secret")
@click.option("--json", "-j", "json_output", is_flag=True, help="Output raw JSON")
@click.option(
    "--follow",
    "-w",
    type=click.FloatRange(min=0),
    default=0,
    help="Reload every N seconds until interrupted",
)
@click.version_option(package_name="alphacloud")
@click.pass_context
def cli(
    ctx: click.Context,
    config: str | None,
    api_url: str | None,
    app_id: str | None,
    app_secret: str | None,
    json_output: bool,
    follow: float,
) -> None:
    """AlphaCloud - Query AlphaESS storage systems."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["api_url"] = api_url
    ctx.obj["app_id"] = app_id
    ctx.obj["app_secret"] = app_secret
    ctx.obj["json"] = json_output
    ctx.obj["follow"] = follow


@cli.command("storage-systems")
@click.pass_context
def storage_systems(ctx: click.Context) -> None:
    """List the storage systems registered to the application."""
    json_output = ctx.obj["json"]

    def render(inventory: DeviceInventory) -> None:
        err_console.print(f"{len(inventory)} storage system(s) found")

        if json_output:
            print_json([system.json_data for system in inventory])
            return

        table = Table(title="Storage Systems")
        table.add_column("Serial Number", style="cyan")
        table.add_column("Status")
        table.add_column("Inverter")
        table.add_column("Inverter Power (W)", justify="right")
        table.add_column("Battery")
        table.add_column("Gross Capacity (Wh)", justify="right")
        table.add_column("Remaining Capacity (Wh)", justify="right")
        table.add_column("Usable Capacity (%)", justify="right")
        table.add_column("PV Power (W)", justify="right")

        for system in inventory:
            table.add_row(
                system.serial_number,
                system.status.name,
                system.inverter_model or "-",
                str(system.inverter_power),
                system.battery_model or "-",
                str(system.battery_gross_capacity),
                str(system.battery_remaining_capacity),
                f"{system.battery_usable_capacity:g}",
                str(system.photovoltaic_power),
            )

        console.print(table)

    async def _body(connector: Connector) -> None:
        inventory = DeviceInventory(connector, cached=False)
        await poll(inventory, "storage systems", render, ctx.obj["follow"])

    run_command(ctx, "storage-systems", _body)


@cli.command()
@click.option("--serial", "-s", "serial_number", help="Serial number (defaults to the primary system)")
@click.pass_context
def live(ctx: click.Context, serial_number: str | None) -> None:
    """Show the current power readings."""
    json_output = ctx.obj["json"]

    def render(data: LiveData) -> None:
        if json_output:
            print_json(data.raw_json)
            return

        table = Table(title=f"Live Data {data.serial_number}")
        table.add_column("Field", style="cyan")
        table.add_column("Value", justify="right")
        table.add_row("Photovoltaic Power (W)", str(data.photovoltaic_power))
        table.add_row("Current Load (W)", str(data.current_load))
        table.add_row("Grid Power (W)", str(data.grid_power))
        table.add_row("Battery Power (W)", str(data.battery_power))
        table.add_row("Battery SoC (%)", f"{data.battery_soc:g}")
        console.print(table)

    async def _body(connector: Connector) -> None:
        serial = await resolve_serial_number(connector, serial_number)
        await poll(LiveData(connector, serial), "live data", render, ctx.obj["follow"])

    run_command(ctx, "live", _body)


@cli.command()
@click.option("--serial", "-s", "serial_number", help="Serial number (defaults to the primary system)")
@click.option("--date", "-d", "query_date", type=click.DateTime(formats=["%Y-%m-%d"]), help="Date (defaults to today)")
@click.pass_context
def energy(ctx: click.Context, serial_number: str | None, query_date: datetime | None) -> None:
    """Show the energy totals of a day."""
    json_output = ctx.obj["json"]

    def render(data: DailyEnergy) -> None:
        if not data.valid:
            err_console.print("[yellow]No data available for this date[/yellow]")
            return

        if json_output:
            print_json(data.raw_json)
            return

        table = Table(title=f"Energy {data.serial_number} {data.date}")
        table.add_column("Field", style="cyan")
        table.add_column("Value (Wh)", justify="right")
        table.add_row("Photovoltaic", str(data.photovoltaic))
        table.add_row("Total Load", str(data.total_load))
        table.add_row("Grid Input", str(data.input))
        table.add_row("Grid Output", str(data.output))
        table.add_row("Battery Charge", str(data.charge))
        table.add_row("Battery Discharge", str(data.discharge))
        table.add_row("Grid Charge", str(data.grid_charge))
        console.print(table)

    async def _body(connector: Connector) -> None:
        serial = await resolve_serial_number(connector, serial_number)
        data = DailyEnergy(connector, serial, query_date.date() if query_date else None)
        data.cached = False
        await poll(data, "daily energy", render, ctx.obj["follow"])

    run_command(ctx, "energy", _body)


@cli.command()
@click.option("--serial", "-s", "serial_number", help="Serial number (defaults to the primary system)")
@click.option("--date", "-d", "query_date", type=click.DateTime(formats=["%Y-%m-%d"]), help="Date (defaults to today)")
@click.pass_context
def history(ctx: click.Context, serial_number: str | None, query_date: datetime | None) -> None:
    """Show the power history of a day."""
    json_output = ctx.obj["json"]

    def render(series: DayPowerSeries) -> None:
        err_console.print(f"{len(series)} history entries found")

        if json_output:
            print_json([entry.json_data for entry in series])
            return

        table = Table(title=f"Power History {series.serial_number} {series.date}")
        table.add_column("Time", style="cyan")
        table.add_column("PV (W)", justify="right")
        table.add_column("Load (W)", justify="right")
        table.add_column("Feed-in (W)", justify="right")
        table.add_column("Grid Charge (W)", justify="right")
        table.add_column("SoC (%)", justify="right")

        for entry in series:
            table.add_row(
                entry.upload_time.strftime("%H:%M:%S") if entry.upload_time else "-",
                str(entry.photovoltaic_power),
                str(entry.current_load),
                str(entry.grid_feed),
                str(entry.grid_charge),
                f"{entry.battery_soc:g}",
            )

        console.print(table)
        console.print(
            f"\n[bold]Peaks:[/bold] PV {series.peak_photovoltaic} W, load {series.peak_load} W, "
            f"feed-in {series.peak_grid_feed} W, grid charge {series.peak_grid_charge} W"
        )

    async def _body(connector: Connector) -> None:
        serial = await resolve_serial_number(connector, serial_number)
        series = DayPowerSeries(connector, serial, query_date.date() if query_date else None)
        series.cached = False
        await poll(series, "power history", render, ctx.obj["follow"])

    run_command(ctx, "history", _body)


if __name__ == "__main__":
    cli()
