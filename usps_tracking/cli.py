"""
Command-line interface for USPS order tracking.
Lets staff manage tracking numbers in the local order store and run the server.
"""

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape
from pathlib import Path

from usps_tracking import __version__

console = Console()


def _staff_dispatcher(ctx):
    """Build a dispatcher and a staff caller for local commands."""
    from usps_tracking.auth import CapabilityGate
    from usps_tracking.dispatcher import ActionDispatcher
    from usps_tracking.models import Caller
    from usps_tracking.service import TrackingService
    from usps_tracking.store import JsonFileOrderStore
    from usps_tracking.tracking import TrackingCollectionManager

    config = ctx.obj["config"]
    store = JsonFileOrderStore(config.order_store_path)
    service = TrackingService(
        store,
        CapabilityGate(config.staff_capability),
        TrackingCollectionManager(config),
    )
    caller = Caller(caller_id="cli", capabilities=[config.staff_capability])
    return ActionDispatcher(service), store, caller


def _print_response(response):
    if response.success:
        console.print(f"[green]✓ {escape(response.message or '')}[/green]")
    else:
        console.print(f"[red]✗ {escape(response.message or '')}[/red]")


@click.group()
@click.version_option(version=__version__, prog_name="USPS Tracking")
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    help="Path to configuration file"
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
@click.pass_context
def cli(ctx, config, verbose):
    """USPS Tracking - attach tracking numbers to orders"""
    from usps_tracking.config import init_config
    from usps_tracking.logging_config import setup_logging

    cfg = init_config(config)
    if verbose:
        cfg.log_level = "DEBUG"
    setup_logging(cfg, console=verbose)

    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg


@cli.command("create-order")
@click.argument("order_id")
@click.option("--customer", help="Customer ID allowed to view the order")
@click.pass_context
def create_order(ctx, order_id, customer):
    """Register an order in the local store."""
    _, store, _ = _staff_dispatcher(ctx)
    store.create(order_id, customer)
    console.print(f"[green]✓ Order {order_id} ready[/green]")


@cli.command()
@click.argument("order_id")
@click.argument("tracking_number")
@click.pass_context
def add(ctx, order_id, tracking_number):
    """Add a tracking number to an order."""
    from usps_tracking.models import ActionRequest, ActionType

    dispatcher, _, caller = _staff_dispatcher(ctx)
    response = dispatcher.dispatch(
        ActionRequest(
            action=ActionType.ADD_NUMBER.value,
            order_id=order_id,
            tracking_number=tracking_number,
        ),
        caller,
    )
    _print_response(response)


@cli.command("bulk-add")
@click.argument("order_id")
@click.option(
    "--file", "-f", "source",
    type=click.File("r"),
    default="-",
    help="File with tracking numbers (default: stdin)"
)
@click.pass_context
def bulk_add(ctx, order_id, source):
    """Add tracking numbers separated by newlines, commas, or spaces."""
    from usps_tracking.models import ActionRequest, ActionType

    dispatcher, _, caller = _staff_dispatcher(ctx)
    console.print("[bold]Processing bulk tracking numbers...[/bold]")

    response = dispatcher.dispatch(
        ActionRequest(
            action=ActionType.ADD_BULK.value,
            order_id=order_id,
            raw_block=source.read(),
        ),
        caller,
    )

    if not response.success:
        _print_response(response)
        return

    result = response.data
    table = Table(title="Bulk Add")
    table.add_column("Added", style="green")
    table.add_column("Skipped", style="yellow")
    table.add_column("Invalid", style="red")
    table.add_row(str(result["added"]), str(result["skipped"]), str(result["invalid"]))
    console.print(table)

    for line in result["errors"]:
        console.print(f"[yellow]{escape(line)}[/yellow]")


@cli.command()
@click.argument("order_id")
@click.argument("index", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete(ctx, order_id, index, yes):
    """Delete the tracking number at INDEX."""
    from usps_tracking.models import ActionRequest, ActionType

    if not yes and not click.confirm("Are you sure you want to delete this tracking number?"):
        return

    dispatcher, _, caller = _staff_dispatcher(ctx)
    response = dispatcher.dispatch(
        ActionRequest(
            action=ActionType.DELETE_NUMBER.value,
            order_id=order_id,
            index=index,
        ),
        caller,
    )
    _print_response(response)


@cli.command("list")
@click.argument("order_id")
@click.pass_context
def list_numbers(ctx, order_id):
    """Show an order's tracking numbers."""
    from usps_tracking.models import ActionRequest, ActionType

    dispatcher, _, caller = _staff_dispatcher(ctx)
    response = dispatcher.dispatch(
        ActionRequest(action=ActionType.GET_NUMBERS.value, order_id=order_id),
        caller,
    )

    if not response.success:
        _print_response(response)
        return

    if not response.data:
        console.print("[dim]No tracking numbers added yet.[/dim]")
        return

    table = Table(title=f"Order {order_id} - USPS Tracking Numbers")
    table.add_column("#", style="cyan")
    table.add_column("Tracking Number", style="green")
    table.add_column("Tracking URL")

    for entry in response.data:
        table.add_row(str(entry["index"]), entry["number"], entry["tracking_url"])

    console.print(table)


@cli.command("issue-token")
@click.argument("caller_id")
@click.option("--capability", "-p", multiple=True, help="Capability to grant")
@click.pass_context
def issue_token(ctx, caller_id, capability):
    """Issue a signed token for the HTTP server."""
    from usps_tracking.auth import TokenGate
    from usps_tracking.models import Caller

    try:
        gate = TokenGate(ctx.obj["config"])
    except ValueError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise SystemExit(1)

    click.echo(gate.issue(Caller(caller_id=caller_id, capabilities=list(capability))))


@cli.command()
@click.pass_context
def serve(ctx):
    """Run the HTTP server in the foreground."""
    config = ctx.obj["config"]
    console.print(Panel.fit(
        f"[bold blue]USPS Tracking v{__version__}[/bold blue]\n"
        f"http://{config.server_host}:{config.server_port}\n"
        "Press Ctrl+C to stop",
        title="Starting Server"
    ))

    from usps_tracking.server import run_server
    try:
        run_server(config)
    except ValueError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise SystemExit(1)


@cli.command()
@click.pass_context
def status(ctx):
    """Show configuration and store status."""
    config = ctx.obj["config"]
    console.print(Panel.fit(
        f"[bold]USPS Tracking v{__version__}[/bold]",
        title="Status"
    ))

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Order Store", config.order_store_path)
    table.add_row("Tracking URL", config.tracking_url_template)
    table.add_row("Staff Capability", config.staff_capability)
    table.add_row("Token Auth", "enabled" if config.auth_secret else "[dim]Not set[/dim]")
    table.add_row("Server", f"{config.server_host}:{config.server_port}")
    table.add_row("Log File", config.log_file)

    console.print(table)

    for problem in config.validate():
        console.print(f"[yellow]{problem}[/yellow]")

    from usps_tracking.store import JsonFileOrderStore, OrderStoreError
    try:
        orders = JsonFileOrderStore(config.order_store_path).order_ids()
        console.print(f"Orders in store: [green]{len(orders)}[/green]")
    except OrderStoreError as e:
        console.print(f"[red]✗ {e}[/red]")


@cli.command()
@click.argument("config_path", type=click.Path())
def init(config_path):
    """Initialize configuration file."""
    config_path = Path(config_path)

    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    template = '''# USPS Tracking Configuration

# Carrier lookup URL ({number} is replaced with the tracking number)
TRACKING_URL_TEMPLATE=https://tools.usps.com/go/TrackConfirmAction?qtc_tLabels1={number}

# Order storage
ORDER_STORE_PATH=data/orders.json

# Authorization
STAFF_CAPABILITY=manage_woocommerce
AUTH_SECRET=your-secret-key-here
AUTH_TOKEN_TTL=3600

# HTTP server
SERVER_HOST=127.0.0.1
SERVER_PORT=8080

# Logging
LOG_LEVEL=INFO
LOG_FILE=logs/usps_tracking.log
'''

    config_path.write_text(template, encoding='utf-8')
    console.print(f"[green]✓ Configuration file created: {config_path}[/green]")
    console.print("\nEdit this file with your settings, then run:")
    console.print(f"  usps-tracking --config {config_path} serve")


@cli.command()
@click.pass_context
def logs(ctx):
    """View recent logs."""
    log_file = Path(ctx.obj["config"].log_file)

    if not log_file.exists():
        console.print(f"[yellow]Log file not found: {log_file}[/yellow]")
        return

    console.print(f"[bold]Recent logs from {log_file}:[/bold]\n")

    # Read last 50 lines
    with open(log_file, "r") as f:
        lines = f.readlines()
        recent = lines[-50:] if len(lines) > 50 else lines

        for line in recent:
            # Color based on log level
            if "ERROR" in line:
                console.print(line.rstrip(), style="red", markup=False)
            elif "WARNING" in line:
                console.print(line.rstrip(), style="yellow", markup=False)
            elif "INFO" in line:
                console.print(line.rstrip(), style="green", markup=False)
            else:
                console.print(line.rstrip(), markup=False)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
