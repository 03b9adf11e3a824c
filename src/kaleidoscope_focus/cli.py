"""
kaleidoscope-focus CLI

Command-line interface for sending Focus commands, and for backing up and
restoring the keyboard configuration.

Replies and backups are written to stdout; progress, logs and errors go to
stderr so the output can be piped:

    focus backup > keyboard.json
    focus restore < keyboard.json
"""

import sys
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn

from kaleidoscope_focus import __version__
from kaleidoscope_focus.core import (
    ConnectionConfig,
    MalformedSnapshotError,
    Snapshot,
    connect,
    load_fallback_commands,
    backup as core_backup,
    restore as core_restore,
)
from kaleidoscope_focus.devices import DeviceNotFoundError, describe_ports
from kaleidoscope_focus.protocol import FocusTransportError, ProgressReport

logger = logging.getLogger("kaleidoscope_focus")

# Setup Rich console (stderr, stdout carries data)
console = Console(stderr=True)

app = typer.Typer(
    help="Talk to Kaleidoscope powered keyboards over Focus",
    no_args_is_help=True,
)


def setup_logging(level: int) -> None:
    """Route log records through Rich on stderr."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def print_header(text: str) -> None:
    """Print fancy header."""
    console.print(Panel(text, expand=False, style="bold blue"))


def print_success(text: str) -> None:
    """Print success message."""
    console.print(f"✓ {text}", style="green")


def print_warning(text: str) -> None:
    """Print warning message."""
    console.print(f"⚠️  {text}", style="yellow")


def print_error(text: str) -> None:
    """Print error message."""
    console.print(f"❌ {text}", style="red")


class RichProgressReport(ProgressReport):
    """Feed session I/O progress into a Rich progress task."""

    def __init__(self, display: Progress, task_id) -> None:
        self.display = display
        self.task_id = task_id

    def reset(self, length: int) -> None:
        if length:
            self.display.reset(self.task_id, total=length)
        else:
            self.display.reset(self.task_id)

    def progress(self, delta: int) -> None:
        self.display.advance(self.task_id, delta)


def make_progress(quiet: bool) -> Progress:
    """Build the transient progress display used by every device command."""
    return Progress(
        SpinnerColumn(),
        TextColumn("{task.description}"),
        BarColumn(),
        console=console,
        disable=quiet,
        transient=True,
    )


def get_config(ctx: typer.Context) -> ConnectionConfig:
    """Return the connection settings collected by the global options."""
    if not isinstance(ctx.obj, ConnectionConfig):
        ctx.obj = ConnectionConfig()
    return ctx.obj


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"focus {__version__}")
        raise typer.Exit()


@app.callback()
def main_options(
    ctx: typer.Context,
    device: Optional[str] = typer.Option(
        None, "--device", "-d", envvar="DEVICE", metavar="PATH",
        help="The device to connect to (default: first supported keyboard)",
    ),
    chunk_size: int = typer.Option(
        32, "--chunk-size", "-c", min=0,
        help="Size of the chunks used to send data; 0 writes everything at once",
    ),
    interval: int = typer.Option(
        50, "--interval", min=0,
        help="Delay between chunks and reads, in milliseconds",
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Operate quietly"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log wire traffic"),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=version_callback, is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """Talk to Kaleidoscope powered keyboards over Focus."""
    if verbose:
        setup_logging(logging.DEBUG)
    elif quiet:
        setup_logging(logging.WARNING)
    else:
        setup_logging(logging.INFO)

    ctx.obj = ConnectionConfig(
        endpoint=device,
        chunk_size=chunk_size,
        inter_chunk_delay_ms=interval,
        read_timeout_ms=interval,
        quiet=quiet,
    )


@app.command("list-ports")
def list_ports(
    details: bool = typer.Option(False, "--details", help="Show model and USB ids"),
) -> None:
    """List available ports for Focus-capable devices."""
    try:
        matches = describe_ports()
    except Exception as e:
        print_error(f"Could not enumerate serial ports: {e}")
        raise typer.Exit(1)

    if not matches:
        print_error("No supported devices found")
        raise typer.Exit(1)

    if not details:
        for port, _ in matches:
            typer.echo(port.device)
        return

    print_header("Focus Devices")

    table = Table(title="Supported Devices")
    table.add_column("Port", style="cyan")
    table.add_column("Model", style="magenta")
    table.add_column("USB ID", style="yellow")
    table.add_column("Description", style="green")

    for port, device in matches:
        table.add_row(port.device, device.name, device.usb_id, getattr(port, "description", None) or "-")

    console.print(table)


@app.command()
def send(
    ctx: typer.Context,
    command: str = typer.Argument(..., help="The command to send"),
    args: Optional[List[str]] = typer.Argument(None, help="Optional arguments for COMMAND"),
) -> None:
    """Send a request to the keyboard, and display the reply."""
    config = get_config(ctx)

    try:
        with connect(config) as session, make_progress(config.quiet) as progress:
            task = progress.add_task(command, total=None)
            session.set_progress_report(RichProgressReport(progress, task))
            reply = session.flush().request(command, args or [])
    except (DeviceNotFoundError, FocusTransportError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    if reply:
        typer.echo(reply)


@app.command()
def backup(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Save to file instead of printing to stdout",
    ),
    fallback_commands: Optional[Path] = typer.Option(
        None, "--fallback-commands",
        help="JSON command list to use when the firmware cannot list its settings",
    ),
) -> None:
    """Back up the keyboard configuration as JSON."""
    config = get_config(ctx)

    try:
        fallback = load_fallback_commands(fallback_commands) if fallback_commands else None
    except (OSError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    try:
        with connect(config) as session, make_progress(config.quiet) as progress:
            commands_task = progress.add_task("backing up", total=None)
            io_task = progress.add_task("", total=None, visible=False)
            session.set_progress_report(RichProgressReport(progress, io_task))

            def on_command(command: str, index: int, total: int) -> None:
                progress.update(
                    commands_task,
                    description=f"backing up: {command}",
                    completed=index - 1,
                    total=total,
                )

            snapshot = core_backup(session, fallback_commands=fallback, progress_cb=on_command)
    except (DeviceNotFoundError, FocusTransportError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not snapshot.restore:
        print_warning("The keyboard returned no settings to back up")

    document = snapshot.to_json()
    if output:
        output.write_text(document + "\n", encoding="utf-8")
        if not config.quiet:
            print_success(f"Backed up {len(snapshot.restore)} settings to {output}")
    else:
        typer.echo(document)


@app.command()
def restore(
    ctx: typer.Context,
    input_path: Optional[Path] = typer.Option(
        None, "--input", "-i", help="Read the backup from file instead of stdin",
    ),
) -> None:
    """Restore the keyboard configuration from a JSON backup."""
    config = get_config(ctx)

    # Parse everything before touching the device.
    try:
        text = input_path.read_text(encoding="utf-8") if input_path else sys.stdin.read()
        snapshot = Snapshot.from_json(text)
    except (OSError, MalformedSnapshotError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    try:
        with connect(config) as session, make_progress(config.quiet) as progress:
            commands_task = progress.add_task("restoring", total=len(snapshot.restore))

            def on_command(command: str, index: int, total: int) -> None:
                progress.update(
                    commands_task,
                    description=f"restoring: {command}",
                    completed=index - 1,
                )

            core_restore(session, snapshot, progress_cb=on_command)
    except (DeviceNotFoundError, FocusTransportError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not config.quiet:
        print_success("Restore complete")


def main() -> None:
    """Main entry point."""
    # Ctrl-C is turned into "Aborted!" and exit code 1 by Click itself.
    try:
        app()
    except Exception as e:
        logger.debug("Unhandled error", exc_info=True)
        console.print(f"\n[red bold]Fatal error:[/red bold] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
