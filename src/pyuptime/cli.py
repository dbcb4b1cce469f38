"""Command line entry point for pyuptime."""

import logging
from importlib.metadata import PackageNotFoundError, version

import typer
from rich.console import Console
from rich.logging import RichHandler

from pyuptime.app import UptimeApp
from pyuptime.models import DisplayConfig, OutputFormat
from pyuptime.monitor import MetricsCollector
from pyuptime.render import render

app = typer.Typer(add_completion=False, help="Show how long the system has been running.")
console = Console()


def package_version() -> str:
    try:
        return version("pyuptime")
    except PackageNotFoundError:
        return "unknown"


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr; DEBUG with --verbose, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def resolve_format(
    output_format: OutputFormat | None,
    pretty: bool,
    raw: bool,
    since: bool,
) -> tuple[OutputFormat, bool]:
    """
    Work out the display format and whether to append the boot timestamp.

    ``--since`` on its own selects since mode; combined with
    ``--format standard`` it appends the boot timestamp instead.
    """
    if output_format is None:
        if raw:
            return OutputFormat.RAW, False
        if pretty:
            return OutputFormat.PRETTY, False
        if since:
            return OutputFormat.SINCE, False
        return OutputFormat.STANDARD, False
    return output_format, since and output_format is OutputFormat.STANDARD


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"pyuptime {package_version()}")
        raise typer.Exit()


@app.command()
def main(
    output_format: OutputFormat | None = typer.Option(
        None,
        "--format",
        "-f",
        case_sensitive=False,
        help="Output format style.",
    ),
    pretty: bool = typer.Option(False, "--pretty", "-p", help="Show uptime in pretty format."),
    raw: bool = typer.Option(False, "--raw", "-r", help="Show raw values for scripts."),
    since: bool = typer.Option(False, "--since", "-s", help="Show the time the system booted."),
    container: bool = typer.Option(
        False, "--container", "-c", help="Annotate output as running inside a container."
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output."),
    interval: float = typer.Option(
        1.0,
        "--interval",
        "-n",
        min=0.1,
        envvar="PYUPTIME_REFRESH",
        help="Dashboard refresh interval in seconds.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log data source problems."),
    show_version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    configure_logging(verbose)

    selected, show_since = resolve_format(output_format, pretty, raw, since)
    config = DisplayConfig(
        format=selected,
        show_container=container,
        show_since=show_since,
        color=not no_color and console.is_terminal and console.color_system is not None,
    )
    collector = MetricsCollector()

    if selected is OutputFormat.INTERACTIVE and console.is_terminal:
        UptimeApp(collector, config, refresh_interval=interval).run()
        return

    typer.echo(render(collector.collect_or_default(), config))


if __name__ == "__main__":
    app()
