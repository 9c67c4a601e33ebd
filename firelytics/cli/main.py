"""firelytics CLI - Main entry point.

Command-line interface for sending analytics events to Google Analytics and
managing the collector configuration.
"""

import asyncio
import logging
from typing import Annotated, Any

import httpx
import typer

from firelytics.cli import output
from firelytics.cli.config import (
    FirelyticsConfig,
    build_client_settings,
    get_config_paths,
    get_effective_config,
    load_config,
    update_config,
)
from firelytics.telemetry.client import FirebaseAnalytics
from firelytics.telemetry.errors import ConfigError, ValidationError
from firelytics.telemetry.transport import DEFAULT_TIMEOUT
from firelytics.version import __version__

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Main app
app = typer.Typer(
    name="firelytics",
    help="Send analytics events to Google Analytics (Measurement Protocol v2).",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Config subcommand group
config_app = typer.Typer(
    name="config",
    help="Manage CLI configuration.",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")


def create_http_client() -> httpx.AsyncClient:
    """Create the HTTP client used to reach the collector."""
    return httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)


def parse_pairs(values: list[str] | None, coerce_numbers: bool = True) -> dict[str, Any]:
    """Parse key=value pairs, converting numeric values to numbers unless disabled."""
    result: dict[str, Any] = {}
    for item in values or []:
        key, sep, raw = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got '{item}'")
        result[key] = _coerce_value(raw) if coerce_numbers else raw
    return result


def _coerce_value(raw: str) -> Any:
    for convert in (int, float):
        try:
            return convert(raw)
        except ValueError:
            continue
    return raw


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        output.console.print(f"firelytics version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """firelytics - Google Analytics events from the command line."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
    )


async def _send_event(
    config: FirelyticsConfig,
    event_name: str,
    params: dict[str, Any],
    screen: str | None,
    user_id: str | None,
    user_properties: dict[str, Any],
) -> int:
    """Log one event and send it right away.

    Returns:
        Number of events sent
    """
    client_config, options = build_client_settings(config)
    async with create_http_client() as http_client:
        analytics = FirebaseAnalytics(client_config, options, http_client=http_client)
        await analytics.set_analytics_collection_enabled(config.settings.enabled)
        await analytics.set_current_screen(screen)
        await analytics.set_user_id(user_id)
        if user_properties:
            await analytics.set_user_properties(user_properties)
        await analytics.log_event(event_name, params)

        sent = len(analytics.pending_events)
        await analytics.flush_events()
        await analytics.aclose()
    return sent


@app.command()
def send(
    event_name: Annotated[str, typer.Argument(help="Event name (e.g., purchase)")],
    param: Annotated[
        list[str] | None,
        typer.Option("--param", "-p", help="Event parameter as key=value (repeatable)"),
    ] = None,
    screen: Annotated[
        str | None,
        typer.Option("--screen", "-s", help="Current screen name"),
    ] = None,
    user_id: Annotated[
        str | None,
        typer.Option("--user-id", help="User ID to attach to the event"),
    ] = None,
    user_property: Annotated[
        list[str] | None,
        typer.Option("--user-property", "-u", help="User property as key=value (repeatable)"),
    ] = None,
    measurement_id: Annotated[
        str | None,
        typer.Option(
            "--measurement-id",
            "-m",
            help="Measurement ID (or use FIRELYTICS_MEASUREMENT_ID env var)",
        ),
    ] = None,
    debug: Annotated[
        bool | None,
        typer.Option("--debug/--no-debug", help="Send in debug mode (shows in DebugView)"),
    ] = None,
) -> None:
    """Send a single analytics event.

    Examples:
        firelytics send app_open
        firelytics send purchase -p currency=EUR -p value=9.99
        firelytics send tutorial_begin --screen home --user-id 42 --debug
    """
    params = parse_pairs(param)
    user_properties = parse_pairs(user_property, coerce_numbers=False)
    config = get_effective_config(measurement_id=measurement_id, debug=debug)

    try:
        sent = asyncio.run(
            _send_event(config, event_name, params, screen, user_id, user_properties)
        )
    except ConfigError as e:
        output.print_error(
            str(e),
            hint="Run 'firelytics config set collector.measurement_id G-XXXXXXXXXX' "
            "or provide --measurement-id",
        )
        raise typer.Exit(1) from None
    except ValidationError as e:
        output.print_error(str(e))
        raise typer.Exit(1) from None
    except httpx.HTTPError as e:
        output.print_error(f"Could not reach the collector: {e}")
        raise typer.Exit(1) from None

    if sent:
        output.print_success(f"Sent {event_name} to {config.collector.measurement_id}")
    else:
        output.print_info("Analytics collection is disabled, nothing was sent")


# Config subcommands


@config_app.command("show")
def config_show() -> None:
    """Show current configuration."""
    config = load_config()
    output.print_config(config.model_dump())

    paths = get_config_paths()
    output.print_info(f"\nConfig directory: {paths['config_dir']}")


@config_app.command("set")
def config_set(
    key: Annotated[
        str,
        typer.Argument(help="Config key (e.g., collector.measurement_id, settings.debug)"),
    ],
    value: Annotated[
        str,
        typer.Argument(help="New value"),
    ],
) -> None:
    """Set a configuration value.

    Examples:
        firelytics config set collector.measurement_id G-XXXXXXXXXX
        firelytics config set settings.max_cache_time 1000
    """
    try:
        update_config(key, value)
        output.print_success(f"Set {key} = {value}")
    except ValueError as e:
        output.print_error(str(e))
        raise typer.Exit(1) from None


@config_app.command("path")
def config_path() -> None:
    """Show configuration file paths."""
    paths = get_config_paths()
    output.console.print(f"Config directory: {paths['config_dir']}")
    output.console.print(f"Config file: {paths['config_file']}")
    output.console.print(f"Client ID file: {paths['client_id_file']}")


def cli() -> None:
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    cli()
