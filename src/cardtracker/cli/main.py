#!/usr/bin/env python3
"""
Main CLI Entry Point for the Credit Card Tracker

Provides the card-tracker command group.
"""

import logging
import os

import click

from ..core.config import get_config, reload_config
from ..core.errors import ConfigError, FetchError


@click.group()
@click.option(
    "--config-env",
    type=click.Choice(["development", "test", "production"]),
    help="Override environment configuration",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_env: str | None, verbose: bool, debug: bool) -> None:
    """
    Credit Card Tracker - Open Banking card ledger sync

    Keeps a per-card ledger of credit card transactions and pairs each charge
    with the repayment or refund that settles it.
    """
    # Ensure context object exists
    ctx.ensure_object(dict)

    # Set environment if specified
    if config_env:
        os.environ["CARD_TRACKER_ENV"] = config_env

    # Configure debug logging if requested
    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger("cardtracker").setLevel(logging.DEBUG)

    try:
        config = reload_config() if config_env or debug else get_config()
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    # Store global options
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["config"] = config

    if verbose:
        click.echo(f"Environment: {config.environment.value}")
        click.echo(f"Data directory: {config.data_dir}")

    if debug:
        click.echo("Debug logging enabled")


@main.command()
def version() -> None:
    """Show version information."""
    from cardtracker import __version__

    click.echo(f"Credit Card Tracker v{__version__}")


@main.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration."""
    config_obj = ctx.obj["config"]

    click.echo("Current Configuration:")
    click.echo(f"  Environment: {config_obj.environment.value}")
    click.echo(f"  Data Directory: {config_obj.data_dir}")
    click.echo(f"  Source: {config_obj.source.value}")
    click.echo(f"  TrueLayer API: {config_obj.truelayer.api_base_url}")
    click.echo(f"  Access Token: {'set' if config_obj.truelayer.access_token else 'not set'}")
    click.echo(f"  Fetch Days: {config_obj.sync.fetch_days}")
    click.echo(f"  Concurrency: {config_obj.sync.concurrency}")
    window = config_obj.sync.match_window_days
    click.echo(f"  Match Window: {f'{window} days' if window is not None else 'unlimited'}")
    click.echo(f"  Cards File: {config_obj.sync.cards_file or 'not set'}")
    click.echo(f"  Debug Mode: {config_obj.debug}")
    click.echo(f"  Log Level: {config_obj.log_level}")


@main.group()
def show() -> None:
    """Show tracker state."""
    pass


@show.command()
@click.pass_context
def paths(ctx: click.Context) -> None:
    """Show where the tracker keeps its files."""
    from ..workbook import CsvWorkbookStore

    config_obj = ctx.obj["config"]
    store = CsvWorkbookStore(config_obj.workbook.ledger_dir)

    click.echo(f"Data:    {config_obj.data_dir}")
    click.echo(f"Ledgers: {config_obj.workbook.ledger_dir} ({store.summary_text()})")
    click.echo(f"Exports: {config_obj.export_dir}")
    click.echo(f"Cache:   {config_obj.cache_dir}")
    if config_obj.sync.cards_file:
        click.echo(f"Cards:   {config_obj.sync.cards_file}")


@main.command()
@click.option(
    "--source",
    type=click.Choice(["truelayer", "export"]),
    help="Override the configured transaction source",
)
@click.pass_context
def cards(ctx: click.Context, source: str | None) -> None:
    """List the cards available from the transaction source."""
    config_obj = ctx.obj["config"]

    try:
        with open_source(config_obj, source) as transaction_source:
            available = transaction_source.list_cards()
    except FetchError as e:
        raise click.ClickException(str(e)) from e

    if not available:
        click.echo("No cards found")
        return

    for card in available:
        provider = f" [{card.provider}]" if card.provider else ""
        click.echo(f"{card.id}: {card.name}{provider}")


# Import sync command
from .sync import open_source, sync  # noqa: E402

main.add_command(sync)


if __name__ == "__main__":
    main()
