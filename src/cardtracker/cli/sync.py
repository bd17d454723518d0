#!/usr/bin/env python3
"""
Sync CLI - Fetch, merge and match every configured card

Prints one line per card and exits non-zero if any card failed.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from ..core.config import Config, SourceKind
from ..core.errors import FetchError
from ..core.json_utils import write_json
from ..core.models import Card
from ..core.source import TransactionSource
from ..ledger import SyncEngine, SyncError, SyncSummary
from ..truelayer import TrueLayerClient, TrueLayerExportSource
from ..workbook import CsvWorkbookStore, tab_names_for


@contextmanager
def open_source(config: Config, source: str | None = None) -> Iterator[TransactionSource]:
    """Build the configured TransactionSource, closing it afterwards."""
    kind = SourceKind(source) if source else config.source

    if kind == SourceKind.EXPORT:
        yield TrueLayerExportSource(config.export_dir)
        return

    client = TrueLayerClient(config.truelayer, export_dir=config.export_dir)
    try:
        yield client
    finally:
        client.close()


def resolve_cards(config: Config, card_ids: tuple[str, ...], source: TransactionSource) -> list[Card]:
    """
    Decide which cards to sync.

    Explicit --card ids win, then the cards file, then whatever the source lists.
    """
    known = {card.id: card for card in config.sync.cards}
    if card_ids:
        return [known.get(card_id, Card(id=card_id, name=card_id)) for card_id in card_ids]
    if config.sync.cards:
        return list(config.sync.cards)
    return source.list_cards()


@click.command()
@click.option("--card", "card_ids", multiple=True, help="Card id to sync (repeatable; default: all cards)")
@click.option(
    "--source",
    type=click.Choice(["truelayer", "export"]),
    help="Override the configured transaction source",
)
@click.option("--concurrency", type=click.IntRange(min=1), help="Cards synced in parallel")
@click.option("--fetch-days", type=click.IntRange(min=1), help="Days of history to fetch")
@click.option("--match-window-days", type=click.IntRange(min=0), help="Largest date gap for an auto-match")
@click.option("--report-file", type=click.Path(dir_okay=False), help="Write a JSON sync report here")
@click.pass_context
def sync(
    ctx: click.Context,
    card_ids: tuple[str, ...],
    source: str | None,
    concurrency: int | None,
    fetch_days: int | None,
    match_window_days: int | None,
    report_file: str | None,
) -> None:
    """
    Sync card transactions into the ledger workbook and auto-match them.

    Examples:
      card-tracker sync
      card-tracker sync --card acc-123 --fetch-days 30
      card-tracker sync --source export --report-file sync-report.json
    """
    config = ctx.obj["config"]
    verbose = ctx.obj.get("verbose", False)

    try:
        with open_source(config, source) as transaction_source:
            cards = resolve_cards(config, card_ids, transaction_source)
            if not cards:
                click.echo("No cards to sync")
                return

            store = CsvWorkbookStore(config.workbook.ledger_dir, tab_names_for(cards))
            engine = SyncEngine(
                transaction_source,
                store,
                fetch_days=fetch_days or config.sync.fetch_days,
                match_window_days=match_window_days
                if match_window_days is not None
                else config.sync.match_window_days,
                concurrency=concurrency or config.sync.concurrency,
            )

            if verbose:
                click.echo(f"Syncing {len(cards)} cards into {config.workbook.ledger_dir}")
                click.echo(f"Fetching since {engine.fetch_since()}")

            report = engine.sync_all([card.id for card in cards])
    except FetchError as e:
        raise click.ClickException(str(e)) from e

    names = {card.id: card.name for card in cards}
    for result in report.results:
        label = names.get(result.card_id, result.card_id)
        if isinstance(result, SyncSummary):
            click.echo(f"{label}: total={result.total} new={result.new} matches={result.matches}")
        elif isinstance(result, SyncError):
            click.echo(f"{label}: FAILED ({result.kind.value}) {result.message}")

    click.echo(
        f"Synced {len(report.results)} cards: {len(report.succeeded)} succeeded, "
        f"{len(report.failed)} failed, {len(report.cancelled)} cancelled"
    )

    if report_file:
        write_json(Path(report_file), report.to_dict())
        if verbose:
            click.echo(f"Report written to {report_file}")

    if report.exit_code:
        ctx.exit(report.exit_code)
