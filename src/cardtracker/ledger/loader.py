#!/usr/bin/env python3
"""
Store Snapshot Loader

Turns the rows of a card's tab into a CardLedger and back.

Loading is tolerant: a malformed row becomes a LoadWarning and is left out of
the ledger instead of aborting the sync. Rejected rows travel with the ledger
and are written back where they were, so nothing a human typed is lost.

Match annotations live in a single column:

- ""             -> Unmatched
- "auto:<id>"    -> AutoMatched(<id>)
- "manual:<id>"  -> ManuallyMatched(<id>)
- "manual"       -> ManuallyMatched(None), i.e. "do not auto-match me"

Any other text loads as Unmatched with a warning. Rows whose record did not
change are written back cell for cell as they were read.
"""

import logging
from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass, field

from ..core.dates import FinancialDate
from ..core.errors import LoadError
from ..core.money import Money
from .models import (
    UNMATCHED,
    AutoMatched,
    CardLedger,
    ManuallyMatched,
    MatchState,
    TransactionRecord,
)

logger = logging.getLogger(__name__)

DATE_COLUMN = "Date"
DESCRIPTION_COLUMN = "Description"
AMOUNT_COLUMN = "Amount"
CURRENCY_COLUMN = "Currency"
ID_COLUMN = "ID"
MATCH_COLUMN = "Match"

COLUMNS = [DATE_COLUMN, DESCRIPTION_COLUMN, AMOUNT_COLUMN, CURRENCY_COLUMN, ID_COLUMN, MATCH_COLUMN]

AUTO_PREFIX = "auto:"
MANUAL_PREFIX = "manual:"
MANUAL_NO_MATCH = "manual"

DEFAULT_CURRENCY = "GBP"

# Data rows start on line 2, below the header
FIRST_DATA_ROW_NUMBER = 2


@dataclass
class LoadWarning:
    """A persisted row that was skipped or loaded with a caveat."""

    row_number: int
    message: str
    record_id: str | None = None

    def __str__(self) -> str:
        if self.record_id:
            return f"row {self.row_number} ({self.record_id}): {self.message}"
        return f"row {self.row_number}: {self.message}"


@dataclass
class StoreSnapshot:
    """Result of loading a card's tab."""

    ledger: CardLedger
    warnings: list[LoadWarning] = field(default_factory=list)


def parse_match_annotation(value: str) -> MatchState | None:
    """
    Parse a match cell.

    Returns:
        The match state, or None if the text is not a recognized annotation
    """
    text = value.strip()
    if not text:
        return UNMATCHED

    lowered = text.lower()
    if lowered.startswith(AUTO_PREFIX):
        peer_id = text[len(AUTO_PREFIX) :].strip()
        return AutoMatched(peer_id) if peer_id else None
    if lowered.startswith(MANUAL_PREFIX):
        peer_id = text[len(MANUAL_PREFIX) :].strip()
        return ManuallyMatched(peer_id or None)
    if lowered == MANUAL_NO_MATCH:
        return ManuallyMatched(None)
    return None


def format_match_annotation(state: MatchState) -> str:
    """Render a match state as the text held in the match cell."""
    if isinstance(state, AutoMatched):
        return f"{AUTO_PREFIX}{state.peer_id}"
    if isinstance(state, ManuallyMatched):
        if state.peer_id is None:
            return MANUAL_NO_MATCH
        return f"{MANUAL_PREFIX}{state.peer_id}"
    return ""


def parse_row(card_id: str, row: Mapping[str, str], row_index: int) -> tuple[TransactionRecord, list[str]]:
    """
    Map one persisted row to a TransactionRecord.

    Args:
        card_id: Owning card
        row: Cells keyed by column header
        row_index: Zero-based position of the row in the tab

    Returns:
        Tuple of (record, caveats worth a warning)

    Raises:
        LoadError: If the id, date or amount cannot be used
    """
    row_number = row_index + FIRST_DATA_ROW_NUMBER
    record_id = _cell(row, ID_COLUMN).strip()
    if not record_id:
        raise LoadError("missing transaction id", row_number=row_number)

    raw_date = _cell(row, DATE_COLUMN)
    try:
        date = FinancialDate.from_string(raw_date)
    except ValueError as e:
        raise LoadError(f"unparsable date {raw_date!r}: {e}", row_number, record_id) from e

    raw_amount = _cell(row, AMOUNT_COLUMN)
    try:
        amount = Money.from_string(raw_amount)
    except ValueError as e:
        raise LoadError(f"unparsable amount {raw_amount!r}: {e}", row_number, record_id) from e

    caveats = []
    raw_match = _cell(row, MATCH_COLUMN)
    match_state = parse_match_annotation(raw_match)
    if match_state is None:
        caveats.append(f"unrecognized match annotation {raw_match!r}, treated as unmatched")
        match_state = UNMATCHED

    record = TransactionRecord(
        id=record_id,
        card_id=card_id,
        date=date,
        amount=amount,
        description=_cell(row, DESCRIPTION_COLUMN),
        match_state=match_state,
        currency=_cell(row, CURRENCY_COLUMN).strip() or DEFAULT_CURRENCY,
        row_index=row_index,
        raw_row=dict(row),
    )
    return record, caveats


def load_snapshot(card_id: str, columns: Sequence[str], rows: Sequence[Mapping[str, str]]) -> StoreSnapshot:
    """
    Build a CardLedger from a card's persisted rows.

    Manual annotations are authoritative and loaded as-is. Malformed rows and
    repeated ids are excluded from the ledger, recorded as warnings, and kept
    for write-back. The ids of malformed rows are reserved so a later fetch
    cannot store the same transaction twice.
    """
    records: list[TransactionRecord] = []
    seen_ids: set[str] = set()
    rejected: list[tuple[int, Mapping[str, str]]] = []
    warnings: list[LoadWarning] = []
    reserved_ids: set[str] = set()

    for row_index, row in enumerate(rows):
        row_number = row_index + FIRST_DATA_ROW_NUMBER

        if not any(str(value).strip() for value in row.values()):
            rejected.append((row_index, row))
            continue

        try:
            record, caveats = parse_row(card_id, row, row_index)
        except LoadError as e:
            warnings.append(LoadWarning(row_number, str(e), e.record_id))
            rejected.append((row_index, row))
            if e.record_id:
                reserved_ids.add(e.record_id)
            continue

        if record.id in seen_ids:
            warnings.append(LoadWarning(row_number, "duplicate transaction id, row skipped", record.id))
            rejected.append((row_index, row))
            continue

        seen_ids.add(record.id)
        records.append(record)
        warnings.extend(LoadWarning(row_number, caveat, record.id) for caveat in caveats)

    ledger = CardLedger(card_id, records, columns, rejected, reserved_ids)
    warnings.extend(_dangling_auto_matches(ledger))

    for warning in warnings:
        logger.warning(f"Card {card_id}: {warning}")

    return StoreSnapshot(ledger=ledger, warnings=warnings)


def _dangling_auto_matches(ledger: CardLedger) -> list[LoadWarning]:
    """Auto annotations whose peer is missing or does not point back."""
    warnings = []
    for record in ledger:
        if not isinstance(record.match_state, AutoMatched):
            continue
        peer = ledger.get(record.match_state.peer_id)
        if peer is None or peer.match_state != AutoMatched(record.id):
            row_number = (record.row_index or 0) + FIRST_DATA_ROW_NUMBER
            warnings.append(
                LoadWarning(
                    row_number,
                    f"auto-match peer {record.match_state.peer_id} does not match back; left as is",
                    record.id,
                )
            )
    return warnings


def record_to_row(record: TransactionRecord, columns: Sequence[str], changed: bool) -> dict[str, str]:
    """
    Render a record as a row.

    An unchanged record that came from the store is returned exactly as it
    was read. A changed one only has its match cell rewritten. Records first
    seen from the source get every cell filled in.
    """
    if record.raw_row is not None:
        row = {column: _cell(record.raw_row, column) for column in columns}
        if changed:
            row[MATCH_COLUMN] = format_match_annotation(record.match_state)
        return row

    row = {column: "" for column in columns}
    row.update(
        {
            DATE_COLUMN: record.date.to_iso_string(),
            DESCRIPTION_COLUMN: record.description,
            AMOUNT_COLUMN: str(record.amount),
            CURRENCY_COLUMN: record.currency,
            ID_COLUMN: record.id,
            MATCH_COLUMN: format_match_annotation(record.match_state),
        }
    )
    return row


def ledger_to_rows(ledger: CardLedger, changed_ids: Collection[str]) -> tuple[list[str], list[dict[str, str]]]:
    """
    Render a whole ledger as (columns, rows) for writing.

    Existing rows keep their positions, rejected rows are re-inserted where
    they were read, and records new to the store follow at the end.
    """
    columns = list(ledger.columns) or list(COLUMNS)
    columns.extend(column for column in COLUMNS if column not in columns)

    changed = set(changed_ids)
    pending = sorted(ledger.rejected_rows, key=lambda item: item[0])
    rows: list[dict[str, str]] = []

    def flush_rejected(before_index: int | None) -> None:
        while pending and (before_index is None or pending[0][0] < before_index):
            _, raw = pending.pop(0)
            rows.append({column: _cell(raw, column) for column in columns})

    for record in ledger:
        flush_rejected(record.row_index)
        rows.append(record_to_row(record, columns, record.id in changed))
    flush_rejected(None)

    return columns, rows


def _cell(row: Mapping[str, str], column: str) -> str:
    value = row.get(column)
    if value is None:
        return ""
    return str(value)
