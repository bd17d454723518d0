#!/usr/bin/env python3
"""
CSV Workbook DataStore

LedgerStore that keeps a workbook directory with one CSV "tab" per card.

Cells are read as text with no NA coercion, so values the tracker does not
touch ("001", "N/A", an empty note) round-trip exactly. A tab that changes on
disk between load and persist is not overwritten: the person editing it wins,
and the card is retried on the next run.
"""

import hashlib
import logging
import os
import re
import tempfile
import threading
from collections.abc import Collection, Iterable, Mapping
from datetime import datetime
from pathlib import Path

import pandas as pd

from ..core.datastore import Row
from ..core.errors import PersistError, StoreReadError
from ..core.models import Card
from ..ledger.loader import ledger_to_rows
from ..ledger.models import CardLedger

logger = logging.getLogger(__name__)

TAB_SUFFIX = ".csv"

_MISSING = "missing"


def tab_names_for(cards: Iterable[Card]) -> dict[str, str]:
    """
    Map card ids to tab names.

    Cards are filed under their display name; when two cards share a name,
    both fall back to their ids.
    """
    cards = list(cards)
    name_counts: dict[str, int] = {}
    for card in cards:
        name_counts[card.tab_name] = name_counts.get(card.tab_name, 0) + 1
    return {card.id: card.tab_name if name_counts[card.tab_name] == 1 else card.id for card in cards}


class CsvWorkbookStore:
    """
    One CSV file per card under a workbook directory.

    A store instance tracks what each tab looked like when it was loaded, so
    use one instance per sync run.
    """

    def __init__(self, ledger_dir: Path, tab_names: Mapping[str, str] | None = None):
        """
        Initialize the store.

        Args:
            ledger_dir: Workbook directory
            tab_names: Optional card id -> tab name mapping; unmapped cards use their id
        """
        self.ledger_dir = Path(ledger_dir)
        self.tab_names = dict(tab_names or {})
        self._digests: dict[str, str] = {}
        self._lock = threading.Lock()

    def tab_path(self, card_id: str) -> Path:
        name = self.tab_names.get(card_id, card_id)
        safe_name = re.sub(r'[\\/:*?"<>|]+', "_", name).strip() or card_id
        return self.ledger_dir / f"{safe_name}{TAB_SUFFIX}"

    def load(self, card_id: str) -> tuple[list[str], list[Row]]:
        path = self.tab_path(card_id)
        try:
            digest = _file_digest(path)
        except OSError as e:
            raise StoreReadError(f"Could not read tab {path}: {e}") from e
        with self._lock:
            self._digests[card_id] = digest

        if digest == _MISSING:
            logger.info(f"No tab yet for card {card_id} at {path}")
            return [], []

        try:
            df = pd.read_csv(path, dtype=str, keep_default_na=False, na_filter=False)
        except pd.errors.EmptyDataError:
            return [], []
        except (pd.errors.ParserError, OSError, UnicodeDecodeError) as e:
            raise StoreReadError(f"Could not read tab {path}: {e}") from e

        columns = [str(column) for column in df.columns]
        # Short rows come back as NaN even with na_filter off
        rows = [
            {column: "" if pd.isna(value) else str(value) for column, value in record.items()}
            for record in df.to_dict(orient="records")
        ]
        logger.debug(f"Loaded {len(rows)} rows for card {card_id} from {path}")
        return columns, rows

    def persist(self, card_id: str, ledger: CardLedger, changed_ids: Collection[str]) -> None:
        path = self.tab_path(card_id)

        with self._lock:
            expected = self._digests.get(card_id)
        try:
            current = _file_digest(path)
        except OSError as e:
            raise PersistError(f"Could not check tab {path} before writing: {e}") from e
        if expected is not None and current != expected:
            raise PersistError(f"Tab {path} was modified since it was loaded; not overwriting")

        columns, rows = ledger_to_rows(ledger, changed_ids)
        df = pd.DataFrame(rows, columns=columns)

        try:
            self.ledger_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.ledger_dir, prefix=f".{path.stem}.", suffix=".tmp")
            os.close(fd)
            try:
                df.to_csv(tmp_name, index=False)
                os.replace(tmp_name, path)
            finally:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
            digest = _file_digest(path)
        except OSError as e:
            raise PersistError(f"Could not write tab {path}: {e}") from e

        with self._lock:
            self._digests[card_id] = digest

        logger.info(f"Wrote {len(rows)} rows ({len(changed_ids)} new or changed) for card {card_id} to {path}")

    def tabs(self) -> list[Path]:
        if not self.ledger_dir.exists():
            return []
        return sorted(self.ledger_dir.glob(f"*{TAB_SUFFIX}"))

    def last_modified(self) -> datetime | None:
        tabs = self.tabs()
        if not tabs:
            return None
        return datetime.fromtimestamp(max(tab.stat().st_mtime for tab in tabs))

    def summary_text(self) -> str:
        tabs = self.tabs()
        if not tabs:
            return "No ledger tabs"
        last_modified = self.last_modified()
        when = last_modified.strftime("%Y-%m-%d %H:%M") if last_modified else "unknown"
        return f"{len(tabs)} ledger tabs, last updated {when}"


def _file_digest(path: Path) -> str:
    if not path.exists():
        return _MISSING
    return hashlib.sha256(path.read_bytes()).hexdigest()
