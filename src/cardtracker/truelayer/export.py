#!/usr/bin/env python3
"""
TrueLayer Export Source

TransactionSource over API responses saved to disk, for offline runs and
re-processing. The layout is the one TrueLayerClient writes when given an
export directory:

    <export_dir>/cards.json        GET /data/v1/cards response
    <export_dir>/<account_id>.json GET /data/v1/cards/{account_id}/transactions response
"""

import json
import logging
from pathlib import Path

from ..core.dates import FinancialDate
from ..core.errors import FetchError
from ..core.json_utils import read_json
from ..core.models import Card, FetchedTransaction
from .models import parse_cards, parse_transactions

logger = logging.getLogger(__name__)


class TrueLayerExportSource:
    """Reads saved TrueLayer responses from an export directory."""

    def __init__(self, export_dir: Path):
        self.export_dir = Path(export_dir)

    def list_cards(self) -> list[Card]:
        return parse_cards(self._read(self.export_dir / "cards.json"))

    def fetch(self, card_id: str, since: FinancialDate | None = None) -> list[FetchedTransaction]:
        transactions = parse_transactions(self._read(self.export_dir / f"{card_id}.json"), card_id)
        if since is not None:
            transactions = [t for t in transactions if t.date >= since]

        logger.info(f"Loaded {len(transactions)} exported transactions for card {card_id}")
        return transactions

    def _read(self, path: Path) -> object:
        if not path.exists():
            raise FetchError(f"No saved response at {path}")
        try:
            return read_json(path)
        except (OSError, json.JSONDecodeError) as e:
            raise FetchError(f"Could not read saved response {path}: {e}") from e
