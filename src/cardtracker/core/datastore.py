#!/usr/bin/env python3
"""
LedgerStore Protocol - interface to the persisted tabular store.

The sync engine receives a store per invocation and never reaches for a
process-wide instance. Implementations decide how rows are physically kept
(CSV files, a spreadsheet, ...); the engine only sees rows of text cells.
"""

from collections.abc import Collection
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from cardtracker.ledger.models import CardLedger

Row = dict[str, str]


class LedgerStore(Protocol):
    """
    Protocol for per-card ledger persistence.

    Rows are dictionaries keyed by column header. Cell values are returned as
    the exact text held by the store so that fields the tracker does not touch
    can be written back unchanged.
    """

    def load(self, card_id: str) -> tuple[list[str], list[Row]]:
        """
        Load the current rows of a card's tab.

        Returns:
            Tuple of (column header, rows). A missing tab yields ([], []).

        Raises:
            StoreReadError: If the tab exists but cannot be read
        """
        ...

    def persist(self, card_id: str, ledger: "CardLedger", changed_ids: Collection[str]) -> None:
        """
        Write a card's ledger back to its tab.

        Args:
            card_id: Card whose tab is written
            ledger: Full working set, including rows rejected at load
            changed_ids: Ids of records that are new or whose match state
                changed; every other row is written back verbatim

        Raises:
            PersistError: If the write fails or the tab changed since load
        """
        ...
