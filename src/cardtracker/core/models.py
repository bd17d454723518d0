#!/usr/bin/env python3
"""
Core Data Models

Provider-neutral structures exchanged with the external collaborators: the
cards a source knows about and the transaction DTOs it returns.
"""

from dataclasses import dataclass

from .dates import FinancialDate
from .money import Money


@dataclass(frozen=True)
class Card:
    """
    A credit card account exposed by the data source.

    The display name doubles as the ledger tab name so humans can find their
    card in the workbook.
    """

    id: str
    name: str
    provider: str | None = None

    @property
    def tab_name(self) -> str:
        return self.name or self.id


@dataclass(frozen=True)
class FetchedTransaction:
    """
    Transaction as returned by a TransactionSource, before it joins a ledger.

    Treated as untrusted input: ids may repeat across or within fetches.
    """

    id: str
    date: FinancialDate
    amount: Money
    description: str
    currency: str = "GBP"
