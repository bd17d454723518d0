#!/usr/bin/env python3
"""
TransactionSource Protocol - capability set of an external transaction feed.

One implementation exists per provider; the sync engine is polymorphic over
this interface and never branches on provider identity.
"""

from collections.abc import Sequence
from typing import Protocol

from .dates import FinancialDate
from .models import Card, FetchedTransaction


class TransactionSource(Protocol):
    """Protocol for fetching cards and their transactions."""

    def list_cards(self) -> list[Card]:
        """
        List the cards available from this source.

        Raises:
            FetchError: If the source is unavailable
        """
        ...

    def fetch(self, card_id: str, since: FinancialDate | None = None) -> Sequence[FetchedTransaction]:
        """
        Fetch transactions for a card, in the source's own order.

        Retries and rate limiting are the implementation's concern.

        Args:
            card_id: Card to fetch
            since: Earliest date of interest, or None for everything available

        Raises:
            FetchError: On terminal failure for this card
        """
        ...
