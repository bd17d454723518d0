#!/usr/bin/env python3
"""
TrueLayer Domain Models

Models for the TrueLayer Data API card endpoints, true to the API's field
names, plus their mapping onto the tracker's provider-neutral types.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..core.dates import FinancialDate
from ..core.errors import FetchError
from ..core.models import Card, FetchedTransaction
from ..core.money import Money


class TransactionType(Enum):
    """Direction of a TrueLayer card transaction."""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


@dataclass
class TrueLayerCard:
    """
    Card from GET /data/v1/cards.

    Example response entry:
        {"account_id": "acc-1", "display_name": "Amex Gold",
         "provider": {"provider_id": "amex", "display_name": "American Express"}}
    """

    account_id: str
    display_name: str
    provider_id: str | None = None
    provider_name: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrueLayerCard":
        """
        Create TrueLayerCard from API dict.

        Args:
            data: One entry of the response's "results" list

        Returns:
            TrueLayerCard instance
        """
        provider = data.get("provider") or {}
        return cls(
            account_id=data["account_id"],
            display_name=data.get("display_name") or data["account_id"],
            provider_id=provider.get("provider_id"),
            provider_name=provider.get("display_name"),
        )

    def to_card(self) -> Card:
        return Card(id=self.account_id, name=self.display_name, provider=self.provider_id)


@dataclass
class TrueLayerTransaction:
    """
    Transaction from GET /data/v1/cards/{account_id}/transactions.

    The provider's transaction_id can change between requests, so the
    normalised provider id is used as the stable identity. Amounts may be
    reported unsigned; transaction_type gives the direction.
    """

    normalised_provider_transaction_id: str
    timestamp: FinancialDate
    description: str
    transaction_type: TransactionType
    amount: Money
    currency: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrueLayerTransaction":
        """
        Create TrueLayerTransaction from API dict.

        Raises:
            KeyError, ValueError: If a required field is missing or malformed
        """
        return cls(
            normalised_provider_transaction_id=data["normalised_provider_transaction_id"],
            timestamp=FinancialDate.from_string(data["timestamp"]),
            description=data.get("description") or "",
            transaction_type=TransactionType(str(data["transaction_type"]).upper()),
            amount=Money.from_decimal(data["amount"]),
            currency=data.get("currency") or "GBP",
        )

    @property
    def signed_amount(self) -> Money:
        """Debits negative, credits positive."""
        magnitude = self.amount.abs()
        return -magnitude if self.transaction_type == TransactionType.DEBIT else magnitude

    def to_fetched(self) -> FetchedTransaction:
        return FetchedTransaction(
            id=self.normalised_provider_transaction_id,
            date=self.timestamp,
            amount=self.signed_amount,
            description=self.description,
            currency=self.currency,
        )


def parse_cards(payload: Any) -> list[Card]:
    """
    Map a cards response body to Cards.

    Raises:
        FetchError: If the payload does not have the expected shape
    """
    try:
        return [TrueLayerCard.from_dict(entry).to_card() for entry in _results(payload)]
    except (KeyError, TypeError, AttributeError) as e:
        raise FetchError(f"Malformed cards response: {e!r}") from e


def parse_transactions(payload: Any, card_id: str) -> list[FetchedTransaction]:
    """
    Map a transactions response body to FetchedTransactions, in response order.

    Raises:
        FetchError: If any entry is malformed
    """
    try:
        return [TrueLayerTransaction.from_dict(entry).to_fetched() for entry in _results(payload)]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise FetchError(f"Malformed transactions response for card {card_id}: {e!r}") from e


def _results(payload: Any) -> list[dict[str, Any]]:
    if not isinstance(payload, dict) or not isinstance(payload.get("results"), list):
        raise TypeError("expected an object with a 'results' list")
    return payload["results"]
