"""
TrueLayer Package

Open Banking transaction sources: the live Data API client and an offline
source over saved responses.
"""

from .client import TrueLayerClient
from .export import TrueLayerExportSource
from .models import TransactionType, TrueLayerCard, TrueLayerTransaction, parse_cards, parse_transactions

__all__ = [
    "TransactionType",
    "TrueLayerCard",
    "TrueLayerClient",
    "TrueLayerExportSource",
    "TrueLayerTransaction",
    "parse_cards",
    "parse_transactions",
]
