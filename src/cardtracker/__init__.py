"""
Credit Card Tracker - Open Banking Card Ledger Sync

Keeps a per-card ledger of credit card transactions fetched over Open Banking
and reconciles spending against repayments.

Key Features:
- Incremental, idempotent sync of each card's transactions into a workbook
- Automatic pairing of debits with credits of equal value
- Manual match decisions in the workbook are never overridden
- Per-card failure isolation with a non-zero exit status on any failure

Domain Packages:
- core: Money, dates, configuration, errors and collaborator interfaces
- ledger: Snapshot loading, merging, matching and the sync engine
- truelayer: Open Banking transaction sources (HTTP API and saved exports)
- workbook: CSV workbook ledger store
- cli: Command-line interface

Example Usage:
    from cardtracker.ledger import SyncEngine
    from cardtracker.truelayer import TrueLayerClient
    from cardtracker.workbook import CsvWorkbookStore
"""

__version__ = "0.1.0"

from .core.config import Environment, get_config
from .core.money import Money
from .ledger.models import CardLedger, SyncReport, SyncSummary, TransactionRecord

__all__ = [
    "CardLedger",
    "Environment",
    "Money",
    "SyncReport",
    "SyncSummary",
    "TransactionRecord",
    "get_config",
]
