"""
Ledger Package

Reconciliation and merge engine: transaction records and their match state,
the store snapshot loader, the merger, the matcher and the sync engine.
"""

from .engine import SyncEngine
from .loader import LoadWarning, StoreSnapshot, ledger_to_rows, load_snapshot
from .matcher import LedgerMatcher, match
from .merger import merge
from .models import (
    UNMATCHED,
    AutoMatched,
    CardLedger,
    CardSyncResult,
    ManuallyMatched,
    MatchState,
    SyncError,
    SyncErrorKind,
    SyncReport,
    SyncSummary,
    TransactionRecord,
    Unmatched,
    check_match_postconditions,
)

__all__ = [
    "UNMATCHED",
    "AutoMatched",
    "CardLedger",
    "CardSyncResult",
    "LedgerMatcher",
    "LoadWarning",
    "ManuallyMatched",
    "MatchState",
    "StoreSnapshot",
    "SyncEngine",
    "SyncError",
    "SyncErrorKind",
    "SyncReport",
    "SyncSummary",
    "TransactionRecord",
    "Unmatched",
    "check_match_postconditions",
    "ledger_to_rows",
    "load_snapshot",
    "match",
    "merge",
]
