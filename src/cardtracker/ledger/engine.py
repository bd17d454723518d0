#!/usr/bin/env python3
"""
Sync Engine

Orchestrates each card's pipeline:

    load snapshot -> fetch -> merge -> match -> persist -> summary

Every card is an independent unit. A load, fetch, persist or invariant failure
becomes a SyncError for that card only; sibling cards carry on. Cards can run
in parallel up to a concurrency bound, and cancellation is honoured between
cards, never in the middle of a card's pipeline.
"""

import logging
import threading
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor

from ..core.datastore import LedgerStore
from ..core.dates import FinancialDate
from ..core.errors import FetchError, InvariantViolation, PersistError, StoreReadError
from ..core.source import TransactionSource
from .loader import load_snapshot
from .matcher import LedgerMatcher
from .merger import merge
from .models import (
    CardSyncResult,
    SyncError,
    SyncErrorKind,
    SyncReport,
    SyncSummary,
    TransactionRecord,
    check_match_postconditions,
)

logger = logging.getLogger(__name__)


class SyncEngine:
    """
    Runs the per-card sync pipeline against a source and a store.

    The store and source are passed in per engine; nothing here is
    process-wide. A ledger is owned by the single pipeline invocation that
    built it.
    """

    def __init__(
        self,
        source: TransactionSource,
        store: LedgerStore,
        fetch_days: int | None = 90,
        match_window_days: int | None = None,
        concurrency: int = 4,
        today: FinancialDate | None = None,
    ):
        """
        Initialize the engine.

        Args:
            source: Transaction source to fetch from
            store: Ledger store to load from and persist to
            fetch_days: How far back to fetch, or None for everything
            match_window_days: Largest date distance for an auto-match, or None
            concurrency: Maximum number of cards synced at once
            today: Reference date for the fetch window (defaults to today)
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        self.source = source
        self.store = store
        self.fetch_days = fetch_days
        self.concurrency = concurrency
        self.today = today
        self.matcher = LedgerMatcher(window_days=match_window_days)
        self._cancelled = threading.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Stop starting new cards. Cards already running finish normally."""
        if not self._cancelled.is_set():
            logger.warning("Sync cancelled; cards not yet started will be skipped")
        self._cancelled.set()

    def fetch_since(self) -> FinancialDate | None:
        """Earliest date requested from the source."""
        if self.fetch_days is None:
            return None
        today = self.today or FinancialDate.today()
        return today.minus_days(self.fetch_days)

    def sync_card(self, card_id: str) -> CardSyncResult:
        """
        Sync one card.

        Returns:
            SyncSummary on success, SyncError describing the failed stage otherwise
        """
        logger.info(f"Syncing card {card_id}")

        try:
            columns, rows = self.store.load(card_id)
        except StoreReadError as e:
            return self._failure(card_id, SyncErrorKind.LOAD, str(e))

        snapshot = load_snapshot(card_id, columns, rows)
        ledger = snapshot.ledger
        if snapshot.warnings:
            logger.info(f"Card {card_id}: loaded {len(ledger)} records with {len(snapshot.warnings)} warnings")

        try:
            fetched = self.source.fetch(card_id, self.fetch_since())
        except FetchError as e:
            return self._failure(card_id, SyncErrorKind.FETCH, str(e))

        try:
            records = [TransactionRecord.from_fetched(card_id, transaction) for transaction in fetched]
            merged, new_count = merge(ledger, records)
            matched, match_count = self.matcher.match(merged)
            check_match_postconditions(merged, matched)
        except InvariantViolation as e:
            logger.critical(f"Card {card_id}: invariant violation, card not persisted: {e}")
            return SyncError(card_id, SyncErrorKind.INVARIANT, str(e), e.record_ids)

        changed = matched.changed_since(ledger)
        if changed:
            try:
                self.store.persist(card_id, matched, changed)
            except PersistError as e:
                return self._failure(card_id, SyncErrorKind.PERSIST, str(e))
        else:
            logger.debug(f"Card {card_id}: no new or changed records, nothing to persist")

        summary = SyncSummary(card_id=card_id, total=len(matched), new=new_count, matches=match_count)
        logger.info(f"Card {card_id}: total={summary.total} new={summary.new} matches={summary.matches}")
        return summary

    def sync_all(self, card_ids: Sequence[str]) -> SyncReport:
        """
        Sync every card, up to `concurrency` at a time.

        A KeyboardInterrupt while waiting cancels the cards that have not
        started yet; the report still lists every card, in input order.
        """
        if not card_ids:
            return SyncReport()

        workers = min(self.concurrency, len(card_ids))
        results: list[CardSyncResult] = []

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="card-sync") as pool:
            futures = [pool.submit(self._run_card, card_id) for card_id in card_ids]
            try:
                for future in futures:
                    results.append(self._wait(future))
            except BaseException:
                self.cancel()
                raise

        report = SyncReport(results=results)
        logger.info(
            f"Sync finished: {len(report.succeeded)} succeeded, "
            f"{len(report.failed)} failed, {len(report.cancelled)} cancelled"
        )
        return report

    def _run_card(self, card_id: str) -> CardSyncResult:
        if self._cancelled.is_set():
            return SyncError(card_id, SyncErrorKind.CANCELLED, "cancelled before start")
        return self.sync_card(card_id)

    def _wait(self, future: "Future[CardSyncResult]") -> CardSyncResult:
        while True:
            try:
                return future.result()
            except KeyboardInterrupt:
                self.cancel()

    def _failure(self, card_id: str, kind: SyncErrorKind, message: str) -> SyncError:
        logger.error(f"Card {card_id}: {kind.value} failed: {message}")
        return SyncError(card_id, kind, message)
