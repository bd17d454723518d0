#!/usr/bin/env python3
"""
Debit/Credit Matcher

Pairs unmatched debits with unmatched credits of the same magnitude.

Within each magnitude, the closest-dated debit/credit pairs are taken first.
Equal distances are settled by debit date, debit id, credit date, then credit
id, so when a group cannot pair everything the latest record by that order is
left over. Manual decisions and earlier auto-matches are frozen, as
are the declared peers of manual matches.
"""

import logging
from collections import defaultdict

from .models import AutoMatched, CardLedger, ManuallyMatched, TransactionRecord

logger = logging.getLogger(__name__)


class LedgerMatcher:
    """Nearest-date debit/credit matcher for a single card ledger."""

    def __init__(self, window_days: int | None = None):
        """
        Initialize the matcher.

        Args:
            window_days: Largest date distance a pair may span, or None for no limit
        """
        self.window_days = window_days

    def match(self, ledger: CardLedger) -> tuple[CardLedger, int]:
        """
        Auto-match the ledger's eligible records.

        Pure: the input ledger is not modified.

        Returns:
            Tuple of (matched ledger, number of new pairs)
        """
        groups: dict[int, list[TransactionRecord]] = defaultdict(list)
        for record in self._eligible(ledger):
            groups[record.amount.abs().minor_units].append(record)

        updates: dict[str, TransactionRecord] = {}
        for magnitude in sorted(groups):
            for debit, credit in self._match_group(groups[magnitude]):
                updates[debit.id] = debit.with_match_state(AutoMatched(credit.id))
                updates[credit.id] = credit.with_match_state(AutoMatched(debit.id))
                logger.debug(
                    f"Card {ledger.card_id}: matched {debit.id} ({debit.date}) "
                    f"with {credit.id} ({credit.date}) for {debit.amount.abs()}"
                )

        if not updates:
            return ledger, 0

        return ledger.updated(updates), len(updates) // 2

    def _eligible(self, ledger: CardLedger) -> list[TransactionRecord]:
        """Unmatched, non-zero records that no manual match claims as its peer."""
        manual_peers = {
            record.match_state.peer_id
            for record in ledger
            if isinstance(record.match_state, ManuallyMatched) and record.match_state.peer_id
        }
        return [
            record
            for record in ledger
            if record.is_unmatched and record.amount.minor_units != 0 and record.id not in manual_peers
        ]

    def _match_group(self, records: list[TransactionRecord]) -> list[tuple[TransactionRecord, TransactionRecord]]:
        """Pair debits with credits inside one magnitude group."""
        debits = [r for r in records if r.is_debit]
        credits = [r for r in records if r.is_credit]
        if not debits or not credits:
            return []

        candidates = []
        for debit in debits:
            for credit in credits:
                distance = debit.date.days_between(credit.date)
                if self.window_days is None or distance <= self.window_days:
                    candidates.append((distance, debit.date, debit.id, credit.date, credit.id, debit, credit))
        candidates.sort(key=lambda c: c[:5])

        pairs = []
        taken: set[str] = set()
        for *_, debit, credit in candidates:
            if debit.id in taken or credit.id in taken:
                continue
            taken.update((debit.id, credit.id))
            pairs.append((debit, credit))

            if len(pairs) == min(len(debits), len(credits)):
                break

        return pairs


def match(ledger: CardLedger, window_days: int | None = None) -> tuple[CardLedger, int]:
    """Auto-match a ledger with a default-configured LedgerMatcher."""
    return LedgerMatcher(window_days=window_days).match(ledger)
