#!/usr/bin/env python3
"""
Ledger Merger

Combines a loaded ledger with a freshly fetched batch. The existing record
always wins, so fetched data can never regress a match decision.
"""

import logging
from collections.abc import Iterable

from .models import UNMATCHED, CardLedger, TransactionRecord

logger = logging.getLogger(__name__)


def merge(existing: CardLedger, fetched: Iterable[TransactionRecord]) -> tuple[CardLedger, int]:
    """
    Merge fetched records into an existing ledger.

    Records whose id is already in the ledger, is reserved by an unreadable
    stored row, or was seen earlier in the same batch are discarded. Novel
    records are appended as Unmatched in the order the source returned them.

    Args:
        existing: Ledger loaded from the store
        fetched: Records mapped from the source, in source order

    Returns:
        Tuple of (merged ledger, number of novel records)
    """
    novel: list[TransactionRecord] = []
    seen: set[str] = set()
    duplicates = 0

    for record in fetched:
        if record.id in existing or record.id in existing.reserved_ids or record.id in seen:
            duplicates += 1
            continue
        seen.add(record.id)

        if record.card_id != existing.card_id or not record.is_unmatched:
            record = TransactionRecord(
                id=record.id,
                card_id=existing.card_id,
                date=record.date,
                amount=record.amount,
                description=record.description,
                match_state=UNMATCHED,
                currency=record.currency,
            )
        novel.append(record)

    if duplicates:
        logger.debug(f"Card {existing.card_id}: discarded {duplicates} already-known fetched records")

    if not novel:
        return existing, 0

    return existing.appended(novel), len(novel)
