#!/usr/bin/env python3
"""
Ledger Domain Models

The canonical in-memory representation of a card's transactions and their
match state, plus the per-card results the sync engine reports.

Match state is a closed tagged union so the matcher's "frozen vs eligible"
decision is an exhaustive case split:

- Unmatched: eligible for automatic matching
- AutoMatched(peer_id): paired by the matcher; pairs are symmetric
- ManuallyMatched(peer_id | None): a human decision, never touched by the
  matcher. A None peer means "do not auto-match me".
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Union

from ..core.dates import FinancialDate
from ..core.errors import InvariantViolation
from ..core.models import FetchedTransaction
from ..core.money import Money


@dataclass(frozen=True)
class Unmatched:
    """No match recorded."""

    def __str__(self) -> str:
        return "unmatched"


@dataclass(frozen=True)
class AutoMatched:
    """Paired with peer_id by the matcher."""

    peer_id: str

    def __str__(self) -> str:
        return f"auto-matched to {self.peer_id}"


@dataclass(frozen=True)
class ManuallyMatched:
    """Human decision; peer_id None means the record must stay unpaired."""

    peer_id: str | None = None

    def __str__(self) -> str:
        if self.peer_id is None:
            return "manually unmatched"
        return f"manually matched to {self.peer_id}"


MatchState = Union[Unmatched, AutoMatched, ManuallyMatched]

UNMATCHED = Unmatched()


@dataclass(frozen=True)
class TransactionRecord:
    """
    One transaction and its match state.

    Records are immutable; stages produce new records with
    dataclasses.replace. row_index and raw_row describe where the record came
    from in the persisted store (both None for records first seen from the
    source) so unchanged rows can be written back verbatim.
    """

    id: str
    card_id: str
    date: FinancialDate
    amount: Money
    description: str
    match_state: MatchState = UNMATCHED
    currency: str = "GBP"
    row_index: int | None = None
    raw_row: Mapping[str, str] | None = field(default=None, hash=False, repr=False)

    @classmethod
    def from_fetched(cls, card_id: str, fetched: FetchedTransaction) -> "TransactionRecord":
        """Map a source DTO 1:1 into an unmatched record."""
        return cls(
            id=fetched.id,
            card_id=card_id,
            date=fetched.date,
            amount=fetched.amount,
            description=fetched.description,
            currency=fetched.currency,
        )

    @property
    def is_debit(self) -> bool:
        return self.amount.is_debit

    @property
    def is_credit(self) -> bool:
        return self.amount.is_credit

    @property
    def is_unmatched(self) -> bool:
        return isinstance(self.match_state, Unmatched)

    @property
    def is_manual(self) -> bool:
        return isinstance(self.match_state, ManuallyMatched)

    @property
    def peer_id(self) -> str | None:
        """Peer referenced by the match state, if any."""
        if isinstance(self.match_state, (AutoMatched, ManuallyMatched)):
            return self.match_state.peer_id
        return None

    def with_match_state(self, match_state: MatchState) -> "TransactionRecord":
        return replace(self, match_state=match_state)


class CardLedger:
    """
    Ordered working set of TransactionRecords for one card, keyed by id.

    A ledger is owned by exactly one pipeline invocation and treated as
    immutable: merge and match return new ledgers. Construction refuses
    duplicate ids.

    Besides records, a ledger carries the store's column header and the raw
    rows rejected at load, so persisting never drops a human's row. Ids read
    from rejected rows are reserved: no fetched record may claim them.
    """

    def __init__(
        self,
        card_id: str,
        records: Iterable[TransactionRecord] = (),
        columns: Iterable[str] = (),
        rejected_rows: Iterable[tuple[int, Mapping[str, str]]] = (),
        reserved_ids: Iterable[str] = (),
    ):
        self.card_id = card_id
        self.columns: tuple[str, ...] = tuple(columns)
        self.rejected_rows: tuple[tuple[int, Mapping[str, str]], ...] = tuple(rejected_rows)
        self.reserved_ids: frozenset[str] = frozenset(reserved_ids)
        self._records: dict[str, TransactionRecord] = {}

        for record in records:
            if record.id in self._records:
                raise InvariantViolation("duplicate transaction id in ledger", card_id, [record.id])
            self._records[record.id] = record

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TransactionRecord]:
        return iter(self._records.values())

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CardLedger):
            return NotImplemented
        return (
            self.card_id == other.card_id
            and list(self._records.items()) == list(other._records.items())
            and self.columns == other.columns
            and self.rejected_rows == other.rejected_rows
            and self.reserved_ids == other.reserved_ids
        )

    def __repr__(self) -> str:
        return f"CardLedger(card_id={self.card_id!r}, records={len(self)})"

    def get(self, record_id: str) -> TransactionRecord | None:
        return self._records.get(record_id)

    @property
    def records(self) -> list[TransactionRecord]:
        return list(self._records.values())

    def ids(self) -> list[str]:
        return list(self._records)

    def appended(self, records: Iterable[TransactionRecord]) -> "CardLedger":
        """Return a new ledger with records added after the existing ones."""
        return CardLedger(
            self.card_id,
            [*self._records.values(), *records],
            self.columns,
            self.rejected_rows,
            self.reserved_ids,
        )

    def updated(self, updates: Mapping[str, TransactionRecord]) -> "CardLedger":
        """Return a new ledger with some records replaced in place."""
        unknown = [record_id for record_id in updates if record_id not in self._records]
        if unknown:
            raise InvariantViolation("update for records not in ledger", self.card_id, unknown)

        return CardLedger(
            self.card_id,
            [updates.get(record_id, record) for record_id, record in self._records.items()],
            self.columns,
            self.rejected_rows,
            self.reserved_ids,
        )

    def changed_since(self, snapshot: "CardLedger") -> list[str]:
        """Ids of records that are new, or whose match state differs, relative to snapshot."""
        changed = []
        for record in self:
            before = snapshot.get(record.id)
            if before is None or before.match_state != record.match_state:
                changed.append(record.id)
        return changed

    def auto_matched_pairs(self) -> list[tuple[str, str]]:
        """Auto-matched pairs as (debit id, credit id), each pair once."""
        pairs = []
        for record in self:
            if isinstance(record.match_state, AutoMatched) and record.is_debit:
                pairs.append((record.id, record.match_state.peer_id))
        return pairs


@dataclass
class SyncSummary:
    """Counts reported for one card after a sync pass."""

    card_id: str
    total: int
    new: int
    matches: int

    def to_dict(self) -> dict[str, Any]:
        return {"card_id": self.card_id, "total": self.total, "new": self.new, "matches": self.matches}


class SyncErrorKind(Enum):
    """Why a card's sync did not complete."""

    LOAD = "load"
    FETCH = "fetch"
    PERSIST = "persist"
    INVARIANT = "invariant"
    CANCELLED = "cancelled"


@dataclass
class SyncError:
    """Per-card failure. Sibling cards are unaffected."""

    card_id: str
    kind: SyncErrorKind
    message: str
    record_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "card_id": self.card_id,
            "kind": self.kind.value,
            "message": self.message,
            "record_ids": self.record_ids,
        }


CardSyncResult = Union[SyncSummary, SyncError]


@dataclass
class SyncReport:
    """Outcome of syncing every configured card, in input order."""

    results: list[CardSyncResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[SyncSummary]:
        return [r for r in self.results if isinstance(r, SyncSummary)]

    @property
    def failed(self) -> list[SyncError]:
        return [r for r in self.results if isinstance(r, SyncError) and r.kind != SyncErrorKind.CANCELLED]

    @property
    def cancelled(self) -> list[SyncError]:
        return [r for r in self.results if isinstance(r, SyncError) and r.kind == SyncErrorKind.CANCELLED]

    @property
    def exit_code(self) -> int:
        return 1 if self.failed or self.cancelled else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "succeeded": [s.to_dict() for s in self.succeeded],
            "failed": [e.to_dict() for e in self.failed],
            "cancelled": [e.card_id for e in self.cancelled],
            "totals": {
                "cards": len(self.results),
                "new": sum(s.new for s in self.succeeded),
                "matches": sum(s.matches for s in self.succeeded),
            },
        }


def check_match_postconditions(before: CardLedger, after: CardLedger) -> None:
    """
    Verify that a matcher pass preserved the ledger invariants.

    Checks every record whose state changed between before and after:
    only previously unmatched records may change, only into AutoMatched,
    pairs must be symmetric with equal magnitude and opposite signs, and no
    record may be claimed as a peer twice. Manual records must be untouched.

    Raises:
        InvariantViolation: With the card id and offending record ids
    """
    card_id = after.card_id

    if before.ids() != after.ids():
        raise InvariantViolation("matcher changed the set of records", card_id)

    changed = after.changed_since(before)
    claimed: dict[str, str] = {}

    for record_id in changed:
        old = before.get(record_id)
        new = after.get(record_id)
        if old is None or new is None:
            raise InvariantViolation("record appeared during matching", card_id, [record_id])

        if not old.is_unmatched:
            raise InvariantViolation(f"matcher changed a {old.match_state} record", card_id, [record_id])
        if not isinstance(new.match_state, AutoMatched):
            raise InvariantViolation(f"matcher produced {new.match_state}", card_id, [record_id])

        peer_id = new.match_state.peer_id
        peer = after.get(peer_id)
        if peer is None:
            raise InvariantViolation("auto-match peer missing from ledger", card_id, [record_id, peer_id])
        if peer.match_state != AutoMatched(record_id):
            raise InvariantViolation("asymmetric auto-match pair", card_id, [record_id, peer_id])
        if new.amount.abs() != peer.amount.abs() or new.is_debit == peer.is_debit:
            raise InvariantViolation("auto-match pair amounts do not offset", card_id, [record_id, peer_id])
        if peer_id in claimed and claimed[peer_id] != record_id:
            raise InvariantViolation("record claimed as peer twice", card_id, [peer_id, record_id, claimed[peer_id]])
        claimed[peer_id] = record_id

    for record in before:
        if not record.is_manual:
            continue
        if after.get(record.id) != record:
            raise InvariantViolation("manual match was modified", card_id, [record.id])
        peer_id = record.peer_id
        if peer_id is not None and peer_id in before and after.get(peer_id) != before.get(peer_id):
            raise InvariantViolation("declared peer of a manual match was modified", card_id, [record.id, peer_id])
