#!/usr/bin/env python3
"""Tests for ledger models and match post-condition checks."""

import pytest

from cardtracker.core.errors import InvariantViolation
from cardtracker.ledger.models import (
    UNMATCHED,
    AutoMatched,
    CardLedger,
    ManuallyMatched,
    SyncError,
    SyncErrorKind,
    SyncReport,
    SyncSummary,
    TransactionRecord,
    check_match_postconditions,
)
from tests.fixtures.ledger_helpers import make_fetched, make_ledger, make_record


@pytest.mark.ledger
class TestTransactionRecord:
    """Test TransactionRecord behavior."""

    def test_from_fetched_is_unmatched(self):
        record = TransactionRecord.from_fetched("card-1", make_fetched("t1", "-5.00"))
        assert record.card_id == "card-1"
        assert record.is_unmatched
        assert record.is_debit
        assert record.row_index is None

    def test_peer_id(self):
        assert make_record("a", "-1.00", match_state=AutoMatched("b")).peer_id == "b"
        assert make_record("a", "-1.00", match_state=ManuallyMatched(None)).peer_id is None
        assert make_record("a", "-1.00").peer_id is None

    def test_with_match_state_returns_new_record(self):
        record = make_record("a", "-1.00")
        matched = record.with_match_state(AutoMatched("b"))
        assert record.is_unmatched
        assert matched.match_state == AutoMatched("b")


@pytest.mark.ledger
class TestCardLedger:
    """Test CardLedger construction and derivation."""

    def test_duplicate_ids_rejected(self):
        with pytest.raises(InvariantViolation, match="duplicate") as exc_info:
            make_ledger(make_record("a", "-1.00"), make_record("a", "1.00"))
        assert exc_info.value.record_ids == ["a"]
        assert exc_info.value.card_id == "card-1"

    def test_appended_preserves_order(self):
        ledger = make_ledger(make_record("b", "-1.00"), make_record("a", "1.00"))
        extended = ledger.appended([make_record("c", "2.00")])
        assert extended.ids() == ["b", "a", "c"]
        assert ledger.ids() == ["b", "a"]

    def test_updated_replaces_in_place(self):
        ledger = make_ledger(make_record("a", "-1.00"), make_record("b", "1.00"))
        updated = ledger.updated({"a": ledger.get("a").with_match_state(AutoMatched("b"))})
        assert updated.ids() == ["a", "b"]
        assert updated.get("a").match_state == AutoMatched("b")

    def test_updated_unknown_id(self):
        ledger = make_ledger(make_record("a", "-1.00"))
        with pytest.raises(InvariantViolation):
            ledger.updated({"zzz": make_record("zzz", "1.00")})

    def test_changed_since(self):
        before = make_ledger(make_record("a", "-1.00"), make_record("b", "1.00"))
        after = before.updated({"a": before.get("a").with_match_state(AutoMatched("b"))}).appended(
            [make_record("c", "3.00")]
        )
        assert after.changed_since(before) == ["a", "c"]

    def test_auto_matched_pairs(self):
        ledger = make_ledger(
            make_record("d", "-1.00", match_state=AutoMatched("c")),
            make_record("c", "1.00", match_state=AutoMatched("d")),
        )
        assert ledger.auto_matched_pairs() == [("d", "c")]

    def test_equality(self):
        assert make_ledger(make_record("a", "-1.00")) == make_ledger(make_record("a", "-1.00"))
        assert make_ledger(make_record("a", "-1.00")) != CardLedger("card-2", [make_record("a", "-1.00")])


@pytest.mark.ledger
class TestSyncReport:
    """Test aggregate reporting."""

    def test_partitions_and_exit_code(self):
        report = SyncReport(
            [
                SyncSummary("a", total=3, new=1, matches=1),
                SyncError("b", SyncErrorKind.FETCH, "down"),
                SyncError("c", SyncErrorKind.CANCELLED, "cancelled before start"),
            ]
        )
        assert [s.card_id for s in report.succeeded] == ["a"]
        assert [e.card_id for e in report.failed] == ["b"]
        assert [e.card_id for e in report.cancelled] == ["c"]
        assert report.exit_code == 1

    def test_all_succeeded(self):
        report = SyncReport([SyncSummary("a", total=0, new=0, matches=0)])
        assert report.exit_code == 0
        assert report.to_dict()["totals"] == {"cards": 1, "new": 0, "matches": 0}

    def test_to_dict(self):
        data = SyncReport([SyncError("b", SyncErrorKind.INVARIANT, "bad", ["x", "y"])]).to_dict()
        assert data["failed"] == [{"card_id": "b", "kind": "invariant", "message": "bad", "record_ids": ["x", "y"]}]


@pytest.mark.ledger
class TestMatchPostconditions:
    """Test the invariant checks run after matching."""

    def _pair(self, debit="d", credit="c", debit_amount="-5.00", credit_amount="5.00"):
        before = make_ledger(make_record(debit, debit_amount), make_record(credit, credit_amount))
        after = before.updated(
            {
                debit: before.get(debit).with_match_state(AutoMatched(credit)),
                credit: before.get(credit).with_match_state(AutoMatched(debit)),
            }
        )
        return before, after

    def test_valid_pair_passes(self):
        before, after = self._pair()
        check_match_postconditions(before, after)

    def test_asymmetric_pair(self):
        before = make_ledger(make_record("d", "-5.00"), make_record("c", "5.00"))
        after = before.updated({"d": before.get("d").with_match_state(AutoMatched("c"))})
        with pytest.raises(InvariantViolation, match="asymmetric") as exc_info:
            check_match_postconditions(before, after)
        assert set(exc_info.value.record_ids) == {"d", "c"}

    def test_amounts_must_offset(self):
        before, after = self._pair(credit_amount="6.00")
        with pytest.raises(InvariantViolation, match="offset"):
            check_match_postconditions(before, after)

    def test_same_sign_rejected(self):
        before, after = self._pair(debit_amount="5.00")
        with pytest.raises(InvariantViolation, match="offset"):
            check_match_postconditions(before, after)

    def test_manual_record_must_not_change(self):
        before = make_ledger(make_record("m", "-5.00", match_state=ManuallyMatched(None)))
        after = before.updated({"m": before.get("m").with_match_state(UNMATCHED)})
        with pytest.raises(InvariantViolation):
            check_match_postconditions(before, after)

    def test_record_set_must_not_change(self):
        before = make_ledger(make_record("a", "-5.00"))
        after = before.appended([make_record("b", "5.00")])
        with pytest.raises(InvariantViolation, match="set of records"):
            check_match_postconditions(before, after)

    def test_invariant_message_has_context(self):
        error = InvariantViolation("asymmetric auto-match pair", "card-9", ["a", "b"])
        assert str(error) == "asymmetric auto-match pair (card card-9) [records: a, b]"
