#!/usr/bin/env python3
"""
Integration tests for the sync CLI

Runs `card-tracker sync` end to end against saved TrueLayer responses and the
CSV workbook store in a temporary data directory.
"""

from datetime import date, timedelta

import pandas as pd
import pytest
from click.testing import CliRunner

from cardtracker.cli.main import main
from cardtracker.core.config import Config
from cardtracker.core.json_utils import read_json, write_json


def iso_days_ago(days: int) -> str:
    return f"{(date.today() - timedelta(days=days)).isoformat()}T00:00:00Z"


def transaction(tx_id: str, tx_type: str, amount: float, days_ago: int, description: str = "SYNTHETIC") -> dict:
    return {
        "normalised_provider_transaction_id": tx_id,
        "timestamp": iso_days_ago(days_ago),
        "description": description,
        "transaction_type": tx_type,
        "amount": amount,
        "currency": "GBP",
    }


@pytest.mark.integration
class TestSyncCommand:
    """Test `card-tracker sync` workflows."""

    def setup_method(self):
        """Set up test environment."""
        self.runner = CliRunner()

    def _setup_exports(self):
        config = Config.from_environment()
        self.config = config
        write_json(
            config.export_dir / "cards.json",
            {
                "results": [
                    {"account_id": "card-amex", "display_name": "Test Amex", "provider": {"provider_id": "amex"}},
                    {"account_id": "card-visa", "display_name": "Test Visa", "provider": {"provider_id": "ob-test"}},
                ]
            },
        )
        write_json(
            config.export_dir / "card-amex.json",
            {
                "results": [
                    transaction("amex-1", "DEBIT", 50.0, 10, "SYNTHETIC STORE"),
                    transaction("amex-2", "CREDIT", 50.0, 9, "PAYMENT RECEIVED"),
                    transaction("amex-3", "DEBIT", 20.0, 5),
                    transaction("amex-4", "DEBIT", 30.0, 4),
                ]
            },
        )
        write_json(
            config.export_dir / "card-visa.json",
            {"results": [transaction("visa-1", "DEBIT", 12.5, 3), transaction("visa-2", "CREDIT", 30.0, 2)]},
        )
        return config

    def _tab(self, name: str) -> pd.DataFrame:
        path = self.config.workbook.ledger_dir / f"{name}.csv"
        return pd.read_csv(path, dtype=str, keep_default_na=False)

    def test_first_sync_creates_tabs_and_matches(self):
        self._setup_exports()

        result = self.runner.invoke(main, ["sync"])

        assert result.exit_code == 0, result.output
        assert "Test Amex: total=4 new=4 matches=1" in result.output
        assert "Test Visa: total=2 new=2 matches=0" in result.output
        assert "2 succeeded, 0 failed, 0 cancelled" in result.output

        amex = self._tab("Test Amex")
        assert list(amex.columns) == ["Date", "Description", "Amount", "Currency", "ID", "Match"]
        assert dict(zip(amex["ID"], amex["Match"])) == {
            "amex-1": "auto:amex-2",
            "amex-2": "auto:amex-1",
            "amex-3": "",
            "amex-4": "",
        }
        assert amex.loc[amex["ID"] == "amex-1", "Amount"].item() == "-50.00"

    def test_second_sync_is_idempotent(self):
        self._setup_exports()
        self.runner.invoke(main, ["sync"])
        before = (self.config.workbook.ledger_dir / "Test Amex.csv").read_bytes()

        result = self.runner.invoke(main, ["sync"])

        assert result.exit_code == 0, result.output
        assert "Test Amex: total=4 new=0 matches=0" in result.output
        assert (self.config.workbook.ledger_dir / "Test Amex.csv").read_bytes() == before

    def test_manual_annotations_survive_sync(self):
        """A human's do-not-match mark and extra column are preserved across syncs."""
        self._setup_exports()
        self.runner.invoke(main, ["sync", "--card", "card-visa"])

        path = self.config.workbook.ledger_dir / "card-visa.csv"
        tab = pd.read_csv(path, dtype=str, keep_default_na=False)
        tab["Notes"] = ""
        tab.loc[tab["ID"] == "visa-2", ["Match", "Notes"]] = ["manual", "gift card refund"]
        tab.to_csv(path, index=False)

        write_json(
            self.config.export_dir / "card-visa.json",
            {
                "results": [
                    transaction("visa-1", "DEBIT", 12.5, 3),
                    transaction("visa-2", "CREDIT", 30.0, 2),
                    transaction("visa-3", "DEBIT", 30.0, 1),
                ]
            },
        )

        result = self.runner.invoke(main, ["sync", "--card", "card-visa"])

        assert result.exit_code == 0, result.output
        assert "card-visa: total=3 new=1 matches=0" in result.output
        tab = pd.read_csv(path, dtype=str, keep_default_na=False)
        visa_2 = tab.loc[tab["ID"] == "visa-2"].iloc[0]
        assert visa_2["Match"] == "manual"
        assert visa_2["Notes"] == "gift card refund"
        assert tab.loc[tab["ID"] == "visa-3", "Match"].item() == ""

    def test_failed_card_does_not_stop_others(self):
        config = self._setup_exports()
        (config.export_dir / "card-visa.json").unlink()

        result = self.runner.invoke(main, ["sync"])

        assert result.exit_code == 1
        assert "Test Amex: total=4 new=4 matches=1" in result.output
        assert "Test Visa: FAILED (fetch)" in result.output
        assert "1 succeeded, 1 failed, 0 cancelled" in result.output

    def test_report_file(self, temp_dir):
        self._setup_exports()
        report_path = temp_dir / "report.json"

        result = self.runner.invoke(main, ["sync", "--report-file", str(report_path)])

        assert result.exit_code == 0, result.output
        report = read_json(report_path)
        assert report["totals"] == {"cards": 2, "new": 6, "matches": 1}
        assert report["failed"] == []

    def test_fetch_days_limits_history(self):
        self._setup_exports()

        result = self.runner.invoke(main, ["sync", "--card", "card-amex", "--fetch-days", "6"])

        assert result.exit_code == 0, result.output
        assert "card-amex: total=2 new=2 matches=0" in result.output

    def test_cards_file_names_tabs(self, monkeypatch, temp_dir):
        self._setup_exports()
        cards_file = temp_dir / "cards.yaml"
        cards_file.write_text("cards:\n  - id: card-amex\n    name: Household Amex\n")
        monkeypatch.setenv("CARD_TRACKER_CARDS_FILE", str(cards_file))

        result = self.runner.invoke(main, ["--config-env", "test", "sync"])

        assert result.exit_code == 0, result.output
        assert "Household Amex: total=4" in result.output
        assert "Test Visa" not in result.output
        assert (self.config.workbook.ledger_dir / "Household Amex.csv").exists()

    def test_no_cards(self):
        config = Config.from_environment()
        write_json(config.export_dir / "cards.json", {"results": []})

        result = self.runner.invoke(main, ["sync"])

        assert result.exit_code == 0
        assert "No cards to sync" in result.output

    def test_missing_cards_listing(self):
        result = self.runner.invoke(main, ["sync"])

        assert result.exit_code == 1
        assert "No saved response" in result.output

    def test_truelayer_source_without_token(self, monkeypatch):
        monkeypatch.delenv("TRUELAYER_ACCESS_TOKEN")

        result = self.runner.invoke(main, ["sync", "--source", "truelayer", "--card", "card-amex"])

        assert result.exit_code == 1
        assert "TRUELAYER_ACCESS_TOKEN" in result.output


@pytest.mark.integration
class TestCardsCommand:
    """Test `card-tracker cards`."""

    def test_lists_exported_cards(self):
        config = Config.from_environment()
        write_json(
            config.export_dir / "cards.json",
            {"results": [{"account_id": "card-amex", "display_name": "Test Amex", "provider": {"provider_id": "amex"}}]},
        )

        result = CliRunner().invoke(main, ["cards"])

        assert result.exit_code == 0, result.output
        assert "card-amex: Test Amex [amex]" in result.output

    def test_no_export(self):
        result = CliRunner().invoke(main, ["cards"])

        assert result.exit_code == 1
        assert "No saved response" in result.output
