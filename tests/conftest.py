"""
Pytest Configuration and Shared Fixtures

Provides common test fixtures and configuration for the entire test suite.
"""

import tempfile
from pathlib import Path
from typing import Any

import pytest

import cardtracker.core.config as config_module


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture
def sample_truelayer_cards() -> dict[str, Any]:
    """Sample GET /data/v1/cards response."""
    return {
        "results": [
            {
                "account_id": "card-amex",
                "display_name": "Test Amex",
                "provider": {"provider_id": "amex", "display_name": "American Express"},
            },
            {
                "account_id": "card-visa",
                "display_name": "Test Visa",
                "provider": {"provider_id": "ob-test", "display_name": "Test Bank"},
            },
        ],
        "status": "Succeeded",
    }


@pytest.fixture
def sample_truelayer_transactions() -> dict[str, Any]:
    """Sample GET /data/v1/cards/{id}/transactions response: one purchase and its refund."""
    return {
        "results": [
            {
                "transaction_id": "volatile-1",
                "normalised_provider_transaction_id": "ntx-001",
                "timestamp": "2024-03-01T00:00:00Z",
                "description": "SYNTHETIC STORE",
                "transaction_type": "DEBIT",
                "amount": 45.99,
                "currency": "GBP",
            },
            {
                "transaction_id": "volatile-2",
                "normalised_provider_transaction_id": "ntx-002",
                "timestamp": "2024-03-04T00:00:00Z",
                "description": "SYNTHETIC STORE REFUND",
                "transaction_type": "CREDIT",
                "amount": 45.99,
                "currency": "GBP",
            },
        ],
        "status": "Succeeded",
    }


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Set up test environment variables."""
    # Ensure tests don't use real data
    monkeypatch.setenv("CARD_TRACKER_ENV", "test")
    monkeypatch.setenv("CARD_TRACKER_DATA_DIR", str(tmp_path / "card_tracker_data"))
    monkeypatch.setenv("CARD_TRACKER_SOURCE", "export")

    # Mock sensitive environment variables
    monkeypatch.setenv("TRUELAYER_CLIENT_ID", "sandbox-test-client")
    monkeypatch.setenv("TRUELAYER_ACCESS_TOKEN", "test-token")

    for name in [
        "CARD_TRACKER_CARDS_FILE",
        "SYNC_FETCH_DAYS",
        "SYNC_CONCURRENCY",
        "SYNC_MATCH_WINDOW_DAYS",
        "TRUELAYER_TIMEOUT",
        "LOG_LEVEL",
        "DEBUG",
    ]:
        monkeypatch.delenv(name, raising=False)

    # Each test builds its own configuration
    monkeypatch.setattr(config_module, "_config", None)


# Test markers for categorizing tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for complete workflows")
    config.addinivalue_line("markers", "currency: Tests for currency handling and precision")
    config.addinivalue_line("markers", "ledger: Tests for loading, merging and syncing card ledgers")
    config.addinivalue_line("markers", "matcher: Tests for debit/credit auto-matching")
    config.addinivalue_line("markers", "truelayer: Tests for the TrueLayer transaction sources")
    config.addinivalue_line("markers", "workbook: Tests for the CSV workbook store")
