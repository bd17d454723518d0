#!/usr/bin/env python3
"""
TrueLayer Data API Client

TransactionSource over the TrueLayer card endpoints:

- GET /data/v1/cards
- GET /data/v1/cards/{account_id}/transactions?from=...&to=...

Authentication uses an access token issued out of band. Rate limiting and
transient server errors are retried with backoff; anything else fails the
card with a FetchError.
"""

import logging
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import httpx

from ..core.config import TrueLayerConfig
from ..core.dates import FinancialDate
from ..core.errors import FetchError
from ..core.json_utils import write_json
from ..core.models import Card, FetchedTransaction
from .models import parse_cards, parse_transactions

logger = logging.getLogger(__name__)

CARDS_PATH = "/data/v1/cards"
TRANSACTIONS_PATH = "/data/v1/cards/{account_id}/transactions"

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
RETRY_DELAYS = [1.0, 2.0, 4.0]  # seconds (exponential backoff)


class TrueLayerClient:
    """
    TransactionSource backed by the TrueLayer Data API.

    Example:
        client = TrueLayerClient(config.truelayer, export_dir=config.export_dir)
        cards = client.list_cards()
        transactions = client.fetch(cards[0].id, since=FinancialDate.today().minus_days(90))
    """

    def __init__(
        self,
        config: TrueLayerConfig,
        http_client: httpx.Client | None = None,
        export_dir: Path | None = None,
        retry_delays: Sequence[float] = RETRY_DELAYS,
    ):
        """
        Initialize the client.

        Args:
            config: TrueLayer credentials and timeout
            http_client: Pre-built httpx client (tests pass one with a mock transport)
            export_dir: If set, raw responses are saved here for offline runs
            retry_delays: Backoff delays between attempts on retryable failures
        """
        if not config.access_token:
            raise FetchError("TRUELAYER_ACCESS_TOKEN is not set")

        self.config = config
        self.export_dir = export_dir
        self.retry_delays = list(retry_delays)
        self._client = http_client or httpx.Client(timeout=config.timeout)
        self._owns_client = http_client is None

        logger.debug(f"TrueLayer client using {config.api_base_url}")

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "TrueLayerClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def list_cards(self) -> list[Card]:
        payload = self._get(CARDS_PATH)
        self._export("cards.json", payload)

        cards = parse_cards(payload)
        logger.info(f"TrueLayer returned {len(cards)} cards")
        return cards

    def fetch(self, card_id: str, since: FinancialDate | None = None) -> list[FetchedTransaction]:
        params = {}
        if since is not None:
            params["from"] = since.to_iso_string()
            params["to"] = FinancialDate.today().to_iso_string()

        payload = self._get(TRANSACTIONS_PATH.format(account_id=card_id), params)
        self._export(f"{card_id}.json", payload)

        transactions = parse_transactions(payload, card_id)
        logger.info(f"TrueLayer returned {len(transactions)} transactions for card {card_id}")
        return transactions

    def _export(self, name: str, payload: Any) -> None:
        """Save a raw response for offline syncs, if an export directory is set."""
        if self.export_dir is None:
            return
        try:
            write_json(self.export_dir / name, payload)
        except OSError as e:
            raise FetchError(f"Could not save TrueLayer response to {self.export_dir / name}: {e}") from e

    def _get(self, path: str, params: dict[str, str] | None = None) -> Any:
        """GET a path, retrying rate limits and transient failures."""
        url = f"{self.config.api_base_url}{path}"
        headers = {
            "Authorization": f"Bearer {self.config.access_token}",
            "Accept": "application/json",
        }

        attempt = 0
        while True:
            try:
                response = self._client.get(url, params=params, headers=headers)
            except httpx.TimeoutException as e:
                if attempt < len(self.retry_delays):
                    self._backoff(attempt, f"timeout calling {path}")
                    attempt += 1
                    continue
                raise FetchError(f"TrueLayer request timed out: {path}") from e
            except httpx.RequestError as e:
                raise FetchError(f"TrueLayer request failed: {e}") from e

            if response.status_code in RETRYABLE_STATUS_CODES and attempt < len(self.retry_delays):
                self._backoff(attempt, f"HTTP {response.status_code} from {path}")
                attempt += 1
                continue

            if response.status_code == 401:
                raise FetchError("TrueLayer rejected the access token (401); re-authenticate and retry")
            if response.is_error:
                raise FetchError(f"TrueLayer returned HTTP {response.status_code} for {path}: {response.text[:200]}")

            try:
                return response.json()
            except ValueError as e:
                raise FetchError(f"TrueLayer returned invalid JSON for {path}") from e

    def _backoff(self, attempt: int, reason: str) -> None:
        delay = self.retry_delays[attempt]
        logger.warning(f"TrueLayer {reason}; retrying in {delay}s (attempt {attempt + 2})")
        time.sleep(delay)
