#!/usr/bin/env python3
"""
Configuration Management for the Credit Card Tracker

Handles environment-based configuration with secure defaults and validation.
Supports multiple environments (development, test, production).
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .errors import ConfigError
from .models import Card

# Load environment variables from .env file
load_dotenv()


class Environment(Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


class SourceKind(Enum):
    """Where transactions are fetched from."""

    TRUELAYER = "truelayer"
    EXPORT = "export"


@dataclass
class TrueLayerConfig:
    """TrueLayer Data API configuration."""

    client_id: str | None = None
    access_token: str | None = None
    timeout: float = 30.0

    @property
    def is_sandbox(self) -> bool:
        """Sandbox credentials are issued with a "sandbox-" client id prefix."""
        return bool(self.client_id and self.client_id.startswith("sandbox-"))

    @property
    def api_base_url(self) -> str:
        if self.is_sandbox:
            return "https://api.truelayer-sandbox.com"
        return "https://api.truelayer.com"


@dataclass
class WorkbookConfig:
    """Ledger workbook (persisted store) configuration."""

    ledger_dir: Path


@dataclass
class SyncConfig:
    """Sync engine configuration."""

    fetch_days: int = 90
    concurrency: int = 4
    match_window_days: int | None = None
    cards_file: Path | None = None
    cards: list[Card] = field(default_factory=list)


@dataclass
class Config:
    """
    Main configuration class for the tracker.

    Loads configuration from environment variables with secure defaults
    and validation for each environment type.
    """

    environment: Environment

    # Core directories
    data_dir: Path
    cache_dir: Path
    export_dir: Path

    # Component configurations
    source: SourceKind
    truelayer: TrueLayerConfig
    workbook: WorkbookConfig
    sync: SyncConfig

    # Application settings
    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "Config":
        """Create configuration from environment variables."""
        env = Environment(os.getenv("CARD_TRACKER_ENV", "development"))

        # Base directories
        if env == Environment.TEST:
            default_test_dir = Path(tempfile.gettempdir()) / "test_card_tracker"
            base_dir = Path(os.getenv("CARD_TRACKER_DATA_DIR", str(default_test_dir)))
        else:
            base_dir = Path(os.getenv("CARD_TRACKER_DATA_DIR", "./data")).expanduser().resolve()

        data_dir = base_dir
        cache_dir = data_dir / "cache"
        export_dir = data_dir / "exports"

        # Ensure directories exist
        for directory in [data_dir, cache_dir, export_dir]:
            directory.mkdir(parents=True, exist_ok=True)

        truelayer = TrueLayerConfig(
            client_id=os.getenv("TRUELAYER_CLIENT_ID"),
            access_token=os.getenv("TRUELAYER_ACCESS_TOKEN"),
            timeout=float(os.getenv("TRUELAYER_TIMEOUT", "30")),
        )

        workbook = WorkbookConfig(ledger_dir=data_dir / "ledgers")

        cards_file_env = os.getenv("CARD_TRACKER_CARDS_FILE")
        cards_file = Path(cards_file_env).expanduser() if cards_file_env else None

        sync = SyncConfig(
            fetch_days=int(os.getenv("SYNC_FETCH_DAYS", "90")),
            concurrency=int(os.getenv("SYNC_CONCURRENCY", "4")),
            match_window_days=_parse_optional_int(os.getenv("SYNC_MATCH_WINDOW_DAYS")),
            cards_file=cards_file,
            cards=load_cards_file(cards_file) if cards_file and cards_file.exists() else [],
        )

        return cls(
            environment=env,
            data_dir=data_dir,
            cache_dir=cache_dir,
            export_dir=export_dir,
            source=SourceKind(os.getenv("CARD_TRACKER_SOURCE", "truelayer").lower()),
            truelayer=truelayer,
            workbook=workbook,
            sync=sync,
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        for name, path in [
            ("data_dir", self.data_dir),
            ("cache_dir", self.cache_dir),
            ("export_dir", self.export_dir),
        ]:
            if not path.exists():
                errors.append(f"{name} does not exist: {path}")

        if self.source == SourceKind.TRUELAYER and self.environment == Environment.PRODUCTION:
            if not self.truelayer.access_token:
                errors.append("TRUELAYER_ACCESS_TOKEN is required in production")

        if self.sync.cards_file and not self.sync.cards_file.exists():
            errors.append(f"cards file does not exist: {self.sync.cards_file}")

        if self.truelayer.timeout <= 0:
            errors.append("TrueLayer timeout must be positive")
        if self.sync.fetch_days <= 0:
            errors.append("SYNC_FETCH_DAYS must be positive")
        if self.sync.concurrency < 1:
            errors.append("SYNC_CONCURRENCY must be at least 1")
        if self.sync.match_window_days is not None and self.sync.match_window_days < 0:
            errors.append("SYNC_MATCH_WINDOW_DAYS must be non-negative")

        return errors

    def setup_logging(self) -> None:
        """Configure logging based on configuration."""
        level = getattr(logging, self.log_level, logging.INFO)

        if self.environment == Environment.DEVELOPMENT:
            format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_str = "%(asctime)s - %(levelname)s - %(message)s"

        logging.basicConfig(level=level, format=format_str, datefmt="%Y-%m-%d %H:%M:%S")

        # HTTP client libraries log every request at INFO
        if self.environment != Environment.DEVELOPMENT:
            logging.getLogger("httpx").setLevel(logging.WARNING)
            logging.getLogger("httpcore").setLevel(logging.WARNING)

    def get_sensitive_fields(self) -> list[str]:
        """Get list of field names that contain sensitive data."""
        return ["truelayer.access_token"]

    def to_dict(self, include_sensitive: bool = False) -> dict[str, Any]:
        """Convert configuration to dictionary, optionally excluding sensitive data."""
        result: dict[str, Any] = {}

        for field_name, field_value in self.__dict__.items():
            if hasattr(field_value, "__dataclass_fields__"):
                nested_dict: dict[str, Any] = {}
                for nested_name, nested_value in field_value.__dict__.items():
                    full_field_name = f"{field_name}.{nested_name}"

                    if not include_sensitive and full_field_name in self.get_sensitive_fields():
                        nested_dict[nested_name] = "***REDACTED***" if nested_value else None
                    else:
                        nested_dict[nested_name] = _plain_value(nested_value)

                result[field_name] = nested_dict
            else:
                result[field_name] = _plain_value(field_value)

        return result


def _plain_value(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Card):
        return {"id": value.id, "name": value.name, "provider": value.provider}
    if isinstance(value, list):
        return [_plain_value(item) for item in value]
    return value


def _parse_optional_int(value: str | None) -> int | None:
    """Parse an optional integer setting; unset or blank means None."""
    if value is None or not value.strip():
        return None
    return int(value)


def load_cards_file(path: Path) -> list[Card]:
    """
    Load the configured card list from YAML.

    Expected format::

        cards:
          - id: acc_123
            name: Amex Card
            provider: amex

    Raises:
        ConfigError: If the file is malformed
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid cards file {path}: {e}") from e

    entries = data.get("cards", []) if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise ConfigError(f"Invalid cards file {path}: expected a list of cards")

    cards = []
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("id"):
            raise ConfigError(f"Invalid cards file {path}: every card needs an id")
        cards.append(
            Card(
                id=str(entry["id"]),
                name=str(entry.get("name") or entry["id"]),
                provider=entry.get("provider"),
            )
        )
    return cards


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        try:
            config = Config.from_environment()
        except ValueError as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e

        errors = config.validate()
        if errors:
            raise ConfigError(f"Configuration validation failed: {'; '.join(errors)}")

        config.setup_logging()
        _config = config

    return _config


def reload_config() -> Config:
    """Reload configuration from environment (useful for testing)."""
    global _config
    _config = None
    return get_config()
