"""Tests for config and logging."""

import io
import json
import logging
import os
from decimal import Decimal
from unittest.mock import patch

import pytest

from finledger.config import LedgerConfig, PostgresConfig, StoreConfig
from finledger.exceptions import ConfigurationError
from finledger.logging import JsonFormatter, get_logger, ledger_event, setup_logging
from finledger.store import InMemoryRecordStore, create_store


class TestPostgresConfig:
    """Tests for PostgresConfig."""

    def test_default_values(self) -> None:
        config = PostgresConfig()

        assert config.host == "localhost"
        assert config.port == 5432
        assert config.database == "finledger"
        assert config.user == "postgres"

    def test_connection_string(self) -> None:
        config = PostgresConfig(host="db", port=5433, database="ledger", user="app", password="secret")

        assert config.connection_string == "postgresql://app:secret@db:5433/ledger"


class TestStoreConfig:
    """Tests for StoreConfig."""

    def test_default_backend(self) -> None:
        assert StoreConfig().backend == "memory"

    def test_unknown_backend_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown store backend"):
            StoreConfig(backend="sqlite")


class TestLedgerConfig:
    """Tests for LedgerConfig."""

    def test_default_values(self) -> None:
        config = LedgerConfig()

        assert isinstance(config.postgres, PostgresConfig)
        assert config.store.backend == "memory"
        assert config.log_level == "INFO"
        assert config.log_format == "standard"
        assert config.seed is None

    def test_from_env_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            config = LedgerConfig.from_env()

        assert config.postgres.host == "localhost"
        assert config.store.backend == "memory"
        assert config.seed is None

    def test_from_env_custom(self) -> None:
        env = {
            "POSTGRES_HOST": "pg.internal",
            "POSTGRES_PORT": "6543",
            "POSTGRES_DB": "money",
            "LEDGER_STORE": "POSTGRES",
            "LOG_LEVEL": "DEBUG",
            "LOG_FORMAT": "json",
            "SEED": "7",
        }
        with patch.dict(os.environ, env, clear=True):
            config = LedgerConfig.from_env()

        assert config.postgres.host == "pg.internal"
        assert config.postgres.port == 6543
        assert config.postgres.database == "money"
        assert config.store.backend == "postgres"
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"
        assert config.seed == 7

    def test_from_env_invalid_backend(self) -> None:
        with patch.dict(os.environ, {"LEDGER_STORE": "redis"}, clear=True):
            with pytest.raises(ConfigurationError):
                LedgerConfig.from_env()


class TestCreateStore:
    """Tests for store selection."""

    def test_memory_backend(self) -> None:
        assert isinstance(create_store(LedgerConfig()), InMemoryRecordStore)

    @patch("finledger.store.postgres.psycopg.connect")
    def test_postgres_backend(self, mock_connect) -> None:
        from finledger.store.postgres import PostgresRecordStore

        config = LedgerConfig(store=StoreConfig(backend="postgres"))
        store = create_store(config)

        assert isinstance(store, PostgresRecordStore)
        assert mock_connect.call_args.args[0] == config.postgres.connection_string


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_standard_format(self) -> None:
        setup_logging(level="DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert not isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_json_format(self) -> None:
        setup_logging(level="INFO", format_type="json")

        root = logging.getLogger()
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_invalid_level_falls_back_to_info(self) -> None:
        setup_logging(level="NOPE")

        assert logging.getLogger().level == logging.INFO

    def test_external_loggers_quieted(self) -> None:
        setup_logging(level="DEBUG")

        assert logging.getLogger("psycopg").level == logging.WARNING
        assert logging.getLogger("faker").level == logging.WARNING

    def test_json_event_to_stream(self) -> None:
        """Test ledger event fields reach the JSON output."""
        buffer = io.StringIO()
        setup_logging(level="INFO", format_type="json", stream=buffer)

        logging.getLogger("finledger.services.pockets").info(
            "moved", extra=ledger_event(pocket_id="p-1", amount=Decimal("40000"))
        )

        data = json.loads(buffer.getvalue().strip())
        assert data["message"] == "moved"
        assert data["pocket_id"] == "p-1"
        assert data["amount"] == "40000"


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def _record(self, msg: str = "hello") -> logging.LogRecord:
        return logging.LogRecord("finledger.test", logging.INFO, __file__, 1, msg, None, None)

    def test_basic_fields(self) -> None:
        data = json.loads(JsonFormatter().format(self._record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "finledger.test"
        assert data["message"] == "hello"
        assert "timestamp" in data

    def test_extra_fields_serialized(self) -> None:
        record = self._record()
        record.extra = {"wallet_id": "w-1", "amount": Decimal("40000")}
        data = json.loads(JsonFormatter().format(record))

        assert data["wallet_id"] == "w-1"
        assert data["amount"] == "40000"

    def test_exception_info(self) -> None:
        try:
            raise ValueError("boom")
        except ValueError:
            import sys

            record = logging.LogRecord(
                "finledger.test", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
            )
        data = json.loads(JsonFormatter().format(record))

        assert "ValueError: boom" in data["exception"]


class TestGetLogger:
    def test_returns_named_logger(self) -> None:
        assert get_logger("finledger.services").name == "finledger.services"
