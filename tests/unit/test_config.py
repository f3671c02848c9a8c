"""Tests for environment-driven configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.gateway.config import GatewayConfig


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "TELEGRAM_API_URL",
        "HTTP_TIMEOUT_SECONDS",
        "GATEWAY_DB_PATH",
        "AUDIT_LOG_PATH",
        "AUDIT_LOG_MAX_BYTES",
        "AUDIT_LOG_BACKUP_COUNT",
    ):
        monkeypatch.delenv(name, raising=False)
    config = GatewayConfig.from_env()
    assert config.telegram_api_url == "https://api.telegram.org"
    assert config.http_timeout_seconds == 30.0
    assert config.db_path == "data/gateway.db"
    assert config.audit_log_path is None


def test_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TELEGRAM_API_URL", "http://localhost:8081")
    monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "5")
    monkeypatch.setenv("GATEWAY_DB_PATH", "/tmp/gw.db")
    monkeypatch.setenv("AUDIT_LOG_PATH", "/tmp/audit.jsonl")
    monkeypatch.setenv("AUDIT_LOG_MAX_BYTES", "500")
    monkeypatch.setenv("AUDIT_LOG_BACKUP_COUNT", "7")
    config = GatewayConfig.from_env()
    assert config.telegram_api_url == "http://localhost:8081"
    assert config.http_timeout_seconds == 5.0
    assert config.db_path == "/tmp/gw.db"
    assert config.audit_log_path == "/tmp/audit.jsonl"
    assert config.audit_log_max_bytes == 500
    assert config.audit_log_backup_count == 7


def test_empty_audit_path_disables_audit(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUDIT_LOG_PATH", "")
    assert GatewayConfig.from_env().audit_log_path is None


def test_rejects_non_positive_timeout() -> None:
    with pytest.raises(ValidationError):
        GatewayConfig(http_timeout_seconds=0)


def test_frozen() -> None:
    config = GatewayConfig()
    with pytest.raises(ValidationError):
        config.db_path = "other.db"  # type: ignore[misc]
