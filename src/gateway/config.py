"""Environment-driven gateway configuration."""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field

from src.telegram.api import DEFAULT_API_URL


class GatewayConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    telegram_api_url: str = DEFAULT_API_URL
    http_timeout_seconds: float = Field(default=30.0, gt=0)
    db_path: str = "data/gateway.db"
    audit_log_path: str | None = None
    audit_log_max_bytes: int = Field(default=10_485_760, gt=0)
    audit_log_backup_count: int = Field(default=5, ge=0)

    @classmethod
    def from_env(cls) -> GatewayConfig:
        """Build a config from environment variables, falling back to defaults."""
        return cls(
            telegram_api_url=os.environ.get("TELEGRAM_API_URL", DEFAULT_API_URL),
            http_timeout_seconds=float(os.environ.get("HTTP_TIMEOUT_SECONDS", "30")),
            db_path=os.environ.get("GATEWAY_DB_PATH", "data/gateway.db"),
            audit_log_path=os.environ.get("AUDIT_LOG_PATH") or None,
            audit_log_max_bytes=int(os.environ.get("AUDIT_LOG_MAX_BYTES", "10485760")),
            audit_log_backup_count=int(os.environ.get("AUDIT_LOG_BACKUP_COUNT", "5")),
        )
