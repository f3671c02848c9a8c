"""FastAPI application exposing the Telegram receive route."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, Response

from src.audit.logger import AuditLogger
from src.errors import ChannelNotFoundError
from src.gateway.config import GatewayConfig
from src.gateway.responses import write_error
from src.gateway.store import SQLiteStore, Store
from src.gateway.transport import HTTPTransport
from src.telegram.handler import TelegramHandler

logger = logging.getLogger(__name__)


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    config = GatewayConfig.from_env()
    store = SQLiteStore(config.db_path)
    audit_logger: AuditLogger | None = None
    if config.audit_log_path:
        audit_logger = AuditLogger(
            config.audit_log_path,
            max_bytes=config.audit_log_max_bytes,
            backup_count=config.audit_log_backup_count,
        )
    return create_app(config, store, audit_logger=audit_logger)


def create_app(
    config: GatewayConfig,
    store: Store,
    transport: HTTPTransport | None = None,
    audit_logger: AuditLogger | None = None,
) -> FastAPI:
    """Create the gateway app with the Telegram handler mounted."""
    app = FastAPI(docs_url=None, redoc_url=None)
    handler = TelegramHandler(config, store, transport=transport, audit_logger=audit_logger)
    app.state.telegram = handler

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/c/tg/{channel_uuid}/receive")
    async def receive(channel_uuid: str, request: Request) -> Response:
        try:
            channel = store.get_channel(handler.channel_type, channel_uuid)
        except ChannelNotFoundError as exc:
            logger.info("Webhook for unknown channel %s", channel_uuid)
            return write_error(exc, status_code=404)

        _, response = await handler.receive_message(channel, await request.body())
        return response

    return app
