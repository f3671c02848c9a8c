"""Telegram channel handler.

Binds the inbound normalizer and outbound dispatcher to the host: webhook
bodies become stored events plus an acknowledgment, and outbound messages
become stored delivery statuses.
"""

from __future__ import annotations

import logging

from fastapi.responses import JSONResponse

from src.audit.logger import AuditLogger
from src.errors import AuthError, IgnoredNoMessage, MediaResolutionError, ValidationError
from src.gateway.config import GatewayConfig
from src.gateway.decode import decode_and_validate_json
from src.gateway.responses import (
    write_channel_event_success,
    write_error,
    write_ignored,
    write_msg_success,
)
from src.gateway.store import Store
from src.gateway.transport import HTTPTransport
from src.models import (
    TELEGRAM_CHANNEL_TYPE,
    AuditEvent,
    AuditEventType,
    CanonicalEvent,
    Channel,
    ChannelLog,
    ConversationStarted,
    DeliveryStatus,
    OutboundMessage,
    RiskLevel,
)
from src.telegram.dispatcher import OutboundDispatcher
from src.telegram.files import FileResolver
from src.telegram.normalizer import InboundNormalizer
from src.telegram.payload import TelegramEnvelope

logger = logging.getLogger(__name__)


class TelegramHandler:
    channel_type = TELEGRAM_CHANNEL_TYPE
    name = "Telegram"

    def __init__(
        self,
        config: GatewayConfig,
        store: Store,
        transport: HTTPTransport | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        transport = transport or HTTPTransport(timeout=config.http_timeout_seconds)
        self.store = store
        self.resolver = FileResolver(config.telegram_api_url, transport)
        self.normalizer = InboundNormalizer(self.resolver)
        self.dispatcher = OutboundDispatcher(config.telegram_api_url, transport)
        self._audit = audit_logger

    async def receive_message(
        self, channel: Channel, body: bytes,
    ) -> tuple[list[CanonicalEvent], JSONResponse]:
        """Handle one webhook body, returning stored events and the acknowledgment.

        File lookups made along the way are recorded in the audit details.
        """
        logs: list[ChannelLog] = []
        try:
            envelope = decode_and_validate_json(TelegramEnvelope, body)
            event = await self.normalizer.normalize(channel, envelope, logs)
        except IgnoredNoMessage as exc:
            logger.info("Ignoring update on channel %s: %s", channel.uuid, exc.reason)
            self._audit_webhook(channel, AuditEventType.WEBHOOK_IGNORED, "ignored", exc.reason)
            return [], write_ignored(exc.reason)
        except (ValidationError, MediaResolutionError) as exc:
            logger.warning("Rejecting update on channel %s: %s", channel.uuid, exc)
            self._audit_webhook(
                channel, AuditEventType.WEBHOOK_ERROR, "failure", str(exc), logs,
            )
            return [], write_error(exc)

        if isinstance(event, ConversationStarted):
            self.store.write_channel_event(event)
            logger.info("New conversation from %s on channel %s", event.urn, channel.uuid)
            self._audit_webhook(
                channel, AuditEventType.CHANNEL_EVENT, "success", str(event.urn), logs,
            )
            return [event], write_channel_event_success(event)

        self.store.write_msg(event)
        logger.info("Message %s received on channel %s", event.external_id, channel.uuid)
        self._audit_webhook(
            channel, AuditEventType.MSG_RECEIVED, "success", event.external_id, logs,
        )
        return [event], write_msg_success([event])

    async def send_msg(self, msg: OutboundMessage) -> DeliveryStatus:
        """Dispatch ``msg`` and store its delivery status.

        Raises ``AuthError`` when the channel has no usable token.
        """
        status = self.store.new_msg_status_for_id(msg.channel, msg.id)
        try:
            status = await self.dispatcher.dispatch(msg, status)
        except AuthError as exc:
            logger.error("Cannot send message %s on channel %s: %s", msg.id, msg.channel.uuid, exc)
            if self._audit:
                self._audit.log(AuditEvent(
                    event_type=AuditEventType.AUTH_FAILURE,
                    channel_uuid=msg.channel.uuid,
                    action=f"send:{msg.id}",
                    result="failure",
                    risk_level=RiskLevel.HIGH,
                    details={"reason": str(exc)},
                ))
            raise

        self.store.write_msg_status(status)
        if self._audit:
            self._audit.log_delivery(status)
        return status

    def _audit_webhook(
        self,
        channel: Channel,
        event_type: AuditEventType,
        result: str,
        detail: str,
        logs: list[ChannelLog] | None = None,
    ) -> None:
        if self._audit is None:
            return
        self._audit.log(AuditEvent(
            event_type=event_type,
            channel_uuid=channel.uuid,
            action="receive",
            result=result,
            risk_level=RiskLevel.MEDIUM if result == "failure" else RiskLevel.INFO,
            details={
                "detail": detail,
                "channel_logs": [log.model_dump(mode="json") for log in logs or []],
            },
        ))
