"""Outbound dispatcher: one canonical message to one or more Bot API calls."""

from __future__ import annotations

import logging

from src.errors import ProviderError, TransportError, UnsupportedMediaType
from src.gateway.transport import HTTPTrace, HTTPTransport
from src.models import (
    ChannelLog,
    DeliveryStatus,
    MsgStatus,
    OutboundMessage,
    PartOutcome,
    split_attachment,
)
from src.telegram.api import (
    SEND_AUDIO,
    SEND_MESSAGE,
    SEND_PHOTO,
    SEND_VIDEO,
    auth_token,
    method_url,
    parse_response,
)
from src.telegram.keyboard import REMOVE_KEYBOARD, KeyboardMarkup, build_keyboard, encode_keyboard

logger = logging.getLogger(__name__)

# media type prefix -> (API method, form field carrying the URL)
_MEDIA_METHODS: dict[str, tuple[str, str]] = {
    "image": (SEND_PHOTO, "photo"),
    "video": (SEND_VIDEO, "video"),
    "audio": (SEND_AUDIO, "audio"),
}


class OutboundDispatcher:
    """Sends the parts of a message strictly in order: text, then attachments.

    A failing part never stops the parts after it; failures are recorded in
    the returned ``DeliveryStatus``. Only a missing auth token is raised.
    """

    def __init__(self, api_url: str, transport: HTTPTransport) -> None:
        self._api_url = api_url
        self._transport = transport

    async def dispatch(
        self, msg: OutboundMessage, status: DeliveryStatus | None = None,
    ) -> DeliveryStatus:
        token = auth_token(msg.channel)
        if status is None:
            status = DeliveryStatus(channel_uuid=msg.channel.uuid, msg_id=msg.id)

        # only caption when there is exactly one attachment
        caption = msg.text if len(msg.attachments) == 1 else ""

        # the keyboard rides on the first emitted part only
        markup: KeyboardMarkup = build_keyboard(msg.quick_replies)

        if msg.text and not caption:
            form = {"chat_id": msg.urn.path, "text": msg.text}
            await self._send_part(msg, token, SEND_MESSAGE, form, markup, status)
            markup = REMOVE_KEYBOARD

        for attachment in msg.attachments:
            media_type, media_url = split_attachment(attachment)
            prefix = media_type.split("/")[0]
            if prefix not in _MEDIA_METHODS:
                self._reject_part(msg, media_type, status)
                continue

            method, field = _MEDIA_METHODS[prefix]
            form = {"chat_id": msg.urn.path, field: media_url, "caption": caption}
            await self._send_part(msg, token, method, form, markup, status)
            markup = REMOVE_KEYBOARD

        if status.status is MsgStatus.WIRED:
            logger.info("Message %s wired in %d part(s)", msg.id, len(status.parts))
        else:
            logger.warning("Message %s errored: %s", msg.id, "; ".join(status.errors))
        return status

    async def _send_part(
        self,
        msg: OutboundMessage,
        token: str,
        method: str,
        form: dict[str, str],
        markup: KeyboardMarkup,
        status: DeliveryStatus,
    ) -> None:
        form = {**form, "reply_markup": encode_keyboard(markup)}
        url = method_url(self._api_url, token, method)

        trace: HTTPTrace | None = None
        try:
            trace = await self._transport.post_form(url, form)
            external_id = _message_id(trace.response_body)
        except (TransportError, ProviderError) as exc:
            if isinstance(exc, TransportError):
                trace = exc.trace
            logger.warning("Message %s part %s failed: %s", msg.id, method, exc)
            log = ChannelLog.from_trace(
                "Message Send Error", msg.channel.uuid, msg.id, trace, exc, secrets=(token,),
            )
            status.add_part(PartOutcome(method=method, error=str(exc)), log)
            return

        log = ChannelLog.from_trace(
            "Message Sent", msg.channel.uuid, msg.id, trace, secrets=(token,),
        )
        status.add_part(PartOutcome(method=method, external_id=external_id), log)

    def _reject_part(
        self, msg: OutboundMessage, media_type: str, status: DeliveryStatus,
    ) -> None:
        exc = UnsupportedMediaType(media_type)
        logger.warning("Message %s has attachment with %s", msg.id, exc)
        log = ChannelLog.from_trace(
            f"Unknown media type: {media_type}", msg.channel.uuid, msg.id, None, exc,
        )
        status.add_part(PartOutcome(method="", error=str(exc)), log)


def _message_id(body: str) -> str:
    ok, result = parse_response(body)
    if not ok:
        raise ProviderError("response not 'ok'", body)
    message_id = result.get("message_id")
    if not isinstance(message_id, int) or isinstance(message_id, bool):
        raise ProviderError("no 'result.message_id' in response", body)
    return str(message_id)
