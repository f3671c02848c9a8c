"""Inbound normalizer: Bot API updates to canonical gateway events."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime

from src.errors import (
    AuthError,
    IgnoredNoMessage,
    MediaResolutionError,
    ProviderError,
    TransportError,
)
from src.models import (
    CanonicalEvent,
    Channel,
    ChannelLog,
    ContactURN,
    ConversationStarted,
    IncomingMessage,
)
from src.telegram.files import FileResolver
from src.telegram.payload import (
    ContactContent,
    Content,
    FileContent,
    LocationContent,
    PhotoContent,
    StickerContent,
    TelegramEnvelope,
    TelegramFile,
    TelegramLocation,
    VenueContent,
)

logger = logging.getLogger(__name__)

START_COMMAND = "/start"

# Largest photo variant we are willing to fetch
PHOTO_MAX_BYTES = 100_000


def join_non_empty(sep: str, *parts: str) -> str:
    return sep.join(p for p in parts if p)


def name_from_first_last_username(first: str, last: str, username: str) -> str:
    name = join_non_empty(" ", first, last)
    return name or username


def select_photo(sizes: Sequence[TelegramFile]) -> TelegramFile:
    """Pick the largest variant not over ``PHOTO_MAX_BYTES``.

    Variants are expected in ascending size order. When even the smallest is
    too big, the smallest is used anyway.
    """
    photo = sizes[0]
    for candidate in sizes[1:]:
        if candidate.file_size > PHOTO_MAX_BYTES:
            break
        photo = candidate
    return photo


def format_coordinates(location: TelegramLocation) -> str:
    return f"{location.latitude:f},{location.longitude:f}"


def geo_url(location: TelegramLocation) -> str:
    return f"geo:{format_coordinates(location)}"


class InboundNormalizer:
    """Turns a decoded webhook envelope into exactly one canonical event."""

    def __init__(self, resolver: FileResolver) -> None:
        self._resolver = resolver

    async def normalize(
        self,
        channel: Channel,
        envelope: TelegramEnvelope,
        logs: list[ChannelLog] | None = None,
    ) -> CanonicalEvent:
        """Build the event for ``envelope``; file lookups are appended to ``logs``."""
        if not envelope.has_message() or envelope.message is None:
            raise IgnoredNoMessage()
        message = envelope.message

        occurred_on = datetime.fromtimestamp(message.date, UTC)
        sender = message.sender
        urn = ContactURN.telegram(sender.id, sender.username)
        name = name_from_first_last_username(sender.first_name, sender.last_name, sender.username)

        if message.text == START_COMMAND:
            return ConversationStarted(
                channel_uuid=channel.uuid,
                urn=urn,
                contact_name=name,
                occurred_on=occurred_on,
            )

        text = message.text or message.caption
        text, attachment = await self._resolve_content(channel, message.content(), text, logs)

        return IncomingMessage(
            channel_uuid=channel.uuid,
            urn=urn,
            contact_name=name,
            text=text,
            attachments=(attachment,) if attachment else (),
            received_on=occurred_on,
            external_id=str(message.message_id),
        )

    async def _resolve_content(
        self,
        channel: Channel,
        content: Content | None,
        text: str,
        logs: list[ChannelLog] | None,
    ) -> tuple[str, str]:
        """Return the message text and attachment URL for ``content``."""
        if isinstance(content, PhotoContent):
            return text, await self._resolve(channel, select_photo(content.sizes), logs)
        if isinstance(content, FileContent):
            return text, await self._resolve(channel, content.file, logs)
        if isinstance(content, StickerContent):
            if content.thumb is None:
                return text, ""
            return text, await self._resolve(channel, content.thumb, logs)
        if isinstance(content, VenueContent):
            venue_text = join_non_empty(", ", content.title, content.address)
            return venue_text, geo_url(content.location) if content.location else ""
        if isinstance(content, LocationContent):
            return format_coordinates(content.location), geo_url(content.location)
        if isinstance(content, ContactContent):
            contact = content.contact
            phone = f"({contact.phone_number})" if contact.phone_number else ""
            return join_non_empty(" ", contact.first_name, contact.last_name, phone), ""
        return text, ""

    async def _resolve(
        self, channel: Channel, file: TelegramFile, logs: list[ChannelLog] | None,
    ) -> str:
        try:
            return await self._resolver.resolve_file_id(channel, file.file_id, logs)
        except (AuthError, ProviderError, TransportError) as exc:
            logger.warning(
                "Failed to resolve file %s on channel %s: %s", file.file_id, channel.uuid, exc,
            )
            raise MediaResolutionError(exc) from exc
