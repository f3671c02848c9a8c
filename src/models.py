"""Shared Pydantic data models for the Telegram gateway."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

if TYPE_CHECKING:
    from src.gateway.transport import HTTPTrace

CONFIG_AUTH_TOKEN = "auth_token"
TELEGRAM_CHANNEL_TYPE = "TG"
TELEGRAM_SCHEME = "telegram"

# Placeholder written to channel logs in place of secrets
REDACTED = "**********"


def _now() -> datetime:
    return datetime.now(UTC)


def _new_uuid() -> str:
    return str(uuid.uuid4())


# --- Enums ---


class MsgStatus(str, Enum):
    WIRED = "wired"
    ERRORED = "errored"


class ChannelEventType(str, Enum):
    NEW_CONVERSATION = "new_conversation"


class AuditEventType(str, Enum):
    MSG_RECEIVED = "msg_received"
    CHANNEL_EVENT = "channel_event"
    WEBHOOK_IGNORED = "webhook_ignored"
    WEBHOOK_ERROR = "webhook_error"
    MSG_WIRED = "msg_wired"
    MSG_ERRORED = "msg_errored"
    AUTH_FAILURE = "auth_failure"


class RiskLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


# --- Channels and contacts ---


class Channel(BaseModel):
    """A configured connection to one bot account."""

    uuid: str = Field(default_factory=_new_uuid)
    channel_type: str = TELEGRAM_CHANNEL_TYPE
    name: str = ""
    address: str = ""
    config: dict[str, Any] = Field(default_factory=dict)

    def config_for_key(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)


class ContactURN(BaseModel):
    model_config = ConfigDict(frozen=True)

    scheme: str
    path: str
    display: str = ""

    @classmethod
    def telegram(cls, contact_id: int, username: str = "") -> ContactURN:
        return cls(scheme=TELEGRAM_SCHEME, path=str(contact_id), display=username)

    @classmethod
    def parse(cls, raw: str) -> ContactURN:
        """Parse ``scheme:path#display``; a bare path defaults to the telegram scheme."""
        scheme, sep, rest = raw.partition(":")
        if not sep:
            scheme, rest = TELEGRAM_SCHEME, raw
        path, _, display = rest.partition("#")
        return cls(scheme=scheme, path=path, display=display)

    def __str__(self) -> str:
        if self.display:
            return f"{self.scheme}:{self.path}#{self.display}"
        return f"{self.scheme}:{self.path}"


# --- Canonical inbound events ---


class ConversationStarted(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["conversation_started"] = "conversation_started"
    uuid: str = Field(default_factory=_new_uuid)
    channel_uuid: str
    event_type: ChannelEventType = ChannelEventType.NEW_CONVERSATION
    urn: ContactURN
    contact_name: str = ""
    occurred_on: datetime


class IncomingMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["incoming_message"] = "incoming_message"
    uuid: str = Field(default_factory=_new_uuid)
    channel_uuid: str
    urn: ContactURN
    contact_name: str = ""
    text: str = ""
    attachments: tuple[str, ...] = Field(default=(), max_length=1)
    received_on: datetime
    external_id: str


CanonicalEvent = Annotated[
    ConversationStarted | IncomingMessage, Field(discriminator="kind"),
]


# --- Outbound messages ---


def split_attachment(attachment: str) -> tuple[str, str]:
    """Split ``media/type:url`` into its media type and URL.

    An attachment without a type prefix yields an empty media type.
    """
    media_type, sep, url = attachment.partition(":")
    if not sep or url.startswith("//"):
        return "", attachment
    return media_type, url


class OutboundMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    channel: Channel
    urn: ContactURN
    text: str = ""
    attachments: tuple[str, ...] = ()
    quick_replies: tuple[str, ...] = ()


# --- Delivery tracking ---


class ChannelLog(BaseModel):
    """Request/response summary of one provider interaction."""

    description: str
    channel_uuid: str
    msg_id: int | None = None
    method: str = ""
    url: str = ""
    status_code: int = 0
    request: str = ""
    response: str = ""
    elapsed_ms: int = 0
    error: str | None = None
    created_on: datetime = Field(default_factory=_now)

    @classmethod
    def from_trace(
        cls,
        description: str,
        channel_uuid: str,
        msg_id: int | None,
        trace: HTTPTrace | None,
        error: Exception | None = None,
        secrets: tuple[str, ...] = (),
    ) -> ChannelLog:
        log = cls(
            description=description,
            channel_uuid=channel_uuid,
            msg_id=msg_id,
            error=str(error) if error else None,
        )
        if trace is None:
            return log
        return log.model_copy(update={
            "method": trace.method,
            "url": _redact(trace.url, secrets),
            "status_code": trace.status_code,
            "request": _redact(trace.request_body, secrets),
            "response": trace.response_body,
            "elapsed_ms": trace.elapsed_ms,
        })


def _redact(value: str, secrets: tuple[str, ...]) -> str:
    for secret in secrets:
        if secret:
            value = value.replace(secret, REDACTED)
    return value


class PartOutcome(BaseModel):
    """Result of one emitted (or refused) outbound part."""

    model_config = ConfigDict(frozen=True)

    method: str
    external_id: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DeliveryStatus(BaseModel):
    """Accumulates per-part outcomes of one outbound message.

    The message is wired only when at least one part was emitted and every
    part succeeded. The external id tracks the last successful part.
    """

    channel_uuid: str
    msg_id: int
    parts: list[PartOutcome] = Field(default_factory=list)
    logs: list[ChannelLog] = Field(default_factory=list)
    external_id: str | None = None

    def add_part(self, outcome: PartOutcome, log: ChannelLog) -> None:
        self.parts.append(outcome)
        self.logs.append(log)
        if outcome.ok and outcome.external_id:
            self.external_id = outcome.external_id

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> MsgStatus:
        if self.parts and all(p.ok for p in self.parts):
            return MsgStatus.WIRED
        return MsgStatus.ERRORED

    @property
    def errors(self) -> list[str]:
        return [p.error for p in self.parts if p.error is not None]


# --- Audit Models ---


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    channel_uuid: str | None = None
    action: str
    result: str  # "success" | "ignored" | "failure"
    risk_level: RiskLevel = RiskLevel.INFO
    details: dict[str, object] | None = None
