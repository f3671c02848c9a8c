"""Shared test fixtures for the Telegram gateway."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock
from urllib.parse import parse_qsl

import httpx
import pytest

from src.audit.logger import AuditLogger
from src.gateway.config import GatewayConfig
from src.gateway.store import SQLiteStore
from src.gateway.transport import HTTPTransport
from src.models import CONFIG_AUTH_TOKEN, Channel, ContactURN, OutboundMessage

API_URL = "https://api.telegram.test"
BOT_TOKEN = "123:ABC"
CHANNEL_UUID = "8eb23e93-5ecb-45ba-b726-3b064e0c56ab"


class FakeBotAPI:
    """Records Bot API requests and answers from a queue, or with a default success."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._queued: list[httpx.Response | Exception] = []
        self._next_message_id = 100

    def queue(
        self,
        status_code: int = 200,
        json: Any = None,
        text: str | None = None,
    ) -> None:
        if text is not None:
            self._queued.append(httpx.Response(status_code, text=text))
        else:
            self._queued.append(httpx.Response(status_code, json=json))

    def queue_error(self, exc: Exception) -> None:
        self._queued.append(exc)

    def queue_sent(self, message_id: int) -> None:
        self.queue(json={"ok": True, "result": {"message_id": message_id}})

    def queue_file(self, file_path: str) -> None:
        self.queue(json={"ok": True, "result": {"file_id": "x", "file_path": file_path}})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._queued:
            answer = self._queued.pop(0)
            if isinstance(answer, Exception):
                raise answer
            return answer
        self._next_message_id += 1
        return httpx.Response(
            200, json={"ok": True, "result": {"message_id": self._next_message_id}},
        )

    def transport(self) -> HTTPTransport:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self))
        return HTTPTransport(client=client)

    def methods(self) -> list[str]:
        return [r.url.path.rsplit("/", 1)[-1] for r in self.requests]

    def forms(self) -> list[dict[str, str]]:
        return [
            dict(parse_qsl(r.content.decode(), keep_blank_values=True))
            for r in self.requests
        ]


@pytest.fixture
def bot_api() -> FakeBotAPI:
    return FakeBotAPI()


@pytest.fixture
def config(tmp_path: Path) -> GatewayConfig:
    return GatewayConfig(telegram_api_url=API_URL, db_path=str(tmp_path / "gateway.db"))


@pytest.fixture
def store(config: GatewayConfig) -> Iterator[SQLiteStore]:
    db = SQLiteStore(config.db_path)
    db.add_channel(make_channel())
    yield db
    db.close()


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)


# --- Factory functions for test data ---


def make_channel(**kwargs: Any) -> Channel:
    defaults: dict[str, Any] = {
        "uuid": CHANNEL_UUID,
        "name": "Test Bot",
        "address": "testbot",
        "config": {CONFIG_AUTH_TOKEN: BOT_TOKEN},
    }
    defaults.update(kwargs)
    return Channel(**defaults)


def make_outbound_msg(**kwargs: Any) -> OutboundMessage:
    defaults: dict[str, Any] = {
        "id": 10,
        "channel": make_channel(),
        "urn": ContactURN.telegram(12345),
        "text": "",
        "attachments": (),
        "quick_replies": (),
    }
    defaults.update(kwargs)
    return OutboundMessage(**defaults)


def make_update(update_id: int = 174114370, **message: Any) -> dict[str, Any]:
    """Bot API update with a message; keyword arguments override message fields."""
    body: dict[str, Any] = {
        "message_id": 41,
        "from": {
            "id": 3527065,
            "first_name": "Nic",
            "last_name": "Pottier",
            "username": "nicpottier",
        },
        "chat": {"id": 3527065, "type": "private"},
        "date": 1454119029,
    }
    body.update(message)
    return {"update_id": update_id, "message": body}
