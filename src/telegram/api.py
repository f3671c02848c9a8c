"""Bot API endpoint helpers and response parsing."""

from __future__ import annotations

import json
from typing import Any

from src.errors import AuthError, ProviderError
from src.models import CONFIG_AUTH_TOKEN, Channel

DEFAULT_API_URL = "https://api.telegram.org"

SEND_MESSAGE = "sendMessage"
SEND_PHOTO = "sendPhoto"
SEND_VIDEO = "sendVideo"
SEND_AUDIO = "sendAudio"
GET_FILE = "getFile"


def auth_token(channel: Channel) -> str:
    """Return the channel's bot token, raising ``AuthError`` if unusable."""
    token = channel.config_for_key(CONFIG_AUTH_TOKEN, "")
    if not isinstance(token, str) or not token:
        raise AuthError("invalid auth token config")
    return token


def method_url(api_url: str, token: str, method: str) -> str:
    return f"{api_url.rstrip('/')}/bot{token}/{method}"


def file_url(api_url: str, token: str, file_path: str) -> str:
    return f"{api_url.rstrip('/')}/file/bot{token}/{file_path}"


def parse_response(body: str) -> tuple[bool, dict[str, Any]]:
    """Return the ``ok`` flag and ``result`` object of a Bot API response.

    Raises ``ProviderError`` if the body is not JSON or carries no boolean ``ok``.
    """
    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ProviderError("response not JSON", body) from exc
    if not isinstance(data, dict) or not isinstance(data.get("ok"), bool):
        raise ProviderError("no 'ok' in response", body)
    result = data.get("result")
    return data["ok"], result if isinstance(result, dict) else {}
