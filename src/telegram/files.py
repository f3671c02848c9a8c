"""File resolver: turns opaque Bot API file ids into fetchable URLs."""

from __future__ import annotations

import logging

from src.errors import ProviderError, TransportError
from src.gateway.transport import HTTPTrace, HTTPTransport
from src.models import Channel, ChannelLog
from src.telegram.api import GET_FILE, auth_token, file_url, method_url, parse_response

logger = logging.getLogger(__name__)


class FileResolver:
    """Resolves file ids with one ``getFile`` round-trip per call.

    No caching and no retries; transport and provider errors propagate.
    When ``logs`` is given, the round-trip is appended to it as a
    ``ChannelLog`` whether or not it succeeded.
    """

    def __init__(self, api_url: str, transport: HTTPTransport) -> None:
        self._api_url = api_url
        self._transport = transport

    async def resolve_file_id(
        self, channel: Channel, file_id: str, logs: list[ChannelLog] | None = None,
    ) -> str:
        token = auth_token(channel)
        trace: HTTPTrace | None = None
        try:
            trace = await self._transport.post_form(
                method_url(self._api_url, token, GET_FILE), {"file_id": file_id},
            )
            url = self._file_url(token, file_id, trace)
        except (TransportError, ProviderError) as exc:
            if isinstance(exc, TransportError):
                trace = exc.trace
            if logs is not None:
                logs.append(ChannelLog.from_trace(
                    "File Resolve Error", channel.uuid, None, trace, exc, secrets=(token,),
                ))
            raise

        if logs is not None:
            logs.append(ChannelLog.from_trace(
                "File Resolved", channel.uuid, None, trace, secrets=(token,),
            ))
        logger.debug("Resolved file id %s on channel %s", file_id, channel.uuid)
        return url

    def _file_url(self, token: str, file_id: str, trace: HTTPTrace) -> str:
        ok, result = parse_response(trace.response_body)
        if not ok:
            raise ProviderError(f"file id '{file_id}' not present", trace.response_body)

        file_path = result.get("file_path")
        if not isinstance(file_path, str) or not file_path:
            raise ProviderError("no 'result.file_path' in response", trace.response_body)
        return file_url(self._api_url, token, file_path)
