"""Shared HTTP transport used for file lookups and send calls."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import httpx

from src.errors import TransportError

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class HTTPTrace:
    """Summary of one request/response exchange."""

    method: str
    url: str
    status_code: int
    request_body: str
    response_body: str
    elapsed_ms: int


class HTTPTransport:
    """Sends requests through httpx and records what went over the wire.

    Responses with a status of 400 or above are raised as ``TransportError``
    with the trace attached, as are connection failures and timeouts.
    """

    def __init__(
        self,
        timeout: float = _DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = timeout
        self._client = client

    async def make_http_request(self, request: httpx.Request) -> HTTPTrace:
        request_body = request.content.decode(errors="replace")
        started = time.monotonic()
        try:
            if self._client is not None:
                resp = await self._client.send(request)
            else:
                async with httpx.AsyncClient(verify=True, timeout=self._timeout) as client:
                    resp = await client.send(request)
        except httpx.HTTPError as exc:
            trace = HTTPTrace(
                method=request.method,
                url=str(request.url),
                status_code=0,
                request_body=request_body,
                response_body="",
                elapsed_ms=_elapsed_ms(started),
            )
            raise TransportError(f"request failed: {exc.__class__.__name__}", trace) from exc

        trace = HTTPTrace(
            method=request.method,
            url=str(request.url),
            status_code=resp.status_code,
            request_body=request_body,
            response_body=resp.text,
            elapsed_ms=_elapsed_ms(started),
        )
        if resp.status_code >= 400:
            raise TransportError(f"received non 200 status: {resp.status_code}", trace)
        return trace

    async def post_form(self, url: str, form: dict[str, str]) -> HTTPTrace:
        """POST a form-encoded body to ``url``."""
        request = httpx.Request(
            "POST",
            url,
            data=form,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        return await self.make_http_request(request)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
