"""Async HTTP client for the chat completion proxy."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from .exceptions import (
    EmptyResponseError,
    GatewayTransportError,
    MalformedResponseError,
    UpstreamError,
)
from .schemas import ChatRequest, extract_completion_text, extract_error_message

LOGGER = logging.getLogger(__name__)


class CompletionGateway:
    """Send one chat request to the proxy and return the reply text.

    One attempt per call; there are no retries.  Cancelling the awaiting
    task aborts the request.
    """

    def __init__(
        self,
        api_url: str,
        *,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_url = api_url
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def complete(self, payload: ChatRequest) -> str:
        """POST ``payload`` and return ``choices[0].message.content``.

        Raises:
            EmptyResponseError: The proxy answered with an empty body.
            MalformedResponseError: The body was not valid JSON.
            UpstreamError: The proxy returned a non-2xx status.
            GatewayTransportError: The proxy could not be reached.
        """
        try:
            response = await self._client.post(self.api_url, json=payload.to_wire())
            raw_body = response.text
        except httpx.HTTPError as exc:
            LOGGER.warning(
                "gateway.transport.error",
                extra={
                    "event": "gateway.transport.error",
                    "url": self.api_url,
                    "error_type": type(exc).__name__,
                },
            )
            raise GatewayTransportError(
                f"Unable to reach the chat server at {self.api_url}."
            ) from exc

        if not raw_body:
            raise EmptyResponseError(
                "Empty response from server. Ensure the proxy server is running."
            )

        try:
            data: Any = json.loads(raw_body)
        except ValueError as exc:
            raise MalformedResponseError(
                "Server returned malformed JSON. Check the proxy server logs for details."
            ) from exc

        if not response.is_success:
            message = extract_error_message(data, "Upstream API request failed.")
            LOGGER.warning(
                "gateway.upstream.error",
                extra={
                    "event": "gateway.upstream.error",
                    "status_code": response.status_code,
                    "error": message,
                },
            )
            raise UpstreamError(message, response.status_code)

        return extract_completion_text(data)
