"""FastAPI proxy that forwards chat messages to the Groq completions API."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import logging
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
import uvicorn

from .config import API_KEY_ENV, ProxySettings
from .schemas import ChatRequest, ErrorBody, extract_error_message

LOGGER = logging.getLogger(__name__)


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(ErrorBody.of(message), status_code=status_code)


def create_app(
    settings: ProxySettings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the proxy application.

    ``transport`` replaces the network layer of the upstream client and is
    intended for tests.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if not settings.api_key:
            LOGGER.warning(
                "proxy.api_key.missing",
                extra={
                    "event": "proxy.api_key.missing",
                    "hint": f"Set {API_KEY_ENV} in your environment or .env file.",
                },
            )
        async with httpx.AsyncClient(
            timeout=settings.timeout, transport=transport
        ) as client:
            app.state.upstream = client
            yield

    app = FastAPI(title="Groq Chat Proxy", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/chat")
    async def chat(request: Request) -> JSONResponse:
        declared_length = request.headers.get("content-length", "")
        if declared_length.isdigit() and int(declared_length) > settings.max_body_bytes:
            return _error("Request body too large.", 413)
        raw_body = await request.body()
        if len(raw_body) > settings.max_body_bytes:
            return _error("Request body too large.", 413)

        try:
            body = ChatRequest.model_validate_json(raw_body or b"{}")
        except ValidationError as exc:
            LOGGER.warning(
                "proxy.request.invalid",
                extra={"event": "proxy.request.invalid", "errors": exc.error_count()},
            )
            return _error("Invalid request body.", 400)

        trimmed_message = body.message.strip()
        if not trimmed_message:
            return _error("Message is required.", 400)

        if not settings.api_key:
            return _error("Server is not configured with an API key.", 500)

        if body.file is not None:
            return _error(
                "File attachments are not supported with the Groq chat completions API.",
                400,
            )

        client: httpx.AsyncClient = request.app.state.upstream
        try:
            upstream = await client.post(
                settings.upstream_url,
                headers={"Authorization": f"Bearer {settings.api_key}"},
                json={
                    "model": settings.model,
                    "messages": [{"role": "user", "content": trimmed_message}],
                },
            )
            data: Any = upstream.json()
        except (httpx.HTTPError, ValueError) as exc:
            LOGGER.error(
                "proxy.upstream.unreachable",
                extra={
                    "event": "proxy.upstream.unreachable",
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            return _error("Failed to contact the Groq API.", 500)

        if not upstream.is_success:
            message = extract_error_message(data, "Upstream API request failed.")
            LOGGER.warning(
                "proxy.upstream.error",
                extra={
                    "event": "proxy.upstream.error",
                    "status_code": upstream.status_code,
                    "error": message,
                },
            )
            return _error(message, upstream.status_code)

        LOGGER.info(
            "proxy.upstream.ok",
            extra={"event": "proxy.upstream.ok", "model": settings.model},
        )
        return JSONResponse(data)

    return app


def run_server(settings: ProxySettings) -> None:
    """Serve the proxy with uvicorn until interrupted."""
    app = create_app(settings)
    LOGGER.info(
        "proxy.started",
        extra={
            "event": "proxy.started",
            "url": f"http://{settings.host}:{settings.port}",
            "model": settings.model,
        },
    )
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
