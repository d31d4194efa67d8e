#!/usr/bin/env python3
"""
Toolkit SSE Transport - Streaming HTTP front end for the dispatch server

Built on the SDK's SseServerTransport. Clients open GET /sse, receive an
endpoint event naming their message URL, POST JSON-RPC messages to it and
read the responses back off the stream. Around the SDK transport this module
keeps the session table (X-Session-ID on the stream, sessionId on the message
URL, 400/404 for missing or unknown ids, the session cap), rate limiting,
CORS and /health.
"""

import asyncio
import json
import logging
import re
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlencode

import uvicorn
from mcp.server.sse import SseServerTransport
from sse_starlette import EventSourceResponse
from starlette.applications import Starlette
from starlette.datastructures import MutableHeaders
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route
from starlette.types import Message, Receive, Scope, Send

from toolkit_config import ToolkitConfig, config as default_config
from toolkit_security import RateLimiter, RateLimitMiddleware
from toolkit_server import ToolkitServer
from toolkit_session_manager import SessionManager, SSESession

logger = logging.getLogger(__name__)

MESSAGES_PATH = "/messages"
SSE_TEST_INTERVAL = 2.0

# Endpoint URL as the SDK announces it: /messages?session_id=<uuid hex>
SDK_SESSION_PARAM = re.compile(rb"\?session_id=([0-9a-f]{32})")


class SessionStream:
    """
    ASGI send wrapper for one /sse response.

    Holds the response start back until the SDK's endpoint event names the
    session, then registers the session, adds the X-Session-ID header and
    rewrites the announced URL to /messages?sessionId=<id>.
    """

    def __init__(self, send: Send, sessions: SessionManager, remote: Optional[str] = None):
        self._send = send
        self._start: Optional[Message] = None
        self.sessions = sessions
        self.remote = remote
        self.session: Optional[SSESession] = None

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self._start = message
            return

        if message["type"] == "http.response.body":
            body = message.get("body", b"")

            if self._start is not None:
                match = SDK_SESSION_PARAM.search(body)
                if match:
                    session_id = match.group(1).decode("ascii")
                    self.session = self.sessions.create_session(session_id, remote=self.remote)
                    MutableHeaders(scope=self._start)["X-Session-ID"] = session_id
                    message = {**message, "body": body.replace(match.group(0), b"?sessionId=" + match.group(1))}

                start, self._start = self._start, None
                await self._send(start)

            elif self.session is not None and body.startswith(b"event: message"):
                self.session.messages_sent += 1

        await self._send(message)

    def close(self) -> None:
        if self.session is not None:
            self.sessions.remove_session(self.session.session_id)
            self.session = None


class SessionMessageEndpoint:
    """ASGI app for POST /messages: resolves sessionId, then hands the body to the SDK transport"""

    def __init__(self, transport: SseServerTransport, sessions: SessionManager):
        self.transport = transport
        self.sessions = sessions

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        session_id = request.query_params.get("sessionId")

        if not session_id:
            response = PlainTextResponse("Missing sessionId parameter", status_code=400)
            await response(scope, receive, send)
            return

        session = self.sessions.get_session(session_id)
        if session is None:
            response = PlainTextResponse(f"No session found with ID {session_id}", status_code=404)
            await response(scope, receive, send)
            return

        session.update_activity()
        scope = {**scope, "query_string": urlencode({"session_id": session_id}).encode("ascii")}
        await self.transport.handle_post_message(scope, receive, send)


class ToolkitSSEServer:
    """
    HTTP server that exposes the dispatch server over SSE.

    Example:
        sse = ToolkitSSEServer(ToolkitServer())
        sse.run("127.0.0.1", 8000)  # Blocks, serving HTTP/SSE
    """

    def __init__(self, server: ToolkitServer, settings: Optional[ToolkitConfig] = None):
        self.server = server
        self.settings = settings or default_config

        transport = self.settings.transport
        self.sessions = SessionManager(max_sessions=transport.max_sessions)
        self.rate_limiter = RateLimiter(transport.rate_limit_requests, transport.rate_limit_window)
        self.sse_transport = SseServerTransport(MESSAGES_PATH)

        self.app = self._create_app()

    def _create_app(self) -> Starlette:
        routes = [
            Route("/health", endpoint=self._health, methods=["GET"]),
            Route("/sse", endpoint=self._handle_sse, methods=["GET"]),
            Route(MESSAGES_PATH, endpoint=SessionMessageEndpoint(self.sse_transport, self.sessions),
                  methods=["POST"]),
            Route("/sse-test", endpoint=self._sse_test, methods=["GET"]),
        ]

        middleware = [
            Middleware(CORSMiddleware,
                       allow_origins=["*"],
                       allow_methods=["GET", "POST", "OPTIONS"],
                       allow_headers=["Content-Type"],
                       expose_headers=["X-Session-ID", "RateLimit-Limit", "RateLimit-Remaining", "RateLimit-Reset"],
                       max_age=86400),
            Middleware(RateLimitMiddleware, limiter=self.rate_limiter),
        ]

        return Starlette(routes=routes, middleware=middleware, lifespan=self._lifespan)

    @asynccontextmanager
    async def _lifespan(self, app: Starlette):
        purge_task = asyncio.create_task(self._purge_rate_limits())
        try:
            yield
        finally:
            purge_task.cancel()
            try:
                await purge_task
            except asyncio.CancelledError:
                pass

            closed = self.sessions.close_all()
            if closed:
                logger.info(f"Closed {closed} open sessions on shutdown")

    async def _purge_rate_limits(self):
        while True:
            await asyncio.sleep(self.rate_limiter.window_seconds)
            purged = self.rate_limiter.purge_expired()
            if purged:
                logger.debug(f"Purged {purged} expired rate limit windows")

    # ----------------- Handlers -----------------

    async def _health(self, request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "name": self.server.name, "version": self.server.version})

    async def _handle_sse(self, request: Request) -> Response:
        """Open a session and run the dispatch server on it until the client goes away"""
        remote = request.client.host if request.client else None

        if self.sessions.is_full:
            logger.warning(f"Rejecting stream from {remote}: session limit of {self.sessions.max_sessions} reached")
            return PlainTextResponse("Too many open sessions", status_code=503)

        stream = SessionStream(request._send, self.sessions, remote=remote)
        try:
            async with self.sse_transport.connect_sse(request.scope, request.receive, stream) as streams:
                read_stream, write_stream = streams
                await self.server.run(read_stream, write_stream)
        finally:
            stream.close()

        # The stream is already finished; this only satisfies the route wrapper
        return Response()

    async def _sse_test(self, request: Request) -> EventSourceResponse:
        """Diagnostic stream: a timestamp event every couple of seconds"""

        async def timestamps():
            while True:
                timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
                yield {"data": json.dumps({"timestamp": timestamp})}
                await asyncio.sleep(SSE_TEST_INTERVAL)

        return EventSourceResponse(timestamps())

    def run(self, host: str, port: int) -> None:
        """Serve until interrupted"""
        logger.info(f"{self.server.name} v{self.server.version} listening on http://{host}:{port}/sse")
        uvicorn.run(self.app, host=host, port=port, log_level=self.settings.logging.level.lower())


def run_sse(server: ToolkitServer, host: str, port: int, settings: Optional[ToolkitConfig] = None) -> None:
    """Serve the streaming transport until interrupted"""
    ToolkitSSEServer(server, settings).run(host, port)
