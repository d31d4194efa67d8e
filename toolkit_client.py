#!/usr/bin/env python3
"""
Toolkit Client - aiohttp client for the streaming HTTP transport

Opens the /sse stream, learns the session's message endpoint from the first
event and matches message events back to the requests that caused them.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import aiohttp

logger = logging.getLogger(__name__)


class ToolkitClientError(Exception):
    """A transport failure or a JSON-RPC error returned by the server"""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class SSEToolkitClient:
    """
    Client for a toolkit server running the SSE transport.

    Usage:
        async with SSEToolkitClient("http://localhost:8000") as client:
            tools = await client.list_tools()
            result = await client.call_tool("case_to_snake", {"text": "Hello World"})
    """

    def __init__(self, base_url: str, timeout: float = 30.0):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None
        self.session_id: Optional[str] = None
        self.endpoint: Optional[str] = None
        self._stream: Optional[aiohttp.ClientResponse] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._endpoint_ready: Optional[asyncio.Future] = None
        self._pending: Dict[Any, asyncio.Future] = {}
        self._request_id = 0

    async def __aenter__(self) -> 'SSEToolkitClient':
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ----------------- Connection -----------------

    async def connect(self):
        """Open the event stream and wait for the endpoint event"""
        if self._stream is not None:
            return

        if not self.session:
            self.session = aiohttp.ClientSession()

        try:
            self._stream = await self.session.get(
                f"{self.base_url}/sse",
                headers={"Accept": "text/event-stream", "Cache-Control": "no-cache"},
                timeout=aiohttp.ClientTimeout(total=None, sock_connect=self.timeout),
            )
        except aiohttp.ClientError as e:
            raise ToolkitClientError(f"HTTP transport error: {e}")

        if self._stream.status != 200:
            status = self._stream.status
            text = await self._stream.text()
            self._stream.release()
            self._stream = None
            raise ToolkitClientError(f"Could not open event stream: HTTP {status} {text.strip()}")

        self.session_id = self._stream.headers.get("X-Session-ID")
        self._endpoint_ready = asyncio.get_running_loop().create_future()
        self._reader_task = asyncio.create_task(self._read_events())

        self.endpoint = await asyncio.wait_for(self._endpoint_ready, self.timeout)
        logger.info(f"Connected to {self.base_url} with session {self.session_id}")

    async def close(self):
        """Close the event stream and HTTP session"""
        if self._reader_task:
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass
            self._reader_task = None

        if self._stream is not None:
            self._stream.close()
            self._stream = None

        if self.session:
            await self.session.close()
            self.session = None

    # ----------------- Event stream -----------------

    async def _read_events(self):
        event: Optional[str] = None
        data_lines: List[str] = []

        try:
            async for raw in self._stream.content:
                line = raw.decode("utf-8").rstrip("\r\n")

                if not line:
                    if data_lines:
                        self._handle_event(event or "message", "\n".join(data_lines))
                    event, data_lines = None, []
                    continue

                if line.startswith(":"):
                    continue

                name, _, value = line.partition(":")
                if value.startswith(" "):
                    value = value[1:]

                if name == "event":
                    event = value
                elif name == "data":
                    data_lines.append(value)
        except aiohttp.ClientError as e:
            logger.info(f"Event stream for session {self.session_id} ended: {e}")
        finally:
            self._fail_pending(ToolkitClientError("Event stream closed"))

    def _handle_event(self, event: str, data: str):
        if event == "endpoint":
            if self._endpoint_ready and not self._endpoint_ready.done():
                self._endpoint_ready.set_result(urljoin(self.base_url + "/", data))
            return

        if event != "message":
            logger.debug(f"Ignoring {event} event")
            return

        try:
            message = json.loads(data)
        except json.JSONDecodeError:
            logger.warning(f"Discarding malformed message event: {data[:200]}")
            return

        future = self._pending.pop(message.get("id"), None)
        if future is not None and not future.done():
            future.set_result(message)

    def _fail_pending(self, error: ToolkitClientError):
        if self._endpoint_ready and not self._endpoint_ready.done():
            self._endpoint_ready.set_exception(error)
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)
        self._pending.clear()

    # ----------------- Requests -----------------

    def _next_request_id(self) -> int:
        """Generate next request ID"""
        self._request_id += 1
        return self._request_id

    async def _post(self, message: Dict[str, Any]):
        if not self.endpoint:
            await self.connect()

        try:
            async with self.session.post(
                self.endpoint,
                json=message,
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                if not 200 <= response.status < 300:
                    text = await response.text()
                    raise ToolkitClientError(f"HTTP {response.status}: {text}")
        except aiohttp.ClientError as e:
            raise ToolkitClientError(f"HTTP transport error: {e}")

    async def send_request(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Send a JSON-RPC request and wait for its response on the stream.

        Raises:
            ToolkitClientError: if the server answers with an error object
        """
        request_id = self._next_request_id()
        request = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            request["params"] = params

        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        try:
            await self._post(request)
            message = await asyncio.wait_for(future, self.timeout)
        finally:
            self._pending.pop(request_id, None)

        if "error" in message:
            error = message["error"]
            raise ToolkitClientError(error.get("message", "Unknown error"), error.get("code"))

        return message.get("result")

    async def notify(self, method: str, params: Optional[Dict[str, Any]] = None):
        """Send a notification; the server does not answer these"""
        notification = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            notification["params"] = params
        await self._post(notification)

    async def initialize(self, protocol_version: str = "2024-11-05") -> Dict[str, Any]:
        result = await self.send_request("initialize", {
            "protocolVersion": protocol_version,
            "capabilities": {},
            "clientInfo": {"name": "text-toolkit-client", "version": "1.0.0"},
        })
        await self.notify("notifications/initialized")
        return result

    async def list_tools(self) -> List[Dict[str, Any]]:
        """List available tools from the server"""
        result = await self.send_request("tools/list")
        return result.get("tools", []) if result else []

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Call a tool and decode the payload carried in its text content"""
        result = await self.send_request("tools/call", {"name": name, "arguments": arguments or {}})
        return json.loads(result["content"][0]["text"])

    async def health(self) -> Dict[str, Any]:
        if not self.session:
            self.session = aiohttp.ClientSession()

        try:
            async with self.session.get(
                f"{self.base_url}/health",
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                return await response.json()
        except aiohttp.ClientError as e:
            raise ToolkitClientError(f"HTTP transport error: {e}")
