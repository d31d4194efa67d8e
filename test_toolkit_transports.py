#!/usr/bin/env python3
"""
Test suite for the stdio and SSE transports, sessions and rate limiting
"""

import asyncio
import json
import unittest

import aiohttp
import anyio
import uvicorn
from mcp.types import METHOD_NOT_FOUND

from toolkit_client import SSEToolkitClient, ToolkitClientError
from toolkit_config import ToolkitConfig
from toolkit_registry import build_catalog
from toolkit_security import RateLimiter
from toolkit_server import ToolkitServer
from toolkit_session_manager import SessionManager
from toolkit_sse import ToolkitSSEServer
from toolkit_stdio import serve_stdio

CATALOG = build_catalog()

INITIALIZE = {
    "jsonrpc": "2.0", "id": "init", "method": "initialize",
    "params": {
        "protocolVersion": "2024-11-05",
        "capabilities": {},
        "clientInfo": {"name": "test-client", "version": "1.0.0"},
    },
}
INITIALIZED = {"jsonrpc": "2.0", "method": "notifications/initialized"}


def make_settings(**transport) -> ToolkitConfig:
    settings = ToolkitConfig()
    for key, value in transport.items():
        setattr(settings.transport, key, value)
    return settings


def tool_call(request_id, name, arguments=None):
    params = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    return {"jsonrpc": "2.0", "id": request_id, "method": "tools/call", "params": params}


async def read_event(response, timeout=5.0):
    """Read one server-sent event, skipping keep-alive comments"""
    event, data = None, []
    while True:
        raw = await asyncio.wait_for(response.content.readline(), timeout)
        if not raw:
            return None
        line = raw.decode("utf-8").rstrip("\r\n")
        if line.startswith(":"):
            continue
        if not line:
            if data:
                return event, "\n".join(data)
            continue
        name, _, value = line.partition(": ")
        if name == "event":
            event = value
        elif name == "data":
            data.append(value)


# ----------------- Stdio -----------------

class ScriptedStdin:
    """Yields the given lines, then stays open until the expected replies are written"""

    def __init__(self, lines, done: anyio.Event):
        self.lines = lines
        self.done = done

    def __aiter__(self):
        return self._read()

    async def _read(self):
        for line in self.lines:
            yield line + "\n"
        await self.done.wait()


class CapturedStdout:
    """Collects written messages and signals once enough responses arrived"""

    def __init__(self, expected: int, done: anyio.Event):
        self.expected = expected
        self.done = done
        self.messages = []

    @property
    def responses(self):
        return [message for message in self.messages if "id" in message]

    async def write(self, data):
        self.messages.append(json.loads(data))
        if len(self.responses) >= self.expected:
            self.done.set()

    async def flush(self):
        pass


class TestStdioTransport(unittest.IsolatedAsyncioTestCase):
    """Test the stdio binding: one session over line-delimited JSON-RPC"""

    def setUp(self):
        self.server = ToolkitServer(CATALOG, name="text-toolkit", version="1.0.0")

    async def run_lines(self, *messages, expected):
        done = anyio.Event()
        lines = [m if isinstance(m, str) else json.dumps(m) for m in messages]
        stdout = CapturedStdout(expected, done)

        with anyio.fail_after(10):
            await serve_stdio(self.server, ScriptedStdin(lines, done), stdout)

        return {response["id"]: response for response in stdout.responses}

    async def test_initialize_and_call(self):
        responses = await self.run_lines(
            INITIALIZE, INITIALIZED, tool_call(1, "case_to_snake", {"text": "HelloWorld"}), expected=2)

        result = responses["init"]["result"]
        self.assertEqual(result["protocolVersion"], "2024-11-05")
        self.assertEqual(result["serverInfo"]["name"], "text-toolkit")
        self.assertEqual(result["serverInfo"]["version"], "1.0.0")
        self.assertIn("tools", result["capabilities"])

        content = responses[1]["result"]["content"]
        self.assertEqual(json.loads(content[0]["text"]), {"result": "hello_world"})

    async def test_tool_error_is_error_object(self):
        responses = await self.run_lines(INITIALIZE, INITIALIZED, tool_call(2, "nope", {}), expected=2)
        self.assertEqual(responses[2]["error"]["code"], METHOD_NOT_FOUND)
        self.assertEqual(responses[2]["error"]["message"], "Unknown tool: nope")
        self.assertNotIn("result", responses[2])

    async def test_ping_before_initialize(self):
        responses = await self.run_lines({"jsonrpc": "2.0", "id": 1, "method": "ping"}, expected=1)
        self.assertEqual(responses[1]["result"], {})

    async def test_every_request_answered(self):
        pings = [{"jsonrpc": "2.0", "id": i, "method": "ping"} for i in range(5)]
        responses = await self.run_lines(*pings, expected=5)
        self.assertEqual(sorted(responses), list(range(5)))

    async def test_malformed_line_does_not_stop_loop(self):
        responses = await self.run_lines("{oops", {"jsonrpc": "2.0", "id": 3, "method": "ping"}, expected=1)
        self.assertEqual(list(responses), [3])
        self.assertEqual(responses[3]["result"], {})


# ----------------- Rate limiting and session table -----------------

class TestRateLimiter(unittest.TestCase):
    """Test the windowed rate limiter"""

    def setUp(self):
        self.now = 1000.0
        self.limiter = RateLimiter(max_requests=3, window_seconds=60, clock=lambda: self.now)

    def test_budget_and_reset(self):
        decisions = [self.limiter.check("10.0.0.1") for _ in range(4)]
        self.assertEqual([d.allowed for d in decisions], [True, True, True, False])
        self.assertEqual([d.remaining for d in decisions], [2, 1, 0, 0])
        self.assertEqual(decisions[0].reset_in, 60)

        self.now += 61
        self.assertTrue(self.limiter.check("10.0.0.1").allowed)

    def test_addresses_are_independent(self):
        for _ in range(3):
            self.limiter.check("10.0.0.1")
        self.assertFalse(self.limiter.check("10.0.0.1").allowed)
        self.assertTrue(self.limiter.check("10.0.0.2").allowed)

    def test_purge_expired(self):
        self.limiter.check("10.0.0.1")
        self.now += 30
        self.limiter.check("10.0.0.2")
        self.now += 31
        self.assertEqual(self.limiter.purge_expired(), 1)


class TestSessionManager(unittest.TestCase):
    """Test the session table"""

    def setUp(self):
        self.manager = SessionManager(max_sessions=2)

    def test_create_and_remove(self):
        session = self.manager.create_session("abc123", remote="127.0.0.1")
        self.assertIs(self.manager.get_session("abc123"), session)
        self.assertEqual(session.endpoint, "/messages?sessionId=abc123")

        self.assertTrue(self.manager.remove_session("abc123"))
        self.assertIsNone(self.manager.get_session("abc123"))
        self.assertFalse(self.manager.remove_session("abc123"))

    def test_duplicate_id_rejected(self):
        self.manager.create_session("abc123")
        with self.assertRaises(ValueError):
            self.manager.create_session("abc123")

    def test_is_full(self):
        self.manager.create_session("one")
        self.assertFalse(self.manager.is_full)
        self.manager.create_session("two")
        self.assertTrue(self.manager.is_full)

    def test_close_all(self):
        self.manager.create_session("one")
        self.manager.create_session("two")
        self.assertEqual(self.manager.close_all(), 2)
        self.assertEqual(len(self.manager), 0)
        self.assertNotIn("one", self.manager)


# ----------------- SSE -----------------

class LiveSSETestCase(unittest.IsolatedAsyncioTestCase):
    """Runs the SSE application under uvicorn on a free local port"""

    transport_settings = {}

    async def asyncSetUp(self):
        server = ToolkitServer(CATALOG, name="text-toolkit", version="1.0.0")
        self.sse = ToolkitSSEServer(server, make_settings(**self.transport_settings))

        config = uvicorn.Config(self.sse.app, host="127.0.0.1", port=0, log_config=None,
                                log_level="warning", timeout_graceful_shutdown=1)
        self.uvicorn = uvicorn.Server(config)
        self.serve_task = asyncio.create_task(self.uvicorn.serve())

        for _ in range(500):
            if self.uvicorn.started:
                break
            await asyncio.sleep(0.01)
        self.assertTrue(self.uvicorn.started, "uvicorn did not start")

        port = self.uvicorn.servers[0].sockets[0].getsockname()[1]
        self.base_url = f"http://127.0.0.1:{port}"
        self.http = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=None, sock_read=10))

    async def asyncTearDown(self):
        await self.http.close()
        self.uvicorn.should_exit = True
        await asyncio.wait_for(self.serve_task, 10)

    async def open_stream(self):
        response = await self.http.get(f"{self.base_url}/sse")
        self.assertEqual(response.status, 200)
        session_id = response.headers["X-Session-ID"]
        event = await read_event(response)
        self.assertEqual(event, ("endpoint", f"/messages?sessionId={session_id}"))
        return response, session_id

    async def post(self, session_id, message):
        url = f"{self.base_url}/messages?sessionId={session_id}"
        async with self.http.post(url, json=message) as response:
            return response.status, await response.text()

    async def initialize(self, stream, session_id):
        status, _ = await self.post(session_id, INITIALIZE)
        self.assertEqual(status, 202)
        _, data = await read_event(stream)
        self.assertEqual(json.loads(data)["id"], "init")
        await self.post(session_id, INITIALIZED)

    async def wait_for_eviction(self, session_id):
        for _ in range(100):
            if session_id not in self.sse.sessions:
                return
            await asyncio.sleep(0.05)
        self.fail(f"Session {session_id} still open")


class TestSSETransport(LiveSSETestCase):
    """Test the streaming HTTP application"""

    async def test_health(self):
        async with self.http.get(f"{self.base_url}/health", headers={"Origin": "http://example.com"}) as response:
            self.assertEqual(response.status, 200)
            self.assertEqual(await response.json(), {"status": "ok", "name": "text-toolkit", "version": "1.0.0"})
            self.assertEqual(response.headers["Access-Control-Allow-Origin"], "*")
            self.assertEqual(response.headers["RateLimit-Limit"], "100")
            self.assertIn("RateLimit-Remaining", response.headers)
            self.assertIn("RateLimit-Reset", response.headers)

    async def test_stream_headers(self):
        stream, session_id = await self.open_stream()
        self.assertTrue(stream.headers["Content-Type"].startswith("text/event-stream"))
        self.assertIn("RateLimit-Remaining", stream.headers)
        self.assertIn(session_id, self.sse.sessions)
        stream.close()

    async def test_session_ids_are_unique(self):
        first, first_id = await self.open_stream()
        second, second_id = await self.open_stream()
        self.assertNotEqual(first_id, second_id)
        first.close()
        second.close()

    async def test_message_round_trip(self):
        stream, session_id = await self.open_stream()
        await self.initialize(stream, session_id)

        status, text = await self.post(session_id, tool_call(42, "case_to_kebab", {"text": "Hello World"}))
        self.assertEqual(status, 202)
        self.assertEqual(text, "Accepted")

        event, data = await read_event(stream)
        self.assertEqual(event, "message")
        message = json.loads(data)
        self.assertEqual(message["id"], 42)
        self.assertEqual(json.loads(message["result"]["content"][0]["text"]), {"result": "hello-world"})
        self.assertEqual(self.sse.sessions.get_session(session_id).messages_sent, 2)
        stream.close()

    async def test_error_response_on_stream(self):
        stream, session_id = await self.open_stream()
        await self.initialize(stream, session_id)

        await self.post(session_id, tool_call(5, "nope"))
        _, data = await read_event(stream)
        message = json.loads(data)
        self.assertEqual(message["id"], 5)
        self.assertEqual(message["error"]["code"], METHOD_NOT_FOUND)
        stream.close()

    async def test_missing_session_id(self):
        async with self.http.post(f"{self.base_url}/messages",
                                  json={"jsonrpc": "2.0", "id": 1, "method": "ping"}) as response:
            self.assertEqual(response.status, 400)
            self.assertEqual(await response.text(), "Missing sessionId parameter")

    async def test_unknown_session(self):
        status, text = await self.post("abc", {"jsonrpc": "2.0", "id": 1, "method": "ping"})
        self.assertEqual(status, 404)
        self.assertEqual(text, "No session found with ID abc")

    async def test_invalid_message_body(self):
        stream, session_id = await self.open_stream()
        async with self.http.post(f"{self.base_url}/messages?sessionId={session_id}", data="not json",
                                  headers={"Content-Type": "application/json"}) as response:
            self.assertEqual(response.status, 400)
        stream.close()

    async def test_disconnect_evicts_session(self):
        stream, session_id = await self.open_stream()
        stream.close()
        await self.wait_for_eviction(session_id)

        status, _ = await self.post(session_id, {"jsonrpc": "2.0", "id": 1, "method": "ping"})
        self.assertEqual(status, 404)

    async def test_preflight(self):
        headers = {"Origin": "http://example.com", "Access-Control-Request-Method": "POST"}
        async with self.http.options(f"{self.base_url}/messages", headers=headers) as response:
            self.assertEqual(response.status, 200)
            self.assertEqual(response.headers["Access-Control-Allow-Origin"], "*")
            self.assertIn("POST", response.headers["Access-Control-Allow-Methods"])

    async def test_sse_test_stream(self):
        response = await self.http.get(f"{self.base_url}/sse-test")
        event, data = await read_event(response)
        self.assertIsNone(event)
        self.assertIn("timestamp", json.loads(data))
        response.close()

    async def test_client(self):
        async with SSEToolkitClient(self.base_url, timeout=5) as client:
            self.assertIsNotNone(client.session_id)

            initialized = await client.initialize()
            self.assertEqual(initialized["serverInfo"]["name"], "text-toolkit")

            tools = await client.list_tools()
            self.assertEqual(len(tools), 43)

            result = await client.call_tool("case_to_snake", {"text": "Hello World"})
            self.assertEqual(result, {"result": "hello_world"})

            with self.assertRaises(ToolkitClientError) as ctx:
                await client.call_tool("nope", {})
            self.assertEqual(ctx.exception.code, METHOD_NOT_FOUND)

            self.assertEqual((await client.health())["status"], "ok")

        await self.wait_for_eviction(client.session_id)


class TestSSELimits(LiveSSETestCase):
    """Test rate limiting and the session cap"""

    transport_settings = {"rate_limit_requests": 3, "max_sessions": 1}

    async def test_rate_limit(self):
        for remaining in (2, 1, 0):
            async with self.http.get(f"{self.base_url}/health") as response:
                self.assertEqual(response.status, 200)
                self.assertEqual(response.headers["RateLimit-Remaining"], str(remaining))

        async with self.http.get(f"{self.base_url}/health") as response:
            self.assertEqual(response.status, 429)
            self.assertEqual(await response.text(), "Too many requests from this IP, please try again later")
            self.assertEqual(response.headers["RateLimit-Limit"], "3")
            self.assertEqual(response.headers["RateLimit-Remaining"], "0")

    async def test_session_cap(self):
        stream, _ = await self.open_stream()

        async with self.http.get(f"{self.base_url}/sse") as second:
            self.assertEqual(second.status, 503)
            self.assertEqual(await second.text(), "Too many open sessions")
        stream.close()


if __name__ == "__main__":
    unittest.main(verbosity=2)
