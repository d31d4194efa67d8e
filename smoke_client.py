#!/usr/bin/env python3
"""
Smoke Client - Drive the toolkit server through a FastMCP client

Runs main.py over stdio by default, or connects to a running SSE server
when given its URL:

    python smoke_client.py
    python smoke_client.py http://localhost:8000/sse
"""

import asyncio
import json
import sys
from pathlib import Path

from fastmcp import Client

SAMPLE_CALLS = [
    ("case_to_camel", {"text": "hello world test"}),
    ("case_to_snake", {"text": "HelloWorldTest"}),
    ("encode_base64", {"text": "Hello, World!"}),
    ("format_json", {"text": '{"a":1,"b":[1,2]}', "indent_size": 4}),
    ("analyze_readability", {"text": "The cat sat on the mat. It was happy."}),
    ("generate_uuid", {"version": "v5", "namespace": "6ba7b810-9dad-11d1-80b4-00c04fd430c8", "name": "example"}),
    ("generate_sha256", {"text": "hello"}),
    ("regex_extract", {"text": "a1b22c333", "pattern": "(\\d+)"}),
    ("generate_lorem_ipsum", {"count": 2, "units": "sentences", "seed": 7}),
]


async def main(target: str):
    async with Client(target) as mcp:
        tools = await mcp.list_tools()
        print(f"Available tools ({len(tools)}):")
        for t in tools:
            print(f"- {t.name}: {getattr(t, 'description', '')}")
        print()

        for name, arguments in SAMPLE_CALLS:
            result = await mcp.call_tool(name, arguments)
            payload = json.loads(result.content[0].text)
            print(f"{name}({json.dumps(arguments)})")
            print(f"  -> {json.dumps(payload, ensure_ascii=False)}")
        print("--------------------------------")


if __name__ == "__main__":
    default_target = str(Path(__file__).parent / "main.py")
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else default_target))
