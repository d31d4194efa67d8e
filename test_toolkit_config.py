#!/usr/bin/env python3
"""
Test suite for configuration loading and command line parsing
"""

import io
import os
import unittest
from unittest.mock import patch

from main import parse_args
from toolkit_config import ToolkitConfig


class TestToolkitConfig(unittest.TestCase):
    """Test configuration defaults, environment overrides and validation"""

    def test_config_creation(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = ToolkitConfig()
        self.assertEqual(settings.server.name, "text-toolkit")
        self.assertEqual(settings.server.version, "1.0.0")
        self.assertEqual(settings.transport.port, 8000)
        self.assertEqual(settings.transport.host, "0.0.0.0")
        self.assertEqual(settings.transport.rate_limit_requests, 100)
        self.assertEqual(settings.transport.rate_limit_window, 900)
        self.assertEqual(settings.logging.level, "INFO")
        self.assertIsNone(settings.logging.file)

    def test_config_from_env(self):
        env = {
            "PORT": "9100",
            "HOST": "127.0.0.1",
            "RATE_LIMIT_REQUESTS": "10",
            "MAX_SESSIONS": "5",
            "LOG_LEVEL": "debug",
            "SERVER_NAME": "my-toolkit",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = ToolkitConfig.load_from_env()
        self.assertEqual(settings.transport.port, 9100)
        self.assertEqual(settings.transport.host, "127.0.0.1")
        self.assertEqual(settings.transport.rate_limit_requests, 10)
        self.assertEqual(settings.transport.max_sessions, 5)
        self.assertEqual(settings.logging.level, "DEBUG")
        self.assertEqual(settings.server.name, "my-toolkit")

    def test_config_validation(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = ToolkitConfig()
        self.assertEqual(settings.validate(), [])

        settings.transport.port = 70000
        settings.transport.rate_limit_requests = 0
        settings.logging.level = "LOUD"
        issues = settings.validate()
        self.assertEqual(len(issues), 3)


class TestCommandLine(unittest.TestCase):
    """Test transport selection flags"""

    def setUp(self):
        with patch.dict(os.environ, {}, clear=True):
            self.settings = ToolkitConfig()

    def test_default_is_stdio(self):
        args = parse_args([], self.settings)
        self.assertEqual(args.transport, "stdio")
        self.assertEqual(args.port, 8000)

    def test_sse_flags(self):
        self.assertEqual(parse_args(["--sse"], self.settings).transport, "sse")
        args = parse_args(["--transport=sse", "--port=9001", "--host", "localhost"], self.settings)
        self.assertEqual(args.transport, "sse")
        self.assertEqual(args.port, 9001)
        self.assertEqual(args.host, "localhost")

    def test_log_level(self):
        self.assertEqual(parse_args(["--log-level", "debug"], self.settings).log_level, "DEBUG")

    def test_version(self):
        with patch("sys.stdout", new_callable=io.StringIO) as stdout:
            with self.assertRaises(SystemExit) as ctx:
                parse_args(["--version"], self.settings)
        self.assertEqual(ctx.exception.code, 0)
        self.assertEqual(stdout.getvalue(), "1.0.0\n")


if __name__ == "__main__":
    unittest.main(verbosity=2)
