#!/usr/bin/env python3
"""
Toolkit Configuration - Centralized configuration for the Text Toolkit MCP server
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


@dataclass
class ServerConfig:
    """Identity reported by initialize and /health"""
    name: str = "text-toolkit"
    version: str = "1.0.0"
    description: str = "Text Transformation & Formatting MCP Server"


@dataclass
class TransportConfig:
    """Settings for the SSE (streaming HTTP) transport"""
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _env_int("PORT", 8000))

    # Rate Limiting
    rate_limit_requests: int = field(default_factory=lambda: _env_int("RATE_LIMIT_REQUESTS", 100))
    rate_limit_window: int = field(default_factory=lambda: _env_int("RATE_LIMIT_WINDOW", 900))  # 15 minutes

    # Session Management
    max_sessions: int = field(default_factory=lambda: _env_int("MAX_SESSIONS", 1000))


@dataclass
class LoggingConfig:
    """Log level and optional log file"""
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    file: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE") or None)


@dataclass
class ToolkitConfig:
    """Combined configuration for the server process"""
    server: ServerConfig = field(default_factory=ServerConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> List[str]:
        """Validate configuration and return list of issues"""
        issues = []

        if not 0 < self.transport.port < 65536:
            issues.append(f"Port must be between 1 and 65535, got {self.transport.port}")

        if self.transport.rate_limit_requests < 1:
            issues.append("Rate limit should allow at least 1 request per window")

        if self.transport.rate_limit_window < 1:
            issues.append("Rate limit window should be at least 1 second")

        if self.transport.max_sessions < 1:
            issues.append("Max sessions should be at least 1")

        if self.logging.level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            issues.append(f"Unknown log level: {self.logging.level}")

        return issues

    @classmethod
    def load_from_env(cls) -> 'ToolkitConfig':
        """Load configuration from environment variables"""
        config = cls()

        if os.getenv("SERVER_NAME"):
            config.server.name = os.getenv("SERVER_NAME")

        return config


# Global configuration instance
config = ToolkitConfig.load_from_env()
