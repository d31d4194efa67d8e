#!/usr/bin/env python3
"""
Main startup script for the Text Toolkit MCP server
"""

import argparse
import logging
import sys
from typing import List, Optional

from toolkit_config import ToolkitConfig, config
from toolkit_server import ToolkitServer

logger = logging.getLogger(__name__)


def setup_logging(level: str, log_file: Optional[str] = None):
    """Log to stderr (stdout carries the stdio protocol) and optionally a file"""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )


def parse_args(argv: Optional[List[str]] = None, settings: ToolkitConfig = config) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog=settings.server.name,
        description=settings.server.description
    )
    parser.add_argument("-v", "--version", action="version", version=settings.server.version)
    parser.add_argument("--transport", choices=["stdio", "sse"], default="stdio",
                        help="Transport to serve on (default: stdio)")
    parser.add_argument("--sse", dest="transport", action="store_const", const="sse",
                        help="Shorthand for --transport=sse")
    parser.add_argument("--port", type=int, default=settings.transport.port,
                        help="Port for the SSE transport (default: PORT env or 8000)")
    parser.add_argument("--host", default=settings.transport.host,
                        help="Host for the SSE transport (default: HOST env or 0.0.0.0)")
    parser.add_argument("--log-level", default=settings.logging.level,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        type=str.upper, help="Logging level")
    return parser.parse_args(argv)


def show_startup_info(args: argparse.Namespace, server: ToolkitServer):
    """Display startup information"""
    logger.info(f"{server.name} v{server.version}: {config.server.description}")
    logger.info(f"Tools registered: {len(server.catalog)}")
    logger.info(f"Transport: {args.transport}")
    if args.transport == "sse":
        logger.info(f"Listening on {args.host}:{args.port}")
        logger.info(f"Rate limit: {config.transport.rate_limit_requests} requests per "
                    f"{config.transport.rate_limit_window}s")


def main(argv: Optional[List[str]] = None) -> int:
    """Main function"""
    args = parse_args(argv)
    setup_logging(args.log_level, config.logging.file)

    issues = config.validate()
    if issues:
        for issue in issues:
            logger.error(f"Configuration issue: {issue}")
        return 1

    try:
        server = ToolkitServer()
        show_startup_info(args, server)

        if args.transport == "sse":
            from toolkit_sse import run_sse
            run_sse(server, args.host, args.port)
        else:
            from toolkit_stdio import run_stdio
            run_stdio(server)

    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1
    finally:
        logger.info(f"{config.server.name} stopped")

    return 0


def run():
    """Console script entry point"""
    sys.exit(main())


if __name__ == "__main__":
    run()
