"""
Arbitrage Hub - Main Entry Point

Runs the HTTP API under uvicorn.

Usage:
    python -m arbitrage_hub.main [--host HOST] [--port PORT] [--log-level LEVEL]

Environment Variables:
    ARBHUB_DATABASE_URL        PostgreSQL connection string
    ARBHUB_API_HOST            Bind address (default: 0.0.0.0)
    ARBHUB_API_PORT            Bind port (default: 8081)
    ARBHUB_CORS_ORIGINS        Allowed CORS origins (JSON list)
    ARBHUB_DEFAULT_PER_PAGE    Default page size for listings (default: 20)
    ARBHUB_MAX_PER_PAGE        Largest accepted page size (default: 500)
    ARBHUB_APPLY_SCHEMA        Create tables on startup (default: true)
    LOG_LEVEL                  Logging level (DEBUG/INFO/WARNING/ERROR)
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

import uvicorn

# Configure logging before imports
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

from arbitrage_hub import __version__  # noqa: E402
from arbitrage_hub.config import settings  # noqa: E402


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Arbitrage Hub API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--host",
        default=settings.api_host,
        help=f"Bind address (default: {settings.api_host})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.api_port,
        help=f"Bind port (default: {settings.api_port})",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level",
    )
    return parser.parse_args()


def main() -> int:
    """Main entry point."""
    args = parse_args()

    if args.log_level:
        logging.getLogger().setLevel(getattr(logging, args.log_level))

    logger.info(f"Starting Arbitrage Hub {__version__} on {args.host}:{args.port}")
    uvicorn.run(
        "arbitrage_hub.api.main:app",
        host=args.host,
        port=args.port,
        log_level=logging.getLevelName(logging.getLogger().level).lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
