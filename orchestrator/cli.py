"""
Orchestrator - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for the endpoint monitor.

- Provides argparse-based CLI
- Continuous (scheduled) or single-cycle mode
- Command-line logging options override LOG_LEVEL / LOG_FORMAT

============================================================
USAGE
============================================================
python app.py
python app.py --once
python app.py --env-file /etc/monitor.env --log-format json

============================================================
"""

import argparse
import os
from typing import List, Optional


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="server-monitoring-bot",
        description="HTTP endpoint uptime monitor with webhook alerts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configuration is read from environment variables, optionally
loaded from a dotenv file (WEBHOOK_URL, SERVER_URLS,
MONITORING_INTERVAL, REQUEST_TIMEOUT, RETRY_ATTEMPTS, ...).

Examples:
  %(prog)s                          # Monitor until SIGINT/SIGTERM
  %(prog)s --once                   # One cycle, exit 1 if any target is down
  %(prog)s --env-file prod.env      # Use a different dotenv file
        """,
    )

    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single health check cycle and exit",
    )

    parser.add_argument(
        "--env-file",
        type=str,
        default=".env",
        help="Path to dotenv file (default: .env)",
    )

    # Logging options
    logging_group = parser.add_argument_group("Logging Options")

    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Logging level (default: LOG_LEVEL or INFO)",
    )

    logging_group.add_argument(
        "--log-format",
        type=str,
        choices=["json", "text"],
        default=None,
        help="Log output format (default: LOG_FORMAT or text)",
    )

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return create_parser().parse_args(argv)


def resolve_logging(args: argparse.Namespace) -> tuple:
    """Logging level and format: CLI first, then environment."""
    level = args.log_level or os.environ.get("LOG_LEVEL", "").strip().upper() or "INFO"
    log_format = args.log_format or os.environ.get("LOG_FORMAT", "").strip().lower() or "text"
    return level, log_format


def print_banner(args: argparse.Namespace) -> None:
    """Print startup banner."""
    print()
    print("=" * 60)
    print("  SERVER MONITORING BOT")
    print("  HTTP Endpoint Uptime Monitor")
    print("=" * 60)
    print(f"  Mode:       {'single cycle' if args.once else 'continuous'}")
    print(f"  Env File:   {args.env_file}")
    print("=" * 60)
    print()
