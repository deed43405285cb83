#!/usr/bin/env python3
"""
Server Monitoring Bot - Main Application Entry Point.

============================================================
SINGLE ENTRYPOINT
============================================================
This is the ONE executable entry point for the monitor.

- Compatible with PM2 / systemd process management
- Stops cleanly on SIGINT / SIGTERM (exit code 0)
- Exits with code 1 on invalid configuration or a fatal fault

============================================================
USAGE
============================================================
Direct execution:
    python app.py

Single cycle (cron jobs, CI smoke checks):
    python app.py --once

With PM2:
    pm2 start app.py --interpreter python --name server-monitor

============================================================
"""

import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.absolute()
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from orchestrator.cli import parse_args, print_banner, resolve_logging
from orchestrator.core import EXIT_FAILURE, LifecycleController, setup_logging


async def run_application(args) -> int:
    """
    Run the monitor.

    Args:
        args: Parsed CLI arguments

    Returns:
        Exit code
    """
    logger = logging.getLogger(__name__)
    controller = LifecycleController()

    try:
        if args.once:
            logger.info("Running single cycle...")
            return await controller.run_once()

        logger.info("Starting monitor (press Ctrl+C to stop)...")
        return await controller.run()

    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return EXIT_FAILURE


def main() -> int:
    """Main entry point."""
    args = parse_args()

    # Values already in the environment win over the dotenv file
    load_dotenv(args.env_file)

    level, log_format = resolve_logging(args)
    setup_logging(level=level, log_format=log_format)

    print_banner(args)

    return asyncio.run(run_application(args))


# ============================================================
# ENTRY POINT
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
