"""
Orchestrator Package - Process Coordination Layer.

============================================================
PACKAGE OVERVIEW
============================================================
Controls startup, shutdown, and signal handling for the
endpoint monitor. It holds no probing or alerting logic of
its own; that lives in health_monitor.

============================================================
ARCHITECTURE
============================================================

    +-----------------------------------------------------+
    |                LifecycleController                  |
    |-----------------------------------------------------|
    |  StateManager   |  INITIALIZING -> ... -> STOPPED   |
    |  CycleScheduler |  Startup cycle + cron recurrence  |
    |  CLI            |  Command-line interface           |
    +-----------------------------------------------------+

============================================================
"""

from .cli import create_parser, parse_args, print_banner, resolve_logging
from .core import (
    EXIT_FAILURE,
    EXIT_OK,
    LifecycleController,
    mask_webhook_url,
    setup_logging,
)


__all__ = [
    "create_parser",
    "parse_args",
    "print_banner",
    "resolve_logging",
    "EXIT_FAILURE",
    "EXIT_OK",
    "LifecycleController",
    "mask_webhook_url",
    "setup_logging",
]
