"""
Health Monitor Package - Endpoint Probing and Alerting.

============================================================
PACKAGE OVERVIEW
============================================================
Periodically probes a fixed set of HTTP endpoints, keeps the
last known status of each one, and sends a webhook alert
whenever an endpoint goes down or comes back up.

============================================================
ARCHITECTURE
============================================================

    CycleScheduler
         |
         v
    HealthCheckOrchestrator ---> HttpProbe (per target, concurrent)
         |
         +--> StatusStore (read previous, replace)
         |
         +--> WebhookNotifier (on DOWN / UP transition)

All components receive an explicit MonitorContext.

============================================================
"""

from .checker import HealthCheckOrchestrator
from .config import MonitorConfig, is_valid_url, load_config
from .context import MonitorContext
from .models import (
    CycleSummary,
    ProbeResult,
    StatusRecord,
    StatusSummary,
    TargetStatus,
    Transition,
)
from .notifier import AlertFormatter, WebhookNotifier
from .probe import HttpProbe
from .scheduler import CycleScheduler, build_trigger
from .status_store import StatusStore


__all__ = [
    "HealthCheckOrchestrator",
    "MonitorConfig",
    "is_valid_url",
    "load_config",
    "MonitorContext",
    "CycleSummary",
    "ProbeResult",
    "StatusRecord",
    "StatusSummary",
    "TargetStatus",
    "Transition",
    "AlertFormatter",
    "WebhookNotifier",
    "HttpProbe",
    "CycleScheduler",
    "build_trigger",
    "StatusStore",
]
