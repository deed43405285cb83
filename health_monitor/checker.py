"""
Health Monitor - Health Check Orchestrator.

============================================================
RESPONSIBILITY
============================================================

Runs one health-check cycle:

1. Probe every target concurrently and wait for all of them
2. Classify each result against the success allow-set
3. Replace the target's StatusRecord, detect the transition
4. Send exactly one alert per DOWN or UP transition
5. Log the aggregate summary

============================================================
ISOLATION
============================================================

A failing target never aborts the others. Unexpected errors
inside a target check are collected once every target has
finished and re-raised together as a FatalFault.

============================================================
"""

import asyncio
import logging
from typing import List, Optional, Tuple

from core.exceptions import FatalFault

from .context import MonitorContext
from .models import CycleSummary, ProbeResult, StatusRecord, Transition
from .notifier import WebhookNotifier
from .probe import HttpProbe


logger = logging.getLogger(__name__)


TargetOutcome = Tuple[bool, Transition]


class HealthCheckOrchestrator:
    """Fans probes out across all targets and drives alerting."""

    def __init__(
        self,
        context: MonitorContext,
        probe: Optional[HttpProbe] = None,
        notifier: Optional[WebhookNotifier] = None,
    ) -> None:
        self._context = context
        self._probe = probe or HttpProbe(context)
        self._notifier = notifier or WebhookNotifier(context)

    async def run_cycle(self) -> CycleSummary:
        """
        Run one health-check cycle over every target.

        Raises:
            FatalFault: an unexpected error occurred in a target check
        """
        targets = self._context.store.targets
        logger.info(f"Starting health check at {self._context.local_time()}")

        results = await asyncio.gather(
            *(self._check_target(target) for target in targets),
            return_exceptions=True,
        )

        up_count = down_count = 0
        down_transitions = up_transitions = 0
        faults: List[Tuple[str, Exception]] = []

        for target, result in zip(targets, results):
            if isinstance(result, Exception):
                faults.append((target, result))
                continue
            if isinstance(result, BaseException):
                raise result

            is_up, transition = result
            if is_up:
                up_count += 1
            else:
                down_count += 1
            if transition == Transition.DOWN:
                down_transitions += 1
            elif transition == Transition.UP:
                up_transitions += 1

        if faults:
            for target, error in faults:
                logger.error(f"Unexpected error checking {target}: {error!r}")
            first_target, first_error = faults[0]
            raise FatalFault(
                f"{len(faults)} target check(s) failed unexpectedly",
                context={"targets": [target for target, _ in faults]},
                cause=first_error,
            ) from first_error

        logger.info(f"Health check completed: {up_count} up, {down_count} down")

        return CycleSummary(
            up_count=up_count,
            down_count=down_count,
            down_transitions=down_transitions,
            up_transitions=up_transitions,
        )

    async def _check_target(self, target: str) -> TargetOutcome:
        """Probe one target, update its record and alert on transition."""
        config = self._context.config
        store = self._context.store

        result = await self._probe.probe(target)
        previous = store.get(target)
        record = StatusRecord.from_probe(
            previous,
            result,
            config.success_status_codes,
            self._context.clock.now(),
        )
        store.replace(target, record)

        self._log_result(target, result, record)

        transition = record.transition_from(previous)
        if transition == Transition.DOWN:
            logger.warning(f"🔴 Server went DOWN: {target}")
            await self._notifier.notify_down(target, record)
        elif transition == Transition.UP:
            logger.info(f"🟢 Server came back UP: {target}")
            await self._notifier.notify_up(target, record)

        return record.is_up, transition

    def _log_result(self, target: str, result: ProbeResult, record: StatusRecord) -> None:
        if record.is_up:
            level = logging.INFO if self._context.config.verbose_logging else logging.DEBUG
            logger.log(
                level,
                f"✅ {target} - {record.status_code} ({record.response_time_ms}ms)",
            )
            return

        if result.succeeded:
            reason = f"HTTP {record.status_code} ({record.response_time_ms}ms)"
        else:
            reason = record.error
        logger.warning(
            f"❌ {target} - {reason} "
            f"(consecutive failures: {record.consecutive_failures})"
        )
