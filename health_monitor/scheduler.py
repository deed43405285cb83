"""
Health Monitor - Cycle Scheduler.

============================================================
RESPONSIBILITY
============================================================

Runs the health-check cycle on a cron recurrence, plus one
immediate cycle at startup.

- 5-field standard cron, or 6-field with leading seconds
- Evaluated in the configured timezone
- At most MAX_CONCURRENT_CYCLES cycles at once; extra ticks
  are skipped by APScheduler and logged
- Stopping never cancels an in-flight cycle

============================================================
FAULTS
============================================================

Anything escaping a cycle is handed to the fault callback.
The scheduler itself never decides to shut the process down.

============================================================
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from .context import MonitorContext


logger = logging.getLogger(__name__)


CycleJob = Callable[[], Awaitable[Any]]
FaultHandler = Callable[[BaseException], None]

CRON_FIELDS = ("minute", "hour", "day", "month")

# Cron counts weekdays from Sunday (0 and 7); APScheduler counts from Monday
CRON_WEEKDAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat", "sun")


def _weekday_number(token: str) -> int:
    name = token.strip().lower()
    if name in CRON_WEEKDAYS:
        return CRON_WEEKDAYS.index(name)
    value = int(name)
    if not 0 <= value <= 7:
        raise ValueError(f"day of week {value} is out of range 0-7")
    return value


def _expand_weekdays(part: str) -> list:
    base, _, raw_step = part.partition("/")
    step = int(raw_step) if raw_step else 1
    if step < 1:
        raise ValueError(f"invalid step in day of week: '{part}'")

    if base == "*":
        first, last = 0, 6
    elif "-" in base:
        low, high = base.split("-", 1)
        first, last = _weekday_number(low), _weekday_number(high)
    else:
        first = _weekday_number(base)
        last = 6 if raw_step else first

    if first > last:
        raise ValueError(f"invalid day of week range: '{part}'")

    return [CRON_WEEKDAYS[value] for value in range(first, last + 1, step)]


def translate_day_of_week(field: str) -> str:
    """
    Rewrite a cron day-of-week field with weekday names.

    Numbers follow cron (0 or 7 is Sunday). Ranges, lists and
    steps are expanded, e.g. "1-5" -> "mon,tue,wed,thu,fri".
    """
    if field in ("*", "?"):
        return "*"

    names = []
    for part in field.split(","):
        for name in _expand_weekdays(part):
            if name not in names:
                names.append(name)
    return ",".join(names)


def build_trigger(expression: str, timezone: str) -> CronTrigger:
    """
    Build a CronTrigger from a cron expression.

    Raises:
        ValueError: wrong number of fields or an invalid field
    """
    fields = (expression or "").split()

    if len(fields) == 6:
        second, fields = fields[0], fields[1:]
    elif len(fields) == 5:
        second = "0"
    else:
        raise ValueError(
            f"Wrong number of fields; got {len(fields)}, expected 5 or 6"
        )

    values = dict(zip(CRON_FIELDS, fields[:4]))
    return CronTrigger(
        second=second,
        day_of_week=translate_day_of_week(fields[4]),
        timezone=timezone,
        **values,
    )


class CycleScheduler:
    """Recurring health-check cycles driven by APScheduler."""

    JOB_ID = "health_check_cycle"

    def __init__(
        self,
        context: MonitorContext,
        job: CycleJob,
        on_fault: FaultHandler,
    ) -> None:
        """
        Initialize scheduler.

        Args:
            context: Monitor context
            job: Coroutine function running one cycle
            on_fault: Called with any exception escaping a cycle
        """
        self._context = context
        self._job = job
        self._on_fault = on_fault
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._in_flight: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    @property
    def in_flight(self) -> int:
        """Number of cycles currently executing."""
        return len(self._in_flight)

    @property
    def next_run_time(self) -> Optional[datetime]:
        if not self.running:
            return None
        job = self._scheduler.get_job(self.JOB_ID)
        return job.next_run_time if job else None

    def start(self) -> None:
        """Start recurring cycles. Must be called from the event loop."""
        if self.running:
            logger.warning("Scheduler already running")
            return

        config = self._context.config
        trigger = build_trigger(config.monitoring_interval, config.timezone)

        scheduler = AsyncIOScheduler(timezone=config.timezone)
        scheduler.add_job(
            self._tick,
            trigger,
            id=self.JOB_ID,
            max_instances=config.max_concurrent_cycles,
            coalesce=True,
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler

        logger.info(
            f"Scheduled health checks: '{config.monitoring_interval}' "
            f"({config.timezone}), next run at {self.next_run_time}"
        )

    def stop(self) -> None:
        """Stop scheduling new cycles; in-flight cycles keep running."""
        if not self.running:
            return

        scheduler, self._scheduler = self._scheduler, None

        # shutdown() may only take effect on a later loop iteration,
        # removing the job stops new ticks immediately
        scheduler.remove_job(self.JOB_ID)
        scheduler.shutdown(wait=False)
        logger.info(f"Scheduler stopped ({self.in_flight} cycle(s) still in flight)")

    async def run_now(self) -> Any:
        """Run one cycle immediately (startup cycle)."""
        return await self._run_shielded()

    async def _tick(self) -> None:
        await self._run_shielded()

    async def _run_shielded(self) -> Any:
        task = asyncio.ensure_future(self._execute())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return await asyncio.shield(task)

    async def _execute(self) -> Any:
        try:
            return await self._job()
        except Exception as e:
            logger.error(f"Health check cycle failed: {e}", exc_info=True)
            self._on_fault(e)
            return None
