"""
Orchestrator - Core.

============================================================
RESPONSIBILITY
============================================================
Lifecycle controller for the endpoint monitor.

- Loads and validates configuration
- Builds the monitor context and components
- Runs the immediate startup cycle, then starts the scheduler
- Handles signals (SIGINT, SIGTERM)
- Turns fatal faults into a shutdown with exit code 1

============================================================
LIFECYCLE
============================================================
INITIALIZING -> RUNNING -> SHUTTING_DOWN -> STOPPED

- INITIALIZING -> STOPPED        configuration failure
- INITIALIZING -> SHUTTING_DOWN  signal or fault during startup

Exit codes: 0 after a signal, 1 after a configuration failure
or a fatal fault.

============================================================
"""

import asyncio
import json
import logging
import signal
import sys
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

import aiohttp

from core.clock import ClockProtocol, SystemClock
from core.exceptions import ConfigurationError, FatalFault, MonitorException
from core.state_manager import StateManager, SystemState
from health_monitor.checker import HealthCheckOrchestrator
from health_monitor.config import MonitorConfig, load_config
from health_monitor.context import MonitorContext
from health_monitor.models import CycleSummary
from health_monitor.scheduler import CycleScheduler


EXIT_OK = 0
EXIT_FAILURE = 1


# ============================================================
# LOGGING SETUP
# ============================================================

def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
) -> logging.Logger:
    """
    Set up process-wide logging.

    Args:
        level: Log level
        log_format: Output format (json or text)

    Returns:
        Configured logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
            })
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    # APScheduler logs every job execution at INFO
    logging.getLogger("apscheduler").setLevel(max(log_level, logging.WARNING))

    return logging.getLogger("orchestrator")


def mask_webhook_url(url: str) -> str:
    """Hide everything after the host of a webhook URL."""
    if not url:
        return "Not configured"
    parsed = urlparse(url)
    host = parsed.netloc.rsplit("@", 1)[-1]
    return f"{parsed.scheme}://{host}/*****"


# ============================================================
# LIFECYCLE CONTROLLER
# ============================================================

class LifecycleController:
    """
    Startup/shutdown sequencing for the monitor process.

    Owns the only outer fault handler: anything that escapes a
    cycle ends up here and forces shutdown with exit code 1.
    """

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        clock: Optional[ClockProtocol] = None,
        session: Optional[aiohttp.ClientSession] = None,
        install_signal_handlers: bool = True,
    ):
        """
        Initialize controller.

        Args:
            environ: Environment mapping (default: os.environ)
            clock: Clock for timestamps (default: SystemClock)
            session: Pre-built HTTP session (default: created on start)
            install_signal_handlers: Install SIGINT/SIGTERM handlers
        """
        self._environ = environ
        self._clock = clock or SystemClock()
        self._session = session
        self._install_signals = install_signal_handlers

        self._logger = logging.getLogger("orchestrator")
        self._state_manager = StateManager(SystemState.INITIALIZING)

        self._context: Optional[MonitorContext] = None
        self._checker: Optional[HealthCheckOrchestrator] = None
        self._scheduler: Optional[CycleScheduler] = None

        self._shutdown_event: Optional[asyncio.Event] = None
        self._exit_code = EXIT_OK
        self._fault: Optional[BaseException] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._signals_installed = False

    # --------------------------------------------------------
    # Properties
    # --------------------------------------------------------

    @property
    def state(self) -> SystemState:
        return self._state_manager.state

    @property
    def state_manager(self) -> StateManager:
        return self._state_manager

    @property
    def context(self) -> Optional[MonitorContext]:
        return self._context

    @property
    def scheduler(self) -> Optional[CycleScheduler]:
        return self._scheduler

    @property
    def exit_code(self) -> int:
        return self._exit_code

    @property
    def fault(self) -> Optional[BaseException]:
        return self._fault

    # --------------------------------------------------------
    # Lifecycle
    # --------------------------------------------------------

    async def run(self) -> int:
        """
        Run the monitor until a signal or a fatal fault.

        Returns:
            Process exit code
        """
        self._shutdown_event = asyncio.Event()

        config = await self._load_config()
        if config is None:
            return self._exit_code

        try:
            await self._build(config)
            self._install_signal_handlers()

            self._logger.info("Running initial health check...")
            await self._scheduler.run_now()

            if not self._shutdown_event.is_set():
                self._scheduler.start()
                await self._state_manager.transition_to(
                    SystemState.RUNNING,
                    reason="Initial cycle complete",
                    triggered_by="orchestrator",
                )
                self._logger.info("=== MONITOR RUNNING ===")
                await self._shutdown_event.wait()

        except Exception as e:
            self._logger.error(f"Unrecoverable error: {e}", exc_info=True)
            self._exit_code = EXIT_FAILURE

        finally:
            await self._shutdown()

        return self._exit_code

    async def run_once(self) -> int:
        """
        Run a single health-check cycle and stop.

        Returns:
            0 if every target is up, 1 otherwise
        """
        config = await self._load_config()
        if config is None:
            return self._exit_code

        summary: Optional[CycleSummary] = None
        try:
            await self._build(config)
            summary = await self._checker.run_cycle()
        except FatalFault as e:
            self._fault = e
            self._logger.critical(f"Fatal fault: {e.message}", exc_info=True)
        finally:
            await self._shutdown()

        self._exit_code = EXIT_OK if summary is not None and summary.all_up else EXIT_FAILURE
        return self._exit_code

    def request_shutdown(self, reason: str, exit_code: int = EXIT_OK) -> None:
        """Ask the running monitor to shut down."""
        self._logger.info(f"Shutdown requested: {reason}")
        self._exit_code = max(self._exit_code, exit_code)
        if self._shutdown_event is not None:
            self._shutdown_event.set()

    def handle_fault(self, error: BaseException) -> None:
        """Fault callback: an unexpected error escaped a cycle."""
        self._fault = error
        self._logger.critical(f"Fatal fault in health check cycle: {error}")
        if isinstance(error, MonitorException):
            self._logger.critical(json.dumps(error.to_dict(), default=str))
        self.request_shutdown(f"Fatal fault: {error}", EXIT_FAILURE)

    async def _load_config(self) -> Optional[MonitorConfig]:
        """Load configuration; on failure move straight to STOPPED."""
        self._logger.info("=== MONITOR STARTUP SEQUENCE ===")
        try:
            config = load_config(self._environ)
        except ConfigurationError as e:
            self._logger.error("Configuration validation failed:")
            for error in e.errors:
                self._logger.error(f"  - {error}")
            self._exit_code = EXIT_FAILURE
            await self._state_manager.transition_to(
                SystemState.STOPPED,
                reason="Configuration invalid",
                triggered_by="orchestrator",
            )
            return None

        self._log_startup_banner(config)
        return config

    async def _build(self, config: MonitorConfig) -> None:
        """Create the context, HTTP session and components."""
        self._context = MonitorContext(
            config=config,
            clock=self._clock,
            session=self._session,
        )
        self._context.store.initialize(config.targets)
        await self._context.open_session()

        self._checker = HealthCheckOrchestrator(self._context)
        self._scheduler = CycleScheduler(
            self._context,
            job=self._checker.run_cycle,
            on_fault=self.handle_fault,
        )

    async def _shutdown(self) -> None:
        """Stop scheduling and release resources."""
        if self.state.is_terminal:
            return

        if self.state != SystemState.SHUTTING_DOWN:
            await self._state_manager.transition_to(
                SystemState.SHUTTING_DOWN,
                reason="Fatal fault" if self._fault else "Shutdown requested",
                triggered_by="orchestrator",
            )

        self._logger.info("=== MONITOR SHUTDOWN SEQUENCE ===")

        in_flight = 0
        if self._scheduler is not None:
            self._scheduler.stop()
            in_flight = self._scheduler.in_flight

        self._restore_signal_handlers()

        if self._context is not None:
            self._log_status_summary()
            if in_flight:
                self._logger.warning(
                    f"{in_flight} cycle(s) still in flight, leaving HTTP session open"
                )
            else:
                await self._context.close_session()

        await self._state_manager.transition_to(
            SystemState.STOPPED,
            reason=f"Exit code {self._exit_code}",
            triggered_by="orchestrator",
        )
        self._logger.info("=== MONITOR SHUTDOWN COMPLETE ===")

    # --------------------------------------------------------
    # Reporting
    # --------------------------------------------------------

    def _log_startup_banner(self, config: MonitorConfig) -> None:
        self._logger.info("Server Monitoring Bot starting")
        self._logger.info(f"  Targets:    {len(config.targets)}")
        for target in config.targets:
            self._logger.info(f"    - {target}")
        self._logger.info(f"  Interval:   {config.monitoring_interval}")
        self._logger.info(f"  Timezone:   {config.timezone}")
        self._logger.info(f"  Webhook:    {mask_webhook_url(config.webhook_url)}")
        self._logger.debug(f"Configuration: {json.dumps(config.to_dict())}")

    def _log_status_summary(self) -> None:
        summary = self._context.store.get_summary()
        self._logger.info(
            f"Status summary: {summary.total} targets, "
            f"{summary.up} up, {summary.down} down"
        )
        for target in summary.targets:
            if not target.is_up:
                self._logger.info(
                    f"  DOWN {target.url} "
                    f"(consecutive failures: {target.consecutive_failures})"
                )
        self._logger.debug(f"Status detail: {json.dumps(summary.to_dict())}")

    # --------------------------------------------------------
    # Signal Handlers
    # --------------------------------------------------------

    def _install_signal_handlers(self) -> None:
        """Install signal handlers for graceful shutdown."""
        if not self._install_signals:
            return

        self._loop = asyncio.get_running_loop()

        if sys.platform == "win32":
            # Windows doesn't support SIGTERM the same way
            signal.signal(signal.SIGINT, self._signal_handler)
            signal.signal(signal.SIGBREAK, self._signal_handler)
        else:
            for sig in (signal.SIGTERM, signal.SIGINT):
                self._loop.add_signal_handler(sig, self._on_signal, sig)

        self._signals_installed = True

    def _restore_signal_handlers(self) -> None:
        """Restore original signal handlers."""
        if not self._signals_installed:
            return

        if sys.platform == "win32":
            signal.signal(signal.SIGINT, signal.default_int_handler)
        else:
            for sig in (signal.SIGTERM, signal.SIGINT):
                self._loop.remove_signal_handler(sig)

        self._signals_installed = False

    def _signal_handler(self, signum: int, frame: Any) -> None:
        """Synchronous signal handler (Windows)."""
        self._logger.info(f"Received signal {signum}")
        self._loop.call_soon_threadsafe(self.request_shutdown, f"signal {signum}")

    def _on_signal(self, sig: signal.Signals) -> None:
        """Event-loop signal handler (Unix)."""
        self._logger.info(f"Received signal {sig.name}")
        self.request_shutdown(f"signal {sig.name}")
