"""
Health Monitor - Configuration.

============================================================
ENVIRONMENT-SOURCED CONFIGURATION
============================================================

All settings come from environment variables (a .env file is
loaded by the entry point through python-dotenv):

- WEBHOOK_URL (or LARK_WEBHOOK_URL)  required
- SERVER_URLS                        comma-separated targets
- MONITORING_INTERVAL                cron expression
- REQUEST_TIMEOUT                    per-attempt timeout, ms
- RETRY_ATTEMPTS                     attempts per probe
- RETRY_DELAY                        base retry delay, ms
- SUCCESS_STATUS_CODES               comma-separated allow-set
- VERBOSE_LOGGING                    true/false
- SEND_RECOVERY_NOTIFICATIONS        true/false
- MONITOR_TIMEZONE                   IANA timezone name
- MAX_CONCURRENT_CYCLES              overlapping cycle cap
- LOG_LEVEL / LOG_FORMAT             logging setup

============================================================
VALIDATION
============================================================

validate() collects every problem instead of stopping at the
first one, so a broken deployment is fixed in one pass.

============================================================
"""

import os
from dataclasses import dataclass, field
from typing import FrozenSet, List, Mapping, Optional
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


DEFAULT_TARGETS = (
    "https://httpbin.org/status/200",
    "https://jsonplaceholder.typicode.com/posts/1",
    "https://api.github.com",
)
DEFAULT_SUCCESS_STATUS_CODES = frozenset({200, 201, 202, 204, 301, 302, 304})
DEFAULT_INTERVAL = "* * * * *"  # Every minute
DEFAULT_TIMEZONE = "Asia/Ho_Chi_Minh"

URL_SCHEMES = {"http", "https"}
LOG_FORMATS = {"text", "json"}


# =============================================================
# PARSING HELPERS
# =============================================================


def _split_csv(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def _env_int(
    environ: Mapping[str, str],
    name: str,
    default: int,
    errors: List[str],
) -> int:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        errors.append(f"{name} must be an integer, got '{raw}'")
        return default


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw == "true"


def _env_status_codes(
    environ: Mapping[str, str],
    errors: List[str],
) -> FrozenSet[int]:
    raw = environ.get("SUCCESS_STATUS_CODES", "").strip()
    if not raw:
        return DEFAULT_SUCCESS_STATUS_CODES

    codes = set()
    for token in _split_csv(raw):
        try:
            codes.add(int(token))
        except ValueError:
            errors.append(f"SUCCESS_STATUS_CODES contains a non-integer value: '{token}'")
    return frozenset(codes)


def is_valid_url(url: str) -> bool:
    """True for an absolute http(s) URL with a host."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return (parsed.scheme or "").lower() in URL_SCHEMES and bool(parsed.hostname)


# =============================================================
# MAIN CONFIGURATION
# =============================================================


@dataclass
class MonitorConfig:
    """Complete monitor configuration."""

    # Webhook
    webhook_url: str = ""

    # Targets
    targets: List[str] = field(default_factory=lambda: list(DEFAULT_TARGETS))

    # Scheduling
    monitoring_interval: str = DEFAULT_INTERVAL
    max_concurrent_cycles: int = 1

    # Probing
    request_timeout_ms: int = 10000
    retry_attempts: int = 3
    retry_delay_ms: int = 1000
    success_status_codes: FrozenSet[int] = DEFAULT_SUCCESS_STATUS_CODES

    # Alerting
    send_recovery_notifications: bool = True
    timezone: str = DEFAULT_TIMEZONE

    # Logging
    verbose_logging: bool = False
    log_level: str = "INFO"
    log_format: str = "text"

    # Problems found while reading the environment
    load_errors: List[str] = field(default_factory=list, repr=False, compare=False)

    @property
    def request_timeout_seconds(self) -> float:
        return self.request_timeout_ms / 1000

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay_ms / 1000

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "MonitorConfig":
        """
        Load configuration from environment variables.

        Unset or empty variables fall back to defaults. Values that
        cannot be parsed are recorded and reported by validate().
        """
        env = os.environ if environ is None else environ
        errors: List[str] = []

        webhook_url = (env.get("WEBHOOK_URL") or env.get("LARK_WEBHOOK_URL") or "").strip()

        raw_targets = env.get("SERVER_URLS", "").strip()
        targets = _split_csv(raw_targets) if raw_targets else list(DEFAULT_TARGETS)

        return cls(
            webhook_url=webhook_url,
            targets=targets,
            monitoring_interval=env.get("MONITORING_INTERVAL", "").strip() or DEFAULT_INTERVAL,
            max_concurrent_cycles=_env_int(env, "MAX_CONCURRENT_CYCLES", 1, errors),
            request_timeout_ms=_env_int(env, "REQUEST_TIMEOUT", 10000, errors),
            retry_attempts=_env_int(env, "RETRY_ATTEMPTS", 3, errors),
            retry_delay_ms=_env_int(env, "RETRY_DELAY", 1000, errors),
            success_status_codes=_env_status_codes(env, errors),
            send_recovery_notifications=_env_bool(env, "SEND_RECOVERY_NOTIFICATIONS", True),
            timezone=env.get("MONITOR_TIMEZONE", "").strip() or DEFAULT_TIMEZONE,
            verbose_logging=_env_bool(env, "VERBOSE_LOGGING", False),
            log_level=env.get("LOG_LEVEL", "").strip().upper() or "INFO",
            log_format=env.get("LOG_FORMAT", "").strip().lower() or "text",
            load_errors=errors,
        )

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = list(self.load_errors)

        if not self.webhook_url:
            errors.append("WEBHOOK_URL environment variable is required")
        elif not is_valid_url(self.webhook_url):
            errors.append(f"Invalid webhook URL: {self.webhook_url}")

        if not self.targets:
            errors.append("At least one server URL must be configured")

        for index, url in enumerate(self.targets):
            if not is_valid_url(url):
                errors.append(f"Invalid URL at index {index}: {url}")

        if self.request_timeout_ms < 1:
            errors.append("REQUEST_TIMEOUT must be at least 1 ms")
        if self.retry_attempts < 1:
            errors.append("RETRY_ATTEMPTS must be at least 1")
        if self.retry_delay_ms < 0:
            errors.append("RETRY_DELAY cannot be negative")
        if self.max_concurrent_cycles < 1:
            errors.append("MAX_CONCURRENT_CYCLES must be at least 1")
        if not self.success_status_codes:
            errors.append("SUCCESS_STATUS_CODES must contain at least one status code")
        if self.log_format not in LOG_FORMATS:
            errors.append(f"LOG_FORMAT must be one of {sorted(LOG_FORMATS)}")

        timezone_ok = True
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            timezone_ok = False
            errors.append(f"Unknown timezone: {self.timezone}")

        if timezone_ok:
            # Imported here: the scheduler module depends on this one
            from .scheduler import build_trigger
            try:
                build_trigger(self.monitoring_interval, self.timezone)
            except ValueError as e:
                errors.append(f"Invalid MONITORING_INTERVAL '{self.monitoring_interval}': {e}")

        return errors

    def to_dict(self) -> dict:
        """Convert to dictionary (webhook URL excluded)."""
        return {
            "targets": list(self.targets),
            "monitoring_interval": self.monitoring_interval,
            "max_concurrent_cycles": self.max_concurrent_cycles,
            "request_timeout_ms": self.request_timeout_ms,
            "retry_attempts": self.retry_attempts,
            "retry_delay_ms": self.retry_delay_ms,
            "success_status_codes": sorted(self.success_status_codes),
            "send_recovery_notifications": self.send_recovery_notifications,
            "timezone": self.timezone,
            "verbose_logging": self.verbose_logging,
        }


def load_config(environ: Optional[Mapping[str, str]] = None) -> MonitorConfig:
    """
    Load and validate configuration.

    Raises:
        ConfigurationError: listing every validation problem
    """
    config = MonitorConfig.from_env(environ)
    errors = config.validate()
    if errors:
        raise ConfigurationError(
            message=f"Configuration validation failed: {'; '.join(errors)}",
            errors=errors,
        )
    return config
