"""
Tests for environment-sourced configuration.
"""

import pytest

from core.exceptions import ConfigurationError
from health_monitor.config import (
    DEFAULT_SUCCESS_STATUS_CODES,
    DEFAULT_TARGETS,
    MonitorConfig,
    is_valid_url,
    load_config,
)


WEBHOOK = "https://open.larksuite.com/open-apis/bot/v2/hook/abc"


# ============================================================
# LOADING TESTS
# ============================================================

class TestFromEnv:
    """Tests for MonitorConfig.from_env."""

    def test_defaults(self):
        """Unset variables fall back to defaults."""
        config = MonitorConfig.from_env({"WEBHOOK_URL": WEBHOOK})

        assert config.targets == list(DEFAULT_TARGETS)
        assert config.monitoring_interval == "* * * * *"
        assert config.request_timeout_ms == 10000
        assert config.retry_attempts == 3
        assert config.retry_delay_ms == 1000
        assert config.success_status_codes == DEFAULT_SUCCESS_STATUS_CODES
        assert config.send_recovery_notifications is True
        assert config.verbose_logging is False
        assert config.max_concurrent_cycles == 1
        assert config.timezone == "Asia/Ho_Chi_Minh"
        assert config.validate() == []

    def test_parses_all_variables(self):
        """Every variable is read and parsed."""
        config = MonitorConfig.from_env({
            "WEBHOOK_URL": WEBHOOK,
            "SERVER_URLS": " https://a.example.com , https://b.example.com/x ,",
            "MONITORING_INTERVAL": "*/5 * * * *",
            "REQUEST_TIMEOUT": "2500",
            "RETRY_ATTEMPTS": "2",
            "RETRY_DELAY": "250",
            "SUCCESS_STATUS_CODES": "200, 204",
            "VERBOSE_LOGGING": "true",
            "SEND_RECOVERY_NOTIFICATIONS": "false",
            "MONITOR_TIMEZONE": "UTC",
            "MAX_CONCURRENT_CYCLES": "3",
        })

        assert config.targets == ["https://a.example.com", "https://b.example.com/x"]
        assert config.monitoring_interval == "*/5 * * * *"
        assert config.request_timeout_seconds == 2.5
        assert config.retry_attempts == 2
        assert config.retry_delay_seconds == 0.25
        assert config.success_status_codes == frozenset({200, 204})
        assert config.verbose_logging is True
        assert config.send_recovery_notifications is False
        assert config.max_concurrent_cycles == 3
        assert config.validate() == []

    def test_lark_webhook_alias(self):
        """LARK_WEBHOOK_URL is accepted when WEBHOOK_URL is unset."""
        config = MonitorConfig.from_env({"LARK_WEBHOOK_URL": WEBHOOK})
        assert config.webhook_url == WEBHOOK

    def test_unparsable_number_is_reported(self):
        """A non-integer value is a validation error, not a silent default."""
        config = MonitorConfig.from_env({
            "WEBHOOK_URL": WEBHOOK,
            "RETRY_ATTEMPTS": "three",
        })

        errors = config.validate()
        assert any("RETRY_ATTEMPTS" in e for e in errors)

    def test_to_dict_excludes_webhook(self):
        """The webhook URL is a secret."""
        config = MonitorConfig.from_env({"WEBHOOK_URL": WEBHOOK})
        assert WEBHOOK not in str(config.to_dict())


# ============================================================
# VALIDATION TESTS
# ============================================================

class TestValidation:
    """Tests for MonitorConfig.validate and load_config."""

    def test_missing_webhook(self):
        """The webhook URL is required."""
        errors = MonitorConfig.from_env({}).validate()
        assert "WEBHOOK_URL environment variable is required" in errors

    def test_empty_target_list_rejected(self):
        """An explicitly empty target list is a configuration error."""
        config = MonitorConfig(webhook_url=WEBHOOK, targets=[])

        errors = config.validate()
        assert "At least one server URL must be configured" in errors

    def test_malformed_target_rejected(self):
        """A target that is not a URL is reported with its index."""
        config = MonitorConfig(webhook_url=WEBHOOK, targets=["https://ok.example.com", "not-a-url"])

        errors = config.validate()
        assert "Invalid URL at index 1: not-a-url" in errors

    def test_load_config_lists_every_error(self):
        """All problems are reported together."""
        with pytest.raises(ConfigurationError) as exc_info:
            load_config({
                "SERVER_URLS": "not-a-url",
                "REQUEST_TIMEOUT": "0",
                "MONITOR_TIMEZONE": "Mars/Olympus_Mons",
            })

        errors = exc_info.value.errors
        assert "WEBHOOK_URL environment variable is required" in errors
        assert "Invalid URL at index 0: not-a-url" in errors
        assert any("REQUEST_TIMEOUT" in e for e in errors)
        assert any("Unknown timezone" in e for e in errors)

    def test_valid_single_target(self):
        """A single well-formed target is accepted."""
        config = load_config({
            "WEBHOOK_URL": WEBHOOK,
            "SERVER_URLS": "https://only.example.com/health",
        })
        assert config.targets == ["https://only.example.com/health"]

    def test_invalid_cron_rejected(self):
        """An unparsable recurrence is reported."""
        config = MonitorConfig(webhook_url=WEBHOOK, monitoring_interval="every minute")

        errors = config.validate()
        assert any("MONITORING_INTERVAL" in e for e in errors)

    def test_six_field_cron_accepted(self):
        """A leading seconds field is allowed."""
        config = MonitorConfig(webhook_url=WEBHOOK, monitoring_interval="*/30 * * * * *", timezone="UTC")
        assert config.validate() == []

    @pytest.mark.parametrize("interval", ["0 9 * * 7", "0 9 * * 0", "0 9 * * 1-5"])
    def test_cron_weekday_numbers_accepted(self, interval):
        """Sunday may be written as 0 or 7."""
        config = MonitorConfig(webhook_url=WEBHOOK, monitoring_interval=interval, timezone="UTC")
        assert config.validate() == []

    def test_empty_status_codes_rejected(self):
        """The success allow-set cannot be empty."""
        config = MonitorConfig(webhook_url=WEBHOOK, success_status_codes=frozenset())
        assert any("SUCCESS_STATUS_CODES" in e for e in config.validate())


class TestUrlValidation:
    """Tests for is_valid_url."""

    @pytest.mark.parametrize("url", [
        "https://example.com",
        "http://10.0.0.1:8080/health",
        "https://api.github.com",
    ])
    def test_valid(self, url):
        assert is_valid_url(url)

    @pytest.mark.parametrize("url", [
        "not-a-url",
        "ftp://example.com",
        "https://",
        "",
    ])
    def test_invalid(self, url):
        assert not is_valid_url(url)
