"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines all custom exceptions for the endpoint monitor.

- Provides clear exception hierarchy
- Separates local (per-target) failures from process-level faults
- Includes context for debugging

============================================================
EXCEPTION HIERARCHY
============================================================
MonitorException (base)
├── ConfigurationError
├── TransportFailure
├── NotificationDeliveryError
├── StateTransitionError
└── FatalFault

============================================================
PROPAGATION
============================================================
- ConfigurationError stops the process before monitoring begins
- TransportFailure stays inside a single probe (retried, then
  folded into a DOWN classification)
- NotificationDeliveryError stays inside the notifier
- FatalFault is the only error allowed to halt a running process

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels for alerting."""

    LOW = "low"
    """Minor issue, informational."""

    MEDIUM = "medium"
    """Moderate issue, requires attention."""

    HIGH = "high"
    """Serious issue, may impact operations."""

    CRITICAL = "critical"
    """Critical issue, requires immediate action."""


# ============================================================
# ERROR CLASSIFICATION
# ============================================================

class ErrorClassification(Enum):
    """Classification of error recoverability."""

    RECOVERABLE = "recoverable"
    """Error can be recovered from automatically."""

    TRANSIENT = "transient"
    """Temporary error, retry may succeed."""

    NON_RECOVERABLE = "non_recoverable"
    """Permanent error, requires intervention."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class MonitorException(Exception):
    """
    Base exception for all monitor errors.

    All exceptions carry:
    - severity: for alerting
    - context: for debugging
    - classification: for error handling decisions
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.MEDIUM
    default_classification: ErrorClassification = ErrorClassification.RECOVERABLE

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        classification: Optional[ErrorClassification] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.classification = classification or self.default_classification
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "classification": self.classification.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(MonitorException):
    """
    Invalid or missing configuration.

    Carries every validation problem found, not just the first.
    """

    default_severity = Severity.HIGH
    default_classification = ErrorClassification.NON_RECOVERABLE

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})
        self.errors = list(errors or [])
        if self.errors:
            context["errors"] = self.errors

        super().__init__(message, context=context, **kwargs)


# ============================================================
# PROBE ERRORS
# ============================================================

class TransportFailure(MonitorException):
    """
    A probe attempt failed before any HTTP response was received.

    Timeouts, refused connections, DNS failures and dropped
    connections all land here. Never escapes the probe.
    """

    default_severity = Severity.LOW
    default_classification = ErrorClassification.TRANSIENT

    def __init__(
        self,
        message: str,
        target: Optional[str] = None,
        attempt: Optional[int] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if target:
            context["target"] = target
        if attempt is not None:
            context["attempt"] = attempt

        super().__init__(message, context=context, **kwargs)


# ============================================================
# NOTIFICATION ERRORS
# ============================================================

class NotificationDeliveryError(MonitorException):
    """Webhook POST failed or returned a non-success status."""

    default_severity = Severity.MEDIUM
    default_classification = ErrorClassification.RECOVERABLE

    def __init__(
        self,
        message: str,
        message_type: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if message_type:
            context["message_type"] = message_type
        if status_code is not None:
            context["status_code"] = status_code

        self.status_code = status_code
        super().__init__(message, context=context, **kwargs)


# ============================================================
# SYSTEM ERRORS
# ============================================================

class StateTransitionError(MonitorException):
    """Invalid lifecycle state transition."""

    default_severity = Severity.HIGH
    default_classification = ErrorClassification.NON_RECOVERABLE

    def __init__(
        self,
        message: str,
        from_state: Optional[str] = None,
        to_state: Optional[str] = None,
        reason: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if from_state:
            context["from_state"] = from_state
        if to_state:
            context["to_state"] = to_state
        if reason:
            context["reason"] = reason

        super().__init__(message, context=context, **kwargs)


class FatalFault(MonitorException):
    """
    Unexpected internal error.

    The process must shut down with a non-zero exit code rather
    than keep running in an unknown state.
    """

    default_severity = Severity.CRITICAL
    default_classification = ErrorClassification.NON_RECOVERABLE


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    "Severity",
    "ErrorClassification",
    "MonitorException",
    "ConfigurationError",
    "TransportFailure",
    "NotificationDeliveryError",
    "StateTransitionError",
    "FatalFault",
]
