"""
Core Module Package.

This package contains the core infrastructure components
that all other modules depend on.

Components:
- clock: Time abstraction and local-time formatting
- state_manager: Process lifecycle state machine
- exceptions: Custom exception hierarchy
"""

from .clock import ClockProtocol, MockClock, SystemClock, format_local
from .exceptions import (
    ConfigurationError,
    FatalFault,
    MonitorException,
    NotificationDeliveryError,
    StateTransitionError,
    TransportFailure,
)
from .state_manager import StateManager, StateTransition, SystemState


__all__ = [
    "ClockProtocol",
    "MockClock",
    "SystemClock",
    "format_local",
    "ConfigurationError",
    "FatalFault",
    "MonitorException",
    "NotificationDeliveryError",
    "StateTransitionError",
    "TransportFailure",
    "StateManager",
    "StateTransition",
    "SystemState",
]
