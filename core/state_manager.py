"""
Core Module - State Manager.

============================================================
RESPONSIBILITY
============================================================
Manages the lifecycle state of the monitor process.

- Tracks process state (initializing, running, shutting down, stopped)
- Manages state transitions with validation
- Keeps a short transition history
- Notifies listeners on every transition

============================================================
STATE MACHINE
============================================================
Valid states:
- INITIALIZING: Validating config, running the first cycle
- RUNNING: Scheduler active
- SHUTTING_DOWN: Scheduler stopping, no new cycles start
- STOPPED: Terminal, process exits

INITIALIZING may jump straight to STOPPED when configuration
validation fails, bypassing RUNNING.

============================================================
"""

from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set
import asyncio
import logging

from .exceptions import StateTransitionError


# ============================================================
# SYSTEM STATE
# ============================================================

class SystemState(Enum):
    """Process lifecycle states."""

    INITIALIZING = "initializing"
    """Process is starting up."""

    RUNNING = "running"
    """Scheduler active, cycles running."""

    SHUTTING_DOWN = "shutting_down"
    """Termination requested, scheduler stopping."""

    STOPPED = "stopped"
    """Terminal state."""

    @property
    def is_terminal(self) -> bool:
        """Check if state is terminal."""
        return self == SystemState.STOPPED


# ============================================================
# STATE TRANSITIONS
# ============================================================

VALID_TRANSITIONS: Dict[SystemState, Set[SystemState]] = {
    SystemState.INITIALIZING: {
        SystemState.RUNNING,
        SystemState.SHUTTING_DOWN,
        SystemState.STOPPED,  # Configuration failure
    },
    SystemState.RUNNING: {
        SystemState.SHUTTING_DOWN,
    },
    SystemState.SHUTTING_DOWN: {
        SystemState.STOPPED,
    },
    SystemState.STOPPED: set(),  # Terminal - no transitions
}


@dataclass
class StateTransition:
    """Record of a state transition."""

    transition_id: str
    from_state: SystemState
    to_state: SystemState
    reason: str
    triggered_by: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "transition_id": self.transition_id,
            "from_state": self.from_state.value,
            "to_state": self.to_state.value,
            "reason": self.reason,
            "triggered_by": self.triggered_by,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context,
        }


StateListener = Callable[[StateTransition], Awaitable[None]]


# ============================================================
# STATE MANAGER
# ============================================================

class StateManager:
    """
    Manages process state with validation and notifications.

    - Valid transition enforcement
    - Bounded transition history
    - Listener notifications on state change
    """

    def __init__(
        self,
        initial_state: SystemState = SystemState.INITIALIZING,
    ):
        """
        Initialize state manager.

        Args:
            initial_state: Initial process state
        """
        self._state = initial_state
        self._reason = "Process initialization"
        self._transition_count = 0
        self._history: List[StateTransition] = []
        self._max_history = 100

        self._listeners: List[StateListener] = []

        self._lock = asyncio.Lock()
        self._logger = logging.getLogger(__name__)

    @property
    def state(self) -> SystemState:
        """Get current process state."""
        return self._state

    @property
    def reason(self) -> str:
        """Get reason for current state."""
        return self._reason

    def get_history(self, limit: int = 10) -> List[StateTransition]:
        """Get transition history."""
        return self._history[-limit:]

    def can_transition_to(self, target_state: SystemState) -> bool:
        """Check if transition to target state is valid."""
        return target_state in VALID_TRANSITIONS.get(self._state, set())

    async def transition_to(
        self,
        target_state: SystemState,
        reason: str,
        triggered_by: str = "system",
        context: Optional[Dict[str, Any]] = None,
    ) -> StateTransition:
        """
        Transition to a new state.

        Args:
            target_state: Target state
            reason: Reason for transition
            triggered_by: Who/what triggered the transition
            context: Additional context

        Returns:
            StateTransition record

        Raises:
            StateTransitionError: If transition is invalid
        """
        async with self._lock:
            if not self.can_transition_to(target_state):
                raise StateTransitionError(
                    message=f"Invalid state transition: {self._state.value} -> {target_state.value}",
                    from_state=self._state.value,
                    to_state=target_state.value,
                    reason=reason,
                )

            self._transition_count += 1
            transition = StateTransition(
                transition_id=f"transition_{self._transition_count}",
                from_state=self._state,
                to_state=target_state,
                reason=reason,
                triggered_by=triggered_by,
                context=context or {},
            )

            old_state = self._state
            self._state = target_state
            self._reason = reason

            self._history.append(transition)
            if len(self._history) > self._max_history:
                self._history = self._history[-self._max_history:]

            self._logger.info(
                f"State transition: {old_state.value} -> {target_state.value} "
                f"| reason={reason} | triggered_by={triggered_by}"
            )

            await self._notify_listeners(transition)

            return transition

    def register_listener(self, listener: StateListener) -> None:
        """Register a state change listener."""
        self._listeners.append(listener)

    def unregister_listener(self, listener: StateListener) -> None:
        """Unregister a state change listener."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def _notify_listeners(self, transition: StateTransition) -> None:
        """Notify all listeners of state change."""
        for listener in self._listeners:
            try:
                await listener(transition)
            except Exception as e:
                self._logger.error(
                    f"State listener error: {e}",
                    exc_info=True,
                )


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    "SystemState",
    "StateTransition",
    "StateListener",
    "StateManager",
    "VALID_TRANSITIONS",
]
