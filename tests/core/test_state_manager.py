"""
Tests for the process lifecycle state machine.
"""

import pytest
from unittest.mock import AsyncMock

from core.exceptions import Severity, StateTransitionError
from core.state_manager import VALID_TRANSITIONS, StateManager, SystemState


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def state_manager():
    """Fresh state manager in INITIALIZING."""
    return StateManager()


# ============================================================
# TRANSITION TESTS
# ============================================================

class TestStateTransitions:
    """Tests for state transition validation."""

    @pytest.mark.asyncio
    async def test_normal_lifecycle(self, state_manager):
        """INITIALIZING -> RUNNING -> SHUTTING_DOWN -> STOPPED."""
        for target in (
            SystemState.RUNNING,
            SystemState.SHUTTING_DOWN,
            SystemState.STOPPED,
        ):
            await state_manager.transition_to(target, reason="test")

        assert state_manager.state == SystemState.STOPPED
        assert state_manager.state.is_terminal
        assert len(state_manager.get_history()) == 3

    @pytest.mark.asyncio
    async def test_config_failure_goes_straight_to_stopped(self, state_manager):
        """INITIALIZING may bypass RUNNING on configuration failure."""
        transition = await state_manager.transition_to(
            SystemState.STOPPED, reason="Configuration invalid"
        )

        assert transition.from_state == SystemState.INITIALIZING
        assert transition.to_state == SystemState.STOPPED
        assert state_manager.reason == "Configuration invalid"

    @pytest.mark.asyncio
    async def test_signal_during_startup(self, state_manager):
        """INITIALIZING -> SHUTTING_DOWN is allowed."""
        await state_manager.transition_to(SystemState.SHUTTING_DOWN, reason="signal")
        assert state_manager.state == SystemState.SHUTTING_DOWN

    @pytest.mark.asyncio
    async def test_invalid_transition_raises(self, state_manager):
        """RUNNING -> STOPPED must pass through SHUTTING_DOWN."""
        await state_manager.transition_to(SystemState.RUNNING, reason="started")

        with pytest.raises(StateTransitionError) as exc_info:
            await state_manager.transition_to(SystemState.STOPPED, reason="skip")

        assert exc_info.value.context["from_state"] == "running"
        assert exc_info.value.context["to_state"] == "stopped"
        assert exc_info.value.severity == Severity.HIGH
        assert state_manager.state == SystemState.RUNNING

    @pytest.mark.asyncio
    async def test_stopped_is_terminal(self, state_manager):
        """No transition leaves STOPPED."""
        await state_manager.transition_to(SystemState.STOPPED, reason="done")

        for target in SystemState:
            assert not state_manager.can_transition_to(target)

    def test_every_state_has_transition_entry(self):
        """The transition table covers every state."""
        assert set(VALID_TRANSITIONS) == set(SystemState)


# ============================================================
# LISTENER TESTS
# ============================================================

class TestStateListeners:
    """Tests for transition listeners."""

    @pytest.mark.asyncio
    async def test_listener_receives_transition(self, state_manager):
        """Registered listeners see every transition."""
        listener = AsyncMock()
        state_manager.register_listener(listener)

        transition = await state_manager.transition_to(
            SystemState.RUNNING, reason="ok", triggered_by="test"
        )

        listener.assert_awaited_once_with(transition)
        assert transition.to_dict()["triggered_by"] == "test"

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_block_transition(self, state_manager):
        """A listener error is logged, the transition still happens."""
        state_manager.register_listener(AsyncMock(side_effect=RuntimeError("boom")))

        await state_manager.transition_to(SystemState.RUNNING, reason="ok")

        assert state_manager.state == SystemState.RUNNING

    @pytest.mark.asyncio
    async def test_unregistered_listener_not_called(self, state_manager):
        """Unregistered listeners are not notified."""
        listener = AsyncMock()
        state_manager.register_listener(listener)
        state_manager.unregister_listener(listener)

        await state_manager.transition_to(SystemState.RUNNING, reason="ok")

        listener.assert_not_awaited()
