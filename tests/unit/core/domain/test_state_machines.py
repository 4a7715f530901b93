"""
State Machine 테스트
"""

import pytest

from core.domain.state_machines import ClosingStateMachine, StateMachine, StateMachineError
from core.errors import AlreadyClosingError, ClosingStateError
from core.types import ClosingState


class TestStateMachine:
    """기본 상태 머신"""

    def test_transition_and_history(self) -> None:
        machine = StateMachine("A", {"A": ["B"], "B": ["A"]}, name="test")

        machine.transition("B")
        machine.transition("A")

        assert machine.state == "A"
        assert machine.history == [("A", "B"), ("B", "A")]

    def test_invalid_transition(self) -> None:
        machine = StateMachine("A", {"A": ["B"]})

        with pytest.raises(StateMachineError):
            machine.transition("C")


class TestClosingStateMachine:
    """clôture 상태 머신"""

    def test_full_cycle(self) -> None:
        machine = ClosingStateMachine("2025-01-15")

        assert machine.accepts_transactions
        machine.begin()
        assert not machine.accepts_transactions
        machine.finalize()

        assert machine.state == ClosingState.CLOSED.value
        assert machine.is_terminal

    def test_cancel_reopens(self) -> None:
        machine = ClosingStateMachine("2025-01-15")
        machine.begin()
        machine.cancel()

        assert machine.state == "OPEN"
        assert machine.accepts_transactions

    @pytest.mark.parametrize("state", ["RECONCILING", "CLOSED"])
    def test_begin_requires_open(self, state: str) -> None:
        with pytest.raises(AlreadyClosingError):
            ClosingStateMachine("2025-01-15", state).begin()

    @pytest.mark.parametrize("state", ["OPEN", "CLOSED"])
    def test_finalize_and_cancel_require_reconciling(self, state: str) -> None:
        with pytest.raises(ClosingStateError):
            ClosingStateMachine("2025-01-15", state).finalize()
        with pytest.raises(ClosingStateError):
            ClosingStateMachine("2025-01-15", state).cancel()

    def test_closed_is_terminal(self) -> None:
        machine = ClosingStateMachine("2025-01-15", ClosingState.CLOSED)

        assert not machine.can_transition(ClosingState.OPEN)
        assert not machine.can_transition(ClosingState.RECONCILING)
