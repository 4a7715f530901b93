"""
State Machines

일자별 clôture 상태 전이 관리.

    OPEN ──begin──▶ RECONCILING ──finalize──▶ CLOSED
      ▲                  │
      └─────cancel───────┘
"""

import logging
from enum import Enum

from core.errors import AlreadyClosingError, ClosingStateError
from core.types import ClosingState

logger = logging.getLogger(__name__)


class StateMachineError(Exception):
    """상태 전이 오류"""
    pass


class StateMachine:
    """상태 머신 기본 클래스

    Args:
        initial_state: 초기 상태
        transitions: 허용된 전이 정의 {from_state: [to_states]}
        name: 머신 이름 (로깅용)
    """

    def __init__(
        self,
        initial_state: str | Enum,
        transitions: dict[str, list[str]],
        name: str = "StateMachine",
    ):
        self._state = initial_state.value if isinstance(initial_state, Enum) else initial_state
        self._transitions = transitions
        self._name = name
        self._history: list[tuple[str, str]] = []

    @property
    def state(self) -> str:
        """현재 상태"""
        return self._state

    def can_transition(self, to_state: str | Enum) -> bool:
        target = to_state.value if isinstance(to_state, Enum) else to_state
        return target in self._transitions.get(self._state, [])

    def transition(self, to_state: str | Enum) -> str:
        """상태 전이

        Raises:
            StateMachineError: 허용되지 않은 전이
        """
        target = to_state.value if isinstance(to_state, Enum) else to_state

        if not self.can_transition(target):
            allowed = self._transitions.get(self._state, [])
            raise StateMachineError(
                f"{self._name}: Cannot transition from {self._state} to {target}. "
                f"Allowed: {allowed}"
            )

        old_state = self._state
        self._state = target
        self._history.append((old_state, target))

        logger.debug(f"{self._name}: {old_state} → {target}")

        return target

    @property
    def history(self) -> list[tuple[str, str]]:
        """상태 전이 이력"""
        return self._history.copy()


class ClosingStateMachine(StateMachine):
    """일자 clôture 상태 머신

    전이 실패 시 StateMachineError 대신 도메인 예외를 발생시켜
    호출자(API, 큐 applier)가 그대로 전달할 수 있게 한다.
    """

    TRANSITIONS: dict[str, list[str]] = {
        "OPEN": ["RECONCILING"],
        "RECONCILING": ["CLOSED", "OPEN"],
    }

    def __init__(self, date_key: str, initial_state: str | ClosingState = ClosingState.OPEN):
        super().__init__(
            initial_state=initial_state,
            transitions=self.TRANSITIONS,
            name=f"ClosingStateMachine[{date_key}]",
        )
        self._date_key = date_key

    @property
    def is_terminal(self) -> bool:
        """종료 상태 여부 (CLOSED 이후 전이 없음)"""
        return self._state == ClosingState.CLOSED.value

    @property
    def accepts_transactions(self) -> bool:
        """거래 기록 가능 여부"""
        return self._state == ClosingState.OPEN.value

    def begin(self) -> str:
        """OPEN → RECONCILING

        Raises:
            AlreadyClosingError: OPEN이 아님
        """
        if not self.can_transition(ClosingState.RECONCILING):
            raise AlreadyClosingError(self._date_key, self._state)
        return self.transition(ClosingState.RECONCILING)

    def finalize(self) -> str:
        """RECONCILING → CLOSED

        Raises:
            ClosingStateError: RECONCILING이 아님
        """
        if self._state != ClosingState.RECONCILING.value:
            raise ClosingStateError(self._date_key, self._state, "finalize")
        return self.transition(ClosingState.CLOSED)

    def cancel(self) -> str:
        """RECONCILING → OPEN

        Raises:
            ClosingStateError: RECONCILING이 아님
        """
        if self._state != ClosingState.RECONCILING.value:
            raise ClosingStateError(self._date_key, self._state, "cancel")
        return self.transition(ClosingState.OPEN)
