"""
타입 정의 테스트
"""

import pytest

from core.types import (
    AccountCategory,
    AccountType,
    Actor,
    ActorKind,
    ClosingState,
    OperationKind,
    PeriodKind,
)


class TestEnums:
    """Enum 직렬화 테스트"""

    def test_str_enums(self) -> None:
        assert OperationKind.CREATE == "CREATE"
        assert ClosingState("RECONCILING") is ClosingState.RECONCILING
        assert AccountCategory.EXIT.value == "EXIT"
        assert AccountType("TRESORERIE") is AccountType.TRESORERIE
        assert PeriodKind.WEEK.value == "week"

    def test_invalid_value(self) -> None:
        with pytest.raises(ValueError):
            ClosingState("ARCHIVED")


class TestActor:
    """Actor 테스트"""

    def test_factories(self) -> None:
        assert Actor.user("awa") == Actor(kind=ActorKind.USER.value, id="user:awa")
        assert Actor.system("init").id == "system:init"
        assert Actor.operator("admin").kind == "OPERATOR"

    @pytest.mark.parametrize(
        "value,kind",
        [
            ("user:awa", "USER"),
            ("operator:admin", "OPERATOR"),
            ("system:worker", "SYSTEM"),
            ("web:admin", "SYSTEM"),
        ],
    )
    def test_parse(self, value: str, kind: str) -> None:
        actor = Actor.parse(value)

        assert actor.kind == kind
        assert actor.id == value

    def test_immutable(self) -> None:
        actor = Actor.user("awa")
        with pytest.raises(AttributeError):
            actor.id = "user:other"  # type: ignore[misc]
