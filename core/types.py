"""
타입 정의 모듈

Enum, Dataclass 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from dataclasses import dataclass
from enum import Enum


class OperationKind(str, Enum):
    """큐에 적재되는 쓰기 의도 종류"""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class OperationStatus(str, Enum):
    """Operation 저널 상태

    성공/거부/취소된 Operation은 저널에서 삭제되므로
    저널에는 PENDING, PROCESSING만 남는다.
    """

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"


class AccountCategory(str, Enum):
    """계정 방향 (입금 / 출금)"""

    ENTRY = "ENTRY"
    EXIT = "EXIT"


class AccountType(str, Enum):
    """계정 유형 (회계 계정 / 자금 계정)"""

    COMPTABLE = "COMPTABLE"
    TRESORERIE = "TRESORERIE"


class ClosingState(str, Enum):
    """일자별 clôture 상태"""

    OPEN = "OPEN"
    RECONCILING = "RECONCILING"
    CLOSED = "CLOSED"


class BilanStatus(str, Enum):
    """기간 결과 (resultat) 부호"""

    POSITIF = "positif"
    NEGATIF = "negatif"
    EQUILIBRE = "equilibre"


class PeriodKind(str, Enum):
    """집계 기간 종류"""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class ActorKind(str, Enum):
    """행위자 종류"""

    USER = "USER"
    SYSTEM = "SYSTEM"
    OPERATOR = "OPERATOR"


@dataclass(frozen=True)
class Actor:
    """행위자 (불변)

    Operation 발행자를 식별
    """

    kind: str
    id: str

    @classmethod
    def user(cls, user_id: str) -> "Actor":
        """사용자 Actor 생성"""
        return cls(kind=ActorKind.USER.value, id=f"user:{user_id}")

    @classmethod
    def system(cls, system_name: str) -> "Actor":
        """시스템 Actor 생성"""
        return cls(kind=ActorKind.SYSTEM.value, id=f"system:{system_name}")

    @classmethod
    def operator(cls, operator_id: str) -> "Actor":
        """운영자 Actor 생성 (dead-letter 재처리 등)"""
        return cls(kind=ActorKind.OPERATOR.value, id=f"operator:{operator_id}")

    @classmethod
    def parse(cls, value: str) -> "Actor":
        """'user:abc' 형태 문자열 → Actor"""
        prefix = value.split(":", 1)[0]
        kind = {
            "user": ActorKind.USER.value,
            "operator": ActorKind.OPERATOR.value,
        }.get(prefix, ActorKind.SYSTEM.value)
        return cls(kind=kind, id=value)
