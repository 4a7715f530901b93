"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → caisse-engine/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    TIMEZONE: str = "UTC"

    # Operation Queue
    QUEUE_MAX_RETRIES: int = 5
    QUEUE_BACKOFF_BASE_SEC: float = 0.05
    QUEUE_BACKOFF_MAX_SEC: float = 2.0
    QUEUE_APPLY_TIMEOUT_SEC: float = 10.0

    # Cache
    CACHE_TTL_SEC: float = 300.0  # 5분

    # Worker
    DRAIN_INTERVAL_SEC: float = 1.0
    POLL_INTERVAL_SEC: float = 2.0

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    WORKER_LOGS_DIR: Path = LOGS_DIR / "worker"
    WEB_LOGS_DIR: Path = LOGS_DIR / "web"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    DEFAULT_DB: Path = DATA_DIR / "caisse.db"


class Collections:
    """Document Store 컬렉션 이름

    Operation의 target_collection으로 사용 가능한 값.
    """

    ACCOUNTS: str = "accounts"
    LEDGER_DAYS: str = "ledger_days"

    @classmethod
    def all(cls) -> list[str]:
        return [cls.ACCOUNTS, cls.LEDGER_DAYS]


class Topics:
    """알림 채널 토픽"""

    DOCUMENT_CHANGED: str = "document.changed"
    OPERATION_FAILED: str = "operation.failed"


class CacheKeys:
    """캐시 키 접두사"""

    SUMMARY_PREFIX: str = "summary:"
    ACCOUNTS: str = "accounts:all"

    @staticmethod
    def summary(period: str, period_key: str) -> str:
        """집계 캐시 키 (예: summary:day:2025-01-01)"""
        return f"summary:{period}:{period_key}"
