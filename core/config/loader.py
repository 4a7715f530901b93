"""
설정 로더

settings.yaml 로드 및 런타임 설정 생성
"""

from dataclasses import dataclass, field
from datetime import tzinfo
from pathlib import Path
from typing import Any

import yaml

from core.constants import Defaults, Paths
from core.utils.timezone import get_zone


@dataclass(frozen=True)
class QueueSettings:
    """Operation Queue 재시도 설정"""

    max_retries: int = Defaults.QUEUE_MAX_RETRIES
    backoff_base_sec: float = Defaults.QUEUE_BACKOFF_BASE_SEC
    backoff_max_sec: float = Defaults.QUEUE_BACKOFF_MAX_SEC
    apply_timeout_sec: float = Defaults.QUEUE_APPLY_TIMEOUT_SEC


@dataclass(frozen=True)
class CacheSettings:
    """집계 캐시 설정"""

    ttl_sec: float = Defaults.CACHE_TTL_SEC


@dataclass(frozen=True)
class SlackSettings:
    """Slack 알림 설정 (dead-letter 운영자 알림)"""

    webhook_url: str
    channel: str | None = None
    timeout: float = 10.0


@dataclass(frozen=True)
class Settings:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    db_path: Path = Paths.DEFAULT_DB
    timezone: str = Defaults.TIMEZONE
    queue: QueueSettings = field(default_factory=QueueSettings)
    cache: CacheSettings = field(default_factory=CacheSettings)
    slack: SlackSettings | None = None
    web_host: str = Defaults.WEB_HOST
    web_port: int = Defaults.WEB_PORT
    drain_interval_sec: float = Defaults.DRAIN_INTERVAL_SEC
    poll_interval_sec: float = Defaults.POLL_INTERVAL_SEC
    seed_default_accounts: bool = True
    log_level: str = Defaults.LOG_LEVEL

    @property
    def zone(self) -> tzinfo:
        """영업 타임존"""
        return get_zone(self.timezone)


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise SettingsLoadError(f"settings.yaml의 '{name}' 섹션은 매핑이어야 합니다")
    return value


def _number(section: dict[str, Any], name: str, default: float, minimum: float = 0) -> float:
    value = section.get(name, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SettingsLoadError(f"'{name}'는 숫자여야 합니다: {value!r}")
    if value < minimum:
        raise SettingsLoadError(f"'{name}'는 {minimum} 이상이어야 합니다: {value!r}")
    return value


def load_settings(path: Path | None = None) -> Settings:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 인스턴스

    Raises:
        SettingsLoadError: 파일이 없거나 형식이 잘못된 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        raise SettingsLoadError(f"settings.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SettingsLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    # 타임존 검증
    timezone_name = data.get("timezone", Defaults.TIMEZONE)
    if not isinstance(timezone_name, str):
        raise SettingsLoadError(f"timezone은 문자열이어야 합니다: {timezone_name!r}")
    try:
        get_zone(timezone_name)
    except (ValueError, KeyError) as e:
        raise SettingsLoadError(f"유효하지 않은 timezone입니다: {timezone_name!r}") from e

    queue_data = _section(data, "queue")
    queue = QueueSettings(
        max_retries=int(_number(queue_data, "max_retries", Defaults.QUEUE_MAX_RETRIES)),
        backoff_base_sec=_number(queue_data, "backoff_base_sec", Defaults.QUEUE_BACKOFF_BASE_SEC),
        backoff_max_sec=_number(queue_data, "backoff_max_sec", Defaults.QUEUE_BACKOFF_MAX_SEC),
        apply_timeout_sec=_number(
            queue_data, "apply_timeout_sec", Defaults.QUEUE_APPLY_TIMEOUT_SEC, minimum=0.001
        ),
    )

    cache_data = _section(data, "cache")
    cache = CacheSettings(
        ttl_sec=_number(cache_data, "ttl_sec", Defaults.CACHE_TTL_SEC),
    )

    # Slack은 webhook_url이 있을 때만 활성화
    slack_data = _section(data, "slack")
    slack = None
    if slack_data.get("webhook_url"):
        slack = SlackSettings(
            webhook_url=slack_data["webhook_url"],
            channel=slack_data.get("channel") or None,
            timeout=_number(slack_data, "timeout", 10.0),
        )

    web_data = _section(data, "web")
    worker_data = _section(data, "worker")

    db_path = data.get("db_path")

    return Settings(
        db_path=Path(db_path) if db_path else Paths.DEFAULT_DB,
        timezone=timezone_name,
        queue=queue,
        cache=cache,
        slack=slack,
        web_host=web_data.get("host", Defaults.WEB_HOST),
        web_port=int(_number(web_data, "port", Defaults.WEB_PORT, minimum=1)),
        drain_interval_sec=_number(worker_data, "drain_interval_sec", Defaults.DRAIN_INTERVAL_SEC),
        poll_interval_sec=_number(worker_data, "poll_interval_sec", Defaults.POLL_INTERVAL_SEC),
        seed_default_accounts=bool(worker_data.get("seed_default_accounts", True)),
        log_level=str(data.get("log_level", Defaults.LOG_LEVEL)).upper(),
    )


_settings: Settings | None = None


def get_settings(path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환 (최초 호출 시 로드)

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)
    """
    global _settings
    if _settings is None:
        _settings = load_settings(path)
    return _settings


def reset_settings() -> None:
    """캐시된 Settings 초기화 (테스트용)"""
    global _settings
    _settings = None
