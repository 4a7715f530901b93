"""
Slack 알림 서비스

Slack Webhook을 통해 운영자 알림을 전송.
INotifier Protocol 준수.
"""

import logging
from datetime import tzinfo
from typing import Any

import httpx

from core.utils.timezone import get_zone, now_utc, to_business

logger = logging.getLogger(__name__)


# 레벨별 이모지 매핑
LEVEL_EMOJI = {
    "INFO": ":white_check_mark:",
    "WARNING": ":warning:",
    "ERROR": ":x:",
    "CRITICAL": ":rotating_light:",
}

# 레벨별 색상 매핑 (Slack attachment color)
LEVEL_COLOR = {
    "INFO": "#36A64F",
    "WARNING": "#FFA500",
    "ERROR": "#FF0000",
    "CRITICAL": "#8B0000",
}


class SlackNotifier:
    """Slack 알림 서비스

    INotifier Protocol 구현.
    Slack Webhook URL을 통해 메시지 전송.

    사용 예시:
    ```python
    notifier = SlackNotifier(webhook_url="https://hooks.slack.com/...")

    await notifier.send("worker 시작됨", level="INFO")
    await notifier.send_dead_letter_alert(
        operation_id="COP-1a2b3c4d5e6f",
        target="ledger_days/2025-01-01",
        attempts=6,
        last_error="Revision conflict ...",
    )
    ```
    """

    def __init__(
        self,
        webhook_url: str,
        channel: str | None = None,
        username: str = "CaisseEngine",
        timeout: float = 10.0,
        zone: tzinfo | str = "UTC",
    ):
        """
        Args:
            webhook_url: Slack Incoming Webhook URL
            channel: 채널 오버라이드 (기본값은 Webhook 설정 사용)
            username: 메시지 발송자 이름
            timeout: HTTP 요청 타임아웃 (초)
            zone: footer 시각 표시용 영업 타임존
        """
        if not webhook_url:
            raise ValueError("webhook_url은 필수입니다")

        self.webhook_url = webhook_url
        self.channel = channel
        self.username = username
        self.timeout = timeout
        self.zone = get_zone(zone) if isinstance(zone, str) else zone

        # httpx 비동기 클라이언트 (재사용)
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """HTTP 클라이언트 반환 (lazy initialization)"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def send(
        self,
        message: str,
        level: str = "INFO",
        extra: dict[str, Any] | None = None,
    ) -> bool:
        """알림 전송

        Args:
            message: 알림 메시지
            level: 알림 레벨 (INFO, WARNING, ERROR, CRITICAL)
            extra: 추가 데이터 (attachment fields로 표시)

        Returns:
            전송 성공 여부
        """
        emoji = LEVEL_EMOJI.get(level, ":bell:")
        color = LEVEL_COLOR.get(level, "#808080")

        payload: dict[str, Any] = {
            "username": self.username,
            "attachments": [
                {
                    "color": color,
                    "text": f"{emoji} *[{level}]* {message}",
                    "footer": f"CaisseEngine | {self._format_timestamp()}",
                }
            ],
        }

        if self.channel:
            payload["channel"] = self.channel

        if extra:
            payload["attachments"][0]["fields"] = [
                {"title": key, "value": str(value), "short": True}
                for key, value in extra.items()
            ]

        return await self._send_payload(payload)

    async def send_dead_letter_alert(
        self,
        operation_id: str,
        target: str,
        attempts: int,
        last_error: str,
    ) -> bool:
        """dead-letter 알림 전송 (포맷팅된 메시지)

        Args:
            operation_id: 실패한 Operation ID
            target: 대상 문서 (collection/key)
            attempts: 시도 횟수
            last_error: 마지막 오류

        Returns:
            전송 성공 여부
        """
        fields = [
            {"title": "Operation", "value": operation_id, "short": True},
            {"title": "대상", "value": target, "short": True},
            {"title": "시도 횟수", "value": str(attempts), "short": True},
            {"title": "오류", "value": last_error[:500], "short": False},
        ]

        payload: dict[str, Any] = {
            "username": self.username,
            "attachments": [
                {
                    "color": LEVEL_COLOR["ERROR"],
                    "title": f"{LEVEL_EMOJI['ERROR']} Dead letter: {operation_id}",
                    "text": "재시도 소진. 운영자 확인 필요 (requeue / discard)",
                    "fields": fields,
                    "footer": f"CaisseEngine | {self._format_timestamp()}",
                }
            ],
        }

        if self.channel:
            payload["channel"] = self.channel

        return await self._send_payload(payload)

    async def _send_payload(self, payload: dict[str, Any]) -> bool:
        """Slack Webhook으로 페이로드 전송

        알림 실패는 본 처리 흐름을 막지 않도록 bool로만 보고.
        """
        try:
            client = await self._get_client()
            response = await client.post(self.webhook_url, json=payload)

            if response.status_code == 200:
                logger.debug("Slack 알림 전송 성공")
                return True

            logger.warning(
                "Slack 알림 전송 실패: status=%s, body=%s",
                response.status_code,
                response.text,
            )
            return False

        except httpx.TimeoutException:
            logger.error("Slack 알림 전송 타임아웃")
            return False
        except httpx.HTTPError as e:
            logger.error("Slack 알림 전송 HTTP 에러: %s", e)
            return False

    def _format_timestamp(self) -> str:
        """현재 시간을 영업 타임존으로 포맷"""
        local_now = to_business(now_utc(), self.zone)
        return local_now.strftime("%Y-%m-%d %H:%M:%S %Z")

    # -------------------------------------------------------------------------
    # Context Manager 지원
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SlackNotifier":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
