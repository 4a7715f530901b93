"""
Slack Notifier 테스트

SlackNotifier 단위 테스트.
httpx를 모킹하여 실제 네트워크 호출 없이 테스트.
"""

from datetime import timezone
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from adapters.interfaces import INotifier
from adapters.slack.notifier import LEVEL_COLOR, LEVEL_EMOJI, SlackNotifier


def ok_response() -> MagicMock:
    response = MagicMock()
    response.status_code = 200
    return response


class TestSlackNotifierProtocol:
    """SlackNotifier Protocol 준수 테스트"""

    def test_implements_inotifier_protocol(self) -> None:
        notifier = SlackNotifier(webhook_url="https://hooks.slack.com/test")
        assert isinstance(notifier, INotifier)


class TestSlackNotifierInit:
    """SlackNotifier 초기화 테스트"""

    def test_init_with_webhook_url(self) -> None:
        notifier = SlackNotifier(webhook_url="https://hooks.slack.com/test")

        assert notifier.webhook_url == "https://hooks.slack.com/test"
        assert notifier.channel is None
        assert notifier.username == "CaisseEngine"
        assert notifier.timeout == 10.0
        assert notifier.zone is timezone.utc

    def test_init_with_all_options(self) -> None:
        notifier = SlackNotifier(
            webhook_url="https://hooks.slack.com/test",
            channel="#caisse",
            username="Gérant",
            timeout=5.0,
            zone="Africa/Abidjan",
        )

        assert notifier.channel == "#caisse"
        assert notifier.username == "Gérant"
        assert notifier.timeout == 5.0

    def test_init_without_webhook_url_raises(self) -> None:
        with pytest.raises(ValueError, match="webhook_url은 필수입니다"):
            SlackNotifier(webhook_url="")


class TestSlackNotifierSend:
    """SlackNotifier.send() 테스트"""

    @pytest.fixture
    def notifier(self) -> SlackNotifier:
        return SlackNotifier(webhook_url="https://hooks.slack.com/test")

    @pytest.mark.asyncio
    async def test_send_success(self, notifier: SlackNotifier) -> None:
        with patch.object(notifier, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.post.return_value = ok_response()
            mock_get_client.return_value = mock_client

            result = await notifier.send("마감되지 않은 일자: 2025-01-14", level="WARNING")

            assert result is True
            mock_client.post.assert_called_once()
            payload = mock_client.post.call_args.kwargs["json"]
            attachment = payload["attachments"][0]
            assert attachment["color"] == LEVEL_COLOR["WARNING"]
            assert "2025-01-14" in attachment["text"]
            assert payload["username"] == "CaisseEngine"

    @pytest.mark.asyncio
    async def test_send_with_extra_data(self, notifier: SlackNotifier) -> None:
        with patch.object(notifier, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.post.return_value = ok_response()
            mock_get_client.return_value = mock_client

            await notifier.send("테스트", extra={"days": 2, "queue": "ok"})

            payload = mock_client.post.call_args.kwargs["json"]
            fields = payload["attachments"][0]["fields"]
            assert {"title": "days", "value": "2", "short": True} in fields

    @pytest.mark.asyncio
    async def test_send_with_channel_override(self) -> None:
        notifier = SlackNotifier(webhook_url="https://hooks.slack.com/test", channel="#caisse")

        with patch.object(notifier, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.post.return_value = ok_response()
            mock_get_client.return_value = mock_client

            await notifier.send("테스트")

            assert mock_client.post.call_args.kwargs["json"]["channel"] == "#caisse"

    @pytest.mark.asyncio
    async def test_send_failure_status_code(self, notifier: SlackNotifier) -> None:
        response = MagicMock()
        response.status_code = 500
        response.text = "Internal Server Error"

        with patch.object(notifier, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.post.return_value = response
            mock_get_client.return_value = mock_client

            assert await notifier.send("테스트") is False

    @pytest.mark.asyncio
    async def test_send_timeout(self, notifier: SlackNotifier) -> None:
        with patch.object(notifier, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.post.side_effect = httpx.TimeoutException("timeout")
            mock_get_client.return_value = mock_client

            assert await notifier.send("테스트") is False

    @pytest.mark.asyncio
    async def test_send_http_error(self, notifier: SlackNotifier) -> None:
        with patch.object(notifier, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.post.side_effect = httpx.HTTPError("connection error")
            mock_get_client.return_value = mock_client

            assert await notifier.send("테스트") is False


class TestSlackNotifierDeadLetterAlert:
    """SlackNotifier.send_dead_letter_alert() 테스트"""

    @pytest.mark.asyncio
    async def test_dead_letter_alert(self) -> None:
        notifier = SlackNotifier(webhook_url="https://hooks.slack.com/test")

        with patch.object(notifier, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.post.return_value = ok_response()
            mock_get_client.return_value = mock_client

            result = await notifier.send_dead_letter_alert(
                operation_id="COP-1a2b3c4d5e6f",
                target="ledger_days/2025-01-15",
                attempts=6,
                last_error="Revision conflict on ledger_days/2025-01-15",
            )

            assert result is True
            attachment = mock_client.post.call_args.kwargs["json"]["attachments"][0]
            assert "COP-1a2b3c4d5e6f" in attachment["title"]
            assert attachment["color"] == LEVEL_COLOR["ERROR"]
            values = {f["title"]: f["value"] for f in attachment["fields"]}
            assert values["대상"] == "ledger_days/2025-01-15"
            assert values["시도 횟수"] == "6"

    @pytest.mark.asyncio
    async def test_long_error_truncated(self) -> None:
        notifier = SlackNotifier(webhook_url="https://hooks.slack.com/test")

        with patch.object(notifier, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.post.return_value = ok_response()
            mock_get_client.return_value = mock_client

            await notifier.send_dead_letter_alert("COP-1", "accounts/a", 6, "x" * 2000)

            fields = mock_client.post.call_args.kwargs["json"]["attachments"][0]["fields"]
            error_field = next(f for f in fields if f["title"] == "오류")
            assert len(error_field["value"]) == 500


class TestSlackNotifierLevelMapping:
    """레벨 매핑 테스트"""

    def test_level_emoji_mapping(self) -> None:
        assert LEVEL_EMOJI["INFO"] == ":white_check_mark:"
        assert LEVEL_EMOJI["ERROR"] == ":x:"

    def test_level_color_mapping(self) -> None:
        assert LEVEL_COLOR["WARNING"] == "#FFA500"
        assert LEVEL_COLOR["CRITICAL"] == "#8B0000"


class TestSlackNotifierContextManager:
    """Context Manager 테스트"""

    @pytest.mark.asyncio
    async def test_async_context_manager(self) -> None:
        async with SlackNotifier(webhook_url="https://hooks.slack.com/test") as notifier:
            await notifier._get_client()

        assert notifier._client is None

    @pytest.mark.asyncio
    async def test_close_without_client(self) -> None:
        notifier = SlackNotifier(webhook_url="https://hooks.slack.com/test")
        await notifier.close()
