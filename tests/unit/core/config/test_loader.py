"""
설정 로더 테스트
"""

from datetime import timezone
from pathlib import Path

import pytest

from core.config.loader import (
    Settings,
    SettingsLoadError,
    get_settings,
    load_settings,
    reset_settings,
)
from core.constants import Defaults, Paths


class TestLoadSettings:
    """load_settings 테스트"""

    def test_load_full_file(self, settings_file: Path) -> None:
        settings = load_settings(settings_file)

        assert settings.db_path == Path("data/test.db")
        assert settings.timezone == "Africa/Abidjan"
        assert settings.log_level == "DEBUG"
        assert settings.queue.max_retries == 3
        assert settings.queue.backoff_base_sec == 0.01
        assert settings.queue.apply_timeout_sec == 5
        assert settings.cache.ttl_sec == 60
        assert settings.drain_interval_sec == 0.5
        assert settings.poll_interval_sec == 1
        assert settings.seed_default_accounts is False
        assert settings.web_host == "0.0.0.0"
        assert settings.web_port == 8080
        assert settings.slack is not None
        assert settings.slack.channel == "#caisse"
        assert settings.slack.timeout == 10.0

    def test_empty_file_uses_defaults(self, temp_dir: Path) -> None:
        path = temp_dir / "settings.yaml"
        path.write_text("", encoding="utf-8")

        settings = load_settings(path)

        assert settings == Settings()
        assert settings.db_path == Paths.DEFAULT_DB
        assert settings.timezone == Defaults.TIMEZONE
        assert settings.zone is timezone.utc
        assert settings.slack is None

    def test_file_not_found(self, temp_dir: Path) -> None:
        with pytest.raises(SettingsLoadError, match="찾을 수 없습니다"):
            load_settings(temp_dir / "missing.yaml")

    def test_invalid_yaml(self, temp_dir: Path) -> None:
        path = temp_dir / "settings.yaml"
        path.write_text("queue: [unclosed", encoding="utf-8")

        with pytest.raises(SettingsLoadError):
            load_settings(path)

    def test_top_level_not_mapping(self, temp_dir: Path) -> None:
        path = temp_dir / "settings.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(SettingsLoadError):
            load_settings(path)

    def test_unknown_timezone(self, temp_dir: Path) -> None:
        path = temp_dir / "settings.yaml"
        path.write_text("timezone: Mars/Olympus\n", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="timezone"):
            load_settings(path)

    def test_slack_disabled_without_webhook(self, temp_dir: Path) -> None:
        path = temp_dir / "settings.yaml"
        path.write_text('slack:\n  webhook_url: ""\n  channel: "#x"\n', encoding="utf-8")

        assert load_settings(path).slack is None

    @pytest.mark.parametrize(
        "content",
        [
            "queue:\n  max_retries: -1\n",
            "queue:\n  backoff_base_sec: fast\n",
            "queue:\n  apply_timeout_sec: 0\n",
            "cache:\n  ttl_sec: true\n",
            "web:\n  port: 0\n",
            "queue: 5\n",
        ],
    )
    def test_invalid_values(self, temp_dir: Path, content: str) -> None:
        path = temp_dir / "settings.yaml"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(SettingsLoadError):
            load_settings(path)


class TestGetSettings:
    """get_settings 캐시 테스트"""

    def test_cached(self, settings_file: Path) -> None:
        reset_settings()
        try:
            first = get_settings(settings_file)
            second = get_settings()

            assert first is second
        finally:
            reset_settings()

    def test_settings_immutable(self) -> None:
        settings = Settings()

        with pytest.raises(AttributeError):
            settings.timezone = "Europe/Paris"  # type: ignore[misc]
