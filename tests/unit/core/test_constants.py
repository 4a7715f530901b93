"""
상수 테스트
"""

from pathlib import Path

from core.constants import PROJECT_ROOT, CacheKeys, Collections, Defaults, Paths, Topics


class TestPaths:
    """경로 상수"""

    def test_paths_are_pathlib(self) -> None:
        assert isinstance(Paths.SETTINGS_FILE, Path)
        assert isinstance(Paths.DEFAULT_DB, Path)

    def test_paths_under_project_root(self) -> None:
        assert Paths.CONFIG_DIR.parent == PROJECT_ROOT
        assert Paths.WORKER_LOGS_DIR.parent == Paths.LOGS_DIR
        assert Paths.DEFAULT_DB.parent == Paths.DATA_DIR


class TestDefaults:
    """기본값"""

    def test_queue_defaults(self) -> None:
        assert Defaults.QUEUE_MAX_RETRIES >= 0
        assert 0 < Defaults.QUEUE_BACKOFF_BASE_SEC <= Defaults.QUEUE_BACKOFF_MAX_SEC

    def test_timezone(self) -> None:
        assert Defaults.TIMEZONE == "UTC"


def test_collections() -> None:
    assert Collections.all() == ["accounts", "ledger_days"]


def test_topics() -> None:
    assert Topics.DOCUMENT_CHANGED != Topics.OPERATION_FAILED


def test_summary_cache_key() -> None:
    key = CacheKeys.summary("week", "2025-W03")

    assert key == "summary:week:2025-W03"
    assert key.startswith(CacheKeys.SUMMARY_PREFIX)
