"""
Web 진입점

실행 방법:
    python -m web
"""

import sys

import uvicorn

from core.config.loader import SettingsLoadError, get_settings
from core.logging import setup_logging

if __name__ == "__main__":
    try:
        settings = get_settings()
    except SettingsLoadError as e:
        print(f"설정 로드 실패: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging("web", console_level=settings.log_level, file_level=settings.log_level)

    uvicorn.run(
        "web.app:app",
        host=settings.web_host,
        port=settings.web_port,
        reload=False,
        log_config=None,
    )
