"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
Worker와 Web이 동시에 접근 가능하도록 설정.

주의: SQLite alias로 time, count 사용 금지 (예약어)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.constants import PROJECT_ROOT, Paths

logger = logging.getLogger(__name__)


def get_db_path(db_path: Path | str | None = None) -> Path:
    """설정값에 따른 DB 경로 반환

    Args:
        db_path: 설정 파일의 db_path (상대 경로면 프로젝트 루트 기준)

    Returns:
        DB 파일 경로 (Path 타입)
    """
    if db_path is None:
        return Paths.DEFAULT_DB

    path = Path(db_path)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부

    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)

    # 디렉토리가 없으면 생성
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    if readonly:
        conn = await aiosqlite.connect(f"file:{db_path_str}?mode=ro", uri=True)
    else:
        conn = await aiosqlite.connect(db_path_str)

    await conn.execute("PRAGMA journal_mode=WAL")

    # 동시 접근 설정 (worker + web 프로세스)
    await conn.execute("PRAGMA busy_timeout=30000")

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    트랜잭션 컨텍스트 매니저 제공.

    하나의 연결을 여러 태스크가 공유하므로 다중 문장 트랜잭션은
    transaction()의 잠금으로 직렬화된다. 단일 문장 쓰기는
    execute() + commit()으로 충분하다.

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.transaction() as conn:
        await conn.execute("INSERT INTO ...")

    await adapter.close()
    ```
    """

    def __init__(self, db_path: Path | str, readonly: bool = False):
        self.db_path = Path(db_path)
        self.readonly = readonly
        self._conn: aiosqlite.Connection | None = None
        self._tx_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    async def connect(self) -> None:
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path, self.readonly)

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        if parameters:
            return await self._conn.execute(sql, parameters)
        return await self._conn.execute(sql)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def commit(self) -> None:
        if self._conn is not None:
            await self._conn.commit()

    async def rollback(self) -> None:
        if self._conn is not None:
            await self._conn.rollback()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 컨텍스트 매니저

        성공 시 자동 커밋, 예외 시 자동 롤백.

        사용 예시:
        ```python
        async with adapter.transaction() as conn:
            await conn.execute("INSERT INTO ...")
            # 성공 시 자동 커밋
        ```
        """
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        async with self._tx_lock:
            try:
                yield self._conn
                await self._conn.commit()
            except Exception:
                await self._conn.rollback()
                raise

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def init_schema(adapter: SQLiteAdapter) -> None:
    """스키마 초기화 (테이블 생성)

    Args:
        adapter: 연결된 SQLiteAdapter
    """
    # documents (revision 기반 CAS 대상)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS documents (
            collection   TEXT NOT NULL,
            doc_key      TEXT NOT NULL,
            data_json    TEXT NOT NULL,
            revision     INTEGER NOT NULL DEFAULT 1,
            updated_at   TEXT NOT NULL DEFAULT (datetime('now')),

            PRIMARY KEY (collection, doc_key)
        )
    """)

    # operation_queue (적용 전 Operation 저널)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS operation_queue (
            seq               INTEGER PRIMARY KEY AUTOINCREMENT,
            operation_id      TEXT NOT NULL UNIQUE,
            kind              TEXT NOT NULL,
            target_collection TEXT NOT NULL,
            target_key        TEXT NOT NULL,
            payload_json      TEXT NOT NULL,
            actor             TEXT NOT NULL,
            enqueued_at       TEXT NOT NULL,

            status            TEXT NOT NULL DEFAULT 'PENDING',
            attempts          INTEGER NOT NULL DEFAULT 0,
            last_error        TEXT,

            updated_at        TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # dead_letter (재시도 소진 Operation)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS dead_letter (
            seq               INTEGER PRIMARY KEY AUTOINCREMENT,
            operation_id      TEXT NOT NULL UNIQUE,
            target_collection TEXT NOT NULL,
            target_key        TEXT NOT NULL,
            operation_json    TEXT NOT NULL,
            attempts          INTEGER NOT NULL,
            last_error        TEXT NOT NULL,
            failed_at         TEXT NOT NULL
        )
    """)

    # notification_log (프로세스 간 알림 채널)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS notification_log (
            seq           INTEGER PRIMARY KEY AUTOINCREMENT,
            topic         TEXT NOT NULL,
            payload_json  TEXT NOT NULL,
            published_at  TEXT NOT NULL
        )
    """)

    # 인덱스 생성
    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_operation_queue_target
        ON operation_queue(target_collection, target_key, seq)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_notification_log_topic
        ON notification_log(topic, seq)
    """)

    await adapter.commit()

    logger.info("스키마 초기화 완료")
