"""
Operation Queue

모든 문서 쓰기 의도를 대상 문서(collection/key)별 FIFO로 직렬 적용한다.

- 같은 대상: asyncio.Lock으로 상호 배제, 적재 순서대로 적용
- 다른 대상: 대상별 태스크로 동시 처리 (대상 간 순서 보장 없음)
- 적용: 읽기 → applier → revision CAS 쓰기
- 충돌/타임아웃: 무작위 backoff 후 재읽기 재시도, 소진 시 dead-letter
- 비즈니스 규칙 위반: 재시도 없이 호출자에게 전달
- 적용 성공: 로컬 리스너 호출 + 알림 채널에 document.changed 발행
"""

import asyncio
import logging
import random
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable

from adapters.interfaces import IDocumentStore, INotificationChannel, INotifier
from adapters.models import DeadLetter
from core.constants import Defaults, Topics
from core.domain.operations import Operation
from core.errors import (
    BUSINESS_ERRORS,
    ConflictError,
    InvalidOperationError,
    OperationCancelledError,
    OperationFailed,
)
from core.storage.dead_letter_store import DeadLetterStore
from core.storage.operation_store import OperationStore
from core.types import Actor
from core.utils.timezone import now_utc
from worker.queue.appliers import ApplyOutcome, OperationApplier, default_appliers

logger = logging.getLogger(__name__)


# 변경 신호 리스너 타입 (payload: collection, key, operation_id, revision)
ChangeListener = Callable[[dict[str, Any]], Awaitable[None]]


@dataclass
class _Entry:
    """큐 항목 (Operation + 결과 Future)"""

    operation: Operation
    future: asyncio.Future = field(repr=False)


def _retrieve_exception(future: asyncio.Future) -> None:
    # 아무도 기다리지 않는 Future의 예외 경고 방지
    if not future.cancelled():
        future.exception()


class OperationQueue:
    """Operation Queue

    Args:
        document_store: CAS 쓰기 대상 문서 저장소
        operation_store: Operation 저널 (None이면 메모리 전용, 재시작 복원 불가)
        dead_letter_store: dead-letter 조회/정리용 (operation_store와 함께 사용)
        channel: 변경 알림 채널 (선택)
        notifier: dead-letter 운영자 알림 (선택)
        appliers: 컬렉션별 applier (기본: ledger_days, accounts)
        max_retries: 충돌 시 재시도 횟수 (총 시도 = 1 + max_retries)
        backoff_base_sec: backoff 기준값
        backoff_max_sec: backoff 상한
        apply_timeout_sec: 1회 적용 제한 시간 (초과 시 충돌로 간주)
        rng: backoff 난수 생성기 (테스트에서 seed 고정)

    사용 예시:
    ```python
    queue = OperationQueue(document_store, operation_store, dead_letter_store)
    await queue.restore()

    # 적재 후 결과 대기
    transaction = await queue.submit(operation)

    # 적재만 하고 worker가 drain
    await queue.enqueue(operation)
    await queue.drain()
    ```
    """

    def __init__(
        self,
        document_store: IDocumentStore,
        operation_store: OperationStore | None = None,
        dead_letter_store: DeadLetterStore | None = None,
        channel: INotificationChannel | None = None,
        notifier: INotifier | None = None,
        appliers: list[OperationApplier] | None = None,
        max_retries: int = Defaults.QUEUE_MAX_RETRIES,
        backoff_base_sec: float = Defaults.QUEUE_BACKOFF_BASE_SEC,
        backoff_max_sec: float = Defaults.QUEUE_BACKOFF_MAX_SEC,
        apply_timeout_sec: float = Defaults.QUEUE_APPLY_TIMEOUT_SEC,
        rng: random.Random | None = None,
    ):
        if max_retries < 0:
            raise ValueError("max_retries는 0 이상이어야 합니다")

        self.document_store = document_store
        self.operation_store = operation_store
        self.dead_letter_store = dead_letter_store
        self.channel = channel
        self.notifier = notifier
        self.max_retries = max_retries
        self.backoff_base_sec = backoff_base_sec
        self.backoff_max_sec = backoff_max_sec
        self.apply_timeout_sec = apply_timeout_sec
        self._rng = rng or random.Random()

        self._appliers: dict[str, OperationApplier] = {}
        for applier in appliers if appliers is not None else default_appliers():
            self.register_applier(applier)

        # 대상별 대기열과 잠금
        self._pending: dict[str, deque[_Entry]] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._futures: dict[str, asyncio.Future] = {}
        self._in_flight: set[str] = set()
        self._enqueue_lock = asyncio.Lock()
        self._listeners: list[ChangeListener] = []

        # 저널이 없을 때의 dead-letter 보관
        self._memory_dead_letters: dict[str, DeadLetter] = {}

        # 통계
        self._enqueued_count = 0
        self._applied_count = 0
        self._rejected_count = 0
        self._conflict_count = 0
        self._timeout_count = 0
        self._dead_letter_count = 0
        self._cancelled_count = 0

    # -------------------------------------------------------------------------
    # 등록
    # -------------------------------------------------------------------------

    def register_applier(self, applier: OperationApplier) -> None:
        self._appliers[applier.collection] = applier
        logger.debug(f"Applier registered: {applier.collection}")

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """변경 신호 리스너 등록

        Returns:
            등록 해제 함수
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # -------------------------------------------------------------------------
    # 적재
    # -------------------------------------------------------------------------

    async def enqueue(self, operation: Operation) -> str:
        """Operation 적재

        저널 저장 후에 대기열에 보이게 된다.
        같은 operation_id가 이미 대기 중이면 무시하고 같은 ID를 반환.

        Returns:
            operation_id

        Raises:
            InvalidOperationError: 필수 필드 누락, 알 수 없는 컬렉션/종류
        """
        operation.validate()
        if operation.target_collection not in self._appliers:
            raise InvalidOperationError(
                f"applier가 등록되지 않은 컬렉션: {operation.target_collection!r}"
            )

        async with self._enqueue_lock:
            if operation.operation_id in self._futures:
                logger.debug(f"Duplicate enqueue ignored: {operation.operation_id}")
                return operation.operation_id

            if self.operation_store is not None:
                await self.operation_store.insert(operation)

            self._append(operation)
            self._enqueued_count += 1

        logger.debug(
            "Operation enqueued",
            extra={
                "operation_id": operation.operation_id,
                "target": operation.target,
                "kind": operation.kind,
            },
        )
        return operation.operation_id

    def _append(self, operation: Operation) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        future.add_done_callback(_retrieve_exception)
        future.add_done_callback(
            lambda _f, op_id=operation.operation_id: self._futures.pop(op_id, None)
        )
        self._futures[operation.operation_id] = future
        self._pending.setdefault(operation.target, deque()).append(
            _Entry(operation=operation, future=future)
        )
        return future

    async def restore(self) -> int:
        """저널에 남은 Operation 복원 (재시작 시)

        PENDING/PROCESSING 모두 저널 순서대로 다시 대기열에 넣는다.
        적용이 멱등이므로 이미 반영된 Operation도 안전하게 재적용된다.

        Returns:
            복원된 Operation 수
        """
        if self.operation_store is None:
            return 0

        restored = 0
        async with self._enqueue_lock:
            for operation in await self.operation_store.load_all():
                if operation.operation_id in self._futures:
                    continue
                self._append(operation)
                restored += 1

        if restored:
            logger.info(f"Operation 저널 복원: {restored}건")
        return restored

    async def submit(self, operation: Operation) -> Any:
        """적재 + 해당 대상 처리 + 결과 대기

        Returns:
            applier 결과 (Transaction, Account, LedgerDay 등)

        Raises:
            InvalidOperationError: 적재 거부
            OperationFailed: 재시도 소진
            OperationCancelledError: 적용 전 취소됨
            CaisseError 하위 비즈니스 예외: 규칙 위반
        """
        operation_id = await self.enqueue(operation)
        future = self._futures.get(operation_id)
        await self._drain_target(operation.target)
        self._cleanup_idle_targets()
        if future is None:
            # 중복 적재였고 이미 완료됨
            return None
        return await future

    async def wait(self, operation_id: str) -> Any:
        """대기 중인 Operation의 결과 대기

        Raises:
            KeyError: 대기 중인 Operation이 아님
        """
        future = self._futures.get(operation_id)
        if future is None:
            raise KeyError(operation_id)
        return await future

    # -------------------------------------------------------------------------
    # 취소
    # -------------------------------------------------------------------------

    async def cancel(self, operation_id: str) -> bool:
        """대기 중인 Operation 취소

        적용 중(in-flight)이거나 없는 Operation은 취소할 수 없다.

        Returns:
            취소 여부
        """
        if operation_id in self._in_flight:
            return False

        for entries in self._pending.values():
            for entry in entries:
                if entry.operation.operation_id != operation_id:
                    continue

                entries.remove(entry)
                if self.operation_store is not None:
                    await self.operation_store.delete(operation_id)
                if not entry.future.done():
                    entry.future.set_exception(OperationCancelledError(operation_id))
                self._cancelled_count += 1

                logger.info(
                    "Operation cancelled",
                    extra={"operation_id": operation_id, "target": entry.operation.target},
                )
                return True

        return False

    # -------------------------------------------------------------------------
    # 처리
    # -------------------------------------------------------------------------

    async def process_next(self) -> bool:
        """대기 중인 첫 대상의 head 하나 처리

        Returns:
            True: 처리함 / False: 대기 중인 Operation 없음
        """
        for target, entries in self._pending.items():
            if entries:
                return await self._process_head(target)
        return False

    async def drain(self) -> int:
        """모든 대상 처리 (대상별 동시, 대상 내 직렬)

        처리 중 새로 적재된 Operation도 소진될 때까지 반복.

        Returns:
            처리된 Operation 수
        """
        total = 0
        while True:
            targets = [target for target, entries in self._pending.items() if entries]
            if not targets:
                break
            counts = await asyncio.gather(*(self._drain_target(t) for t in targets))
            total += sum(counts)
            if not any(counts):
                # 다른 drain이 해당 대상들을 처리 중
                await asyncio.sleep(0)
        self._cleanup_idle_targets()
        return total

    async def _drain_target(self, target: str) -> int:
        processed = 0
        while await self._process_head(target):
            processed += 1
        return processed

    async def _process_head(self, target: str) -> bool:
        lock = self._locks.setdefault(target, asyncio.Lock())
        self._lock_users[target] = self._lock_users.get(target, 0) + 1
        try:
            async with lock:
                return await self._process_head_locked(target)
        finally:
            self._lock_users[target] -= 1

    async def _process_head_locked(self, target: str) -> bool:
        entries = self._pending.get(target)
        if not entries:
            return False

        entry = entries.popleft()
        operation = entry.operation
        self._in_flight.add(operation.operation_id)
        try:
            result = await self._apply_with_retry(operation)
        except asyncio.CancelledError:
            # 종료 중 취소: 저널에 남겨 재시작 시 복원
            if not entry.future.done():
                entry.future.cancel()
            raise
        except Exception as e:
            if not entry.future.done():
                entry.future.set_exception(e)
        else:
            if not entry.future.done():
                entry.future.set_result(result)
        finally:
            self._in_flight.discard(operation.operation_id)
        return True

    def _cleanup_idle_targets(self) -> None:
        for target in [t for t, entries in self._pending.items() if not entries]:
            self._pending.pop(target, None)
        # 대기/보유 중인 처리 루프가 없는 대상의 잠금만 제거
        for target in [t for t in self._locks if not self._lock_users.get(t)]:
            if target not in self._pending:
                self._locks.pop(target, None)
                self._lock_users.pop(target, None)

    def _backoff(self, attempt: int) -> float:
        """무작위 backoff (full jitter)"""
        ceiling = min(self.backoff_max_sec, self.backoff_base_sec * (2 ** attempt))
        return self._rng.uniform(0, ceiling)

    async def _apply_with_retry(self, operation: Operation) -> Any:
        attempts = operation.attempts
        last_error = ""
        timed_out = False

        for attempt in range(self.max_retries + 1):
            attempts += 1
            if self.operation_store is not None:
                await self.operation_store.mark_processing(operation.operation_id, attempts)

            try:
                outcome = await asyncio.wait_for(
                    self._apply_once(operation), timeout=self.apply_timeout_sec
                )
            except ConflictError as e:
                self._conflict_count += 1
                last_error = str(e)
            except asyncio.TimeoutError:
                self._timeout_count += 1
                timed_out = True
                last_error = f"apply timeout after {self.apply_timeout_sec}s"
            except BUSINESS_ERRORS as e:
                self._rejected_count += 1
                if self.operation_store is not None:
                    await self.operation_store.delete(operation.operation_id)
                logger.info(
                    f"Operation rejected: {type(e).__name__}",
                    extra={
                        "operation_id": operation.operation_id,
                        "target": operation.target,
                        "error": str(e),
                    },
                )
                raise
            except Exception as e:
                # 예상하지 못한 오류도 일시적 오류로 보고 재시도
                last_error = f"{type(e).__name__}: {e}"
                logger.error(
                    "Unexpected error while applying operation",
                    extra={"operation_id": operation.operation_id, "target": operation.target},
                    exc_info=True,
                )
            else:
                self._applied_count += 1
                if self.operation_store is not None:
                    await self.operation_store.delete(operation.operation_id)
                # 제한 시간 초과된 시도가 이미 반영됐을 수 있음
                if outcome.changed or timed_out:
                    await self._emit_changed(operation, outcome)
                return outcome.result

            if attempt < self.max_retries:
                delay = self._backoff(attempt)
                logger.debug(
                    "Operation retry scheduled",
                    extra={
                        "operation_id": operation.operation_id,
                        "attempts": attempts,
                        "delay": delay,
                        "error": last_error,
                    },
                )
                if self.operation_store is not None:
                    await self.operation_store.mark_retry(
                        operation.operation_id, attempts, last_error
                    )
                await asyncio.sleep(delay)

        await self._dead_letter(operation, attempts, last_error)
        raise OperationFailed(operation.operation_id, attempts, last_error)

    async def _apply_once(self, operation: Operation) -> ApplyOutcome:
        applier = self._appliers[operation.target_collection]

        current = await self.document_store.get(
            operation.target_collection, operation.target_key
        )
        outcome = await applier.apply(operation, current, self.document_store)
        if not outcome.changed:
            return outcome

        written = await self.document_store.put(
            operation.target_collection,
            operation.target_key,
            outcome.data,
            current.revision if current is not None else None,
        )
        return replace(outcome, revision=written.revision)

    async def _emit_changed(self, operation: Operation, outcome: ApplyOutcome) -> None:
        """변경 신호 (best-effort: 실패해도 적용 결과는 유지)"""
        payload = {
            "collection": operation.target_collection,
            "key": operation.target_key,
            "operation_id": operation.operation_id,
            "revision": outcome.revision,
        }

        for listener in list(self._listeners):
            try:
                await listener(payload)
            except Exception as e:
                logger.warning(f"Change listener failed: {e}", extra=payload, exc_info=True)

        if self.channel is not None:
            try:
                await self.channel.publish(Topics.DOCUMENT_CHANGED, payload)
            except Exception as e:
                logger.warning(f"Change notification publish failed: {e}", extra=payload)

    async def _dead_letter(self, operation: Operation, attempts: int, last_error: str) -> None:
        self._dead_letter_count += 1

        if self.operation_store is not None:
            await self.operation_store.move_to_dead_letter(operation, attempts, last_error)
        else:
            self._memory_dead_letters[operation.operation_id] = DeadLetter(
                operation_id=operation.operation_id,
                operation=operation.with_attempts(attempts).to_dict(),
                attempts=attempts,
                last_error=last_error,
                failed_at=now_utc(),
            )

        logger.error(
            "Operation dead-lettered",
            extra={
                "operation_id": operation.operation_id,
                "target": operation.target,
                "attempts": attempts,
                "last_error": last_error,
            },
        )

        if self.notifier is not None:
            try:
                await self.notifier.send_dead_letter_alert(
                    operation_id=operation.operation_id,
                    target=operation.target,
                    attempts=attempts,
                    last_error=last_error,
                )
            except Exception as e:
                logger.warning(
                    f"Dead-letter alert failed: {e}",
                    extra={"operation_id": operation.operation_id},
                    exc_info=True,
                )

        if self.channel is not None:
            try:
                await self.channel.publish(
                    Topics.OPERATION_FAILED,
                    {
                        "operation_id": operation.operation_id,
                        "collection": operation.target_collection,
                        "key": operation.target_key,
                        "attempts": attempts,
                    },
                )
            except Exception as e:
                logger.warning(f"Failure notification publish failed: {e}")

    # -------------------------------------------------------------------------
    # Dead letter 관리
    # -------------------------------------------------------------------------

    async def list_dead_letters(self, limit: int = 100) -> list[DeadLetter]:
        if self.dead_letter_store is not None:
            return await self.dead_letter_store.list(limit)
        letters = sorted(
            self._memory_dead_letters.values(), key=lambda d: d.failed_at, reverse=True
        )
        return letters[:limit]

    async def get_dead_letter(self, operation_id: str) -> DeadLetter | None:
        if self.dead_letter_store is not None:
            return await self.dead_letter_store.get(operation_id)
        return self._memory_dead_letters.get(operation_id)

    async def requeue_dead_letter(self, operation_id: str, actor: Actor) -> str | None:
        """dead-letter를 새 Operation으로 다시 적재

        원 Operation과 같은 의도를 새 ID로 적재한다 (시도 횟수 초기화).

        Returns:
            새 operation_id 또는 None (없음)
        """
        letter = await self.get_dead_letter(operation_id)
        if letter is None:
            return None

        original = Operation.from_dict(letter.operation)
        operation = Operation.create(
            kind=original.kind,
            target_collection=original.target_collection,
            target_key=original.target_key,
            payload=original.payload,
            actor=actor.id,
        )
        new_id = await self.enqueue(operation)
        await self.discard_dead_letter(operation_id)

        logger.info(
            "Dead letter requeued",
            extra={"operation_id": operation_id, "new_operation_id": new_id, "actor": actor.id},
        )
        return new_id

    async def discard_dead_letter(self, operation_id: str) -> bool:
        if self.dead_letter_store is not None:
            return await self.dead_letter_store.delete(operation_id)
        return self._memory_dead_letters.pop(operation_id, None) is not None

    async def dead_letter_count(self) -> int:
        if self.dead_letter_store is not None:
            return await self.dead_letter_store.count()
        return len(self._memory_dead_letters)

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    def pending_count(self) -> int:
        """대기 + 적용 중 Operation 수"""
        return sum(len(entries) for entries in self._pending.values()) + len(self._in_flight)

    def is_pending(self, operation_id: str) -> bool:
        return operation_id in self._futures

    def get_stats(self) -> dict[str, Any]:
        """큐 통계"""
        return {
            "pending": self.pending_count(),
            "in_flight": len(self._in_flight),
            "targets": sum(1 for entries in self._pending.values() if entries),
            "enqueued": self._enqueued_count,
            "applied": self._applied_count,
            "rejected": self._rejected_count,
            "conflicts": self._conflict_count,
            "timeouts": self._timeout_count,
            "dead_lettered": self._dead_letter_count,
            "cancelled": self._cancelled_count,
        }
