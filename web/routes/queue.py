"""
Queue 라우트

Operation Queue 통계 및 dead-letter 관리 API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from core.types import Actor
from web.dependencies import get_queue
from web.models.requests import DeadLetterRequeueRequest
from web.models.responses import (
    DeadLetterListResponse,
    DeadLetterResponse,
    QueueStatsResponse,
    RequeueResponse,
)
from worker.queue.queue import OperationQueue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/queue", tags=["Queue"])


@router.get("/stats", response_model=QueueStatsResponse)
async def get_queue_stats(queue: OperationQueue = Depends(get_queue)) -> QueueStatsResponse:
    """큐 통계 (이 프로세스 기준) + 보관 중인 dead-letter 수"""
    return QueueStatsResponse(
        **queue.get_stats(),
        dead_letters=await queue.dead_letter_count(),
    )


@router.get("/dead-letters", response_model=DeadLetterListResponse)
async def list_dead_letters(
    limit: int = Query(default=100, ge=1, le=1000, description="조회 제한"),
    queue: OperationQueue = Depends(get_queue),
) -> DeadLetterListResponse:
    letters = await queue.list_dead_letters(limit)
    return DeadLetterListResponse(
        dead_letters=[DeadLetterResponse.from_dead_letter(d) for d in letters],
        total=len(letters),
    )


@router.get("/dead-letters/{operation_id}", response_model=DeadLetterResponse)
async def get_dead_letter(
    operation_id: str = Path(..., description="Operation ID"),
    queue: OperationQueue = Depends(get_queue),
) -> DeadLetterResponse:
    letter = await queue.get_dead_letter(operation_id)
    if letter is None:
        raise HTTPException(status_code=404, detail=f"Dead letter not found: {operation_id}")
    return DeadLetterResponse.from_dead_letter(letter)


@router.post("/dead-letters/{operation_id}/requeue", response_model=RequeueResponse)
async def requeue_dead_letter(
    request: DeadLetterRequeueRequest,
    operation_id: str = Path(..., description="Operation ID"),
    queue: OperationQueue = Depends(get_queue),
) -> RequeueResponse:
    """dead-letter를 새 Operation으로 다시 적재하고 처리

    처리 결과(성공/재실패)는 큐 통계와 dead-letter 목록으로 확인.
    """
    new_id = await queue.requeue_dead_letter(operation_id, Actor.operator(request.operator))
    if new_id is None:
        raise HTTPException(status_code=404, detail=f"Dead letter not found: {operation_id}")

    await queue.drain()

    return RequeueResponse(
        operation_id=operation_id,
        new_operation_id=new_id,
        message="Requeued",
    )


@router.delete("/dead-letters/{operation_id}")
async def discard_dead_letter(
    operation_id: str = Path(..., description="Operation ID"),
    queue: OperationQueue = Depends(get_queue),
) -> dict[str, str]:
    """dead-letter 폐기 (적용하지 않음)"""
    if not await queue.discard_dead_letter(operation_id):
        raise HTTPException(status_code=404, detail=f"Dead letter not found: {operation_id}")

    logger.info("Dead letter discarded", extra={"operation_id": operation_id})
    return {"operation_id": operation_id, "message": "Discarded"}
