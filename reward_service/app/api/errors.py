"""도메인 예외를 HTTPException 으로 변환한다.

에러 응답 본문은 {"code": ..., "message": ...} 형태이며 일부 예외는 추가 필드를 싣는다.
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status

from ..exceptions import (
    AllRewardsExpiredError,
    InsufficientFundsError,
    InvalidStateError,
    NotEligibleError,
    NotFoundError,
    RewardServiceError,
    StoreError,
    WalletMissingError,
)
from .schemas.rewards import ExpiredRewardItem


def status_code_for(exc: RewardServiceError) -> int:
    # treasury/지갑 누락과 treasury 잔액 부족은 요청자가 고칠 수 없는 운영 문제다.
    if isinstance(exc, (WalletMissingError, InsufficientFundsError)):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, InvalidStateError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, StoreError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def to_http_exception(
    exc: RewardServiceError, *, status_code: int | None = None
) -> HTTPException:
    detail: dict[str, Any] = {"code": exc.code, "message": str(exc)}
    if isinstance(exc, AllRewardsExpiredError):
        detail["expired_rewards"] = [
            ExpiredRewardItem.from_domain(r).model_dump(mode="json") for r in exc.expired
        ]
    elif isinstance(exc, NotEligibleError):
        detail["reason"] = exc.reason.value
    return HTTPException(
        status_code=status_code or status_code_for(exc),
        detail=detail,
    )
