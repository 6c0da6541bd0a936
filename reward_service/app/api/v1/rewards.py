"""리워드 라우터.

발급(generate)은 외부 스케줄러의 주기적 스윕이 유저별로 호출하는 진입점이다.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from ...exceptions import RewardServiceError
from ...models.reward import RewardStatus
from ...services.redemption_service import RedemptionService, get_redemption_service
from ...services.reward_issuer import RewardIssuer, get_reward_issuer
from ...services.rewards_service import RewardsService, get_rewards_service
from ..errors import to_http_exception
from ..schemas.rewards import (
    ListRewardsResponse,
    RedeemAllResponse,
    RedeemRewardResponse,
    RewardCountResponse,
    RewardResponse,
)


router = APIRouter(prefix="/rewards", tags=["rewards"])


@router.get("/{user_id}", summary="유저 리워드 목록 (최신순)")
def list_rewards(
    user_id: str,
    service: Annotated[RewardsService, Depends(get_rewards_service)],
) -> ListRewardsResponse:
    try:
        items = service.list_rewards(user_id)
    except RewardServiceError as exc:
        raise to_http_exception(exc) from exc
    return ListRewardsResponse(
        total=len(items),
        items=[RewardResponse.from_domain(r, s) for r, s in items],
    )


@router.get("/{user_id}/count", summary="사용하지 않은 리워드 수")
def count_rewards(
    user_id: str,
    service: Annotated[RewardsService, Depends(get_rewards_service)],
) -> RewardCountResponse:
    try:
        count = service.count_pending(user_id)
    except RewardServiceError as exc:
        raise to_http_exception(exc) from exc
    return RewardCountResponse(count=count)


@router.post("/{reward_id}/redeem", summary="리워드 단건 사용")
def redeem_reward(
    reward_id: str,
    service: Annotated[RedemptionService, Depends(get_redemption_service)],
) -> RedeemRewardResponse:
    try:
        result = service.redeem_one(reward_id)
    except RewardServiceError as exc:
        raise to_http_exception(exc) from exc
    return RedeemRewardResponse.from_domain(result)


@router.post("/{user_id}/redeemAll", summary="유효한 리워드 일괄 사용")
def redeem_all_rewards(
    user_id: str,
    service: Annotated[RedemptionService, Depends(get_redemption_service)],
) -> RedeemAllResponse:
    try:
        result = service.redeem_all(user_id)
    except RewardServiceError as exc:
        raise to_http_exception(exc) from exc
    return RedeemAllResponse.from_domain(result)


@router.post(
    "/{user_id}/generate",
    status_code=status.HTTP_201_CREATED,
    summary="자격이 있으면 리워드 발급",
)
def generate_reward(
    user_id: str,
    issuer: Annotated[RewardIssuer, Depends(get_reward_issuer)],
) -> RewardResponse:
    try:
        reward = issuer.issue(user_id)
    except RewardServiceError as exc:
        raise to_http_exception(exc) from exc
    return RewardResponse.from_domain(reward, RewardStatus.PENDING)


@router.post("/{reward_id}/scratch", summary="스크래치 시작 표시")
def scratch_reward(
    reward_id: str,
    service: Annotated[RewardsService, Depends(get_rewards_service)],
) -> RewardResponse:
    try:
        reward = service.start_scratching(reward_id)
    except RewardServiceError as exc:
        raise to_http_exception(exc) from exc
    return RewardResponse.from_domain(reward, RewardStatus.PENDING)
