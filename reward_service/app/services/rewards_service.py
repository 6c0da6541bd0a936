"""리워드 조회 및 스크래치 표시."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from fastapi import Depends
from pymongo.database import Database

from common.mongo.client import get_database
from common.types.datetime import utc_now

from ..exceptions import (
    RewardAlreadyRedeemedError,
    RewardExpiredError,
    RewardNotFoundError,
)
from ..models.reward import Reward, RewardStatus
from ..repositories.errors import store_errors
from ..repositories.interfaces import RewardRepositoryInterface
from ..repositories.reward_repository import RewardRepository


class RewardsService:
    """트랜잭션이 필요 없는 단일 컬렉션 조회/갱신."""

    def __init__(
        self,
        reward_repo: RewardRepositoryInterface,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._reward_repo = reward_repo
        self._clock = clock

    def list_rewards(self, user_id: str) -> list[tuple[Reward, RewardStatus]]:
        """최신 발급 순으로 리워드와 현재 시점의 상태를 반환한다."""
        now = self._clock()
        with store_errors("list rewards"):
            rewards = self._reward_repo.list_by_user(user_id)
        return [(reward, reward.status_at(now)) for reward in rewards]

    def count_pending(self, user_id: str) -> int:
        with store_errors("count pending rewards"):
            return self._reward_repo.count_pending_by_user(user_id)

    def start_scratching(self, reward_id: str) -> Reward:
        with store_errors("start scratching"):
            reward = self._reward_repo.find_by_id(reward_id)
            if reward is None:
                raise RewardNotFoundError(reward_id)
            if reward.is_redeemed():
                raise RewardAlreadyRedeemedError(reward_id)
            if reward.is_expired(self._clock()):
                raise RewardExpiredError(reward_id)

            # pending 인 경우에만 바뀐다. 그 사이 사용됐으면 None 이 돌아온다.
            updated = self._reward_repo.set_scratching(reward_id, True)
            if updated is None:
                if self._reward_repo.find_by_id(reward_id) is None:
                    raise RewardNotFoundError(reward_id)
                raise RewardAlreadyRedeemedError(reward_id)
        return updated


def get_reward_repository(
    db: Database = Depends(get_database),
) -> RewardRepositoryInterface:
    """FastAPI DI용 RewardRepository 팩토리."""

    return RewardRepository(db)


def get_rewards_service(
    reward_repo: RewardRepositoryInterface = Depends(get_reward_repository),
) -> RewardsService:
    """FastAPI DI용 RewardsService 팩토리."""

    return RewardsService(reward_repo)
