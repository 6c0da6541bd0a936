"""리워드 발급.

자격 판정, 리워드 생성, 유저의 last_reward_date 갱신을 하나의 트랜잭션으로 묶는다.
같은 유저에 대한 동시 발급은 users 도큐먼트 쓰기 충돌로 직렬화되고,
재시도된 쪽은 갱신된 last_reward_date 를 보고 TOO_SOON 으로 거절된다.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta
from typing import Callable

from fastapi import Depends

from common.types.datetime import utc_now

from ..config import RewardPolicy, load_config
from ..exceptions import NotEligibleError, UserNotFoundError
from ..models.eligibility import IneligibilityReason
from ..models.reward import Reward, RewardOutcome, RewardState
from ..repositories.unit_of_work import (
    RewardStores,
    UnitOfWorkInterface,
    get_unit_of_work,
)
from .eligibility_service import EligibilityEvaluator, get_eligibility_evaluator


logger = logging.getLogger(__name__)


class RewardIssuer:
    def __init__(
        self,
        unit_of_work: UnitOfWorkInterface,
        evaluator: EligibilityEvaluator,
        policy: RewardPolicy,
        *,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow = unit_of_work
        self._evaluator = evaluator
        self._policy = policy
        self._rng = rng or random.Random()
        self._clock = clock

    def issue(self, user_id: str) -> Reward:
        """자격이 있으면 리워드를 발급한다.

        Raises:
            UserNotFoundError: 유저가 없을 때
            NotEligibleError: 발급 간격 또는 활동량 조건을 만족하지 못할 때
            StoreError: 트랜잭션을 커밋하지 못했을 때 (아무것도 반영되지 않음)
        """
        reward = self._uow.run(lambda stores: self._issue_in(stores, user_id))
        logger.info(
            "reward issued user_id=%s outcome=%s amount=%d",
            user_id,
            reward.outcome.value,
            reward.amount,
            extra={"user_id": user_id, "reward_id": reward.id, "amount": reward.amount},
        )
        return reward

    def _issue_in(self, stores: RewardStores, user_id: str) -> Reward:
        now = self._clock()
        result = self._evaluator.check(stores, user_id, now)
        if not result.eligible:
            if result.reason is IneligibilityReason.USER_NOT_FOUND:
                raise UserNotFoundError(user_id)
            raise NotEligibleError(user_id, result.reason)

        outcome, amount = self.draw()
        created = stores.rewards.insert(
            Reward(
                user_id=user_id,
                outcome=outcome,
                amount=amount,
                state=RewardState.PENDING,
                issued_at=now,
                expires_at=now + timedelta(days=self._policy.expiry_days),
            )
        )
        stores.users.set_last_reward_date(user_id, now)
        return created

    def draw(self) -> tuple[RewardOutcome, int]:
        """당첨 여부와 금액을 뽑는다. 꽝이면 금액은 0."""
        if self._rng.random() < self._policy.win_probability:
            amount = self._rng.randint(self._policy.min_amount, self._policy.max_amount)
            return RewardOutcome.WIN, amount
        return RewardOutcome.LOSE, 0


def get_reward_issuer(
    unit_of_work: UnitOfWorkInterface = Depends(get_unit_of_work),
    evaluator: EligibilityEvaluator = Depends(get_eligibility_evaluator),
) -> RewardIssuer:
    """FastAPI DI용 RewardIssuer 팩토리."""

    return RewardIssuer(unit_of_work, evaluator, load_config().rewards)
