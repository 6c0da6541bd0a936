"""리워드 발급 자격 판정.

세 가지 규칙을 하나의 스냅샷 위에서 순서대로 확인한다.
1. 유저가 존재해야 한다.
2. 마지막 발급(last_reward_date)이 window_days 보다 오래되어야 한다.
3. 최근 window_days 동안 예매가 min_bookings 건 이상이어야 한다.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable

from fastapi import Depends

from common.types.datetime import utc_now

from ..config import RewardPolicy, load_config
from ..models.eligibility import EligibilityResult, IneligibilityReason
from ..repositories.unit_of_work import (
    RewardStores,
    UnitOfWorkInterface,
    get_unit_of_work,
)


class EligibilityEvaluator:
    def __init__(
        self,
        unit_of_work: UnitOfWorkInterface,
        policy: RewardPolicy,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow = unit_of_work
        self._policy = policy
        self._clock = clock

    def evaluate(self, user_id: str) -> EligibilityResult:
        """독립된 읽기 단위에서 자격을 판정한다."""
        now = self._clock()
        return self._uow.run(lambda stores: self.check(stores, user_id, now))

    def check(
        self, stores: RewardStores, user_id: str, now: datetime
    ) -> EligibilityResult:
        """이미 열려 있는 작업 단위 안에서 자격을 판정한다 (발급과 같은 트랜잭션용)."""
        window_start = now - timedelta(days=self._policy.window_days)

        user = stores.users.find_by_id(user_id)
        if user is None:
            return EligibilityResult.rejected(user_id, IneligibilityReason.USER_NOT_FOUND)

        if user.last_reward_date is not None and user.last_reward_date > window_start:
            return EligibilityResult.rejected(user_id, IneligibilityReason.TOO_SOON)

        booking_count = stores.bookings.count_recent(user_id, window_start)
        if booking_count < self._policy.min_bookings:
            return EligibilityResult.rejected(
                user_id,
                IneligibilityReason.INSUFFICIENT_ACTIVITY,
                booking_count=booking_count,
            )

        return EligibilityResult.ok(user_id, booking_count)


def get_eligibility_evaluator(
    unit_of_work: UnitOfWorkInterface = Depends(get_unit_of_work),
) -> EligibilityEvaluator:
    """FastAPI DI용 EligibilityEvaluator 팩토리."""

    return EligibilityEvaluator(unit_of_work, load_config().rewards)
