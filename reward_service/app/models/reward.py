"""리워드 도메인 모델.

리워드는 예매 활동이 충분한 유저에게 발급되는 기간 한정(발급 후 7일) 지갑 크레딧이다.
저장되는 상태는 pending / redeemed 두 가지뿐이고, 만료는 조회 시점에 expires_at 으로 계산한다.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class RewardOutcome(str, Enum):
    WIN = "win"
    LOSE = "lose"


class RewardState(str, Enum):
    """저장되는 리워드 상태."""

    PENDING = "pending"
    REDEEMED = "redeemed"


class RewardStatus(str, Enum):
    """조회 응답용 상태. EXPIRED 는 저장되지 않는 파생 상태다."""

    PENDING = "pending"
    REDEEMED = "redeemed"
    EXPIRED = "expired"


class Reward(BaseModel):
    id: str | None = None
    user_id: str
    outcome: RewardOutcome
    amount: int = Field(ge=0)
    state: RewardState = RewardState.PENDING
    # 스크래치 애니메이션 진행 중 표시. 사용 여부와는 무관하다.
    is_scratching: bool = False
    issued_at: datetime
    expires_at: datetime
    redeemed_at: datetime | None = None

    @model_validator(mode="after")
    def _check_amount_matches_outcome(self) -> "Reward":
        if self.outcome is RewardOutcome.LOSE and self.amount != 0:
            raise ValueError("lose reward must have amount 0")
        if self.outcome is RewardOutcome.WIN and self.amount <= 0:
            raise ValueError("win reward must have a positive amount")
        return self

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def is_redeemed(self) -> bool:
        return self.state is RewardState.REDEEMED

    def status_at(self, now: datetime) -> RewardStatus:
        if self.is_redeemed():
            return RewardStatus.REDEEMED
        if self.is_expired(now):
            return RewardStatus.EXPIRED
        return RewardStatus.PENDING


class RedeemedReward(BaseModel):
    """단건 사용 결과."""

    reward: Reward
    user_balance: int


class BatchRedemptionResult(BaseModel):
    """일괄 사용 결과. 만료로 건너뛴 리워드는 오류가 아니라 참고용으로 돌려준다."""

    user_id: str
    total_amount: int
    redeemed: list[Reward]
    skipped_expired: list[Reward]
    user_balance: int
