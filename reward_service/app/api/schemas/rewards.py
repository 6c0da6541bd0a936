from __future__ import annotations

from pydantic import BaseModel

from common.types.datetime import UtcDateTime

from ...models.reward import (
    BatchRedemptionResult,
    RedeemedReward,
    Reward,
    RewardOutcome,
    RewardStatus,
)


class RewardResponse(BaseModel):
    id: str | None
    user_id: str
    outcome: RewardOutcome
    amount: int
    status: RewardStatus
    is_scratching: bool
    issued_at: UtcDateTime
    expires_at: UtcDateTime
    redeemed_at: UtcDateTime | None = None

    @classmethod
    def from_domain(cls, reward: Reward, status: RewardStatus) -> "RewardResponse":
        return cls(
            id=reward.id,
            user_id=reward.user_id,
            outcome=reward.outcome,
            amount=reward.amount,
            status=status,
            is_scratching=reward.is_scratching,
            issued_at=reward.issued_at,
            expires_at=reward.expires_at,
            redeemed_at=reward.redeemed_at,
        )


class ListRewardsResponse(BaseModel):
    total: int
    items: list[RewardResponse]


class ExpiredRewardItem(BaseModel):
    id: str | None
    amount: int
    expires_at: UtcDateTime

    @classmethod
    def from_domain(cls, reward: Reward) -> "ExpiredRewardItem":
        return cls(id=reward.id, amount=reward.amount, expires_at=reward.expires_at)


class RewardCountResponse(BaseModel):
    count: int


class RedeemRewardResponse(BaseModel):
    message: str
    reward: RewardResponse
    user_balance: int

    @classmethod
    def from_domain(cls, result: RedeemedReward) -> "RedeemRewardResponse":
        return cls(
            message="Reward redeemed successfully",
            reward=RewardResponse.from_domain(result.reward, RewardStatus.REDEEMED),
            user_balance=result.user_balance,
        )


class RedeemAllResponse(BaseModel):
    message: str
    total_amount: int
    redeemed: list[RewardResponse]
    expired_rewards: list[ExpiredRewardItem]
    user_balance: int

    @classmethod
    def from_domain(cls, result: BatchRedemptionResult) -> "RedeemAllResponse":
        return cls(
            message=f"Redeemed rewards worth Rs.{result.total_amount}",
            total_amount=result.total_amount,
            redeemed=[
                RewardResponse.from_domain(r, RewardStatus.REDEEMED)
                for r in result.redeemed
            ],
            expired_rewards=[
                ExpiredRewardItem.from_domain(r) for r in result.skipped_expired
            ],
            user_balance=result.user_balance,
        )
