"""리워드 MongoDB 도큐먼트."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from common.mongo.types import BaseDocument, MongoDateTime, from_object_id

from ...models.reward import Reward, RewardOutcome, RewardState


class RewardDocument(BaseDocument):
    """MongoDB rewards 컬렉션 도큐먼트 모델."""

    user_id: str
    outcome: RewardOutcome
    amount: int
    state: RewardState
    is_scratching: bool = False
    issued_at: MongoDateTime
    expires_at: MongoDateTime
    redeemed_at: Optional[MongoDateTime] = None

    @classmethod
    def from_domain(cls, reward: Reward) -> "RewardDocument":
        now = datetime.now(timezone.utc)
        data = reward.model_dump(exclude={"id"})
        data["created_at"] = reward.issued_at
        data["updated_at"] = now
        return cls.model_validate(data)

    def to_mongo_record(self) -> dict:
        # enum 은 Mongo 에 문자열로 저장한다.
        return self.model_dump(by_alias=True, exclude_none=True) | {
            "outcome": self.outcome.value,
            "state": self.state.value,
        }

    def to_domain(self) -> Reward:
        return Reward(
            id=from_object_id(self.id),
            user_id=self.user_id,
            outcome=self.outcome,
            amount=self.amount,
            state=self.state,
            is_scratching=self.is_scratching,
            issued_at=self.issued_at,
            expires_at=self.expires_at,
            redeemed_at=self.redeemed_at,
        )
