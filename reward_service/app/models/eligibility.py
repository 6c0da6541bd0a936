from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, model_validator


class IneligibilityReason(str, Enum):
    USER_NOT_FOUND = "user_not_found"
    TOO_SOON = "too_soon"
    INSUFFICIENT_ACTIVITY = "insufficient_activity"


class EligibilityResult(BaseModel):
    """리워드 발급 가능 여부. 불가능하면 reason 이 채워진다."""

    user_id: str
    eligible: bool
    reason: IneligibilityReason | None = None
    booking_count: int = 0

    @model_validator(mode="after")
    def _reason_matches_eligibility(self) -> "EligibilityResult":
        if self.eligible and self.reason is not None:
            raise ValueError("eligible result cannot carry a reason")
        if not self.eligible and self.reason is None:
            raise ValueError("rejected result requires a reason")
        return self

    @classmethod
    def ok(cls, user_id: str, booking_count: int) -> "EligibilityResult":
        return cls(user_id=user_id, eligible=True, booking_count=booking_count)

    @classmethod
    def rejected(
        cls, user_id: str, reason: IneligibilityReason, booking_count: int = 0
    ) -> "EligibilityResult":
        return cls(
            user_id=user_id, eligible=False, reason=reason, booking_count=booking_count
        )
