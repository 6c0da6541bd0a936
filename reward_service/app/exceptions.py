from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models.eligibility import IneligibilityReason
    from .models.reward import Reward


class RewardServiceError(Exception):
    """Base exception for all reward-service errors."""

    code = "reward_service_error"


# -------- NotFound --------


class NotFoundError(RewardServiceError):
    """A user, reward or wallet the operation needs does not exist."""

    code = "not_found"


class UserNotFoundError(NotFoundError):
    code = "user_not_found"

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not found (user_id={user_id})")
        self.user_id = user_id


class RewardNotFoundError(NotFoundError):
    code = "reward_not_found"

    def __init__(self, reward_id: str) -> None:
        super().__init__(f"Reward not found (reward_id={reward_id})")
        self.reward_id = reward_id


class WalletMissingError(NotFoundError):
    """Treasury or user wallet is absent (or the treasury id is not configured)."""

    code = "wallet_missing"


# -------- InvalidState --------


class InvalidStateError(RewardServiceError):
    code = "invalid_state"


class RewardExpiredError(InvalidStateError):
    code = "reward_expired"

    def __init__(self, reward_id: str) -> None:
        super().__init__("Reward has expired and cannot be redeemed")
        self.reward_id = reward_id


class RewardAlreadyRedeemedError(InvalidStateError):
    code = "reward_already_redeemed"

    def __init__(self, reward_id: str) -> None:
        super().__init__("Reward already redeemed")
        self.reward_id = reward_id


class NothingPendingError(InvalidStateError):
    code = "nothing_pending"

    def __init__(self, user_id: str) -> None:
        super().__init__("No pending rewards to redeem")
        self.user_id = user_id


class AllRewardsExpiredError(InvalidStateError):
    code = "all_rewards_expired"

    def __init__(self, user_id: str, expired: list["Reward"]) -> None:
        super().__init__("All pending rewards have expired")
        self.user_id = user_id
        self.expired = expired


class NotEligibleError(InvalidStateError):
    code = "not_eligible"

    def __init__(self, user_id: str, reason: "IneligibilityReason") -> None:
        super().__init__(f"User is not eligible for a reward ({reason.value})")
        self.user_id = user_id
        self.reason = reason


# -------- InsufficientFunds --------


class InsufficientFundsError(RewardServiceError):
    code = "insufficient_funds"


class InsufficientTreasuryError(InsufficientFundsError):
    code = "insufficient_treasury"

    def __init__(self, required: int, available: int) -> None:
        super().__init__("Insufficient balance in admin wallet")
        self.required = required
        self.available = available


# -------- Store --------


class StoreError(RewardServiceError):
    """The atomic unit could not be committed; nothing it wrote is visible."""

    code = "store_error"
