"""리워드 사용(redemption).

treasury 지갑에서 유저 지갑으로 리워드 금액을 옮기고 리워드를 redeemed 로 바꾼다.
검사, 두 지갑의 잔액 변경, 리워드 상태 변경은 모두 하나의 작업 단위에서 일어나며
알림은 커밋이 끝난 뒤 트랜잭션 밖에서 한 번만 보낸다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from fastapi import Depends

from common.events.notification import NotificationCategory
from common.models.user import User
from common.types.datetime import utc_now

from ..config import load_config
from ..exceptions import (
    AllRewardsExpiredError,
    InsufficientTreasuryError,
    NothingPendingError,
    RewardAlreadyRedeemedError,
    RewardExpiredError,
    RewardNotFoundError,
    UserNotFoundError,
    WalletMissingError,
)
from ..models.reward import BatchRedemptionResult, RedeemedReward, Reward, RewardState
from ..models.wallet import Wallet
from ..repositories.unit_of_work import (
    RewardStores,
    UnitOfWorkInterface,
    get_unit_of_work,
)
from .notifier import NotifierInterface, get_notifier


logger = logging.getLogger(__name__)


NOTIFICATION_TITLE_SINGLE = "Reward Redeemed"
NOTIFICATION_TITLE_ALL = "All Rewards Redeemed"


def _notification_body(amount: int) -> str:
    return f"You have successfully redeemed Rs.{amount} in your Wallet."


@dataclass(slots=True)
class _Wallets:
    treasury_id: str
    treasury: Wallet
    user_wallet_id: str
    user: Wallet


class RedemptionService:
    def __init__(
        self,
        unit_of_work: UnitOfWorkInterface,
        notifier: NotifierInterface,
        treasury_wallet_id: str | None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow = unit_of_work
        self._notifier = notifier
        self._treasury_wallet_id = treasury_wallet_id
        self._clock = clock

    # -------- 단건 --------

    def redeem_one(self, reward_id: str) -> RedeemedReward:
        """리워드 하나를 사용한다.

        Raises:
            RewardNotFoundError, RewardExpiredError, RewardAlreadyRedeemedError,
            WalletMissingError, UserNotFoundError, InsufficientTreasuryError, StoreError
        """
        result = self._uow.run(lambda stores: self._redeem_one_in(stores, reward_id))
        reward = result.reward
        logger.info(
            "reward redeemed reward_id=%s user_id=%s amount=%d",
            reward_id,
            reward.user_id,
            reward.amount,
            extra={
                "reward_id": reward_id,
                "user_id": reward.user_id,
                "amount": reward.amount,
            },
        )
        self._notify(
            reward.user_id, NOTIFICATION_TITLE_SINGLE, _notification_body(reward.amount)
        )
        return result

    def _redeem_one_in(self, stores: RewardStores, reward_id: str) -> RedeemedReward:
        now = self._clock()

        reward = stores.rewards.find_by_id(reward_id)
        if reward is None:
            raise RewardNotFoundError(reward_id)
        if reward.is_expired(now):
            raise RewardExpiredError(reward_id)
        if reward.is_redeemed():
            raise RewardAlreadyRedeemedError(reward_id)

        wallets = self._load_wallets(stores, reward.user_id)
        user = self._load_user(stores, reward.user_id)
        self._ensure_treasury_covers(wallets.treasury, reward.amount)

        user_wallet = self._transfer(
            stores,
            wallets,
            reward.amount,
            debit_description=f"Reward Redeemed by {user.user_name} - Rs.{reward.amount}",
            credit_description=f"Reward Redeemed - Rs.{reward.amount}",
            at=now,
        )

        if stores.rewards.mark_redeemed([reward_id], now) != 1:
            # 같은 리워드를 다른 요청이 먼저 사용했다. 위의 이체도 함께 abort 된다.
            raise RewardAlreadyRedeemedError(reward_id)

        redeemed = reward.model_copy(
            update={
                "state": RewardState.REDEEMED,
                "is_scratching": False,
                "redeemed_at": now,
            }
        )
        return RedeemedReward(reward=redeemed, user_balance=user_wallet.balance)

    # -------- 일괄 --------

    def redeem_all(self, user_id: str) -> BatchRedemptionResult:
        """유저의 유효한 pending 리워드를 한 번에 사용한다.

        만료된 리워드는 건드리지 않고 skipped_expired 로 돌려준다.

        Raises:
            NothingPendingError, AllRewardsExpiredError, WalletMissingError,
            UserNotFoundError, InsufficientTreasuryError, RewardAlreadyRedeemedError, StoreError
        """
        result = self._uow.run(lambda stores: self._redeem_all_in(stores, user_id))
        logger.info(
            "rewards redeemed user_id=%s count=%d total=%d skipped_expired=%d",
            user_id,
            len(result.redeemed),
            result.total_amount,
            len(result.skipped_expired),
            extra={"user_id": user_id, "amount": result.total_amount},
        )
        self._notify(
            user_id, NOTIFICATION_TITLE_ALL, _notification_body(result.total_amount)
        )
        return result

    def _redeem_all_in(self, stores: RewardStores, user_id: str) -> BatchRedemptionResult:
        now = self._clock()

        pending = stores.rewards.list_pending_by_user(user_id)
        if not pending:
            raise NothingPendingError(user_id)

        valid: list[Reward] = []
        expired: list[Reward] = []
        for reward in pending:
            (expired if reward.is_expired(now) else valid).append(reward)

        if not valid:
            raise AllRewardsExpiredError(user_id, expired)

        total = sum(reward.amount for reward in valid)

        wallets = self._load_wallets(stores, user_id)
        user = self._load_user(stores, user_id)
        self._ensure_treasury_covers(wallets.treasury, total)

        user_wallet = self._transfer(
            stores,
            wallets,
            total,
            debit_description=f"Reward Redeemed by {user.user_name} - Rs.{total}",
            credit_description=f"All Rewards Redeemed - Rs.{total}",
            at=now,
        )

        reward_ids = [reward.id for reward in valid if reward.id is not None]
        if stores.rewards.mark_redeemed(reward_ids, now) != len(valid):
            raise RewardAlreadyRedeemedError(",".join(reward_ids))

        redeemed = [
            reward.model_copy(
                update={
                    "state": RewardState.REDEEMED,
                    "is_scratching": False,
                    "redeemed_at": now,
                }
            )
            for reward in valid
        ]
        return BatchRedemptionResult(
            user_id=user_id,
            total_amount=total,
            redeemed=redeemed,
            skipped_expired=expired,
            user_balance=user_wallet.balance,
        )

    # -------- 내부 헬퍼 --------

    def _load_wallets(self, stores: RewardStores, user_id: str) -> _Wallets:
        if not self._treasury_wallet_id:
            raise WalletMissingError("Admin wallet is not configured")
        treasury = stores.wallets.find_by_id(self._treasury_wallet_id)
        if treasury is None:
            raise WalletMissingError("Admin wallet not found")

        user_wallet = stores.wallets.find_by_user_id(user_id)
        if user_wallet is None or user_wallet.id is None:
            raise WalletMissingError(f"User wallet not found (user_id={user_id})")
        return _Wallets(
            treasury_id=self._treasury_wallet_id,
            treasury=treasury,
            user_wallet_id=user_wallet.id,
            user=user_wallet,
        )

    @staticmethod
    def _load_user(stores: RewardStores, user_id: str) -> User:
        user = stores.users.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    @staticmethod
    def _ensure_treasury_covers(treasury: Wallet, amount: int) -> None:
        if treasury.balance < amount:
            raise InsufficientTreasuryError(required=amount, available=treasury.balance)

    @staticmethod
    def _transfer(
        stores: RewardStores,
        wallets: _Wallets,
        amount: int,
        *,
        debit_description: str,
        credit_description: str,
        at: datetime,
    ) -> Wallet:
        """treasury 에서 amount 를 빼고 유저 지갑에 더한다. 갱신된 유저 지갑을 반환한다."""
        stores.wallets.apply_transaction(
            wallets.treasury_id, -amount, debit_description, at
        )
        return stores.wallets.apply_transaction(
            wallets.user_wallet_id, amount, credit_description, at
        )

    def _notify(self, user_id: str, title: str, body: str) -> None:
        try:
            self._notifier.notify(NotificationCategory.REWARD, title, body, user_id)
        except Exception:  # noqa: BLE001
            # 이미 커밋된 사용 결과는 알림 실패와 무관하다.
            logger.exception(
                "failed to send reward notification to user %s",
                user_id,
                extra={"user_id": user_id},
            )


def get_redemption_service(
    unit_of_work: UnitOfWorkInterface = Depends(get_unit_of_work),
    notifier: NotifierInterface = Depends(get_notifier),
) -> RedemptionService:
    """FastAPI DI용 RedemptionService 팩토리."""

    return RedemptionService(
        unit_of_work,
        notifier,
        load_config().treasury_wallet_id,
    )
