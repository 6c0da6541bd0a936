from __future__ import annotations

from datetime import datetime
from typing import Protocol

from common.models.user import User
from ..models.reward import Reward
from ..models.wallet import Wallet, WalletTransaction


class UserRepositoryInterface(Protocol):
    """계정 서비스가 소유한 users 컬렉션에 대한 최소 계약.

    리워드 서비스는 유저를 조회하고 last_reward_date 만 갱신한다.
    """

    def find_by_id(self, user_id: str) -> User | None:  # pragma: no cover - Protocol
        ...

    def set_last_reward_date(
        self, user_id: str, at: datetime
    ) -> bool:  # pragma: no cover - Protocol
        ...


class BookingRepositoryInterface(Protocol):
    def count_recent(
        self, user_id: str, since: datetime
    ) -> int:  # pragma: no cover - Protocol
        """since 이후(포함) 예매일을 가진 유저의 예매 건수."""
        ...


class WalletRepositoryInterface(Protocol):
    """WalletRepository 가 따라야 할 계약.

    - 잔액 변경은 반드시 apply_transaction 으로만 하고, 같은 호출에서 로그 한 건을 남긴다.
    - 잔액이 음수가 되지 않도록 하는 것은 호출자(RedemptionService)의 사전 검사 책임이다.
    """

    def find_by_id(self, wallet_id: str) -> Wallet | None:  # pragma: no cover - Protocol
        ...

    def find_by_user_id(
        self, user_id: str
    ) -> Wallet | None:  # pragma: no cover - Protocol
        ...

    def create(self, user_id: str) -> Wallet:  # pragma: no cover - Protocol
        ...

    def apply_transaction(
        self, wallet_id: str, delta: int, description: str, at: datetime
    ) -> Wallet:  # pragma: no cover - Protocol
        ...

    def delete_by_user_id(self, user_id: str) -> bool:  # pragma: no cover - Protocol
        ...

    def list_transactions(
        self, user_id: str, page: int, page_size: int
    ) -> tuple[list[WalletTransaction], int]:  # pragma: no cover - Protocol
        ...


class RewardRepositoryInterface(Protocol):
    def insert(self, reward: Reward) -> Reward:  # pragma: no cover - Protocol
        ...

    def find_by_id(self, reward_id: str) -> Reward | None:  # pragma: no cover - Protocol
        ...

    def list_by_user(self, user_id: str) -> list[Reward]:  # pragma: no cover - Protocol
        """issued_at 내림차순(최신 먼저)."""
        ...

    def list_pending_by_user(
        self, user_id: str
    ) -> list[Reward]:  # pragma: no cover - Protocol
        ...

    def count_pending_by_user(self, user_id: str) -> int:  # pragma: no cover - Protocol
        ...

    def mark_redeemed(
        self, reward_ids: list[str], at: datetime
    ) -> int:  # pragma: no cover - Protocol
        """pending 인 리워드만 redeemed 로 바꾸고 변경된 건수를 반환한다."""
        ...

    def set_scratching(
        self, reward_id: str, scratching: bool
    ) -> Reward | None:  # pragma: no cover - Protocol
        """pending 인 리워드만 바꾼다. 없거나 이미 사용됐으면 None."""
        ...
