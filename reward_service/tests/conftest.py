"""리워드 서비스 테스트용 인메모리 저장소와 UnitOfWork.

InMemoryUnitOfWork 는 전역 락 아래에서 상태 사본 위에 작업을 실행하고,
성공하면 사본을 반영(commit), 예외가 나면 버린다(abort).
"""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta, timezone
from typing import Callable, TypeVar

import pytest
from bson import ObjectId
from pymongo.errors import PyMongoError

from common.models.user import User
from reward_service.app.config import RewardPolicy
from reward_service.app.exceptions import StoreError, WalletMissingError
from reward_service.app.models.reward import Reward, RewardOutcome, RewardState
from reward_service.app.models.wallet import TransactionType, Wallet, WalletTransaction
from reward_service.app.repositories.unit_of_work import RewardStores


T = TypeVar("T")

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@dataclass
class InMemoryState:
    users: dict[str, User] = field(default_factory=dict)
    bookings: list[tuple[str, datetime]] = field(default_factory=list)
    wallets: dict[str, Wallet] = field(default_factory=dict)
    rewards: dict[str, Reward] = field(default_factory=dict)


class FakeUserRepository:
    def __init__(self, state: InMemoryState) -> None:
        self._state = state

    def find_by_id(self, user_id: str) -> User | None:
        user = self._state.users.get(user_id)
        return user.model_copy() if user else None

    def set_last_reward_date(self, user_id: str, at: datetime) -> bool:
        user = self._state.users.get(user_id)
        if user is None:
            return False
        self._state.users[user_id] = user.model_copy(update={"last_reward_date": at})
        return True


class FakeBookingRepository:
    def __init__(self, state: InMemoryState) -> None:
        self._state = state

    def count_recent(self, user_id: str, since: datetime) -> int:
        return sum(
            1 for owner, booked_at in self._state.bookings
            if owner == user_id and booked_at >= since
        )


class FakeWalletRepository:
    def __init__(self, state: InMemoryState) -> None:
        self._state = state

    def find_by_id(self, wallet_id: str) -> Wallet | None:
        wallet = self._state.wallets.get(wallet_id)
        return wallet.model_copy() if wallet else None

    def find_by_user_id(self, user_id: str) -> Wallet | None:
        for wallet in self._state.wallets.values():
            if wallet.user_id == user_id:
                return wallet.model_copy()
        return None

    def create(self, user_id: str) -> Wallet:
        existing = self.find_by_user_id(user_id)
        if existing is not None:
            return existing
        wallet = Wallet(
            id=str(ObjectId()),
            user_id=user_id,
            balance=0,
            created_at=NOW,
            updated_at=NOW,
        )
        self._state.wallets[wallet.id] = wallet
        return wallet.model_copy()

    def apply_transaction(
        self, wallet_id: str, delta: int, description: str, at: datetime
    ) -> Wallet:
        wallet = self._state.wallets.get(wallet_id)
        if wallet is None:
            raise WalletMissingError(f"Wallet not found (wallet_id={wallet_id})")
        entry = WalletTransaction(
            amount=abs(delta),
            type=TransactionType.CREDIT if delta >= 0 else TransactionType.DEBIT,
            description=description,
            created_at=at,
        )
        updated = wallet.model_copy(
            update={
                "balance": wallet.balance + delta,
                "transactions": [*wallet.transactions, entry],
                "updated_at": at,
            }
        )
        self._state.wallets[wallet_id] = updated
        return updated.model_copy()

    def delete_by_user_id(self, user_id: str) -> bool:
        for wallet_id, wallet in list(self._state.wallets.items()):
            if wallet.user_id == user_id:
                del self._state.wallets[wallet_id]
                return True
        return False

    def list_transactions(
        self, user_id: str, page: int, page_size: int
    ) -> tuple[list[WalletTransaction], int]:
        wallet = self.find_by_user_id(user_id)
        if wallet is None:
            return [], 0
        newest_first = list(reversed(wallet.transactions))
        skip = (page - 1) * page_size
        return newest_first[skip : skip + page_size], len(newest_first)


class FakeRewardRepository:
    def __init__(self, state: InMemoryState) -> None:
        self._state = state

    def insert(self, reward: Reward) -> Reward:
        stored = reward.model_copy(update={"id": str(ObjectId())})
        self._state.rewards[stored.id] = stored
        return stored.model_copy()

    def find_by_id(self, reward_id: str) -> Reward | None:
        reward = self._state.rewards.get(reward_id)
        return reward.model_copy() if reward else None

    def list_by_user(self, user_id: str) -> list[Reward]:
        owned = [r for r in self._state.rewards.values() if r.user_id == user_id]
        return sorted(owned, key=lambda r: r.issued_at, reverse=True)

    def list_pending_by_user(self, user_id: str) -> list[Reward]:
        return [
            r for r in self.list_by_user(user_id) if r.state is RewardState.PENDING
        ]

    def count_pending_by_user(self, user_id: str) -> int:
        return len(self.list_pending_by_user(user_id))

    def mark_redeemed(self, reward_ids: list[str], at: datetime) -> int:
        modified = 0
        for reward_id in reward_ids:
            reward = self._state.rewards.get(reward_id)
            if reward is None or reward.state is not RewardState.PENDING:
                continue
            self._state.rewards[reward_id] = reward.model_copy(
                update={
                    "state": RewardState.REDEEMED,
                    "is_scratching": False,
                    "redeemed_at": at,
                }
            )
            modified += 1
        return modified

    def set_scratching(self, reward_id: str, scratching: bool) -> Reward | None:
        reward = self._state.rewards.get(reward_id)
        if reward is None or reward.state is not RewardState.PENDING:
            return None
        updated = reward.model_copy(update={"is_scratching": scratching})
        self._state.rewards[reward_id] = updated
        return updated.model_copy()


class InMemoryUnitOfWork:
    def __init__(self, state: InMemoryState) -> None:
        self.state = state
        self.fail_on_commit = False
        self.runs = 0
        self._lock = threading.Lock()

    def run(self, work: Callable[[RewardStores], T]) -> T:
        with self._lock:
            self.runs += 1
            working = copy.deepcopy(self.state)
            result = work(
                RewardStores(
                    users=FakeUserRepository(working),
                    bookings=FakeBookingRepository(working),
                    wallets=FakeWalletRepository(working),
                    rewards=FakeRewardRepository(working),
                )
            )
            if self.fail_on_commit:
                raise StoreError("commit failed")
            # state 객체의 identity 는 유지한 채 내용만 교체한다.
            for f in fields(working):
                setattr(self.state, f.name, getattr(working, f.name))
            return result


# -------- MongoDB 세션 --------


class FakeSession:
    def __init__(self, commit_errors: list[PyMongoError]) -> None:
        self._commit_errors = commit_errors
        self.in_transaction = False
        self.started = 0
        self.commits = 0
        self.aborts = 0

    def __enter__(self) -> "FakeSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.in_transaction = False

    def start_transaction(self, **kwargs: object) -> None:
        self.started += 1
        self.in_transaction = True

    def commit_transaction(self) -> None:
        self.commits += 1
        if self._commit_errors:
            raise self._commit_errors.pop(0)
        self.in_transaction = False

    def abort_transaction(self) -> None:
        self.aborts += 1
        self.in_transaction = False


class FakeClient:
    def __init__(self, commit_errors: list[PyMongoError] | None = None) -> None:
        self.commit_errors = commit_errors or []
        self.sessions: list[FakeSession] = []

    def start_session(self) -> FakeSession:
        session = FakeSession(self.commit_errors)
        self.sessions.append(session)
        return session


class FakeNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str, str]] = []
        self.error: Exception | None = None

    def notify(self, category: str, title: str, body: str, user_id: str) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append((category, title, body, user_id))


class FakeClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


# -------- 데이터 빌더 --------


def add_user(
    state: InMemoryState,
    *,
    user_name: str = "alice",
    last_reward_date: datetime | None = None,
) -> str:
    user_id = str(ObjectId())
    state.users[user_id] = User(
        id=user_id, user_name=user_name, last_reward_date=last_reward_date
    )
    return user_id


def add_bookings(state: InMemoryState, user_id: str, count: int, at: datetime) -> None:
    state.bookings.extend((user_id, at) for _ in range(count))


def add_wallet(state: InMemoryState, user_id: str | None, balance: int = 0) -> str:
    wallet_id = str(ObjectId())
    transactions = []
    if balance:
        transactions.append(
            WalletTransaction(
                amount=balance,
                type=TransactionType.CREDIT,
                description="initial funding",
                created_at=NOW - timedelta(days=30),
            )
        )
    state.wallets[wallet_id] = Wallet(
        id=wallet_id,
        user_id=user_id,
        balance=balance,
        transactions=transactions,
        created_at=NOW - timedelta(days=30),
        updated_at=NOW - timedelta(days=30),
    )
    return wallet_id


def add_reward(
    state: InMemoryState,
    user_id: str,
    amount: int,
    *,
    issued_at: datetime = NOW - timedelta(days=1),
    expires_at: datetime | None = None,
    reward_state: RewardState = RewardState.PENDING,
) -> str:
    reward_id = str(ObjectId())
    state.rewards[reward_id] = Reward(
        id=reward_id,
        user_id=user_id,
        outcome=RewardOutcome.WIN if amount > 0 else RewardOutcome.LOSE,
        amount=amount,
        state=reward_state,
        issued_at=issued_at,
        expires_at=expires_at or issued_at + timedelta(days=7),
    )
    return reward_id


# -------- fixtures --------


@pytest.fixture
def state() -> InMemoryState:
    return InMemoryState()


@pytest.fixture
def uow(state: InMemoryState) -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork(state)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def policy() -> RewardPolicy:
    return RewardPolicy()
