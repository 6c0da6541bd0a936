from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from conftest import NOW, add_reward, add_user, add_wallet
from reward_service.app.exceptions import (
    AllRewardsExpiredError,
    InsufficientTreasuryError,
    NothingPendingError,
    RewardAlreadyRedeemedError,
    RewardExpiredError,
    RewardNotFoundError,
    RewardServiceError,
    StoreError,
    UserNotFoundError,
    WalletMissingError,
)
from reward_service.app.models.reward import RewardState
from reward_service.app.models.wallet import TransactionType
from reward_service.app.services.redemption_service import RedemptionService


def _service(uow, notifier, clock, treasury_id: str | None) -> RedemptionService:
    return RedemptionService(uow, notifier, treasury_id, clock=clock)


def _setup(state, treasury_balance: int = 1000) -> tuple[str, str, str]:
    user_id = add_user(state, user_name="alice")
    treasury_id = add_wallet(state, None, balance=treasury_balance)
    user_wallet_id = add_wallet(state, user_id)
    return user_id, treasury_id, user_wallet_id


def _expired_at():
    return {"issued_at": NOW - timedelta(days=10), "expires_at": NOW - timedelta(days=3)}


# -------- redeem_one --------


def test_redeem_one_moves_amount_and_marks_reward(state, uow, notifier, clock) -> None:
    user_id, treasury_id, user_wallet_id = _setup(state, treasury_balance=100)
    reward_id = add_reward(state, user_id, 12)

    result = _service(uow, notifier, clock, treasury_id).redeem_one(reward_id)

    assert result.user_balance == 12
    assert result.reward.state is RewardState.REDEEMED
    assert state.wallets[treasury_id].balance == 88
    assert state.wallets[user_wallet_id].balance == 12

    debit = state.wallets[treasury_id].transactions[-1]
    assert debit.type is TransactionType.DEBIT
    assert debit.amount == 12
    assert debit.description == "Reward Redeemed by alice - Rs.12"
    credit = state.wallets[user_wallet_id].transactions[-1]
    assert credit.type is TransactionType.CREDIT
    assert credit.description == "Reward Redeemed - Rs.12"

    stored = state.rewards[reward_id]
    assert stored.state is RewardState.REDEEMED
    assert stored.redeemed_at == NOW
    assert notifier.sent == [
        (
            "reward",
            "Reward Redeemed",
            "You have successfully redeemed Rs.12 in your Wallet.",
            user_id,
        )
    ]


def test_redeem_one_clears_scratching_flag(state, uow, notifier, clock) -> None:
    user_id, treasury_id, _ = _setup(state)
    reward_id = add_reward(state, user_id, 4)
    state.rewards[reward_id] = state.rewards[reward_id].model_copy(
        update={"is_scratching": True}
    )

    _service(uow, notifier, clock, treasury_id).redeem_one(reward_id)

    assert state.rewards[reward_id].is_scratching is False


def test_redeem_one_exact_treasury_balance(state, uow, notifier, clock) -> None:
    user_id, treasury_id, _ = _setup(state, treasury_balance=50)
    reward_id = add_reward(state, user_id, 50)

    _service(uow, notifier, clock, treasury_id).redeem_one(reward_id)

    assert state.wallets[treasury_id].balance == 0


def test_redeem_one_lose_reward_moves_zero(state, uow, notifier, clock) -> None:
    user_id, treasury_id, user_wallet_id = _setup(state, treasury_balance=10)
    reward_id = add_reward(state, user_id, 0)

    result = _service(uow, notifier, clock, treasury_id).redeem_one(reward_id)

    assert result.reward.state is RewardState.REDEEMED
    assert state.wallets[treasury_id].balance == 10
    assert state.wallets[user_wallet_id].balance == 0


def test_redeem_expired_reward_changes_nothing(state, uow, notifier, clock) -> None:
    user_id, treasury_id, user_wallet_id = _setup(state, treasury_balance=100)
    reward_id = add_reward(state, user_id, 10, **_expired_at())
    before = {wid: w.model_copy(deep=True) for wid, w in state.wallets.items()}

    with pytest.raises(RewardExpiredError):
        _service(uow, notifier, clock, treasury_id).redeem_one(reward_id)

    assert state.wallets[treasury_id] == before[treasury_id]
    assert state.wallets[user_wallet_id] == before[user_wallet_id]
    assert state.rewards[reward_id].state is RewardState.PENDING
    assert notifier.sent == []


def test_redeem_twice_is_rejected_without_second_transfer(state, uow, notifier, clock) -> None:
    user_id, treasury_id, user_wallet_id = _setup(state, treasury_balance=100)
    reward_id = add_reward(state, user_id, 10)
    service = _service(uow, notifier, clock, treasury_id)
    service.redeem_one(reward_id)

    with pytest.raises(RewardAlreadyRedeemedError):
        service.redeem_one(reward_id)

    assert state.wallets[treasury_id].balance == 90
    assert state.wallets[user_wallet_id].balance == 10
    assert len(state.wallets[user_wallet_id].transactions) == 1
    assert len(notifier.sent) == 1


def test_redeem_unknown_reward(state, uow, notifier, clock) -> None:
    _, treasury_id, _ = _setup(state)

    with pytest.raises(RewardNotFoundError):
        _service(uow, notifier, clock, treasury_id).redeem_one("not-an-id")


def test_insufficient_treasury_aborts(state, uow, notifier, clock) -> None:
    user_id, treasury_id, user_wallet_id = _setup(state, treasury_balance=5)
    reward_id = add_reward(state, user_id, 6)

    with pytest.raises(InsufficientTreasuryError) as exc_info:
        _service(uow, notifier, clock, treasury_id).redeem_one(reward_id)

    assert exc_info.value.required == 6
    assert exc_info.value.available == 5
    assert state.wallets[treasury_id].balance == 5
    assert state.wallets[user_wallet_id].balance == 0
    assert state.rewards[reward_id].state is RewardState.PENDING


@pytest.mark.parametrize("treasury_id", [None, "64b7f0000000000000000000"])
def test_missing_treasury_wallet(state, uow, notifier, clock, treasury_id) -> None:
    user_id, _, _ = _setup(state)
    reward_id = add_reward(state, user_id, 3)

    with pytest.raises(WalletMissingError):
        _service(uow, notifier, clock, treasury_id).redeem_one(reward_id)

    assert state.rewards[reward_id].state is RewardState.PENDING


def test_missing_user_wallet(state, uow, notifier, clock) -> None:
    user_id = add_user(state)
    treasury_id = add_wallet(state, None, balance=100)
    reward_id = add_reward(state, user_id, 3)

    with pytest.raises(WalletMissingError):
        _service(uow, notifier, clock, treasury_id).redeem_one(reward_id)

    assert state.wallets[treasury_id].balance == 100


def test_missing_reward_owner(state, uow, notifier, clock) -> None:
    user_id, treasury_id, _ = _setup(state)
    reward_id = add_reward(state, user_id, 3)
    del state.users[user_id]

    with pytest.raises(UserNotFoundError):
        _service(uow, notifier, clock, treasury_id).redeem_one(reward_id)

    assert state.wallets[treasury_id].balance == 1000


def test_concurrent_redemptions_never_overdraw_treasury(state, uow, notifier, clock) -> None:
    user_id, treasury_id, user_wallet_id = _setup(state, treasury_balance=150)
    reward_ids = [add_reward(state, user_id, 100), add_reward(state, user_id, 100)]
    service = _service(uow, notifier, clock, treasury_id)
    outcomes: list[object] = []
    barrier = threading.Barrier(len(reward_ids))

    def _redeem(reward_id: str) -> None:
        barrier.wait()
        try:
            outcomes.append(service.redeem_one(reward_id))
        except RewardServiceError as exc:
            outcomes.append(exc)

    threads = [threading.Thread(target=_redeem, args=(rid,)) for rid in reward_ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    errors = [o for o in outcomes if isinstance(o, Exception)]
    assert len(outcomes) == 2
    assert len(errors) == 1
    assert isinstance(errors[0], InsufficientTreasuryError)
    assert state.wallets[treasury_id].balance == 50
    assert state.wallets[user_wallet_id].balance == 100
    states = sorted(state.rewards[rid].state.value for rid in reward_ids)
    assert states == ["pending", "redeemed"]


def test_store_failure_does_not_notify(state, uow, notifier, clock) -> None:
    user_id, treasury_id, _ = _setup(state, treasury_balance=100)
    reward_id = add_reward(state, user_id, 10)
    uow.fail_on_commit = True

    with pytest.raises(StoreError):
        _service(uow, notifier, clock, treasury_id).redeem_one(reward_id)

    assert state.wallets[treasury_id].balance == 100
    assert state.rewards[reward_id].state is RewardState.PENDING
    assert notifier.sent == []


def test_notifier_failure_does_not_change_result(state, uow, notifier, clock) -> None:
    user_id, treasury_id, _ = _setup(state, treasury_balance=100)
    reward_id = add_reward(state, user_id, 10)
    notifier.error = RuntimeError("broker down")

    result = _service(uow, notifier, clock, treasury_id).redeem_one(reward_id)

    assert result.user_balance == 10
    assert state.rewards[reward_id].state is RewardState.REDEEMED


# -------- redeem_all --------


def test_redeem_all_skips_expired_rewards(state, uow, notifier, clock) -> None:
    user_id, treasury_id, user_wallet_id = _setup(state, treasury_balance=100)
    first = add_reward(state, user_id, 5, issued_at=NOW - timedelta(days=2))
    expired = add_reward(state, user_id, 10, **_expired_at())
    second = add_reward(state, user_id, 3, issued_at=NOW - timedelta(days=1))

    result = _service(uow, notifier, clock, treasury_id).redeem_all(user_id)

    assert result.total_amount == 8
    assert result.user_balance == 8
    assert sorted(r.id for r in result.redeemed) == sorted([first, second])
    assert [r.id for r in result.skipped_expired] == [expired]

    assert state.wallets[treasury_id].balance == 92
    assert state.wallets[user_wallet_id].balance == 8
    # 일괄 사용은 지갑마다 로그 한 건만 남긴다.
    assert state.wallets[treasury_id].transactions[-1].amount == 8
    assert len(state.wallets[user_wallet_id].transactions) == 1
    assert (
        state.wallets[user_wallet_id].transactions[0].description
        == "All Rewards Redeemed - Rs.8"
    )

    assert state.rewards[first].state is RewardState.REDEEMED
    assert state.rewards[second].state is RewardState.REDEEMED
    assert state.rewards[expired].state is RewardState.PENDING
    assert notifier.sent == [
        (
            "reward",
            "All Rewards Redeemed",
            "You have successfully redeemed Rs.8 in your Wallet.",
            user_id,
        )
    ]


def test_redeem_all_with_nothing_pending(state, uow, notifier, clock) -> None:
    user_id, treasury_id, _ = _setup(state)
    add_reward(state, user_id, 5, reward_state=RewardState.REDEEMED)

    with pytest.raises(NothingPendingError):
        _service(uow, notifier, clock, treasury_id).redeem_all(user_id)


def test_redeem_all_when_everything_expired(state, uow, notifier, clock) -> None:
    user_id, treasury_id, _ = _setup(state, treasury_balance=100)
    expired_ids = {
        add_reward(state, user_id, 5, **_expired_at()),
        add_reward(state, user_id, 7, **_expired_at()),
    }

    with pytest.raises(AllRewardsExpiredError) as exc_info:
        _service(uow, notifier, clock, treasury_id).redeem_all(user_id)

    assert {r.id for r in exc_info.value.expired} == expired_ids
    assert state.wallets[treasury_id].balance == 100
    assert notifier.sent == []


def test_redeem_all_insufficient_treasury_aborts(state, uow, notifier, clock) -> None:
    user_id, treasury_id, user_wallet_id = _setup(state, treasury_balance=7)
    reward_ids = [add_reward(state, user_id, 5), add_reward(state, user_id, 3)]

    with pytest.raises(InsufficientTreasuryError):
        _service(uow, notifier, clock, treasury_id).redeem_all(user_id)

    assert state.wallets[treasury_id].balance == 7
    assert state.wallets[user_wallet_id].balance == 0
    assert all(state.rewards[rid].state is RewardState.PENDING for rid in reward_ids)
