from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml


DEFAULT_CONFIG_FILE_NAME = "config.yaml"

ADMIN_WALLET_ID_ENV = "ADMIN_WALLET_ID"
REWARD_TXN_MAX_ATTEMPTS_ENV = "REWARD_TXN_MAX_ATTEMPTS"
DEFAULT_TXN_MAX_ATTEMPTS = 5


@dataclass(frozen=True, slots=True)
class RewardPolicy:
    """리워드 발급 규칙.

    - window_days: 활동 집계 기간이자 발급 최소 간격
    - min_bookings: window_days 안에 필요한 최소 예매 건수
    - expiry_days: 발급 후 만료까지의 일수
    - win_probability / min_amount / max_amount: 당첨 확률과 당첨 금액 범위(양 끝 포함)
    """

    window_days: int = 15
    min_bookings: int = 15
    expiry_days: int = 7
    win_probability: float = 0.5
    min_amount: int = 1
    max_amount: int = 20

    def __post_init__(self) -> None:
        if self.window_days <= 0 or self.expiry_days <= 0:
            raise ValueError("window_days and expiry_days must be positive")
        if self.min_bookings < 0:
            raise ValueError("min_bookings must not be negative")
        if not 0.0 <= self.win_probability <= 1.0:
            raise ValueError("win_probability must be within [0, 1]")
        if self.min_amount < 1 or self.max_amount < self.min_amount:
            raise ValueError("amount range must satisfy 1 <= min_amount <= max_amount")


@dataclass(frozen=True, slots=True)
class AppConfig:
    """reward-service 전체 설정 루트."""

    rewards: RewardPolicy
    # treasury(관리자) 지갑 ID. 없으면 기동은 하되 사용 요청이 WalletMissing 으로 실패한다.
    treasury_wallet_id: str | None
    txn_max_attempts: int


def _find_config_path() -> Path | None:
    """현재 작업 디렉토리부터 상위로 올라가며 config.yaml 을 찾는다."""

    current = Path.cwd()
    for directory in (current, *current.parents):
        candidate = directory / DEFAULT_CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def load_reward_policy(path: Path | None = None) -> RewardPolicy:
    """config.yaml 의 rewards 섹션을 읽는다. 파일이나 키가 없으면 기본값을 쓴다."""

    path = path or _find_config_path()
    if path is None:
        return RewardPolicy()

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    section: dict[str, Any] = data.get("rewards") or {}
    defaults = RewardPolicy()
    try:
        return RewardPolicy(
            window_days=int(section.get("window_days", defaults.window_days)),
            min_bookings=int(section.get("min_bookings", defaults.min_bookings)),
            expiry_days=int(section.get("expiry_days", defaults.expiry_days)),
            win_probability=float(
                section.get("win_probability", defaults.win_probability)
            ),
            min_amount=int(section.get("min_amount", defaults.min_amount)),
            max_amount=int(section.get("max_amount", defaults.max_amount)),
        )
    except (TypeError, ValueError) as exc:  # noqa: TRY003
        raise RuntimeError(f"invalid rewards section in {path}: {exc}") from exc


def get_treasury_wallet_id() -> str | None:
    value = os.getenv(ADMIN_WALLET_ID_ENV, "").strip()
    return value or None


def get_txn_max_attempts() -> int:
    raw_value = os.getenv(REWARD_TXN_MAX_ATTEMPTS_ENV, "").strip()
    if not raw_value:
        return DEFAULT_TXN_MAX_ATTEMPTS
    try:
        value = int(raw_value)
    except ValueError as exc:  # noqa: TRY003
        raise RuntimeError(
            f"{REWARD_TXN_MAX_ATTEMPTS_ENV} must be an integer value, got: {raw_value!r}"
        ) from exc
    if value <= 0:
        raise RuntimeError(f"{REWARD_TXN_MAX_ATTEMPTS_ENV} must be positive")
    return value


@lru_cache()
def load_config() -> AppConfig:
    """reward-service 설정을 로드하여 AppConfig 로 반환한다."""

    return AppConfig(
        rewards=load_reward_policy(),
        treasury_wallet_id=get_treasury_wallet_id(),
        txn_max_attempts=get_txn_max_attempts(),
    )
