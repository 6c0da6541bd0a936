"""지갑 도메인 모델.

유저당 지갑 하나와 조직 소유의 treasury(관리자) 지갑 하나가 있다.
잔액은 항상 거래 로그의 부호 있는 합과 같아야 한다.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class TransactionType(str, Enum):
    CREDIT = "Credit"
    DEBIT = "Debit"


class WalletTransaction(BaseModel):
    amount: int = Field(ge=0)
    type: TransactionType
    description: str
    created_at: datetime

    @property
    def signed_amount(self) -> int:
        return self.amount if self.type is TransactionType.CREDIT else -self.amount


class Wallet(BaseModel):
    id: str | None = None
    user_id: str | None  # treasury 지갑은 None 일 수 있다
    balance: int = 0
    transactions: list[WalletTransaction] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class TransactionPage(BaseModel):
    """거래 이력 한 페이지. page/page_size 는 보정 후 실제 조회에 쓴 값이다."""

    items: list[WalletTransaction]
    total: int
    page: int
    page_size: int
