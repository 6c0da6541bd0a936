"""지갑 MongoDB 도큐먼트.

잔액과 거래 로그를 한 도큐먼트에 담아, 잔액 변경과 로그 추가가 단일 업데이트로 처리되게 한다.
"""

from __future__ import annotations

from typing import Any, Optional

from bson import ObjectId
from pydantic import BaseModel, model_validator

from common.mongo.types import BaseDocument, MongoDateTime, from_object_id

from ...models.wallet import TransactionType, Wallet, WalletTransaction


class WalletTransactionDocument(BaseModel):
    amount: int
    type: TransactionType
    description: str
    created_at: MongoDateTime

    def to_mongo_record(self) -> dict:
        return {
            "amount": self.amount,
            "type": self.type.value,
            "description": self.description,
            "created_at": self.created_at,
        }

    def to_domain(self) -> WalletTransaction:
        return WalletTransaction(
            amount=self.amount,
            type=self.type,
            description=self.description,
            created_at=self.created_at,
        )


class WalletDocument(BaseDocument):
    """MongoDB wallets 컬렉션 도큐먼트 모델.

    treasury 지갑은 운영자가 직접 넣으므로 `{_id, balance, transactions}` 만 있을 수 있다.
    타임스탬프가 없으면 _id 의 생성 시각으로 채운다.
    """

    user_id: Optional[str] = None
    balance: int = 0
    transactions: list[WalletTransactionDocument] = []

    @model_validator(mode="before")
    @classmethod
    def _fill_missing_timestamps(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        oid = data.get("_id")
        if not isinstance(oid, ObjectId) or (
            "created_at" in data and "updated_at" in data
        ):
            return data
        data = dict(data)
        data.setdefault("created_at", oid.generation_time)
        data.setdefault("updated_at", data["created_at"])
        return data

    def to_domain(self) -> Wallet:
        return Wallet(
            id=from_object_id(self.id),
            user_id=self.user_id,
            balance=self.balance,
            transactions=[tx.to_domain() for tx in self.transactions],
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
