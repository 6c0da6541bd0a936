from __future__ import annotations

from pydantic import BaseModel

from common.types.datetime import UtcDateTime

from ...models.wallet import TransactionType, Wallet, WalletTransaction


class WalletResponse(BaseModel):
    id: str | None
    user_id: str | None
    balance: int
    created_at: UtcDateTime
    updated_at: UtcDateTime

    @classmethod
    def from_domain(cls, wallet: Wallet) -> "WalletResponse":
        return cls(
            id=wallet.id,
            user_id=wallet.user_id,
            balance=wallet.balance,
            created_at=wallet.created_at,
            updated_at=wallet.updated_at,
        )


class WalletTransactionResponse(BaseModel):
    amount: int
    type: TransactionType
    description: str
    created_at: UtcDateTime

    @classmethod
    def from_domain(cls, tx: WalletTransaction) -> "WalletTransactionResponse":
        return cls(
            amount=tx.amount,
            type=tx.type,
            description=tx.description,
            created_at=tx.created_at,
        )
