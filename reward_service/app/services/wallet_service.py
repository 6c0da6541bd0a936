"""지갑 수명주기와 조회.

계정 활성화 시 잔액 0 지갑을 열고, 유저 삭제 시 함께 닫는다.
잔액 변경은 RedemptionService 의 작업 단위 안에서만 일어난다.
"""

from __future__ import annotations

import logging

from fastapi import Depends
from pymongo.database import Database

from common.mongo.client import get_database

from ..exceptions import WalletMissingError
from ..models.wallet import TransactionPage, Wallet
from ..repositories.errors import store_errors
from ..repositories.interfaces import WalletRepositoryInterface
from ..repositories.wallet_repository import WalletRepository, normalize_page


logger = logging.getLogger(__name__)


class WalletService:
    def __init__(self, wallet_repo: WalletRepositoryInterface) -> None:
        self._wallet_repo = wallet_repo

    def open_wallet(self, user_id: str) -> Wallet:
        """유저 지갑을 연다. 이미 있으면 기존 지갑을 그대로 반환한다."""
        with store_errors("open wallet"):
            existing = self._wallet_repo.find_by_user_id(user_id)
            if existing is not None:
                return existing
            wallet = self._wallet_repo.create(user_id)

        logger.info(
            "wallet opened user_id=%s wallet_id=%s",
            user_id,
            wallet.id,
            extra={"user_id": user_id, "wallet_id": wallet.id},
        )
        return wallet

    def get_wallet(self, user_id: str) -> Wallet:
        with store_errors("get wallet"):
            wallet = self._wallet_repo.find_by_user_id(user_id)
        if wallet is None:
            raise WalletMissingError(f"User wallet not found (user_id={user_id})")
        return wallet

    def get_history(
        self, user_id: str, page: int = 1, page_size: int = 20
    ) -> TransactionPage:
        """거래 이력을 최신순으로 조회한다. 응답의 page/page_size 는 실제로 쓴 값이다."""
        page, page_size = normalize_page(page, page_size)
        with store_errors("list wallet transactions"):
            if self._wallet_repo.find_by_user_id(user_id) is None:
                raise WalletMissingError(f"User wallet not found (user_id={user_id})")
            items, total = self._wallet_repo.list_transactions(user_id, page, page_size)
        return TransactionPage(items=items, total=total, page=page, page_size=page_size)

    def close_wallet(self, user_id: str) -> bool:
        """유저 삭제 시 지갑을 함께 삭제한다. 삭제된 지갑이 있었는지 반환한다."""
        with store_errors("close wallet"):
            deleted = self._wallet_repo.delete_by_user_id(user_id)
        if deleted:
            logger.info("wallet closed user_id=%s", user_id, extra={"user_id": user_id})
        return deleted


def get_wallet_repository(
    db: Database = Depends(get_database),
) -> WalletRepositoryInterface:
    """FastAPI DI용 WalletRepository 팩토리."""

    return WalletRepository(db)


def get_wallet_service(
    wallet_repo: WalletRepositoryInterface = Depends(get_wallet_repository),
) -> WalletService:
    """FastAPI DI용 WalletService 팩토리."""

    return WalletService(wallet_repo)
