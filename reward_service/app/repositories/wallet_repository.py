"""지갑 레포지토리 구현체.

잔액($inc)과 거래 로그($push)를 한 번의 find_one_and_update 로 반영해
도큐먼트 단위에서 잔액 = 로그 합계가 깨지지 않도록 한다.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pymongo import ReturnDocument
from pymongo.client_session import ClientSession
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from common.mongo.types import parse_object_id

from ..exceptions import WalletMissingError
from .documents.wallet_document import WalletDocument, WalletTransactionDocument
from .interfaces import WalletRepositoryInterface
from ..models.wallet import TransactionType, Wallet, WalletTransaction


DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def normalize_page(page: int, page_size: int) -> tuple[int, int]:
    """범위를 벗어난 페이지 값을 실제 조회에 쓰는 값으로 바꾼다."""
    if page <= 0:
        page = 1
    if page_size <= 0 or page_size > MAX_PAGE_SIZE:
        page_size = DEFAULT_PAGE_SIZE
    return page, page_size


class WalletRepository(WalletRepositoryInterface):
    """wallets 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._db = database
        self._col = database["wallets"]
        self._session = session

    @staticmethod
    def _from_document(doc: dict) -> Wallet:
        return WalletDocument.model_validate(doc).to_domain()

    def find_by_id(self, wallet_id: str) -> Wallet | None:
        oid = parse_object_id(wallet_id)
        if oid is None:
            return None
        doc = self._col.find_one({"_id": oid}, session=self._session)
        if not doc:
            return None
        return self._from_document(doc)

    def find_by_user_id(self, user_id: str) -> Wallet | None:
        doc = self._col.find_one({"user_id": user_id}, session=self._session)
        if not doc:
            return None
        return self._from_document(doc)

    def create(self, user_id: str) -> Wallet:
        """잔액 0 인 지갑을 만든다. 이미 있으면 기존 지갑을 반환한다."""
        now = datetime.now(timezone.utc)
        payload = WalletDocument(
            user_id=user_id,
            balance=0,
            transactions=[],
            created_at=now,
            updated_at=now,
        ).to_mongo_record()
        try:
            result = self._col.insert_one(payload, session=self._session)
        except DuplicateKeyError:
            existing = self.find_by_user_id(user_id)
            if existing is None:
                raise
            return existing
        payload["_id"] = result.inserted_id
        return self._from_document(payload)

    def apply_transaction(
        self, wallet_id: str, delta: int, description: str, at: datetime
    ) -> Wallet:
        oid = parse_object_id(wallet_id)
        if oid is None:
            raise WalletMissingError(f"Wallet not found (wallet_id={wallet_id})")

        entry = WalletTransactionDocument(
            amount=abs(delta),
            type=TransactionType.CREDIT if delta >= 0 else TransactionType.DEBIT,
            description=description,
            created_at=at,
        )
        doc = self._col.find_one_and_update(
            {"_id": oid},
            {
                "$inc": {"balance": delta},
                "$push": {"transactions": entry.to_mongo_record()},
                "$set": {"updated_at": at},
            },
            return_document=ReturnDocument.AFTER,
            session=self._session,
        )
        if not doc:
            raise WalletMissingError(f"Wallet not found (wallet_id={wallet_id})")
        return self._from_document(doc)

    def delete_by_user_id(self, user_id: str) -> bool:
        result = self._col.delete_one({"user_id": user_id}, session=self._session)
        return result.deleted_count > 0

    def list_transactions(
        self, user_id: str, page: int, page_size: int
    ) -> tuple[list[WalletTransaction], int]:
        """거래 로그를 최신순으로 페이지 단위 조회한다."""
        page, page_size = normalize_page(page, page_size)
        skip = (page - 1) * page_size
        pipeline = [
            {"$match": {"user_id": user_id}},
            {
                "$project": {
                    "total": {"$size": "$transactions"},
                    "items": {
                        "$slice": [{"$reverseArray": "$transactions"}, skip, page_size]
                    },
                }
            },
        ]
        rows = list(self._col.aggregate(pipeline, session=self._session))
        if not rows:
            return [], 0

        row = rows[0]
        items = [
            WalletTransactionDocument.model_validate(raw).to_domain()
            for raw in row.get("items", [])
        ]
        return items, int(row.get("total", 0))
