"""리워드 레포지토리 구현체.

트랜잭션 안에서 호출될 때는 UnitOfWork 가 넘겨준 ClientSession 을 모든 쿼리에 전달한다.
"""

from __future__ import annotations

from datetime import datetime

from pymongo import DESCENDING, ReturnDocument
from pymongo.client_session import ClientSession
from pymongo.database import Database

from common.mongo.types import parse_object_id

from .documents.reward_document import RewardDocument
from .interfaces import RewardRepositoryInterface
from ..models.reward import Reward, RewardState


class RewardRepository(RewardRepositoryInterface):
    """rewards 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._db = database
        self._col = database["rewards"]
        self._session = session

    @staticmethod
    def _from_document(doc: dict) -> Reward:
        return RewardDocument.model_validate(doc).to_domain()

    def insert(self, reward: Reward) -> Reward:
        payload = RewardDocument.from_domain(reward).to_mongo_record()
        result = self._col.insert_one(payload, session=self._session)
        payload["_id"] = result.inserted_id
        return self._from_document(payload)

    def find_by_id(self, reward_id: str) -> Reward | None:
        oid = parse_object_id(reward_id)
        if oid is None:
            return None
        doc = self._col.find_one({"_id": oid}, session=self._session)
        if not doc:
            return None
        return self._from_document(doc)

    def list_by_user(self, user_id: str) -> list[Reward]:
        cursor = self._col.find(
            {"user_id": user_id},
            sort=[("issued_at", DESCENDING), ("_id", DESCENDING)],
            session=self._session,
        )
        return [self._from_document(doc) for doc in cursor]

    def list_pending_by_user(self, user_id: str) -> list[Reward]:
        cursor = self._col.find(
            {"user_id": user_id, "state": RewardState.PENDING.value},
            sort=[("issued_at", DESCENDING)],
            session=self._session,
        )
        return [self._from_document(doc) for doc in cursor]

    def count_pending_by_user(self, user_id: str) -> int:
        return self._col.count_documents(
            {"user_id": user_id, "state": RewardState.PENDING.value},
            session=self._session,
        )

    def mark_redeemed(self, reward_ids: list[str], at: datetime) -> int:
        oids = [oid for oid in (parse_object_id(r) for r in reward_ids) if oid]
        if not oids:
            return 0
        result = self._col.update_many(
            {"_id": {"$in": oids}, "state": RewardState.PENDING.value},
            {
                "$set": {
                    "state": RewardState.REDEEMED.value,
                    "is_scratching": False,
                    "redeemed_at": at,
                    "updated_at": at,
                }
            },
            session=self._session,
        )
        return result.modified_count

    def set_scratching(self, reward_id: str, scratching: bool) -> Reward | None:
        oid = parse_object_id(reward_id)
        if oid is None:
            return None
        doc = self._col.find_one_and_update(
            {"_id": oid, "state": RewardState.PENDING.value},
            {"$set": {"is_scratching": scratching}, "$currentDate": {"updated_at": True}},
            return_document=ReturnDocument.AFTER,
            session=self._session,
        )
        if not doc:
            return None
        return self._from_document(doc)
