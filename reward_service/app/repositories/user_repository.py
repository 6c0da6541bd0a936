from __future__ import annotations

from datetime import datetime

from pymongo.client_session import ClientSession
from pymongo.database import Database

from common.models.user import User
from common.mongo.types import parse_object_id

from .documents.user_document import UserDocument
from .interfaces import UserRepositoryInterface


class UserRepository(UserRepositoryInterface):
    """users 컬렉션 접근 레이어. 필드명은 계정 서비스 스키마(camelCase)를 따른다."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._db = database
        self._col = database["users"]
        self._session = session

    def find_by_id(self, user_id: str) -> User | None:
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        doc = self._col.find_one(
            {"_id": oid},
            projection={"userName": 1, "emailID": 1, "roles": 1, "lastRewardDate": 1},
            session=self._session,
        )
        if not doc:
            return None
        return UserDocument.model_validate(doc).to_domain()

    def set_last_reward_date(self, user_id: str, at: datetime) -> bool:
        oid = parse_object_id(user_id)
        if oid is None:
            return False
        result = self._col.update_one(
            {"_id": oid},
            {"$set": {"lastRewardDate": at}},
            session=self._session,
        )
        return result.matched_count > 0
