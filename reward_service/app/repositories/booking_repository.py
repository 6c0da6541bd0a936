from __future__ import annotations

from datetime import datetime

from pymongo.client_session import ClientSession
from pymongo.database import Database

from common.mongo.types import parse_object_id

from .interfaces import BookingRepositoryInterface


class BookingRepository(BookingRepositoryInterface):
    """bookingdetails 컬렉션(예매 서비스 소유)에 대한 읽기 전용 접근 레이어."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._db = database
        self._col = database["bookingdetails"]
        self._session = session

    def count_recent(self, user_id: str, since: datetime) -> int:
        # 예매 서비스는 userId 를 문자열로 저장하지만, 과거 데이터에는 ObjectId 가 섞여 있다.
        user_refs: list[object] = [user_id]
        oid = parse_object_id(user_id)
        if oid is not None:
            user_refs.append(oid)

        return self._col.count_documents(
            {"userId": {"$in": user_refs}, "bookingDate": {"$gte": since}},
            session=self._session,
        )
