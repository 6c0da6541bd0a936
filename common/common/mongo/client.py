from __future__ import annotations

import logging
import threading
from typing import Optional

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from .config import get_mongo_db_name, get_mongo_uri


logger = logging.getLogger(__name__)


_client: Optional[MongoClient] = None
_db: Optional[Database] = None
_lock = threading.Lock()


def get_client() -> MongoClient:
    """전역 MongoClient 싱글톤을 반환한다.

    - MONGO_URI 로 접속하고 ping 으로 연결을 검증한다.
    - MONGO_DB_NAME 이 없으면 URI 의 기본 데이터베이스를 사용한다.
    - 최초 1회 필수 인덱스를 생성한다.
    """

    global _client, _db

    if _client is not None:
        return _client

    with _lock:
        if _client is not None:
            return _client

        client: MongoClient = MongoClient(get_mongo_uri(), tz_aware=True)

        try:
            client.admin.command("ping")
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(f"failed to connect to MongoDB: {exc}") from exc

        db_name = get_mongo_db_name()
        try:
            db = client[db_name] if db_name else client.get_default_database()
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(
                "MongoDB database name must be specified via MONGO_DB_NAME or in MONGO_URI (mongodb://.../db_name)",
            ) from exc

        try:
            _ensure_indexes(db)
        except Exception as exc:  # noqa: BLE001
            logger.error("failed to ensure MongoDB indexes: %s", exc)
            client.close()
            raise

        _client = client
        _db = db
        logger.info("MongoDB connected and indexes ensured (db=%s)", db.name)
        return _client


def get_database() -> Database:
    """전역 기본 Database 객체를 반환한다."""

    if _db is None:
        get_client()
    if _db is None:
        raise RuntimeError("MongoDB database is not initialized")
    return _db


def close_client() -> None:
    """애플리케이션 종료 시 커넥션 풀을 정리한다."""

    global _client, _db

    with _lock:
        if _client is not None:
            _client.close()
        _client = None
        _db = None


def _ensure_indexes(db: Database) -> None:
    """reward / wallet 트랜잭션이 의존하는 인덱스를 생성한다 (idempotent)."""

    wallets = db["wallets"]
    # 유저당 지갑은 하나. treasury 지갑은 user_id 가 없을 수 있으므로 partial 로 건다.
    wallets.create_index(
        [("user_id", ASCENDING)],
        name="uniq_user_id",
        unique=True,
        partialFilterExpression={"user_id": {"$type": "string"}},
    )

    rewards = db["rewards"]
    rewards.create_index(
        [("user_id", ASCENDING), ("issued_at", DESCENDING)],
        name="idx_user_issued_at_desc",
    )
    rewards.create_index(
        [("user_id", ASCENDING), ("state", ASCENDING)],
        name="idx_user_state",
    )

    # 예매 컬렉션은 예매 서비스 소유라 필드명이 camelCase 다.
    bookings = db["bookingdetails"]
    bookings.create_index(
        [("userId", ASCENDING), ("bookingDate", DESCENDING)],
        name="idx_user_booking_date",
    )
