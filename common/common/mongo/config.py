from __future__ import annotations

import os


MONGO_URI_ENV = "MONGO_URI"
MONGO_DB_NAME_ENV = "MONGO_DB_NAME"


def get_mongo_uri() -> str:
    """MongoDB 연결 URI 를 반환한다.

    멀티 도큐먼트 트랜잭션을 사용하므로 replica set 으로 구성된 클러스터를 가리켜야 한다.
    설정되지 않은 경우 애플리케이션이 즉시 실패하도록 RuntimeError 를 발생시킨다.
    """

    value = os.getenv(MONGO_URI_ENV)
    if not value:
        raise RuntimeError(
            f"{MONGO_URI_ENV} environment variable is required for MongoDB",
        )
    return value


def get_mongo_db_name() -> str | None:
    """MONGO_DB_NAME 이 있으면 반환하고, 없으면 None (URI 의 기본 DB 사용)."""

    value = os.getenv(MONGO_DB_NAME_ENV, "").strip()
    return value or None
