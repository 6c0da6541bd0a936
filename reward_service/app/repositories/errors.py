"""트랜잭션 밖 저장소 호출의 오류 변환.

UnitOfWork 를 거치지 않는 조회/단건 갱신도 같은 에러 응답(StoreError, 503)을 내도록
pymongo 오류와 읽을 수 없는 도큐먼트를 StoreError 로 바꾼다.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from pydantic import ValidationError
from pymongo.errors import PyMongoError

from ..exceptions import StoreError


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except PyMongoError as exc:
        raise StoreError(f"{operation} failed: {exc}") from exc
    except ValidationError as exc:
        raise StoreError(f"{operation} read a malformed document: {exc}") from exc
