from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from pydantic.functional_serializers import PlainSerializer


def serialize_datetime_to_utc_iso8601(value: datetime) -> str:
    """API 응답의 datetime 을 UTC ISO8601(+00:00) 문자열로 직렬화한다.

    만료 시각 비교를 클라이언트가 하므로 타임존 없는 값은 내보내지 않는다.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.isoformat()


UtcDateTime = Annotated[
    datetime,
    PlainSerializer(
        serialize_datetime_to_utc_iso8601,
        return_type=str,
        when_used="json",
    ),
]


def utc_now() -> datetime:
    """서비스 전반에서 쓰는 기본 시계. 테스트에서는 고정 시계로 교체한다."""
    return datetime.now(timezone.utc)
