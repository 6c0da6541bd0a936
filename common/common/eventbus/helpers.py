from __future__ import annotations

import time
from typing import Any, Mapping

from .core import Event, RetryDelays


def new_json_event(
    payload: Mapping[str, Any],
    *,
    max_retry: int | None = None,
    event_id: str | None = None,
) -> Event:
    """payload 를 표준 JSON 이벤트 봉투로 감싼다.

    - event_id 가 비어 있으면 나노초 타임스탬프 문자열을 사용한다.
    - max_retry 가 1~len(RetryDelays) 범위를 벗어나면 기본값을 사용한다.
    """
    if max_retry is None or max_retry <= 0 or max_retry > len(RetryDelays):
        max_retry = len(RetryDelays)

    if not event_id:
        event_id = str(time.time_ns())

    return Event(id=event_id, payload=dict(payload), retry=0, max_retry=max_retry)