from __future__ import annotations

from dataclasses import dataclass
from typing import Any


# 소비자 측 재시도 간격. 이벤트 봉투의 max_retry 상한으로도 사용한다.
RetryDelays: list[float] = [
    60.0,
    300.0,
    600.0,
    1800.0,
    3600.0,
]


@dataclass(slots=True)
class Event:
    """Kafka 메시지 봉투.

    payload 는 JSON 직렬화 직전의 dict 를 담고, 재시도 정보는 소비자가 갱신한다.
    """

    id: str
    payload: Any
    retry: int = 0
    max_retry: int = 0
    last_error: str | None = None

    def __post_init__(self) -> None:
        if self.max_retry <= 0 or self.max_retry > len(RetryDelays):
            self.max_retry = len(RetryDelays)


@dataclass(frozen=True, slots=True)
class Topic:
    base: str
