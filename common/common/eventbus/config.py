from __future__ import annotations

import os


KAFKA_BOOTSTRAP_SERVERS_ENV = "KAFKA_BOOTSTRAP_SERVERS"


def get_brokers() -> str:
    value = os.getenv(KAFKA_BOOTSTRAP_SERVERS_ENV)
    if not value:
        raise RuntimeError(
            f"{KAFKA_BOOTSTRAP_SERVERS_ENV} environment variable is required"
        )
    return value


def find_brokers() -> str | None:
    """브로커 설정이 선택 사항인 곳(알림 발행 등)에서 사용한다. 없으면 None."""

    value = os.getenv(KAFKA_BOOTSTRAP_SERVERS_ENV, "").strip()
    return value or None


def get_message_max_bytes() -> int | None:
    """producer 의 message.max.bytes 값을 반환한다.

    - KAFKA_MESSAGE_MAX_BYTES 가 비어 있거나 0 이하이면 None (라이브러리 기본값).
    - 정수가 아니면 설정 오류로 보고 RuntimeError 를 발생시킨다.
    """

    raw_value = os.getenv("KAFKA_MESSAGE_MAX_BYTES", "").strip()
    if not raw_value:
        return None

    try:
        value = int(raw_value)
    except ValueError as exc:  # noqa: TRY003
        raise RuntimeError(
            "KAFKA_MESSAGE_MAX_BYTES must be an integer value, got: " f"{raw_value!r}"
        ) from exc

    if value <= 0:
        return None

    return value
