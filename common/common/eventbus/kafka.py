from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict
from typing import Any

from confluent_kafka import Producer

from .config import get_brokers, get_message_max_bytes
from .core import Event

logger = logging.getLogger(__name__)


class KafkaEventBus:
    """Kafka 발행 전용 EventBus.

    이 서비스는 알림/리워드 이벤트를 내보내기만 하고, 재시도와 DLQ 는 소비자 쪽 책임이다.
    """

    def __init__(self, brokers: str) -> None:
        producer_config: dict[str, Any] = {"bootstrap.servers": brokers}
        max_bytes = get_message_max_bytes()
        if max_bytes is not None:
            producer_config["message.max.bytes"] = max_bytes
        self._producer = Producer(producer_config)
        self._brokers = brokers

    def close(self, timeout: float = 5.0) -> None:
        self._producer.flush(timeout)

    def publish(self, topic: str, event: Event) -> None:
        payload = json.dumps(asdict(event), ensure_ascii=False, default=str).encode(
            "utf-8"
        )

        def _delivery_callback(err, msg) -> None:  # type: ignore[no-untyped-def]
            if err is not None:
                logger.error("failed to deliver message to %s: %s", msg.topic(), err)

        self._producer.produce(
            topic=topic,
            value=payload,
            key=event.id.encode("utf-8"),
            callback=_delivery_callback,
        )
        self._producer.poll(0)


_bus: KafkaEventBus | None = None
_bus_lock = threading.Lock()


def get_kafka_event_bus() -> KafkaEventBus:
    """KAFKA_BOOTSTRAP_SERVERS 로 생성한 프로세스 전역 EventBus 를 반환한다."""

    global _bus

    if _bus is not None:
        return _bus

    with _bus_lock:
        if _bus is None:
            _bus = KafkaEventBus(get_brokers())
    return _bus


def close_kafka_event_bus() -> None:
    global _bus

    with _bus_lock:
        if _bus is not None:
            _bus.close()
        _bus = None
