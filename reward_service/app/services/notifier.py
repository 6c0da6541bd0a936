"""커밋 이후 유저 알림 발행.

알림은 리워드 트랜잭션 밖에서 한 번만 보낸다. 전달/재시도는 알림 서비스(consumer)의 몫이다.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Protocol

from common.eventbus.config import find_brokers
from common.eventbus.helpers import new_json_event
from common.eventbus.kafka import KafkaEventBus, get_kafka_event_bus
from common.eventbus.topics import TOPIC_NOTIFICATION
from common.events.notification import (
    NotificationEventType,
    NotificationRequestedEvent,
)


logger = logging.getLogger(__name__)


class NotifierInterface(Protocol):
    def notify(
        self, category: str, title: str, body: str, user_id: str
    ) -> None:  # pragma: no cover - Protocol
        ...


class KafkaNotifier(NotifierInterface):
    """notification.requested 이벤트를 Kafka 로 발행한다."""

    def __init__(self, bus: KafkaEventBus, source: str = "reward-service") -> None:
        self._bus = bus
        self._source = source

    def notify(self, category: str, title: str, body: str, user_id: str) -> None:
        event_id = str(uuid.uuid4())
        event = NotificationRequestedEvent(
            id=event_id,
            type=NotificationEventType.NOTIFICATION_REQUESTED,
            timestamp=datetime.now(timezone.utc).isoformat(),
            source=self._source,
            version="1.0",
            user_id=user_id,
            category=category,
            title=title,
            body=body,
        )
        wrapped = new_json_event(payload=asdict(event), event_id=event_id)
        self._bus.publish(TOPIC_NOTIFICATION.base, wrapped)


class NullNotifier(NotifierInterface):
    """브로커가 설정되지 않은 환경용. 로그만 남긴다."""

    def notify(self, category: str, title: str, body: str, user_id: str) -> None:
        logger.debug(
            "notifications disabled, dropping %s notification for user %s",
            category,
            user_id,
            extra={"user_id": user_id},
        )


def get_notifier() -> NotifierInterface:
    """FastAPI DI용 Notifier 팩토리. KAFKA_BOOTSTRAP_SERVERS 가 없으면 NullNotifier."""

    if find_brokers() is None:
        return NullNotifier()
    return KafkaNotifier(get_kafka_event_bus())
