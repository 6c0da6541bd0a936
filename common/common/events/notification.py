"""알림 요청 이벤트 정의."""

from __future__ import annotations

from dataclasses import dataclass


class NotificationEventType:
    """알림 이벤트 타입 상수."""

    NOTIFICATION_REQUESTED = "notification.requested"


class NotificationCategory:
    """알림 카테고리 상수. 앱의 알림 탭 분류와 일치한다."""

    REWARD = "reward"


@dataclass(slots=True)
class NotificationRequestedEvent:
    """유저에게 푸시/인앱 알림을 보내 달라는 요청.

    알림 서비스가 소비하며, 전송 실패 시 재시도는 그쪽에서 처리한다.
    """

    id: str
    type: str
    timestamp: str
    source: str
    version: str
    user_id: str
    category: str
    title: str
    body: str
