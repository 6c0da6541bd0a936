from __future__ import annotations

from .core import Topic


TOPIC_NOTIFICATION = Topic("event-horizon.notification")
