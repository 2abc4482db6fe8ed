from __future__ import annotations

from .core import Topic


TOPIC_APPLICATION = Topic("room-dates.application")
TOPIC_REFUND = Topic("room-dates.refund")
