"""
Рассылка уведомлений подписчикам (UI, консоль, тесты)
"""

import asyncio
import logging
from collections import deque
from typing import Callable, Deque, Iterable, List, Optional

from taskly.core.events import Notification, NotificationType

logger = logging.getLogger(__name__)

Listener = Callable[[Notification], object]

_LOG_LEVELS = {
    NotificationType.ERROR: logging.WARNING,
    NotificationType.LIMIT_REACHED: logging.WARNING,
}

class NotificationCenter:
    """Хранит последние уведомления и передает их слушателям"""

    def __init__(self, history_size: int = 100):
        self.listeners: List[Listener] = []
        self.history: Deque[Notification] = deque(maxlen=history_size)

    def add_listener(self, listener: Listener) -> None:
        self.listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    async def publish(self, notifications: Iterable[Notification]) -> None:
        for notification in notifications:
            self.history.append(notification)
            logger.log(_LOG_LEVELS.get(notification.type, logging.INFO),
                       f"🔔 [{notification.type.value}] {notification.message}")

            for listener in list(self.listeners):
                try:
                    result = listener(notification)
                    if asyncio.iscoroutine(result):
                        await result
                except Exception as e:
                    # Ошибка одного слушателя не мешает остальным
                    logger.warning(f"⚠️ Слушатель уведомлений упал: {e}")

    def last(self, type_: Optional[NotificationType] = None) -> Optional[Notification]:
        for notification in reversed(self.history):
            if type_ is None or notification.type == type_:
                return notification
        return None

    def of_type(self, type_: NotificationType) -> List[Notification]:
        return [n for n in self.history if n.type == type_]

    def clear(self) -> None:
        self.history.clear()
