"""
Источник текущего пользователя
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

logger = logging.getLogger(__name__)

class SessionProvider(ABC):
    """Кто сейчас авторизован"""

    @property
    @abstractmethod
    def current_user_id(self) -> Optional[str]:
        pass

    @property
    def is_authenticated(self) -> bool:
        return self.current_user_id is not None

class StaticSessionProvider(SessionProvider):
    """Сессия с явно заданным пользователем"""

    def __init__(self, user_id: Optional[str] = None):
        self._user_id = user_id

    @property
    def current_user_id(self) -> Optional[str]:
        return self._user_id

    def sign_in(self, user_id: str) -> None:
        if not user_id:
            raise ValueError("user_id is required")
        self._user_id = user_id
        logger.info(f"👤 Вход: {user_id}")

    def sign_out(self) -> None:
        logger.info(f"👋 Выход: {self._user_id}")
        self._user_id = None
