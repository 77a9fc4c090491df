"""
Модуль сервисов Taskly

Сборка сервисов по конфигурации: хранилище, AI, уведомления,
состояние пользователя и таймер фокуса.
"""

import logging
from typing import Optional

from taskly.config import StorageBackend
from taskly.storage.gateway import InMemoryGateway, JsonFileGateway, PersistenceGateway
from .ai_service import AIService, create_ai_service
from .data_service import DataService
from .notifications import NotificationCenter
from .session import SessionProvider, StaticSessionProvider
from .timer_service import FocusTimerService

logger = logging.getLogger(__name__)

def create_gateway(storage_config) -> PersistenceGateway:
    """Шлюз хранилища по STORAGE_BACKEND"""
    if storage_config.backend == StorageBackend.JSON:
        return JsonFileGateway(storage_config.data_file, storage_config.backup_dir,
                               storage_config.max_backups)
    return InMemoryGateway()

class ServiceManager:
    """
    Управление всеми сервисами приложения

    Инициализирует сервисы в нужном порядке и корректно их закрывает.
    """

    def __init__(self, app_config, session: Optional[SessionProvider] = None):
        self.config = app_config
        self.session = session or StaticSessionProvider()
        self.notifier = NotificationCenter()
        self.data_service: Optional[DataService] = None
        self.timer_service: Optional[FocusTimerService] = None
        self.initialized = False

    async def initialize(self, use_storage: bool = True) -> DataService:
        if self.initialized:
            return self.data_service

        gateway = create_gateway(self.config.storage) if use_storage else None
        self.data_service = DataService(
            self.session,
            gateway=gateway,
            notifier=self.notifier,
            ai_service=create_ai_service(self.config.ai),
            plan=self.config.app.default_plan,
            timezone=self.config.app.timezone,
        )
        await self.data_service.load()
        self.timer_service = FocusTimerService(self.data_service)
        self.initialized = True

        logger.info("✅ Сервисы инициализированы")
        return self.data_service

    async def close(self) -> None:
        if self.timer_service is not None:
            await self.timer_service.close()
        if self.data_service is not None:
            await self.data_service.close()
        self.initialized = False
        logger.info("🛑 Сервисы закрыты")

__all__ = [
    'AIService', 'create_ai_service', 'DataService', 'NotificationCenter',
    'SessionProvider', 'StaticSessionProvider', 'FocusTimerService',
    'create_gateway', 'ServiceManager',
]
