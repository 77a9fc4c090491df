#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Taskly v1.0 - Configuration
Централизованная конфигурация из переменных окружения

Ни одна переменная не является обязательной: без ключей AI и без
хранилища приложение работает на резервных ответах и демо-данных.
"""

import os
import sys
import logging
import logging.config
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass
from enum import Enum

class Environment(Enum):
    """Среды выполнения"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"

class LogLevel(Enum):
    """Уровни логирования"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

class StorageBackend(Enum):
    """Варианты хранилища"""
    MEMORY = "memory"
    JSON = "json"

@dataclass
class AIConfig:
    """Конфигурация AI сервисов"""
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_max_tokens: int = 600
    ai_enabled: bool = False
    request_timeout: float = 10.0
    rate_limit_per_minute: int = 30
    cache_ttl_seconds: int = 3600

@dataclass
class StorageConfig:
    """Конфигурация хранилища"""
    backend: StorageBackend = StorageBackend.MEMORY
    data_dir: Path = Path("data")
    backup_dir: Path = Path("backups")
    max_backups: int = 10

    @property
    def data_file(self) -> Path:
        return self.data_dir / "taskly_data.json"

@dataclass
class AppConfig:
    """Общие настройки приложения"""
    timezone: str = "UTC"
    default_plan: str = "free"

def _env_bool(key: str, default: str = "false") -> bool:
    return os.getenv(key, default).lower() in ("1", "true", "yes")

class TasklyConfig:
    """Главный класс конфигурации"""

    def __init__(self):
        self.environment = Environment(os.getenv('ENVIRONMENT', 'development'))
        self._load_config()
        self._validate_config()

    def _load_config(self):
        """Загрузка конфигурации из переменных окружения"""
        openai_key = os.getenv('OPENAI_API_KEY') or None
        self.ai = AIConfig(
            openai_api_key=openai_key,
            openai_model=os.getenv('OPENAI_MODEL', 'gpt-4o-mini'),
            openai_max_tokens=int(os.getenv('OPENAI_MAX_TOKENS', 600)),
            ai_enabled=_env_bool('AI_ENABLED', 'true' if openai_key else 'false'),
            request_timeout=float(os.getenv('AI_TIMEOUT', 10)),
            rate_limit_per_minute=int(os.getenv('AI_RATE_LIMIT', 30)),
            cache_ttl_seconds=int(os.getenv('AI_CACHE_TTL', 3600))
        )

        self.storage = StorageConfig(
            backend=StorageBackend(os.getenv('STORAGE_BACKEND', 'memory')),
            data_dir=Path(os.getenv('DATA_DIR', 'data')),
            backup_dir=Path(os.getenv('BACKUP_DIR', 'backups')),
            max_backups=int(os.getenv('MAX_BACKUPS', 10))
        )

        self.app = AppConfig(
            timezone=os.getenv('TIMEZONE', 'UTC'),
            default_plan=os.getenv('DEFAULT_PLAN', 'free')
        )

        # Логирование
        self.log_level = LogLevel(os.getenv('LOG_LEVEL', 'INFO').upper())
        self.log_to_file = _env_bool('LOG_TO_FILE', 'false')
        self.log_dir = Path(os.getenv('LOG_DIR', 'logs'))
        self.log_format = os.getenv(
            'LOG_FORMAT',
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )

    def _validate_config(self):
        """Валидация конфигурации"""
        errors = []

        if self.ai.request_timeout <= 0:
            errors.append("AI_TIMEOUT должен быть положительным числом")

        if self.ai.rate_limit_per_minute <= 0:
            errors.append("AI_RATE_LIMIT должен быть положительным числом")

        if self.app.default_plan not in ("free", "pro"):
            errors.append(f"DEFAULT_PLAN '{self.app.default_plan}' не поддерживается (free, pro)")

        if self.ai.ai_enabled and not self.ai.openai_api_key:
            logging.warning("⚠️ AI_ENABLED без OPENAI_API_KEY - используются резервные ответы")
            self.ai.ai_enabled = False

        if errors:
            raise ValueError("Ошибки конфигурации:\n" + "\n".join(f"• {error}" for error in errors))

    def ensure_directories(self):
        """Создание необходимых директорий"""
        directories = [self.storage.data_dir, self.storage.backup_dir]
        if self.log_to_file:
            directories.append(self.log_dir)

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    def get_logging_config(self) -> Dict[str, Any]:
        """Получение конфигурации логирования"""
        handlers = ['console']
        if self.log_to_file:
            handlers.append('file')

        handler_configs: Dict[str, Any] = {
            'console': {
                'class': 'logging.StreamHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'stream': sys.stdout
            }
        }
        if self.log_to_file:
            handler_configs['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'filename': str(self.log_dir / f"taskly_{self.environment.value}.log"),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5,
                'encoding': 'utf-8'
            }

        return {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {
                    'format': self.log_format,
                    'datefmt': '%Y-%m-%d %H:%M:%S'
                }
            },
            'handlers': handler_configs,
            'loggers': {
                'taskly': {
                    'level': self.log_level.value,
                    'handlers': handlers,
                    'propagate': False
                },
                'httpx': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                },
                'openai': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                }
            }
        }

    def setup_logging(self) -> None:
        """Применить конфигурацию логирования"""
        if self.log_to_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)
        logging.config.dictConfig(self.get_logging_config())

    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация конфигурации в словарь (без секретов)"""
        return {
            'environment': self.environment.value,
            'ai_enabled': self.ai.ai_enabled,
            'openai_model': self.ai.openai_model,
            'storage_backend': self.storage.backend.value,
            'data_file': str(self.storage.data_file),
            'timezone': self.app.timezone,
            'default_plan': self.app.default_plan,
            'log_level': self.log_level.value
        }

# Глобальный экземпляр конфигурации
config = TasklyConfig()

__all__ = [
    'config',
    'TasklyConfig',
    'Environment',
    'LogLevel',
    'StorageBackend',
    'AIConfig',
    'StorageConfig',
    'AppConfig'
]
