#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Taskly v1.0 - Mutation Results
Уведомления и операции хранилища, которые возвращают чистые мутаторы
"""

from datetime import datetime
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum

from taskly.core.models import AppState, UserStats

# ===== ENUMS =====

class NotificationType(Enum):
    """Типы пользовательских уведомлений"""
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    LEVEL_UP = "level_up"
    BADGE_EARNED = "badge_earned"
    LIMIT_REACHED = "limit_reached"

class OperationType(Enum):
    """Операции зеркалирования в хранилище"""
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    DELETE_WHERE = "delete_where"

class EntityType(Enum):
    """Таблицы хранилища"""
    TASKS = "tasks"
    HABITS = "habits"
    HABIT_COMPLETIONS = "habit_completions"
    USER_STATS = "user_stats"
    USER_BADGES = "user_badges"
    BADGES = "badges"
    USER_SETTINGS = "user_settings"

    @property
    def key_field(self) -> str:
        """Поле, по которому адресуется строка при update/delete"""
        if self in (EntityType.USER_STATS, EntityType.USER_SETTINGS):
            return "user_id"
        return "id"

# ===== RECORDS =====

@dataclass
class Notification:
    """Уведомление для пользователя (аналог toast)"""
    type: NotificationType
    message: str
    payload: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'message': self.message,
            'payload': dict(self.payload),
            'created_at': self.created_at.isoformat()
        }

@dataclass
class StoreOperation:
    """Одна операция зеркалирования в хранилище"""
    action: OperationType
    entity: EntityType
    key: Optional[Any] = None
    data: Dict[str, Any] = field(default_factory=dict)
    user_id: Optional[str] = None

    def describe(self) -> str:
        target = f"#{self.key}" if self.key is not None else ""
        return f"{self.action.value} {self.entity.value}{target}"

@dataclass
class MutationResult:
    """Новое состояние плюс побочные эффекты мутации"""
    state: AppState
    notifications: List[Notification] = field(default_factory=list)
    operations: List[StoreOperation] = field(default_factory=list)
    changed: bool = True

    @classmethod
    def unchanged(cls, state: AppState) -> "MutationResult":
        return cls(state=state, changed=False)

# ===== HELPERS =====

def success(message: str, **payload) -> Notification:
    return Notification(NotificationType.SUCCESS, message, payload)

def error(message: str, **payload) -> Notification:
    return Notification(NotificationType.ERROR, message, payload)

def info(message: str, **payload) -> Notification:
    return Notification(NotificationType.INFO, message, payload)

def stats_update(user_id: Optional[str], stats: UserStats, now: str) -> StoreOperation:
    """Операция обновления строки user_stats"""
    return StoreOperation(
        action=OperationType.UPDATE,
        entity=EntityType.USER_STATS,
        key=user_id,
        data={
            'points': stats.points,
            'level': stats.level,
            'tasks_completed': stats.tasks_completed,
            'habits_completed': stats.habits_completed,
            'focus_sessions_completed': stats.focus_sessions_completed,
            'longest_streak': stats.longest_streak,
            'updated_at': now
        },
        user_id=user_id,
    )

def badge_inserts(user_id: Optional[str], badges) -> List[StoreOperation]:
    """Операции вставки user_badges для только что полученных значков"""
    return [
        StoreOperation(
            action=OperationType.INSERT,
            entity=EntityType.USER_BADGES,
            data={'user_id': user_id, 'badge_id': badge.id, 'earned_at': badge.earned_at},
            user_id=user_id,
        )
        for badge in badges
    ]

# ===== EXPORT =====

__all__ = [
    'NotificationType', 'OperationType', 'EntityType',
    'Notification', 'StoreOperation', 'MutationResult',
    'success', 'error', 'info', 'stats_update', 'badge_inserts',
]
