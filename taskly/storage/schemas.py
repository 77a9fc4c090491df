#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Taskly v1.0 - Storage Row Schemas
Pydantic-модели строк хранилища и преобразование строк в сущности

Колонки в snake_case, как в таблицах хостинговой БД.
"""

import logging
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskly.core.models import (
    Task, Habit, Badge, BadgeRequirement, UserStats, AppSettings, AppState,
    TaskPriority, RequirementType, Theme
)
from taskly.core.events import EntityType
from taskly.core.achievements import (
    default_badges, default_achievements, default_challenges, default_rewards
)
from taskly.utils.datetime_utils import is_valid_date

logger = logging.getLogger(__name__)

# ===== ROW MODELS =====

class RowModel(BaseModel):
    model_config = ConfigDict(extra='ignore')

class TaskRow(RowModel):
    id: int
    user_id: Optional[str] = None
    text: str
    completed: bool = False
    due_date: Optional[str] = None
    priority: Optional[str] = None
    notes: Optional[str] = None
    category: Optional[str] = None
    created_at: Optional[str] = None

    @field_validator('text')
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('text cannot be empty')
        return v

    @field_validator('priority')
    @classmethod
    def priority_known(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in {p.value for p in TaskPriority}:
            raise ValueError(f'unknown priority: {v}')
        return v

    @field_validator('due_date')
    @classmethod
    def due_date_iso(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not is_valid_date(v):
            raise ValueError(f'due_date must be YYYY-MM-DD: {v}')
        return v

class HabitRow(RowModel):
    id: int
    user_id: Optional[str] = None
    name: str
    streak: int = Field(default=0, ge=0)
    created_at: Optional[str] = None

class HabitCompletionRow(RowModel):
    id: Optional[int] = None
    habit_id: int
    user_id: Optional[str] = None
    completion_date: str

    @field_validator('completion_date')
    @classmethod
    def completion_date_iso(cls, v: str) -> str:
        if not is_valid_date(v):
            raise ValueError(f'completion_date must be YYYY-MM-DD: {v}')
        return v

class UserStatsRow(RowModel):
    id: Optional[int] = None
    user_id: str
    points: int = 0
    level: int = 1
    tasks_completed: int = Field(default=0, ge=0)
    habits_completed: int = Field(default=0, ge=0)
    focus_sessions_completed: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    updated_at: Optional[str] = None

class BadgeRow(RowModel):
    id: int
    name: str
    description: str = ""
    icon: str = ""
    requirement_type: str
    requirement_count: int = Field(ge=0)

    @field_validator('requirement_type')
    @classmethod
    def requirement_known(cls, v: str) -> str:
        if v not in {r.value for r in RequirementType}:
            raise ValueError(f'unknown requirement type: {v}')
        return v

class UserBadgeRow(RowModel):
    id: Optional[int] = None
    user_id: Optional[str] = None
    badge_id: int
    earned_at: Optional[str] = None

class UserSettingsRow(RowModel):
    id: Optional[int] = None
    user_id: str
    theme: str = Theme.LIGHT.value
    notifications: bool = True
    focus_time: int = Field(default=25, gt=0)
    short_break: int = Field(default=5, gt=0)
    long_break: int = Field(default=15, gt=0)
    updated_at: Optional[str] = None

    @field_validator('theme')
    @classmethod
    def theme_known(cls, v: str) -> str:
        if v not in {t.value for t in Theme}:
            raise ValueError(f'unknown theme: {v}')
        return v

ROW_MODELS: Dict[EntityType, Type[RowModel]] = {
    EntityType.TASKS: TaskRow,
    EntityType.HABITS: HabitRow,
    EntityType.HABIT_COMPLETIONS: HabitCompletionRow,
    EntityType.USER_STATS: UserStatsRow,
    EntityType.BADGES: BadgeRow,
    EntityType.USER_BADGES: UserBadgeRow,
    EntityType.USER_SETTINGS: UserSettingsRow,
}

def validate_row(entity: EntityType, row: Dict[str, Any]) -> Dict[str, Any]:
    """Проверить строку (pydantic.ValidationError при ошибке) и вернуть нормализованный dict"""
    return ROW_MODELS[entity].model_validate(row).model_dump()

# ===== DEFAULT ROWS =====

def default_stats_row(user_id: str) -> Dict[str, Any]:
    return UserStatsRow(user_id=user_id).model_dump(exclude_none=True)

def default_settings_row(user_id: str) -> Dict[str, Any]:
    return UserSettingsRow(user_id=user_id).model_dump(exclude_none=True)

def badge_catalog_rows() -> List[Dict[str, Any]]:
    return [
        BadgeRow(
            id=badge.id,
            name=badge.name,
            description=badge.description,
            icon=badge.icon,
            requirement_type=badge.requirement.type,
            requirement_count=badge.requirement.count,
        ).model_dump()
        for badge in default_badges()
    ]

# ===== ROWS -> ENTITIES =====

def habits_from_rows(habit_rows: List[Dict[str, Any]],
                     completion_rows: List[Dict[str, Any]]) -> List[Habit]:
    dates: Dict[int, List[str]] = {}
    for completion in completion_rows:
        dates.setdefault(completion['habit_id'], []).append(completion['completion_date'])

    return [
        Habit(id=row['id'], name=row['name'], streak=row.get('streak', 0),
              completed_dates=dates.get(row['id'], []))
        for row in habit_rows
    ]

def badges_from_rows(catalog_rows: List[Dict[str, Any]],
                     user_badge_rows: List[Dict[str, Any]]) -> List[Badge]:
    """Каталог значков с отметками пользователя; пустой каталог заменяется встроенным"""
    earned = {row['badge_id']: row.get('earned_at') for row in user_badge_rows}

    if catalog_rows:
        catalog = [
            Badge(
                id=row['id'],
                name=row['name'],
                description=row.get('description', ''),
                icon=row.get('icon', ''),
                requirement=BadgeRequirement(row['requirement_type'], row['requirement_count']),
            )
            for row in catalog_rows
        ]
    else:
        catalog = default_badges()

    for badge in catalog:
        if badge.id in earned:
            badge.earned = True
            badge.earned_at = earned[badge.id]
    return catalog

def stats_from_row(row: Optional[Dict[str, Any]], badges: List[Badge], today: str,
                   current_streak: int = 0) -> UserStats:
    """
    Статистика из строки user_stats

    Уровень в строке игнорируется и пересчитывается из очков. Прогресс
    достижений выводится из счетчиков.
    """
    row = row or {}
    stats = UserStats(
        points=row.get('points', 0),
        tasks_completed=row.get('tasks_completed', 0),
        habits_completed=row.get('habits_completed', 0),
        focus_sessions_completed=row.get('focus_sessions_completed', 0),
        longest_streak=row.get('longest_streak', 0),
        streak=current_streak,
        last_active=today,
        badges=badges,
    )
    stats.achievements = default_achievements(stats)
    stats.challenges = default_challenges(today)
    stats.rewards = default_rewards()
    return stats

def settings_from_row(row: Optional[Dict[str, Any]]) -> AppSettings:
    if not row:
        return AppSettings()
    return AppSettings(
        theme=row.get('theme', Theme.LIGHT.value),
        notifications=row.get('notifications', True),
        focus_time=row.get('focus_time', 25),
        short_break=row.get('short_break', 5),
        long_break=row.get('long_break', 15),
    )

def build_state(user_id: str, rows: Dict[EntityType, List[Dict[str, Any]]], today: str,
                plan: str = "free") -> AppState:
    """Собрать AppState из строк всех таблиц пользователя"""
    tasks = sorted((Task.from_dict(r) for r in rows.get(EntityType.TASKS, [])),
                   key=lambda t: t.id, reverse=True)
    habits = sorted(habits_from_rows(rows.get(EntityType.HABITS, []),
                                     rows.get(EntityType.HABIT_COMPLETIONS, [])),
                    key=lambda h: h.id, reverse=True)
    badges = badges_from_rows(rows.get(EntityType.BADGES, []), rows.get(EntityType.USER_BADGES, []))

    stats_rows = rows.get(EntityType.USER_STATS, [])
    settings_rows = rows.get(EntityType.USER_SETTINGS, [])
    stats = stats_from_row(stats_rows[0] if stats_rows else None, badges, today,
                           current_streak=max((h.streak for h in habits), default=0))

    logger.debug(f"📦 Состояние собрано: задач {len(tasks)}, привычек {len(habits)}")
    return AppState(
        user_id=user_id,
        tasks=tasks,
        habits=habits,
        stats=stats,
        settings=settings_from_row(settings_rows[0] if settings_rows else None),
        plan=plan,
    )

__all__ = [
    'RowModel', 'TaskRow', 'HabitRow', 'HabitCompletionRow', 'UserStatsRow', 'BadgeRow',
    'UserBadgeRow', 'UserSettingsRow', 'ROW_MODELS', 'validate_row',
    'default_stats_row', 'default_settings_row', 'badge_catalog_rows',
    'habits_from_rows', 'badges_from_rows', 'stats_from_row', 'settings_from_row', 'build_state',
]
