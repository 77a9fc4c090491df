#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Taskly v1.0 - Habit Mutators
Привычки: создание, отметка за сегодня, удаление

Отметить можно только сегодняшний день; повторное переключение в тот же
день возвращает серию и список дат к исходному виду.
"""

import logging
from dataclasses import replace
from typing import Optional

from taskly.core.models import AppState, Habit, NotFoundError, HABIT_POINTS
from taskly.core.events import (
    MutationResult, StoreOperation, OperationType, EntityType, success
)
from taskly.core.leveling import settle_stats
from taskly.core.achievements import (
    set_achievement_progress, adjust_challenge, HABIT_FORMER_ID, HABIT_CHALLENGE_ID
)
from taskly.utils.datetime_utils import today_str, now_iso

logger = logging.getLogger(__name__)

def add_habit(state: AppState, name: str) -> MutationResult:
    """Добавить привычку (ValidationError при пустом названии)"""
    habit = Habit(id=state.next_habit_id(), name=name)

    logger.debug(f"🔄 Новая привычка #{habit.id}: {habit.name}")
    return MutationResult(
        state=replace(state, habits=[habit] + list(state.habits)),
        notifications=[success("Habit added successfully!", habit_id=habit.id)],
        operations=[StoreOperation(OperationType.INSERT, EntityType.HABITS, habit.id, {
            'id': habit.id,
            'name': habit.name,
            'streak': habit.streak,
            'user_id': state.user_id,
        }, user_id=state.user_id)],
    )

def toggle_habit(state: AppState, habit_id: int, today: Optional[str] = None,
                 now: Optional[str] = None) -> MutationResult:
    """Отметить или снять отметку привычки за сегодня (±15 очков)"""
    try:
        habit = state.get_habit(habit_id)
    except NotFoundError:
        return MutationResult.unchanged(state)

    today = today or today_str()
    now = now or now_iso()
    stats = state.stats

    if habit.is_completed_on(today):
        updated = replace(
            habit,
            streak=max(0, habit.streak - 1),
            completed_dates=[d for d in habit.completed_dates if d != today],
        )
        sign = -1
        achievements = set_achievement_progress(stats.achievements, HABIT_FORMER_ID, updated.streak)
        completion_op = StoreOperation(OperationType.DELETE_WHERE, EntityType.HABIT_COMPLETIONS, data={
            'habit_id': habit_id,
            'user_id': state.user_id,
            'completion_date': today,
        }, user_id=state.user_id)
        longest_streak = stats.longest_streak
    else:
        updated = replace(
            habit,
            streak=habit.streak + 1,
            completed_dates=list(habit.completed_dates) + [today],
        )
        sign = 1
        longest_streak = max(stats.longest_streak, updated.streak)
        achievements = set_achievement_progress(stats.achievements, HABIT_FORMER_ID, longest_streak)
        completion_op = StoreOperation(OperationType.INSERT, EntityType.HABIT_COMPLETIONS, data={
            'habit_id': habit_id,
            'user_id': state.user_id,
            'completion_date': today,
        }, user_id=state.user_id)

    habits = [updated if h.id == habit_id else h for h in state.habits]
    stats = replace(
        stats,
        habits_completed=max(0, stats.habits_completed + sign),
        longest_streak=longest_streak,
        streak=max((h.streak for h in habits), default=0),
        achievements=achievements,
        challenges=adjust_challenge(stats.challenges, HABIT_CHALLENGE_ID, sign, today),
        last_active=today,
    )
    stats, notifications, operations = settle_stats(state.user_id, stats, sign * HABIT_POINTS, now)

    operations = [
        completion_op,
        StoreOperation(OperationType.UPDATE, EntityType.HABITS, habit_id, {'streak': updated.streak},
                       user_id=state.user_id),
    ] + operations

    return MutationResult(
        state=replace(state, habits=habits, stats=stats),
        notifications=notifications,
        operations=operations,
    )

def delete_habit(state: AppState, habit_id: int, today: Optional[str] = None,
                 now: Optional[str] = None) -> MutationResult:
    """Удалить привычку; сегодняшняя отметка отменяет свои очки и счетчик"""
    try:
        habit = state.get_habit(habit_id)
    except NotFoundError:
        return MutationResult.unchanged(state)

    today = today or today_str()
    stats = state.stats
    notifications = []
    operations = [
        StoreOperation(OperationType.DELETE_WHERE, EntityType.HABIT_COMPLETIONS,
                       data={'habit_id': habit_id, 'user_id': state.user_id},
                       user_id=state.user_id),
        StoreOperation(OperationType.DELETE, EntityType.HABITS, habit_id, user_id=state.user_id),
    ]

    remaining = [h for h in state.habits if h.id != habit_id]
    stats = replace(stats, streak=max((h.streak for h in remaining), default=0))

    if habit.is_completed_on(today):
        stats = replace(stats, habits_completed=max(0, stats.habits_completed - 1))
        stats, notifications, stats_ops = settle_stats(state.user_id, stats, -HABIT_POINTS,
                                                       now or now_iso())
        operations.extend(stats_ops)

    notifications = notifications + [success("Habit deleted successfully!", habit_id=habit_id)]
    return MutationResult(
        state=replace(state, habits=remaining, stats=stats),
        notifications=notifications,
        operations=operations,
    )

__all__ = ['add_habit', 'toggle_habit', 'delete_habit']
