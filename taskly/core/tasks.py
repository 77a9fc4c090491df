#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Taskly v1.0 - Task Mutators
Создание, переключение, редактирование и удаление задач

Каждая функция принимает AppState и возвращает MutationResult, не изменяя
исходное состояние. Очки, начисленные за выполненные задачи, всегда равны
сумме points по выполненным задачам.
"""

import logging
from dataclasses import replace
from typing import Any, Dict, Optional

from taskly.core.models import AppState, Task, UserStats, NotFoundError
from taskly.core.events import (
    MutationResult, StoreOperation, OperationType, EntityType, success
)
from taskly.core.leveling import settle_stats
from taskly.core.achievements import (
    set_achievement_progress, adjust_challenge, TASK_MASTER_ID, TASK_CHALLENGE_ID
)
from taskly.utils.datetime_utils import today_str, now_iso

logger = logging.getLogger(__name__)

def task_row(task: Task, user_id: Optional[str]) -> Dict[str, Any]:
    row = task.to_dict()
    row.pop('points')
    row['user_id'] = user_id
    return row

def _count_completion(stats: UserStats, sign: int, today: str) -> UserStats:
    """Счетчик и испытание задач сдвигаются на ±1, Task Master следует за счетчиком"""
    tasks_completed = max(0, stats.tasks_completed + sign)
    return replace(
        stats,
        tasks_completed=tasks_completed,
        achievements=set_achievement_progress(stats.achievements, TASK_MASTER_ID, tasks_completed),
        challenges=adjust_challenge(stats.challenges, TASK_CHALLENGE_ID, sign, today),
        last_active=today,
    )

def add_task(state: AppState, text: str, due_date: Optional[str] = None,
             priority: Optional[str] = None, notes: Optional[str] = None,
             category: Optional[str] = None) -> MutationResult:
    """Добавить задачу в начало списка (ValidationError при пустом тексте)"""
    task = Task(
        id=state.next_task_id(),
        text=text,
        due_date=due_date,
        priority=priority,
        notes=notes,
        category=category,
    )

    logger.debug(f"📝 Новая задача #{task.id}: {task.text}")
    return MutationResult(
        state=replace(state, tasks=[task] + list(state.tasks)),
        notifications=[success("Task added successfully!", task_id=task.id)],
        operations=[StoreOperation(OperationType.INSERT, EntityType.TASKS, task.id,
                                   task_row(task, state.user_id), user_id=state.user_id)],
    )

def toggle_task(state: AppState, task_id: int, today: Optional[str] = None,
                now: Optional[str] = None) -> MutationResult:
    """Переключить выполнение; снятие отметки точно отменяет начисление"""
    try:
        task = state.get_task(task_id)
    except NotFoundError:
        return MutationResult.unchanged(state)

    today = today or today_str()
    now = now or now_iso()

    toggled = replace(task, completed=not task.completed)
    sign = 1 if toggled.completed else -1

    stats = _count_completion(state.stats, sign, today)
    stats, notifications, operations = settle_stats(state.user_id, stats, sign * task.points, now)

    operations.insert(0, StoreOperation(OperationType.UPDATE, EntityType.TASKS, task_id,
                                        {'completed': toggled.completed},
                                        user_id=state.user_id))
    return MutationResult(
        state=replace(state,
                      tasks=[toggled if t.id == task_id else t for t in state.tasks],
                      stats=stats),
        notifications=notifications,
        operations=operations,
    )

def edit_task(state: AppState, task_id: int, text: str, due_date: Optional[str] = None,
              priority: Optional[str] = None, notes: Optional[str] = None,
              category: Optional[str] = None, now: Optional[str] = None) -> MutationResult:
    """
    Изменить задачу

    Неизвестный id - no-op. Категория None сохраняет текущую, пустая строка
    ее очищает. Если у выполненной задачи меняется приоритет, начисленные
    очки корректируются на разницу.
    """
    try:
        task = state.get_task(task_id)
    except NotFoundError:
        return MutationResult.unchanged(state)

    edited = replace(
        task,
        text=text,
        due_date=due_date,
        priority=priority,
        notes=notes,
        category=task.category if category is None else category,
    )

    stats = state.stats
    notifications = []
    operations = [StoreOperation(OperationType.UPDATE, EntityType.TASKS, task_id, {
        'text': edited.text,
        'due_date': edited.due_date,
        'priority': edited.priority,
        'notes': edited.notes,
        'category': edited.category,
    }, user_id=state.user_id)]

    delta = edited.points - task.points
    if edited.completed and delta:
        stats, notifications, stats_ops = settle_stats(state.user_id, stats, delta, now or now_iso())
        operations.extend(stats_ops)

    notifications = notifications + [success("Task updated successfully!", task_id=task_id)]
    return MutationResult(
        state=replace(state,
                      tasks=[edited if t.id == task_id else t for t in state.tasks],
                      stats=stats),
        notifications=notifications,
        operations=operations,
    )

def delete_task(state: AppState, task_id: int, today: Optional[str] = None,
                now: Optional[str] = None) -> MutationResult:
    """Удалить задачу; вклад выполненной задачи в статистику отменяется"""
    try:
        task = state.get_task(task_id)
    except NotFoundError:
        return MutationResult.unchanged(state)

    stats = state.stats
    notifications = []
    operations = [StoreOperation(OperationType.DELETE, EntityType.TASKS, task_id,
                                 user_id=state.user_id)]

    if task.completed:
        stats = _count_completion(stats, -1, today or today_str())
        stats, notifications, stats_ops = settle_stats(state.user_id, stats, -task.points,
                                                       now or now_iso())
        operations.extend(stats_ops)

    notifications = notifications + [success("Task deleted successfully!", task_id=task_id)]
    return MutationResult(
        state=replace(state, tasks=[t for t in state.tasks if t.id != task_id], stats=stats),
        notifications=notifications,
        operations=operations,
    )

__all__ = ['task_row', 'add_task', 'toggle_task', 'edit_task', 'delete_task']
