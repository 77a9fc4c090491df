#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Taskly v1.0 - Productivity Analytics
Оценка приоритета задач и сводки для AI-подсказок
"""

from typing import Any, Dict, List, Optional, Tuple

from taskly.core.models import Task, Habit, UserStats, TaskPriority
from taskly.utils.datetime_utils import days_between, today_str

PRIORITY_WEIGHTS = {
    'due_date': 0.4,
    'priority': 0.3,
    'complexity': 0.2,
    'dependencies': 0.1,
}

PRIORITY_SCORES = {
    TaskPriority.HIGH.value: 1.0,
    TaskPriority.MEDIUM.value: 0.6,
    TaskPriority.LOW.value: 0.3,
}

DUE_DATE_HORIZON_DAYS = 14
FOCUS_WINDOW_DAYS = 30

def complexity_score(task: Task) -> float:
    score = min(len(task.text) / 100, 0.5)
    if task.notes:
        score += min(len(task.notes) / 200, 0.3)
    return min(score, 1.0)

def dependency_score(task: Task) -> float:
    score = (0.2 if task.notes else 0.0) + (0.3 if task.due_date else 0.0)
    return min(score, 1.0)

def priority_score(task: Task, today: Optional[str] = None) -> float:
    """
    Оценка важности задачи в диапазоне [0, 1]

    Просроченные задачи считаются сроком на сегодня.
    """
    score = 0.0

    if task.due_date:
        days_until_due = max(0, days_between(today or today_str(), task.due_date))
        score += PRIORITY_WEIGHTS['due_date'] * (1 - min(days_until_due / DUE_DATE_HORIZON_DAYS, 1))

    score += PRIORITY_WEIGHTS['priority'] * PRIORITY_SCORES.get(
        task.priority, PRIORITY_SCORES[TaskPriority.MEDIUM.value])
    score += PRIORITY_WEIGHTS['complexity'] * complexity_score(task)
    score += PRIORITY_WEIGHTS['dependencies'] * dependency_score(task)

    return round(score, 2)

def task_patterns(tasks: List[Task]) -> Dict[str, Any]:
    total = len(tasks)
    return {
        'completion_rate': sum(1 for t in tasks if t.completed) / total if total else 0.0,
        'average_complexity': sum(complexity_score(t) for t in tasks) / total if total else 0.0,
        'priority_distribution': {
            p.value: sum(1 for t in tasks if t.priority == p.value)
            for p in (TaskPriority.HIGH, TaskPriority.MEDIUM, TaskPriority.LOW)
        },
    }

def habit_summary(habits: List[Habit]) -> Dict[str, Any]:
    total = len(habits)
    return {
        'average_streak': sum(h.streak for h in habits) / total if total else 0.0,
        'max_streak': max((h.streak for h in habits), default=0),
        'total_completions': sum(len(h.completed_dates) for h in habits),
    }

def focus_summary(stats: UserStats) -> Dict[str, Any]:
    sessions = stats.focus_sessions_completed
    return {
        'total_sessions': sessions,
        'average_sessions_per_day': sessions / FOCUS_WINDOW_DAYS,
        'points_per_session': stats.points / sessions if sessions else 0.0,
    }

def completion_rates(tasks: List[Task], habits: List[Habit], today: Optional[str] = None) -> Tuple[int, int]:
    """Проценты выполненных задач и привычек, отмеченных сегодня"""
    today = today or today_str()
    task_rate = round(sum(1 for t in tasks if t.completed) / len(tasks) * 100) if tasks else 0
    habit_rate = round(sum(1 for h in habits if h.is_completed_on(today)) / len(habits) * 100) if habits else 0
    return task_rate, habit_rate

def rank_tasks(tasks: List[Task], today: Optional[str] = None) -> List[Task]:
    """Невыполненные задачи по убыванию оценки приоритета"""
    today = today or today_str()
    pending = [t for t in tasks if not t.completed]
    return sorted(pending, key=lambda t: priority_score(t, today), reverse=True)

__all__ = [
    'PRIORITY_WEIGHTS', 'PRIORITY_SCORES', 'complexity_score', 'dependency_score',
    'priority_score', 'task_patterns', 'habit_summary', 'focus_summary',
    'completion_rates', 'rank_tasks',
]
