#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Taskly v1.0 - Demo Dataset
Демо-данные для работы без настроенного хранилища
"""

from dataclasses import replace
from datetime import timedelta
from typing import Optional

from taskly.core.models import Task, Habit, UserStats, AppSettings, AppState
from taskly.core.achievements import (
    default_badges, default_achievements, default_challenges, default_rewards,
    TASK_MASTER_ID, HABIT_FORMER_ID, FOCUS_CHALLENGE_ID, FOCUS_CHAMPION_ID, EARLY_BIRD_ID,
    PRODUCTIVITY_GURU_ID, TASK_CHALLENGE_ID, HABIT_CHALLENGE_ID
)
from taskly.utils.datetime_utils import add_days, parse_date, today_str

DEMO_USER_ID = "mock-user-id"

def load_demo_state(user_id: Optional[str] = DEMO_USER_ID, today: Optional[str] = None,
                    plan: str = "free") -> AppState:
    """Демо-состояние: 5 задач, 3 привычки, 175 очков, уровень 2"""
    today = today or today_str()
    tomorrow = add_days(today, 1)
    yesterday = add_days(today, -1)

    tasks = [
        Task(1, "Complete project proposal", due_date=tomorrow, priority="high",
             notes="Include budget estimates and timeline"),
        Task(2, "Schedule team meeting", completed=True, due_date=today, priority="medium",
             notes="Discuss quarterly goals"),
        Task(3, "Review client feedback", due_date=add_days(today, 2), priority="medium", notes=""),
        Task(4, "Update portfolio website", priority="low", notes="Add recent projects"),
        Task(5, "Read chapter 5 of productivity book", completed=True,
             notes="Take notes on key concepts"),
    ]

    habits = [
        Habit(1, "Morning meditation", streak=3, completed_dates=[today, yesterday, add_days(today, -2)]),
        Habit(2, "Read for 30 minutes", streak=2, completed_dates=[today, yesterday]),
        Habit(3, "Exercise"),
    ]

    day = parse_date(today)
    badges = default_badges()
    badges[0] = replace(badges[0], earned=True, earned_at=(day - timedelta(days=7)).isoformat())
    badges[1] = replace(badges[1], earned=True, earned_at=(day - timedelta(days=2)).isoformat())

    demo_progress = {
        TASK_MASTER_ID: 7,
        HABIT_FORMER_ID: 3,
        FOCUS_CHAMPION_ID: 3,
        EARLY_BIRD_ID: 1,
        PRODUCTIVITY_GURU_ID: 3,
    }
    achievements = [replace(a, progress=demo_progress[a.id]) for a in default_achievements()]

    challenge_progress = {TASK_CHALLENGE_ID: 12, FOCUS_CHALLENGE_ID: 4, HABIT_CHALLENGE_ID: 14}
    challenges = [replace(c, progress=challenge_progress[c.id]) for c in default_challenges(today)]

    stats = UserStats(
        points=175,
        tasks_completed=7,
        habits_completed=12,
        focus_sessions_completed=3,
        longest_streak=3,
        streak=3,
        last_active=today,
        badges=badges,
        achievements=achievements,
        challenges=challenges,
        rewards=default_rewards(),
    )

    return AppState(
        user_id=user_id,
        tasks=tasks,
        habits=habits,
        stats=stats,
        settings=AppSettings(),
        plan=plan,
    )

__all__ = ['DEMO_USER_ID', 'load_demo_state']
