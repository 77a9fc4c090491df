#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Taskly v1.0 - Badges, Achievements & Challenges
Каталоги, проверка значков и прогресс достижений/испытаний

Значки выдаются по счетчикам статистики и никогда не отзываются.
Прогресс достижений и испытаний двигают мутаторы задач, привычек и фокуса.
"""

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Tuple
import logging

from taskly.core.models import (
    UserStats, Badge, BadgeRequirement, Achievement, Challenge, Reward,
    RequirementType, AchievementCategory
)
from taskly.core.events import Notification, NotificationType
from taskly.utils.datetime_utils import add_days

logger = logging.getLogger(__name__)

# ===== CATALOG IDS =====

TASK_MASTER_ID = 1
HABIT_FORMER_ID = 2
FOCUS_CHAMPION_ID = 3
EARLY_BIRD_ID = 4
PRODUCTIVITY_GURU_ID = 5

TASK_CHALLENGE_ID = 1
FOCUS_CHALLENGE_ID = 2
HABIT_CHALLENGE_ID = 3

# ===== REQUIREMENT CHECKERS =====

class RequirementChecker(ABC):
    """Базовый класс проверки условия значка"""

    @abstractmethod
    def check(self, stats: UserStats) -> bool:
        """Выполнено ли условие"""
        pass

    @abstractmethod
    def get_progress(self, stats: UserStats) -> Tuple[int, int]:
        """Получить прогресс (текущий, максимальный)"""
        pass

class StatCountChecker(RequirementChecker):
    """Сравнение счетчика статистики с порогом"""

    def __init__(self, target_count: int, value_getter: Callable[[UserStats], int]):
        self.target_count = target_count
        self.value_getter = value_getter

    def check(self, stats: UserStats) -> bool:
        return self.value_getter(stats) >= self.target_count

    def get_progress(self, stats: UserStats) -> Tuple[int, int]:
        current = min(self.target_count, self.value_getter(stats))
        return current, self.target_count

# Требование "habits" сравнивается с самой длинной серией, а не с числом отметок
STAT_GETTERS: Dict[str, Callable[[UserStats], int]] = {
    RequirementType.TASKS.value: lambda s: s.tasks_completed,
    RequirementType.HABITS.value: lambda s: s.longest_streak,
    RequirementType.FOCUS.value: lambda s: s.focus_sessions_completed,
    RequirementType.LEVEL.value: lambda s: s.level,
}

def checker_for(requirement: BadgeRequirement) -> RequirementChecker:
    return StatCountChecker(requirement.count, STAT_GETTERS[requirement.type])

def badge_progress(stats: UserStats) -> Dict[int, Tuple[int, int]]:
    """Прогресс по каждому значку пользователя"""
    return {badge.id: checker_for(badge.requirement).get_progress(stats) for badge in stats.badges}

# ===== BADGE EVALUATION =====

def evaluate_badges(stats: UserStats, now: str) -> Tuple[UserStats, List[Notification], List[Badge]]:
    """
    Проверить все неполученные значки

    Returns:
        (новая статистика, уведомления, только что полученные значки)
    """
    earned: List[Badge] = []
    notifications: List[Notification] = []
    updated: List[Badge] = []

    for badge in stats.badges:
        if not badge.earned and checker_for(badge.requirement).check(stats):
            badge = replace(badge, earned=True, earned_at=now)
            earned.append(badge)
            logger.info(f"🏆 Получен значок: {badge.name}")
            notifications.append(Notification(
                NotificationType.BADGE_EARNED,
                f"🏆 Badge earned: {badge.name}!",
                {'badge_id': badge.id, 'name': badge.name}
            ))
        updated.append(badge)

    if not earned:
        return stats, [], []
    return replace(stats, badges=updated), notifications, earned

# ===== PROGRESS HELPERS =====

def set_achievement_progress(achievements: List[Achievement], achievement_id: int,
                             value: int) -> List[Achievement]:
    """Установить прогресс достижения (с ограничением [0, max_progress])"""
    result = []
    for achievement in achievements:
        if achievement.id == achievement_id:
            achievement = replace(achievement, progress=value)
        result.append(achievement)
    return result

def adjust_achievement(achievements: List[Achievement], achievement_id: int,
                       delta: int) -> List[Achievement]:
    result = []
    for achievement in achievements:
        if achievement.id == achievement_id:
            achievement = replace(achievement, progress=achievement.progress + delta)
        result.append(achievement)
    return result

def adjust_challenge(challenges: List[Challenge], challenge_id: int, delta: int,
                     today: str) -> List[Challenge]:
    """Сдвинуть прогресс испытания, если оно активно сегодня"""
    result = []
    for challenge in challenges:
        if challenge.id == challenge_id and challenge.is_active(today):
            challenge = replace(challenge, progress=challenge.progress + delta)
        result.append(challenge)
    return result

# ===== DEFAULT CATALOGS =====

def default_badges() -> List[Badge]:
    return [
        Badge(1, "First Step", "Complete your first task", "check-circle",
              BadgeRequirement(RequirementType.TASKS.value, 1)),
        Badge(2, "On a Roll", "Complete 5 tasks in a single day", "zap",
              BadgeRequirement(RequirementType.TASKS.value, 5)),
        Badge(3, "Habit Master", "Maintain a 7-day habit streak", "award",
              BadgeRequirement(RequirementType.HABITS.value, 7)),
        Badge(4, "Focus Champion", "Complete 10 focus sessions", "clock",
              BadgeRequirement(RequirementType.FOCUS.value, 10)),
        Badge(5, "Productivity Guru", "Reach level 5", "star",
              BadgeRequirement(RequirementType.LEVEL.value, 5)),
    ]

def default_achievements(stats: Optional[UserStats] = None) -> List[Achievement]:
    """Каталог достижений; прогресс первых трех выводится из статистики"""
    stats = stats or UserStats()
    return [
        Achievement(TASK_MASTER_ID, "Task Master", "Complete 10 tasks", "check",
                    max_progress=10, reward=50, category=AchievementCategory.MILESTONE.value,
                    progress=stats.tasks_completed),
        Achievement(HABIT_FORMER_ID, "Habit Former", "Maintain a 7-day streak", "award",
                    max_progress=7, reward=100, category=AchievementCategory.MILESTONE.value,
                    progress=stats.longest_streak),
        Achievement(FOCUS_CHAMPION_ID, "Focus Champion", "Complete 5 focus sessions", "clock",
                    max_progress=5, reward=75, category=AchievementCategory.MILESTONE.value,
                    progress=stats.focus_sessions_completed),
        Achievement(EARLY_BIRD_ID, "Early Bird", "Complete a task before 9 AM", "star",
                    max_progress=1, reward=25, category=AchievementCategory.DAILY.value),
        Achievement(PRODUCTIVITY_GURU_ID, "Productivity Guru", "Complete all daily habits for a week",
                    "trophy", max_progress=7, reward=150, category=AchievementCategory.WEEKLY.value),
    ]

def default_challenges(today: str) -> List[Challenge]:
    """Каталог испытаний; окна отсчитываются от сегодняшнего дня"""
    return [
        Challenge(TASK_CHALLENGE_ID, "Productivity Sprint", "Complete 30 tasks in 30 days",
                  start_date=today, end_date=add_days(today, 29), goal=30, reward=300),
        Challenge(FOCUS_CHALLENGE_ID, "Focus Week Challenge", "Complete 10 focus sessions in a week",
                  start_date=today, end_date=add_days(today, 6), goal=10, reward=200),
        Challenge(HABIT_CHALLENGE_ID, "Habit Streak Challenge", "Maintain all habits for 14 days straight",
                  start_date=today, end_date=add_days(today, 13), goal=14, reward=250),
    ]

def default_rewards() -> List[Reward]:
    return [
        Reward(1, "Dark Theme", "Unlock the dark theme for the app", 100, "star",
               unlocked=True, claimed=True),
        Reward(2, "Custom Task Categories", "Create custom categories for your tasks", 200, "trophy",
               unlocked=True),
        Reward(3, "Advanced Analytics", "Unlock detailed productivity analytics", 500, "award"),
        Reward(4, "Custom Themes", "Choose from a variety of app themes", 300, "gift"),
        Reward(5, "Priority Support", "Get priority support from our team", 1000, "crown"),
    ]

# ===== EXPORT =====

__all__ = [
    'TASK_MASTER_ID', 'HABIT_FORMER_ID', 'FOCUS_CHAMPION_ID', 'EARLY_BIRD_ID', 'PRODUCTIVITY_GURU_ID',
    'TASK_CHALLENGE_ID', 'FOCUS_CHALLENGE_ID', 'HABIT_CHALLENGE_ID',
    'RequirementChecker', 'StatCountChecker', 'STAT_GETTERS', 'checker_for', 'badge_progress',
    'evaluate_badges', 'set_achievement_progress', 'adjust_achievement', 'adjust_challenge',
    'default_badges', 'default_achievements', 'default_challenges', 'default_rewards',
]
