#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Taskly v1.0 - Points & Leveling
Начисление очков и пересчет уровня
"""

import logging
from dataclasses import replace
from typing import List, Optional, Tuple

from taskly.core.models import UserStats, POINTS_PER_LEVEL
from taskly.core.events import (
    Notification, NotificationType, StoreOperation, stats_update, badge_inserts
)
from taskly.core.achievements import evaluate_badges

logger = logging.getLogger(__name__)

def level_for_points(points: int) -> int:
    return points // POINTS_PER_LEVEL + 1

def experience_for_points(points: int) -> int:
    # Остаток в Python всегда неотрицательный, в том числе для отрицательных очков
    return points % POINTS_PER_LEVEL

def level_progress(points: int) -> float:
    """Прогресс до следующего уровня в процентах"""
    return experience_for_points(points) / POINTS_PER_LEVEL * 100

def add_points(stats: UserStats, delta: int) -> Tuple[UserStats, List[Notification]]:
    """
    Применить изменение очков

    Очки не ограничиваются снизу. При росте уровня возвращается ровно одно
    уведомление LEVEL_UP, даже если уровень вырос сразу на несколько.
    """
    if delta == 0:
        return stats, []

    old_level = stats.level
    new_stats = replace(stats, points=stats.points + delta)
    notifications: List[Notification] = []

    if new_stats.level > old_level:
        logger.info(f"🎉 Новый уровень: {old_level} -> {new_stats.level}")
        notifications.append(Notification(
            NotificationType.LEVEL_UP,
            f"🎉 Level up! You're now level {new_stats.level}!",
            {'level': new_stats.level, 'previous_level': old_level}
        ))

    return new_stats, notifications

def settle_stats(user_id: Optional[str], stats: UserStats, delta: int,
                 now: str) -> Tuple[UserStats, List[Notification], List[StoreOperation]]:
    """Начислить очки, проверить значки и подготовить операции для хранилища"""
    stats, notifications = add_points(stats, delta)
    stats, badge_notifications, earned = evaluate_badges(stats, now)
    operations = [stats_update(user_id, stats, now)] + badge_inserts(user_id, earned)
    return stats, notifications + badge_notifications, operations

__all__ = ['level_for_points', 'experience_for_points', 'level_progress', 'add_points', 'settle_stats']
