"""
Taskly core: модели, чистые мутаторы и игровая механика
"""

from taskly.core.models import (
    Task, Habit, Badge, BadgeRequirement, Achievement, Challenge, Reward,
    UserStats, AppSettings, TimerState, AppState,
    TaskPriority, TimerMode, RequirementType, AchievementCategory, Theme,
    ValidationError, NotFoundError
)
from taskly.core.events import (
    Notification, NotificationType, StoreOperation, OperationType, EntityType, MutationResult
)
from taskly.core.leveling import add_points, level_for_points, experience_for_points, level_progress
from taskly.core.achievements import evaluate_badges
from taskly.core.tasks import add_task, toggle_task, edit_task, delete_task
from taskly.core.habits import add_habit, toggle_habit, delete_habit
from taskly.core.focus import complete_focus_session
from taskly.core.rewards import (
    claim_achievement, join_challenge, claim_challenge, claim_reward, update_settings
)
from taskly.core.quotas import QuotaExceeded, check_quota, has_reached_limit

__all__ = [
    'Task', 'Habit', 'Badge', 'BadgeRequirement', 'Achievement', 'Challenge', 'Reward',
    'UserStats', 'AppSettings', 'TimerState', 'AppState',
    'TaskPriority', 'TimerMode', 'RequirementType', 'AchievementCategory', 'Theme',
    'ValidationError', 'NotFoundError',
    'Notification', 'NotificationType', 'StoreOperation', 'OperationType', 'EntityType',
    'MutationResult',
    'add_points', 'level_for_points', 'experience_for_points', 'level_progress',
    'evaluate_badges',
    'add_task', 'toggle_task', 'edit_task', 'delete_task',
    'add_habit', 'toggle_habit', 'delete_habit',
    'complete_focus_session',
    'claim_achievement', 'join_challenge', 'claim_challenge', 'claim_reward', 'update_settings',
    'QuotaExceeded', 'check_quota', 'has_reached_limit',
]
